from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
import yaml

from ..cloudflare.api import CF_API_BASE
from ..cloudflare.tokens import DEFAULT_TOKEN_NAME
from ..keystore import ALLOWED_KEYSTORE_KINDS
from ..utils.yamlio import read_yaml


DEFAULT_CONFIG_FILE_NAME = "wasmflare.yml"
COMPILER_MODES = ("L", "M", "S")


class ConfigError(ValueError):
    """Project configuration is missing or invalid."""


@dataclass(frozen=True)
class ProjectSettings:
    app_root_dir: str = "."
    input_dir: str = "web"
    output_dir: str = "deploy/cloudflare"
    main_input_file: str = "main.go"
    output_wasm_file_name: str = "worker.wasm"
    worker_js_file_name: str = "_worker.js"
    compiler_mode: str = "S"

    def root_path(self, base: Optional[Path] = None) -> Path:
        root = Path(self.app_root_dir)
        if base is not None and not root.is_absolute():
            root = Path(base) / root
        return root

    def input_path(self, base: Optional[Path] = None) -> Path:
        return self.root_path(base) / self.input_dir

    def output_path(self, base: Optional[Path] = None) -> Path:
        return self.root_path(base) / self.output_dir


@dataclass(frozen=True)
class CloudflareSettings:
    api_base: str = CF_API_BASE
    timeout_seconds: float = 60
    token_name: str = DEFAULT_TOKEN_NAME
    permission_capability: str = "Pages"
    permission_action: str = "Edit"


@dataclass(frozen=True)
class KeystoreSettings:
    kind: str = "gpg_file"
    settings: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WasmflareConfig:
    project: ProjectSettings = field(default_factory=ProjectSettings)
    cloudflare: CloudflareSettings = field(default_factory=CloudflareSettings)
    keystore: KeystoreSettings = field(default_factory=KeystoreSettings)
    source_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": asdict(self.project),
            "cloudflare": asdict(self.cloudflare),
            "keystore": asdict(self.keystore),
        }


def _non_empty_string() -> Dict[str, Any]:
    return {"type": "string", "minLength": 1}


def config_schema() -> Dict[str, Any]:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "project": {
                "type": "object",
                "properties": {
                    "app_root_dir": _non_empty_string(),
                    "input_dir": _non_empty_string(),
                    "output_dir": _non_empty_string(),
                    "main_input_file": _non_empty_string(),
                    "output_wasm_file_name": _non_empty_string(),
                    "worker_js_file_name": _non_empty_string(),
                    "compiler_mode": {"type": "string", "enum": list(COMPILER_MODES)},
                },
                "additionalProperties": False,
            },
            "cloudflare": {
                "type": "object",
                "properties": {
                    "api_base": _non_empty_string(),
                    "timeout_seconds": {"type": "number", "exclusiveMinimum": 0},
                    "token_name": _non_empty_string(),
                    "permission_capability": _non_empty_string(),
                    "permission_action": _non_empty_string(),
                },
                "additionalProperties": False,
            },
            "keystore": {
                "type": "object",
                "required": ["kind"],
                "properties": {
                    "kind": {"type": "string", "enum": list(ALLOWED_KEYSTORE_KINDS)},
                    "settings": {"type": "object"},
                },
                "additionalProperties": False,
            },
        },
        "additionalProperties": False,
    }


def validate_config_dict(data: Dict[str, Any]) -> None:
    try:
        jsonschema.validate(instance=data, schema=config_schema())
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"config schema validation failed at {where}: {e.message}")


def resolve_config_path(root: Path, cli_path: Optional[str] = None) -> Path:
    """Resolve the config file path.

    Precedence:
      1) CLI flag --config
      2) WASMFLARE_CONFIG
      3) <root>/wasmflare.yml
    """
    if cli_path and str(cli_path).strip():
        return Path(str(cli_path).strip()).expanduser().resolve()

    env_path = str(os.environ.get("WASMFLARE_CONFIG", "") or "").strip()
    if env_path:
        return Path(env_path).expanduser().resolve()

    return (Path(root) / DEFAULT_CONFIG_FILE_NAME).resolve()


def config_from_dict(data: Dict[str, Any], *, source_path: Optional[Path] = None) -> WasmflareConfig:
    validate_config_dict(data)
    keystore_raw = data.get("keystore") or {}
    return WasmflareConfig(
        project=ProjectSettings(**(data.get("project") or {})),
        cloudflare=CloudflareSettings(**(data.get("cloudflare") or {})),
        keystore=KeystoreSettings(
            kind=str(keystore_raw.get("kind") or KeystoreSettings.kind),
            settings=dict(keystore_raw.get("settings") or {}),
        ),
        source_path=source_path,
    )


def load_config(root: Path, cli_path: Optional[str] = None) -> WasmflareConfig:
    """Load and validate the project configuration.

    A missing default file yields the built-in defaults; a file requested
    explicitly (flag or WASMFLARE_CONFIG) must exist.
    """
    explicit = bool((cli_path and str(cli_path).strip()) or str(os.environ.get("WASMFLARE_CONFIG", "") or "").strip())
    path = resolve_config_path(root, cli_path)
    if not path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {path}")
        return WasmflareConfig()

    try:
        data = read_yaml(path)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"invalid config file {path}: {e}")
    return config_from_dict(data, source_path=path)

"""Project configuration (``wasmflare.yml``).

Lookup order: ``--config`` flag, ``WASMFLARE_CONFIG``, then ``<root>/wasmflare.yml``.
Without a file the built-in defaults apply.
"""

from .load_config import (
    COMPILER_MODES,
    DEFAULT_CONFIG_FILE_NAME,
    CloudflareSettings,
    ConfigError,
    KeystoreSettings,
    ProjectSettings,
    WasmflareConfig,
    config_from_dict,
    load_config,
    resolve_config_path,
)

__all__ = [
    "COMPILER_MODES",
    "DEFAULT_CONFIG_FILE_NAME",
    "CloudflareSettings",
    "ConfigError",
    "KeystoreSettings",
    "ProjectSettings",
    "WasmflareConfig",
    "config_from_dict",
    "load_config",
    "resolve_config_path",
]

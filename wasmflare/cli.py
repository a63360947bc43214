from __future__ import annotations

import argparse
import getpass
import json
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

from .build import generate_pages_files, generate_worker_files
from .cloudflare import (
    ArtifactSet,
    CloudflareApi,
    CloudflareError,
    DeploymentUploader,
    PermissionResolver,
    TokenScoper,
    WorkerTarget,
)
from .compiler import BuildError, GoWasmCompiler
from .config import DEFAULT_CONFIG_FILE_NAME, ConfigError, WasmflareConfig, load_config
from .keystore import KeyStore, KeyStoreError, keys, open_keystore
from .shim import FileHostRuntime, ShimGenerator, write_shim
from .utils.yamlio import write_yaml
from .wizard import SetupWizard, StepInputError, run_steps


BOOTSTRAP_TOKEN_ENV = "CLOUDFLARE_BOOTSTRAP_TOKEN"


def _root() -> Path:
    return Path.cwd()


def _echo(*parts: Any) -> None:
    print("[wasmflare]", *parts)


def _config(args: argparse.Namespace) -> WasmflareConfig:
    return load_config(_root(), getattr(args, "config", None))


def _api(cfg: WasmflareConfig) -> CloudflareApi:
    return CloudflareApi(base_url=cfg.cloudflare.api_base, timeout=cfg.cloudflare.timeout_seconds)


def _keystore(cfg: WasmflareConfig) -> KeyStore:
    return open_keystore(cfg.keystore.kind, cfg.keystore.settings, root=_root())


def _compiler(cfg: WasmflareConfig, mode: Optional[str]) -> GoWasmCompiler:
    return GoWasmCompiler(
        input_dir=cfg.project.input_path(_root()),
        main_input_file=cfg.project.main_input_file,
        mode=mode or cfg.project.compiler_mode,
    )


def _scoper(cfg: WasmflareConfig, keystore: KeyStore) -> TokenScoper:
    api = _api(cfg)
    resolver = PermissionResolver(
        api,
        capability=cfg.cloudflare.permission_capability,
        action=cfg.cloudflare.permission_action,
    )
    return TokenScoper(api=api, keystore=keystore, resolver=resolver, token_name=cfg.cloudflare.token_name, log=_echo)


def cmd_init(args: argparse.Namespace) -> int:
    path = _root() / DEFAULT_CONFIG_FILE_NAME
    if path.exists() and not args.force:
        _echo(f"{path} already exists (use --force to overwrite)")
        return 1
    write_yaml(path, WasmflareConfig().to_dict())
    _echo(f"wrote {path}")
    return 0


def cmd_setup(args: argparse.Namespace) -> int:
    cfg = _config(args)
    scoper = _scoper(cfg, _keystore(cfg))

    if args.account_id and args.project:
        bootstrap = str(os.environ.get(BOOTSTRAP_TOKEN_ENV, "") or "").strip()
        if not bootstrap:
            bootstrap = getpass.getpass("Bootstrap API Token: ").strip()
        scoper.setup(args.account_id, bootstrap, args.project)
        return 0

    run_steps(SetupWizard(scoper).steps(), report=_echo)
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    cfg = _config(args)
    compiler = _compiler(cfg, args.mode)
    if args.target == "worker":
        _echo("Starting Workers build...")
        outputs = generate_worker_files(cfg.project, compiler, base=_root())
    else:
        _echo("Starting Pages build...")
        outputs = generate_pages_files(cfg.project, compiler, base=_root())
    _echo(f"  - {outputs.script_path}")
    _echo(f"  - {outputs.wasm_path}")
    return 0


def cmd_shim(args: argparse.Namespace) -> int:
    cfg = _config(args)
    source = FileHostRuntime(Path(args.host_runtime)) if args.host_runtime else _compiler(cfg, args.mode)
    wasm_file = args.wasm_file or cfg.project.output_wasm_file_name
    out = Path(args.out) if args.out else cfg.project.output_path(_root()) / cfg.project.worker_js_file_name
    try:
        write_shim(ShimGenerator(source).generate(wasm_file), out)
    except OSError as e:
        raise BuildError(f"failed to write worker script {out}: {e}")
    _echo(f"wrote {out}")
    return 0


def cmd_deploy(args: argparse.Namespace) -> int:
    cfg = _config(args)
    keystore = _keystore(cfg)
    uploader = DeploymentUploader(api=_api(cfg), keystore=keystore, log=_echo)

    if args.target == "worker":
        target = WorkerTarget(
            account_id=keystore.get(keys.ACCOUNT_ID) or "",
            script_name=keystore.get(keys.PROJECT) or "",
        )
        uploader.deploy(target, ArtifactSet(parts=()))
        return 0

    artifacts = ArtifactSet.for_pages(
        cfg.project.output_path(_root()),
        script_name=cfg.project.worker_js_file_name,
        wasm_name=cfg.project.output_wasm_file_name,
    )
    uploader.deploy_pages(artifacts)
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    cfg = _config(args)
    uploader = DeploymentUploader(api=_api(cfg), keystore=_keystore(cfg))
    print(
        json.dumps(
            {
                "config": str(cfg.source_path) if cfg.source_path else None,
                "keystore": cfg.keystore.kind,
                "pages_configured": uploader.is_pages_configured(),
                "worker_configured": uploader.is_worker_configured(),
            }
        )
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="wasmflare")
    p.add_argument("--config", default=None, help=f"Config file (default: ./{DEFAULT_CONFIG_FILE_NAME})")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("init", help="Write a default config file")
    sp.add_argument("--force", action="store_true")
    sp.set_defaults(func=cmd_init)

    sp = sub.add_parser("setup", help="Create a scoped Pages token from a bootstrap token")
    sp.add_argument("--account-id", default="")
    sp.add_argument("--project", default="")
    sp.set_defaults(func=cmd_setup)

    sp = sub.add_parser("build", help="Compile the module and generate the worker script")
    sp.add_argument("--target", choices=("pages", "worker"), default="pages")
    sp.add_argument("--mode", choices=("L", "M", "S"), default=None)
    sp.set_defaults(func=cmd_build)

    sp = sub.add_parser("shim", help="Generate only the worker script")
    sp.add_argument("--wasm-file", default=None)
    sp.add_argument("--out", default=None)
    sp.add_argument("--host-runtime", default=None, help="Path to wasm_exec.js (default: from the toolchain)")
    sp.add_argument("--mode", choices=("L", "M", "S"), default=None)
    sp.set_defaults(func=cmd_shim)

    sp = sub.add_parser("deploy", help="Upload build outputs to Cloudflare")
    sp.add_argument("--target", choices=("pages", "worker"), default="pages")
    sp.set_defaults(func=cmd_deploy)

    sp = sub.add_parser("status", help="Show which credentials are configured")
    sp.set_defaults(func=cmd_status)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args) or 0)
    except (CloudflareError, BuildError, ConfigError, KeyStoreError, StepInputError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

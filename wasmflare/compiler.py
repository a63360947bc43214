from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence


class BuildError(RuntimeError):
    """Compiling the module or writing build outputs failed."""


class WasmCompiler(Protocol):
    def build(self, *, output_path: Path) -> None:
        """Compile the Go entry point to a wasm module at ``output_path``."""
        raise NotImplementedError

    def host_runtime_js(self) -> str:
        """Return the toolchain's wasm_exec.js matching the compiled module."""
        raise NotImplementedError


def _run(cmd: List[str], *, cwd: Optional[Path] = None, env: Optional[Dict[str, str]] = None) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(cmd, cwd=str(cwd) if cwd else None, env=env, check=False, text=True, capture_output=True)
    except FileNotFoundError as e:
        raise BuildError(f"toolchain not found: {cmd[0]} ({e})")


# Compiler modes: L = Go (large, fast build), M = TinyGo debug, S = TinyGo production.
TINYGO_MODE_FLAGS: Dict[str, Sequence[str]] = {
    "M": (),
    "S": ("-opt=z", "-no-debug", "-panic=trap"),
}


class GoWasmCompiler:
    """Compiles ``<input_dir>/<main_input_file>`` with go or tinygo."""

    def __init__(
        self,
        *,
        input_dir: Path,
        main_input_file: str,
        mode: str = "S",
        extra_args: Sequence[str] = (),
    ) -> None:
        if mode not in ("L", "M", "S"):
            raise BuildError(f"unknown compiler mode {mode!r}; expected L, M or S")
        self.input_dir = Path(input_dir)
        self.main_input_file = main_input_file
        self.mode = mode
        self.extra_args = list(extra_args)

    @property
    def uses_tinygo(self) -> bool:
        return self.mode != "L"

    def build_command(self, output_path: Path) -> List[str]:
        out = str(Path(output_path).resolve())
        if self.uses_tinygo:
            return ["tinygo", "build", "-o", out, "-target", "wasm", *TINYGO_MODE_FLAGS[self.mode], *self.extra_args, self.main_input_file]
        return ["go", "build", "-o", out, *self.extra_args, self.main_input_file]

    def build(self, *, output_path: Path) -> None:
        main = self.input_dir / self.main_input_file
        if not main.exists():
            raise BuildError(f"input file not found: {main}")
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        env = dict(os.environ)
        if not self.uses_tinygo:
            env.update({"GOOS": "js", "GOARCH": "wasm"})
        cp = _run(self.build_command(output_path), cwd=self.input_dir, env=env)
        if cp.returncode != 0:
            raise BuildError(f"wasm build failed (mode={self.mode}): {cp.stderr.strip()}")

    def _toolchain_root(self) -> Path:
        cmd = ["tinygo", "env", "TINYGOROOT"] if self.uses_tinygo else ["go", "env", "GOROOT"]
        cp = _run(cmd)
        root = (cp.stdout or "").strip()
        if cp.returncode != 0 or not root:
            raise BuildError(f"could not resolve toolchain root via {' '.join(cmd)}: {cp.stderr.strip()}")
        return Path(root)

    def wasm_exec_candidates(self) -> List[Path]:
        root = self._toolchain_root()
        if self.uses_tinygo:
            return [root / "targets" / "wasm_exec.js"]
        # Go 1.24 moved wasm_exec.js from misc/wasm to lib/wasm.
        return [root / "lib" / "wasm" / "wasm_exec.js", root / "misc" / "wasm" / "wasm_exec.js"]

    def host_runtime_js(self) -> str:
        for candidate in self.wasm_exec_candidates():
            if candidate.exists():
                return candidate.read_text(encoding="utf-8")
        raise BuildError(f"wasm_exec.js not found for mode={self.mode}")

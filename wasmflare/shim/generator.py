from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Tuple

from ..utils.fs import atomic_write_text
from .templates import dispatch_template, runtime_adapter


BLOCK_SEPARATOR = "\n\n"


class HostRuntimeSource(Protocol):
    def host_runtime_js(self) -> str:
        """Return the compiler's host-runtime init script (wasm_exec.js)."""
        raise NotImplementedError


@dataclass(frozen=True)
class GeneratedShim:
    """Host runtime, runtime adapter and dispatch blocks, in that order."""

    blocks: Tuple[str, str, str]

    @property
    def host_runtime(self) -> str:
        return self.blocks[0]

    @property
    def adapter(self) -> str:
        return self.blocks[1]

    @property
    def dispatch(self) -> str:
        return self.blocks[2]

    @property
    def text(self) -> str:
        return BLOCK_SEPARATOR.join(self.blocks)


def generate_shim(wasm_file_name: str, host_runtime_js: str) -> GeneratedShim:
    """Compose the worker script. Pure; the module name is not validated."""
    return GeneratedShim(blocks=(host_runtime_js, runtime_adapter(wasm_file_name), dispatch_template()))


class ShimGenerator:
    def __init__(self, source: HostRuntimeSource) -> None:
        self.source = source

    def generate(self, wasm_file_name: str) -> GeneratedShim:
        return generate_shim(wasm_file_name, self.source.host_runtime_js())


def write_shim(shim: GeneratedShim, dest_path: Path) -> Path:
    """Write the shim in one atomic replace; parent directories are created."""
    atomic_write_text(Path(dest_path), shim.text)
    return Path(dest_path)


class FileHostRuntime:
    """Host runtime read from a wasm_exec.js already on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def host_runtime_js(self) -> str:
        return self.path.read_text(encoding="utf-8")

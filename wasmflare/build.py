from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .cloudflare.deploy import ArtifactSet
from .compiler import BuildError, WasmCompiler
from .config import ProjectSettings
from .shim import ShimGenerator, write_shim


WORKER_SUBDIR = "worker"


@dataclass(frozen=True)
class BuildOutputs:
    output_dir: Path
    script_path: Path
    wasm_path: Path

    def artifact_set(self) -> ArtifactSet:
        return ArtifactSet.for_pages(self.output_dir, script_name=self.script_path.name, wasm_name=self.wasm_path.name)


def _generate(project: ProjectSettings, compiler: WasmCompiler, output_dir: Path) -> BuildOutputs:
    outputs = BuildOutputs(
        output_dir=output_dir,
        script_path=output_dir / project.worker_js_file_name,
        wasm_path=output_dir / project.output_wasm_file_name,
    )
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BuildError(f"failed to create output directory {output_dir}: {e}")

    compiler.build(output_path=outputs.wasm_path)
    shim = ShimGenerator(compiler).generate(project.output_wasm_file_name)
    try:
        write_shim(shim, outputs.script_path)
    except OSError as e:
        raise BuildError(f"failed to write worker script {outputs.script_path}: {e}")
    return outputs


def generate_pages_files(project: ProjectSettings, compiler: WasmCompiler, *, base: Optional[Path] = None) -> BuildOutputs:
    """Build the module and worker script into the Pages output directory.

    The directory ends up holding exactly the script and the wasm module.
    """
    return _generate(project, compiler, project.output_path(base))


def generate_worker_files(project: ProjectSettings, compiler: WasmCompiler, *, base: Optional[Path] = None) -> BuildOutputs:
    return _generate(project, compiler, project.output_path(base) / WORKER_SUBDIR)

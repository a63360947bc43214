from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from _testutil import FakeCompiler

from wasmflare.build import WORKER_SUBDIR, generate_pages_files, generate_worker_files
from wasmflare.compiler import BuildError
from wasmflare.config import ProjectSettings


class BrokenCompiler(FakeCompiler):
    def build(self, *, output_path: Path) -> None:
        raise BuildError("wasm build failed (mode=S): boom")


class TestGenerateFiles(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.out_dir = self.root / "deploy" / "cloudflare"

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_pages_output_holds_script_and_module_only(self) -> None:
        compiler = FakeCompiler()
        outputs = generate_pages_files(ProjectSettings(output_wasm_file_name="app.wasm"), compiler, base=self.root)

        self.assertEqual(outputs.output_dir, self.out_dir)
        self.assertEqual(sorted(p.name for p in self.out_dir.iterdir()), ["_worker.js", "app.wasm"])
        self.assertEqual(outputs.wasm_path.read_bytes(), compiler.wasm_bytes)
        script = outputs.script_path.read_text(encoding="utf-8")
        self.assertTrue(script.startswith(compiler.runtime_js))
        self.assertIn('import mod from "app.wasm";', script)
        self.assertEqual(compiler.built, [outputs.wasm_path])

    def test_module_name_without_wasm_suffix_is_kept_verbatim(self) -> None:
        outputs = generate_pages_files(ProjectSettings(output_wasm_file_name="module.bin"), FakeCompiler(), base=self.root)
        self.assertEqual(outputs.wasm_path, self.out_dir / "module.bin")
        self.assertIn('import mod from "module.bin";', outputs.script_path.read_text(encoding="utf-8"))

    def test_worker_output_uses_subdirectory(self) -> None:
        outputs = generate_worker_files(ProjectSettings(), FakeCompiler(), base=self.root)
        self.assertEqual(outputs.output_dir, self.out_dir / WORKER_SUBDIR)
        self.assertTrue(outputs.script_path.exists())
        self.assertTrue(outputs.wasm_path.exists())

    def test_artifact_set_matches_outputs(self) -> None:
        outputs = generate_pages_files(ProjectSettings(), FakeCompiler(), base=self.root)
        parts = outputs.artifact_set().parts
        self.assertEqual(
            [(p.role, p.path) for p in parts],
            [("_worker.js", outputs.script_path), ("worker.wasm", outputs.wasm_path)],
        )

    def test_compiler_failure_leaves_no_script(self) -> None:
        with self.assertRaises(BuildError):
            generate_pages_files(ProjectSettings(), BrokenCompiler(), base=self.root)
        self.assertFalse((self.out_dir / "_worker.js").exists())

    def test_output_dir_blocked_by_file(self) -> None:
        (self.root / "deploy").write_text("not a directory", encoding="utf-8")
        with self.assertRaises(BuildError):
            generate_pages_files(ProjectSettings(), FakeCompiler(), base=self.root)


if __name__ == "__main__":
    unittest.main()

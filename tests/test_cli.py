from __future__ import annotations

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from typing import List, Tuple
from unittest import mock

from _testutil import FakeSession, cloudflare_session, envelope_bytes

from wasmflare import cli
from wasmflare.cloudflare import CloudflareApi
from wasmflare.keystore import MemoryKeyStore, keys
from wasmflare.utils.yamlio import read_yaml


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.addCleanup(self._td.cleanup)
        self.root = Path(self._td.name).resolve()

        cwd = os.getcwd()
        os.chdir(self.root)
        self.addCleanup(os.chdir, cwd)

        env = mock.patch.dict(os.environ)
        env.start()
        self.addCleanup(env.stop)
        os.environ.pop("WASMFLARE_CONFIG", None)

    def write_config(self, text: str = "keystore:\n  kind: env\n  settings:\n    prefix: TEST_\n") -> Path:
        path = self.root / "wasmflare.yml"
        path.write_text(text, encoding="utf-8")
        return path

    def use_fakes(self, session: FakeSession, store: MemoryKeyStore) -> None:
        for name, fake in (
            ("_api", lambda cfg: CloudflareApi(base_url=cfg.cloudflare.api_base, session=session)),
            ("_keystore", lambda cfg: store),
        ):
            patcher = mock.patch.object(cli, name, fake)
            patcher.start()
            self.addCleanup(patcher.stop)

    def run_cli(self, argv: List[str]) -> Tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = cli.main(argv)
        return code, out.getvalue(), err.getvalue()


class TestInitAndStatus(CliTestCase):
    def test_init_writes_default_config(self) -> None:
        self.assertEqual(self.run_cli(["init"])[0], 0)
        data = read_yaml(self.root / "wasmflare.yml")
        self.assertEqual(data["project"]["output_wasm_file_name"], "worker.wasm")
        self.assertEqual(data["keystore"]["kind"], "gpg_file")

        code, out, _ = self.run_cli(["init"])
        self.assertEqual(code, 1)
        self.assertIn("already exists", out)
        self.assertEqual(self.run_cli(["init", "--force"])[0], 0)

    def test_status_reports_env_credentials(self) -> None:
        path = self.write_config()
        os.environ["TEST_" + keys.PAGES_TOKEN] = "tok"
        os.environ.pop("TEST_" + keys.WORKER_TOKEN, None)

        code, out, _ = self.run_cli(["status"])

        self.assertEqual(code, 0)
        report = json.loads(out)
        self.assertEqual(report["keystore"], "env")
        self.assertIs(report["pages_configured"], True)
        self.assertIs(report["worker_configured"], False)
        self.assertEqual(report["config"], str(path))

    def test_invalid_config_exits_with_error(self) -> None:
        self.write_config("bogus: 1\n")
        code, _, err = self.run_cli(["status"])
        self.assertEqual(code, 1)
        self.assertTrue(err.startswith("error: config schema validation failed"))


class TestShimCommand(CliTestCase):
    def test_shim_with_explicit_host_runtime(self) -> None:
        self.write_config()
        runtime = self.root / "wasm_exec.js"
        runtime.write_text("// host runtime\n", encoding="utf-8")
        out = self.root / "dist" / "_worker.js"

        code, _, _ = self.run_cli(["shim", "--host-runtime", str(runtime), "--wasm-file", "app.wasm", "--out", str(out)])

        self.assertEqual(code, 0)
        text = out.read_text(encoding="utf-8")
        self.assertTrue(text.startswith("// host runtime\n"))
        self.assertIn('import mod from "app.wasm";', text)

    def test_shim_with_missing_host_runtime_fails(self) -> None:
        self.write_config()
        code, _, err = self.run_cli(["shim", "--host-runtime", str(self.root / "nope.js"), "--out", str(self.root / "w.js")])
        self.assertEqual(code, 1)
        self.assertIn("error:", err)


class TestSetupAndDeploy(CliTestCase):
    def test_deploy_worker_is_not_implemented(self) -> None:
        self.write_config()
        session = FakeSession()
        self.use_fakes(session, MemoryKeyStore())

        code, _, err = self.run_cli(["deploy", "--target", "worker"])

        self.assertEqual(code, 1)
        self.assertIn("deploy worker", err)
        self.assertEqual(session.calls, [])

    def test_deploy_pages_without_token(self) -> None:
        self.write_config()
        session = FakeSession()
        self.use_fakes(session, MemoryKeyStore({keys.ACCOUNT_ID: "acct", keys.PROJECT: "site"}))

        code, _, err = self.run_cli(["deploy"])

        self.assertEqual(code, 1)
        self.assertIn("pages token not configured", err)
        self.assertEqual(session.calls, [])

    def test_setup_then_deploy(self) -> None:
        self.write_config()
        session = cloudflare_session()
        session.route(
            "POST",
            "/accounts/acct-9/pages/projects/site/deployments",
            envelope_bytes({"url": "https://abc.site.pages.dev"}),
        )
        store = MemoryKeyStore()
        self.use_fakes(session, store)
        os.environ[cli.BOOTSTRAP_TOKEN_ENV] = "bootstrap-" + "x" * 30

        code, setup_out, _ = self.run_cli(["setup", "--account-id", "acct-9", "--project", "site"])
        self.assertEqual(code, 0)
        self.assertEqual(
            store.values,
            {keys.ACCOUNT_ID: "acct-9", keys.PAGES_TOKEN: "scoped-token-abc", keys.PROJECT: "site"},
        )

        out_dir = self.root / "deploy" / "cloudflare"
        out_dir.mkdir(parents=True)
        (out_dir / "_worker.js").write_text("// worker", encoding="utf-8")
        (out_dir / "worker.wasm").write_bytes(b"\x00asm")

        code, deploy_out, _ = self.run_cli(["deploy"])
        self.assertEqual(code, 0)
        self.assertIn("https://abc.site.pages.dev", deploy_out)
        for out in (setup_out, deploy_out):
            self.assertNotIn("bootstrap-", out)
            self.assertNotIn("scoped-token-abc", out)
        self.assertEqual(session.calls_for("POST")[-1].headers["Authorization"], "Bearer scoped-token-abc")


if __name__ == "__main__":
    unittest.main()

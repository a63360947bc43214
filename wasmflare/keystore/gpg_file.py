from __future__ import annotations

import base64
import hashlib
import json
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from .contracts import KeyStore, KeyStoreError


DEFAULT_KEYSTORE_PATH = Path(".wasmflare") / "keystore.json.gpg"
GPG_BASE_ARGS = ["gpg", "--batch", "--yes", "--pinentry-mode", "loopback", "--passphrase-fd", "0"]


def load_passphrase() -> str:
    """Resolve the keystore passphrase.

    Precedence:
      1) WASMFLARE_KEYSTORE_PASSPHRASE_B64 (base64, tolerant of pasted whitespace)
      2) WASMFLARE_KEYSTORE_PASSPHRASE
    """
    passphrase_b64 = (os.environ.get("WASMFLARE_KEYSTORE_PASSPHRASE_B64") or "").strip()
    if passphrase_b64:
        try:
            return base64.b64decode(passphrase_b64).decode("utf-8", errors="strict")
        except Exception as e:
            raise KeyStoreError(f"WASMFLARE_KEYSTORE_PASSPHRASE_B64 is set but could not be decoded: {e}")
    # Keep intentional leading/trailing spaces; only drop copy/paste line endings.
    return (os.environ.get("WASMFLARE_KEYSTORE_PASSPHRASE") or "").rstrip("\r\n")


def _run_gpg(args: List[str], passphrase: str) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            [*GPG_BASE_ARGS, *args],
            input=(passphrase + "\n").encode("utf-8"),
            capture_output=True,
        )
    except OSError as e:
        raise KeyStoreError(f"could not run gpg: {e}")


def _digest(path: Path) -> str:
    try:
        return hashlib.sha256(path.read_bytes()).hexdigest()[:16]
    except OSError:
        return "unreadable"


def _decrypt_gpg_json(gpg_path: Path, passphrase: str) -> Dict[str, Any]:
    if not gpg_path.exists():
        return {}
    proc = _run_gpg(["-d", str(gpg_path)], passphrase)
    if proc.returncode != 0:
        # stderr never contains the passphrase.
        stderr = (proc.stderr or b"").decode("utf-8", errors="replace").strip()
        digest = _digest(gpg_path)
        if "Bad session key" in stderr or "decryption failed" in stderr:
            raise KeyStoreError(
                "Failed to decrypt keystore: gpg reported a bad session key; the passphrase "
                f"is probably wrong for {gpg_path} (sha256[:16]={digest}). gpg stderr: {stderr}"
            )
        raise KeyStoreError(f"Failed to decrypt keystore {gpg_path} (sha256[:16]={digest}): {stderr}")

    out = (proc.stdout or b"").decode("utf-8", errors="replace").strip()
    if not out:
        return {}
    try:
        data = json.loads(out)
    except ValueError as e:
        raise KeyStoreError(f"Decrypted keystore is not valid JSON: {e}")
    return data if isinstance(data, dict) else {}


def _encrypt_gpg_json(gpg_path: Path, *, passphrase: str, payload: Dict[str, Any]) -> None:
    plaintext = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))

    # Plaintext lives only in a private temp file next to the target, removed after use.
    try:
        gpg_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".keystore-", dir=str(gpg_path.parent))
    except OSError as e:
        raise KeyStoreError(f"Failed to prepare keystore directory {gpg_path.parent}: {e}")
    tmp_path = Path(tmp)
    try:
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tf:
                tf.write(plaintext)
        except OSError as e:
            raise KeyStoreError(f"Failed to stage keystore update for {gpg_path}: {e}")
        proc = _run_gpg(
            ["--symmetric", "--cipher-algo", "AES256", "-o", str(gpg_path), str(tmp_path)],
            passphrase,
        )
        if proc.returncode != 0:
            stderr = (proc.stderr or b"").decode("utf-8", errors="replace").strip()
            raise KeyStoreError(f"Failed to encrypt keystore {gpg_path}: {stderr}")
    finally:
        tmp_path.unlink(missing_ok=True)


class GpgFileKeyStore(KeyStore):
    """Flat key/value secrets kept in a symmetrically encrypted JSON file.

    Layout (after decryption):
      {"version": 1, "keys": {"CF_ACCOUNT_ID": "...", "CF_PAGES_TOKEN": "..."}}

    Every ``set`` is a full decrypt/update/encrypt cycle, so concurrent writers
    must be serialized by the caller.
    """

    VERSION = 1

    def __init__(self, path: Path, *, passphrase: Optional[str] = None) -> None:
        self.path = Path(path)
        self._passphrase = passphrase

    def _passphrase_or_raise(self) -> str:
        passphrase = self._passphrase if self._passphrase is not None else load_passphrase()
        if not passphrase:
            raise KeyStoreError(
                "keystore passphrase missing: set WASMFLARE_KEYSTORE_PASSPHRASE "
                "(or WASMFLARE_KEYSTORE_PASSPHRASE_B64)"
            )
        return passphrase

    def _load_keys(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        raw = _decrypt_gpg_json(self.path, self._passphrase_or_raise())
        keys = raw.get("keys") or {}
        if not isinstance(keys, dict):
            raise KeyStoreError(f"keystore 'keys' must be an object: {self.path}")
        return {str(k): "" if v is None else str(v) for k, v in keys.items()}

    def get(self, key: str) -> Optional[str]:
        return self._load_keys().get(key)

    def set(self, key: str, value: str) -> None:
        passphrase = self._passphrase_or_raise()
        keys = self._load_keys()
        keys[key] = value
        _encrypt_gpg_json(self.path, passphrase=passphrase, payload={"version": self.VERSION, "keys": keys})

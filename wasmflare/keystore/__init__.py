"""Credential stores for the Cloudflare account id, scoped token and project.

Stores never print secret values. ``open_keystore`` builds one from the
``keystore`` section of the project configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .contracts import KeyStore, KeyStoreError
from .env import EnvKeyStore
from .gpg_file import DEFAULT_KEYSTORE_PATH, GpgFileKeyStore
from .memory import MemoryKeyStore


ALLOWED_KEYSTORE_KINDS: Tuple[str, ...] = ("gpg_file", "env", "memory")


def open_keystore(kind: str, settings: Optional[Dict[str, Any]] = None, *, root: Optional[Path] = None) -> KeyStore:
    """Build a KeyStore adapter. Unknown kinds are rejected.

    Relative ``gpg_file`` paths resolve against ``root`` (default: cwd).
    """
    k = str(kind or "").strip()
    opts = dict(settings or {})
    if k == "memory":
        return MemoryKeyStore()
    if k == "env":
        return EnvKeyStore(prefix=str(opts.get("prefix") or ""))
    if k == "gpg_file":
        path = Path(str(opts.get("path") or DEFAULT_KEYSTORE_PATH)).expanduser()
        if not path.is_absolute() and root is not None:
            path = root / path
        return GpgFileKeyStore(path)
    raise KeyStoreError(f"unknown keystore kind {k!r}; allowed={list(ALLOWED_KEYSTORE_KINDS)}")


__all__ = [
    "ALLOWED_KEYSTORE_KINDS",
    "EnvKeyStore",
    "GpgFileKeyStore",
    "KeyStore",
    "KeyStoreError",
    "MemoryKeyStore",
    "open_keystore",
]

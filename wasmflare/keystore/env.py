from __future__ import annotations

import os
from typing import Mapping, Optional

from .contracts import KeyStore, KeyStoreError


class EnvKeyStore(KeyStore):
    """Read-only store backed by environment variables.

    Meant for CI deploys where CF_PAGES_TOKEN and friends are injected as
    secrets. An optional prefix is prepended to every key lookup.
    """

    def __init__(self, *, prefix: str = "", environ: Optional[Mapping[str, str]] = None) -> None:
        self.prefix = prefix
        self._environ = environ if environ is not None else os.environ

    def get(self, key: str) -> Optional[str]:
        return self._environ.get(self.prefix + key)

    def set(self, key: str, value: str) -> None:
        raise KeyStoreError(f"environment key store is read-only (key={key})")

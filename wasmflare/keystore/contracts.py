from __future__ import annotations

from typing import Optional, Protocol


class KeyStoreError(RuntimeError):
    """A credential store read or write failed."""


class KeyStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

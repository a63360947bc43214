from __future__ import annotations

from typing import Dict, Optional

from .contracts import KeyStore


class MemoryKeyStore(KeyStore):
    """Process-local store. Nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

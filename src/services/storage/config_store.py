"""
In-memory configuration store (for tests and throwaway runs).
"""
from typing import Dict, Optional
from .config_store_base import ConfigStoreBase
from ...models.invoice import utc_now


class InMemoryConfigStore(ConfigStoreBase):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._entries: Dict[str, dict] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        return entry["value"] if entry else None

    def set(self, key: str, value: str, description: Optional[str] = None) -> None:
        previous = self._entries.get(key)
        if description is None and previous:
            description = previous["description"]
        self._entries[key] = {
            "key": key,
            "value": value,
            "description": description,
            "updated_at": utc_now(),
        }

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def list_all(self) -> list:
        return [dict(self._entries[key]) for key in sorted(self._entries)]

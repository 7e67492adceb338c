from __future__ import annotations

from enum import Enum
from typing import Any, Protocol


class StorageKey(str, Enum):
    ACCOUNTS = "accounts"
    EXPENSES = "expenses"
    DEPOSITS = "deposits"
    ADJUSTMENTS = "adjustments"
    SETTINGS = "settings"


ALL_KEYS: tuple[str, ...] = tuple(key.value for key in StorageKey)


class KeyValueStore(Protocol):
    """Key-addressed persistence for whole serialized collections.

    Adapters never raise from these methods: failures are logged and
    reported as ``False`` (writes) or as the supplied default (reads).
    """

    def save(self, key: str, value: Any) -> bool:
        ...

    def load(self, key: str, default: Any = None) -> Any:
        ...

    def remove(self, key: str) -> bool:
        ...

    def clear_all(self) -> bool:
        ...

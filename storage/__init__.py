from .base import ALL_KEYS, KeyValueStore, StorageKey
from .json_storage import JsonFileStore
from .memory_storage import InMemoryStore
from .sqlite_storage import SQLiteStore

__all__ = [
    "ALL_KEYS",
    "KeyValueStore",
    "StorageKey",
    "InMemoryStore",
    "JsonFileStore",
    "SQLiteStore",
]

from __future__ import annotations

import json
import logging
from typing import Any

from .base import ALL_KEYS, KeyValueStore

logger = logging.getLogger(__name__)


class InMemoryStore(KeyValueStore):
    """Process-local store that keeps values serialized like the file backends."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def save(self, key: str, value: Any) -> bool:
        try:
            self._data[str(key)] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            logger.exception("Failed to serialize value for key %s", key)
            return False
        return True

    def load(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(str(key))
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored value for key %s is not valid JSON, using default", key)
            return default

    def remove(self, key: str) -> bool:
        self._data.pop(str(key), None)
        return True

    def clear_all(self) -> bool:
        for key in ALL_KEYS:
            self._data.pop(key, None)
        return True

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .base import ALL_KEYS, KeyValueStore

logger = logging.getLogger(__name__)


class JsonFileStore(KeyValueStore):
    """Keeps every key in its own ``<key>.json`` file inside ``directory``."""

    def __init__(self, directory: str = "data") -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def save(self, key: str, value: Any) -> bool:
        tmp_path = None
        try:
            payload = json.dumps(value, indent=2, ensure_ascii=False)
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{key}_", suffix=".json", dir=str(self._directory)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self._path_for(key))
            return True
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to save key %s to %s", key, self._directory)
            return False
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    logger.exception("Failed to cleanup temporary file during save: %s", tmp_path)

    def load(self, key: str, default: Any = None) -> Any:
        path = self._path_for(key)
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return default
        except (OSError, json.JSONDecodeError):
            logger.warning("Failed to load JSON data from %s, using default", path)
            return default

    def remove(self, key: str) -> bool:
        try:
            self._path_for(key).unlink(missing_ok=True)
            return True
        except OSError:
            logger.exception("Failed to remove key %s from %s", key, self._directory)
            return False

    def clear_all(self) -> bool:
        ok = True
        for key in ALL_KEYS:
            ok = self.remove(key) and ok
        return ok

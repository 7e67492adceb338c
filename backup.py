from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime
from pathlib import Path

from storage.base import ALL_KEYS, KeyValueStore
from storage.sqlite_storage import SQLiteStore

logger = logging.getLogger(__name__)


def create_backup(source_path: str, store: KeyValueStore | None = None) -> str | None:
    """Copy a data file or directory into a sibling ``backups`` folder.

    When ``store`` is the open SQLite store for ``source_path`` the copy goes
    through the SQLite backup API so that pages still in the WAL are included.
    Returns the backup path, or None when there is nothing to back up.
    Raises OSError when the copy fails.
    """
    source = Path(source_path)
    if not source.exists():
        return None
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_dir = source.parent / "backups"
    backup_dir.mkdir(parents=True, exist_ok=True)
    backup_path = backup_dir / f"{source.stem}_backup_{stamp}{source.suffix}"
    if isinstance(store, SQLiteStore):
        if not store.backup_to(str(backup_path)):
            raise OSError(f"SQLite backup of {source} failed")
    elif source.is_dir():
        shutil.copytree(source, backup_path, ignore=shutil.ignore_patterns("backups"))
    else:
        shutil.copy2(source, backup_path)
    logger.info("Backup created: %s", backup_path)
    return str(backup_path)


def export_snapshot(store: KeyValueStore, json_path: str) -> str:
    """Dump every ledger collection from ``store`` into one JSON document."""
    snapshot = {key: store.load(key) for key in ALL_KEYS}
    target = Path(json_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, indent=2, ensure_ascii=False)
    logger.info("Ledger snapshot exported to %s", target)
    return str(target)

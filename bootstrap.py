from __future__ import annotations

import logging
from pathlib import Path

import config
from app.audit import LedgerAuditor
from infrastructure.repositories import LedgerRepositories
from migrate_json_to_sqlite import has_any_data, migrate
from storage.base import KeyValueStore
from storage.json_storage import JsonFileStore
from storage.memory_storage import InMemoryStore
from storage.sqlite_storage import SQLiteStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    logging.basicConfig(level=level or config.LOG_LEVEL, format=LOG_FORMAT)


def build_store(backend: str | None = None, data_dir: str | None = None) -> KeyValueStore:
    backend = (backend or config.STORAGE_BACKEND).lower()
    if backend == "memory":
        logger.info("Storage selected: memory")
        return InMemoryStore()

    directory = data_dir or config.DATA_DIR
    if backend == "json":
        logger.info("Storage selected: JSON (%s)", directory)
        return JsonFileStore(directory)
    if backend == "sqlite":
        sqlite_path = str(Path(data_dir) / "ledger.db") if data_dir else config.SQLITE_PATH
        logger.info("Storage selected: SQLite (%s)", sqlite_path)
        store = SQLiteStore(sqlite_path)
        legacy = JsonFileStore(directory)
        if not has_any_data(store) and has_any_data(legacy):
            logger.info("SQLite empty, starting one-time migration from JSON")
            try:
                migrate(legacy, store)
            except RuntimeError:
                logger.exception(
                    "Migration to SQLite failed, using JSON data in %s for this run", directory
                )
                store.close()
                return legacy
        return store
    raise ValueError(f"Unknown storage backend: {backend}")


def _report_integrity(repositories: LedgerRepositories) -> None:
    auditor = LedgerAuditor(repositories)
    for drift in auditor.verify():
        logger.warning(
            "Account %s balance %s differs from history total %s",
            drift.account_id,
            drift.recorded,
            drift.expected,
        )
    orphans = auditor.find_orphans()
    if not orphans.is_empty():
        logger.warning(
            "Records reference missing accounts: %s", ", ".join(sorted(orphans.account_ids))
        )


def bootstrap_ledger(
    backend: str | None = None,
    data_dir: str | None = None,
    *,
    check_integrity: bool = True,
) -> LedgerRepositories:
    """Open the configured store and report, without fixing, any drift found."""
    repositories = LedgerRepositories.from_store(build_store(backend, data_dir))
    if check_integrity:
        _report_integrity(repositories)
    return repositories

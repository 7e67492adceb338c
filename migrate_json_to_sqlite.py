from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from config import DATA_DIR, SQLITE_PATH
from storage.base import ALL_KEYS, KeyValueStore
from storage.json_storage import JsonFileStore
from storage.sqlite_storage import SQLiteStore

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Copy ledger collections from the JSON data directory into SQLite."
    )
    parser.add_argument(
        "--json-dir",
        default=DATA_DIR,
        help="Directory holding the <collection>.json files",
    )
    parser.add_argument(
        "--sqlite-path",
        default=SQLITE_PATH,
        help="Path to target SQLite database",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be copied without writing",
    )
    return parser.parse_args(argv)


def has_any_data(store: KeyValueStore) -> bool:
    return any(store.load(key) not in (None, [], {}) for key in ALL_KEYS)


def _counts(store: KeyValueStore) -> dict[str, int]:
    counts = {}
    for key in ALL_KEYS:
        value = store.load(key)
        counts[key] = len(value) if isinstance(value, (list, dict)) else 0
    return counts


def _discard(target: KeyValueStore, keys: list[str]) -> None:
    for key in keys:
        if not target.remove(key):
            logger.error("Failed to remove partially migrated key %s", key)


def migrate(source: KeyValueStore, target: KeyValueStore) -> dict[str, int]:
    """Copy every present collection and verify the target matches the source.

    On any failure the keys already written are removed again, so the target
    is left empty and the next start retries the whole copy.
    """
    if has_any_data(target):
        raise RuntimeError("Target store already holds ledger data")
    written: list[str] = []
    for key in ALL_KEYS:
        value = source.load(key)
        if value is None:
            continue
        if not target.save(key, value):
            _discard(target, written)
            raise RuntimeError(f"Failed to write {key} to target store")
        written.append(key)

    source_counts = _counts(source)
    target_counts = _counts(target)
    if source_counts != target_counts:
        _discard(target, written)
        raise RuntimeError(
            f"Migration mismatch: source={source_counts} target={target_counts}"
        )
    logger.info("Migration complete: %s", target_counts)
    return target_counts


def run_migration(args: argparse.Namespace) -> int:
    source = JsonFileStore(args.json_dir)
    if not Path(args.json_dir).exists():
        logger.error("JSON data directory not found: %s", args.json_dir)
        return 1
    if args.dry_run:
        logger.info("Dry run, would copy: %s", _counts(source))
        return 0
    target = SQLiteStore(args.sqlite_path)
    try:
        migrate(source, target)
    except RuntimeError:
        logger.exception("Migration to SQLite failed")
        return 1
    finally:
        target.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    return run_migration(parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())

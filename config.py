import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent

DATA_DIR = os.environ.get("LEDGER_DATA_DIR", str(PROJECT_ROOT / "data"))
STORAGE_BACKEND = os.environ.get("LEDGER_BACKEND", "json").lower()
SQLITE_PATH = os.environ.get("LEDGER_SQLITE_PATH", str(Path(DATA_DIR) / "ledger.db"))
LOG_LEVEL = os.environ.get("LEDGER_LOG_LEVEL", "INFO").upper()

BACKENDS = ("json", "sqlite", "memory")

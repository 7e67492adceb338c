import csv
import logging
import os

from domain.reports import STATEMENT_HEADERS, AccountStatement

logger = logging.getLogger(__name__)


def statement_to_csv(statement: AccountStatement, filepath: str) -> None:
    """Write the statement rows, title first, as UTF-8 CSV."""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filepath, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([statement.title])
        writer.writerow(STATEMENT_HEADERS)
        for row in statement.rows():
            writer.writerow(row)
    logger.info("Statement exported to CSV: %s", filepath)

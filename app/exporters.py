import logging
import os

from domain.reports import AccountStatement

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("csv", "xlsx", "pdf")


def format_from_path(filepath: str) -> str:
    return os.path.splitext(filepath)[1].lstrip(".").lower() or "csv"


def export_statement(statement: AccountStatement, filepath: str, fmt: str | None = None) -> None:
    fmt = (fmt or format_from_path(filepath)).lower()
    try:
        if fmt == "csv":
            from utils.csv_utils import statement_to_csv

            statement_to_csv(statement, filepath)
        elif fmt == "xlsx":
            from utils.excel_utils import statement_to_xlsx

            statement_to_xlsx(statement, filepath)
        elif fmt == "pdf":
            from utils.pdf_utils import statement_to_pdf

            statement_to_pdf(statement, filepath)
        else:
            raise ValueError(f"Unsupported export format: {fmt}")
    except Exception:
        logger.exception("Failed to export statement to %s (%s)", filepath, fmt)
        raise

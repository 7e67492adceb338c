import logging
import os

from openpyxl import Workbook

from domain.money import format_amount
from domain.reports import STATEMENT_HEADERS, AccountStatement

logger = logging.getLogger(__name__)


def statement_to_xlsx(statement: AccountStatement, filepath: str) -> None:
    """Export a statement workbook: entries sheet plus a totals sheet."""
    wb = Workbook()
    ws = wb.active
    if ws is not None:
        ws.title = "Statement"
        ws.append([statement.title])
        ws.append(STATEMENT_HEADERS)
        for row in statement.rows():
            ws.append(row)

    summary_ws = wb.create_sheet("Summary")
    summary_ws.append(["Opening balance", format_amount(statement.opening_balance)])
    summary_ws.append(["Deposits", format_amount(statement.total_deposits())])
    summary_ws.append(["Expenses", format_amount(statement.total_expenses())])
    summary_ws.append(["Adjustments", format_amount(statement.total_adjustments())])
    summary_ws.append(["Closing balance", format_amount(statement.closing_balance)])
    summary_ws.append(
        ["Available balance", format_amount(statement.account.available_balance)]
    )

    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    wb.save(filepath)
    logger.info("Statement exported to XLSX: %s", filepath)

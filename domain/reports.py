from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from prettytable import PrettyTable

from .accounts import Account
from .adjustments import Adjustment
from .money import ZERO, format_amount
from .transactions import Deposit, Expense

STATEMENT_HEADERS = ["Date", "Type", "Category", "Description", "Amount"]


@dataclass(frozen=True)
class StatementEntry:
    date: str
    kind: str
    category: str
    description: str
    amount: Decimal
    created_at: str = ""


class AccountStatement:
    """Chronological view of one account built from fresh repository reads."""

    def __init__(
        self,
        account: Account,
        expenses: Iterable[Expense] = (),
        deposits: Iterable[Deposit] = (),
        adjustments: Iterable[Adjustment] = (),
    ):
        self._account = account
        self._expenses = [e for e in expenses if e.account_id == account.id]
        self._deposits = [d for d in deposits if d.account_id == account.id]
        self._adjustments = [a for a in adjustments if a.account_id == account.id]

    @property
    def account(self) -> Account:
        return self._account

    @property
    def title(self) -> str:
        return f"{self._account.bank_name} - account {self._account.account_number}"

    @property
    def opening_balance(self) -> Decimal:
        return self._account.opening_balance

    @property
    def closing_balance(self) -> Decimal:
        return self._account.balance

    def total_deposits(self) -> Decimal:
        return sum((d.amount for d in self._deposits), ZERO)

    def total_expenses(self) -> Decimal:
        return sum((e.amount for e in self._expenses), ZERO)

    def total_adjustments(self) -> Decimal:
        return sum((a.adjustment_amount for a in self._adjustments), ZERO)

    def computed_balance(self) -> Decimal:
        return (
            self.opening_balance
            + self.total_deposits()
            - self.total_expenses()
            + self.total_adjustments()
        )

    def entries(self) -> list[StatementEntry]:
        entries = [
            StatementEntry(
                d.date, "Deposit", d.category, d.description, d.signed_effect(), d.created_at
            )
            for d in self._deposits
        ]
        entries.extend(
            StatementEntry(
                e.date, "Expense", e.category, e.description, e.signed_effect(), e.created_at
            )
            for e in self._expenses
        )
        entries.extend(
            StatementEntry(
                a.date[:10],
                "Adjustment",
                a.reason,
                a.note,
                a.adjustment_amount,
                a.created_at,
            )
            for a in self._adjustments
        )
        return sorted(entries, key=lambda entry: (entry.date, entry.created_at))

    def rows(self) -> list[list[str]]:
        """Statement as text rows: opening line, entries, closing line."""
        rows = [["", "Opening balance", "", "", format_amount(self.opening_balance)]]
        for entry in self.entries():
            rows.append(
                [
                    entry.date,
                    entry.kind,
                    entry.category,
                    entry.description,
                    format_amount(entry.amount),
                ]
            )
        rows.append(["", "Closing balance", "", "", format_amount(self.closing_balance)])
        return rows

    def as_table(self) -> str:
        table = PrettyTable()
        table.field_names = STATEMENT_HEADERS
        table.align["Amount"] = "r"
        rows = self.rows()
        body = rows[1:-1]
        table.add_row(rows[0], divider=True)
        for index, row in enumerate(body):
            table.add_row(row, divider=index == len(body) - 1)
        table.add_row(rows[-1])
        return str(table)


def accounts_table(accounts: Iterable[Account]) -> str:
    table = PrettyTable()
    table.field_names = ["ID", "Bank", "Account", "Balance", "Overdraft", "Available"]
    for column in ("Balance", "Overdraft", "Available"):
        table.align[column] = "r"
    for account in accounts:
        table.add_row(
            [
                account.id,
                account.bank_name,
                account.account_number,
                format_amount(account.balance),
                format_amount(account.overdraft_limit),
                format_amount(account.available_balance),
            ]
        )
    return str(table)

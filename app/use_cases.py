import logging
from decimal import Decimal

from domain.accounts import Account
from domain.adjustments import Adjustment
from domain.errors import ReceiptEncodingError
from domain.money import to_decimal
from domain.results import FailureKind, Result
from domain.transactions import Deposit, Expense
from infrastructure.repositories import LedgerRepositories

from .attachments import ReceiptAction, ReceiptBinder, ReceiptBlob
from .cascade import CascadeManager, CascadeOutcome
from .reconciliation import BalanceReconciler

logger = logging.getLogger(__name__)


def _coerce_changes(changes: dict) -> dict:
    coerced = dict(changes)
    if "amount" in coerced:
        coerced["amount"] = to_decimal(coerced["amount"])
    return coerced


class CreateAccount:
    def __init__(self, repositories: LedgerRepositories):
        self._repositories = repositories

    def execute(
        self,
        *,
        bank_name: str,
        account_number: str,
        balance,
        overdraft_limit=0,
    ) -> Result[Account]:
        """Open an account; its starting balance is also kept as the opening balance."""
        try:
            account = Account(
                bank_name=bank_name,
                account_number=account_number,
                balance=balance,
                overdraft_limit=overdraft_limit,
            )
        except ValueError as exc:
            return Result.failure(FailureKind.VALIDATION, str(exc))
        result = self._repositories.accounts.add(account)
        if result:
            logger.info(
                "Account created id=%s bank=%s number=%s balance=%s",
                result.value.id,
                account.bank_name,
                account.account_number,
                account.balance,
            )
        return result


class GetAccounts:
    def __init__(self, repositories: LedgerRepositories):
        self._repositories = repositories

    def execute(self) -> list[Account]:
        return self._repositories.accounts.list()


class UpdateOverdraftLimit:
    def __init__(self, repositories: LedgerRepositories):
        self._repositories = repositories

    def execute(self, account_id: str, limit) -> Result[Account]:
        try:
            value = to_decimal(limit)
        except ValueError as exc:
            return Result.failure(FailureKind.VALIDATION, str(exc))
        return self._repositories.accounts.update_overdraft_limit(account_id, value)


class AdjustBalance:
    def __init__(self, repositories: LedgerRepositories):
        self._reconciler = BalanceReconciler(repositories)

    def execute(self, account_id: str, new_balance, reason: str, note: str = "") -> Result[Adjustment]:
        return self._reconciler.override_balance(account_id, new_balance, reason, note)


class DeleteAccount:
    def __init__(self, repositories: LedgerRepositories):
        self._cascade = CascadeManager(repositories)

    def execute(self, account_id: str) -> Result[CascadeOutcome]:
        return self._cascade.delete_account(account_id)


class CalculateTotalBalance:
    def __init__(self, repositories: LedgerRepositories):
        self._repositories = repositories

    def execute(self) -> Decimal:
        return self._repositories.accounts.get_total_balance()


class CalculateAvailableBalance:
    def __init__(self, repositories: LedgerRepositories):
        self._repositories = repositories

    def execute(self, account_id: str) -> Decimal | None:
        account = self._repositories.accounts.get_by_id(account_id)
        if account is None:
            return None
        return account.available_balance


class AddDeposit:
    def __init__(self, repositories: LedgerRepositories):
        self._reconciler = BalanceReconciler(repositories)

    def execute(
        self,
        *,
        account_id: str,
        amount,
        date: str,
        category: str = "General",
        description: str = "",
    ) -> Result[Deposit]:
        try:
            deposit = Deposit(
                account_id=account_id,
                amount=amount,
                date=date,
                category=category,
                description=description,
            )
        except ValueError as exc:
            return Result.failure(FailureKind.VALIDATION, str(exc))
        return self._reconciler.record(deposit)


class UpdateDeposit:
    def __init__(self, repositories: LedgerRepositories):
        self._repositories = repositories
        self._reconciler = BalanceReconciler(repositories)

    def execute(self, deposit_id: str, changes: dict, *, update_balance: bool = True) -> Result[Deposit]:
        try:
            coerced = _coerce_changes(changes)
        except ValueError as exc:
            return Result.failure(FailureKind.VALIDATION, str(exc))
        return self._reconciler.revise(
            self._repositories.deposits, deposit_id, coerced, update_balance=update_balance
        )


class DeleteDeposit:
    def __init__(self, repositories: LedgerRepositories):
        self._repositories = repositories
        self._reconciler = BalanceReconciler(repositories)

    def execute(self, deposit_id: str, *, restore_balance: bool = True) -> Result[Deposit]:
        return self._reconciler.discard(
            self._repositories.deposits, deposit_id, restore_balance=restore_balance
        )


class AddExpense:
    """Create an expense, optionally with a receipt.

    Without a receipt ``execute`` writes synchronously. With one, callers
    must await ``execute_async``: the receipt is encoded first and only then
    are the expense and its balance effect committed, so an unfinished or
    failed encode leaves no trace in the ledger.
    """

    def __init__(self, repositories: LedgerRepositories, binder: ReceiptBinder | None = None):
        self._reconciler = BalanceReconciler(repositories)
        self._binder = binder or ReceiptBinder()

    @staticmethod
    def _build(**kwargs) -> Expense:
        return Expense(has_receipt=False, **kwargs)

    def execute(
        self,
        *,
        account_id: str,
        amount,
        date: str,
        category: str = "General",
        description: str = "",
    ) -> Result[Expense]:
        try:
            expense = self._build(
                account_id=account_id,
                amount=amount,
                date=date,
                category=category,
                description=description,
            )
        except ValueError as exc:
            return Result.failure(FailureKind.VALIDATION, str(exc))
        return self._reconciler.record(expense)

    async def execute_async(
        self,
        *,
        account_id: str,
        amount,
        date: str,
        category: str = "General",
        description: str = "",
        receipt: ReceiptBlob | None = None,
    ) -> Result[Expense]:
        try:
            expense = self._build(
                account_id=account_id,
                amount=amount,
                date=date,
                category=category,
                description=description,
            )
        except ValueError as exc:
            return Result.failure(FailureKind.VALIDATION, str(exc))
        try:
            expense = await self._binder.attach(expense, receipt)
        except ReceiptEncodingError as exc:
            return Result.failure(FailureKind.ENCODING, str(exc))
        return self._reconciler.record(expense)


class UpdateExpense:
    """Edit an expense and, independently, its receipt.

    ``receipt_action`` is always explicit: KEEP leaves the stored receipt
    alone, REMOVE strips it, REPLACE swaps in a new file and is only
    available through ``execute_async``.
    """

    def __init__(self, repositories: LedgerRepositories, binder: ReceiptBinder | None = None):
        self._repositories = repositories
        self._reconciler = BalanceReconciler(repositories)
        self._binder = binder or ReceiptBinder()

    def _apply(self, expense_id: str, changes: dict, receipt_changes: dict, update_balance: bool):
        merged = {**changes, **receipt_changes}
        return self._reconciler.revise(
            self._repositories.expenses, expense_id, merged, update_balance=update_balance
        )

    @staticmethod
    def _without_receipt_fields(changes: dict) -> dict:
        return {
            name: value
            for name, value in changes.items()
            if name not in ("has_receipt", "receipt_name", "receipt_type", "receipt_data")
        }

    def execute(
        self,
        expense_id: str,
        changes: dict,
        *,
        receipt_action: ReceiptAction | str = ReceiptAction.KEEP,
        update_balance: bool = True,
    ) -> Result[Expense]:
        try:
            action = ReceiptAction(receipt_action)
            coerced = self._without_receipt_fields(_coerce_changes(changes))
        except ValueError as exc:
            return Result.failure(FailureKind.VALIDATION, str(exc))
        if action is ReceiptAction.REPLACE:
            return Result.failure(
                FailureKind.VALIDATION, "Replacing a receipt requires execute_async"
            )
        return self._apply(
            expense_id,
            coerced,
            ReceiptBinder.receipt_changes(action),
            update_balance,
        )

    async def execute_async(
        self,
        expense_id: str,
        changes: dict,
        *,
        receipt_action: ReceiptAction | str = ReceiptAction.KEEP,
        receipt: ReceiptBlob | None = None,
        update_balance: bool = True,
    ) -> Result[Expense]:
        try:
            action = ReceiptAction(receipt_action)
            ReceiptBinder.validate(action, receipt)
            coerced = self._without_receipt_fields(_coerce_changes(changes))
        except ValueError as exc:
            return Result.failure(FailureKind.VALIDATION, str(exc))
        if self._repositories.expenses.get_by_id(expense_id) is None:
            return Result.not_found(f"expenses record not found: {expense_id}")

        encoded = None
        if receipt is not None:
            try:
                encoded = await self._binder.encode(receipt)
            except ReceiptEncodingError as exc:
                return Result.failure(FailureKind.ENCODING, str(exc))
        return self._apply(
            expense_id,
            coerced,
            ReceiptBinder.receipt_changes(action, encoded),
            update_balance,
        )


class DeleteExpense:
    def __init__(self, repositories: LedgerRepositories):
        self._repositories = repositories
        self._reconciler = BalanceReconciler(repositories)

    def execute(self, expense_id: str, *, restore_balance: bool = True) -> Result[Expense]:
        return self._reconciler.discard(
            self._repositories.expenses, expense_id, restore_balance=restore_balance
        )


class UpdateSetting:
    def __init__(self, repositories: LedgerRepositories):
        self._repositories = repositories

    def execute(self, key: str, value) -> Result[dict]:
        return self._repositories.settings.update(key, value)


class ClearAllData:
    def __init__(self, repositories: LedgerRepositories):
        self._repositories = repositories

    def execute(self) -> Result[None]:
        """Remove every ledger collection and the settings from the store."""
        if not self._repositories.store.clear_all():
            return Result.failure(FailureKind.PERSISTENCE, "Failed to clear stored data")
        logger.warning("All ledger data cleared")
        return Result.success()

"""Incremental balance maintenance.

Account balances are running totals. Every transaction mutation turns into a
signed delta that is applied to the stored balance in the same unit of work
as the transaction write, so the balance never has to be recomputed from the
full history:

* add      -> ``+ effect(new)``
* edit     -> ``+ effect(new) - effect(old)`` (only when requested)
* remove   -> ``- effect(old)`` (only when requested)

``effect`` is ``-amount`` for expenses and ``+amount`` for deposits. A
manual override records an ``Adjustment`` first and then sets the balance.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from domain.accounts import Account
from domain.adjustments import Adjustment
from domain.money import to_decimal
from domain.results import FailureKind, Result
from domain.transactions import Transaction
from infrastructure.repositories import LedgerRepositories, TransactionRepository
from infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

# Edits never move a transaction to another account.
_PINNED_FIELDS = ("id", "account_id", "created_at")


def effect_of_add(transaction: Transaction) -> Decimal:
    return transaction.signed_effect()


def effect_of_remove(transaction: Transaction) -> Decimal:
    return -transaction.signed_effect()


def effect_of_edit(old: Transaction, new: Transaction) -> Decimal:
    return new.signed_effect() - old.signed_effect()


class BalanceReconciler:
    def __init__(self, repositories: LedgerRepositories) -> None:
        self._repositories = repositories

    @property
    def repositories(self) -> LedgerRepositories:
        return self._repositories

    def _stage_delta(self, uow: UnitOfWork, account_id: str, delta: Decimal) -> Account | None:
        accounts = self._repositories.accounts
        account = accounts.get_by_id(account_id)
        if account is None:
            logger.info(
                "Account %s not found, skipping balance delta %s", account_id, delta
            )
            return None
        if delta == 0:
            return account
        updated, records = accounts.stage_update(
            account_id, {"balance": account.balance + delta}
        )
        uow.stage(accounts, records)
        return updated

    def record(self, transaction: Transaction) -> Result[Transaction]:
        """Persist a new transaction and apply its effect to the account."""
        repository = self._repositories.transactions_for(transaction)
        uow = UnitOfWork()
        stamped, records = repository.stage_add(transaction)
        uow.stage(repository, records)
        self._stage_delta(uow, stamped.account_id, effect_of_add(stamped))
        committed = uow.commit()
        if not committed:
            return Result.failure(committed.kind, committed.message)
        logger.info(
            "%s recorded id=%s account_id=%s amount=%s",
            stamped.type.capitalize(),
            stamped.id,
            stamped.account_id,
            stamped.amount,
        )
        return Result.success(stamped)

    def revise(
        self,
        repository: TransactionRepository,
        transaction_id: str,
        changes: Mapping[str, Any],
        *,
        update_balance: bool = True,
    ) -> Result[Transaction]:
        """Edit a transaction, reversing its old effect and applying the new one."""
        existing = repository.get_by_id(transaction_id)
        if existing is None:
            return Result.not_found(f"{repository.key} record not found: {transaction_id}")
        pinned = {
            name: value for name, value in changes.items() if name not in _PINNED_FIELDS
        }
        try:
            updated, records = repository.stage_update(transaction_id, pinned)
        except ValueError as exc:
            return Result.failure(FailureKind.VALIDATION, str(exc))

        uow = UnitOfWork()
        uow.stage(repository, records)
        if update_balance:
            self._stage_delta(uow, existing.account_id, effect_of_edit(existing, updated))
        committed = uow.commit()
        if not committed:
            return Result.failure(committed.kind, committed.message)
        logger.info(
            "%s revised id=%s amount %s -> %s balance_updated=%s",
            updated.type.capitalize(),
            transaction_id,
            existing.amount,
            updated.amount,
            update_balance,
        )
        return Result.success(updated)

    def discard(
        self,
        repository: TransactionRepository,
        transaction_id: str,
        *,
        restore_balance: bool = True,
    ) -> Result[Transaction]:
        """Delete a transaction, optionally giving its effect back to the account."""
        removed, records = repository.stage_remove(transaction_id)
        if removed is None:
            return Result.not_found(f"{repository.key} record not found: {transaction_id}")
        uow = UnitOfWork()
        uow.stage(repository, records)
        if restore_balance:
            self._stage_delta(uow, removed.account_id, effect_of_remove(removed))
        committed = uow.commit()
        if not committed:
            return Result.failure(committed.kind, committed.message)
        logger.info(
            "%s discarded id=%s balance_restored=%s",
            removed.type.capitalize(),
            transaction_id,
            restore_balance,
        )
        return Result.success(removed)

    def override_balance(
        self,
        account_id: str,
        new_balance,
        reason: str,
        note: str = "",
    ) -> Result[Adjustment]:
        """Set a balance directly, writing the audit adjustment before the balance."""
        accounts = self._repositories.accounts
        adjustments = self._repositories.adjustments
        account = accounts.get_by_id(account_id)
        if account is None:
            return Result.not_found(f"Account not found: {account_id}")
        try:
            target = to_decimal(new_balance)
        except ValueError as exc:
            return Result.failure(FailureKind.VALIDATION, str(exc))

        adjustment = Adjustment.for_override(
            account_id=account_id,
            old_balance=account.balance,
            new_balance=target,
            reason=reason,
            note=note,
            date=datetime.now(timezone.utc).isoformat(),
        )
        uow = UnitOfWork()
        stamped, adjustment_records = adjustments.stage_add(adjustment)
        uow.stage(adjustments, adjustment_records)
        _, account_records = accounts.stage_update(account_id, {"balance": target})
        uow.stage(accounts, account_records)
        committed = uow.commit()
        if not committed:
            return Result.failure(committed.kind, committed.message)
        logger.info(
            "Balance overridden account_id=%s old=%s new=%s reason=%s",
            account_id,
            stamped.old_balance,
            stamped.new_balance,
            reason,
        )
        return Result.success(stamped)

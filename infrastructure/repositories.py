from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Generic, TypeVar

from domain.accounts import Account
from domain.adjustments import Adjustment
from domain.money import ZERO, to_decimal
from domain.results import FailureKind, Result
from domain.transactions import Deposit, Expense, Transaction
from storage.base import KeyValueStore, StorageKey

logger = logging.getLogger(__name__)

R = TypeVar("R")
T = TypeVar("T", bound=Transaction)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


def _amount_text(value: Decimal) -> str:
    return f"{to_decimal(value):.2f}"


def _optional_text(value) -> str | None:
    if value in (None, ""):
        return None
    return str(value)


class CollectionRepository(ABC, Generic[R]):
    """CRUD over one store key holding a JSON list of records.

    Every operation re-reads the whole collection from the store, mutates it
    and writes the whole collection back. The ``stage_*`` methods return the
    mutated collection without writing so that a unit of work can commit
    several collections together.
    """

    key: str = ""
    pinned_fields: tuple[str, ...] = ("id", "created_at")

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Callable[[], str] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    @property
    @abstractmethod
    def record_type(self) -> type:
        ...

    @abstractmethod
    def _to_dict(self, record: R) -> dict:
        ...

    @abstractmethod
    def _from_dict(self, item: dict) -> R:
        ...

    def raw_snapshot(self) -> list:
        data = self._store.load(self.key, [])
        if not isinstance(data, list):
            logger.warning("Collection %s is not a list, treating as empty", self.key)
            return []
        return data

    def restore_snapshot(self, raw: list) -> bool:
        return bool(self._store.save(self.key, raw))

    def list(self) -> list[R]:
        records: list[R] = []
        for index, item in enumerate(self.raw_snapshot()):
            if not isinstance(item, dict):
                logger.warning("Skipping non-dict %s entry at index %s", self.key, index)
                continue
            try:
                records.append(self._from_dict(item))
            except (KeyError, TypeError, ValueError):
                logger.exception("Skipping invalid %s entry at index %s", self.key, index)
        return records

    def get_by_id(self, record_id: str) -> R | None:
        return next((record for record in self.list() if record.id == record_id), None)

    def save_all(self, records: list[R]) -> Result[list[R]]:
        try:
            payload = [self._to_dict(record) for record in records]
        except (TypeError, ValueError) as exc:
            logger.exception("Failed to serialize %s collection", self.key)
            return Result.failure(FailureKind.VALIDATION, str(exc))
        if not self._store.save(self.key, payload):
            logger.error("Store rejected write of %s collection", self.key)
            return Result.failure(
                FailureKind.PERSISTENCE, f"Failed to persist {self.key}"
            )
        return Result.success(records)

    def stage_add(self, record: R) -> tuple[R, list[R]]:
        records = self.list()
        stamped = replace(
            record,
            id=record.id or self._id_factory(),
            created_at=self._clock(),
        )
        records.append(stamped)
        return stamped, records

    def stage_update(
        self, record_id: str, changes: Mapping[str, Any]
    ) -> tuple[R | None, list[R]]:
        records = self.list()
        index = next(
            (i for i, record in enumerate(records) if record.id == record_id), None
        )
        if index is None:
            return None, records
        allowed = {f.name for f in fields(self.record_type)}
        merged = {
            name: value
            for name, value in changes.items()
            if name in allowed and name not in self.pinned_fields
        }
        if "updated_at" in allowed:
            merged["updated_at"] = self._clock()
        records[index] = replace(records[index], **merged)
        return records[index], records

    def stage_remove(self, record_id: str) -> tuple[R | None, list[R]]:
        records = self.list()
        removed = next((record for record in records if record.id == record_id), None)
        return removed, [record for record in records if record.id != record_id]

    def add(self, record: R) -> Result[R]:
        stamped, records = self.stage_add(record)
        saved = self.save_all(records)
        if not saved:
            return Result.failure(saved.kind, saved.message)
        logger.info("Added %s record id=%s", self.key, stamped.id)
        return Result.success(stamped)

    def update(self, record_id: str, changes: Mapping[str, Any]) -> Result[R]:
        try:
            updated, records = self.stage_update(record_id, changes)
        except ValueError as exc:
            return Result.failure(FailureKind.VALIDATION, str(exc))
        if updated is None:
            return Result.not_found(f"{self.key} record not found: {record_id}")
        saved = self.save_all(records)
        if not saved:
            return Result.failure(saved.kind, saved.message)
        logger.info("Updated %s record id=%s", self.key, record_id)
        return Result.success(updated)

    def remove(self, record_id: str) -> Result[R]:
        removed, records = self.stage_remove(record_id)
        if removed is None:
            return Result.not_found(f"{self.key} record not found: {record_id}")
        saved = self.save_all(records)
        if not saved:
            return Result.failure(saved.kind, saved.message)
        logger.info("Removed %s record id=%s", self.key, record_id)
        return Result.success(removed)


class AccountRepository(CollectionRepository[Account]):
    key = StorageKey.ACCOUNTS.value
    # the opening balance is the auditor baseline
    pinned_fields = ("id", "created_at", "opening_balance")

    @property
    def record_type(self) -> type:
        return Account

    def _to_dict(self, record: Account) -> dict:
        payload = {
            "id": record.id,
            "bankName": record.bank_name,
            "accountNumber": record.account_number,
            "balance": _amount_text(record.balance),
            "overdraftLimit": _amount_text(record.overdraft_limit),
            "openingBalance": _amount_text(record.opening_balance),
            "createdAt": record.created_at,
        }
        if record.updated_at:
            payload["updatedAt"] = record.updated_at
        return payload

    def _from_dict(self, item: dict) -> Account:
        return Account(
            id=str(item["id"]),
            bank_name=str(item.get("bankName", "") or ""),
            account_number=str(item.get("accountNumber", "") or ""),
            balance=item.get("balance", 0),
            overdraft_limit=item.get("overdraftLimit") or 0,
            opening_balance=item.get("openingBalance"),
            created_at=str(item.get("createdAt", "") or ""),
            updated_at=_optional_text(item.get("updatedAt")),
        )

    def update_balance(self, account_id: str, balance: Decimal) -> Result[Account]:
        return self.update(account_id, {"balance": to_decimal(balance)})

    def update_overdraft_limit(self, account_id: str, limit: Decimal) -> Result[Account]:
        return self.update(account_id, {"overdraft_limit": to_decimal(limit)})

    def get_total_balance(self) -> Decimal:
        return sum((account.balance for account in self.list()), ZERO)


class AccountScopedRepository(CollectionRepository[R]):
    """Collections whose records point at an account through ``account_id``."""

    def get_by_account_id(self, account_id: str) -> list[R]:
        return [record for record in self.list() if record.account_id == account_id]

    def remove_by_account_id(self, account_id: str) -> Result[int]:
        records = self.list()
        kept = [record for record in records if record.account_id != account_id]
        removed = len(records) - len(kept)
        if removed == 0:
            return Result.success(0)
        saved = self.save_all(kept)
        if not saved:
            return Result.failure(saved.kind, saved.message)
        logger.info(
            "Removed %s %s records for account_id=%s", removed, self.key, account_id
        )
        return Result.success(removed)


class TransactionRepository(AccountScopedRepository[T]):
    def get_total_by_account_id(self, account_id: str) -> Decimal:
        return sum(
            (record.amount for record in self.get_by_account_id(account_id)), ZERO
        )

    def _common_to_dict(self, record: Transaction) -> dict:
        payload = {
            "id": record.id,
            "accountId": record.account_id,
            "category": record.category,
            "description": record.description,
            "amount": _amount_text(record.amount),
            "date": record.date,
            "createdAt": record.created_at,
        }
        if record.updated_at:
            payload["updatedAt"] = record.updated_at
        return payload

    @staticmethod
    def _common_from_dict(item: dict) -> dict:
        return {
            "id": str(item["id"]),
            "account_id": str(item.get("accountId", "") or ""),
            "category": str(item.get("category", "General") or "General"),
            "description": str(item.get("description", "") or ""),
            "amount": item.get("amount", 0),
            "date": str(item.get("date", "") or ""),
            "created_at": str(item.get("createdAt", "") or ""),
            "updated_at": _optional_text(item.get("updatedAt")),
        }


class ExpenseRepository(TransactionRepository[Expense]):
    key = StorageKey.EXPENSES.value

    @property
    def record_type(self) -> type:
        return Expense

    def _to_dict(self, record: Expense) -> dict:
        payload = self._common_to_dict(record)
        payload["hasReceipt"] = bool(record.has_receipt)
        payload["receiptName"] = record.receipt_name
        payload["receiptType"] = record.receipt_type
        payload["receiptData"] = record.receipt_data
        return payload

    def _from_dict(self, item: dict) -> Expense:
        return Expense(
            **self._common_from_dict(item),
            has_receipt=bool(item.get("hasReceipt", False)),
            receipt_name=_optional_text(item.get("receiptName")),
            receipt_type=_optional_text(item.get("receiptType")),
            receipt_data=_optional_text(item.get("receiptData")),
        )


class DepositRepository(TransactionRepository[Deposit]):
    key = StorageKey.DEPOSITS.value

    @property
    def record_type(self) -> type:
        return Deposit

    def _to_dict(self, record: Deposit) -> dict:
        return self._common_to_dict(record)

    def _from_dict(self, item: dict) -> Deposit:
        return Deposit(**self._common_from_dict(item))


class AdjustmentRepository(AccountScopedRepository[Adjustment]):
    key = StorageKey.ADJUSTMENTS.value

    @property
    def record_type(self) -> type:
        return Adjustment

    def _to_dict(self, record: Adjustment) -> dict:
        return {
            "id": record.id,
            "accountId": record.account_id,
            "oldBalance": _amount_text(record.old_balance),
            "newBalance": _amount_text(record.new_balance),
            "adjustmentAmount": _amount_text(record.adjustment_amount),
            "reason": record.reason,
            "note": record.note,
            "date": record.date,
            "createdAt": record.created_at,
        }

    def _from_dict(self, item: dict) -> Adjustment:
        return Adjustment(
            id=str(item["id"]),
            account_id=str(item.get("accountId", "") or ""),
            old_balance=item.get("oldBalance", 0),
            new_balance=item.get("newBalance", 0),
            adjustment_amount=item.get("adjustmentAmount", 0),
            reason=str(item.get("reason", "") or ""),
            note=str(item.get("note", "") or ""),
            date=str(item.get("date", "") or ""),
            created_at=str(item.get("createdAt", "") or ""),
        )


class SettingsRepository:
    DEFAULTS = {"darkMode": False}

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get_all(self) -> dict:
        data = self._store.load(StorageKey.SETTINGS.value, None)
        settings = dict(self.DEFAULTS)
        if isinstance(data, dict):
            settings.update(data)
        elif data is not None:
            logger.warning("Settings payload is not an object, using defaults")
        return settings

    def update(self, key: str, value) -> Result[dict]:
        settings = self.get_all()
        settings[key] = value
        if not self._store.save(StorageKey.SETTINGS.value, settings):
            return Result.failure(FailureKind.PERSISTENCE, "Failed to persist settings")
        logger.info("Setting updated key=%s", key)
        return Result.success(settings)

    def is_dark_mode_enabled(self) -> bool:
        return self.get_all().get("darkMode") is True


@dataclass
class LedgerRepositories:
    """The four ledger collections plus settings, sharing one store."""

    store: KeyValueStore
    accounts: AccountRepository
    expenses: ExpenseRepository
    deposits: DepositRepository
    adjustments: AdjustmentRepository
    settings: SettingsRepository

    @classmethod
    def from_store(
        cls,
        store: KeyValueStore,
        *,
        clock: Callable[[], str] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ) -> LedgerRepositories:
        return cls(
            store=store,
            accounts=AccountRepository(store, clock=clock, id_factory=id_factory),
            expenses=ExpenseRepository(store, clock=clock, id_factory=id_factory),
            deposits=DepositRepository(store, clock=clock, id_factory=id_factory),
            adjustments=AdjustmentRepository(store, clock=clock, id_factory=id_factory),
            settings=SettingsRepository(store),
        )

    def transactions_for(self, transaction: Transaction) -> TransactionRepository:
        if isinstance(transaction, Expense):
            return self.expenses
        if isinstance(transaction, Deposit):
            return self.deposits
        raise TypeError(f"Unsupported transaction type: {type(transaction).__name__}")

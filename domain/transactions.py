from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from decimal import Decimal

from .money import to_decimal


@dataclass(frozen=True)
class Transaction(ABC):
    """A dated movement of money against a single account.

    ``date`` is the ISO day the user entered and is stored as given.
    The balance contribution lives in ``signed_effect``; subclasses decide
    its sign.
    """

    account_id: str
    amount: Decimal
    date: str
    category: str = "General"
    description: str = ""
    id: str = ""
    created_at: str = ""
    updated_at: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "account_id", str(self.account_id or ""))
        object.__setattr__(self, "date", str(self.date or "").strip())

    @abstractmethod
    def signed_effect(self) -> Decimal:
        raise NotImplementedError

    @property
    @abstractmethod
    def type(self) -> str:
        raise NotImplementedError


class Deposit(Transaction):
    @property
    def type(self) -> str:
        return "deposit"

    def signed_effect(self) -> Decimal:
        return self.amount


@dataclass(frozen=True)
class EncodedReceipt:
    name: str
    content_type: str
    data: str


@dataclass(frozen=True)
class Expense(Transaction):
    has_receipt: bool = False
    receipt_name: str | None = None
    receipt_type: str | None = None
    receipt_data: str | None = None

    @property
    def type(self) -> str:
        return "expense"

    def signed_effect(self) -> Decimal:
        return -self.amount

    @property
    def receipt(self) -> EncodedReceipt | None:
        if not self.has_receipt or self.receipt_data is None:
            return None
        return EncodedReceipt(
            name=self.receipt_name or "",
            content_type=self.receipt_type or "",
            data=self.receipt_data,
        )

    def with_receipt(self, receipt: EncodedReceipt) -> Expense:
        return replace(
            self,
            has_receipt=True,
            receipt_name=receipt.name,
            receipt_type=receipt.content_type,
            receipt_data=receipt.data,
        )

    def without_receipt(self) -> Expense:
        return replace(
            self,
            has_receipt=False,
            receipt_name=None,
            receipt_type=None,
            receipt_data=None,
        )

from dataclasses import dataclass
from decimal import Decimal

from .money import ZERO, to_decimal
from .validation import normalize_account_number


@dataclass(frozen=True)
class Account:
    bank_name: str
    account_number: str
    balance: Decimal
    overdraft_limit: Decimal = ZERO
    opening_balance: Decimal | None = None
    id: str = ""
    created_at: str = ""
    updated_at: str | None = None

    def __post_init__(self) -> None:
        balance = to_decimal(self.balance)
        object.__setattr__(self, "balance", balance)
        object.__setattr__(self, "overdraft_limit", to_decimal(self.overdraft_limit or 0))
        if self.opening_balance is None:
            object.__setattr__(self, "opening_balance", balance)
        else:
            object.__setattr__(self, "opening_balance", to_decimal(self.opening_balance))
        object.__setattr__(
            self, "account_number", normalize_account_number(str(self.account_number or ""))
        )

    @property
    def available_balance(self) -> Decimal:
        """Balance plus the overdraft the bank still allows."""
        return self.balance + self.overdraft_limit

    @property
    def balance_status(self) -> str:
        if self.balance > 0:
            return "positive"
        if self.balance < 0:
            return "negative"
        return "zero"

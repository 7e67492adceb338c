from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .money import to_decimal


@dataclass(frozen=True)
class Adjustment:
    """Audit entry written alongside every manual balance override."""

    account_id: str
    old_balance: Decimal
    new_balance: Decimal
    adjustment_amount: Decimal
    reason: str
    note: str = ""
    date: str = ""
    id: str = ""
    created_at: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "old_balance", to_decimal(self.old_balance))
        object.__setattr__(self, "new_balance", to_decimal(self.new_balance))
        object.__setattr__(self, "adjustment_amount", to_decimal(self.adjustment_amount))

    @classmethod
    def for_override(
        cls,
        *,
        account_id: str,
        old_balance: Decimal,
        new_balance: Decimal,
        reason: str,
        note: str = "",
        date: str = "",
    ) -> Adjustment:
        old_value = to_decimal(old_balance)
        new_value = to_decimal(new_balance)
        return cls(
            account_id=account_id,
            old_balance=old_value,
            new_balance=new_value,
            adjustment_amount=new_value - old_value,
            reason=reason,
            note=note,
            date=date,
        )

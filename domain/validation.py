import calendar
import re
from datetime import date
from decimal import Decimal

from .money import to_decimal

_ACCOUNT_NUMBER_RE = re.compile(r"\d{1,10}-\d")


def parse_ymd(value: str | date) -> date:
    if isinstance(value, date):
        return value
    value = (value or "").strip()
    if not value:
        raise ValueError("Date value is empty")
    if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        raise ValueError("Invalid date format")
    year, month, day = map(int, value.split("-"))
    if not (1 <= month <= 12):
        raise ValueError("Invalid month")
    last_day = calendar.monthrange(year, month)[1]
    if not (1 <= day <= last_day):
        raise ValueError("Invalid day")
    return date(year, month, day)


def ensure_not_future(value: date) -> None:
    if value > date.today():
        raise ValueError("Date cannot be in the future")


def parse_amount(value, *, allow_zero: bool = False, allow_negative: bool = False) -> Decimal:
    """Pre-validate a form amount before it reaches the ledger.

    Transactions require a strictly positive amount; balances and limits
    relax that with the keyword flags.
    """
    amount = to_decimal(value)
    if amount < 0 and not allow_negative:
        raise ValueError("Amount cannot be negative")
    if amount == 0 and not (allow_zero or allow_negative):
        raise ValueError("Amount must be greater than zero")
    return amount


def require_text(value: str | None, field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValueError(f"Field '{field_name}' is required")
    return text


def normalize_account_number(value: str) -> str:
    """Store account numbers as digits with a hyphen before the check digit.

    Input that already carries a hyphen is kept as typed.
    """
    value = (value or "").strip()
    if "-" in value:
        return value
    digits = re.sub(r"\D", "", value)
    if len(digits) <= 1:
        return digits
    return f"{digits[:-1]}-{digits[-1]}"


def is_valid_account_number(value: str) -> bool:
    return bool(_ACCOUNT_NUMBER_RE.fullmatch(value or ""))

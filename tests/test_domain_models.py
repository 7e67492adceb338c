from decimal import Decimal

import pytest

from domain.accounts import Account
from domain.adjustments import Adjustment
from domain.results import FailureKind, Result
from domain.transactions import Deposit, EncodedReceipt, Expense, Transaction


class TestAccount:
    def test_opening_balance_defaults_to_balance(self):
        account = Account(bank_name="Bank", account_number="12345678", balance="250.5")
        assert account.balance == Decimal("250.50")
        assert account.opening_balance == Decimal("250.50")
        assert account.account_number == "1234567-8"

    def test_available_balance_includes_overdraft(self):
        account = Account(
            bank_name="Bank", account_number="1-1", balance=-500, overdraft_limit=1000
        )
        assert account.available_balance == Decimal("500.00")
        assert account.balance_status == "negative"

    def test_is_frozen(self):
        account = Account(bank_name="Bank", account_number="1-1", balance=0)
        with pytest.raises(AttributeError):
            account.balance = Decimal("1")  # type: ignore[misc]


class TestTransactions:
    def test_transaction_is_abstract(self):
        with pytest.raises(TypeError):
            Transaction(account_id="a", amount=1, date="2025-01-01")  # type: ignore[abstract]

    def test_signed_effects(self):
        expense = Expense(account_id="a", amount="30", date="2025-01-01")
        deposit = Deposit(account_id="a", amount="30", date="2025-01-01")
        assert expense.signed_effect() == Decimal("-30.00")
        assert deposit.signed_effect() == Decimal("30.00")
        assert expense.type == "expense"
        assert deposit.type == "deposit"

    def test_invalid_amount_raises(self):
        with pytest.raises(ValueError):
            Expense(account_id="a", amount="lots", date="2025-01-01")

    def test_receipt_helpers(self):
        expense = Expense(account_id="a", amount=1, date="2025-01-01")
        assert expense.receipt is None

        attached = expense.with_receipt(
            EncodedReceipt(name="r.png", content_type="image/png", data="data:image/png;base64,AA==")
        )
        assert attached.has_receipt is True
        assert attached.receipt == EncodedReceipt(
            name="r.png", content_type="image/png", data="data:image/png;base64,AA=="
        )

        stripped = attached.without_receipt()
        assert stripped.has_receipt is False
        assert stripped.receipt_name is None
        assert stripped.receipt_data is None


def test_adjustment_for_override_computes_delta():
    adjustment = Adjustment.for_override(
        account_id="a", old_balance="-500", new_balance="0", reason="Bank statement"
    )
    assert adjustment.adjustment_amount == Decimal("500.00")
    assert adjustment.old_balance == Decimal("-500.00")


class TestResult:
    def test_truthiness_follows_ok(self):
        assert Result.success(1)
        assert not Result.failure(FailureKind.PERSISTENCE, "disk full")

    def test_not_found(self):
        result = Result.not_found("missing")
        assert result.is_not_found
        assert result.kind is FailureKind.NOT_FOUND
        assert result.message == "missing"

    def test_failure_may_carry_value(self):
        result = Result.failure(FailureKind.PARTIAL_CASCADE, "partial", value={"a": 1})
        assert not result
        assert result.value == {"a": 1}

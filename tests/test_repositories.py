from decimal import Decimal
from unittest.mock import Mock

import pytest

from domain.accounts import Account
from domain.adjustments import Adjustment
from domain.results import FailureKind
from domain.transactions import Deposit, Expense
from infrastructure.repositories import (
    AccountRepository,
    CollectionRepository,
    ExpenseRepository,
    LedgerRepositories,
    SettingsRepository,
)
from storage.base import KeyValueStore
from storage.memory_storage import InMemoryStore


def _account(**overrides) -> Account:
    values = dict(bank_name="Bank", account_number="1234567-8", balance="100")
    values.update(overrides)
    return Account(**values)


class TestCollectionRepository:
    def test_repository_is_abstract(self):
        with pytest.raises(TypeError):
            CollectionRepository(InMemoryStore())  # type: ignore[abstract]

    def test_add_assigns_id_and_created_at(self, repos):
        result = repos.accounts.add(_account())
        assert result
        assert result.value.id == "id1"
        assert result.value.created_at == "2025-01-01T00:00:01+00:00"
        assert repos.accounts.get_by_id("id1") == result.value

    def test_add_keeps_existing_id(self, repos):
        result = repos.accounts.add(_account(id="custom"))
        assert result.value.id == "custom"

    def test_get_by_id_missing(self, repos):
        assert repos.accounts.get_by_id("nope") is None

    def test_update_merges_and_stamps(self, repos):
        created = repos.accounts.add(_account()).value
        result = repos.accounts.update(
            created.id, {"bank_name": "Other", "id": "hijack", "created_at": "x", "junk": 1}
        )
        assert result
        assert result.value.id == created.id
        assert result.value.bank_name == "Other"
        assert result.value.created_at == created.created_at
        assert result.value.updated_at == "2025-01-01T00:00:02+00:00"

    def test_update_missing_is_not_found(self, repos):
        result = repos.accounts.update("nope", {"bank_name": "x"})
        assert not result
        assert result.kind is FailureKind.NOT_FOUND

    def test_update_with_bad_amount_is_validation_failure(self, repos):
        created = repos.accounts.add(_account()).value
        result = repos.accounts.update(created.id, {"balance": "abc"})
        assert result.kind is FailureKind.VALIDATION
        assert repos.accounts.get_by_id(created.id).balance == Decimal("100.00")

    def test_remove(self, repos):
        created = repos.accounts.add(_account()).value
        assert repos.accounts.remove(created.id)
        assert repos.accounts.list() == []
        assert repos.accounts.remove(created.id).kind is FailureKind.NOT_FOUND

    def test_invalid_entries_are_skipped(self, store, repos):
        store.save(
            "accounts",
            [
                "garbage",
                {"bankName": "missing id"},
                {"id": "ok", "bankName": "B", "accountNumber": "1-1", "balance": "5"},
                {"id": "bad", "bankName": "B", "accountNumber": "1-1", "balance": "x"},
            ],
        )
        accounts = repos.accounts.list()
        assert [account.id for account in accounts] == ["ok"]

    def test_non_list_collection_is_empty(self, store, repos):
        store.save("expenses", {"not": "a list"})
        assert repos.expenses.list() == []

    def test_failing_store_reports_persistence(self):
        store = Mock(spec=KeyValueStore)
        store.load.return_value = []
        store.save.return_value = False
        repository = AccountRepository(store)

        result = repository.add(_account())

        assert not result
        assert result.kind is FailureKind.PERSISTENCE


class TestAccountRepository:
    def test_serializes_camel_case_with_string_amounts(self, store, repos):
        repos.accounts.add(_account(balance=Decimal("12.3"), overdraft_limit=50))
        stored = store.load("accounts")[0]
        assert stored["bankName"] == "Bank"
        assert stored["accountNumber"] == "1234567-8"
        assert stored["balance"] == "12.30"
        assert stored["overdraftLimit"] == "50.00"
        assert stored["openingBalance"] == "12.30"
        assert "updatedAt" not in stored

    def test_legacy_rows_without_opening_balance(self, store, repos):
        store.save(
            "accounts",
            [{"id": "a", "bankName": "B", "accountNumber": "1-1", "balance": 75.5}],
        )
        account = repos.accounts.get_by_id("a")
        assert account.balance == Decimal("75.50")
        assert account.opening_balance == Decimal("75.50")
        assert account.overdraft_limit == Decimal("0.00")

    def test_update_balance_and_overdraft(self, repos):
        account = repos.accounts.add(_account()).value
        repos.accounts.update_balance(account.id, Decimal("-20"))
        repos.accounts.update_overdraft_limit(account.id, Decimal("300"))
        stored = repos.accounts.get_by_id(account.id)
        assert stored.balance == Decimal("-20.00")
        assert stored.overdraft_limit == Decimal("300.00")
        assert stored.opening_balance == Decimal("100.00")

    def test_update_cannot_change_opening_balance(self, store, repos):
        account = repos.accounts.add(_account()).value
        result = repos.accounts.update(
            account.id, {"opening_balance": "999", "bank_name": "Other"}
        )
        assert result
        stored = repos.accounts.get_by_id(account.id)
        assert stored.opening_balance == Decimal("100.00")
        assert stored.bank_name == "Other"
        assert store.load("accounts")[0]["openingBalance"] == "100.00"

    def test_total_balance(self, repos):
        repos.accounts.add(_account(balance="100.10"))
        repos.accounts.add(_account(balance="-50.05"))
        assert repos.accounts.get_total_balance() == Decimal("50.05")


class TestAccountScopedRepositories:
    def test_get_and_total_by_account(self, repos):
        repos.expenses.add(Expense(account_id="a", amount="10", date="2025-01-01"))
        repos.expenses.add(Expense(account_id="a", amount="5.5", date="2025-01-02"))
        repos.expenses.add(Expense(account_id="b", amount="99", date="2025-01-02"))
        assert len(repos.expenses.get_by_account_id("a")) == 2
        assert repos.expenses.get_total_by_account_id("a") == Decimal("15.50")
        assert repos.expenses.get_total_by_account_id("zzz") == Decimal("0.00")

    def test_remove_by_account_id(self, repos):
        repos.deposits.add(Deposit(account_id="a", amount="10", date="2025-01-01"))
        repos.deposits.add(Deposit(account_id="b", amount="10", date="2025-01-01"))
        result = repos.deposits.remove_by_account_id("a")
        assert result.value == 1
        assert [d.account_id for d in repos.deposits.list()] == ["b"]

    def test_remove_by_account_id_without_matches_skips_write(self):
        store = Mock(spec=KeyValueStore)
        store.load.return_value = []
        repository = ExpenseRepository(store)
        result = repository.remove_by_account_id("a")
        assert result.value == 0
        store.save.assert_not_called()

    def test_expense_receipt_fields_round_trip(self, store, repos):
        expense = Expense(
            account_id="a",
            amount="12",
            date="2025-01-01",
            has_receipt=True,
            receipt_name="r.pdf",
            receipt_type="application/pdf",
            receipt_data="data:application/pdf;base64,AA==",
        )
        repos.expenses.add(expense)
        stored = store.load("expenses")[0]
        assert stored["hasReceipt"] is True
        assert stored["receiptName"] == "r.pdf"
        loaded = repos.expenses.list()[0]
        assert loaded.receipt_data == "data:application/pdf;base64,AA=="

    def test_adjustments_have_no_updated_at(self, store, repos):
        adjustment = repos.adjustments.add(
            Adjustment.for_override(
                account_id="a", old_balance=1, new_balance=2, reason="fix"
            )
        ).value
        result = repos.adjustments.update(adjustment.id, {"note": "later"})
        assert result.value.note == "later"
        assert "updatedAt" not in store.load("adjustments")[0]


class TestSettingsRepository:
    def test_defaults(self):
        settings = SettingsRepository(InMemoryStore())
        assert settings.get_all() == {"darkMode": False}
        assert settings.is_dark_mode_enabled() is False

    def test_update(self):
        settings = SettingsRepository(InMemoryStore())
        result = settings.update("darkMode", True)
        assert result.value == {"darkMode": True}
        assert settings.is_dark_mode_enabled() is True

    def test_update_failure(self):
        store = Mock(spec=KeyValueStore)
        store.load.return_value = None
        store.save.return_value = False
        result = SettingsRepository(store).update("darkMode", True)
        assert result.kind is FailureKind.PERSISTENCE


def test_transactions_for_routes_by_type(repos):
    assert repos.transactions_for(Expense(account_id="a", amount=1, date="d")) is repos.expenses
    assert repos.transactions_for(Deposit(account_id="a", amount=1, date="d")) is repos.deposits
    with pytest.raises(TypeError):
        repos.transactions_for(object())  # type: ignore[arg-type]


def test_from_store_shares_one_store():
    store = InMemoryStore()
    repos = LedgerRepositories.from_store(store)
    assert repos.store is store
    repos.accounts.add(_account())
    assert len(LedgerRepositories.from_store(store).accounts.list()) == 1

from decimal import Decimal
from unittest.mock import Mock

from app.use_cases import (
    CalculateAvailableBalance,
    CalculateTotalBalance,
    ClearAllData,
    CreateAccount,
    GetAccounts,
    UpdateOverdraftLimit,
    UpdateSetting,
)
from domain.results import FailureKind
from infrastructure.repositories import LedgerRepositories
from storage.base import KeyValueStore


class TestCreateAccount:
    def test_creates_and_normalizes(self, repos):
        result = CreateAccount(repos).execute(
            bank_name="Bank", account_number="12345678", balance="10", overdraft_limit="5"
        )
        assert result
        assert result.value.account_number == "1234567-8"
        assert GetAccounts(repos).execute() == [result.value]

    def test_invalid_balance(self, repos):
        result = CreateAccount(repos).execute(
            bank_name="Bank", account_number="1-1", balance="ten"
        )
        assert result.kind is FailureKind.VALIDATION
        assert repos.accounts.list() == []


def test_balances(repos):
    first = CreateAccount(repos).execute(
        bank_name="A", account_number="1-1", balance="-20", overdraft_limit="100"
    ).value
    CreateAccount(repos).execute(bank_name="B", account_number="2-2", balance="50")
    assert CalculateTotalBalance(repos).execute() == Decimal("30.00")
    assert CalculateAvailableBalance(repos).execute(first.id) == Decimal("80.00")
    assert CalculateAvailableBalance(repos).execute("ghost") is None


def test_update_overdraft_limit(repos):
    account = CreateAccount(repos).execute(
        bank_name="A", account_number="1-1", balance="0"
    ).value
    assert UpdateOverdraftLimit(repos).execute(account.id, "250")
    assert repos.accounts.get_by_id(account.id).overdraft_limit == Decimal("250.00")
    assert UpdateOverdraftLimit(repos).execute(account.id, "x").kind is FailureKind.VALIDATION
    assert UpdateOverdraftLimit(repos).execute("ghost", "1").is_not_found


def test_update_setting(repos):
    result = UpdateSetting(repos).execute("darkMode", True)
    assert result.value["darkMode"] is True


def test_clear_all_data(repos):
    CreateAccount(repos).execute(bank_name="A", account_number="1-1", balance="0")
    repos.settings.update("darkMode", True)
    assert ClearAllData(repos).execute()
    assert repos.accounts.list() == []
    assert repos.settings.is_dark_mode_enabled() is False


def test_clear_all_data_failure():
    store = Mock(spec=KeyValueStore)
    store.clear_all.return_value = False
    result = ClearAllData(LedgerRepositories.from_store(store)).execute()
    assert result.kind is FailureKind.PERSISTENCE

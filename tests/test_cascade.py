from app.cascade import CascadeManager
from app.use_cases import (
    AddDeposit,
    AddExpense,
    AdjustBalance,
    CreateAccount,
    DeleteAccount,
)
from domain.results import FailureKind


def _seed(repos):
    account = CreateAccount(repos).execute(
        bank_name="Bank", account_number="1-1", balance="100"
    ).value
    other = CreateAccount(repos).execute(
        bank_name="Other", account_number="2-2", balance="50"
    ).value
    for target in (account, other):
        AddExpense(repos).execute(account_id=target.id, amount="10", date="2025-01-01")
        AddDeposit(repos).execute(account_id=target.id, amount="5", date="2025-01-02")
    AddExpense(repos).execute(account_id=account.id, amount="1", date="2025-01-03")
    AdjustBalance(repos).execute(account.id, "90", "Statement")
    return account, other


def test_delete_account_removes_dependents(repos):
    account, other = _seed(repos)

    result = DeleteAccount(repos).execute(account.id)

    assert result
    assert result.value.ok
    assert result.value.removed == {
        "expenses": 2,
        "deposits": 1,
        "adjustments": 1,
        "accounts": 1,
    }
    assert repos.accounts.get_by_id(account.id) is None
    assert repos.expenses.get_by_account_id(account.id) == []
    assert repos.deposits.get_by_account_id(account.id) == []
    assert repos.adjustments.get_by_account_id(account.id) == []
    assert len(repos.expenses.get_by_account_id(other.id)) == 1
    assert repos.accounts.get_by_id(other.id) is not None


def test_delete_missing_account(repos):
    result = CascadeManager(repos).delete_account("ghost")
    assert result.is_not_found


def test_account_without_history(repos):
    account = CreateAccount(repos).execute(
        bank_name="Bank", account_number="1-1", balance="0"
    ).value
    result = DeleteAccount(repos).execute(account.id)
    assert result.value.removed == {
        "expenses": 0,
        "deposits": 0,
        "adjustments": 0,
        "accounts": 1,
    }


def test_partial_failure_is_reported_without_rollback(flaky_store, flaky_repos):
    account, _ = _seed(flaky_repos)
    flaky_store.fail_keys.add("deposits")

    result = DeleteAccount(flaky_repos).execute(account.id)

    assert not result
    assert result.kind is FailureKind.PARTIAL_CASCADE
    outcome = result.value
    assert outcome.failed_steps == ("deposits",)
    assert outcome.removed["expenses"] == 2
    assert outcome.removed["accounts"] == 1
    assert flaky_repos.accounts.get_by_id(account.id) is None
    assert len(flaky_repos.deposits.get_by_account_id(account.id)) == 1

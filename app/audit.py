from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from domain.accounts import Account
from domain.adjustments import Adjustment
from domain.money import ZERO
from domain.results import FailureKind, Result
from domain.transactions import Deposit, Expense
from infrastructure.repositories import LedgerRepositories

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceDrift:
    account_id: str
    recorded: Decimal
    expected: Decimal

    @property
    def drift(self) -> Decimal:
        return self.recorded - self.expected


@dataclass(frozen=True)
class OrphanReport:
    expenses: list[Expense] = field(default_factory=list)
    deposits: list[Deposit] = field(default_factory=list)
    adjustments: list[Adjustment] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.expenses or self.deposits or self.adjustments)

    @property
    def account_ids(self) -> set[str]:
        return {
            record.account_id
            for record in (*self.expenses, *self.deposits, *self.adjustments)
        }


class LedgerAuditor:
    """Recomputes balances from history to detect what incremental updates missed.

    Nothing here runs implicitly. ``verify`` and ``find_orphans`` only read;
    ``repair_balances`` and ``purge_orphans`` must be called explicitly.
    """

    def __init__(self, repositories: LedgerRepositories) -> None:
        self._repositories = repositories

    def expected_balance(self, account: Account) -> Decimal:
        repos = self._repositories
        deposits = repos.deposits.get_total_by_account_id(account.id)
        expenses = repos.expenses.get_total_by_account_id(account.id)
        adjustments = sum(
            (item.adjustment_amount for item in repos.adjustments.get_by_account_id(account.id)),
            ZERO,
        )
        return account.opening_balance + deposits - expenses + adjustments

    def verify(self) -> list[BalanceDrift]:
        drifts: list[BalanceDrift] = []
        for account in self._repositories.accounts.list():
            expected = self.expected_balance(account)
            if expected != account.balance:
                drifts.append(
                    BalanceDrift(
                        account_id=account.id, recorded=account.balance, expected=expected
                    )
                )
        if drifts:
            logger.warning("Balance drift detected on %s accounts", len(drifts))
        return drifts

    def find_orphans(self) -> OrphanReport:
        repos = self._repositories
        account_ids = {account.id for account in repos.accounts.list()}
        return OrphanReport(
            expenses=[e for e in repos.expenses.list() if e.account_id not in account_ids],
            deposits=[d for d in repos.deposits.list() if d.account_id not in account_ids],
            adjustments=[
                a for a in repos.adjustments.list() if a.account_id not in account_ids
            ],
        )

    def repair_balances(self) -> Result[list[BalanceDrift]]:
        drifts = self.verify()
        for drift in drifts:
            result = self._repositories.accounts.update_balance(
                drift.account_id, drift.expected
            )
            if not result:
                return Result.failure(result.kind, result.message, value=drifts)
            logger.warning(
                "Balance repaired account_id=%s recorded=%s expected=%s",
                drift.account_id,
                drift.recorded,
                drift.expected,
            )
        return Result.success(drifts)

    def purge_orphans(self) -> Result[OrphanReport]:
        report = self.find_orphans()
        if report.is_empty():
            return Result.success(report)
        repos = self._repositories
        failed: list[str] = []
        for account_id in sorted(report.account_ids):
            for repository in (repos.expenses, repos.deposits, repos.adjustments):
                if not repository.remove_by_account_id(account_id):
                    failed.append(f"{repository.key}:{account_id}")
        if failed:
            return Result.failure(
                FailureKind.PERSISTENCE,
                f"Failed to purge orphans: {', '.join(failed)}",
                value=report,
            )
        logger.warning(
            "Purged orphaned records for accounts: %s", ", ".join(sorted(report.account_ids))
        )
        return Result.success(report)

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from domain.results import FailureKind, Result
from infrastructure.repositories import LedgerRepositories

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CascadeOutcome:
    account_id: str
    removed: dict[str, int] = field(default_factory=dict)
    failed_steps: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed_steps


class CascadeManager:
    """Deletes an account together with everything that references it.

    Dependents go first, the account last. Steps are independent writes and
    are not rolled back; the outcome lists which ones failed. Balances are
    not reconciled since the account is being discarded.
    """

    def __init__(self, repositories: LedgerRepositories) -> None:
        self._repositories = repositories

    def delete_account(self, account_id: str) -> Result[CascadeOutcome]:
        repos = self._repositories
        if repos.accounts.get_by_id(account_id) is None:
            return Result.not_found(f"Account not found: {account_id}")

        removed: dict[str, int] = {}
        failed: list[str] = []
        for repository in (repos.expenses, repos.deposits, repos.adjustments):
            result = repository.remove_by_account_id(account_id)
            if result:
                removed[repository.key] = int(result.value or 0)
            else:
                failed.append(repository.key)

        account_result = repos.accounts.remove(account_id)
        if account_result:
            removed[repos.accounts.key] = 1
        else:
            failed.append(repos.accounts.key)

        outcome = CascadeOutcome(
            account_id=account_id, removed=removed, failed_steps=tuple(failed)
        )
        if failed:
            logger.error(
                "Account %s deletion left partial state, failed steps: %s",
                account_id,
                ", ".join(failed),
            )
            return Result.failure(
                FailureKind.PARTIAL_CASCADE,
                f"Account deletion incomplete: {', '.join(failed)} failed",
                value=outcome,
            )
        logger.info("Account deleted id=%s removed=%s", account_id, removed)
        return Result.success(outcome)

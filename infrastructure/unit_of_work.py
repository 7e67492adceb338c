from __future__ import annotations

import logging

from domain.results import Result

from .repositories import CollectionRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Commits staged collection writes in registration order.

    If a later write fails, collections already written are put back to the
    snapshot taken right before their own write. A failing restore is logged
    and left for the auditor to find.
    """

    def __init__(self) -> None:
        self._staged: list[tuple[CollectionRepository, list]] = []

    def stage(self, repository: CollectionRepository, records: list) -> None:
        self._staged = [item for item in self._staged if item[0] is not repository]
        self._staged.append((repository, list(records)))

    @property
    def staged_keys(self) -> list[str]:
        return [repository.key for repository, _ in self._staged]

    def commit(self) -> Result[None]:
        written: list[tuple[CollectionRepository, list]] = []
        for repository, records in self._staged:
            before = repository.raw_snapshot()
            saved = repository.save_all(records)
            if not saved:
                logger.error(
                    "Commit failed on %s after %s writes, rolling back",
                    repository.key,
                    len(written),
                )
                self._rollback(written)
                self._staged = []
                return Result.failure(saved.kind, saved.message)
            written.append((repository, before))
        self._staged = []
        return Result.success()

    @staticmethod
    def _rollback(written: list[tuple[CollectionRepository, list]]) -> None:
        for repository, snapshot in reversed(written):
            if not repository.restore_snapshot(snapshot):
                logger.error(
                    "Rollback of %s failed; ledger may be inconsistent", repository.key
                )

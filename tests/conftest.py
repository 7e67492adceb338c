import itertools

import pytest

from infrastructure.repositories import LedgerRepositories
from storage.memory_storage import InMemoryStore


def sequential_ids(prefix: str = "id"):
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


def ticking_clock():
    counter = itertools.count(1)
    return lambda: f"2025-01-01T00:00:{next(counter):02d}+00:00"


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def repos(store):
    return LedgerRepositories.from_store(
        store, clock=ticking_clock(), id_factory=sequential_ids()
    )


class FlakyStore(InMemoryStore):
    """In-memory store whose writes to ``fail_keys`` are rejected."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_keys: set[str] = set()

    def save(self, key, value) -> bool:
        if key in self.fail_keys:
            return False
        return super().save(key, value)


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest.fixture
def flaky_repos(flaky_store):
    return LedgerRepositories.from_store(
        flaky_store, clock=ticking_clock(), id_factory=sequential_ids()
    )

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    PERSISTENCE = "persistence"
    ENCODING = "encoding"
    PARTIAL_CASCADE = "partial_cascade"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a ledger mutation.

    Truthiness mirrors ``ok`` so callers that only care about success can
    keep treating the result as a boolean. Failures carry a ``kind`` from
    ``FailureKind`` and a human-readable message. A failed result may still
    carry a value (e.g. the per-step outcome of a partial cascade).
    """

    ok: bool
    value: T | None = None
    kind: FailureKind | None = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(
        cls, kind: FailureKind, message: str = "", value: T | None = None
    ) -> Result[T]:
        return cls(ok=False, value=value, kind=kind, message=message)

    @classmethod
    def not_found(cls, message: str) -> Result[T]:
        return cls.failure(FailureKind.NOT_FOUND, message)

    @property
    def is_not_found(self) -> bool:
        return self.kind is FailureKind.NOT_FOUND

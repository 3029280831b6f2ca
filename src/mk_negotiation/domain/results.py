"""Typed outcomes returned across the coordinator boundary.

Business rejections come back as values, not exceptions. A StorageFailureError
is not a rejection and is raised instead.
"""
from dataclasses import dataclass
from typing import Generic, TypeVar

from src.mk_common.enums import RejectionReason
from src.mk_common.errors import NegotiationRejected

T = TypeVar("T")


@dataclass(frozen=True)
class Accepted(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    error: NegotiationRejected

    @property
    def ok(self) -> bool:
        return False

    @property
    def reason(self) -> RejectionReason:
        return self.error.reason

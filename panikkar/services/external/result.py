"""
Outcome of a backend call whose "no" answers are ordinary control flow
(job not found, job closed, worker not assigned) rather than errors.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

NOT_FOUND = "not_found"
JOB_CLOSED = "job_closed"
ALREADY_APPLIED = "already_applied"
OWN_JOB = "own_job"
ALREADY_SELECTED = "already_selected"
NOT_ASSIGNED = "not_assigned"
WRONG_STATUS = "wrong_status"


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """
    Attributes:
        value: Payload when the call succeeded
        reason: Machine-readable failure reason (NOT_FOUND, JOB_CLOSED, ...)
        message: Optional human-readable detail from the backend
    """

    value: Optional[T] = None
    reason: Optional[str] = None
    message: str = ""

    @classmethod
    def success(cls, value: T) -> ServiceResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str, message: str = "") -> ServiceResult[T]:
        return cls(reason=reason, message=message)

    def is_success(self) -> bool:
        return self.reason is None

    def is_failure(self) -> bool:
        return self.reason is not None

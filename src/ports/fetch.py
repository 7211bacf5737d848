"""Fetch result port definitions (DTOs)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

__all__ = ["FailureReason", "FetchFailure", "FetchOutcome"]


class FailureReason(str, Enum):
    """Why a metrics fetch did not produce a sample."""

    FETCH_ERROR = "fetch_error"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(slots=True, frozen=True)
class FetchFailure:
    """Typed failure returned instead of a sample.

    Attributes:
        reason: Failure category.
        detail: Human readable description, if any.
    """

    reason: FailureReason
    detail: str | None = None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.reason.value}: {self.detail}"
        return self.reason.value


@dataclass(slots=True, frozen=True)
class FetchOutcome:
    """Result tag of the most recent fetch attempt.

    Attributes:
        succeeded: True if the attempt produced a sample.
        finished_at: When the attempt completed.
        failure: Failure details when succeeded is False.
    """

    succeeded: bool
    finished_at: datetime
    failure: FetchFailure | None = None

    @property
    def error_message(self) -> str | None:
        """Return the failure text, or None on success."""
        return str(self.failure) if self.failure else None

"""In-memory sliding-window metrics for data-store queries."""

from __future__ import annotations

import statistics
from collections import deque
from dataclasses import dataclass

from src.ports.metrics import MetricsPort, QueryAttemptDto

__all__ = ["Metrics"]


@dataclass(slots=True, frozen=True)
class _Sample:
    """Internal record for one query."""

    latency_ms: float
    failed: bool
    status_code: int


class Metrics(MetricsPort):
    """Fast, lock-free query metrics for async context.

    Tracks:
    - Average latency of recent queries.
    - Failure rate (HTTP errors or network failures).
    - Last status code (0 when no response arrived).
    - Total queries seen.

    Not thread-safe; create one instance per event loop.
    """

    def __init__(self, *, window_size: int = 100) -> None:
        """Initialize metrics collector.

        Args:
            window_size: Number of recent queries to keep for statistics.
        """
        self._window: deque[_Sample] = deque(maxlen=window_size)
        self._total_seen: int = 0

    def update(self, attempt: QueryAttemptDto) -> None:
        """Record a finished query.

        Args:
            attempt: Query with timing and result info.
        """
        latency_ms = (attempt.finished_at_sec - attempt.started_at_sec) * 1_000.0
        self._window.append(
            _Sample(
                latency_ms=latency_ms,
                failed=attempt.is_failed,
                status_code=attempt.status_code or 0,
            )
        )
        self._total_seen += 1

    @property
    def failure_rate(self) -> float:
        """Fraction of failed queries in the window (0.0 when empty)."""
        if not self._window:
            return 0.0
        return sum(1 for s in self._window if s.failed) / len(self._window)

    def __str__(self) -> str:
        """Return human-readable one-line summary for logging."""
        if not self._window:
            return "Metrics: waiting for data …"

        avg_latency = statistics.fmean(s.latency_ms for s in self._window)
        last = self._window[-1]

        return (
            f"latency={avg_latency:6.1f} ms | "
            f"status={last.status_code:3d} | "
            f"fail={self.failure_rate * 100:5.1f}% | "
            f"win={len(self._window)}/{self._window.maxlen} | "
            f"total={self._total_seen}"
        )

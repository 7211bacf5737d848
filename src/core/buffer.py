"""Fixed-capacity FIFO buffer of metric samples."""

from __future__ import annotations

from collections import deque

from src.core.errors import ConfigError
from src.ports.samples import MetricSample

__all__ = ["BoundedSampleBuffer"]


class BoundedSampleBuffer:
    """Ordered, size-capped sequence of samples, oldest evicted first.

    Samples are kept in arrival order. Timestamps are not checked: a sample
    older than the last one is still appended at the end.

    Not thread-safe; owned by a single scheduler on one event loop.
    """

    def __init__(self, capacity: int) -> None:
        """Initialize an empty buffer.

        Args:
            capacity: Maximum number of samples kept.

        Raises:
            ConfigError: If capacity is not a positive integer.
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ConfigError(f"Buffer capacity must be a positive integer (got: {capacity!r})")
        self._samples: deque[MetricSample] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    @property
    def latest(self) -> MetricSample | None:
        """Most recently appended sample, or None when empty."""
        return self._samples[-1] if self._samples else None

    def append(self, sample: MetricSample) -> None:
        """Append a sample, evicting the oldest one when full."""
        self._samples.append(sample)

    def to_sequence(self) -> tuple[MetricSample, ...]:
        """Return a read-only snapshot, oldest first."""
        return tuple(self._samples)

    def clear(self) -> None:
        self._samples.clear()

    def __len__(self) -> int:
        return len(self._samples)

"""Metric sample port definition (DTO)."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType

__all__ = ["MetricName", "MetricSample", "METRIC_NAMES"]


class MetricName(str, Enum):
    """Fixed set of metrics tracked by the live chart."""

    WORKOUT_COUNT = "workout_count"
    CALORIES_CONSUMED = "calories_consumed"
    GOALS_PROGRESS = "goals_progress"


METRIC_NAMES: tuple[str, ...] = tuple(m.value for m in MetricName)


@dataclass(slots=True, frozen=True)
class MetricSample:
    """Immutable snapshot of today's metrics at one point in time.

    Attributes:
        timestamp: Wall-clock time the sample was taken.
        fields: Metric name to value. A metric may be absent.
    """

    timestamp: datetime
    fields: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = set(self.fields) - set(METRIC_NAMES)
        if unknown:
            raise ValueError(f"Unknown metric names: {sorted(unknown)}")
        for name, value in self.fields.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Metric {name} must be numeric (got: {value!r})")
        # Frozen dataclass: bypass __setattr__ to store a read-only copy
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def get(self, name: str) -> float | None:
        """Return the value of a metric, or None when it was not sampled."""
        return self.fields.get(name)

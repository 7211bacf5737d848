"""Rendering sink port definitions (interface and DTOs)."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from src.ports.samples import MetricSample

__all__ = [
    "ChartFrame",
    "ChartPoint",
    "ChartSinkPort",
    "SelectedPoint",
    "SelectionHandler",
    "SeriesMeta",
    "StatusSnapshot",
]


@dataclass(slots=True, frozen=True)
class ChartPoint:
    """One plotted point."""

    x: datetime
    y: float


@dataclass(slots=True, frozen=True)
class SeriesMeta:
    """Display metadata for one metric series.

    Attributes:
        label: Legend label.
        unit: Unit appended to values.
        color: Line color.
        background_color: Fill color.
        axis_id: Y axis the series is plotted against.
    """

    label: str
    unit: str
    color: str
    background_color: str
    axis_id: str


@dataclass(slots=True, frozen=True)
class StatusSnapshot:
    """Status bar shown next to the chart.

    Attributes:
        state: Scheduler state name.
        connected: Whether the most recent fetch succeeded.
        last_update: Time of the last successful fetch, if any.
        points: Samples currently buffered.
        capacity: Buffer capacity.
        interval_ms: Polling period.
        last_error: Message of the most recent failure, cleared on success.
    """

    state: str
    connected: bool
    last_update: datetime | None
    points: int
    capacity: int
    interval_ms: int
    last_error: str | None = None


@dataclass(slots=True, frozen=True)
class ChartFrame:
    """Everything the sink needs to redraw."""

    series: dict[str, list[ChartPoint]]
    metadata: dict[str, SeriesMeta]
    latest: dict[str, float] = field(default_factory=dict)
    status: StatusSnapshot | None = None


@dataclass(slots=True, frozen=True)
class SelectedPoint:
    """A point the user picked on the chart.

    Attributes:
        metric: Metric name of the series.
        meta: Series metadata.
        sample: Sample the point was projected from.
        value: The plotted value.
    """

    metric: str
    meta: SeriesMeta
    sample: MetricSample
    value: float


SelectionHandler = Callable[[str, int], None]


class ChartSinkPort(Protocol):
    """Interface of the chart renderer."""

    def render(self, frame: ChartFrame, /) -> None:
        """Redraw the chart from `frame`."""
        ...

    def set_selection_handler(self, handler: SelectionHandler, /) -> None:
        """Register the callback invoked with (metric, point index) on click."""
        ...

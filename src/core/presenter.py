"""Pushes chart frames to the rendering sink whenever the scheduler changes."""

from __future__ import annotations

import logging
from collections.abc import Callable

from src.core.projector import SeriesProjector
from src.core.scheduler import PollingScheduler
from src.ports.chart import ChartFrame, ChartSinkPort, SelectedPoint, StatusSnapshot

__all__ = ["ChartPresenter"]

logger = logging.getLogger(__name__)


class ChartPresenter:
    """Explicit observer between a scheduler and a chart sink.

    On every scheduler change the buffer is re-projected and the whole
    frame (series, metadata, latest values and status bar) is handed to
    the sink. Point selections reported by the sink are resolved back to
    their sample and forwarded to `on_select`.
    """

    def __init__(
        self,
        scheduler: PollingScheduler,
        sink: ChartSinkPort,
        *,
        projector: SeriesProjector | None = None,
        on_select: Callable[[SelectedPoint], None] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._sink = sink
        self._projector = projector or SeriesProjector()
        self._on_select = on_select
        self.last_frame: ChartFrame | None = None

        scheduler.add_listener(self.refresh)
        sink.set_selection_handler(self.select)

    def build_frame(self) -> ChartFrame:
        """Project the current buffer and status into a frame."""
        scheduler = self._scheduler
        samples = scheduler.buffer.to_sequence()
        outcome = scheduler.last_fetch_outcome
        status = StatusSnapshot(
            state=scheduler.state.value,
            connected=scheduler.tracker.connected,
            last_update=scheduler.tracker.last_update,
            points=len(samples),
            capacity=scheduler.buffer.capacity,
            interval_ms=scheduler.interval_ms,
            last_error=outcome.error_message if outcome else None,
        )
        return ChartFrame(
            series=self._projector.project(samples),
            metadata=dict(self._projector.metadata),
            latest=self._projector.latest_values(samples),
            status=status,
        )

    def refresh(self, _scheduler: PollingScheduler | None = None) -> None:
        """Rebuild the frame and render it."""
        self.last_frame = self.build_frame()
        self._sink.render(self.last_frame)

    def select(self, metric: str, index: int) -> SelectedPoint | None:
        """Handle a click on point `index` of the `metric` series.

        Returns:
            The resolved point, or None if it does not exist (anymore).
        """
        samples = self._scheduler.buffer.to_sequence()
        try:
            sample = self._projector.locate(samples, metric, index)
        except (KeyError, IndexError):
            logger.warning(f"Ignoring selection of unknown point {metric}[{index}]")
            return None

        selected = SelectedPoint(
            metric=metric,
            meta=self._projector.metadata[metric],
            sample=sample,
            value=sample.fields[metric],
        )
        if self._on_select is not None:
            self._on_select(selected)
        return selected

"""Chart sink that renders frames as log lines."""

from __future__ import annotations

import logging

from src.ports.chart import ChartFrame, ChartSinkPort, SelectionHandler

__all__ = ["LogChartSink", "format_frame"]

logger = logging.getLogger(__name__)


def _format_value(value: float) -> str:
    return f"{value:g}" if isinstance(value, float) else str(value)


def format_frame(frame: ChartFrame) -> str:
    """Return a one-line summary: current values plus status bar."""
    status = frame.status
    parts: list[str] = []
    if frame.latest:
        for name, meta in frame.metadata.items():
            value = frame.latest.get(name)
            if value is not None:
                parts.append(f"{meta.label}={_format_value(value)} {meta.unit}")
    else:
        parts.append("Waiting for data...")

    if status is not None:
        parts.append("connected" if status.connected else "disconnected")
        parts.append(f"state={status.state}")
        parts.append(f"points={status.points}/{status.capacity}")
        parts.append(f"refresh={status.interval_ms / 1000:g}s")
        if status.last_update is not None:
            parts.append(f"last={status.last_update.strftime('%H:%M:%S')}")
        if status.last_error:
            parts.append(f"error={status.last_error}")
    return " | ".join(parts)


class LogChartSink(ChartSinkPort):
    """Console stand-in for the chart widget.

    Logs every frame and keeps the last one; select() plays the role of a
    click on a plotted point.
    """

    def __init__(self) -> None:
        self.last_frame: ChartFrame | None = None
        self._on_select: SelectionHandler | None = None

    def render(self, frame: ChartFrame) -> None:
        self.last_frame = frame
        line = format_frame(frame)
        if frame.status is not None and not frame.status.connected and frame.latest:
            logger.warning(f"{line} | showing last known data")
        else:
            logger.info(line)

    def set_selection_handler(self, handler: SelectionHandler) -> None:
        self._on_select = handler

    def select(self, metric: str, index: int) -> None:
        """Report a click on point `index` of the `metric` series."""
        if self._on_select is None:
            logger.debug("Point selected but no handler registered")
            return
        self._on_select(metric, index)

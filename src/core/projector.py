"""Turns buffered samples into chart-ready per-metric series."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType

from src.ports.chart import ChartPoint, SeriesMeta
from src.ports.samples import METRIC_NAMES, MetricName, MetricSample

__all__ = ["SERIES_METADATA", "SeriesProjector"]

SERIES_METADATA: Mapping[str, SeriesMeta] = MappingProxyType({
    MetricName.WORKOUT_COUNT.value: SeriesMeta(
        label="Daily Workouts",
        unit="workouts",
        color="#4CAF50",
        background_color="rgba(76, 175, 80, 0.1)",
        axis_id="y",
    ),
    MetricName.CALORIES_CONSUMED.value: SeriesMeta(
        label="Calories Consumed",
        unit="kcal",
        color="#2196F3",
        background_color="rgba(33, 150, 243, 0.1)",
        axis_id="y1",
    ),
    MetricName.GOALS_PROGRESS.value: SeriesMeta(
        label="Goals Progress",
        unit="%",
        color="#FFC107",
        background_color="rgba(255, 193, 7, 0.1)",
        axis_id="y2",
    ),
})


class SeriesProjector:
    """Stateless projection of samples into per-metric point lists."""

    metadata: Mapping[str, SeriesMeta] = SERIES_METADATA

    def project(self, samples: Sequence[MetricSample]) -> dict[str, list[ChartPoint]]:
        """Build one series per metric, in buffer order.

        A sample that lacks a metric contributes no point to that series;
        gaps are not filled.

        Args:
            samples: Samples oldest first.

        Returns:
            Mapping of every known metric name to its points.
        """
        series: dict[str, list[ChartPoint]] = {name: [] for name in METRIC_NAMES}
        for sample in samples:
            for name in METRIC_NAMES:
                value = sample.get(name)
                if value is not None:
                    series[name].append(ChartPoint(x=sample.timestamp, y=value))
        return series

    def latest_values(self, samples: Sequence[MetricSample]) -> dict[str, float]:
        """Return the metrics of the most recent sample."""
        if not samples:
            return {}
        return dict(samples[-1].fields)

    def locate(self, samples: Sequence[MetricSample], metric: str, index: int) -> MetricSample:
        """Resolve a point of a projected series back to its sample.

        Args:
            samples: Samples the series was projected from.
            metric: Metric name of the series.
            index: Position of the point in that series.

        Returns:
            The sample that produced the point.

        Raises:
            KeyError: If the metric is unknown.
            IndexError: If the series has no point at `index`.
        """
        if metric not in self.metadata:
            raise KeyError(metric)
        contributing = [s for s in samples if s.get(metric) is not None]
        if index < 0:
            raise IndexError(index)
        return contributing[index]

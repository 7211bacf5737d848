"""Tests for query metrics collection."""

from src.adapters.driven.metrics.http_metrics import Metrics
from src.ports.metrics import QueryAttemptDto

__all__ = []

PATH = "/rest/v1/workouts"


def test_metrics_initialization() -> None:
    """Metrics should initialize with empty window."""
    metrics = Metrics()
    assert str(metrics) == "Metrics: waiting for data …"
    assert metrics.failure_rate == 0.0


def test_metrics_calculates_latency() -> None:
    """Metrics should report average latency in milliseconds."""
    metrics = Metrics(window_size=10)
    metrics.update(QueryAttemptDto(PATH, 100.0, 100.1, False, 200))
    metrics.update(QueryAttemptDto(PATH, 200.0, 200.3, False, 200))

    output = str(metrics)
    assert "latency= 200.0 ms" in output
    assert "status=200" in output


def test_metrics_tracks_failures() -> None:
    """Metrics should track failure rate, with 0 status for network errors."""
    metrics = Metrics(window_size=10)

    for i in range(3):
        metrics.update(QueryAttemptDto(PATH, 100.0 + i, 100.0 + i, False, 200))
    metrics.update(QueryAttemptDto(PATH, 104.0, 104.0, True, None))

    assert metrics.failure_rate == 0.25
    output = str(metrics)
    assert "fail= 25.0%" in output
    assert "status=  0" in output


def test_metrics_respects_window_size() -> None:
    """Metrics should maintain sliding window of specified size."""
    metrics = Metrics(window_size=5)

    for i in range(10):
        metrics.update(QueryAttemptDto(PATH, 100.0 + i, 100.0 + i, False, 200))

    output = str(metrics)
    assert "win=5/5" in output
    assert "total=10" in output

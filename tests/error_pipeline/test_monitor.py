"""Tests for error-rate windows, health status and alerting."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

import pytest

from packages.error_pipeline.config import MonitorSettings
from packages.error_pipeline.errors import (
    BusinessLogicError,
    DatabaseError,
    InternalError,
    Severity,
    TaxonomyError,
    ValidationError,
)
from packages.error_pipeline.logging.structured import StructuredLogger
from packages.error_pipeline.monitoring import (
    CheckResult,
    ErrorMonitor,
    HealthSnapshot,
    HealthStatus,
    SlidingWindow,
)


@dataclass
class FakeClock:
    now: float = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class RecordingSink:
    alerts: list[tuple[Severity, TaxonomyError, HealthSnapshot]] = field(default_factory=list)

    def notify(self, severity: Severity, error: TaxonomyError, snapshot: HealthSnapshot) -> None:
        self.alerts.append((severity, error, snapshot))


class ExplodingSink:
    def notify(self, severity: Severity, error: TaxonomyError, snapshot: HealthSnapshot) -> None:
        raise RuntimeError("pager offline")


def test_fresh_monitor_is_healthy() -> None:
    """No samples means zero rates and HEALTHY."""
    snapshot = ErrorMonitor().perform_health_check()
    assert snapshot.status is HealthStatus.HEALTHY
    assert snapshot.error_rate == 0.0
    assert snapshot.avg_response_time == 0.0


def test_critical_errors_make_status_unhealthy_and_alert() -> None:
    """Each CRITICAL record alerts; the window ends up unhealthy."""
    sink = RecordingSink()
    monitor = ErrorMonitor(alert_sink=sink)

    for _ in range(3):
        monitor.record_error(InternalError(message="boom"))

    assert monitor.perform_health_check().status is HealthStatus.UNHEALTHY
    critical_alerts = [alert for alert in sink.alerts if alert[0] is Severity.CRITICAL]
    assert len(critical_alerts) >= 3


def test_low_severity_errors_keep_status_healthy() -> None:
    """Rates count only HIGH and CRITICAL samples."""
    monitor = ErrorMonitor()
    for _ in range(20):
        monitor.record_error(ValidationError(message="bad"))
    snapshot = monitor.perform_health_check()
    assert snapshot.status is HealthStatus.HEALTHY
    assert snapshot.sample_count == 20


def test_warning_threshold_gives_degraded() -> None:
    """A severe share between the thresholds is DEGRADED."""
    monitor = ErrorMonitor(MonitorSettings(warning_threshold=0.1, critical_threshold=0.5))
    monitor.record_error(DatabaseError(message="db"))
    for _ in range(4):
        monitor.record_error(BusinessLogicError(message="rule"))

    snapshot = monitor.perform_health_check()
    assert snapshot.error_rate == pytest.approx(0.2)
    assert snapshot.status is HealthStatus.DEGRADED


def test_memory_is_bounded_by_window_size() -> None:
    """Recording far more than the window size retains at most the window size."""
    monitor = ErrorMonitor(MonitorSettings(window_size=10))
    for _ in range(500):
        monitor.record_error(ValidationError(message="bad"))
    assert monitor.window_capacity == 10
    assert monitor.retained_samples() == 10


def test_old_samples_age_out_of_the_window() -> None:
    """Samples older than the time horizon stop counting."""
    clock = FakeClock()
    monitor = ErrorMonitor(MonitorSettings(window_seconds=60), clock=clock)
    monitor.record_error(InternalError(message="boom"))
    assert monitor.perform_health_check().status is HealthStatus.UNHEALTHY

    clock.advance(61)
    snapshot = monitor.perform_health_check()
    assert snapshot.status is HealthStatus.HEALTHY
    assert snapshot.sample_count == 0


def test_threshold_alert_fires_once_per_crossing() -> None:
    """Rising past the critical threshold alerts on the upward crossing only."""
    sink = RecordingSink()
    monitor = ErrorMonitor(MonitorSettings(critical_threshold=0.5), alert_sink=sink)

    for _ in range(3):
        monitor.record_error(DatabaseError(message="db"))

    assert len(sink.alerts) == 1
    assert sink.alerts[0][2].error_rate > 0.5


def test_cooldown_suppresses_repeat_alerts() -> None:
    """Within the cooldown only the first CRITICAL alert is delivered."""
    clock = FakeClock()
    sink = RecordingSink()
    monitor = ErrorMonitor(
        MonitorSettings(alert_cooldown_seconds=30, critical_threshold=1.0, warning_threshold=1.0),
        alert_sink=sink,
        clock=clock,
    )

    monitor.record_error(InternalError(message="one"))
    monitor.record_error(InternalError(message="two"))
    clock.advance(31)
    monitor.record_error(InternalError(message="three"))

    assert [alert[1].message for alert in sink.alerts] == ["one", "three"]


def test_failing_sink_does_not_break_recording() -> None:
    """Alert delivery errors are logged, not raised."""
    monitor = ErrorMonitor(alert_sink=ExplodingSink())
    monitor.record_error(InternalError(message="boom"))
    assert monitor.retained_samples() == 1


def test_custom_health_check_failure_makes_unhealthy() -> None:
    """A registered check that fails or raises forces UNHEALTHY."""
    monitor = ErrorMonitor()
    monitor.register_health_check("database", lambda: True)
    assert monitor.perform_health_check().status is HealthStatus.HEALTHY

    def broken() -> bool:
        raise ConnectionError("refused")

    monitor.register_health_check("cache", broken)
    snapshot = monitor.perform_health_check()
    assert snapshot.status is HealthStatus.UNHEALTHY
    assert snapshot.checks["database"] == CheckResult(ready=True, detail="ok")
    assert snapshot.checks["cache"].ready is False

    monitor.unregister_health_check("cache")
    assert monitor.perform_health_check().status is HealthStatus.HEALTHY


def test_average_response_time_uses_recorded_durations() -> None:
    """Durations from errors and performance records are averaged."""
    monitor = ErrorMonitor()
    monitor.record_error(ValidationError(message="bad"), {"operationName": "createTodo", "duration": 100})
    monitor.record_performance("listTodos", 300)
    assert monitor.perform_health_check().avg_response_time == pytest.approx(200.0)


def test_error_counts_and_reset() -> None:
    """Counts are grouped by category and cleared by reset."""
    monitor = ErrorMonitor()
    monitor.record_error(ValidationError(message="a"))
    monitor.record_error(ValidationError(message="b"))
    monitor.record_error(DatabaseError(message="c"))

    assert monitor.error_counts() == {"VALIDATION": 2, "DATABASE": 1}
    monitor.reset()
    assert monitor.error_counts() == {}


def test_concurrent_recording_keeps_counts_consistent() -> None:
    """Parallel writers never lose or exceed window bounds."""
    monitor = ErrorMonitor(MonitorSettings(window_size=5000))

    def worker() -> None:
        for _ in range(200):
            monitor.record_error(ValidationError(message="bad"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert monitor.retained_samples() == 1600


def test_snapshot_wire_shape() -> None:
    """``to_dict`` uses camelCase keys."""
    snapshot = ErrorMonitor().perform_health_check().to_dict()
    assert set(snapshot) == {"status", "errorRate", "avgResponseTime", "timestamp", "sampleCount", "checks"}


def test_sliding_window_rejects_non_positive_bounds() -> None:
    """Windows must have a positive size and age."""
    with pytest.raises(ValueError):
        SlidingWindow(max_size=0, max_age_seconds=1)
    with pytest.raises(ValueError):
        SlidingWindow(max_size=1, max_age_seconds=0)


def test_sliding_window_total_follows_eviction_by_count() -> None:
    """Items pushed out by a full window stop contributing to the total."""
    window: SlidingWindow[int] = SlidingWindow(max_size=3, max_age_seconds=60, weight=lambda item: item)
    for weight in (1, 0, 1, 0, 0):
        window.append(0.0, weight)

    assert len(window) == 3
    assert window.total == 1
    assert list(window) == [1, 0, 0]


def test_sliding_window_total_follows_eviction_by_age() -> None:
    """Pruning by age subtracts the dropped weights; an empty window totals zero."""
    window: SlidingWindow[float] = SlidingWindow(max_size=10, max_age_seconds=5, weight=float)
    window.append(0.0, 0.1)
    window.append(3.0, 0.2)

    window.prune(6.0)
    assert len(window) == 1
    assert window.total == pytest.approx(0.2)

    window.prune(9.0)
    assert len(window) == 0
    assert window.total == 0


def test_error_rate_reflects_only_retained_samples_after_wrap() -> None:
    """Severe samples pushed out of a full window no longer count toward the rate."""
    monitor = ErrorMonitor(MonitorSettings(window_size=3))
    monitor.record_error(DatabaseError(message="db"))
    monitor.record_error(ValidationError(message="bad"))
    monitor.record_error(DatabaseError(message="db"))
    monitor.record_error(ValidationError(message="bad"))
    monitor.record_error(ValidationError(message="bad"))

    snapshot = monitor.perform_health_check()
    assert snapshot.sample_count == 3
    assert snapshot.error_rate == pytest.approx(1 / 3)


def test_average_response_time_after_wrap() -> None:
    """Only the retained durations are averaged."""
    monitor = ErrorMonitor(MonitorSettings(window_size=2))
    for duration in (1000, 10, 30):
        monitor.record_performance("listTodos", duration)
    assert monitor.perform_health_check().avg_response_time == pytest.approx(20.0)


def test_high_severity_errors_are_logged_on_record(caplog: pytest.LogCaptureFixture) -> None:
    """HIGH and CRITICAL errors emit one error record each; lower ones do not."""
    logger = StructuredLogger(logging.getLogger("tests.monitor"))
    monitor = ErrorMonitor(alert_sink=RecordingSink(), logger=logger)
    error = DatabaseError(message="db")

    with caplog.at_level(logging.DEBUG, logger="tests.monitor"):
        monitor.record_error(ValidationError(message="bad"))
        monitor.record_error(error, {"operationName": "createTodo"})

    records = [
        record
        for record in caplog.records
        if record.name == "tests.monitor"
        and record.fields.get("context", {}).get("event") == "high_severity_error"
    ]
    (record,) = records
    context = record.fields["context"]
    assert record.levelno == logging.ERROR
    assert context["requestId"] == error.request_id
    assert context["code"] == error.code.value
    assert context["severity"] == Severity.HIGH.value
    assert context["operationName"] == "createTodo"
    assert context["errorRate"] == pytest.approx(0.5)


def test_high_severity_errors_are_logged_without_structured_logger(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Without an injected logger the module logger carries the record."""
    monitor = ErrorMonitor(alert_sink=RecordingSink())
    with caplog.at_level(logging.DEBUG):
        monitor.record_error(InternalError(message="boom"))

    events = [getattr(record, "fields", {}).get("event") for record in caplog.records]
    assert "high_severity_error" in events

"""Error-rate tracking, health evaluation and alerting.

``ErrorMonitor`` owns the only shared mutable state in the pipeline. One
instance is constructed per process and injected where errors are handled.
All window updates happen under a single lock, and alert sinks and custom
health checks run outside it.

``error_rate`` is the share of HIGH and CRITICAL samples among the errors
retained in the window. Both windows keep running totals, so recording an
error and reading a snapshot cost the same at any window size.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from packages.error_pipeline.config import MonitorSettings
from packages.error_pipeline.errors import Severity, TaxonomyError, utc_now_ms
from packages.error_pipeline.logging import fields, get_logger
from packages.error_pipeline.logging.structured import StructuredLogger

from .alerts import AlertReason, AlertSink, LoggingAlertSink
from .window import ErrorSample, SlidingWindow

_LOGGER = get_logger(__name__)

HealthCheck = Callable[[], object]


class HealthStatus(str, Enum):
    """Overall health classification."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class CheckResult(BaseModel):
    """Outcome of one registered health check."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str = ""


class HealthSnapshot(BaseModel):
    """Point-in-time health of the error stream."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: HealthStatus
    error_rate: float
    avg_response_time: float
    timestamp: datetime
    sample_count: int = 0
    checks: dict[str, CheckResult] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase wire shape."""
        return {
            "status": self.status.value,
            "errorRate": self.error_rate,
            "avgResponseTime": self.avg_response_time,
            "timestamp": self.timestamp.isoformat(),
            "sampleCount": self.sample_count,
            "checks": {name: result.model_dump() for name, result in self.checks.items()},
        }


class ErrorMonitor:
    """Aggregate error occurrences into rates, health status and alerts."""

    def __init__(
        self,
        settings: MonitorSettings | None = None,
        *,
        alert_sink: AlertSink | None = None,
        logger: StructuredLogger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or MonitorSettings()
        self._sink: AlertSink = alert_sink or LoggingAlertSink()
        self._logger = logger
        self._clock = clock
        self._lock = threading.Lock()
        self._errors: SlidingWindow[ErrorSample] = SlidingWindow(
            max_size=self._settings.window_size,
            max_age_seconds=self._settings.window_seconds,
            weight=_severe_weight,
        )
        self._durations: SlidingWindow[float] = SlidingWindow(
            max_size=self._settings.window_size,
            max_age_seconds=self._settings.window_seconds,
            weight=float,
        )
        self._checks: dict[str, HealthCheck] = {}
        self._above_critical = False
        self._last_alert: dict[AlertReason, float] = {}

    @property
    def settings(self) -> MonitorSettings:
        return self._settings

    @property
    def window_capacity(self) -> int:
        """Return the maximum number of retained error samples."""
        return self._errors.capacity

    def retained_samples(self) -> int:
        """Return how many error samples the window currently holds."""
        with self._lock:
            return len(self._errors)

    def record_error(self, error: TaxonomyError, meta: Mapping[str, Any] | None = None) -> None:
        """Record one error occurrence; may notify the alert sink.

        ``meta`` accepts ``operationName`` and ``duration`` (milliseconds).
        """
        operation_name, duration_ms = _parse_meta(meta)
        severity = error.severity or Severity.MEDIUM
        sample = ErrorSample(
            code=error.code.value,
            category=error.category,
            severity=severity,
            request_id=error.request_id,
            operation_name=operation_name,
            duration_ms=duration_ms,
        )

        with self._lock:
            now = self._clock()
            self._errors.append(now, sample)
            if duration_ms is not None:
                self._durations.append(now, duration_ms)
            snapshot = self._snapshot_locked(now)

            reasons: list[AlertReason] = []
            if severity is Severity.CRITICAL:
                reasons.append(AlertReason.CRITICAL_ERROR)
            above = snapshot.error_rate > self._settings.critical_threshold
            if above and not self._above_critical:
                reasons.append(AlertReason.ERROR_RATE_THRESHOLD)
            self._above_critical = above
            due = [reason for reason in reasons if self._claim_alert_locked(reason, now)]

        if sample.is_severe:
            self._log_high_severity(error, snapshot, operation_name)
        for reason in due:
            self._dispatch(reason, severity, error, snapshot)

    def record_performance(self, operation_name: str, duration_ms: float) -> None:
        """Record an operation duration for ``avg_response_time``."""
        with self._lock:
            self._durations.append(self._clock(), float(duration_ms))

        if self._logger is not None:
            self._logger.log_performance(operation_name, duration_ms)
        elif duration_ms > self._settings.slow_operation_ms:
            _LOGGER.warning(
                "slow operation detected",
                extra={
                    fields.FIELDS: {
                        fields.EVENT: fields.PERFORMANCE_EVENT,
                        fields.OPERATION_NAME: operation_name,
                        fields.DURATION_MS: duration_ms,
                        fields.SLOW: True,
                    }
                },
            )

    def register_health_check(self, name: str, check: HealthCheck) -> None:
        """Register an extra check; a failing check makes status unhealthy."""
        with self._lock:
            self._checks[name] = check

    def unregister_health_check(self, name: str) -> None:
        with self._lock:
            self._checks.pop(name, None)

    def perform_health_check(self) -> HealthSnapshot:
        """Evaluate current health. Never raises."""
        with self._lock:
            base = self._snapshot_locked(self._clock())
            checks = dict(self._checks)

        results = {name: _run_check(name, check) for name, check in checks.items()}
        status = base.status
        if any(not result.ready for result in results.values()):
            status = HealthStatus.UNHEALTHY
        snapshot = base.model_copy(update={"status": status, "checks": results})

        if self._logger is not None:
            self._logger.log_health_check(
                snapshot.status.value,
                {"errorRate": snapshot.error_rate, "avgResponseTime": snapshot.avg_response_time},
            )
        return snapshot

    def error_counts(self) -> dict[str, int]:
        """Return retained error counts keyed by category."""
        with self._lock:
            samples = self._errors.items(self._clock())
        counts: dict[str, int] = {}
        for sample in samples:
            counts[sample.category.value] = counts.get(sample.category.value, 0) + 1
        return counts

    def reset(self) -> None:
        """Forget every retained sample and alert timestamp."""
        with self._lock:
            self._errors.clear()
            self._durations.clear()
            self._above_critical = False
            self._last_alert.clear()

    def _snapshot_locked(self, now: float) -> HealthSnapshot:
        self._errors.prune(now)
        self._durations.prune(now)
        count = len(self._errors)
        rate = self._errors.total / count if count else 0.0
        avg = self._durations.total / len(self._durations) if self._durations else 0.0
        return HealthSnapshot(
            status=self._status_for(rate),
            error_rate=rate,
            avg_response_time=avg,
            timestamp=utc_now_ms(),
            sample_count=count,
        )

    def _status_for(self, rate: float) -> HealthStatus:
        if rate > self._settings.critical_threshold:
            return HealthStatus.UNHEALTHY
        if rate > self._settings.warning_threshold:
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY

    def _claim_alert_locked(self, reason: AlertReason, now: float) -> bool:
        cooldown = self._settings.alert_cooldown_seconds
        last = self._last_alert.get(reason)
        if cooldown > 0 and last is not None and now - last < cooldown:
            return False
        self._last_alert[reason] = now
        return True

    def _log_high_severity(
        self,
        error: TaxonomyError,
        snapshot: HealthSnapshot,
        operation_name: str | None,
    ) -> None:
        if self._logger is not None:
            self._logger.log_high_severity(
                error, error_rate=snapshot.error_rate, operation_name=operation_name
            )
            return
        _LOGGER.error(
            "high severity error detected",
            extra={
                fields.FIELDS: {
                    fields.EVENT: fields.HIGH_SEVERITY_EVENT,
                    fields.ERROR_CODE: error.code.value,
                    fields.REQUEST_ID: error.request_id,
                    fields.SEVERITY: (error.severity or Severity.MEDIUM).value,
                    fields.ERROR_RATE: snapshot.error_rate,
                }
            },
        )

    def _dispatch(
        self,
        reason: AlertReason,
        severity: Severity,
        error: TaxonomyError,
        snapshot: HealthSnapshot,
    ) -> None:
        alert_severity = Severity.CRITICAL if reason is AlertReason.CRITICAL_ERROR else severity
        try:
            self._sink.notify(alert_severity, error, snapshot)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error(
                "alert sink failed",
                extra={
                    fields.FIELDS: {
                        fields.EVENT: fields.ALERT_DELIVERY_FAILURE_EVENT,
                        fields.REQUEST_ID: error.request_id,
                        "reason": reason.value,
                        "exceptionType": type(exc).__name__,
                    }
                },
            )


def _severe_weight(sample: ErrorSample) -> int:
    return 1 if sample.is_severe else 0


def _parse_meta(meta: Mapping[str, Any] | None) -> tuple[str | None, float | None]:
    if not meta:
        return None, None
    operation = meta.get("operationName", meta.get("operation_name"))
    duration = meta.get("duration", meta.get("duration_ms"))
    try:
        duration_ms = None if duration is None else float(duration)
    except (TypeError, ValueError):
        duration_ms = None
    return (None if operation is None else str(operation)), duration_ms


def _run_check(name: str, check: HealthCheck) -> CheckResult:
    try:
        result = check()
    except Exception as exc:  # noqa: BLE001
        _LOGGER.warning(
            "health check raised",
            extra={
                fields.FIELDS: {
                    fields.EVENT: fields.HEALTH_CHECK_FAILURE_EVENT,
                    "check": name,
                    "exceptionType": type(exc).__name__,
                }
            },
        )
        return CheckResult(ready=False, detail=f"check raised {type(exc).__name__}")
    if isinstance(result, CheckResult):
        return result
    if isinstance(result, bool):
        return CheckResult(ready=result, detail="ok" if result else "check failed")
    return CheckResult(ready=False, detail="check returned unsupported result")

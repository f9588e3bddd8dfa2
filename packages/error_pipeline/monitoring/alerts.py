"""Alert sink interface and the default logging sink."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Protocol

from packages.error_pipeline.errors import Severity, TaxonomyError
from packages.error_pipeline.logging import fields, get_logger

if TYPE_CHECKING:
    from .monitor import HealthSnapshot

_LOGGER = get_logger(__name__)


class AlertReason(str, Enum):
    """Why the monitor raised an alert."""

    CRITICAL_ERROR = "critical_error"
    ERROR_RATE_THRESHOLD = "error_rate_threshold"


class AlertSink(Protocol):
    """Receives alerts from ``ErrorMonitor``; delivery is up to the sink."""

    def notify(
        self,
        severity: Severity,
        error: TaxonomyError,
        snapshot: HealthSnapshot,
    ) -> None:
        """Deliver one alert."""


class LoggingAlertSink:
    """Alert sink that writes alerts to the log stream."""

    def notify(
        self,
        severity: Severity,
        error: TaxonomyError,
        snapshot: HealthSnapshot,
    ) -> None:
        _LOGGER.error(
            "alert: %s %s",
            severity.value,
            error.code.value,
            extra={
                fields.FIELDS: {
                    fields.EVENT: fields.ALERT_EVENT,
                    fields.SEVERITY: severity.value,
                    fields.REQUEST_ID: error.request_id,
                    fields.STATUS: snapshot.status.value,
                    "errorRate": snapshot.error_rate,
                }
            },
        )


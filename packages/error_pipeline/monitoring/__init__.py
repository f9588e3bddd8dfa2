"""Error-rate monitoring, health evaluation and alerting."""

from .alerts import AlertReason, AlertSink, LoggingAlertSink
from .monitor import CheckResult, ErrorMonitor, HealthSnapshot, HealthStatus
from .window import ErrorSample, SlidingWindow

__all__ = [
    "AlertReason",
    "AlertSink",
    "CheckResult",
    "ErrorMonitor",
    "ErrorSample",
    "HealthSnapshot",
    "HealthStatus",
    "LoggingAlertSink",
    "SlidingWindow",
]

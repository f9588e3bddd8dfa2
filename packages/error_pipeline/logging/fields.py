"""Canonical structured-log field names.

Keys emitted by the pipeline's log records. Error payload keys use the same
camelCase spelling as the client-facing error payload so a log line and a
response can be correlated by ``requestId``.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"
EXCEPTION = "exception"

# Record payload.
FIELDS = "fields"
CONTEXT = "context"
CONTEXT_DROPPED = "contextDropped"
ERROR = "error"

# Correlation.
REQUEST_ID = "requestId"
OPERATION_NAME = "operationName"

# Event names.
ERROR_EVENT = "taxonomy_error"
SECURITY_EVENT = "security_event"
SECURITY_VIOLATION_EVENT = "security_violation"
HEALTH_CHECK_EVENT = "health_check"
PERFORMANCE_EVENT = "performance"
ALERT_EVENT = "alert"
HIGH_SEVERITY_EVENT = "high_severity_error"
ALERT_DELIVERY_FAILURE_EVENT = "alert_delivery_failure"
HEALTH_CHECK_FAILURE_EVENT = "health_check_failure"
FORMATTER_FAILURE_EVENT = "formatter_failure"

# Event payload.
DURATION_MS = "durationMs"
SLOW = "slow"
STATUS = "status"
RISK_LEVEL = "riskLevel"
VIOLATIONS = "violations"
SEVERITY = "severity"
ERROR_CODE = "code"
ERROR_RATE = "errorRate"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"

"""Wire every pipeline stage together from typed settings.

Request handlers hold one ``ErrorPipeline`` per process. ``handle`` sends an
error to the structured logger and the monitor, then returns the client
payload from the response formatter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from packages.error_pipeline.config import PipelineSettings, load_settings
from packages.error_pipeline.errors import TaxonomyError, exception_to_error
from packages.error_pipeline.formatting import FormattingPolicy, ResponseFormatter
from packages.error_pipeline.i18n import LocaleCatalog, LocaleConfig, PolitenessLevel
from packages.error_pipeline.logging import configure_logging, fields, get_logger, request_scope
from packages.error_pipeline.logging.structured import StructuredLogger
from packages.error_pipeline.monitoring import AlertSink, ErrorMonitor
from packages.error_pipeline.security import SecurityContext, SecurityFilter, SecurityPolicy


@dataclass(frozen=True)
class HandledError:
    """What ``ErrorPipeline.handle`` produced for one error."""

    payload: dict[str, Any]
    http_status: int
    error: TaxonomyError


class ErrorPipeline:
    """Logger, monitor and formatter sharing one filter and catalog."""

    def __init__(
        self,
        *,
        security_filter: SecurityFilter,
        catalog: LocaleCatalog,
        logger: StructuredLogger,
        monitor: ErrorMonitor,
        formatter: ResponseFormatter,
    ) -> None:
        self.security_filter = security_filter
        self.catalog = catalog
        self.logger = logger
        self.monitor = monitor
        self.formatter = formatter

    @classmethod
    def from_settings(
        cls,
        settings: PipelineSettings | None = None,
        *,
        alert_sink: AlertSink | None = None,
        configure_root_logging: bool = False,
    ) -> ErrorPipeline:
        """Build every stage from ``settings`` (loaded from sources when omitted)."""
        resolved = settings or load_settings()
        if configure_root_logging:
            configure_logging(
                level=resolved.logging.level,
                json_output=resolved.logging.json_output,
                service=resolved.logging.service,
                environment=resolved.environment,
            )

        security_filter = SecurityFilter(
            SecurityPolicy(
                is_production=resolved.is_production,
                enable_data_masking=resolved.security.enable_data_masking,
                sensitive_keys=tuple(resolved.security.sensitive_keys),
            )
        )
        catalog = LocaleCatalog(
            LocaleConfig(
                locale=resolved.locale.default_locale,
                fallback_locale=resolved.locale.default_locale,
                politeness=PolitenessLevel(resolved.locale.politeness),
            )
        )
        logger = StructuredLogger(
            get_logger("error_pipeline"),
            security_filter=security_filter,
            is_production=resolved.is_production,
            slow_operation_ms=resolved.monitor.slow_operation_ms,
        )
        monitor = ErrorMonitor(resolved.monitor, alert_sink=alert_sink, logger=logger)
        formatter = ResponseFormatter(
            FormattingPolicy.for_settings(resolved),
            security_filter=security_filter,
            catalog=catalog,
        )
        return cls(
            security_filter=security_filter,
            catalog=catalog,
            logger=logger,
            monitor=monitor,
            formatter=formatter,
        )

    def handle(
        self,
        error: TaxonomyError,
        meta: Mapping[str, Any] | None = None,
        *,
        security_context: SecurityContext | None = None,
        locale: str | None = None,
    ) -> HandledError:
        """Log and record ``error``, then return its client payload."""
        operation_name = (meta or {}).get(fields.OPERATION_NAME)
        with request_scope(error.request_id, operation_name=operation_name):
            self.logger.log_error(error)
            self.monitor.record_error(error, meta)
            payload = self.formatter.format_error(error, security_context, locale)
        return HandledError(
            payload=payload.to_wire(),
            http_status=self.formatter.http_status(error),
            error=error,
        )

    def handle_exception(
        self,
        exc: BaseException,
        meta: Mapping[str, Any] | None = None,
        *,
        security_context: SecurityContext | None = None,
        locale: str | None = None,
    ) -> HandledError:
        """Normalize ``exc`` into the taxonomy, then ``handle`` it."""
        return self.handle(
            exception_to_error(exc),
            meta,
            security_context=security_context,
            locale=locale,
        )

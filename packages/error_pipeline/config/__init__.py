"""Public configuration API for the error pipeline."""

from .loader import load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    FormatterSettings,
    LocaleSettings,
    LoggingSettings,
    MonitorSettings,
    PipelineSettings,
    SecuritySettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "FormatterSettings",
    "LocaleSettings",
    "LoggingSettings",
    "MonitorSettings",
    "PipelineSettings",
    "SecuritySettings",
    "load_settings",
]

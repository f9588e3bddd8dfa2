"""Typed configuration models for the error pipeline."""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from packages.error_pipeline.security.patterns import DEFAULT_SENSITIVE_KEYS

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "error-pipeline" / "error-pipeline.yaml"

_CONFIG_PATH: ContextVar[Path] = ContextVar("error_pipeline_config_path", default=DEFAULT_CONFIG_PATH)

Environment = Literal["development", "test", "production"]


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "error-pipeline"


class SecuritySettings(BaseModel):
    """Masking policy inputs for the security filter."""

    enable_data_masking: bool = True
    sensitive_keys: list[str] = Field(default_factory=lambda: list(DEFAULT_SENSITIVE_KEYS))


class LocaleSettings(BaseModel):
    """Default locale and register for user-facing messages."""

    default_locale: str = "en-US"
    politeness: Literal["business", "casual", "formal", "polite"] = "polite"


class MonitorSettings(BaseModel):
    """Error window bounds, health thresholds and alerting knobs."""

    window_size: int = Field(default=1000, gt=0)
    window_seconds: float = Field(default=3600.0, gt=0)
    warning_threshold: float = Field(default=0.1, ge=0, le=1)
    critical_threshold: float = Field(default=0.5, ge=0, le=1)
    alert_cooldown_seconds: float = Field(default=0.0, ge=0)
    slow_operation_ms: float = Field(default=5000.0, gt=0)

    @model_validator(mode="after")
    def _check_threshold_order(self) -> MonitorSettings:
        if self.warning_threshold > self.critical_threshold:
            raise ValueError("monitor.warning_threshold must not exceed monitor.critical_threshold")
        return self


class FormatterSettings(BaseModel):
    """Response formatting overrides; ``None`` derives from the environment."""

    include_stack_trace: bool | None = None
    hide_internal_details: bool | None = None
    sanitize_sensitive_data: bool = True
    localize_messages: bool = True


class PipelineSettings(BaseSettings):
    """Root settings resolved from init/env/yaml/default sources."""

    model_config = SettingsConfigDict(
        env_prefix="ERROR_PIPELINE_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    environment: Environment = "development"
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    locale: LocaleSettings = Field(default_factory=LocaleSettings)
    monitor: MonitorSettings = Field(default_factory=MonitorSettings)
    formatter: FormatterSettings = Field(default_factory=FormatterSettings)

    @property
    def is_production(self) -> bool:
        """Return True when running with production masking and hiding."""
        return self.environment == "production"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply precedence: init > env > yaml > defaults."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=_CONFIG_PATH.get(),
                yaml_file_encoding="utf-8",
            ),
        )

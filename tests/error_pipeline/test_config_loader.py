"""Tests for settings precedence and validation."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from packages.error_pipeline.config import MonitorSettings, load_settings


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("ERROR_PIPELINE_"):
            monkeypatch.delenv(key, raising=False)


def _write_yaml(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "error-pipeline.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_when_no_sources(tmp_path: Path) -> None:
    """A missing YAML file yields built-in defaults."""
    settings = load_settings(config_path=tmp_path / "missing.yaml")

    assert settings.environment == "development"
    assert settings.is_production is False
    assert settings.monitor.window_size == 1000
    assert settings.locale.default_locale == "en-US"


def test_yaml_values_are_loaded(tmp_path: Path) -> None:
    """Nested YAML sections populate the typed models."""
    path = _write_yaml(
        tmp_path,
        "environment: production\n"
        "monitor:\n"
        "  window_size: 50\n"
        "locale:\n"
        "  default_locale: ja-JP\n",
    )
    settings = load_settings(config_path=path)

    assert settings.is_production is True
    assert settings.monitor.window_size == 50
    assert settings.monitor.critical_threshold == 0.5
    assert settings.locale.default_locale == "ja-JP"


def test_env_overrides_yaml_and_cli_overrides_env(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Precedence is cli params, then environment, then YAML, then defaults."""
    path = _write_yaml(tmp_path, "environment: test\nmonitor:\n  window_size: 50\n")
    monkeypatch.setenv("ERROR_PIPELINE_MONITOR__WINDOW_SIZE", "75")
    monkeypatch.setenv("ERROR_PIPELINE_ENVIRONMENT", "production")

    from_env = load_settings(config_path=path)
    assert from_env.monitor.window_size == 75
    assert from_env.environment == "production"

    from_cli = load_settings(config_path=path, cli_params={"environment": "development"})
    assert from_cli.environment == "development"
    assert from_cli.monitor.window_size == 75


def test_threshold_order_is_validated() -> None:
    """Warning above critical is a configuration error."""
    with pytest.raises(ValidationError):
        MonitorSettings(warning_threshold=0.8, critical_threshold=0.5)


def test_invalid_environment_is_rejected(tmp_path: Path) -> None:
    """Unknown environment names fail validation."""
    path = _write_yaml(tmp_path, "environment: staging\n")
    with pytest.raises(ValidationError):
        load_settings(config_path=path)

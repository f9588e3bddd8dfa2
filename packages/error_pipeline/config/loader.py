"""Settings loading with deterministic precedence.

The cascade is always:
1) explicit ``cli_params``
2) environment variables
3) YAML file (``~/.config/error-pipeline/error-pipeline.yaml`` by default)
4) built-in defaults

Environment variable format:
- Prefix: ``ERROR_PIPELINE_``
- Nested keys: ``__`` separator
- Example: ``ERROR_PIPELINE_MONITOR__CRITICAL_THRESHOLD=0.3``
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from .models import _CONFIG_PATH, DEFAULT_CONFIG_PATH, PipelineSettings


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> PipelineSettings:
    """Resolve ``PipelineSettings`` from every source.

    A missing YAML file is treated as empty. Invalid values raise pydantic's
    ``ValidationError``.
    """
    path = Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH
    token = _CONFIG_PATH.set(path)
    try:
        return PipelineSettings(**dict(cli_params or {}))
    finally:
        _CONFIG_PATH.reset(token)

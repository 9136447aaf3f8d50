"""Validation entrypoints for config payloads."""

from __future__ import annotations

from lokal_schemas.config import RunConfig
from lokal_schemas.primitives import JsonValue


def validate_run_config(payload: dict[str, JsonValue]) -> RunConfig:
    """Validate a run configuration payload.

    Args:
        payload: Parsed TOML payload.

    Returns:
        RunConfig: Validated configuration with defaults applied.
    """
    return RunConfig.model_validate(payload, strict=False)

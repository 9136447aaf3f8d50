"""Common pytest configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from lokal_schemas.config import ProfileConfig, RunConfig


@pytest.fixture(autouse=True)
def _isolate_provider_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real provider credentials out of tests."""
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("OPENROUTER_MODEL", raising=False)


@pytest.fixture
def run_config(tmp_path: Path) -> RunConfig:
    """Build a run config with zero pacing and a noop log sink.

    Returns:
        RunConfig: Validated configuration for orchestrator tests.
    """
    return RunConfig.model_validate(
        {
            "retry": {"max_attempts": 1, "delay_s": 0},
            "concurrency": {
                "max_parallel_requests": 2,
                "chunk_size": 50,
                "request_pause_s": 0,
                "chunk_pause_s": 0,
            },
            "logging": {"sinks": [{"type": "noop"}]},
            "profiles": {
                "backend": {
                    "source": "source.json",
                    "source_shape": "flat",
                    "output_dir": str(tmp_path),
                    "batch_delay_s": 0,
                }
            },
        },
        strict=False,
    )


@pytest.fixture
def backend_profile(run_config: RunConfig) -> ProfileConfig:
    """Return the backend profile from the run config.

    Returns:
        ProfileConfig: Backend profile writing into tmp_path.
    """
    return run_config.get_profile("backend")

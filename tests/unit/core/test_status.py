"""Unit tests for artifact status reporting."""

from __future__ import annotations

from pathlib import Path

import pytest

from lokal_core.ports.artifact import (
    ArtifactError,
    ArtifactErrorCode,
    ArtifactErrorInfo,
    RunSummary,
)
from lokal_core.status import build_status_report
from lokal_schemas.config import ProfileConfig
from lokal_schemas.corpus import Artifact
from lokal_schemas.languages import LanguageDescriptor, get_language, list_languages
from lokal_schemas.primitives import ArtifactFlavor


class _StaticStore:
    """Store with fixed artifacts and optional unreadable paths."""

    def __init__(
        self, artifacts: dict[str, dict[str, str]], broken: set[str] | None = None
    ) -> None:
        self.artifacts = artifacts
        self.broken = broken or set()

    async def artifact_exists(self, path: Path) -> bool:
        return path.name in self.artifacts or path.name in self.broken

    async def load_artifact(
        self, path: Path, language: LanguageDescriptor, flavor: ArtifactFlavor
    ) -> Artifact:
        if path.name in self.broken:
            raise ArtifactError(
                ArtifactErrorInfo(
                    code=ArtifactErrorCode.PARSE_ERROR,
                    message="Artifact is not valid JSON",
                )
            )
        return Artifact(
            language=language, flavor=flavor, entries=self.artifacts.get(path.name, {})
        )

    async def write_artifact(self, path: Path, artifact: Artifact) -> None:
        raise AssertionError("status must not write artifacts")

    async def write_summary(self, path: Path, summary: RunSummary) -> Path:
        raise AssertionError("status must not write summaries")


@pytest.mark.asyncio
async def test_status_reports_every_catalog_language(
    backend_profile: ProfileConfig,
) -> None:
    """Ensure one row per catalog language, ordered by name."""
    store = _StaticStore({"spanish.json": {"a": "A", "b": "B"}})

    report = await build_status_report(backend_profile, store, profile_name="backend")

    assert [row.language_name for row in report.rows] == [
        language.name for language in list_languages()
    ]
    spanish = next(row for row in report.rows if row.language_code == "es")
    assert spanish.exists
    assert spanish.entry_count == 2
    french = next(row for row in report.rows if row.language_code == "fr")
    assert not french.exists
    assert french.entry_count == 0


@pytest.mark.asyncio
async def test_status_records_unreadable_artifacts(
    backend_profile: ProfileConfig,
) -> None:
    """Ensure unreadable artifacts become row errors with zero entries."""
    store = _StaticStore({}, broken={"german.json"})

    report = await build_status_report(backend_profile, store, profile_name="backend")

    german = next(row for row in report.rows if row.language_code == "de")
    assert german.exists
    assert german.entry_count == 0
    assert german.error == "Artifact is not valid JSON"


@pytest.mark.asyncio
async def test_status_uses_checkout_file_names(
    backend_profile: ProfileConfig,
) -> None:
    """Ensure checkout profiles look for code-named artifacts."""
    profile = backend_profile.model_copy(update={"flavor": ArtifactFlavor.CHECKOUT})
    language = get_language("hi")
    assert language is not None
    store = _StaticStore({"hi.json": {"Pay": "भुगतान"}})

    report = await build_status_report(
        profile, store, profile_name="checkout", languages=[language]
    )

    assert len(report.rows) == 1
    assert report.rows[0].artifact_path.endswith("hi.json")
    assert report.rows[0].entry_count == 1

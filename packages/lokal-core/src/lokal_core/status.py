"""Artifact status reporting across the language catalog."""

from __future__ import annotations

from pathlib import Path

from lokal_core.ports.artifact import (
    ArtifactError,
    ArtifactStoreProtocol,
    artifact_file_name,
)
from lokal_schemas.config import ProfileConfig
from lokal_schemas.languages import LanguageDescriptor, list_languages
from lokal_schemas.primitives import ArtifactFlavor
from lokal_schemas.translation import StatusReport, StatusRow


async def build_status_report(
    profile: ProfileConfig,
    store: ArtifactStoreProtocol,
    *,
    profile_name: str,
    languages: list[LanguageDescriptor] | None = None,
) -> StatusReport:
    """Report artifact existence and entry counts for every language.

    Unreadable artifacts are reported with their error message and a zero
    entry count instead of failing the whole report.

    Args:
        profile: Profile whose output directory is inspected.
        store: Artifact store used to read artifacts.
        profile_name: Profile name recorded on the report.
        languages: Languages to report on (defaults to the catalog, by name).

    Returns:
        StatusReport: One row per language.
    """
    flavor = ArtifactFlavor(profile.flavor)
    output_dir = Path(profile.output_dir)
    rows: list[StatusRow] = []
    for language in languages if languages is not None else list_languages():
        path = output_dir / artifact_file_name(language, flavor)
        exists = await store.artifact_exists(path)
        entry_count = 0
        error: str | None = None
        if exists:
            try:
                artifact = await store.load_artifact(path, language, flavor)
            except ArtifactError as exc:
                error = exc.info.message
            else:
                entry_count = len(artifact.entries)
        rows.append(
            StatusRow(
                language_code=language.code,
                language_name=language.name,
                artifact_path=str(path),
                exists=exists,
                entry_count=entry_count,
                error=error,
            )
        )
    return StatusReport(profile=profile_name, output_dir=str(output_dir), rows=rows)

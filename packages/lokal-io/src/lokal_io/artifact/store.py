"""Filesystem persistence for translation artifacts and run summaries."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from lokal_core.ports.artifact import (
    ArtifactError,
    ArtifactErrorCode,
    ArtifactErrorDetails,
    ArtifactErrorInfo,
    ArtifactStoreProtocol,
    RunSummary,
    SummarySample,
)
from lokal_io.storage.filesystem import write_text_atomic
from lokal_schemas.corpus import Artifact
from lokal_schemas.languages import LanguageDescriptor
from lokal_schemas.primitives import (
    LANGUAGE_CODE_FIELD,
    LANGUAGE_NAME_FIELD,
    NOTICE_FIELD,
    RESERVED_KEYS,
    ArtifactFlavor,
)

NOTICE_TEXT = (
    "This file is generated automatically. Manual edits may be overwritten "
    "by the next translation run."
)


class FileSystemArtifactStore(ArtifactStoreProtocol):
    """Artifact store writing flat JSON documents to disk."""

    def __init__(self, notice_text: str = NOTICE_TEXT) -> None:
        """Initialize the store.

        Args:
            notice_text: Notice written into checkout artifacts.
        """
        self._notice_text = notice_text

    async def artifact_exists(self, path: Path) -> bool:
        """Return True when an artifact file exists."""
        return await asyncio.to_thread(path.is_file)

    async def load_artifact(
        self, path: Path, language: LanguageDescriptor, flavor: ArtifactFlavor
    ) -> Artifact:
        """Load an artifact from disk.

        Missing files yield an empty artifact. Metadata keys and empty values
        are skipped.

        Raises:
            ArtifactError: If the file cannot be read or is not a flat JSON
                object of strings.
        """
        if not await asyncio.to_thread(path.exists):
            return Artifact(language=language, flavor=flavor, entries={})
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise _artifact_error(
                ArtifactErrorCode.IO_ERROR, f"Could not read {path}: {exc}", path
            ) from exc
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise _artifact_error(
                ArtifactErrorCode.PARSE_ERROR,
                f"Artifact {path} is not valid JSON: {exc.msg} (line {exc.lineno})",
                path,
            ) from exc
        if not isinstance(payload, dict):
            raise _artifact_error(
                ArtifactErrorCode.PARSE_ERROR,
                f"Artifact {path} must contain a JSON object",
                path,
            )
        entries: dict[str, str] = {}
        for key, value in payload.items():
            if key in RESERVED_KEYS or value is None or value == "":
                continue
            if not isinstance(value, str):
                raise _artifact_error(
                    ArtifactErrorCode.PARSE_ERROR,
                    f"Artifact {path} has a non-string value for '{key}'",
                    path,
                )
            entries[key] = value
        return Artifact(language=language, flavor=flavor, entries=entries)

    async def write_artifact(self, path: Path, artifact: Artifact) -> None:
        """Write an artifact atomically as indented UTF-8 JSON.

        Raises:
            ArtifactError: If the artifact cannot be written.
        """
        document: dict[str, str] = {}
        if ArtifactFlavor(artifact.flavor) == ArtifactFlavor.CHECKOUT:
            document[NOTICE_FIELD] = self._notice_text
            document[LANGUAGE_CODE_FIELD] = artifact.language.code
            document[LANGUAGE_NAME_FIELD] = artifact.language.native_name
        document.update(artifact.entries)
        payload = json.dumps(document, indent=2, ensure_ascii=False) + "\n"
        try:
            await asyncio.to_thread(write_text_atomic, path, payload)
        except OSError as exc:
            raise _artifact_error(
                ArtifactErrorCode.IO_ERROR, f"Could not write {path}: {exc}", path
            ) from exc

    async def write_summary(self, path: Path, summary: RunSummary) -> Path:
        """Write a Markdown run summary.

        Raises:
            ArtifactError: If the summary cannot be written.
        """
        try:
            await asyncio.to_thread(write_text_atomic, path, render_summary(summary))
        except OSError as exc:
            raise _artifact_error(
                ArtifactErrorCode.IO_ERROR, f"Could not write {path}: {exc}", path
            ) from exc
        return path


def render_summary(summary: RunSummary) -> str:
    """Render a run summary as Markdown.

    Returns:
        str: Markdown document.
    """
    rate = 100.0
    if summary.attempted:
        rate = summary.success_count / summary.attempted * 100
    lines = [
        f"# Translation summary: {summary.language.name} ({summary.language.code})",
        "",
        f"- Generated: {summary.generated_at}",
        f"- Flavor: {summary.flavor}",
        f"- Attempted: {summary.attempted}",
        f"- Succeeded: {summary.success_count}",
        f"- Failed: {summary.failure_count}",
        f"- Success rate: {rate:.1f}%",
        f"- Removed: {summary.removed}",
        f"- Unchanged: {summary.unchanged}",
        f"- Total entries: {summary.total_entries}",
    ]
    if summary.sample_successes:
        lines += ["", "## Sample translations", ""]
        lines += [_render_sample(sample) for sample in summary.sample_successes]
    if summary.sample_failures:
        lines += ["", "## Sample failures", ""]
        lines += [_render_sample(sample) for sample in summary.sample_failures]
    return "\n".join(lines) + "\n"


def _render_sample(sample: SummarySample) -> str:
    if sample.error_detail:
        return f"- `{sample.key}`: {sample.source_text!r} ({sample.error_detail})"
    return f"- `{sample.key}`: {sample.source_text!r} -> {sample.text!r}"


def _artifact_error(code: ArtifactErrorCode, message: str, path: Path) -> ArtifactError:
    return ArtifactError(
        ArtifactErrorInfo(
            code=code,
            message=message,
            details=ArtifactErrorDetails(path=str(path)),
        )
    )

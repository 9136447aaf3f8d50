"""Protocol definitions and errors for translation artifact persistence."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import Field

from lokal_schemas.base import BaseSchema, TextSchema
from lokal_schemas.corpus import Artifact
from lokal_schemas.events import ArtifactEvent, ArtifactPersistedData
from lokal_schemas.languages import LanguageDescriptor
from lokal_schemas.logs import LogEntry
from lokal_schemas.primitives import (
    ArtifactFlavor,
    LogLevel,
    RunId,
    RunStage,
    Timestamp,
)
from lokal_schemas.responses import ErrorDetails, ErrorResponse

SUMMARY_SAMPLE_LIMIT = 10


class ArtifactErrorCode(StrEnum):
    """Categorized error codes for artifact failures."""

    PARSE_ERROR = "parse_error"
    IO_ERROR = "io_error"


class ArtifactErrorDetails(BaseSchema):
    """Detailed artifact error context."""

    path: str | None = Field(None, description="Artifact path")
    reason: str | None = Field(None, description="Underlying error text")


class ArtifactErrorInfo(BaseSchema):
    """Structured artifact error data."""

    code: ArtifactErrorCode = Field(..., description="Artifact error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: ArtifactErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert artifact error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.path is not None:
            details = ErrorDetails(field="artifact", provided=self.details.path)
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(
            code=f"artifact.{code_value}", message=self.message, details=details
        )


class ArtifactError(Exception):
    """Artifact error with structured details."""

    def __init__(self, info: ArtifactErrorInfo) -> None:
        """Initialize the artifact error.

        Args:
            info: Structured artifact error information.
        """
        super().__init__(info.message)
        self.info = info


class SummarySample(TextSchema):
    """One sample line for a run summary."""

    key: str = Field(..., min_length=1, description="Entry key")
    source_text: str = Field(..., description="Source text")
    text: str = Field(..., description="Translated or fallback text")
    error_detail: str | None = Field(None, description="Failure detail")


class RunSummary(TextSchema):
    """Human-facing summary of one language run."""

    language: LanguageDescriptor = Field(..., description="Target language")
    flavor: ArtifactFlavor = Field(..., description="Artifact flavor")
    generated_at: Timestamp = Field(..., description="Summary timestamp")
    attempted: int = Field(0, ge=0, description="Entries attempted")
    success_count: int = Field(0, ge=0, description="Entries succeeded")
    failure_count: int = Field(0, ge=0, description="Entries failed")
    removed: int = Field(0, ge=0, description="Stale keys removed")
    unchanged: int = Field(0, ge=0, description="Keys kept")
    total_entries: int = Field(0, ge=0, description="Entries in the artifact")
    duration_s: float = Field(0.0, ge=0, description="Run duration")
    sample_successes: list[SummarySample] = Field(
        default_factory=list, description="Sample successes"
    )
    sample_failures: list[SummarySample] = Field(
        default_factory=list, description="Sample failures"
    )


@runtime_checkable
class ArtifactStoreProtocol(Protocol):
    """Protocol for loading and persisting translation artifacts."""

    async def load_artifact(
        self, path: Path, language: LanguageDescriptor, flavor: ArtifactFlavor
    ) -> Artifact:
        """Load an artifact, returning an empty one when the file is missing.

        Raises:
            ArtifactError: When the file exists but cannot be read or parsed.
        """
        raise NotImplementedError

    async def artifact_exists(self, path: Path) -> bool:
        """Return True when an artifact file exists at ``path``."""
        raise NotImplementedError

    async def write_artifact(self, path: Path, artifact: Artifact) -> None:
        """Persist an artifact atomically.

        Raises:
            ArtifactError: When the artifact cannot be written.
        """
        raise NotImplementedError

    async def write_summary(self, path: Path, summary: RunSummary) -> Path:
        """Write a run summary next to the artifact and return its path."""
        raise NotImplementedError


def artifact_file_name(language: LanguageDescriptor, flavor: ArtifactFlavor) -> str:
    """Return the artifact file name for a language and flavor.

    Backend artifacts use the lower-cased display name; checkout artifacts
    use the language code.

    Returns:
        str: Artifact file name.
    """
    if ArtifactFlavor(flavor) == ArtifactFlavor.CHECKOUT:
        return f"{language.code}.json"
    return f"{language.name.lower()}.json"


def summary_path_for(artifact_path: Path) -> Path:
    """Return the summary path that sits next to an artifact.

    Returns:
        Path: ``<stem>.summary.md`` in the artifact directory.
    """
    return artifact_path.with_name(f"{artifact_path.stem}.summary.md")


def build_artifact_persisted_log(
    timestamp: Timestamp,
    run_id: RunId,
    language_code: str,
    path: Path,
    flavor: ArtifactFlavor,
    entry_count: int,
) -> LogEntry:
    """Build a log entry for a persisted artifact.

    Returns:
        LogEntry: Structured artifact log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=ArtifactEvent.PERSISTED,
        run_id=run_id,
        stage=RunStage.PERSIST,
        language=language_code,
        message=f"Artifact written to {path}",
        data=ArtifactPersistedData(
            path=str(path), flavor=ArtifactFlavor(flavor), entry_count=entry_count
        ).model_dump(exclude_none=True),
    )


def build_artifact_unchanged_log(
    timestamp: Timestamp, run_id: RunId, language_code: str, path: Path
) -> LogEntry:
    """Build a log entry for a skipped persist.

    Returns:
        LogEntry: Structured artifact log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=ArtifactEvent.UNCHANGED,
        run_id=run_id,
        stage=RunStage.PERSIST,
        language=language_code,
        message="Artifact up to date, nothing to write",
        data={"path": str(path)},
    )


def build_artifact_failed_log(
    timestamp: Timestamp,
    run_id: RunId,
    language_code: str,
    error: ArtifactErrorInfo,
    stage: RunStage = RunStage.PERSIST,
) -> LogEntry:
    """Build a log entry for an artifact failure.

    Returns:
        LogEntry: Structured artifact log entry.
    """
    data: dict[str, str] = {"error_code": str(error.code)}
    if error.details is not None and error.details.path is not None:
        data["path"] = error.details.path
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.ERROR,
        event=ArtifactEvent.FAILED,
        run_id=run_id,
        stage=stage,
        language=language_code,
        message=error.message,
        data=data,
    )

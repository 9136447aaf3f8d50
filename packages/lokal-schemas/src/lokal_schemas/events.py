"""Event taxonomy and structured payloads for run observability."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from lokal_schemas.base import BaseSchema
from lokal_schemas.primitives import (
    ArtifactFlavor,
    LanguageCode,
    RunStage,
    RunStatus,
    SourceShape,
)


class SourceEvent(StrEnum):
    """Event names for source fetching and extraction."""

    FETCH_STARTED = "source_fetch_started"
    CACHE_HIT = "source_cache_hit"
    FETCHED = "source_fetched"
    FETCH_FAILED = "source_fetch_failed"
    EXTRACTED = "source_extracted"


class DiffEvent(StrEnum):
    """Event names for update planning."""

    PLANNED = "diff_planned"


class BatchEvent(StrEnum):
    """Event names for scheduler batches."""

    STARTED = "batch_started"
    PROGRESS = "batch_progress"
    ENTRY_FAILED = "batch_entry_failed"
    COMPLETED = "batch_completed"


class ArtifactEvent(StrEnum):
    """Event names for artifact persistence."""

    PERSISTED = "artifact_persisted"
    UNCHANGED = "artifact_unchanged"
    FAILED = "artifact_persist_failed"


class LanguageRunEvent(StrEnum):
    """Event names for single-language runs."""

    STARTED = "language_run_started"
    COMPLETED = "language_run_completed"
    FAILED = "language_run_failed"


class MultiRunEvent(StrEnum):
    """Event names for multi-language runs."""

    STARTED = "multi_run_started"
    COMPLETED = "multi_run_completed"
    ABORTED = "multi_run_aborted"


class SourceFetchData(BaseSchema):
    """Payload for source fetch events."""

    location: str = Field(..., min_length=1, description="Source location")
    resolved_url: str | None = Field(None, description="URL after rewriting")
    cache_path: str | None = Field(None, description="Cache file path")
    age_s: float | None = Field(None, ge=0, description="Cache entry age")
    byte_count: int | None = Field(None, ge=0, description="Content length")


class SourceExtractedData(BaseSchema):
    """Payload for corpus extraction events."""

    location: str = Field(..., min_length=1, description="Source location")
    shape: SourceShape = Field(..., description="Source shape")
    entry_count: int = Field(..., ge=0, description="Extracted entries")


class DiffPlannedData(BaseSchema):
    """Payload for update plan events."""

    to_translate: int = Field(..., ge=0, description="Keys to translate")
    to_remove: int = Field(..., ge=0, description="Keys to remove")
    unchanged: int = Field(..., ge=0, description="Unchanged keys")
    forced: bool = Field(..., description="Whether diffing was bypassed")


class BatchProgressData(BaseSchema):
    """Payload for scheduler progress events."""

    completed: int = Field(..., ge=0, description="Completed entries")
    total: int = Field(..., ge=0, description="Total entries")
    succeeded: int = Field(..., ge=0, description="Succeeded entries so far")
    failed: int = Field(..., ge=0, description="Failed entries so far")


class BatchEntryFailedData(BaseSchema):
    """Payload for per-entry failure events."""

    key: str = Field(..., min_length=1, description="Entry key")
    error_kind: str | None = Field(None, description="Error category")
    error_detail: str | None = Field(None, description="Error detail")
    attempts: int = Field(..., ge=0, description="Attempts made")


class BatchCompletedData(BaseSchema):
    """Payload for batch completion events."""

    success_count: int = Field(..., ge=0, description="Succeeded entries")
    failure_count: int = Field(..., ge=0, description="Failed entries")
    duration_s: float = Field(..., ge=0, description="Batch duration")
    sample_successes: list[str] = Field(
        default_factory=list, description="Sample succeeded keys"
    )
    sample_failures: list[str] = Field(
        default_factory=list, description="Sample failed keys"
    )


class ArtifactPersistedData(BaseSchema):
    """Payload for artifact persistence events."""

    path: str = Field(..., min_length=1, description="Artifact path")
    flavor: ArtifactFlavor = Field(..., description="Artifact flavor")
    entry_count: int = Field(..., ge=0, description="Persisted entries")


class LanguageRunData(BaseSchema):
    """Payload for language run lifecycle events."""

    language_code: str = Field(..., min_length=1, description="Language code")
    status: RunStatus | None = Field(None, description="Terminal status")
    stage: RunStage | None = Field(None, description="Last stage reached")
    attempted: int | None = Field(None, ge=0, description="Entries attempted")
    succeeded: int | None = Field(None, ge=0, description="Entries succeeded")
    success_ratio: float | None = Field(None, ge=0, le=1, description="Ratio")
    error_code: str | None = Field(None, description="Failure code")
    error_message: str | None = Field(None, description="Failure reason")


class MultiRunData(BaseSchema):
    """Payload for multi-language run events."""

    languages: list[LanguageCode] = Field(
        default_factory=list, description="Requested language codes"
    )
    succeeded: list[str] = Field(default_factory=list, description="Succeeded codes")
    failed: list[str] = Field(default_factory=list, description="Failed codes")
    continue_on_error: bool = Field(True, description="Whether failures continue")

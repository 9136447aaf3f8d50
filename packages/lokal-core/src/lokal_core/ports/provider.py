"""Protocol definitions, attempt results and errors for translation providers."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from lokal_schemas.base import BaseSchema, TextSchema
from lokal_schemas.events import (
    BatchCompletedData,
    BatchEntryFailedData,
    BatchEvent,
    BatchProgressData,
)
from lokal_schemas.logs import LogEntry
from lokal_schemas.primitives import LogLevel, RunId, RunStage, Timestamp
from lokal_schemas.responses import ErrorResponse
from lokal_schemas.translation import (
    BatchSummary,
    TranslationEntry,
    TranslationErrorKind,
    TranslationOutcome,
)

SAMPLE_LIMIT = 5


class ProviderSuccess(TextSchema):
    """A provider attempt that produced usable text."""

    text: str = Field(..., min_length=1, description="Translated text")


class ProviderFailure(BaseSchema):
    """A provider attempt that failed."""

    kind: TranslationErrorKind = Field(..., description="Failure category")
    detail: str = Field(..., min_length=1, description="Failure detail")
    status_code: int | None = Field(None, description="HTTP status if applicable")


type ProviderAttempt = ProviderSuccess | ProviderFailure


class ProviderErrorCode(StrEnum):
    """Categorized error codes for unusable provider responses."""

    HTML_RESPONSE = "html_response"
    INVALID_RESPONSE = "invalid_response"
    EMPTY_CONTENT = "empty_content"


_ERROR_KIND_BY_CODE = {
    ProviderErrorCode.HTML_RESPONSE: TranslationErrorKind.HTML_RESPONSE,
    ProviderErrorCode.INVALID_RESPONSE: TranslationErrorKind.INVALID_RESPONSE,
    ProviderErrorCode.EMPTY_CONTENT: TranslationErrorKind.EMPTY_CONTENT,
}


class ProviderErrorInfo(BaseSchema):
    """Structured provider response error data."""

    code: ProviderErrorCode = Field(..., description="Provider error code")
    message: str = Field(..., min_length=1, description="Error message")

    def to_error_response(self) -> ErrorResponse:
        """Convert provider error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(code=f"provider.{code_value}", message=self.message)

    def to_failure(self) -> ProviderFailure:
        """Convert the error into a failed provider attempt.

        Returns:
            ProviderFailure: Attempt result carrying the error category.
        """
        return ProviderFailure(
            kind=_ERROR_KIND_BY_CODE[ProviderErrorCode(self.code)],
            detail=self.message,
        )


class ProviderResponseError(Exception):
    """Provider response error with structured details."""

    def __init__(self, info: ProviderErrorInfo) -> None:
        """Initialize the provider response error.

        Args:
            info: Structured provider error information.
        """
        super().__init__(info.message)
        self.info = info


@runtime_checkable
class TranslationClientProtocol(Protocol):
    """Protocol for clients translating a single entry."""

    async def translate(self, entry: TranslationEntry) -> TranslationOutcome:
        """Translate one entry, never raising for provider failures."""
        raise NotImplementedError


def build_batch_started_log(
    timestamp: Timestamp, run_id: RunId, total: int, chunk_count: int
) -> LogEntry:
    """Build a log entry for the start of a scheduler batch.

    Returns:
        LogEntry: Structured batch log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=BatchEvent.STARTED,
        run_id=run_id,
        stage=RunStage.TRANSLATE,
        message=f"Translating {total} entries in {chunk_count} chunks",
        data={"total": total, "chunk_count": chunk_count},
    )


def build_batch_progress_log(
    timestamp: Timestamp,
    run_id: RunId,
    completed: int,
    total: int,
    succeeded: int,
) -> LogEntry:
    """Build a log entry for scheduler progress.

    Returns:
        LogEntry: Structured batch log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=BatchEvent.PROGRESS,
        run_id=run_id,
        stage=RunStage.TRANSLATE,
        message=f"Progress: {completed}/{total}",
        data=BatchProgressData(
            completed=completed,
            total=total,
            succeeded=succeeded,
            failed=completed - succeeded,
        ).model_dump(exclude_none=True),
    )


def build_batch_entry_failed_log(
    timestamp: Timestamp, run_id: RunId, outcome: TranslationOutcome
) -> LogEntry:
    """Build a log entry for one failed entry.

    Returns:
        LogEntry: Structured batch log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.WARN,
        event=BatchEvent.ENTRY_FAILED,
        run_id=run_id,
        stage=RunStage.TRANSLATE,
        message=f"Translation failed for '{outcome.key}'",
        data=BatchEntryFailedData(
            key=outcome.key,
            error_kind=None if outcome.error_kind is None else str(outcome.error_kind),
            error_detail=outcome.error_detail,
            attempts=outcome.attempts,
        ).model_dump(exclude_none=True),
    )


def build_batch_completed_log(
    timestamp: Timestamp, run_id: RunId, summary: BatchSummary
) -> LogEntry:
    """Build a log entry summarizing a scheduler batch.

    Sample keys are capped at ``SAMPLE_LIMIT`` successes and failures.

    Returns:
        LogEntry: Structured batch log entry.
    """
    level = LogLevel.INFO if summary.failure_count == 0 else LogLevel.WARN
    return LogEntry(
        timestamp=timestamp,
        level=level,
        event=BatchEvent.COMPLETED,
        run_id=run_id,
        stage=RunStage.TRANSLATE,
        message=(
            f"Batch completed: {summary.success_count} succeeded, "
            f"{summary.failure_count} failed"
        ),
        data=BatchCompletedData(
            success_count=summary.success_count,
            failure_count=summary.failure_count,
            duration_s=summary.duration_s,
            sample_successes=[o.key for o in summary.successes(SAMPLE_LIMIT)],
            sample_failures=[o.key for o in summary.failures(SAMPLE_LIMIT)],
        ).model_dump(exclude_none=True),
    )

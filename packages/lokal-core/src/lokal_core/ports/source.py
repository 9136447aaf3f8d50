"""Protocol definitions and errors for source fetching and extraction."""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from lokal_schemas.base import BaseSchema
from lokal_schemas.corpus import Corpus
from lokal_schemas.events import (
    SourceEvent,
    SourceExtractedData,
    SourceFetchData,
)
from lokal_schemas.logs import LogEntry
from lokal_schemas.primitives import (
    LogLevel,
    RunId,
    RunStage,
    SourceShape,
    Timestamp,
)
from lokal_schemas.responses import ErrorDetails, ErrorResponse


class SourceErrorCode(StrEnum):
    """Categorized error codes for source failures."""

    NOT_FOUND = "not_found"
    PARSE_ERROR = "parse_error"
    TRANSPORT_ERROR = "transport_error"


class SourceErrorDetails(BaseSchema):
    """Detailed source error context."""

    location: str | None = Field(None, description="Source location")
    status_code: int | None = Field(None, description="HTTP status if applicable")
    reason: str | None = Field(None, description="Underlying error text")


class SourceErrorInfo(BaseSchema):
    """Structured source error data."""

    code: SourceErrorCode = Field(..., description="Source error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: SourceErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert source error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.location is not None:
            details = ErrorDetails(field="source", provided=self.details.location)
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(
            code=f"source.{code_value}", message=self.message, details=details
        )


class SourceError(Exception):
    """Source error with structured details."""

    code: SourceErrorCode = SourceErrorCode.TRANSPORT_ERROR

    def __init__(self, info: SourceErrorInfo) -> None:
        """Initialize the source error.

        Args:
            info: Structured source error information.
        """
        super().__init__(info.message)
        self.info = info

    @classmethod
    def build(
        cls,
        message: str,
        *,
        location: str | None = None,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> SourceError:
        """Build an error of this class with its own error code.

        Returns:
            SourceError: Error instance carrying structured info.
        """
        return cls(
            SourceErrorInfo(
                code=cls.code,
                message=message,
                details=SourceErrorDetails(
                    location=location, status_code=status_code, reason=reason
                ),
            )
        )


class NotFoundError(SourceError):
    """Raised when a local source path does not exist."""

    code = SourceErrorCode.NOT_FOUND


class ParseError(SourceError):
    """Raised when source content cannot be parsed into a corpus."""

    code = SourceErrorCode.PARSE_ERROR


class TransportError(SourceError):
    """Raised when a remote fetch fails."""

    code = SourceErrorCode.TRANSPORT_ERROR


@runtime_checkable
class SourceFetcherProtocol(Protocol):
    """Protocol for resolving a source location to raw text."""

    async def fetch(self, location: str) -> str:
        """Return the raw text at ``location``.

        Raises:
            NotFoundError: When a local path does not exist.
            TransportError: When a remote fetch fails.
        """
        raise NotImplementedError


type CorpusExtractor = Callable[[str, SourceShape], Corpus]


def build_source_fetch_started_log(
    timestamp: Timestamp, run_id: RunId, location: str
) -> LogEntry:
    """Build a log entry for the start of a source fetch.

    Returns:
        LogEntry: Structured source log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.DEBUG,
        event=SourceEvent.FETCH_STARTED,
        run_id=run_id,
        stage=RunStage.FETCH,
        message="Source fetch started",
        data=SourceFetchData(location=location).model_dump(exclude_none=True),
    )


def build_source_cache_hit_log(
    timestamp: Timestamp,
    run_id: RunId,
    location: str,
    cache_path: str,
    age_s: float,
) -> LogEntry:
    """Build a log entry for a fresh cache hit.

    Returns:
        LogEntry: Structured source log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=SourceEvent.CACHE_HIT,
        run_id=run_id,
        stage=RunStage.FETCH,
        message="Using cached source",
        data=SourceFetchData(
            location=location, cache_path=cache_path, age_s=max(age_s, 0.0)
        ).model_dump(exclude_none=True),
    )


def build_source_fetched_log(
    timestamp: Timestamp,
    run_id: RunId,
    location: str,
    resolved_url: str | None,
    byte_count: int,
) -> LogEntry:
    """Build a log entry for a completed fetch.

    Returns:
        LogEntry: Structured source log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=SourceEvent.FETCHED,
        run_id=run_id,
        stage=RunStage.FETCH,
        message="Source fetched",
        data=SourceFetchData(
            location=location, resolved_url=resolved_url, byte_count=byte_count
        ).model_dump(exclude_none=True),
    )


def build_source_failed_log(
    timestamp: Timestamp,
    run_id: RunId,
    location: str,
    error: SourceErrorInfo,
    stage: RunStage = RunStage.FETCH,
) -> LogEntry:
    """Build a log entry for a source failure.

    Returns:
        LogEntry: Structured source log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.ERROR,
        event=SourceEvent.FETCH_FAILED,
        run_id=run_id,
        stage=stage,
        message=error.message,
        data={"location": location, "error_code": str(error.code)},
    )


def build_source_extracted_log(
    timestamp: Timestamp,
    run_id: RunId,
    location: str,
    shape: SourceShape,
    entry_count: int,
) -> LogEntry:
    """Build a log entry for corpus extraction.

    Returns:
        LogEntry: Structured source log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=SourceEvent.EXTRACTED,
        run_id=run_id,
        stage=RunStage.EXTRACT,
        message=f"Extracted {entry_count} entries",
        data=SourceExtractedData(
            location=location, shape=SourceShape(shape), entry_count=entry_count
        ).model_dump(exclude_none=True),
    )

"""Protocol definitions and helpers for translation orchestration."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from lokal_core.ports.storage import StorageError
from lokal_schemas.base import BaseSchema
from lokal_schemas.events import (
    DiffEvent,
    DiffPlannedData,
    LanguageRunData,
    LanguageRunEvent,
    MultiRunData,
    MultiRunEvent,
)
from lokal_schemas.logs import LogEntry
from lokal_schemas.primitives import (
    LogLevel,
    RunId,
    RunStage,
    RunStatus,
    Timestamp,
)
from lokal_schemas.responses import ErrorDetails, ErrorResponse
from lokal_schemas.translation import LanguageRunResult, UpdatePlan

_log = logging.getLogger(__name__)


@runtime_checkable
class LogSinkProtocol(Protocol):
    """Protocol for emitting JSONL log entries."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Emit a log entry."""
        raise NotImplementedError


async def emit_log_entry(sink: LogSinkProtocol | None, entry: LogEntry) -> None:
    """Emit a log entry, dropping it with a warning if the sink store fails.

    A log store that cannot be written never aborts the run that produced
    the entry.
    """
    if sink is None:
        return
    try:
        await sink.emit_log(entry)
    except StorageError as exc:
        _log.warning("Dropped %s log entry: %s", entry.event, exc.info.message)


class OrchestrationErrorCode(StrEnum):
    """Categorized error codes for orchestration failures."""

    UNKNOWN_LANGUAGE = "unknown_language"
    INVALID_STATE = "invalid_state"
    SUCCESS_RATIO_BELOW_THRESHOLD = "success_ratio_below_threshold"


class OrchestrationErrorDetails(BaseSchema):
    """Detailed orchestration error context."""

    stage: RunStage | None = Field(None, description="Stage associated with error")
    language_code: str | None = Field(None, description="Requested language code")
    reason: str | None = Field(None, description="Additional error context")


class OrchestrationErrorInfo(BaseSchema):
    """Structured orchestration error data."""

    code: OrchestrationErrorCode = Field(..., description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: OrchestrationErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert orchestration error info to standard error response.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.language_code is not None:
            details = ErrorDetails(
                field="language",
                provided=self.details.language_code,
                stage=None if self.details.stage is None else str(self.details.stage),
            )
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(
            code=f"orchestration.{code_value}", message=self.message, details=details
        )


class OrchestrationError(Exception):
    """Orchestration error with structured details."""

    def __init__(self, info: OrchestrationErrorInfo) -> None:
        """Initialize the orchestration error.

        Args:
            info: Structured orchestration error information.
        """
        super().__init__(info.message)
        self.info = info


def build_language_run_started_log(
    timestamp: Timestamp, run_id: RunId, language_code: str
) -> LogEntry:
    """Build a log entry for the start of a language run.

    Returns:
        LogEntry: Structured run log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=LanguageRunEvent.STARTED,
        run_id=run_id,
        language=language_code,
        message=f"Starting translation for {language_code}",
        data=LanguageRunData(language_code=language_code).model_dump(
            exclude_none=True
        ),
    )


def build_language_run_finished_log(
    timestamp: Timestamp, run_id: RunId, result: LanguageRunResult
) -> LogEntry:
    """Build a log entry for a finished language run.

    Completed runs log at INFO; failed runs log at ERROR with the reason.

    Returns:
        LogEntry: Structured run log entry.
    """
    completed = result.status == RunStatus.COMPLETED
    data = LanguageRunData(
        language_code=result.language_code,
        status=RunStatus(result.status),
        stage=RunStage(result.stage),
        attempted=result.attempted,
        succeeded=result.succeeded,
        success_ratio=result.success_ratio,
        error_code=None if result.error is None else result.error.code,
        error_message=None if result.error is None else result.error.message,
    )
    if completed:
        message = (
            f"Translation for {result.language_code} completed "
            f"({result.succeeded}/{result.attempted} translated)"
        )
    else:
        reason = "" if result.error is None else f": {result.error.message}"
        message = (
            f"Translation for {result.language_code} failed "
            f"at {result.stage}{reason}"
        )
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO if completed else LogLevel.ERROR,
        event=LanguageRunEvent.COMPLETED if completed else LanguageRunEvent.FAILED,
        run_id=run_id,
        stage=RunStage(result.stage),
        language=result.language_code,
        message=message,
        data=data.model_dump(exclude_none=True),
    )


def build_diff_planned_log(
    timestamp: Timestamp, run_id: RunId, language_code: str, plan: UpdatePlan
) -> LogEntry:
    """Build a log entry describing an update plan.

    Returns:
        LogEntry: Structured diff log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=DiffEvent.PLANNED,
        run_id=run_id,
        stage=RunStage.DIFF,
        language=language_code,
        message=_describe_plan(plan),
        data=DiffPlannedData(
            to_translate=len(plan.to_translate),
            to_remove=len(plan.to_remove),
            unchanged=plan.unchanged_count,
            forced=plan.forced,
        ).model_dump(exclude_none=True),
    )


def _describe_plan(plan: UpdatePlan) -> str:
    if plan.is_empty:
        return f"Nothing to update, {plan.unchanged_count} unchanged"
    return (
        f"{len(plan.to_translate)} to translate, "
        f"{len(plan.to_remove)} to remove, {plan.unchanged_count} unchanged"
    )


def build_multi_run_started_log(
    timestamp: Timestamp,
    run_id: RunId,
    languages: list[str],
    continue_on_error: bool,
) -> LogEntry:
    """Build a log entry for the start of a multi-language run.

    Returns:
        LogEntry: Structured run log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=MultiRunEvent.STARTED,
        run_id=run_id,
        message=f"Starting batch translation for {', '.join(languages)}",
        data={"languages": list(languages), "continue_on_error": continue_on_error},
    )


def build_multi_run_finished_log(
    timestamp: Timestamp,
    run_id: RunId,
    results: dict[str, bool],
    *,
    aborted: bool,
    continue_on_error: bool,
) -> LogEntry:
    """Build a log entry for a finished multi-language run.

    Returns:
        LogEntry: Structured run log entry.
    """
    succeeded = [code for code, ok in results.items() if ok]
    failed = [code for code, ok in results.items() if not ok]
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.WARN if failed else LogLevel.INFO,
        event=MultiRunEvent.ABORTED if aborted else MultiRunEvent.COMPLETED,
        run_id=run_id,
        message=(
            f"Batch translation finished: {len(succeeded)}/{len(results)} "
            "languages succeeded"
        ),
        data=MultiRunData(
            succeeded=succeeded,
            failed=failed,
            continue_on_error=continue_on_error,
        ).model_dump(exclude_none=True),
    )

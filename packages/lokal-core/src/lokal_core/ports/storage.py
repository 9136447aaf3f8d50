"""Protocol definitions and errors for log storage."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from lokal_schemas.base import BaseSchema
from lokal_schemas.logs import LogEntry
from lokal_schemas.primitives import RunId
from lokal_schemas.responses import ErrorResponse


class StorageErrorCode(StrEnum):
    """Categorized error codes for storage failures."""

    IO_ERROR = "io_error"


class StorageErrorInfo(BaseSchema):
    """Structured storage error data."""

    code: StorageErrorCode = Field(..., description="Storage error code")
    message: str = Field(..., min_length=1, description="Error message")
    path: str | None = Field(None, description="Path involved in the failure")

    def to_error_response(self) -> ErrorResponse:
        """Convert storage error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(code=f"storage.{code_value}", message=self.message)


class StorageError(Exception):
    """Storage error with structured details."""

    def __init__(self, info: StorageErrorInfo) -> None:
        """Initialize the storage error.

        Args:
            info: Structured storage error information.
        """
        super().__init__(info.message)
        self.info = info


@runtime_checkable
class LogStoreProtocol(Protocol):
    """Protocol for persisting JSONL log entries."""

    async def append_log(self, entry: LogEntry) -> None:
        """Append a single log entry.

        Raises:
            StorageError: If the entry cannot be written.
        """
        raise NotImplementedError

    def log_path(self, run_id: RunId) -> str:
        """Return the log file path for a run."""
        raise NotImplementedError

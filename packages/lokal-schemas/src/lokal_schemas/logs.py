"""JSONL log entry schema for translation events."""

from __future__ import annotations

from pydantic import Field

from lokal_schemas.base import BaseSchema
from lokal_schemas.primitives import (
    EventName,
    JsonValue,
    LogLevel,
    RunId,
    RunStage,
    Timestamp,
)


class LogEntry(BaseSchema):
    """Single log line in JSONL format."""

    timestamp: Timestamp = Field(
        ..., description="ISO-8601 timestamp for the log entry"
    )
    level: LogLevel = Field(..., description="Log level")
    event: EventName = Field(..., description="Event name")
    run_id: RunId = Field(..., description="Run identifier")
    stage: RunStage | None = Field(None, description="Run stage if applicable")
    language: str | None = Field(None, description="Target language code if any")
    message: str = Field(..., min_length=1, description="Log message")
    data: dict[str, JsonValue] | None = Field(None, description="Structured event data")

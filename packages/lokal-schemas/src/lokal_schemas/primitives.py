"""Primitive types and enums shared across lokal schemas."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import Field

ISO_8601_PATTERN = (
    r"^\d{4}-\d{2}-\d{2}T"
    r"\d{2}:\d{2}:\d{2}"
    r"(?:\.\d+)?"
    r"(?:Z|[+-]\d{2}:\d{2})$"
)
LANGUAGE_CODE_PATTERN = r"^[a-z]{2,3}(?:-[A-Za-z]{2,4})?$"
EVENT_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"
PROFILE_NAME_PATTERN = r"^[a-z][a-z0-9_-]*$"

type RunId = UUID
type Timestamp = Annotated[str, Field(pattern=ISO_8601_PATTERN)]
type LanguageCode = Annotated[str, Field(pattern=LANGUAGE_CODE_PATTERN)]
type EventName = Annotated[str, Field(pattern=EVENT_NAME_PATTERN)]
type ProfileName = Annotated[str, Field(pattern=PROFILE_NAME_PATTERN)]
type EntryKey = Annotated[str, Field(min_length=1)]

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | list["JsonValue"] | dict[str, "JsonValue"]

# Metadata fields carried by source documents and checkout artifacts.
NOTICE_FIELD = "NOTICE_WARN"
LANGUAGE_CODE_FIELD = "code"
LANGUAGE_NAME_FIELD = "currentLanguage"
RESERVED_KEYS = frozenset({NOTICE_FIELD, LANGUAGE_CODE_FIELD, LANGUAGE_NAME_FIELD})


class SourceShape(StrEnum):
    """Supported source document shapes."""

    EMBEDDED = "embedded"
    FLAT = "flat"


class ArtifactFlavor(StrEnum):
    """Persisted artifact flavors.

    BACKEND artifacts are plain key/value documents named after the language
    display name. CHECKOUT artifacts are named after the language code and
    carry language metadata fields.
    """

    BACKEND = "backend"
    CHECKOUT = "checkout"


class RunStatus(StrEnum):
    """Terminal status values for a language run."""

    COMPLETED = "completed"
    FAILED = "failed"


class RunStage(StrEnum):
    """Stages of a single-language translation run."""

    RESOLVE_LANGUAGE = "resolve_language"
    FETCH = "fetch"
    EXTRACT = "extract"
    LOAD_ARTIFACT = "load_artifact"
    DIFF = "diff"
    TRANSLATE = "translate"
    PERSIST = "persist"
    EVALUATE = "evaluate"


class LogLevel(StrEnum):
    """Log level values for JSONL logs."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class LogSinkType(StrEnum):
    """Supported log sink types."""

    CONSOLE = "console"
    FILE = "file"
    NOOP = "noop"

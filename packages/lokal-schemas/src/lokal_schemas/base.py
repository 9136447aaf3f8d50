"""Base schema configuration for lokal Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with strict validation defaults.

    Note: extra="ignore" lets provider and config payloads carry additional
    fields without failing validation. Required fields are still validated.
    """

    model_config = ConfigDict(
        extra="ignore",  # Drop extra fields instead of failing
        validate_assignment=True,
        validate_default=True,
        str_strip_whitespace=True,
        use_enum_values=True,
        strict=True,
    )


class TextSchema(BaseSchema):
    """Base schema for records carrying user-visible text verbatim.

    UI strings may start or end with meaningful whitespace, so stripping is
    disabled for these records.
    """

    model_config = ConfigDict(str_strip_whitespace=False)

"""Schemas for translation requests, plans, outcomes and run results."""

from __future__ import annotations

from enum import StrEnum

from pydantic import ConfigDict, Field, model_validator

from lokal_schemas.base import BaseSchema, TextSchema
from lokal_schemas.primitives import (
    ArtifactFlavor,
    EntryKey,
    LanguageCode,
    ProfileName,
    RunStage,
    RunStatus,
)
from lokal_schemas.responses import ErrorResponse

SUCCESS_RATIO_THRESHOLD = 0.8


class TranslationErrorKind(StrEnum):
    """Failure categories for a single translation attempt."""

    HTTP_STATUS = "http_status"
    HTML_RESPONSE = "html_response"
    TRANSPORT = "transport"
    INVALID_RESPONSE = "invalid_response"
    EMPTY_CONTENT = "empty_content"
    UNEXPECTED = "unexpected"


class TranslationEntry(TextSchema):
    """One unit of work submitted to the provider."""

    key: EntryKey = Field(..., description="Entry key")
    source_text: str = Field(..., description="Source-language text")
    target_language: str = Field(
        ..., min_length=1, description="Target language display name"
    )
    context: str | None = Field(None, description="Optional translator context")


class TranslationOutcome(TextSchema):
    """Result of translating one entry.

    On failure ``text`` carries the source text unchanged.
    """

    key: EntryKey = Field(..., description="Entry key")
    text: str = Field(..., description="Translated text, or source text on failure")
    succeeded: bool = Field(..., description="Whether translation succeeded")
    error_kind: TranslationErrorKind | None = Field(
        None, description="Last error category when failed"
    )
    error_detail: str | None = Field(None, description="Last error detail when failed")
    attempts: int = Field(..., ge=0, description="Provider attempts made")


class UpdatePlan(TextSchema):
    """Delta between a fresh corpus and the persisted artifact."""

    model_config = ConfigDict(frozen=True)

    to_translate: dict[str, str] = Field(
        default_factory=dict, description="Keys to translate, in source order"
    )
    to_remove: frozenset[str] = Field(
        default_factory=frozenset, description="Keys to delete from the artifact"
    )
    unchanged_count: int = Field(0, ge=0, description="Keys present in both")
    forced: bool = Field(False, description="Whether diffing was bypassed")

    @model_validator(mode="after")
    def _validate_disjoint(self) -> UpdatePlan:
        overlap = self.to_remove.intersection(self.to_translate)
        if overlap:
            raise ValueError(
                f"keys cannot be both translated and removed: {sorted(overlap)}"
            )
        return self

    @property
    def is_empty(self) -> bool:
        """Return True when the plan neither translates nor removes keys."""
        return not self.to_translate and not self.to_remove


class BatchSummary(TextSchema):
    """Aggregate result of one scheduler or orchestrator batch run."""

    outcomes: dict[str, TranslationOutcome] = Field(
        default_factory=dict, description="Outcomes keyed by entry key"
    )
    success_count: int = Field(0, ge=0, description="Succeeded entries")
    failure_count: int = Field(0, ge=0, description="Failed entries")
    duration_s: float = Field(0.0, ge=0, description="Wall-clock duration")

    @classmethod
    def from_outcomes(
        cls, outcomes: dict[str, TranslationOutcome], duration_s: float
    ) -> BatchSummary:
        """Build a summary by counting outcomes.

        Returns:
            BatchSummary: Summary with success and failure counts.
        """
        success_count = sum(1 for outcome in outcomes.values() if outcome.succeeded)
        return cls(
            outcomes=outcomes,
            success_count=success_count,
            failure_count=len(outcomes) - success_count,
            duration_s=max(duration_s, 0.0),
        )

    @property
    def attempted(self) -> int:
        """Return the number of entries attempted."""
        return self.success_count + self.failure_count

    def successes(self, limit: int | None = None) -> list[TranslationOutcome]:
        """Return succeeded outcomes in submission order."""
        items = [outcome for outcome in self.outcomes.values() if outcome.succeeded]
        return items if limit is None else items[:limit]

    def failures(self, limit: int | None = None) -> list[TranslationOutcome]:
        """Return failed outcomes in submission order."""
        items = [
            outcome for outcome in self.outcomes.values() if not outcome.succeeded
        ]
        return items if limit is None else items[:limit]


def success_ratio(succeeded: int, attempted: int) -> float:
    """Return the success ratio, treating zero attempts as full success.

    Returns:
        float: Ratio in the range [0, 1].
    """
    if attempted == 0:
        return 1.0
    return succeeded / attempted


def passes_success_gate(succeeded: int, attempted: int) -> bool:
    """Return True when a run clears the success-ratio gate.

    Zero attempted entries always pass; otherwise the ratio must be strictly
    greater than ``SUCCESS_RATIO_THRESHOLD``.

    Returns:
        bool: Whether the run counts as successful.
    """
    if attempted == 0:
        return True
    return success_ratio(succeeded, attempted) > SUCCESS_RATIO_THRESHOLD


class LanguageRunResult(BaseSchema):
    """Outcome of translating one language."""

    language_code: str = Field(..., min_length=1, description="Requested language")
    profile: ProfileName | None = Field(None, description="Profile name")
    flavor: ArtifactFlavor | None = Field(None, description="Artifact flavor")
    status: RunStatus = Field(..., description="Terminal run status")
    stage: RunStage = Field(..., description="Last stage reached")
    attempted: int = Field(0, ge=0, description="Entries sent to the provider")
    succeeded: int = Field(0, ge=0, description="Entries translated successfully")
    success_ratio: float = Field(1.0, ge=0, le=1, description="succeeded / attempted")
    removed: int = Field(0, ge=0, description="Stale keys removed")
    unchanged: int = Field(0, ge=0, description="Keys kept without translation")
    persisted: bool = Field(False, description="Whether the artifact was written")
    artifact_path: str | None = Field(None, description="Artifact path")
    summary_path: str | None = Field(None, description="Run summary path")
    duration_s: float = Field(0.0, ge=0, description="Run duration in seconds")
    error: ErrorResponse | None = Field(None, description="Failure reason")


class MultiLanguageRunResult(BaseSchema):
    """Outcome of translating several languages sequentially."""

    results: dict[str, bool] = Field(
        default_factory=dict, description="Language code to success flag"
    )
    runs: list[LanguageRunResult] = Field(
        default_factory=list, description="Per-language run results in order"
    )
    aborted: bool = Field(
        False, description="Whether remaining languages were skipped after a failure"
    )

    @property
    def all_succeeded(self) -> bool:
        """Return True when every requested language succeeded."""
        return bool(self.results) and all(self.results.values())


class StatusRow(BaseSchema):
    """Artifact status for one catalog language."""

    language_code: LanguageCode = Field(..., description="Language code")
    language_name: str = Field(..., min_length=1, description="Language name")
    artifact_path: str = Field(..., min_length=1, description="Expected artifact path")
    exists: bool = Field(..., description="Whether the artifact exists")
    entry_count: int = Field(0, ge=0, description="Translated entries")
    error: str | None = Field(None, description="Read error when unreadable")


class StatusReport(BaseSchema):
    """Artifact status across the language catalog for a profile."""

    profile: ProfileName = Field(..., description="Profile name")
    output_dir: str = Field(..., min_length=1, description="Artifact directory")
    rows: list[StatusRow] = Field(default_factory=list, description="Status rows")

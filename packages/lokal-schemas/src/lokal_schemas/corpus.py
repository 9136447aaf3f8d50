"""Keyed text corpus and persisted artifact schemas."""

from __future__ import annotations

from collections.abc import ItemsView, KeysView

from pydantic import ConfigDict, Field, field_validator

from lokal_schemas.base import TextSchema
from lokal_schemas.languages import LanguageDescriptor
from lokal_schemas.primitives import ArtifactFlavor


class Corpus(TextSchema):
    """Ordered, immutable mapping of entry key to source text.

    Key order is the order of first appearance in the source document.
    """

    model_config = ConfigDict(frozen=True)

    entries: dict[str, str] = Field(
        default_factory=dict, description="Entry key to source text"
    )

    def keys(self) -> KeysView[str]:
        """Return entry keys in source order."""
        return self.entries.keys()

    def items(self) -> ItemsView[str, str]:
        """Return (key, source text) pairs in source order."""
        return self.entries.items()

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the source text for a key, or ``default``."""
        return self.entries.get(key, default)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries


class Artifact(TextSchema):
    """Translated entries for one language and artifact flavor."""

    language: LanguageDescriptor = Field(..., description="Target language")
    flavor: ArtifactFlavor = Field(..., description="Artifact flavor")
    entries: dict[str, str] = Field(
        default_factory=dict, description="Entry key to translated text"
    )

    @field_validator("flavor", mode="before")
    @classmethod
    def _coerce_flavor(cls, value: object) -> ArtifactFlavor:
        if isinstance(value, str) and not isinstance(value, ArtifactFlavor):
            return ArtifactFlavor(value)
        return value  # type: ignore[return-value]

    def __len__(self) -> int:
        return len(self.entries)

"""Pure merge and rebuild helpers for translation artifacts."""

from __future__ import annotations

from collections.abc import Collection, Mapping

from lokal_schemas.corpus import Corpus
from lokal_schemas.translation import TranslationOutcome


def merge_outcomes(
    existing: Mapping[str, str], outcomes: Mapping[str, TranslationOutcome]
) -> dict[str, str]:
    """Merge successful outcomes into a copy of the existing entries.

    Failed outcomes are dropped: an existing key keeps its prior translation
    and a new key stays absent so it is retried on the next run.

    Returns:
        dict[str, str]: Merged entries. ``existing`` is not modified.
    """
    merged = dict(existing)
    for key, outcome in outcomes.items():
        if outcome.succeeded:
            merged[key] = outcome.text
    return merged


def remove_and_reorder(
    merged: Mapping[str, str], source: Corpus, to_remove: Collection[str]
) -> dict[str, str]:
    """Drop removed keys and rebuild the entries in source order.

    Returns:
        dict[str, str]: Entries whose keys appear in ``source``, in source order.
    """
    remaining = {key: text for key, text in merged.items() if key not in to_remove}
    return {key: remaining[key] for key in source.keys() if key in remaining}

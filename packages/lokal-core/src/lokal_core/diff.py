"""Update planning between a fresh corpus and a persisted artifact."""

from __future__ import annotations

from collections.abc import Mapping

from lokal_schemas.corpus import Corpus
from lokal_schemas.translation import UpdatePlan


def diff_corpus(
    source: Corpus, existing: Mapping[str, str], *, force: bool = False
) -> UpdatePlan:
    """Compute which keys need translating and which should be removed.

    Only key presence is compared. A key whose source text changed but which
    already has a translation is counted as unchanged and keeps its existing
    translation.

    Args:
        source: Freshly extracted corpus.
        existing: Entries of the persisted artifact.
        force: Translate every source key regardless of the artifact.

    Returns:
        UpdatePlan: Keys to translate in source order, keys to remove, and the
        number of keys present in both.
    """
    to_remove = frozenset(key for key in existing if key not in source)
    unchanged_count = sum(1 for key in source.keys() if key in existing)
    if force:
        to_translate = dict(source.items())
    else:
        to_translate = {
            key: text for key, text in source.items() if key not in existing
        }
    return UpdatePlan(
        to_translate=to_translate,
        to_remove=to_remove,
        unchanged_count=unchanged_count,
        forced=force,
    )

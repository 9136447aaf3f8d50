"""Corpus extraction from embedded-block and flat JSON source documents."""

from __future__ import annotations

import json
import re

from lokal_core.ports.source import ParseError
from lokal_schemas.corpus import Corpus
from lokal_schemas.primitives import RESERVED_KEYS, SourceShape

EMBEDDED_BLOCK_PATTERN = re.compile(
    r'var knownTranslations =\s*"""\s*\n(.*?)\n""";', re.DOTALL
)


def extract_corpus(raw: str, shape: SourceShape) -> Corpus:
    """Parse raw source text into a corpus.

    Args:
        raw: Raw source document text.
        shape: Document shape.

    Returns:
        Corpus: Entries in order of first appearance.

    Raises:
        ParseError: If the document cannot be parsed.
    """
    if SourceShape(shape) == SourceShape.EMBEDDED:
        return parse_flat_document(extract_embedded_block(raw))
    return parse_flat_document(raw)


def extract_embedded_block(raw: str) -> str:
    """Return the JSON text embedded in a ``knownTranslations`` block.

    Raises:
        ParseError: If the delimiter pattern is absent.
    """
    match = EMBEDDED_BLOCK_PATTERN.search(raw)
    if match is None:
        raise ParseError.build(
            "Could not find the knownTranslations block in the source document"
        )
    return match.group(1)


def parse_flat_document(text: str) -> Corpus:
    """Parse a flat JSON object into a corpus.

    Reserved metadata keys are skipped and empty or null values fall back to
    their key. Numbers and booleans keep their JSON spelling.

    Raises:
        ParseError: On invalid JSON, a non-object root, an empty key, or
            nested values.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError.build(
            f"Source is not valid JSON: {exc.msg} (line {exc.lineno})",
            reason=str(exc),
        ) from exc
    if not isinstance(payload, dict):
        raise ParseError.build(
            f"Source root must be a JSON object, got {type(payload).__name__}"
        )
    entries: dict[str, str] = {}
    for key, value in payload.items():
        if key in RESERVED_KEYS:
            continue
        if not key:
            raise ParseError.build(
                "Source contains an entry with an empty key", reason="empty_key"
            )
        entries[key] = _coerce_value(key, value)
    return Corpus(entries=entries)


def _coerce_value(key: str, value: object) -> str:
    if value is None or value == "":
        return key
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        raise ParseError.build(
            f"Entry '{key}' has a nested {type(value).__name__} value",
            reason="nested_value",
        )
    return json.dumps(value)

"""Unit tests for the language catalog."""

import pytest
from pydantic import ValidationError

from lokal_schemas.languages import LanguageDescriptor, get_language, list_languages


def test_get_language_resolves_known_codes() -> None:
    """Ensure catalog lookups return descriptors."""
    spanish = get_language("es")

    assert spanish is not None
    assert spanish.name == "Spanish"
    assert spanish.native_name == "Español"


def test_get_language_is_case_insensitive() -> None:
    """Ensure lookups ignore case and surrounding whitespace."""
    assert get_language(" ZH-hans ") == get_language("zh-Hans")
    assert get_language("PT-br") is not None


def test_get_language_returns_none_for_unknown_code() -> None:
    """Ensure unknown codes resolve to None."""
    assert get_language("xx") is None
    assert get_language("") is None


def test_list_languages_is_sorted_by_name() -> None:
    """Ensure the catalog listing is ordered by display name."""
    names = [language.name for language in list_languages()]

    assert names == sorted(names)
    assert len(names) == len({language.code for language in list_languages()})


def test_descriptor_is_frozen() -> None:
    """Ensure descriptors cannot be mutated."""
    descriptor = LanguageDescriptor(code="es", name="Spanish", native_name="Español")

    with pytest.raises(ValidationError):
        descriptor.name = "Castilian"  # type: ignore[misc]

"""Static language catalog used to resolve target languages."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from lokal_schemas.base import BaseSchema
from lokal_schemas.primitives import LanguageCode


class LanguageDescriptor(BaseSchema):
    """Immutable description of a supported target language."""

    model_config = ConfigDict(frozen=True)

    code: LanguageCode = Field(..., description="Language code")
    name: str = Field(..., min_length=1, description="English display name")
    native_name: str = Field(..., min_length=1, description="Native display name")


def _language(code: str, name: str, native_name: str) -> LanguageDescriptor:
    return LanguageDescriptor(code=code, name=name, native_name=native_name)


_CATALOG: tuple[LanguageDescriptor, ...] = (
    _language("ar", "Arabic", "العربية"),
    _language("bg", "Bulgarian", "Български"),
    _language("bn", "Bengali", "বাংলা"),
    _language("cs", "Czech", "Čeština"),
    _language("da", "Danish", "Dansk"),
    _language("de", "German", "Deutsch"),
    _language("el", "Greek", "Ελληνικά"),
    _language("es", "Spanish", "Español"),
    _language("fa", "Persian", "فارسی"),
    _language("fi", "Finnish", "Suomi"),
    _language("fr", "French", "Français"),
    _language("he", "Hebrew", "עברית"),
    _language("hi", "Hindi", "हिन्दी"),
    _language("hu", "Hungarian", "Magyar"),
    _language("id", "Indonesian", "Bahasa Indonesia"),
    _language("it", "Italian", "Italiano"),
    _language("ja", "Japanese", "日本語"),
    _language("ko", "Korean", "한국어"),
    _language("nl", "Dutch", "Nederlands"),
    _language("no", "Norwegian", "Norsk"),
    _language("pl", "Polish", "Polski"),
    _language("pt-BR", "Portuguese", "Português (Brasil)"),
    _language("ro", "Romanian", "Română"),
    _language("ru", "Russian", "Русский"),
    _language("sv", "Swedish", "Svenska"),
    _language("sw", "Swahili", "Kiswahili"),
    _language("th", "Thai", "ไทย"),
    _language("tr", "Turkish", "Türkçe"),
    _language("uk", "Ukrainian", "Українська"),
    _language("ur", "Urdu", "اردو"),
    _language("vi", "Vietnamese", "Tiếng Việt"),
    _language("zh-Hans", "Chinese", "简体中文"),
)

_BY_CODE: dict[str, LanguageDescriptor] = {
    language.code.lower(): language for language in _CATALOG
}


def get_language(code: str) -> LanguageDescriptor | None:
    """Look up a language by code (case-insensitive).

    Returns:
        LanguageDescriptor | None: Catalog entry, or None when unsupported.
    """
    return _BY_CODE.get(code.strip().lower())


def list_languages() -> list[LanguageDescriptor]:
    """Return every catalog language ordered by English display name.

    Returns:
        list[LanguageDescriptor]: Catalog entries sorted by name.
    """
    return sorted(_CATALOG, key=lambda language: language.name)

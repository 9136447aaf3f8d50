"""Prompt templates for UI string translation."""

from __future__ import annotations

SYSTEM_PROMPT_TEMPLATE = """\
You are a professional translator for {product_name}.
Translate the given English text to {target_language}.

## Context
This text is user interface content for {product_name}.
Produce clear, professional and user-friendly translations.{entry_context}

## Guidelines

- Keep technical and domain-specific terms in their commonly used form,
  preferably using transliteration when appropriate.
- Keep placeholder variables like {{0}} and {{1}} unchanged.
- Preserve HTML tags and special formatting as-is.
- Prefer transliteration over translation for standard UI terms unless a
  widely accepted translated equivalent exists.
- Follow the grammar and sentence structure of the target language.
- Use a formal tone.

Respond with only the translated text.
No explanations, no additional formatting, no comments."""


def build_system_prompt(
    target_language: str, product_name: str, context: str | None = None
) -> str:
    """Render the system prompt for one entry.

    Args:
        target_language: Target language display name.
        product_name: Product the strings belong to.
        context: Optional extra context for this entry.

    Returns:
        str: System prompt text.
    """
    entry_context = ""
    if context and context.strip():
        entry_context = f"\nAdditional context: {context.strip()}"
    return SYSTEM_PROMPT_TEMPLATE.format(
        product_name=product_name,
        target_language=target_language,
        entry_context=entry_context,
    )

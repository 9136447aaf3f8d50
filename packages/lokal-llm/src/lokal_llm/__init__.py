"""LLM provider clients for lokal."""

from lokal_llm.openrouter import (
    MissingApiKeyError,
    OpenRouterClient,
    parse_completion,
    resolve_api_key,
    resolve_model_id,
)
from lokal_llm.prompts import build_system_prompt

__all__ = [
    "MissingApiKeyError",
    "OpenRouterClient",
    "build_system_prompt",
    "parse_completion",
    "resolve_api_key",
    "resolve_model_id",
]

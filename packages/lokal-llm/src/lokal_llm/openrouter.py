"""OpenRouter chat-completions client with bounded retries."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from types import TracebackType
from typing import Self

import httpx

from lokal_core.ports.provider import (
    ProviderAttempt,
    ProviderErrorCode,
    ProviderErrorInfo,
    ProviderFailure,
    ProviderResponseError,
    ProviderSuccess,
    TranslationClientProtocol,
)
from lokal_core.scheduler import SleepFn
from lokal_llm.prompts import build_system_prompt
from lokal_schemas.config import ProviderConfig, RetryConfig
from lokal_schemas.translation import (
    TranslationEntry,
    TranslationErrorKind,
    TranslationOutcome,
)

_DETAIL_LIMIT = 200


class MissingApiKeyError(ValueError):
    """Raised when the provider credential is not available."""


def resolve_api_key(provider: ProviderConfig, environ: Mapping[str, str]) -> str:
    """Read the bearer credential from the configured environment variable.

    Raises:
        MissingApiKeyError: If the variable is unset or blank.

    Returns:
        str: API key.
    """
    value = environ.get(provider.api_key_env, "").strip()
    if not value:
        raise MissingApiKeyError(
            f"Environment variable {provider.api_key_env} is not set"
        )
    return value


def resolve_model_id(provider: ProviderConfig, environ: Mapping[str, str]) -> str:
    """Return the model id, honoring the model override variable when set."""
    if provider.model_env:
        override = environ.get(provider.model_env, "").strip()
        if override:
            return override
    return provider.model_id


def parse_completion(body: str) -> str:
    """Extract ``choices[0].message.content`` from a response body.

    Raises:
        ProviderResponseError: If the body is HTML, malformed, or carries no
            usable content.

    Returns:
        str: Trimmed completion text.
    """
    if body.lstrip().startswith("<"):
        raise ProviderResponseError(
            ProviderErrorInfo(
                code=ProviderErrorCode.HTML_RESPONSE,
                message="Provider returned an HTML response",
            )
        )
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ProviderResponseError(
            ProviderErrorInfo(
                code=ProviderErrorCode.INVALID_RESPONSE,
                message=f"Provider response is not valid JSON: {exc.msg}",
            )
        ) from exc
    content = _completion_content(payload)
    if content is None or not content.strip():
        raise ProviderResponseError(
            ProviderErrorInfo(
                code=ProviderErrorCode.EMPTY_CONTENT,
                message="No translation returned",
            )
        )
    return content.strip()


def _completion_content(payload: object) -> str | None:
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


class OpenRouterClient(TranslationClientProtocol):
    """Translate single entries through an OpenRouter-compatible endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        provider: ProviderConfig,
        retry: RetryConfig,
        model_id: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Bearer credential.
            provider: Provider settings.
            retry: Retry policy.
            model_id: Model override (defaults to provider.model_id).
            http_client: Optional pre-configured HTTP client. If None, the
                client creates and owns one.
            sleep: Optional async sleep used between attempts.

        Raises:
            ValueError: If the API key is blank.
        """
        if not api_key.strip():
            raise ValueError("api_key must not be blank")
        self._api_key = api_key
        self._provider = provider
        self._retry = retry
        self._model_id = model_id or provider.model_id
        self._http_client = http_client
        self._owns_client = http_client is None
        self._sleep = sleep or asyncio.sleep

    @property
    def model_id(self) -> str:
        """Return the model identifier used for requests."""
        return self._model_id

    async def __aenter__(self) -> Self:
        """Enter the client context."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the owned HTTP client."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client when this instance created it."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def translate(self, entry: TranslationEntry) -> TranslationOutcome:
        """Translate one entry with bounded retries.

        Returns:
            TranslationOutcome: Success with the translated text, or failure
            carrying the last error and the source text.
        """
        max_attempts = self._retry.max_attempts
        attempts = 0
        last_failure: ProviderFailure | None = None
        while attempts < max_attempts:
            attempts += 1
            result = await self.attempt(entry)
            if isinstance(result, ProviderSuccess):
                return TranslationOutcome(
                    key=entry.key,
                    text=result.text,
                    succeeded=True,
                    attempts=attempts,
                )
            last_failure = result
            if attempts < max_attempts:
                await self._sleep(self._retry.delay_s)
        return TranslationOutcome(
            key=entry.key,
            text=entry.source_text,
            succeeded=False,
            error_kind=None if last_failure is None else last_failure.kind,
            error_detail=None if last_failure is None else last_failure.detail,
            attempts=attempts,
        )

    async def attempt(self, entry: TranslationEntry) -> ProviderAttempt:
        """Make a single provider request.

        Returns:
            ProviderAttempt: ProviderSuccess or ProviderFailure.
        """
        client = self._client()
        try:
            response = await client.post(
                self._provider.endpoint_url,
                headers=self.build_headers(),
                json=self.build_request_body(entry),
                timeout=self._provider.timeout_s,
            )
        except httpx.HTTPError as exc:
            return ProviderFailure(
                kind=TranslationErrorKind.TRANSPORT,
                detail=_truncate(f"{type(exc).__name__}: {exc}"),
            )
        except Exception as exc:
            # Request building errors (bad URL, unencodable header) retry too.
            return ProviderFailure(
                kind=TranslationErrorKind.UNEXPECTED,
                detail=_truncate(f"{type(exc).__name__}: {exc}"),
            )
        if not response.is_success:
            return ProviderFailure(
                kind=TranslationErrorKind.HTTP_STATUS,
                detail=f"API error: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            text = parse_completion(response.text)
        except ProviderResponseError as exc:
            return exc.info.to_failure()
        return ProviderSuccess(text=text)

    def build_headers(self) -> dict[str, str]:
        """Return request headers."""
        return {
            "Authorization": f"Bearer {self._api_key}",
            "HTTP-Referer": self._provider.referer,
            "X-Title": self._provider.title,
            "Content-Type": "application/json",
        }

    def build_request_body(self, entry: TranslationEntry) -> dict[str, object]:
        """Return the chat-completions request body for an entry."""
        return {
            "model": self._model_id,
            "messages": [
                {
                    "role": "system",
                    "content": build_system_prompt(
                        entry.target_language,
                        self._provider.product_name,
                        entry.context,
                    ),
                },
                {"role": "user", "content": entry.source_text},
            ],
            "max_tokens": self._provider.max_output_tokens,
            "temperature": self._provider.temperature,
            "top_p": self._provider.top_p,
        }

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._provider.timeout_s, follow_redirects=True
            )
        return self._http_client


def _truncate(detail: str) -> str:
    detail = detail.strip() or "request failed"
    if len(detail) <= _DETAIL_LIMIT:
        return detail
    return detail[: _DETAIL_LIMIT - 3] + "..."

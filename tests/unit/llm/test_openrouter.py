"""Unit tests for the OpenRouter translation client."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from lokal_core.ports.provider import (
    ProviderErrorCode,
    ProviderFailure,
    ProviderResponseError,
)
from lokal_llm import (
    MissingApiKeyError,
    OpenRouterClient,
    build_system_prompt,
    parse_completion,
    resolve_api_key,
    resolve_model_id,
)
from lokal_schemas.config import DEFAULT_ENDPOINT_URL, ProviderConfig, RetryConfig
from lokal_schemas.translation import TranslationEntry, TranslationErrorKind


def _completion(content: str | None) -> dict[str, object]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class _RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _client(
    http_client: httpx.AsyncClient, sleep: _RecordingSleep | None = None
) -> OpenRouterClient:
    return OpenRouterClient(
        api_key="sk-test",
        provider=ProviderConfig(product_name="Example Shop", title="Translator"),
        retry=RetryConfig(max_attempts=2, delay_s=1.0),
        http_client=http_client,
        sleep=sleep or _RecordingSleep(),
    )


def _entry(text: str = "Save") -> TranslationEntry:
    return TranslationEntry(key=text, source_text=text, target_language="Spanish")


def test_parse_completion_trims_content() -> None:
    """Ensure completion content is extracted and trimmed."""
    assert parse_completion(json.dumps(_completion("  Guardar \n"))) == "Guardar"


@pytest.mark.parametrize(
    ("body", "code"),
    [
        ("<html><body>Bad gateway</body></html>", ProviderErrorCode.HTML_RESPONSE),
        ("not json", ProviderErrorCode.INVALID_RESPONSE),
        (json.dumps({"choices": []}), ProviderErrorCode.EMPTY_CONTENT),
        (json.dumps(_completion("   ")), ProviderErrorCode.EMPTY_CONTENT),
        (json.dumps(_completion(None)), ProviderErrorCode.EMPTY_CONTENT),
    ],
)
def test_parse_completion_rejects_unusable_bodies(
    body: str, code: ProviderErrorCode
) -> None:
    """Ensure HTML, malformed and empty bodies are classified."""
    with pytest.raises(ProviderResponseError) as exc_info:
        parse_completion(body)

    assert exc_info.value.info.code == code


def test_resolve_api_key_requires_value() -> None:
    """Ensure a missing credential raises MissingApiKeyError."""
    provider = ProviderConfig()

    with pytest.raises(MissingApiKeyError):
        resolve_api_key(provider, {})
    with pytest.raises(MissingApiKeyError):
        resolve_api_key(provider, {"OPENROUTER_API_KEY": "  "})
    assert resolve_api_key(provider, {"OPENROUTER_API_KEY": "sk-1"}) == "sk-1"


def test_resolve_model_id_honors_override() -> None:
    """Ensure the model override variable wins when set."""
    provider = ProviderConfig(model_id="base/model")

    assert resolve_model_id(provider, {}) == "base/model"
    assert resolve_model_id(provider, {"OPENROUTER_MODEL": "other/model"}) == (
        "other/model"
    )


def test_client_rejects_blank_api_key() -> None:
    """Ensure the client refuses a blank credential."""
    with pytest.raises(ValueError):
        OpenRouterClient(
            api_key=" ", provider=ProviderConfig(), retry=RetryConfig()
        )


def test_system_prompt_names_product_and_language() -> None:
    """Ensure the prompt mentions the product and target language."""
    prompt = build_system_prompt("Hindi", "Example Shop", context="Button label")

    assert "professional translator for Example Shop" in prompt
    assert "English text to Hindi" in prompt
    assert "{0}" in prompt
    assert "Additional context: Button label" in prompt


@pytest.mark.asyncio
@respx.mock
async def test_translate_sends_expected_request() -> None:
    """Ensure headers and body follow the chat-completions contract."""
    route = respx.post(DEFAULT_ENDPOINT_URL).mock(
        return_value=httpx.Response(200, json=_completion("Guardar"))
    )
    async with httpx.AsyncClient() as http_client:
        outcome = await _client(http_client).translate(_entry())

    assert outcome.succeeded
    assert outcome.text == "Guardar"
    assert outcome.attempts == 1
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["X-Title"] == "Translator"
    assert "HTTP-Referer" in request.headers
    body = json.loads(request.content)
    assert body["max_tokens"] == 150
    assert body["temperature"] == 0.0
    assert body["top_p"] == 0.9
    assert body["messages"][0]["role"] == "system"
    assert "Spanish" in body["messages"][0]["content"]
    assert body["messages"][1] == {"role": "user", "content": "Save"}


@pytest.mark.asyncio
@respx.mock
async def test_translate_retries_after_server_error() -> None:
    """Ensure a 500 is retried once after the configured delay."""
    respx.post(DEFAULT_ENDPOINT_URL).mock(
        side_effect=[
            httpx.Response(500, text="boom"),
            httpx.Response(200, json=_completion("Cancelar")),
        ]
    )
    sleep = _RecordingSleep()
    async with httpx.AsyncClient() as http_client:
        outcome = await _client(http_client, sleep).translate(_entry("Cancel"))

    assert outcome.succeeded
    assert outcome.text == "Cancelar"
    assert outcome.attempts == 2
    assert sleep.calls == [1.0]


@pytest.mark.asyncio
@respx.mock
async def test_translate_gives_up_with_source_text() -> None:
    """Ensure exhausted retries return the source text and last error."""
    route = respx.post(DEFAULT_ENDPOINT_URL).mock(
        return_value=httpx.Response(503, text="unavailable")
    )
    sleep = _RecordingSleep()
    async with httpx.AsyncClient() as http_client:
        outcome = await _client(http_client, sleep).translate(_entry("Pay"))

    assert not outcome.succeeded
    assert outcome.text == "Pay"
    assert outcome.error_kind == TranslationErrorKind.HTTP_STATUS
    assert outcome.error_detail == "API error: 503"
    assert outcome.attempts == 2
    assert route.call_count == 2
    assert sleep.calls == [1.0]


@pytest.mark.asyncio
@respx.mock
async def test_translate_classifies_html_success_body() -> None:
    """Ensure an HTML page with status 200 is a failed attempt."""
    respx.post(DEFAULT_ENDPOINT_URL).mock(
        return_value=httpx.Response(200, text="<!DOCTYPE html><html></html>")
    )
    async with httpx.AsyncClient() as http_client:
        outcome = await _client(http_client).translate(_entry())

    assert not outcome.succeeded
    assert outcome.error_kind == TranslationErrorKind.HTML_RESPONSE


@pytest.mark.asyncio
@respx.mock
async def test_attempt_reports_transport_failure() -> None:
    """Ensure transport errors become TRANSPORT failures."""
    respx.post(DEFAULT_ENDPOINT_URL).mock(
        side_effect=httpx.ConnectTimeout("timed out")
    )
    async with httpx.AsyncClient() as http_client:
        failure = await _client(http_client).attempt(_entry())

    assert isinstance(failure, ProviderFailure)
    assert failure.kind == TranslationErrorKind.TRANSPORT


@pytest.mark.asyncio
@respx.mock
async def test_owned_client_is_closed_on_exit() -> None:
    """Ensure a client created internally is closed with the context."""
    respx.post(DEFAULT_ENDPOINT_URL).mock(
        return_value=httpx.Response(200, json=_completion("Hola"))
    )
    async with OpenRouterClient(
        api_key="sk-test",
        provider=ProviderConfig(),
        retry=RetryConfig(),
    ) as client:
        outcome = await client.translate(_entry("Hello"))

    assert outcome.text == "Hola"


@pytest.mark.asyncio
@respx.mock
async def test_translate_retries_request_building_errors() -> None:
    """Ensure a header httpx cannot encode is retried and reported unexpected."""
    route = respx.post(DEFAULT_ENDPOINT_URL).mock(
        return_value=httpx.Response(200, json=_completion("Hola"))
    )
    sleep = _RecordingSleep()
    async with httpx.AsyncClient() as http_client:
        client = OpenRouterClient(
            api_key="sk-test",
            provider=ProviderConfig(title="Traducción"),
            retry=RetryConfig(max_attempts=3, delay_s=0.5),
            http_client=http_client,
            sleep=sleep,
        )
        outcome = await client.translate(_entry("Hello"))

    assert not outcome.succeeded
    assert outcome.text == "Hello"
    assert outcome.error_kind == TranslationErrorKind.UNEXPECTED
    assert outcome.attempts == 3
    assert sleep.calls == [0.5, 0.5]
    assert route.call_count == 0

"""Unit tests for API response schemas."""

from lokal_schemas.responses import ApiResponse, ErrorDetails, ErrorResponse, MetaInfo


def test_api_response_with_error() -> None:
    """Ensure error responses serialize with required fields."""
    response = ApiResponse[dict[str, str]](
        data=None,
        error=ErrorResponse(
            code="orchestration.unknown_language",
            message="Unknown language code 'xx'",
            details=ErrorDetails(
                field="language",
                provided="xx",
                valid_options=["de", "fr"],
                stage="resolve_language",
            ),
            exit_code=10,
        ),
        meta=MetaInfo(timestamp="2026-01-25T12:00:00Z"),
    )

    payload = response.model_dump()
    assert payload["data"] is None
    assert payload["error"]["code"] == "orchestration.unknown_language"
    assert payload["error"]["details"]["stage"] == "resolve_language"
    assert payload["error"]["exit_code"] == 10

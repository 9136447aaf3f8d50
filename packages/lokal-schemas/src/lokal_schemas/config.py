"""Configuration schemas for lokal translation runs."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import Field, field_validator, model_validator

from lokal_schemas.base import BaseSchema
from lokal_schemas.primitives import (
    ArtifactFlavor,
    LogLevel,
    LogSinkType,
    ProfileName,
    SourceShape,
)

DEFAULT_ENDPOINT_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL_ID = "anthropic/claude-3.5-sonnet"


class ProviderConfig(BaseSchema):
    """Chat-completions provider settings."""

    endpoint_url: str = Field(
        DEFAULT_ENDPOINT_URL, min_length=1, description="Chat completions endpoint"
    )
    model_id: str = Field(
        DEFAULT_MODEL_ID, min_length=1, description="Model identifier"
    )
    api_key_env: str = Field(
        "OPENROUTER_API_KEY",
        min_length=1,
        description="Environment variable holding the bearer credential",
    )
    model_env: str | None = Field(
        "OPENROUTER_MODEL",
        description="Environment variable that overrides model_id when set",
    )
    referer: str = Field("lokal", min_length=1, description="HTTP-Referer header")
    title: str = Field("lokal", min_length=1, description="X-Title header")
    product_name: str = Field(
        "the application",
        min_length=1,
        description="Product name mentioned in the translator instructions",
    )
    temperature: float = Field(0.0, ge=0, le=2, description="Sampling temperature")
    top_p: float = Field(0.9, ge=0, le=1, description="Top-p sampling")
    max_output_tokens: int = Field(150, ge=1, description="Maximum output tokens")
    timeout_s: float = Field(100.0, gt=0, description="Request timeout in seconds")

    @field_validator("endpoint_url")
    @classmethod
    def _validate_endpoint_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("endpoint_url must be an http(s) URL")
        return value


class RetryConfig(BaseSchema):
    """Retry policy for provider requests."""

    max_attempts: int = Field(2, ge=1, description="Maximum attempts per entry")
    delay_s: float = Field(1.0, ge=0, description="Fixed delay between attempts")


class ConcurrencyConfig(BaseSchema):
    """Concurrency and pacing settings for batch dispatch."""

    max_parallel_requests: int = Field(
        2, ge=1, description="Max concurrent provider requests"
    )
    chunk_size: int = Field(50, ge=1, description="Entries per scheduler chunk")
    request_pause_s: float = Field(
        0.3, ge=0, description="Pause after each request before its slot is reused"
    )
    chunk_pause_s: float = Field(0.5, ge=0, description="Pause between chunks")


class CacheConfig(BaseSchema):
    """Disk cache settings for remote source fetches."""

    cache_dir: str | None = Field(
        None, description="Cache directory (defaults to <tempdir>/lokal/cache)"
    )
    ttl_s: float = Field(3600.0, gt=0, description="Freshness window in seconds")


class LogSinkConfig(BaseSchema):
    """Configuration for a single log sink."""

    type: LogSinkType = Field(..., description="Log sink type (console|file|noop)")
    level: LogLevel = Field(
        LogLevel.INFO, description="Lowest level this sink writes"
    )

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: object) -> LogSinkType:
        if isinstance(value, LogSinkType):
            return value
        if isinstance(value, str):
            return LogSinkType(value)
        return value  # type: ignore[return-value]

    @field_validator("level", mode="before")
    @classmethod
    def _coerce_level(cls, value: object) -> LogLevel:
        if isinstance(value, str) and not isinstance(value, LogLevel):
            return LogLevel(value)
        return value  # type: ignore[return-value]


class LoggingConfig(BaseSchema):
    """Logging configuration for translation runs and CLI commands."""

    sinks: list[LogSinkConfig] = Field(
        default_factory=lambda: [LogSinkConfig(type=LogSinkType.CONSOLE)],
        min_length=1,
        description="Log sinks to enable",
    )
    logs_dir: str = Field("logs", min_length=1, description="Directory for JSONL logs")

    @model_validator(mode="after")
    def validate_sink_types(self) -> LoggingConfig:
        """Ensure log sink types are unique.

        Returns:
            LoggingConfig: Validated logging configuration.

        Raises:
            ValueError: If sink types are duplicated.
        """
        sink_types = [sink.type for sink in self.sinks]
        if len(set(sink_types)) != len(sink_types):
            raise ValueError("log sinks must not contain duplicates")
        return self


class ProfileConfig(BaseSchema):
    """Source and output settings for one translation profile."""

    source: str = Field(
        ..., min_length=1, description="Source document path or HTTP(S) URL"
    )
    source_shape: SourceShape = Field(..., description="Source document shape")
    output_dir: str = Field(..., min_length=1, description="Artifact directory")
    flavor: ArtifactFlavor = Field(
        ArtifactFlavor.BACKEND, description="Artifact flavor and naming scheme"
    )
    batch_size: int = Field(
        50, ge=1, description="Entries per orchestrator request batch"
    )
    batch_delay_s: float = Field(
        1.0, ge=0, description="Delay between orchestrator request batches"
    )

    @field_validator("source_shape", mode="before")
    @classmethod
    def _coerce_shape(cls, value: object) -> SourceShape:
        if isinstance(value, SourceShape):
            return value
        if isinstance(value, str):
            return SourceShape(value)
        return value  # type: ignore[return-value]

    @field_validator("flavor", mode="before")
    @classmethod
    def _coerce_flavor(cls, value: object) -> ArtifactFlavor:
        if isinstance(value, ArtifactFlavor):
            return value
        if isinstance(value, str):
            return ArtifactFlavor(value)
        return value  # type: ignore[return-value]


class RunConfig(BaseSchema):
    """Top-level configuration for lokal runs."""

    provider: ProviderConfig = Field(
        default_factory=ProviderConfig, description="Provider settings"
    )
    retry: RetryConfig = Field(default_factory=RetryConfig, description="Retry policy")
    concurrency: ConcurrencyConfig = Field(
        default_factory=ConcurrencyConfig, description="Concurrency settings"
    )
    cache: CacheConfig = Field(default_factory=CacheConfig, description="Fetch cache")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    profiles: dict[ProfileName, ProfileConfig] = Field(
        ..., min_length=1, description="Named translation profiles"
    )

    def get_profile(self, name: str) -> ProfileConfig:
        """Return a profile by name.

        Args:
            name: Profile name.

        Returns:
            ProfileConfig: Matching profile.

        Raises:
            KeyError: If the profile is not configured.
        """
        try:
            return self.profiles[name]
        except KeyError:
            known = ", ".join(sorted(self.profiles))
            raise KeyError(f"Unknown profile '{name}' (configured: {known})") from None

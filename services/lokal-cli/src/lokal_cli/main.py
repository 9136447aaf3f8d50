"""CLI entry point - thin adapter over lokal-core."""

from __future__ import annotations

import asyncio
import os
import tomllib
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import NamedTuple, NoReturn, TypeVar

import httpx
import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from lokal_core import VERSION, TranslationOrchestrator, build_status_report
from lokal_core.ports.artifact import ArtifactError
from lokal_core.ports.orchestrator import LogSinkProtocol, OrchestrationError
from lokal_core.ports.source import SourceError
from lokal_core.ports.storage import StorageError
from lokal_io.artifact.store import FileSystemArtifactStore
from lokal_io.source.cache import FetchCache
from lokal_io.source.extract import extract_corpus
from lokal_io.source.fetcher import SourceFetcher, is_remote
from lokal_io.storage.filesystem import FileSystemLogStore
from lokal_io.storage.log_sink import build_log_sink
from lokal_llm import (
    MissingApiKeyError,
    OpenRouterClient,
    resolve_api_key,
    resolve_model_id,
)
from lokal_schemas.config import ProfileConfig, RunConfig
from lokal_schemas.exit_codes import ExitCode, resolve_exit_code
from lokal_schemas.languages import LanguageDescriptor, list_languages
from lokal_schemas.primitives import JsonValue
from lokal_schemas.responses import ApiResponse, ErrorResponse, MetaInfo
from lokal_schemas.translation import (
    LanguageRunResult,
    MultiLanguageRunResult,
    StatusReport,
)
from lokal_schemas.validation import validate_run_config

CONFIG_OPTION = typer.Option(
    Path("lokal.toml"),
    "--config",
    "-c",
    help="Path to lokal TOML config",
)
PROFILE_OPTION = typer.Option(
    "backend", "--profile", "-p", help="Source profile defined in the config"
)
LANGUAGE_OPTION = typer.Option(
    ..., "--language", "-l", help="Language code to translate to (e.g. hi, es, fr)"
)
LANGUAGES_OPTION = typer.Option(
    ...,
    "--languages",
    "-l",
    help="Language codes to translate to (repeatable or comma-separated)",
)
FORCE_OPTION = typer.Option(
    False, "--force", "-f", help="Re-translate every entry, ignoring the artifact"
)
CONTINUE_ON_ERROR_OPTION = typer.Option(
    True,
    "--continue-on-error/--stop-on-error",
    help="Keep translating remaining languages after a failure",
)
JSON_OPTION = typer.Option(False, "--json", help="Output as JSON")

app = typer.Typer(
    help="Incremental UI string translation through an LLM provider",
    no_args_is_help=True,
)

ResponseT = TypeVar("ResponseT")


@app.callback()
def main() -> None:
    """Lokal CLI."""


@app.command()
def version() -> None:
    """Display version information."""
    rprint(f"[bold]lokal[/bold] v{VERSION}")


@app.command("list-languages")
def list_languages_command(json_output: bool = JSON_OPTION) -> None:
    """List supported target languages."""
    languages = list_languages()
    if json_output:
        response: ApiResponse[list[LanguageDescriptor]] = ApiResponse(
            data=languages, error=None, meta=MetaInfo(timestamp=_now_timestamp())
        )
        print(response.model_dump_json())
        return
    table = Table(title="Supported Languages")
    table.add_column("Code")
    table.add_column("Name")
    table.add_column("Native Name")
    for language in languages:
        table.add_row(language.code, language.name, language.native_name)
    Console().print(table)


@app.command()
def translate(
    language: str = LANGUAGE_OPTION,
    config_path: Path = CONFIG_OPTION,
    profile_name: str = PROFILE_OPTION,
    force: bool = FORCE_OPTION,
) -> None:
    """Translate the profile's source strings into one language.

    Raises:
        typer.Exit: With a non-zero code when the run fails.
    """
    try:
        config = _load_resolved_config(config_path)
        profile = _resolve_profile(config, profile_name)
        result = asyncio.run(
            _translate_async(
                config=config,
                profile=profile,
                profile_name=profile_name,
                language=language,
                force=force,
            )
        )
    except Exception as exc:
        _exit_with_error(_error_from_exception(exc))
    error: ErrorResponse | None = None
    if result.error is not None:
        error = _with_exit_code(result.error)
    response: ApiResponse[LanguageRunResult] = ApiResponse(
        data=result,
        error=error,
        meta=MetaInfo(timestamp=_now_timestamp()),
    )
    print(response.model_dump_json())
    if error is not None:
        raise typer.Exit(code=error.exit_code or int(ExitCode.RUNTIME_ERROR))


@app.command()
def batch(
    languages: list[str] = LANGUAGES_OPTION,
    config_path: Path = CONFIG_OPTION,
    profile_name: str = PROFILE_OPTION,
    force: bool = FORCE_OPTION,
    continue_on_error: bool = CONTINUE_ON_ERROR_OPTION,
) -> None:
    """Translate the profile's source strings into several languages.

    Raises:
        typer.Exit: With a non-zero code when any language fails.
    """
    try:
        codes = _split_codes(languages)
        if not codes:
            raise _ConfigError("At least one language code is required")
        config = _load_resolved_config(config_path)
        profile = _resolve_profile(config, profile_name)
        result = asyncio.run(
            _batch_async(
                config=config,
                profile=profile,
                profile_name=profile_name,
                languages=codes,
                force=force,
                continue_on_error=continue_on_error,
            )
        )
    except Exception as exc:
        _exit_with_error(_error_from_exception(exc))
    error: ErrorResponse | None = None
    if not result.all_succeeded:
        failed = [code for code, ok in result.results.items() if not ok]
        error = ErrorResponse(
            code="translation_failed",
            message=f"Translation failed for: {', '.join(failed)}",
            exit_code=int(ExitCode.TRANSLATION_FAILED),
        )
    response: ApiResponse[MultiLanguageRunResult] = ApiResponse(
        data=result, error=error, meta=MetaInfo(timestamp=_now_timestamp())
    )
    print(response.model_dump_json())
    if error is not None:
        raise typer.Exit(code=int(ExitCode.TRANSLATION_FAILED))


@app.command()
def status(
    config_path: Path = CONFIG_OPTION,
    profile_name: str = PROFILE_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Show artifact status for every supported language.

    Raises:
        typer.Exit: With a non-zero code when the config cannot be loaded.
    """
    try:
        config = _load_resolved_config(config_path)
        profile = _resolve_profile(config, profile_name)
        report = asyncio.run(
            build_status_report(
                profile, FileSystemArtifactStore(), profile_name=profile_name
            )
        )
    except Exception as exc:
        error = _error_from_exception(exc)
        if json_output:
            _exit_with_error(error)
        rprint(f"[red]Error:[/red] {error.message}")
        raise typer.Exit(code=error.exit_code or int(ExitCode.RUNTIME_ERROR)) from None
    if json_output:
        response: ApiResponse[StatusReport] = ApiResponse(
            data=report, error=None, meta=MetaInfo(timestamp=_now_timestamp())
        )
        print(response.model_dump_json())
        return
    Console().print(_build_status_table(report))


class _ConfigError(Exception):
    """Raised for CLI configuration issues."""


class _Runtime(NamedTuple):
    log_sink: LogSinkProtocol
    fetcher: SourceFetcher
    store: FileSystemArtifactStore
    client: OpenRouterClient


async def _translate_async(
    *,
    config: RunConfig,
    profile: ProfileConfig,
    profile_name: str,
    language: str,
    force: bool,
) -> LanguageRunResult:
    async with httpx.AsyncClient(
        timeout=config.provider.timeout_s, follow_redirects=True
    ) as http_client:
        runtime = _build_runtime(config, http_client, os.environ)
        orchestrator = _build_orchestrator(config, runtime)
        return await orchestrator.translate_language(
            language.strip(), profile, force=force, profile_name=profile_name
        )


async def _batch_async(
    *,
    config: RunConfig,
    profile: ProfileConfig,
    profile_name: str,
    languages: list[str],
    force: bool,
    continue_on_error: bool,
) -> MultiLanguageRunResult:
    async with httpx.AsyncClient(
        timeout=config.provider.timeout_s, follow_redirects=True
    ) as http_client:
        runtime = _build_runtime(config, http_client, os.environ)
        orchestrator = _build_orchestrator(config, runtime)
        return await orchestrator.translate_languages(
            languages,
            profile,
            force=force,
            continue_on_error=continue_on_error,
            profile_name=profile_name,
        )


def _build_runtime(
    config: RunConfig,
    http_client: httpx.AsyncClient,
    environ: Mapping[str, str],
) -> _Runtime:
    log_sink = build_log_sink(
        config.logging, FileSystemLogStore(config.logging.logs_dir)
    )
    cache_dir = None if config.cache.cache_dir is None else Path(config.cache.cache_dir)
    fetcher = SourceFetcher(
        FetchCache(cache_dir, ttl_s=config.cache.ttl_s),
        http_client=http_client,
        timeout_s=config.provider.timeout_s,
        log_sink=log_sink,
    )
    client = OpenRouterClient(
        api_key=resolve_api_key(config.provider, environ),
        provider=config.provider,
        retry=config.retry,
        model_id=resolve_model_id(config.provider, environ),
        http_client=http_client,
    )
    return _Runtime(
        log_sink=log_sink,
        fetcher=fetcher,
        store=FileSystemArtifactStore(),
        client=client,
    )


def _build_orchestrator(
    config: RunConfig, runtime: _Runtime
) -> TranslationOrchestrator:
    return TranslationOrchestrator(
        config=config,
        fetcher=runtime.fetcher,
        extract=extract_corpus,
        store=runtime.store,
        client=runtime.client,
        log_sink=runtime.log_sink,
    )


def _load_resolved_config(config_path: Path) -> RunConfig:
    config = _load_run_config(config_path)
    return _resolve_config_paths(config, config_path)


def _load_run_config(config_path: Path) -> RunConfig:
    _load_dotenv(config_path)
    if not config_path.exists():
        raise _ConfigError(f"Config not found: {config_path}")
    try:
        with open(config_path, "rb") as handle:
            payload: dict[str, JsonValue] = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise _ConfigError(f"Failed to read config: {exc}") from exc
    return validate_run_config(payload)


def _load_dotenv(config_path: Path) -> None:
    env_path = config_path.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


def _resolve_config_paths(config: RunConfig, config_path: Path) -> RunConfig:
    config_dir = config_path.parent.resolve()
    profiles = {
        name: profile.model_copy(
            update={
                "source": (
                    profile.source
                    if is_remote(profile.source)
                    else str(_resolve_path(Path(profile.source), config_dir))
                ),
                "output_dir": str(_resolve_path(Path(profile.output_dir), config_dir)),
            }
        )
        for name, profile in config.profiles.items()
    }
    logging = config.logging.model_copy(
        update={
            "logs_dir": str(_resolve_path(Path(config.logging.logs_dir), config_dir))
        }
    )
    cache = config.cache
    if cache.cache_dir is not None:
        cache = cache.model_copy(
            update={"cache_dir": str(_resolve_path(Path(cache.cache_dir), config_dir))}
        )
    return config.model_copy(
        update={"profiles": profiles, "logging": logging, "cache": cache}
    )


def _resolve_path(path: Path, base_dir: Path) -> Path:
    path = path.expanduser()
    resolved = path if path.is_absolute() else base_dir / path
    return resolved.resolve()


def _resolve_profile(config: RunConfig, profile_name: str) -> ProfileConfig:
    try:
        return config.get_profile(profile_name)
    except KeyError as exc:
        raise _ConfigError(str(exc.args[0])) from None


def _split_codes(values: list[str]) -> list[str]:
    codes: list[str] = []
    for value in values:
        codes.extend(part.strip() for part in value.split(",") if part.strip())
    return codes


def _build_status_table(report: StatusReport) -> Table:
    table = Table(title=f"Translation Status ({report.profile})")
    table.add_column("Language")
    table.add_column("Code")
    table.add_column("File Exists")
    table.add_column("Translations", justify="right")
    for row in report.rows:
        exists = "[green]✓[/green]" if row.exists else "[red]✗[/red]"
        count = str(row.entry_count)
        if row.error is not None:
            count = f"[yellow]unreadable[/yellow] ({row.error})"
        table.add_row(row.language_name, row.language_code, exists, count)
    return table


def _now_timestamp() -> str:
    timestamp = datetime.now(UTC).isoformat()
    return timestamp.replace("+00:00", "Z")


def _exit_with_error(error: ErrorResponse) -> NoReturn:
    response: ApiResponse[None] = _error_response(error)
    print(response.model_dump_json())
    raise typer.Exit(code=error.exit_code or int(ExitCode.RUNTIME_ERROR))


def _error_response(error: ErrorResponse) -> ApiResponse[ResponseT]:
    return ApiResponse(
        data=None,
        error=error,
        meta=MetaInfo(timestamp=_now_timestamp()),
    )


def _with_exit_code(error: ErrorResponse) -> ErrorResponse:
    return error.model_copy(
        update={"exit_code": int(resolve_exit_code(error.code))}
    )


def _error_from_exception(exc: Exception) -> ErrorResponse:
    if isinstance(exc, SourceError | ArtifactError | OrchestrationError | StorageError):
        return _with_exit_code(exc.info.to_error_response())
    if isinstance(exc, ValidationError):
        message = "Config validation failed"
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = first.get("loc", [])
            label = ".".join(str(part) for part in loc) if loc else ""
            detail = first.get("msg", "")
            if label and detail:
                message = f"Config validation failed: {label} - {detail}"
            elif detail:
                message = f"Config validation failed: {detail}"
        return _with_exit_code(ErrorResponse(code="config_error", message=message))
    if isinstance(exc, _ConfigError | MissingApiKeyError):
        return _with_exit_code(ErrorResponse(code="config_error", message=str(exc)))
    message = str(exc) or type(exc).__name__
    return _with_exit_code(ErrorResponse(code="runtime_error", message=message))


if __name__ == "__main__":
    app()

"""Source fetcher for local paths and remote URLs."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

import httpx

from lokal_core.ports.orchestrator import LogSinkProtocol, emit_log_entry
from lokal_core.ports.source import (
    NotFoundError,
    ParseError,
    SourceFetcherProtocol,
    TransportError,
    build_source_cache_hit_log,
    build_source_fetch_started_log,
    build_source_fetched_log,
)
from lokal_io.source.cache import FetchCache
from lokal_schemas.logs import LogEntry
from lokal_schemas.primitives import Timestamp

GITHUB_BLOB_PATTERN = re.compile(
    r"^https?://github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)/blob/(?P<rest>.+)$"
)
DEFAULT_TIMEOUT_S = 100.0


def is_remote(location: str) -> bool:
    """Return True when the location is an HTTP(S) URL."""
    return location.strip().lower().startswith(("http://", "https://"))


def rewrite_github_blob_url(url: str) -> str:
    """Rewrite a GitHub ``blob`` page URL to its raw-content URL.

    Other URLs are returned unchanged.

    Returns:
        str: URL suitable for fetching the raw document.
    """
    match = GITHUB_BLOB_PATTERN.match(url.strip())
    if match is None:
        return url.strip()
    return (
        "https://raw.githubusercontent.com/"
        f"{match['owner']}/{match['repo']}/{match['rest']}"
    )


class SourceFetcher(SourceFetcherProtocol):
    """Resolve local paths and remote URLs to raw text."""

    def __init__(
        self,
        cache: FetchCache | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        log_sink: LogSinkProtocol | None = None,
        clock: Callable[[], Timestamp] | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            cache: Cache for remote documents (default cache when None).
            http_client: Optional pre-configured HTTP client. If None, a
                client is created per remote fetch.
            timeout_s: Timeout for per-call clients.
            log_sink: Optional log sink.
            clock: Optional timestamp provider.
        """
        self._cache = cache or FetchCache()
        self._http_client = http_client
        self._timeout_s = timeout_s
        self._log_sink = log_sink
        self._clock = clock or _now_timestamp
        self._session_id = uuid4()

    async def fetch(self, location: str) -> str:
        """Return the raw text at a local path or URL.

        Raises:
            NotFoundError: When a local path does not exist.
            ParseError: When a local file is not valid UTF-8.
            TransportError: When a remote fetch fails.
        """
        await self._emit(
            build_source_fetch_started_log(self._clock(), self._session_id, location)
        )
        if is_remote(location):
            return await self._fetch_remote(location)
        return await self._read_local(location)

    async def _read_local(self, location: str) -> str:
        path = Path(location).expanduser()
        if not await asyncio.to_thread(path.is_file):
            raise NotFoundError.build(
                f"Source file not found: {location}", location=location
            )
        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError.build(
                f"Source file is not valid UTF-8: {location}",
                location=location,
                reason=str(exc),
            ) from exc
        except OSError as exc:
            raise TransportError.build(
                f"Could not read source file {location}: {exc}",
                location=location,
                reason=str(exc),
            ) from exc
        await self._emit(
            build_source_fetched_log(
                self._clock(), self._session_id, location, None, len(content)
            )
        )
        return content

    async def _fetch_remote(self, location: str) -> str:
        url = rewrite_github_blob_url(location)
        try:
            cached = await self._cache.get_fresh(url)
        except (OSError, ValueError) as exc:
            raise TransportError.build(
                f"Could not read cache entry for {url}: {exc}",
                location=location,
                reason=str(exc),
            ) from exc
        if cached is not None:
            await self._emit(
                build_source_cache_hit_log(
                    self._clock(),
                    self._session_id,
                    location,
                    str(cached.path),
                    cached.age_s(self._cache.now()),
                )
            )
            return cached.content

        if self._http_client is not None:
            content = await self._download(self._http_client, location, url)
        else:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, follow_redirects=True
            ) as client:
                content = await self._download(client, location, url)

        try:
            await self._cache.put(url, content)
        except OSError as exc:
            raise TransportError.build(
                f"Could not write cache entry for {url}: {exc}",
                location=location,
                reason=str(exc),
            ) from exc
        await self._emit(
            build_source_fetched_log(
                self._clock(),
                self._session_id,
                location,
                url if url != location else None,
                len(content),
            )
        )
        return content

    async def _download(
        self, client: httpx.AsyncClient, location: str, url: str
    ) -> str:
        try:
            response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError.build(
                f"Failed to fetch {url}: {exc}", location=location, reason=str(exc)
            ) from exc
        if not response.is_success:
            raise TransportError.build(
                f"Failed to fetch {url}: HTTP {response.status_code}",
                location=location,
                status_code=response.status_code,
            )
        return response.text

    async def _emit(self, entry: LogEntry) -> None:
        await emit_log_entry(self._log_sink, entry)


def _now_timestamp() -> Timestamp:
    value = datetime.now(tz=UTC).isoformat()
    return value.replace("+00:00", "Z")

"""Unit tests for the fetch cache and source fetcher."""

from __future__ import annotations

import os
import time
from pathlib import Path

import httpx
import pytest
import respx

from lokal_core.ports.source import NotFoundError, ParseError, TransportError
from lokal_io.source.cache import FetchCache, normalize_url
from lokal_io.source.fetcher import (
    SourceFetcher,
    is_remote,
    rewrite_github_blob_url,
)
from lokal_schemas.logs import LogEntry

BLOB_URL = (
    "https://github.com/example/shop/blob/master/Shop/Translations.Default.cs"
)
RAW_URL = (
    "https://raw.githubusercontent.com/example/shop/master/Shop/Translations.Default.cs"
)


class _RecordingLogSink:
    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    async def emit_log(self, entry: LogEntry) -> None:
        self.entries.append(entry)


def test_rewrite_github_blob_url() -> None:
    """Ensure GitHub blob URLs are rewritten to raw content URLs."""
    assert rewrite_github_blob_url(BLOB_URL) == RAW_URL
    assert rewrite_github_blob_url("https://example.com/en.json") == (
        "https://example.com/en.json"
    )


def test_is_remote() -> None:
    """Ensure only http(s) locations are treated as remote."""
    assert is_remote("https://example.com/en.json")
    assert is_remote("HTTP://example.com/en.json")
    assert not is_remote("locales/en.json")


def test_normalize_url_drops_fragment_and_lowercases_host() -> None:
    """Ensure cache keys ignore fragments and host case."""
    assert normalize_url("HTTPS://Example.COM/a/En.json#top") == (
        "https://example.com/a/En.json"
    )


def test_cache_path_is_stable_per_url(tmp_path: Path) -> None:
    """Ensure equivalent URLs share a cache file and keep the suffix."""
    cache = FetchCache(tmp_path)

    first = cache.path_for("https://example.com/locales/en.json")
    second = cache.path_for("https://EXAMPLE.com/locales/en.json#x")

    assert first == second
    assert first.name.startswith("en_")
    assert first.suffix == ".json"
    assert cache.path_for("https://example.com/other/en.json") != first


@pytest.mark.asyncio
async def test_cache_entry_freshness_follows_ttl(tmp_path: Path) -> None:
    """Ensure a 30 minute old entry is fresh and a 90 minute old one is not."""
    now = time.time()
    cache = FetchCache(tmp_path, ttl_s=3600, now=lambda: now)
    entry = await cache.put("https://example.com/en.json", '{"a": "A"}')

    os.utime(entry.path, (now - 30 * 60, now - 30 * 60))
    fresh = await cache.get_fresh("https://example.com/en.json")
    assert fresh is not None
    assert fresh.content == '{"a": "A"}'

    os.utime(entry.path, (now - 90 * 60, now - 90 * 60))
    assert await cache.get_fresh("https://example.com/en.json") is None


def test_cache_rejects_non_positive_ttl(tmp_path: Path) -> None:
    """Ensure the TTL must be positive."""
    with pytest.raises(ValueError):
        FetchCache(tmp_path, ttl_s=0)


@pytest.mark.asyncio
async def test_fetch_local_file(tmp_path: Path) -> None:
    """Ensure local files are read as UTF-8 with BOM stripped."""
    source = tmp_path / "en.json"
    source.write_bytes(b'\xef\xbb\xbf{"Pay": "Pay"}')
    fetcher = SourceFetcher(FetchCache(tmp_path / "cache"))

    assert await fetcher.fetch(str(source)) == '{"Pay": "Pay"}'


@pytest.mark.asyncio
async def test_fetch_missing_local_file_raises_not_found(tmp_path: Path) -> None:
    """Ensure missing local paths raise NotFoundError."""
    fetcher = SourceFetcher(FetchCache(tmp_path / "cache"))

    with pytest.raises(NotFoundError) as exc_info:
        await fetcher.fetch(str(tmp_path / "missing.json"))

    assert exc_info.value.info.code == "not_found"


@pytest.mark.asyncio
async def test_fetch_local_file_with_invalid_utf8(tmp_path: Path) -> None:
    """Ensure undecodable local files raise ParseError."""
    source = tmp_path / "en.json"
    source.write_bytes(b"\xff\xfe\xfa")
    fetcher = SourceFetcher(FetchCache(tmp_path / "cache"))

    with pytest.raises(ParseError):
        await fetcher.fetch(str(source))


@pytest.mark.asyncio
@respx.mock
async def test_fetch_remote_rewrites_blob_url_and_caches(tmp_path: Path) -> None:
    """Ensure remote fetches use the raw URL and serve repeats from cache."""
    route = respx.get(RAW_URL).mock(
        return_value=httpx.Response(200, text="var knownTranslations = ...")
    )
    sink = _RecordingLogSink()
    async with httpx.AsyncClient() as client:
        fetcher = SourceFetcher(
            FetchCache(tmp_path), http_client=client, log_sink=sink
        )

        first = await fetcher.fetch(BLOB_URL)
        second = await fetcher.fetch(BLOB_URL)

    assert first == second == "var knownTranslations = ..."
    assert route.call_count == 1
    events = [entry.event for entry in sink.entries]
    assert "source_fetched" in events
    assert "source_cache_hit" in events


@pytest.mark.asyncio
@respx.mock
async def test_fetch_remote_http_error_raises_transport_error(
    tmp_path: Path,
) -> None:
    """Ensure non-success responses raise TransportError with the status."""
    respx.get("https://example.com/en.json").mock(return_value=httpx.Response(404))
    fetcher = SourceFetcher(FetchCache(tmp_path))

    with pytest.raises(TransportError) as exc_info:
        await fetcher.fetch("https://example.com/en.json")

    assert exc_info.value.info.details is not None
    assert exc_info.value.info.details.status_code == 404
    assert not any(tmp_path.iterdir())


@pytest.mark.asyncio
@respx.mock
async def test_fetch_remote_connection_error_raises_transport_error(
    tmp_path: Path,
) -> None:
    """Ensure transport failures raise TransportError."""
    respx.get("https://example.com/en.json").mock(
        side_effect=httpx.ConnectError("connection refused")
    )
    fetcher = SourceFetcher(FetchCache(tmp_path))

    with pytest.raises(TransportError):
        await fetcher.fetch("https://example.com/en.json")


@pytest.mark.asyncio
@respx.mock
async def test_fetch_remote_refreshes_stale_cache_entry(tmp_path: Path) -> None:
    """Ensure a 90 minute old entry is refetched once and rewritten."""
    url = "https://example.com/locales/en.json"
    cache = FetchCache(tmp_path)
    stale = await cache.put(url, '{"a": "old"}')
    old_mtime = time.time() - 90 * 60
    os.utime(stale.path, (old_mtime, old_mtime))
    route = respx.get(url).mock(
        return_value=httpx.Response(200, text='{"a": "new"}')
    )
    async with httpx.AsyncClient() as client:
        fetcher = SourceFetcher(cache, http_client=client)

        content = await fetcher.fetch(url)

    assert content == '{"a": "new"}'
    assert route.call_count == 1
    assert stale.path.read_text(encoding="utf-8") == '{"a": "new"}'
    assert stale.path.stat().st_mtime > old_mtime + 60 * 60


@pytest.mark.asyncio
@respx.mock
async def test_fetch_remote_replaces_undecodable_cache_entry(tmp_path: Path) -> None:
    """Ensure a corrupt cache file is treated as a miss and overwritten."""
    url = "https://example.com/en.json"
    cache = FetchCache(tmp_path)
    cache.path_for(url).write_bytes(b"\xff\xfe\xfa")
    route = respx.get(url).mock(return_value=httpx.Response(200, text='{"a": "A"}'))
    fetcher = SourceFetcher(cache)

    assert await fetcher.fetch(url) == '{"a": "A"}'
    assert route.call_count == 1
    assert cache.path_for(url).read_text(encoding="utf-8") == '{"a": "A"}'


@pytest.mark.asyncio
async def test_fetch_remote_invalid_url_raises_transport_error(
    tmp_path: Path,
) -> None:
    """Ensure a URL httpx cannot build a request for raises TransportError."""
    fetcher = SourceFetcher(FetchCache(tmp_path))

    with pytest.raises(TransportError) as exc_info:
        await fetcher.fetch("https://example.com:abc/en.json")

    assert exc_info.value.info.details is not None
    assert exc_info.value.info.details.location == "https://example.com:abc/en.json"


@pytest.mark.asyncio
async def test_cache_put_leaves_no_temporary_files(tmp_path: Path) -> None:
    """Ensure writes land atomically under the final name only."""
    cache = FetchCache(tmp_path)

    await cache.put("https://example.com/en.json", '{"a": "A"}')
    entry = await cache.put("https://example.com/en.json", '{"a": "B"}')

    assert [path.name for path in tmp_path.iterdir()] == [entry.path.name]
    assert entry.path.read_text(encoding="utf-8") == '{"a": "B"}'

"""Time-boxed disk cache for remote source documents."""

from __future__ import annotations

import asyncio
import hashlib
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import urlsplit, urlunsplit

from lokal_io.storage.filesystem import write_text_atomic

DEFAULT_TTL_S = 3600.0


def default_cache_dir() -> Path:
    """Return the default cache directory under the system temp dir."""
    return Path(tempfile.gettempdir()) / "lokal" / "cache"


def normalize_url(url: str) -> str:
    """Normalize a URL for cache keying.

    Scheme and host are lower-cased and the fragment is dropped.

    Returns:
        str: Normalized URL.
    """
    parts = urlsplit(url.strip())
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, "")
    )


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Cached document content with its fetch time."""

    url: str
    content: str
    fetched_at: float
    path: Path

    def age_s(self, now: float) -> float:
        """Return the entry age in seconds at ``now``."""
        return max(now - self.fetched_at, 0.0)


class FetchCache:
    """Plain-file cache keyed by a hash of the normalized URL.

    Entries are never evicted; stale entries are overwritten on the next
    fetch. Writes replace the file atomically but take no lock, so the last
    writer wins.
    """

    def __init__(
        self,
        cache_dir: Path | None = None,
        *,
        ttl_s: float = DEFAULT_TTL_S,
        now: Callable[[], float] | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            cache_dir: Cache directory (default: <tempdir>/lokal/cache).
            ttl_s: Freshness window in seconds.
            now: Optional wall-clock provider returning epoch seconds.

        Raises:
            ValueError: If ttl_s is not positive.
        """
        if ttl_s <= 0:
            raise ValueError("ttl_s must be positive")
        self.cache_dir = cache_dir or default_cache_dir()
        self.ttl_s = ttl_s
        self._now = now or time.time

    def path_for(self, url: str) -> Path:
        """Return the cache file path for a URL.

        Returns:
            Path: ``<stem>_<sha256[:16]><suffix>`` inside the cache directory.
        """
        normalized = normalize_url(url)
        digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:16]
        name = PurePosixPath(urlsplit(normalized).path).name or "source"
        stem = PurePosixPath(name).stem or "source"
        suffix = PurePosixPath(name).suffix
        return self.cache_dir / f"{stem}_{digest}{suffix}"

    async def get_fresh(self, url: str) -> CacheEntry | None:
        """Return the cached entry when it is younger than the TTL."""
        entry = await asyncio.to_thread(self._read, url)
        if entry is None or entry.age_s(self._now()) >= self.ttl_s:
            return None
        return entry

    async def put(self, url: str, content: str) -> CacheEntry:
        """Store content for a URL, replacing any previous entry."""
        return await asyncio.to_thread(self._write, url, content)

    def now(self) -> float:
        """Return the current cache clock reading."""
        return self._now()

    def _read(self, url: str) -> CacheEntry | None:
        path = self.path_for(url)
        if not path.is_file():
            return None
        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            # Undecodable entries count as a miss and get overwritten.
            return None
        return CacheEntry(
            url=url, content=content, fetched_at=path.stat().st_mtime, path=path
        )

    def _write(self, url: str, content: str) -> CacheEntry:
        path = self.path_for(url)
        write_text_atomic(path, content)
        return CacheEntry(
            url=url, content=content, fetched_at=path.stat().st_mtime, path=path
        )

"""lokal-io: Source, artifact and log storage adapters for lokal."""

from lokal_io.artifact.store import FileSystemArtifactStore
from lokal_io.source.cache import FetchCache
from lokal_io.source.extract import extract_corpus
from lokal_io.source.fetcher import SourceFetcher
from lokal_io.storage.filesystem import FileSystemLogStore
from lokal_io.storage.log_sink import build_log_sink

__all__ = [
    "FetchCache",
    "FileSystemArtifactStore",
    "FileSystemLogStore",
    "SourceFetcher",
    "build_log_sink",
    "extract_corpus",
]

"""Ports, structured errors and log builders for lokal-core."""

from lokal_core.ports.artifact import (
    ArtifactError,
    ArtifactErrorCode,
    ArtifactErrorDetails,
    ArtifactErrorInfo,
    ArtifactStoreProtocol,
    RunSummary,
    SummarySample,
    artifact_file_name,
    summary_path_for,
)
from lokal_core.ports.orchestrator import (
    LogSinkProtocol,
    OrchestrationError,
    OrchestrationErrorCode,
    OrchestrationErrorDetails,
    OrchestrationErrorInfo,
)
from lokal_core.ports.provider import (
    ProviderAttempt,
    ProviderErrorCode,
    ProviderErrorInfo,
    ProviderFailure,
    ProviderResponseError,
    ProviderSuccess,
    TranslationClientProtocol,
)
from lokal_core.ports.source import (
    CorpusExtractor,
    NotFoundError,
    ParseError,
    SourceError,
    SourceErrorCode,
    SourceErrorDetails,
    SourceErrorInfo,
    SourceFetcherProtocol,
    TransportError,
)
from lokal_core.ports.storage import (
    LogStoreProtocol,
    StorageError,
    StorageErrorCode,
    StorageErrorInfo,
)

__all__ = [
    "ArtifactError",
    "ArtifactErrorCode",
    "ArtifactErrorDetails",
    "ArtifactErrorInfo",
    "ArtifactStoreProtocol",
    "CorpusExtractor",
    "LogSinkProtocol",
    "LogStoreProtocol",
    "NotFoundError",
    "OrchestrationError",
    "OrchestrationErrorCode",
    "OrchestrationErrorDetails",
    "OrchestrationErrorInfo",
    "ParseError",
    "ProviderAttempt",
    "ProviderErrorCode",
    "ProviderErrorInfo",
    "ProviderFailure",
    "ProviderResponseError",
    "ProviderSuccess",
    "RunSummary",
    "SourceError",
    "SourceErrorCode",
    "SourceErrorDetails",
    "SourceErrorInfo",
    "SourceFetcherProtocol",
    "StorageError",
    "StorageErrorCode",
    "StorageErrorInfo",
    "SummarySample",
    "TranslationClientProtocol",
    "TransportError",
    "artifact_file_name",
    "summary_path_for",
]

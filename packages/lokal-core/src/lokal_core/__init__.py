"""lokal-core: Core translation pipeline logic for lokal."""

from lokal_core.diff import diff_corpus
from lokal_core.merge import merge_outcomes, remove_and_reorder
from lokal_core.orchestrator import LanguageRunContext, TranslationOrchestrator
from lokal_core.scheduler import BatchScheduler
from lokal_core.status import build_status_report
from lokal_core.version import VERSION

__version__ = "0.1.0"

__all__ = [
    "VERSION",
    "BatchScheduler",
    "LanguageRunContext",
    "TranslationOrchestrator",
    "build_status_report",
    "diff_corpus",
    "merge_outcomes",
    "remove_and_reorder",
]

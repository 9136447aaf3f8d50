"""Translation orchestrator for single- and multi-language runs."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

from lokal_core.diff import diff_corpus
from lokal_core.merge import merge_outcomes, remove_and_reorder
from lokal_core.ports.artifact import (
    SUMMARY_SAMPLE_LIMIT,
    ArtifactError,
    ArtifactStoreProtocol,
    RunSummary,
    SummarySample,
    artifact_file_name,
    build_artifact_failed_log,
    build_artifact_persisted_log,
    build_artifact_unchanged_log,
    summary_path_for,
)
from lokal_core.ports.orchestrator import (
    LogSinkProtocol,
    OrchestrationError,
    OrchestrationErrorCode,
    OrchestrationErrorDetails,
    OrchestrationErrorInfo,
    build_diff_planned_log,
    build_language_run_finished_log,
    build_language_run_started_log,
    build_multi_run_finished_log,
    build_multi_run_started_log,
    emit_log_entry,
)
from lokal_core.ports.provider import TranslationClientProtocol
from lokal_core.ports.source import (
    CorpusExtractor,
    SourceError,
    SourceFetcherProtocol,
    build_source_extracted_log,
    build_source_failed_log,
)
from lokal_core.scheduler import BatchScheduler, SleepFn
from lokal_schemas.config import ProfileConfig, RunConfig
from lokal_schemas.corpus import Artifact, Corpus
from lokal_schemas.languages import LanguageDescriptor, get_language
from lokal_schemas.logs import LogEntry
from lokal_schemas.primitives import (
    ArtifactFlavor,
    RunId,
    RunStage,
    RunStatus,
    SourceShape,
    Timestamp,
)
from lokal_schemas.responses import ErrorDetails, ErrorResponse
from lokal_schemas.translation import (
    LanguageRunResult,
    MultiLanguageRunResult,
    TranslationEntry,
    TranslationOutcome,
    UpdatePlan,
    passes_success_gate,
    success_ratio,
)

type LanguageLookup = Callable[[str], LanguageDescriptor | None]

RUNTIME_ERROR_CODE = "runtime_error"


@dataclass(slots=True)
class LanguageRunContext:
    """In-memory state for one language run."""

    run_id: RunId
    language_code: str
    profile: ProfileConfig
    force: bool
    stage: RunStage = RunStage.RESOLVE_LANGUAGE
    language: LanguageDescriptor | None = None
    corpus: Corpus | None = None
    artifact: Artifact | None = None
    artifact_path: Path | None = None
    artifact_existed: bool = False
    plan: UpdatePlan | None = None
    outcomes: dict[str, TranslationOutcome] = field(default_factory=dict)
    persisted: bool = False
    summary_path: Path | None = None


class TranslationOrchestrator:
    """Sequence fetch, extract, diff, translate and persist for languages."""

    def __init__(
        self,
        *,
        config: RunConfig,
        fetcher: SourceFetcherProtocol,
        extract: CorpusExtractor,
        store: ArtifactStoreProtocol,
        client: TranslationClientProtocol,
        log_sink: LogSinkProtocol | None = None,
        language_lookup: LanguageLookup | None = None,
        sleep: SleepFn | None = None,
        clock: Callable[[], Timestamp] | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Validated run configuration.
            fetcher: Source fetcher for profile locations.
            extract: Corpus extractor for raw source text.
            store: Artifact store for loading and persisting artifacts.
            client: Translation client used by the scheduler.
            log_sink: Optional log sink.
            language_lookup: Optional language resolver (defaults to catalog).
            sleep: Optional async sleep function used for all pacing.
            clock: Optional timestamp provider.
        """
        self._config = config
        self._fetcher = fetcher
        self._extract = extract
        self._store = store
        self._log_sink = log_sink
        self._lookup = language_lookup or get_language
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or _now_timestamp
        self._scheduler = BatchScheduler.from_config(
            client,
            config.concurrency,
            log_sink=log_sink,
            sleep=self._sleep,
            clock=self._clock,
        )

    async def translate_language(
        self,
        code: str,
        profile: ProfileConfig,
        *,
        force: bool = False,
        profile_name: str | None = None,
    ) -> LanguageRunResult:
        """Translate the profile's source corpus into one language.

        Any error raised by a stage is reported as a failed result naming the
        stage where it occurred. No artifact is written when a stage before
        persist fails.

        Args:
            code: Target language code.
            profile: Source and output profile.
            force: Re-translate every key instead of only missing ones.
            profile_name: Optional profile name recorded on the result.

        Returns:
            LanguageRunResult: Result for the language run.
        """
        started = time.perf_counter()
        run = LanguageRunContext(
            run_id=uuid4(), language_code=code, profile=profile, force=force
        )
        await self._emit(
            build_language_run_started_log(self._clock(), run.run_id, code)
        )
        try:
            await self._run_stages(run)
        except SourceError as exc:
            await self._emit(
                build_source_failed_log(
                    self._clock(),
                    run.run_id,
                    profile.source,
                    exc.info,
                    stage=run.stage,
                )
            )
            result = self._failed_result(
                run, exc.info.to_error_response(), started, profile_name
            )
        except ArtifactError as exc:
            await self._emit(
                build_artifact_failed_log(
                    self._clock(), run.run_id, code, exc.info, stage=run.stage
                )
            )
            result = self._failed_result(
                run, exc.info.to_error_response(), started, profile_name
            )
        except OrchestrationError as exc:
            result = self._failed_result(
                run, exc.info.to_error_response(), started, profile_name
            )
        except Exception as exc:
            error = ErrorResponse(
                code=RUNTIME_ERROR_CODE,
                message=f"Unexpected {type(exc).__name__} during {run.stage}: {exc}",
            )
            result = self._failed_result(run, error, started, profile_name)
        else:
            result = self._evaluate(run, started, profile_name)
        await self._emit(
            build_language_run_finished_log(self._clock(), run.run_id, result)
        )
        return result

    async def translate_languages(
        self,
        codes: list[str],
        profile: ProfileConfig,
        *,
        force: bool = False,
        continue_on_error: bool = True,
        profile_name: str | None = None,
    ) -> MultiLanguageRunResult:
        """Translate several languages one after another.

        Args:
            codes: Target language codes; duplicates run once.
            profile: Source and output profile.
            force: Re-translate every key for every language.
            continue_on_error: Keep going after a failed language.
            profile_name: Optional profile name recorded on results.

        Returns:
            MultiLanguageRunResult: Per-language success flags and results.
        """
        ordered = list(dict.fromkeys(codes))
        batch_run_id = uuid4()
        await self._emit(
            build_multi_run_started_log(
                self._clock(), batch_run_id, ordered, continue_on_error
            )
        )
        results: dict[str, bool] = {}
        runs: list[LanguageRunResult] = []
        aborted = False
        for index, code in enumerate(ordered):
            result = await self.translate_language(
                code, profile, force=force, profile_name=profile_name
            )
            runs.append(result)
            results[code] = result.status == RunStatus.COMPLETED
            if not results[code] and not continue_on_error:
                aborted = index < len(ordered) - 1
                break
        await self._emit(
            build_multi_run_finished_log(
                self._clock(),
                batch_run_id,
                results,
                aborted=aborted,
                continue_on_error=continue_on_error,
            )
        )
        return MultiLanguageRunResult(results=results, runs=runs, aborted=aborted)

    async def _run_stages(self, run: LanguageRunContext) -> None:
        profile = run.profile
        flavor = ArtifactFlavor(profile.flavor)

        run.stage = RunStage.RESOLVE_LANGUAGE
        language = self._lookup(run.language_code)
        if language is None:
            raise OrchestrationError(
                OrchestrationErrorInfo(
                    code=OrchestrationErrorCode.UNKNOWN_LANGUAGE,
                    message=f"Unsupported language code: {run.language_code}",
                    details=OrchestrationErrorDetails(
                        stage=RunStage.RESOLVE_LANGUAGE,
                        language_code=run.language_code,
                    ),
                )
            )
        run.language = language

        run.stage = RunStage.FETCH
        raw = await self._fetcher.fetch(profile.source)

        run.stage = RunStage.EXTRACT
        shape = SourceShape(profile.source_shape)
        run.corpus = self._extract(raw, shape)
        await self._emit(
            build_source_extracted_log(
                self._clock(), run.run_id, profile.source, shape, len(run.corpus)
            )
        )

        run.stage = RunStage.LOAD_ARTIFACT
        run.artifact_path = Path(profile.output_dir) / artifact_file_name(
            language, flavor
        )
        run.artifact_existed = await self._store.artifact_exists(run.artifact_path)
        run.artifact = await self._store.load_artifact(
            run.artifact_path, language, flavor
        )

        run.stage = RunStage.DIFF
        run.plan = diff_corpus(run.corpus, run.artifact.entries, force=run.force)
        await self._emit(
            build_diff_planned_log(
                self._clock(), run.run_id, run.language_code, run.plan
            )
        )

        run.stage = RunStage.TRANSLATE
        run.outcomes = await self._translate(run, language)

        run.stage = RunStage.PERSIST
        await self._persist(run, language, flavor)

        run.stage = RunStage.EVALUATE

    async def _translate(
        self, run: LanguageRunContext, language: LanguageDescriptor
    ) -> dict[str, TranslationOutcome]:
        if run.plan is None or not run.plan.to_translate:
            return {}
        entries = [
            TranslationEntry(
                key=key, source_text=text, target_language=language.name
            )
            for key, text in run.plan.to_translate.items()
        ]
        batch_size = run.profile.batch_size
        outcomes: dict[str, TranslationOutcome] = {}
        for start in range(0, len(entries), batch_size):
            if start > 0:
                await self._sleep(run.profile.batch_delay_s)
            outcomes.update(
                await self._scheduler.run_batch(
                    entries[start : start + batch_size],
                    self._config.concurrency.max_parallel_requests,
                    run_id=run.run_id,
                )
            )
        return outcomes

    async def _persist(
        self,
        run: LanguageRunContext,
        language: LanguageDescriptor,
        flavor: ArtifactFlavor,
    ) -> None:
        if run.artifact is None or run.corpus is None or run.plan is None:
            raise OrchestrationError(
                OrchestrationErrorInfo(
                    code=OrchestrationErrorCode.INVALID_STATE,
                    message="Cannot persist before the artifact and plan are loaded",
                    details=OrchestrationErrorDetails(
                        stage=RunStage.PERSIST, language_code=run.language_code
                    ),
                )
            )
        if run.artifact_path is None:
            raise OrchestrationError(
                OrchestrationErrorInfo(
                    code=OrchestrationErrorCode.INVALID_STATE,
                    message="Artifact path was not resolved",
                    details=OrchestrationErrorDetails(
                        stage=RunStage.PERSIST, language_code=run.language_code
                    ),
                )
            )
        merged = merge_outcomes(run.artifact.entries, run.outcomes)
        rebuilt = remove_and_reorder(merged, run.corpus, run.plan.to_remove)
        unchanged = list(rebuilt.items()) == list(run.artifact.entries.items())
        if unchanged and run.artifact_existed:
            await self._emit(
                build_artifact_unchanged_log(
                    self._clock(), run.run_id, run.language_code, run.artifact_path
                )
            )
        else:
            await self._store.write_artifact(
                run.artifact_path,
                Artifact(language=language, flavor=flavor, entries=rebuilt),
            )
            run.persisted = True
            await self._emit(
                build_artifact_persisted_log(
                    self._clock(),
                    run.run_id,
                    run.language_code,
                    run.artifact_path,
                    flavor,
                    len(rebuilt),
                )
            )
        if run.persisted or run.outcomes:
            run.summary_path = await self._store.write_summary(
                summary_path_for(run.artifact_path),
                self._build_summary(run, language, flavor, len(rebuilt)),
            )

    def _build_summary(
        self,
        run: LanguageRunContext,
        language: LanguageDescriptor,
        flavor: ArtifactFlavor,
        total_entries: int,
    ) -> RunSummary:
        plan = run.plan
        corpus = run.corpus
        succeeded = [o for o in run.outcomes.values() if o.succeeded]
        failed = [o for o in run.outcomes.values() if not o.succeeded]

        def _sample(outcome: TranslationOutcome) -> SummarySample:
            source_text = outcome.text
            if corpus is not None:
                source_text = corpus.get(outcome.key, outcome.text) or outcome.text
            return SummarySample(
                key=outcome.key,
                source_text=source_text,
                text=outcome.text,
                error_detail=outcome.error_detail,
            )

        return RunSummary(
            language=language,
            flavor=flavor,
            generated_at=self._clock(),
            attempted=len(run.outcomes),
            success_count=len(succeeded),
            failure_count=len(failed),
            removed=0 if plan is None else len(plan.to_remove),
            unchanged=0 if plan is None else plan.unchanged_count,
            total_entries=total_entries,
            sample_successes=[_sample(o) for o in succeeded[:SUMMARY_SAMPLE_LIMIT]],
            sample_failures=[_sample(o) for o in failed[:SUMMARY_SAMPLE_LIMIT]],
        )

    def _evaluate(
        self,
        run: LanguageRunContext,
        started: float,
        profile_name: str | None,
    ) -> LanguageRunResult:
        attempted = len(run.outcomes)
        succeeded = sum(1 for outcome in run.outcomes.values() if outcome.succeeded)
        ratio = success_ratio(succeeded, attempted)
        passed = passes_success_gate(succeeded, attempted)
        error: ErrorResponse | None = None
        if not passed:
            error = OrchestrationErrorInfo(
                code=OrchestrationErrorCode.SUCCESS_RATIO_BELOW_THRESHOLD,
                message=(
                    f"Only {succeeded}/{attempted} entries translated "
                    f"({ratio:.0%}), at least 80% required"
                ),
                details=OrchestrationErrorDetails(
                    stage=RunStage.EVALUATE, language_code=run.language_code
                ),
            ).to_error_response()
        return self._result(
            run,
            status=RunStatus.COMPLETED if passed else RunStatus.FAILED,
            started=started,
            profile_name=profile_name,
            attempted=attempted,
            succeeded=succeeded,
            ratio=ratio,
            error=error,
        )

    def _failed_result(
        self,
        run: LanguageRunContext,
        error: ErrorResponse,
        started: float,
        profile_name: str | None,
    ) -> LanguageRunResult:
        error = error.model_copy(
            update={"details": _with_stage(error, run.stage)}
        )
        return self._result(
            run,
            status=RunStatus.FAILED,
            started=started,
            profile_name=profile_name,
            attempted=0,
            succeeded=0,
            ratio=0.0,
            error=error,
        )

    def _result(
        self,
        run: LanguageRunContext,
        *,
        status: RunStatus,
        started: float,
        profile_name: str | None,
        attempted: int,
        succeeded: int,
        ratio: float,
        error: ErrorResponse | None,
    ) -> LanguageRunResult:
        plan = run.plan
        reached_end = run.stage == RunStage.EVALUATE
        return LanguageRunResult(
            language_code=run.language_code,
            profile=profile_name,
            flavor=ArtifactFlavor(run.profile.flavor),
            status=status,
            stage=run.stage,
            attempted=attempted,
            succeeded=succeeded,
            success_ratio=ratio,
            removed=len(plan.to_remove) if reached_end and plan is not None else 0,
            unchanged=0 if plan is None else plan.unchanged_count,
            persisted=run.persisted,
            artifact_path=(
                str(run.artifact_path)
                if reached_end and run.artifact_path is not None
                else None
            ),
            summary_path=None if run.summary_path is None else str(run.summary_path),
            duration_s=max(time.perf_counter() - started, 0.0),
            error=error,
        )

    async def _emit(self, entry: LogEntry) -> None:
        await emit_log_entry(self._log_sink, entry)


def _with_stage(error: ErrorResponse, stage: RunStage) -> ErrorDetails:
    if error.details is None:
        return ErrorDetails(stage=str(stage))
    return error.details.model_copy(update={"stage": str(stage)})


def _now_timestamp() -> Timestamp:
    value = datetime.now(tz=UTC).isoformat()
    return value.replace("+00:00", "Z")

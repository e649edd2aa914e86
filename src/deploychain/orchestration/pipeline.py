"""
deploychain.orchestration.pipeline - Deployment Pipeline Orchestrator
=======================================================================

This module implements the PipelineOrchestrator, which accepts deployment
submissions and drives each one through the pipeline to a terminal state.

Architecture Context:
    ┌───────────┐ submit()  ┌────────────────────────────────────────────┐
    │ Submitter  │ ───────→ │           PipelineOrchestrator              │
    │            │ ←── id ─ │                                             │
    └───────────┘           │  create(PENDING) ──→ Record Store           │
                            │  asyncio.Task per run (semaphore-gated)     │
                            │    │                                        │
                            │    ├─ FETCH    ──→ StageExecutor.fetch_tree │
                            │    ├─ CLASSIFY ──→ StageExecutor.classify   │
                            │    ├─ COMPILE  ──→ StageExecutor.compile    │
                            │    └─ PUBLISH  ──→ PublishReconciler        │
                            │                      └──→ Publisher × n     │
                            │  update(DEPLOYED | FAILED) ──→ Record Store │
                            └────────────────────────────────────────────┘

Run Lifecycle:
    1. ``submit()`` validates the request, creates the PENDING record and
       returns its id. The pipeline is scheduled, never awaited.
    2. ``run_pipeline()`` moves the record to BUILDING (progress write) and
       runs the stages in strict order. Any stage failure stops the run.
    3. Exactly one terminal write: DEPLOYED with the publish outcome, or
       FAILED with the error message (plus whatever was published before a
       publish-call error).
    4. Stage errors never escape a run; callers observe the terminal record
       via ``wait_for()`` or by polling the store.

Error Normalisation:
    Collaborators may raise anything. Inside a stage, any exception that is
    not already a StageError is wrapped into that stage's error type:
        FETCH → SourceFetchError, CLASSIFY → ClassificationError,
        COMPILE → CompilationError (PUBLISH is handled by the reconciler).

Usage:
    >>> orchestrator = PipelineOrchestrator(store, executor, publisher, config)
    >>> deployment_id = await orchestrator.submit(
    ...     "https://github.com/acme/token.git", "main", "token")
    >>> record = await orchestrator.wait_for(deployment_id)
    >>> record.status
    <DeploymentStatus.DEPLOYED: 'deployed'>
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

import structlog

from deploychain.core.config import DeployChainConfig
from deploychain.core.enums import DeploymentStatus, LogLevel, PipelineStage
from deploychain.core.exceptions import (
    ClassificationError,
    CompilationError,
    PersistenceError,
    PublishError,
    SourceFetchError,
    StageError,
)
from deploychain.core.models import (
    BuildArtifact,
    BuildLogEntry,
    DeploymentRecord,
    DeploymentRequest,
    PublishOutcome,
)
from deploychain.core.state import transition
from deploychain.infrastructure.record_store import DeploymentRecordStore
from deploychain.integrations.executor.base import SourceTree, StageExecutor
from deploychain.integrations.publisher.base import Publisher
from deploychain.orchestration.inbound import parse_submission, request_from_push_event
from deploychain.orchestration.reconciler import InitArgsFactory, PublishReconciler


logger = structlog.get_logger()

T = TypeVar("T")


# =============================================================================
# Stage → Error Type
# =============================================================================
# Unexpected exceptions raised by a collaborator during a stage are wrapped
# into the error type of that stage so the failed record always carries a
# stage-specific error.
# =============================================================================
STAGE_ERRORS: dict[PipelineStage, type[StageError]] = {
    PipelineStage.FETCH: SourceFetchError,
    PipelineStage.CLASSIFY: ClassificationError,
    PipelineStage.COMPILE: CompilationError,
}


class PipelineOrchestrator:
    """Schedules deployment runs and drives them to a terminal state.

    Each submitted deployment runs as its own asyncio.Task. A semaphore caps
    how many runs execute stages at the same time; runs waiting for a slot
    stay PENDING. Runs share no state other than the record store.

    Attributes:
        _store: Where deployment records and build logs live.
        _executor: Fetches, classifies, and compiles source trees.
        _publisher: Target environment for compiled artifacts.
        _config: Framework configuration (concurrency cap, result URL).
        _reconciler: Publishes artifacts and normalizes the receipts.
        _runs: In-flight run tasks keyed by deployment id.
        _semaphore: Caps concurrently executing runs.
    """

    def __init__(
        self,
        store: DeploymentRecordStore,
        executor: StageExecutor,
        publisher: Publisher,
        config: DeployChainConfig,
        *,
        init_args_factory: Optional[InitArgsFactory] = None,
    ) -> None:
        self._store = store
        self._executor = executor
        self._publisher = publisher
        self._config = config
        self._reconciler = PublishReconciler(publisher, init_args_factory)
        self._runs: dict[int, asyncio.Task[DeploymentRecord]] = {}
        self._semaphore = asyncio.Semaphore(config.max_concurrent_runs)
        self._logger = logger.bind(component="pipeline_orchestrator")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def active_runs(self) -> int:
        """Number of runs that have not reached a terminal state yet."""
        return len(self._runs)

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(
        self,
        source_location: str,
        revision: str,
        project_name: str,
    ) -> int:
        """Create a PENDING deployment and schedule its pipeline.

        Returns:
            The new deployment id. The record is already in the store.

        Raises:
            SubmissionValidationError: If any value is blank.
            PersistenceError: If the PENDING record cannot be created.
        """
        request = parse_submission({
            "repo_url": source_location,
            "branch": revision,
            "project_name": project_name,
        })
        return await self.submit_request(request)

    async def submit_push_event(self, payload: Mapping[str, Any]) -> int:
        """Schedule a deployment from a push notification payload."""
        return await self.submit_request(request_from_push_event(payload))

    async def submit_request(self, request: DeploymentRequest) -> int:
        """Schedule a deployment from an already validated request."""
        record = DeploymentRecord(
            project_name=request.project_name,
            deployment_type=self._config.deployment_type,
            target_environment=self._publisher.target_environment,
        )
        deployment_id = await self._store.create(record)

        task = asyncio.create_task(
            self._run(request.source_location, request.revision, deployment_id),
            name=f"deployment-{deployment_id}",
        )
        self._runs[deployment_id] = task
        task.add_done_callback(lambda t: self._on_run_done(deployment_id, t))

        self._logger.info(
            "deployment_submitted",
            deployment_id=deployment_id,
            source_location=request.source_location,
            revision=request.revision,
            project_name=request.project_name,
        )
        return deployment_id

    # =========================================================================
    # Completion
    # =========================================================================

    async def wait_for(self, deployment_id: int) -> DeploymentRecord:
        """Wait until a run finishes and return its record.

        For a deployment with no run in flight this returns the stored
        record as is.

        Raises:
            RecordNotFoundError: If the deployment id is unknown.
        """
        task = self._runs.get(deployment_id)
        if task is not None:
            return await asyncio.shield(task)
        return await self._store.get(deployment_id)

    async def drain(self) -> None:
        """Wait for every in-flight run, including runs submitted meanwhile."""
        while self._runs:
            await asyncio.gather(*list(self._runs.values()), return_exceptions=True)

    async def _run(
        self,
        source_location: str,
        revision: str,
        deployment_id: int,
    ) -> DeploymentRecord:
        async with self._semaphore:
            return await self.run_pipeline(source_location, revision, deployment_id)

    def _on_run_done(self, deployment_id: int, task: asyncio.Task) -> None:
        self._runs.pop(deployment_id, None)
        if task.cancelled():
            self._logger.warning("deployment_run_cancelled", deployment_id=deployment_id)
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error(
                "deployment_run_crashed",
                deployment_id=deployment_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def run_pipeline(
        self,
        source_location: str,
        revision: str,
        deployment_id: int,
    ) -> DeploymentRecord:
        """Run every stage for one deployment and persist the outcome.

        Args:
            source_location: Where to fetch the source from.
            revision: Revision to build.
            deployment_id: The PENDING record this run owns.

        Returns:
            The terminal record snapshot (DEPLOYED or FAILED). It is returned
            even when the final write fails; that failure is only logged.

        Raises:
            PersistenceError: If the PENDING record cannot be read. The record
                is marked FAILED first, on a best-effort basis.
            InvalidTransitionError: If the record is not PENDING.
        """
        log = self._logger.bind(deployment_id=deployment_id)

        try:
            record = await self._store.get(deployment_id)
        except PersistenceError as exc:
            log.error("pending_record_read_failed", error=exc.message)
            await self._mark_failed(
                deployment_id, f"Could not read deployment record: {exc.message}"
            )
            raise

        record = transition(record, DeploymentStatus.BUILDING)
        try:
            await self._store.update_status(deployment_id, DeploymentStatus.BUILDING)
        except PersistenceError as exc:
            log.warning("building_status_write_failed", error=exc.message)

        log.info("pipeline_started", source_location=source_location, revision=revision)

        try:
            outcome = await self._execute_stages(
                source_location, revision, deployment_id, record.target_environment
            )
        except StageError as exc:
            final = self._failed_record(record, exc)
            await self._append_log(
                deployment_id, exc.stage, exc.message, LogLevel.ERROR
            )
            log.error(
                "pipeline_failed",
                stage=exc.stage.value,
                error_code=exc.error_code,
                error=exc.message,
            )
        else:
            final = transition(
                record,
                DeploymentStatus.DEPLOYED,
                url=self._result_url(record),
                placements=outcome.placements,
                transaction_ids=outcome.transaction_ids,
                resource_cost=outcome.total_cost,
            )
            log.info(
                "pipeline_deployed",
                placements=len(outcome.placements),
                transactions=len(outcome.transaction_ids),
                resource_cost=outcome.total_cost,
            )

        try:
            await self._store.update(final)
        except PersistenceError as exc:
            log.error(
                "final_write_failed",
                status=final.status.value,
                error=exc.message,
            )

        return final

    async def _execute_stages(
        self,
        source_location: str,
        revision: str,
        deployment_id: int,
        target_environment: str,
    ) -> PublishOutcome:
        await self._append_log(
            deployment_id,
            PipelineStage.FETCH,
            f"Fetching {source_location} at {revision}",
        )
        tree = await self._call_stage(
            PipelineStage.FETCH, self._executor.fetch_tree, source_location, revision
        )

        try:
            artifacts = await self._classify_and_compile(tree, deployment_id)
        finally:
            await self._release(tree, deployment_id)

        await self._append_log(
            deployment_id,
            PipelineStage.PUBLISH,
            f"Publishing {len(artifacts)} artifact(s) to {target_environment}",
        )
        outcome = await self._reconciler.reconcile(artifacts, target_environment)

        for warning in outcome.warnings:
            await self._append_log(
                deployment_id, PipelineStage.PUBLISH, warning, LogLevel.WARNING
            )
        return outcome

    async def _classify_and_compile(
        self,
        tree: SourceTree,
        deployment_id: int,
    ) -> dict[str, BuildArtifact]:
        await self._append_log(deployment_id, PipelineStage.CLASSIFY, "Classifying source tree")
        recognized = await self._call_stage(
            PipelineStage.CLASSIFY, self._executor.classify, tree
        )
        if not recognized:
            raise ClassificationError()

        await self._append_log(deployment_id, PipelineStage.COMPILE, "Compiling artifacts")
        artifacts = await self._call_stage(
            PipelineStage.COMPILE, self._executor.compile, tree
        )
        if not artifacts:
            raise CompilationError(
                "Compilation produced no artifacts", error_code="NO_ARTIFACTS"
            )

        await self._append_log(
            deployment_id,
            PipelineStage.COMPILE,
            f"Compiled {len(artifacts)} artifact(s): {', '.join(artifacts)}",
        )
        return artifacts

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _call_stage(
        self,
        stage: PipelineStage,
        func: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> T:
        try:
            return await func(*args)
        except StageError:
            raise
        except Exception as exc:
            raise STAGE_ERRORS[stage](
                f"{stage.value} stage failed: {exc}",
                details={"error_type": type(exc).__name__},
            ) from exc

    async def _release(self, tree: SourceTree, deployment_id: int) -> None:
        try:
            await self._executor.release_tree(tree)
        except Exception as exc:
            self._logger.warning(
                "tree_release_failed", deployment_id=deployment_id, error=str(exc)
            )

    async def _append_log(
        self,
        deployment_id: int,
        stage: PipelineStage,
        message: str,
        level: LogLevel = LogLevel.INFO,
    ) -> None:
        entry = BuildLogEntry(
            deployment_id=deployment_id, stage=stage, message=message, level=level
        )
        try:
            await self._store.add_build_log(entry)
        except PersistenceError as exc:
            self._logger.warning(
                "build_log_write_failed", deployment_id=deployment_id, error=exc.message
            )

    async def _mark_failed(self, deployment_id: int, message: str) -> None:
        """Narrow FAILED write for runs that never got hold of their record."""
        try:
            await self._store.update_status(
                deployment_id, DeploymentStatus.FAILED, message
            )
        except PersistenceError as exc:
            self._logger.error(
                "failed_status_write_failed",
                deployment_id=deployment_id,
                error=exc.message,
            )

    def _failed_record(
        self,
        record: DeploymentRecord,
        exc: StageError,
    ) -> DeploymentRecord:
        changes: dict[str, Any] = {"error_message": exc.message}
        if isinstance(exc, PublishError) and exc.outcome is not None:
            changes.update(
                placements=exc.outcome.placements,
                transaction_ids=exc.outcome.transaction_ids,
                resource_cost=exc.outcome.total_cost,
            )
        return transition(record, DeploymentStatus.FAILED, **changes)

    def _result_url(self, record: DeploymentRecord) -> str:
        return self._config.result_url_template.format(
            deployment_id=record.deployment_id,
            project_name=record.project_name,
        )

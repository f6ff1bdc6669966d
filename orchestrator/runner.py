"""Workflow runner for the resume review pipeline."""

import asyncio
import logging
import re
from collections import OrderedDict
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable
from uuid import uuid4

from integrations import HttpSourceFetcher, LogNotifier, Notifier, SourceFetcher, WebhookNotifier
from llm_backend import LLMBackend, get_backend
from local_storage import ProfileStore
from pipeline.config import Config, get_config
from schemas.candidate import (
    ApprovalResult,
    CandidateInput,
    EnrichedProfile,
    ExtractedData,
    RawSources,
    Snippets,
    WorkflowResult,
)
from schemas.pipeline_state import RunState, RunStatus
from schemas.progress import ProgressEvent, StepName
from steps import (
    EnrichmentTools,
    agent_enrich_profile,
    extract_and_normalize,
    generate_snippets,
    human_approval,
    ingest_sources,
    notify_teams,
    persist_profile,
    validate_input,
)
from steps.enrich import summarize_enrichment
from steps.ingest import summarize_sources
from tools import ProfileExtractorTool

from .checkpoints import WaitpointRegistry
from .errors import RunInProgressError, RunNotFoundError, error_kind
from .executor import RetryPolicy, StepExecutor
from .state_machine import StateMachine
from .stream import ProgressChannel, ProgressEmitter

logger = logging.getLogger(__name__)

_RUN_ID_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")

# Finished runs cached in memory; older ones are reloaded from their journal
RECENT_RUNS = 100


class RunHandle:
    """Handle on a run started in the background.

    The progress stream is available immediately; the result once the
    pipeline finishes.
    """

    def __init__(
        self,
        run_id: str,
        channel: ProgressChannel,
        emitter: ProgressEmitter,
        task: "asyncio.Task[WorkflowResult]",
    ) -> None:
        self.run_id = run_id
        self.channel = channel
        self.emitter = emitter
        self.task = task

    def events(self) -> AsyncIterator[str]:
        """NDJSON progress lines, ending when the run finishes."""
        return self.channel.lines()

    async def result(self) -> WorkflowResult:
        # Shielded: a caller giving up on the result must not cancel the run
        return await asyncio.shield(self.task)

    @property
    def done(self) -> bool:
        return self.task.done()

    def detach(self) -> None:
        """Stop streaming to the client; the run keeps going."""
        self.channel.detach()


class WorkflowRunner:
    """Orchestrates resume review runs.

    Each run is one asyncio task walking the fixed step sequence through a
    StepExecutor, with:
    - A journal per run for resume after restart
    - Progress events on the run's own channel
    - Approval suspension through the shared waitpoint registry
    - Early completion when the reviewer rejects
    """

    def __init__(
        self,
        config: Config | None = None,
        registry: WaitpointRegistry | None = None,
        store: ProfileStore | None = None,
        notifier: Notifier | None = None,
        fetcher: SourceFetcher | None = None,
        tools: EnrichmentTools | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        recent_runs: int = RECENT_RUNS,
    ) -> None:
        """Initialize workflow runner.

        Args:
            config: Application configuration (global config if None)
            registry: Waitpoint registry shared with the approval endpoint
            store: Profile store for the persist step
            notifier: Notification channel for the notify step
            fetcher: Source fetcher for real-mode ingest
            tools: Enrichment tools
            sleep: Retry backoff sleep
            recent_runs: Finished runs kept in memory for status lookups
        """
        self.config = config if config is not None else get_config()
        workflow = self.config.workflow

        if registry is None:
            registry = WaitpointRegistry(default_timeout=workflow.approval_timeout)
        self.registry = registry
        self.store = store if store is not None else ProfileStore(self.config.storage.store_dir or None)
        self.notifier = notifier if notifier is not None else self._default_notifier()
        self.fetcher = fetcher if fetcher is not None else HttpSourceFetcher()
        self.tools = tools if tools is not None else self._default_tools()
        self.retry = RetryPolicy.from_config(self.config.pipeline.retry)
        self._sleep = sleep

        artifacts_dir = self.config.pipeline.artifacts_dir
        self.runs_dir = Path(artifacts_dir) / "runs" if artifacts_dir else None

        # In-flight runs, and a bounded cache of finished or loaded ones
        self._machines: dict[str, StateMachine] = {}
        self._recent: OrderedDict[str, StateMachine] = OrderedDict()
        self.recent_runs = recent_runs
        self._tasks: dict[str, asyncio.Task] = {}

    def _default_notifier(self) -> Notifier:
        workflow = self.config.workflow
        if workflow.mock_notifications:
            return LogNotifier()
        return WebhookNotifier(workflow.notify_webhook_url)

    def _default_tools(self) -> EnrichmentTools:
        """Build the enrichment tools, with the LLM extractor when MOCK_LLM is off."""
        if self.config.workflow.mock_llm:
            return EnrichmentTools()

        llm: LLMBackend | None
        try:
            llm = get_backend(
                self.config.llm.backend,
                model=self.config.llm.model,
                timeout=self.config.llm.timeout,
                temperature=self.config.llm.temperature,
            )
        except ValueError as e:
            logger.warning("Could not initialize LLM backend: %s", e)
            llm = None

        return EnrichmentTools(
            extractor=ProfileExtractorTool(llm=llm, mock=False, model=self.config.llm.model),
        )

    def create_run(self, candidate: CandidateInput, run_id: str | None = None) -> StateMachine:
        """Create the journal of a new run.

        Args:
            candidate: Input as submitted
            run_id: Explicit run id (generated from the candidate id if None)

        Returns:
            StateMachine for the new run
        """
        if run_id is None:
            prefix = _RUN_ID_UNSAFE.sub("_", candidate.candidate_id or "anonymous")
            run_id = f"{prefix}-{uuid4().hex[:8]}"
        if run_id in self._machines:
            raise RunInProgressError(run_id)

        state = RunState(run_id=run_id, candidate_id=candidate.candidate_id, input=candidate)
        machine = StateMachine(state, self.runs_dir / run_id if self.runs_dir else None)
        machine.save_state()
        self._machines[run_id] = machine
        return machine

    def load_run(self, run_id: str) -> StateMachine:
        """Find a run in memory, or rehydrate it from its journal.

        Raises:
            RunNotFoundError: If the run is unknown
        """
        if run_id in self._machines:
            return self._machines[run_id]
        if run_id in self._recent:
            self._recent.move_to_end(run_id)
            return self._recent[run_id]

        run_dir = self.runs_dir / run_id if self.runs_dir else None
        if run_dir is None or not (run_dir / "state.json").exists():
            raise RunNotFoundError(run_id)

        machine = StateMachine.load_state(run_dir)
        self._remember(machine)
        return machine

    def _remember(self, machine: StateMachine) -> None:
        """Move a run out of the in-flight set into the bounded cache."""
        run_id = machine.state.run_id
        self._machines.pop(run_id, None)
        self._recent[run_id] = machine
        self._recent.move_to_end(run_id)
        while len(self._recent) > self.recent_runs:
            self._recent.popitem(last=False)

    def get_status(self, run_id: str) -> dict[str, Any]:
        return self.load_run(run_id).get_progress_summary()

    async def run(
        self,
        candidate: CandidateInput,
        emitter: ProgressEmitter | None = None,
        run_id: str | None = None,
    ) -> WorkflowResult:
        """Execute a run to its end in the current task.

        Args:
            candidate: Input as submitted
            emitter: Progress emitter (history only if None)
            run_id: Explicit run id

        Returns:
            Terminal result
        """
        machine = self.create_run(candidate, run_id)
        emitter = emitter or ProgressEmitter(run_id=machine.state.run_id)
        return await self._execute(machine, emitter)

    def start(self, candidate: CandidateInput, run_id: str | None = None) -> RunHandle:
        """Schedule a run in the background and return at once.

        Must be called from within a running event loop.
        """
        return self._launch(self.create_run(candidate, run_id))

    def resume(self, run_id: str) -> RunHandle:
        """Continue a journaled run.

        Completed steps replay from the journal; a run suspended at approval
        reopens its waitpoint under the same token.

        Raises:
            RunNotFoundError: If the run is unknown
            RunInProgressError: If the run is still executing here
        """
        task = self._tasks.get(run_id)
        if task is not None and not task.done():
            raise RunInProgressError(run_id)
        machine = self.load_run(run_id)
        logger.info("Resuming run %s at %s", run_id, machine.resume_point().value)
        return self._launch(machine)

    def _launch(self, machine: StateMachine) -> RunHandle:
        run_id = machine.state.run_id
        self._recent.pop(run_id, None)
        self._machines[run_id] = machine
        channel = ProgressChannel()
        emitter = ProgressEmitter(channel, run_id=run_id)
        task = asyncio.create_task(self._execute(machine, emitter), name=f"run:{run_id}")

        # Strong reference until the task finishes
        self._tasks[run_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(run_id, None))

        return RunHandle(run_id, channel, emitter, task)

    @property
    def active_runs(self) -> list[str]:
        return [run_id for run_id, task in self._tasks.items() if not task.done()]

    async def shutdown(self) -> None:
        """Cancel in-flight runs. Their journals stay resumable."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d in-flight runs", len(tasks))

    async def _execute(self, machine: StateMachine, emitter: ProgressEmitter) -> WorkflowResult:
        """Run the pipeline and emit exactly one terminal workflow event."""
        state = machine.state
        try:
            if machine.is_completed() and state.result is not None:
                # Nothing left to do; replay the stored outcome
                await emitter.emit(ProgressEvent.completed(StepName.WORKFLOW, state.result.to_wire()))
                return state.result

            state.result = None
            if state.status == RunStatus.FAILED:
                state.status = RunStatus.RUNNING

            await emitter.emit(ProgressEvent.started(state.candidate_id))

            try:
                result = await self._run_pipeline(machine, emitter)
                machine.finish(result)
            except Exception as e:
                message = str(e) or type(e).__name__
                logger.error("[workflow] Error processing candidate %s: %s", state.candidate_id, message)
                result = WorkflowResult(status="failed", candidate_id=state.candidate_id, approved=False)
                try:
                    machine.finish(result)
                except Exception:
                    logger.exception("Could not record failure of run %s", state.run_id)
                await emitter.emit(ProgressEvent.error(StepName.WORKFLOW, message, kind=error_kind(e)))
                return result

            await emitter.emit(ProgressEvent.completed(StepName.WORKFLOW, result.to_wire()))
            logger.info(
                "Run %s finished: candidate=%s approved=%s",
                state.run_id,
                result.candidate_id,
                result.approved,
            )
            return result
        finally:
            self._remember(machine)
            emitter.close()

    async def _run_pipeline(self, machine: StateMachine, emitter: ProgressEmitter) -> WorkflowResult:
        workflow = self.config.workflow
        executor = StepExecutor(machine, emitter, retry=self.retry, sleep=self._sleep)

        # 1) Validate input
        candidate = await executor.run_step(
            StepName.VALIDATE,
            validate_input,
            machine.state.input,
            workflow.mock_sources,
            output_model=CandidateInput,
        )
        candidate_id: str = candidate.candidate_id

        # 2) Ingest raw sources
        raw = await executor.run_step(
            StepName.INGEST,
            ingest_sources,
            candidate,
            workflow.mock_sources,
            self.fetcher,
            output_model=RawSources,
            summarize=summarize_sources,
        )

        # 3) Extract and normalize text
        extracted = await executor.run_step(
            StepName.EXTRACT,
            extract_and_normalize,
            raw,
            output_model=ExtractedData,
            summarize=lambda e: {"tokens": e.tokens},
        )

        # 4) Enrich, score and find gaps
        enriched = await executor.run_step(
            StepName.AGENT_ENRICH,
            agent_enrich_profile,
            extracted,
            candidate.job_context,
            emitter,
            self.tools,
            output_model=EnrichedProfile,
            summarize=summarize_enrichment,
        )

        # 5) Recruiter-facing snippets
        snippets = await executor.run_step(
            StepName.GENERATE_SNIPPETS,
            generate_snippets,
            enriched,
            output_model=Snippets,
        )

        # 6) Human approval
        approval = await executor.run_step(
            StepName.HUMAN_APPROVAL,
            human_approval,
            candidate_id,
            enriched,
            snippets,
            mock=workflow.mock_approval,
            registry=self.registry,
            machine=machine,
            emitter=emitter,
            timeout=workflow.approval_timeout,
            output_model=ApprovalResult,
            summarize=lambda a: a.to_wire(),
        )

        result = WorkflowResult(
            status="completed",
            candidate_id=candidate_id,
            approved=approval.approved,
            reason=approval.reason,
            enriched=enriched,
            snippets=snippets,
        )
        if not approval.approved:
            logger.info("Candidate %s rejected (%s); skipping persist and notify", candidate_id, approval.reason)
            return result

        # 7) Persist profile
        await executor.run_step(
            StepName.PERSIST,
            persist_profile,
            self.store,
            candidate_id,
            enriched,
            snippets,
            approval.approved,
        )

        # 8) Notify downstream teams
        try:
            await executor.run_step(
                StepName.NOTIFY,
                notify_teams,
                self.notifier,
                candidate_id,
                approval.approved,
                workflow.notify_channel,
                fatal=False,
            )
        except Exception as e:
            # notify/error was already emitted as non-fatal
            logger.warning("Notification for %s failed: %s", candidate_id, e)

        return result

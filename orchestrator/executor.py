"""Step execution with journaling.

Every step of a run goes through StepExecutor.run_step, which:
- replays the recorded output if the journal says the step already completed
- emits running before and completed/error after the step
- records the output durably before returning it
- retries idempotent steps on transient failures when a policy allows
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from pipeline.config import RetryConfig
from schemas.pipeline_state import Stage
from schemas.progress import ProgressEvent, StepName

from .errors import error_kind, is_retryable
from .state_machine import StateMachine
from .stream import ProgressEmitter

logger = logging.getLogger(__name__)

# Steps that can be repeated without duplicating side effects
IDEMPOTENT_STEPS: frozenset[StepName] = frozenset(
    {StepName.INGEST, StepName.EXTRACT, StepName.PERSIST}
)


@dataclass
class RetryPolicy:
    """Exponential backoff for idempotent steps."""

    max_attempts: int = 1
    initial_delay: float = 0.5
    backoff_factor: float = 2.0
    max_delay: float = 10.0

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=max(1, config.max_attempts),
            initial_delay=config.initial_delay,
            backoff_factor=config.backoff_factor,
            max_delay=config.max_delay,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay before the attempt following attempt number `attempt` (1-based)."""
        return min(self.max_delay, self.initial_delay * self.backoff_factor ** (attempt - 1))


class StepExecutor:
    """Runs the named steps of one workflow run."""

    def __init__(
        self,
        machine: StateMachine,
        emitter: ProgressEmitter,
        retry: RetryPolicy | None = None,
        idempotent_steps: frozenset[StepName] = IDEMPOTENT_STEPS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize executor.

        Args:
            machine: State machine holding the run journal
            emitter: Progress emitter for the run
            retry: Retry policy applied to idempotent steps (None = no retry)
            idempotent_steps: Steps the retry policy may repeat
            sleep: Backoff sleep (replaced in tests)
        """
        self.machine = machine
        self.emitter = emitter
        self.retry = retry or RetryPolicy()
        self.idempotent_steps = idempotent_steps
        self._sleep = sleep

    async def run_step(
        self,
        step: StepName,
        fn: Callable[..., Any],
        *args: Any,
        output_model: type[BaseModel] | None = None,
        summarize: Callable[[Any], dict[str, Any] | None] | None = None,
        fatal: bool = True,
        **kwargs: Any,
    ) -> Any:
        """Execute fn as the named step and return its result.

        Args:
            step: Step identity
            fn: Step body, sync or async
            *args: Positional arguments for fn
            output_model: Model used to rebuild a replayed output
            summarize: Builds the data of the completed event from the output
            fatal: False marks the error event as a non-fatal warning
            **kwargs: Keyword arguments for fn

        Returns:
            The step output (fresh or replayed)

        Raises:
            Exception: Whatever fn raised once attempts are exhausted
        """
        stage = Stage(step.value)

        found, recorded = self.machine.recorded_output(stage)
        if found:
            logger.info("Run %s: replaying %s from journal", self.machine.state.run_id, step.value)
            output = self._rehydrate(recorded, output_model)
            await self.emitter.emit(ProgressEvent.completed(step, summarize(output) if summarize else None))
            return output

        await self.emitter.emit(ProgressEvent.running(step))

        max_attempts = self.retry.max_attempts if step in self.idempotent_steps else 1
        attempt = 0
        while True:
            attempt += 1
            try:
                self.machine.start_step(stage)
                result = fn(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
                break
            except Exception as e:
                if attempt < max_attempts and is_retryable(e):
                    delay = self.retry.delay_for(attempt)
                    logger.warning(
                        "Run %s: %s attempt %d/%d failed (%s); retrying in %.2fs",
                        self.machine.state.run_id,
                        step.value,
                        attempt,
                        max_attempts,
                        e,
                        delay,
                    )
                    await self._sleep(delay)
                    continue

                message = str(e) or type(e).__name__
                self.machine.fail_step(stage, message)
                await self.emitter.emit(
                    ProgressEvent.error(
                        step,
                        message,
                        kind=error_kind(e),
                        fatal=None if fatal else False,
                    )
                )
                raise

        self.machine.complete_step(stage, self._dehydrate(result))
        await self.emitter.emit(ProgressEvent.completed(step, summarize(result) if summarize else None))
        return result

    @staticmethod
    def _dehydrate(output: Any) -> Any:
        if isinstance(output, BaseModel):
            return output.model_dump(mode="json")
        return output

    @staticmethod
    def _rehydrate(recorded: Any, output_model: type[BaseModel] | None) -> Any:
        if output_model is not None and recorded is not None:
            return output_model.model_validate(recorded)
        return recorded

"""Step executor: journaling, replay and retry."""

import pytest

from orchestrator.errors import ExternalOperationError, InputValidationError
from orchestrator.executor import RetryPolicy, StepExecutor
from orchestrator.state_machine import StateMachine
from orchestrator.stream import ProgressEmitter
from pipeline.config import RetryConfig
from schemas.candidate import CandidateInput, ExtractedData
from schemas.pipeline_state import RunState, Stage, StepStatus
from schemas.progress import EventStatus, StepName

from conftest import no_sleep


def make_machine(artifacts_dir=None) -> StateMachine:
    state = RunState(run_id="c1-test", candidate_id="c1", input=CandidateInput(candidate_id="c1"))
    return StateMachine(state, artifacts_dir)


def test_retry_policy_backoff():
    policy = RetryPolicy(max_attempts=5, initial_delay=0.5, backoff_factor=2.0, max_delay=3.0)
    assert [policy.delay_for(n) for n in range(1, 5)] == [0.5, 1.0, 2.0, 3.0]


def test_retry_policy_from_config():
    assert RetryPolicy.from_config(RetryConfig(max_attempts=0)).max_attempts == 1


async def test_records_output_and_emits_lifecycle(tmp_path):
    machine = make_machine(tmp_path)
    emitter = ProgressEmitter()
    executor = StepExecutor(machine, emitter)

    result = await executor.run_step(
        StepName.VALIDATE,
        lambda c: c,
        machine.state.input,
        output_model=CandidateInput,
    )

    assert result.candidate_id == "c1"
    assert [e.status for e in emitter.history] == [EventStatus.RUNNING, EventStatus.COMPLETED]
    record = machine.state.get_step(Stage.VALIDATE)
    assert record.status == StepStatus.COMPLETED
    assert record.output["candidate_id"] == "c1"
    assert (tmp_path / "state.json").exists()


async def test_completed_step_replays_without_calling(tmp_path):
    machine = make_machine(tmp_path)
    executor = StepExecutor(machine, ProgressEmitter())
    await executor.run_step(StepName.VALIDATE, lambda: None)
    await executor.run_step(StepName.INGEST, lambda: None)
    await executor.run_step(
        StepName.EXTRACT,
        lambda: ExtractedData(text="abc", tokens=1),
        output_model=ExtractedData,
    )

    calls = []
    reloaded = StateMachine.load_state(tmp_path)
    emitter = ProgressEmitter()
    replayed = await StepExecutor(reloaded, emitter).run_step(
        StepName.EXTRACT,
        lambda: calls.append(1),
        output_model=ExtractedData,
        summarize=lambda e: {"tokens": e.tokens},
    )

    assert calls == []
    assert replayed == ExtractedData(text="abc", tokens=1)
    assert [(e.status, e.data) for e in emitter.history] == [(EventStatus.COMPLETED, {"tokens": 1})]


async def test_failure_is_journaled_and_reraised():
    machine = make_machine()
    emitter = ProgressEmitter()

    def fail():
        raise InputValidationError("candidateId is required")

    with pytest.raises(InputValidationError):
        await StepExecutor(machine, emitter).run_step(StepName.VALIDATE, fail)

    assert machine.state.get_step(Stage.VALIDATE).status == StepStatus.FAILED
    assert machine.state.last_error == "candidateId is required"
    error = emitter.history[-1]
    assert error.status == EventStatus.ERROR
    assert error.data == {"message": "candidateId is required", "kind": "validation"}


async def test_non_fatal_error_is_marked():
    machine = make_machine()
    emitter = ProgressEmitter()

    async def fail():
        raise ExternalOperationError("down")

    with pytest.raises(ExternalOperationError):
        await StepExecutor(machine, emitter).run_step(StepName.VALIDATE, fail, fatal=False)

    assert emitter.history[-1].data["fatal"] is False


async def test_idempotent_step_is_retried():
    machine = make_machine()
    emitter = ProgressEmitter()
    executor = StepExecutor(machine, emitter, retry=RetryPolicy(max_attempts=3), sleep=no_sleep)
    await executor.run_step(StepName.VALIDATE, lambda: None)

    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ExternalOperationError("timeout")
        return "ok"

    assert await executor.run_step(StepName.INGEST, flaky) == "ok"
    assert len(attempts) == 3
    assert machine.state.get_step(Stage.INGEST).attempts == 3
    assert [e.status for e in emitter.history if e.step == StepName.INGEST] == [
        EventStatus.RUNNING,
        EventStatus.COMPLETED,
    ]


async def test_non_idempotent_step_is_not_retried():
    machine = make_machine()
    executor = StepExecutor(machine, ProgressEmitter(), retry=RetryPolicy(max_attempts=3), sleep=no_sleep)
    attempts = []

    def flaky():
        attempts.append(1)
        raise ExternalOperationError("timeout")

    with pytest.raises(ExternalOperationError):
        await executor.run_step(StepName.VALIDATE, flaky)
    assert len(attempts) == 1


async def test_validation_errors_are_not_retried():
    machine = make_machine()
    executor = StepExecutor(machine, ProgressEmitter(), retry=RetryPolicy(max_attempts=3), sleep=no_sleep)
    await executor.run_step(StepName.VALIDATE, lambda: None)
    attempts = []

    def broken():
        attempts.append(1)
        raise InputValidationError("bad")

    with pytest.raises(InputValidationError):
        await executor.run_step(StepName.INGEST, broken)
    assert len(attempts) == 1

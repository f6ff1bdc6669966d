"""State machine implementation for workflow orchestration."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from schemas.candidate import WorkflowResult
from schemas.pipeline_state import RunState, RunStatus, Stage, StepStatus

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """Raised when a run attempts a transition the pipeline does not allow."""

    def __init__(self, from_stage: Stage, to_stage: Stage) -> None:
        self.from_stage = from_stage
        self.to_stage = to_stage
        super().__init__(f"Invalid transition {from_stage.value} -> {to_stage.value}")


@dataclass
class Transition:
    """Defines a valid state transition."""

    from_stage: Stage
    to_stage: Stage
    condition: Callable[[RunState], bool] | None = None


def _rejected(state: RunState) -> bool:
    record = state.get_step(Stage.HUMAN_APPROVAL)
    return bool(record and isinstance(record.output, dict) and record.output.get("approved") is False)


class StateMachine:
    """State machine for one workflow run.

    Manages:
    - Valid step transitions
    - Journal persistence after every change
    - Replay lookups for resumed runs
    """

    TRANSITIONS: list[Transition] = [
        # Happy path
        Transition(Stage.INIT, Stage.VALIDATE),
        Transition(Stage.VALIDATE, Stage.INGEST),
        Transition(Stage.INGEST, Stage.EXTRACT),
        Transition(Stage.EXTRACT, Stage.AGENT_ENRICH),
        Transition(Stage.AGENT_ENRICH, Stage.GENERATE_SNIPPETS),
        Transition(Stage.GENERATE_SNIPPETS, Stage.HUMAN_APPROVAL),
        Transition(Stage.HUMAN_APPROVAL, Stage.PERSIST),
        Transition(Stage.PERSIST, Stage.NOTIFY),
        Transition(Stage.NOTIFY, Stage.DONE),
        # Rejection short-circuit
        Transition(Stage.HUMAN_APPROVAL, Stage.DONE, condition=_rejected),
        # Resumed runs re-enter the step they stopped in
        *[Transition(s, s) for s in Stage if s not in (Stage.INIT, Stage.DONE)],
    ]

    def __init__(self, state: RunState, artifacts_dir: Path | str | None = None) -> None:
        """Initialize state machine.

        Args:
            state: Run state (new or loaded from a journal)
            artifacts_dir: Directory for this run's journal (None = memory only)
        """
        self.state = state
        self.artifacts_dir = Path(artifacts_dir) if artifacts_dir is not None else None
        if self.artifacts_dir is not None:
            self.artifacts_dir.mkdir(parents=True, exist_ok=True)

        # Build transition map for quick lookup
        self._transition_map: dict[Stage, list[Transition]] = {}
        for t in self.TRANSITIONS:
            self._transition_map.setdefault(t.from_stage, []).append(t)

    def can_transition(self, to_stage: Stage) -> bool:
        """Check if transition to target stage is valid."""
        for t in self._transition_map.get(self.state.current_stage, []):
            if t.to_stage == to_stage:
                return t.condition is None or t.condition(self.state)
        return False

    def transition(self, to_stage: Stage) -> None:
        """Move to a new stage and persist.

        Raises:
            InvalidTransitionError: If the pipeline does not allow it
        """
        if not self.can_transition(to_stage):
            raise InvalidTransitionError(self.state.current_stage, to_stage)

        self.state.current_stage = to_stage
        if self.state.status in (RunStatus.PENDING, RunStatus.PAUSED):
            self.state.status = RunStatus.RUNNING
        self.save_state()

    def resume_point(self) -> Stage:
        """Stage a resumed run re-enters at.

        Runs that never got past init restart from the beginning.
        """
        if self.state.current_stage == Stage.INIT:
            return Stage.VALIDATE
        return self.state.current_stage

    def start_step(self, stage: Stage) -> None:
        if self.state.current_stage != stage:
            self.transition(stage)
        self.state.mark_step_started(stage)
        self.state.status = RunStatus.RUNNING
        self.save_state()

    def complete_step(self, stage: Stage, output: Any = None) -> None:
        """Record a step's output durably before the run moves on."""
        self.state.mark_step_completed(stage, output)
        self.save_state()

    def fail_step(self, stage: Stage, error: str) -> None:
        self.state.mark_step_failed(stage, error)
        self.save_state()

    def await_approval(self, token: str) -> None:
        self.state.mark_awaiting_approval(Stage.HUMAN_APPROVAL, token)
        self.save_state()

    def recorded_output(self, stage: Stage) -> tuple[bool, Any]:
        """Look up a completed step's output for replay.

        Returns:
            (found, output) where found is False if the step must run
        """
        record = self.state.get_step(stage)
        if record is None or record.status != StepStatus.COMPLETED:
            return False, None
        return True, record.output

    def finish(self, result: WorkflowResult) -> None:
        """Record the terminal result and close the run."""
        if result.status == "completed":
            if self.state.current_stage != Stage.DONE:
                self.transition(Stage.DONE)
            self.state.status = RunStatus.COMPLETED
        else:
            # Keep current_stage so a resume retries the step that failed
            self.state.status = RunStatus.FAILED
        self.state.webhook_token = None
        self.state.result = result
        self.state.completed_at = datetime.now()
        self.save_state()

    def is_completed(self) -> bool:
        return self.state.current_stage == Stage.DONE

    def is_failed(self) -> bool:
        return self.state.status == RunStatus.FAILED

    def save_state(self) -> Path | None:
        """Persist state to disk.

        Returns:
            Path to state file, or None for in-memory runs
        """
        if self.artifacts_dir is None:
            return None

        state_file = self.artifacts_dir / "state.json"
        tmp_file = state_file.with_suffix(".json.tmp")
        state_data = self.state.model_dump(mode="json")

        with open(tmp_file, "w") as f:
            json.dump(state_data, f, indent=2, default=str)
        # Atomic replace
        tmp_file.replace(state_file)

        return state_file

    @classmethod
    def load_state(cls, artifacts_dir: Path | str) -> "StateMachine":
        """Load state machine from disk.

        Args:
            artifacts_dir: Directory containing state.json

        Returns:
            StateMachine instance with loaded state

        Raises:
            FileNotFoundError: If no journal exists for the run
        """
        artifacts_dir = Path(artifacts_dir)
        state_file = artifacts_dir / "state.json"

        with open(state_file) as f:
            state_data = json.load(f)

        state = RunState.model_validate(state_data)
        return cls(state, artifacts_dir)

    def get_progress_summary(self) -> dict[str, Any]:
        """Get a summary of run progress."""
        completed = sum(1 for s in self.state.steps.values() if s.status == StepStatus.COMPLETED)
        total = len(Stage) - 2  # Exclude INIT and DONE

        return {
            "runId": self.state.run_id,
            "candidateId": self.state.candidate_id,
            "status": self.state.status.value,
            "currentStep": self.state.current_stage.value,
            "progress": f"{completed}/{total}",
            "progressPercent": round(completed / total * 100) if total > 0 else 0,
            "webhookToken": self.state.webhook_token,
            "steps": {name: record.status.value for name, record in self.state.steps.items()},
            "result": self.state.result.to_wire() if self.state.result else None,
        }

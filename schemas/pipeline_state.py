"""Run journal schema.

State machine representation of one workflow run. The journal is persisted
after every transition so a restarted process can resume the run without
repeating completed steps.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .candidate import CandidateInput, WorkflowResult


class RunStatus(str, Enum):
    """Overall run status."""

    PENDING = "pending"
    RUNNING = "running"
    PAUSED = "paused"  # Waiting for approval
    COMPLETED = "completed"
    FAILED = "failed"


class Stage(str, Enum):
    """Journal stages: the pipeline steps plus the init and done bookends.

    A failed run keeps the stage it failed in, so it can be resumed there.
    """

    INIT = "init"
    VALIDATE = "validate"
    INGEST = "ingest"
    EXTRACT = "extract"
    AGENT_ENRICH = "agent-enrich"
    GENERATE_SNIPPETS = "generate-snippets"
    HUMAN_APPROVAL = "human-approval"
    PERSIST = "persist"
    NOTIFY = "notify"
    DONE = "done"


class StepStatus(str, Enum):
    """Individual step status."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    AWAITING_APPROVAL = "awaiting_approval"


class StepRecord(BaseModel):
    """Result of a single step execution."""

    stage: Stage = Field(..., description="Step name")
    status: StepStatus = Field(..., description="Step status")
    started_at: datetime | None = Field(None, description="When step started")
    completed_at: datetime | None = Field(None, description="When step completed")
    duration_seconds: float | None = Field(None, description="Duration in seconds")

    # Recorded output, replayed instead of re-executing on resume
    output: Any = Field(None, description="JSON form of the step output")

    error: str | None = Field(None, description="Error message if failed")
    attempts: int = Field(0, description="Number of attempts made")


class RunState(BaseModel):
    """Complete run state.

    This is the central state object that tracks one workflow run.
    It's persisted to disk and updated as the run progresses.
    """

    run_id: str = Field(..., description="Unique run identifier")
    candidate_id: str | None = Field(None, description="Candidate key")
    input: CandidateInput = Field(..., description="Input as submitted")

    status: RunStatus = Field(RunStatus.PENDING, description="Overall status")
    current_stage: Stage = Field(Stage.INIT, description="Current stage")

    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = Field(None)

    steps: dict[str, StepRecord] = Field(default_factory=dict, description="Records by step name")

    webhook_token: str | None = Field(None, description="Approval token while suspended")
    result: WorkflowResult | None = Field(None, description="Terminal result")
    last_error: str | None = Field(None, description="Most recent error")

    def get_step(self, stage: Stage) -> StepRecord | None:
        """Get the record for a specific step."""
        return self.steps.get(stage.value)

    def is_step_completed(self, stage: Stage) -> bool:
        record = self.steps.get(stage.value)
        return record is not None and record.status == StepStatus.COMPLETED

    def mark_step_started(self, stage: Stage) -> StepRecord:
        """Mark a step as running, keeping the attempt count of earlier tries."""
        previous = self.steps.get(stage.value)
        record = StepRecord(
            stage=stage,
            status=StepStatus.RUNNING,
            started_at=datetime.now(),
            attempts=(previous.attempts if previous else 0) + 1,
        )
        self.current_stage = stage
        self.steps[stage.value] = record
        return record

    def mark_step_completed(self, stage: Stage, output: Any = None) -> None:
        record = self.steps.get(stage.value)
        if record is None:
            record = self.mark_step_started(stage)
        record.status = StepStatus.COMPLETED
        record.completed_at = datetime.now()
        if record.started_at:
            record.duration_seconds = (record.completed_at - record.started_at).total_seconds()
        record.output = output
        record.error = None

    def mark_step_failed(self, stage: Stage, error: str) -> None:
        record = self.steps.get(stage.value)
        if record:
            record.status = StepStatus.FAILED
            record.completed_at = datetime.now()
            record.error = error
        self.last_error = error

    def mark_awaiting_approval(self, stage: Stage, token: str) -> None:
        record = self.steps.get(stage.value)
        if record:
            record.status = StepStatus.AWAITING_APPROVAL
        self.webhook_token = token
        self.status = RunStatus.PAUSED

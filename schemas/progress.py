"""Progress event schema.

Events are the wire contract with the UI: one JSON object per line,
keys in the order step, status, data, timestamp.
"""

import json
import time
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from .candidate import Snippets, WireModel


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


class StepName(str, Enum):
    """Step identities as they appear on the wire."""

    WORKFLOW = "workflow"
    VALIDATE = "validate"
    INGEST = "ingest"
    EXTRACT = "extract"
    AGENT_ENRICH = "agent-enrich"
    GENERATE_SNIPPETS = "generate-snippets"
    HUMAN_APPROVAL = "human-approval"
    PERSIST = "persist"
    NOTIFY = "notify"


# Execution order of the pipeline (the workflow pseudo-step excluded)
PIPELINE_STEPS: list[StepName] = [
    StepName.VALIDATE,
    StepName.INGEST,
    StepName.EXTRACT,
    StepName.AGENT_ENRICH,
    StepName.GENERATE_SNIPPETS,
    StepName.HUMAN_APPROVAL,
    StepName.PERSIST,
    StepName.NOTIFY,
]


class EventStatus(str, Enum):
    STARTED = "started"
    RUNNING = "running"
    TOOL_CALL = "tool-call"
    WAITING = "waiting"
    COMPLETED = "completed"
    ERROR = "error"


class ToolCall(WireModel):
    """A sub-operation surfaced while a step runs."""

    name: str
    description: str
    timestamp: int = Field(default_factory=now_ms)


class ToolCallData(WireModel):
    """Payload of a tool-call event: every call made so far in the step."""

    tool_calls: list[ToolCall]


class WaitingData(WireModel):
    """Payload of the human-approval waiting event."""

    webhook_token: str
    candidate_id: str
    snippets: Snippets
    score: int


class ErrorData(WireModel):
    """Payload of an error event."""

    message: str
    kind: str | None = None
    fatal: bool | None = None


class ProgressEvent(WireModel):
    """One progress record. Immutable once built."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    step: StepName
    status: EventStatus
    data: dict[str, Any] | None = None
    timestamp: int = Field(default_factory=now_ms)

    @classmethod
    def started(cls, candidate_id: str | None) -> "ProgressEvent":
        return cls(
            step=StepName.WORKFLOW,
            status=EventStatus.STARTED,
            data={"candidateId": candidate_id},
        )

    @classmethod
    def running(cls, step: StepName) -> "ProgressEvent":
        return cls(step=step, status=EventStatus.RUNNING)

    @classmethod
    def completed(cls, step: StepName, data: dict[str, Any] | None = None) -> "ProgressEvent":
        return cls(step=step, status=EventStatus.COMPLETED, data=data)

    @classmethod
    def tool_call(cls, step: StepName, calls: list[ToolCall]) -> "ProgressEvent":
        payload = ToolCallData(tool_calls=list(calls))
        return cls(step=step, status=EventStatus.TOOL_CALL, data=payload.to_wire())

    @classmethod
    def waiting(cls, payload: WaitingData) -> "ProgressEvent":
        return cls(
            step=StepName.HUMAN_APPROVAL,
            status=EventStatus.WAITING,
            data=payload.to_wire(),
        )

    @classmethod
    def error(
        cls,
        step: StepName,
        message: str,
        kind: str | None = None,
        fatal: bool | None = None,
    ) -> "ProgressEvent":
        payload = ErrorData(message=message, kind=kind, fatal=fatal)
        return cls(step=step, status=EventStatus.ERROR, data=payload.to_wire())

    @property
    def is_terminal(self) -> bool:
        """True for the single workflow completed/error record of a run."""
        return self.step == StepName.WORKFLOW and self.status in (
            EventStatus.COMPLETED,
            EventStatus.ERROR,
        )

    def to_line(self) -> str:
        """Serialize as one NDJSON line, compact like JSON.stringify."""
        return json.dumps(self.to_wire(), ensure_ascii=False, separators=(",", ":")) + "\n"

    @classmethod
    def from_line(cls, line: str) -> "ProgressEvent":
        return cls.model_validate(json.loads(line))

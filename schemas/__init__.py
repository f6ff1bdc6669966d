"""Schemas module for workflow data.

Provides Pydantic models for:
- Candidate input and the intermediate pipeline entities
- Progress events streamed to clients
- The persisted run journal
"""

from .candidate import (
    ApprovalResult,
    CandidateInput,
    CanonicalProfile,
    EducationEntry,
    EnrichedProfile,
    ExperienceEntry,
    ExtractedData,
    JobContext,
    RawSources,
    ScoringResult,
    SearchResult,
    Snippets,
    WireModel,
    WorkflowResult,
)
from .pipeline_state import RunState, RunStatus, Stage, StepRecord, StepStatus
from .progress import (
    PIPELINE_STEPS,
    ErrorData,
    EventStatus,
    ProgressEvent,
    StepName,
    ToolCall,
    ToolCallData,
    WaitingData,
    now_ms,
)

__all__ = [
    # Candidate
    "ApprovalResult",
    "CandidateInput",
    "CanonicalProfile",
    "EducationEntry",
    "EnrichedProfile",
    "ExperienceEntry",
    "ExtractedData",
    "JobContext",
    "RawSources",
    "ScoringResult",
    "SearchResult",
    "Snippets",
    "WireModel",
    "WorkflowResult",
    # Journal
    "RunState",
    "RunStatus",
    "Stage",
    "StepRecord",
    "StepStatus",
    # Progress
    "PIPELINE_STEPS",
    "ErrorData",
    "EventStatus",
    "ProgressEvent",
    "StepName",
    "ToolCall",
    "ToolCallData",
    "WaitingData",
    "now_ms",
]

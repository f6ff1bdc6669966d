"""Orchestrator module for the resume review workflow.

State machine-based run orchestration with:
- Explicit step transitions
- Journaled step outputs for resume after restart
- Human approval waitpoints
- Line-delimited progress streaming
- Retry policies for idempotent steps

The runner lives in orchestrator.runner; it pulls in the step and tool
packages, which themselves import from this package.
"""

from .checkpoints import Waitpoint, WaitpointRegistry, WaitpointState, approval_token
from .errors import (
    ApprovalTimeoutError,
    ExternalOperationError,
    InputValidationError,
    NotificationError,
    ProfileSchemaError,
    RunInProgressError,
    RunNotFoundError,
    WaitpointAlreadyResolvedError,
    WaitpointConflictError,
    WaitpointError,
    WaitpointExpiredError,
    WaitpointNotFoundError,
    WorkflowError,
)
from .executor import RetryPolicy, StepExecutor
from .state_machine import InvalidTransitionError, StateMachine, Transition
from .stream import ChannelClosedError, ProgressChannel, ProgressEmitter

__all__ = [
    "ApprovalTimeoutError",
    "ChannelClosedError",
    "ExternalOperationError",
    "InputValidationError",
    "InvalidTransitionError",
    "NotificationError",
    "ProfileSchemaError",
    "ProgressChannel",
    "ProgressEmitter",
    "RetryPolicy",
    "RunInProgressError",
    "RunNotFoundError",
    "StateMachine",
    "StepExecutor",
    "Transition",
    "Waitpoint",
    "WaitpointAlreadyResolvedError",
    "WaitpointConflictError",
    "WaitpointError",
    "WaitpointExpiredError",
    "WaitpointNotFoundError",
    "WaitpointRegistry",
    "WaitpointState",
    "WorkflowError",
    "approval_token",
]

"""Workflow error taxonomy.

The kind attribute is reported in error events so clients can tell
validation problems from broken profiles, timeouts and upstream failures.
"""


class WorkflowError(Exception):
    """Base exception for workflow failures."""

    kind: str = "internal"
    retryable: bool = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InputValidationError(WorkflowError):
    """Candidate input is unusable (missing id, no sources)."""

    kind = "validation"


class ProfileSchemaError(WorkflowError):
    """Extracted profile does not satisfy the canonical schema."""

    kind = "schema"


class ExternalOperationError(WorkflowError):
    """An external collaborator (fetch, search, LLM, store) failed."""

    kind = "external"
    retryable = True


class ApprovalTimeoutError(WorkflowError):
    """Nobody resolved the approval waitpoint in time."""

    kind = "timeout"


class NotificationError(WorkflowError):
    """Downstream notification failed. Never fails the run."""

    kind = "notify_failed"


def error_kind(exc: BaseException) -> str:
    """Classify any exception for the error event payload."""
    if isinstance(exc, WorkflowError):
        return exc.kind
    return "internal"


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, WorkflowError):
        return exc.retryable
    # Transport-level failures are worth another attempt
    return isinstance(exc, (ConnectionError, TimeoutError))


class WaitpointError(Exception):
    """Base exception for waitpoint resolution failures.

    These are raised to the caller resolving a token and never touch the
    run that owns the waitpoint.
    """

    status_code: int = 400
    code: str = "WAITPOINT_ERROR"

    def __init__(self, token: str, message: str) -> None:
        self.token = token
        self.message = message
        super().__init__(message)


class WaitpointNotFoundError(WaitpointError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, token: str) -> None:
        super().__init__(token, f"Waitpoint not found: {token}")


class WaitpointAlreadyResolvedError(WaitpointError):
    status_code = 409
    code = "ALREADY_RESOLVED"

    def __init__(self, token: str) -> None:
        super().__init__(token, f"Waitpoint already resolved: {token}")


class WaitpointExpiredError(WaitpointError):
    status_code = 410
    code = "EXPIRED"

    def __init__(self, token: str) -> None:
        super().__init__(token, f"Waitpoint expired: {token}")


class WaitpointConflictError(WaitpointError):
    """A waitpoint with this token is already open."""

    status_code = 409
    code = "CONFLICT"

    def __init__(self, token: str) -> None:
        super().__init__(token, f"Waitpoint already open: {token}")


class RunNotFoundError(LookupError):
    """No journal exists for the run id."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Run not found: {run_id}")


class RunInProgressError(RuntimeError):
    """The run is still executing in this process and cannot be resumed."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Run already in progress: {run_id}")

"""Human-in-the-loop approval step."""

import logging

from pydantic import ValidationError

from orchestrator.checkpoints import WaitpointRegistry, approval_token
from orchestrator.errors import ApprovalTimeoutError, InputValidationError, WaitpointExpiredError
from orchestrator.state_machine import StateMachine
from orchestrator.stream import ProgressEmitter
from schemas.candidate import ApprovalResult, EnrichedProfile, Snippets
from schemas.progress import ProgressEvent, WaitingData

logger = logging.getLogger(__name__)

MOCK_REASON = "mock_auto_approve"


async def human_approval(
    candidate_id: str,
    enriched: EnrichedProfile,
    snippets: Snippets,
    *,
    mock: bool,
    registry: WaitpointRegistry,
    machine: StateMachine,
    emitter: ProgressEmitter,
    timeout: float | None = None,
) -> ApprovalResult:
    """Get a reviewer decision on the generated profile.

    In mock mode the candidate is approved at once. Otherwise a waitpoint
    keyed by the run's approval token is opened, a waiting event carrying the
    token and review context is emitted, and the step suspends until the
    token is resolved with {approved, reason?}.

    Args:
        candidate_id: Candidate under review
        enriched: Enriched profile (score shown to the reviewer)
        snippets: Generated snippets shown to the reviewer
        mock: Auto-approve instead of waiting
        registry: Waitpoint registry the resolver posts to
        machine: Run state machine (records the suspension)
        emitter: Progress stream for the waiting event
        timeout: Seconds before the waitpoint expires (None = registry default)

    Returns:
        The approval decision

    Raises:
        ApprovalTimeoutError: If nobody resolved the token in time
    """
    if mock:
        logger.info("[mock] Auto-approving candidate %s (mock mode)", candidate_id)
        logger.info("Overview: %s", snippets.headline)
        return ApprovalResult(approved=True, reason=MOCK_REASON)

    token = approval_token(machine.state.run_id)
    waiting = WaitingData(
        webhook_token=token,
        candidate_id=candidate_id,
        snippets=snippets,
        score=enriched.overall_score,
    )
    await registry.create(token, context=waiting.to_wire(), timeout=timeout)
    machine.await_approval(token)
    await emitter.emit(ProgressEvent.waiting(waiting))
    logger.info("Run %s waiting for approval on %s", machine.state.run_id, token)

    try:
        payload = await registry.wait(token)
    except WaitpointExpiredError as e:
        raise ApprovalTimeoutError(f"Approval for {candidate_id} timed out") from e

    try:
        return ApprovalResult.model_validate(payload)
    except ValidationError as e:
        raise InputValidationError(f"Invalid approval payload: {e.error_count()} field errors") from e

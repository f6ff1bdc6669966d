"""FastAPI application for the resume review workflow.

Endpoints:
- POST /api/resume-review: start a run, stream NDJSON progress
- POST /api/workflows: generic start endpoint ({workflow, input})
- POST /api/approval: resolve an approval token
- GET /api/approval/pending: open approval tokens with review context
- GET /api/runs/{run_id}: run progress from the journal
- POST /api/runs/{run_id}/resume: resume a journaled run, stream progress
- GET /health

Run with:
    uvicorn api.app:create_app --factory --reload
or:
    resume-review serve
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Body, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ValidationError

from orchestrator.errors import RunInProgressError, RunNotFoundError, WaitpointError
from orchestrator.runner import RunHandle, WorkflowRunner
from pipeline import __version__
from schemas.candidate import CandidateInput

logger = logging.getLogger(__name__)

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

WORKFLOWS = {"resume-review"}


class ApprovalRequest(BaseModel):
    """Reviewer decision posted to the approval endpoint."""

    token: str | None = None
    approved: bool
    reason: str | None = None


def _error(status_code: int, message: str, code: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {"error": message}
    if code:
        content["code"] = code
    return JSONResponse(status_code=status_code, content=content)


def get_runner(request: Request) -> WorkflowRunner:
    """Dependency: the runner shared by all requests of the app."""
    return request.app.state.runner


def _stream(handle: RunHandle) -> StreamingResponse:
    async def lines() -> AsyncIterator[str]:
        try:
            async for line in handle.events():
                yield line
        finally:
            # Client gone or stream finished; the run itself is unaffected
            handle.detach()

    return StreamingResponse(
        lines(),
        media_type="text/event-stream",
        headers={**STREAM_HEADERS, "X-Run-Id": handle.run_id},
    )


def _start(runner: WorkflowRunner, payload: Any) -> StreamingResponse | JSONResponse:
    if not isinstance(payload, dict):
        return _error(400, "Request body must be a JSON object")
    try:
        candidate = CandidateInput.model_validate(payload)
    except ValidationError as e:
        return _error(400, f"Invalid input: {e.error_count()} field errors")

    if not candidate.candidate_id:
        return _error(400, "candidateId is required")

    logger.info("[api] Starting workflow for %s", candidate.candidate_id)
    return _stream(runner.start(candidate))


def create_app(runner: WorkflowRunner | None = None) -> FastAPI:
    """Build the application.

    Args:
        runner: Workflow runner (built from the global config if None)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.runner.shutdown()

    app = FastAPI(title="Resume Review Workflow", version=__version__, lifespan=lifespan)
    app.state.runner = runner or WorkflowRunner()

    @app.exception_handler(WaitpointError)
    async def waitpoint_error_handler(request: Request, exc: WaitpointError) -> JSONResponse:
        logger.warning("Approval for %s rejected: %s", exc.token, exc.message)
        return _error(exc.status_code, exc.message, exc.code)

    @app.exception_handler(RunNotFoundError)
    async def run_not_found_handler(request: Request, exc: RunNotFoundError) -> JSONResponse:
        return _error(404, str(exc), "RUN_NOT_FOUND")

    @app.exception_handler(RunInProgressError)
    async def run_in_progress_handler(request: Request, exc: RunInProgressError) -> JSONResponse:
        return _error(409, str(exc), "RUN_IN_PROGRESS")

    @app.get("/health")
    async def health(runner: WorkflowRunner = Depends(get_runner)) -> dict[str, Any]:
        return {
            "status": "healthy",
            "version": __version__,
            "activeRuns": len(runner.active_runs),
            "pendingApprovals": len(runner.registry.pending()),
        }

    @app.post("/api/resume-review")
    async def resume_review(
        payload: Any = Body(...),
        runner: WorkflowRunner = Depends(get_runner),
    ):
        return _start(runner, payload)

    @app.post("/api/workflows")
    async def workflows(
        payload: Any = Body(...),
        runner: WorkflowRunner = Depends(get_runner),
    ):
        if not isinstance(payload, dict) or payload.get("workflow") not in WORKFLOWS:
            return _error(400, "Unknown workflow type")
        return _start(runner, payload.get("input") or {})

    @app.post("/api/approval")
    async def approval(
        body: ApprovalRequest,
        runner: WorkflowRunner = Depends(get_runner),
    ):
        if not body.token:
            return _error(400, "token is required")

        logger.info("[approval] %s: approved=%s reason=%s", body.token, body.approved, body.reason)
        await runner.registry.resolve(body.token, {"approved": body.approved, "reason": body.reason})
        return {"success": True}

    @app.get("/api/approval/pending")
    async def pending_approvals(runner: WorkflowRunner = Depends(get_runner)) -> list[dict[str, Any]]:
        return [w.summary() for w in runner.registry.pending()]

    @app.get("/api/runs/{run_id}")
    async def run_status(run_id: str, runner: WorkflowRunner = Depends(get_runner)) -> dict[str, Any]:
        return runner.get_status(run_id)

    @app.post("/api/runs/{run_id}/resume")
    async def resume_run(run_id: str, runner: WorkflowRunner = Depends(get_runner)):
        return _stream(runner.resume(run_id))

    return app


"""CLI entrypoint for the resume review workflow."""

import asyncio
import json
import logging
import sys
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from orchestrator.errors import RunInProgressError, RunNotFoundError, WaitpointError
from orchestrator.runner import RunHandle, WorkflowRunner
from pipeline import __version__
from pipeline.config import Config, get_config
from schemas.candidate import CandidateInput, JobContext, WorkflowResult
from schemas.progress import EventStatus, ProgressEvent, StepName

app = typer.Typer(
    name="resume-review",
    help="Durable resume review workflow with human approval.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

STATUS_STYLES = {
    "completed": "green",
    "running": "blue",
    "paused": "yellow",
    "awaiting_approval": "yellow",
    "failed": "red",
    "pending": "dim",
}


def _setup_logging(config: Config) -> None:
    logging.basicConfig(
        level=config.pipeline.log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _render_event(event: ProgressEvent) -> None:
    """Print one progress event for humans."""
    step = event.step.value
    data = event.data or {}

    if event.status == EventStatus.STARTED:
        rprint(f"[bold blue]Review started[/bold blue] for [cyan]{data.get('candidateId')}[/cyan]")
    elif event.status == EventStatus.RUNNING:
        rprint(f"[dim]→ {step}...[/dim]")
    elif event.status == EventStatus.TOOL_CALL:
        calls = data.get("toolCalls") or []
        if calls:
            rprint(f"  [magenta]⚙ {calls[-1]['name']}[/magenta] [dim]{calls[-1]['description']}[/dim]")
    elif event.status == EventStatus.WAITING:
        snippets = data.get("snippets", {})
        body = "\n".join(
            [
                f"[bold]{snippets.get('headline', '')}[/bold]",
                snippets.get("bio", ""),
                *snippets.get("highlights", []),
                "",
                f"Score: {data.get('score')}/100",
                f"Token: [cyan]{data.get('webhookToken')}[/cyan]",
            ]
        )
        console.print(Panel(body, title="Awaiting approval", border_style="yellow"))
    elif event.status == EventStatus.COMPLETED and event.step != StepName.WORKFLOW:
        details = f" [dim]{json.dumps(data)}[/dim]" if data else ""
        rprint(f"[green]✓ {step}[/green]{details}")
    elif event.status == EventStatus.ERROR:
        style = "yellow" if data.get("fatal") is False else "red"
        rprint(f"[{style}]✗ {step}: {data.get('message')}[/{style}]")


def _render_result(result: WorkflowResult) -> None:
    if result.status == "failed":
        rprint(f"\n[red]Review failed for {result.candidate_id or '(no candidate)'}[/red]")
        return

    lines = [f"Approved: {'[green]yes[/green]' if result.approved else '[red]no[/red]'}"]
    if result.reason:
        lines.append(f"Reason: {result.reason}")
    if result.enriched:
        lines.append(f"Score: {result.enriched.overall_score}/100")
        if result.enriched.risk_flags:
            lines.append(f"Risk flags: {', '.join(result.enriched.risk_flags)}")
    if result.snippets:
        lines += ["", f"[bold]{result.snippets.headline}[/bold]", result.snippets.bio, *result.snippets.highlights]

    console.print(Panel("\n".join(lines), title=f"Candidate {result.candidate_id}", border_style="green"))


async def _prompt_approval(runner: WorkflowRunner, event: ProgressEvent) -> None:
    """Ask the reviewer and resolve the run's approval token."""
    token = (event.data or {}).get("webhookToken")
    approved = await asyncio.to_thread(Confirm.ask, "Approve this candidate?", console=err_console)
    reason = await asyncio.to_thread(Prompt.ask, "Reason", console=err_console, default="")
    try:
        await runner.registry.resolve(token, {"approved": approved, "reason": reason or None})
    except WaitpointError as e:
        err_console.print(f"[red]Could not record decision: {e.message}[/red]")


async def _drive(runner: WorkflowRunner, handle: RunHandle, json_output: bool) -> WorkflowResult:
    async for line in handle.events():
        event = ProgressEvent.from_line(line)
        if json_output:
            sys.stdout.write(line)
            sys.stdout.flush()
        else:
            _render_event(event)
        if event.status == EventStatus.WAITING:
            await _prompt_approval(runner, event)
    return await handle.result()


async def _run(runner: WorkflowRunner, candidate: CandidateInput, json_output: bool) -> WorkflowResult:
    return await _drive(runner, runner.start(candidate), json_output)


async def _resume(runner: WorkflowRunner, run_id: str, json_output: bool) -> WorkflowResult:
    return await _drive(runner, runner.resume(run_id), json_output)


def _finish(result: WorkflowResult, json_output: bool) -> None:
    if not json_output:
        _render_result(result)
    if result.status == "failed":
        raise typer.Exit(code=1)


@app.command()
def run(
    candidate_id: Optional[str] = typer.Option(
        None,
        "--candidate-id",
        "-c",
        help="Stable candidate key",
    ),
    upload_url: Optional[str] = typer.Option(None, "--upload-url", help="Uploaded resume URL"),
    linkedin_url: Optional[str] = typer.Option(None, "--linkedin-url", help="LinkedIn profile URL"),
    github_url: Optional[str] = typer.Option(None, "--github-url", help="GitHub profile URL"),
    role: Optional[str] = typer.Option(None, "--role", "-r", help="Target role"),
    seniority: Optional[str] = typer.Option(None, "--seniority", help="Target seniority"),
    skills: Optional[list[str]] = typer.Option(
        None,
        "--skill",
        "-s",
        help="Required skill (repeatable)",
    ),
    real_approval: bool = typer.Option(
        False,
        "--real-approval",
        help="Wait for a reviewer decision instead of auto-approving",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print raw NDJSON progress events",
    ),
) -> None:
    """Review a candidate.

    Examples:
        resume-review run -c c1 --role Eng -s TypeScript -s React
        resume-review run -c c1 --real-approval
        resume-review run -c c1 --json
    """
    config = get_config()
    _setup_logging(config)
    if real_approval:
        config.workflow.mock_approval = False

    job_context = None
    if role or seniority or skills:
        job_context = JobContext(role=role or "", seniority=seniority, skills=skills or None)

    candidate = CandidateInput(
        candidate_id=candidate_id,
        upload_url=upload_url,
        linked_in_url=linkedin_url,
        github_url=github_url,
        job_context=job_context,
    )

    runner = WorkflowRunner(config=config)
    result = asyncio.run(_run(runner, candidate, json_output))
    _finish(result, json_output)


@app.command()
def resume(
    run_id: str = typer.Argument(..., help="Run ID to resume"),
    json_output: bool = typer.Option(False, "--json", help="Print raw NDJSON progress events"),
) -> None:
    """Resume a journaled run from where it stopped."""
    config = get_config()
    _setup_logging(config)
    runner = WorkflowRunner(config=config)

    try:
        result = asyncio.run(_resume(runner, run_id, json_output))
    except (RunNotFoundError, RunInProgressError) as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    _finish(result, json_output)


@app.command()
def status(run_id: str = typer.Argument(..., help="Run ID to inspect")) -> None:
    """Show the progress of a run."""
    runner = WorkflowRunner(config=get_config())
    try:
        summary = runner.get_status(run_id)
    except RunNotFoundError as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    run_status = summary["status"]
    style = STATUS_STYLES.get(run_status, "white")
    rprint(f"[bold]Run[/bold] [cyan]{summary['runId']}[/cyan] ({summary['candidateId']})")
    rprint(f"Status: [{style}]{run_status}[/{style}]  Step: {summary['currentStep']}  Progress: {summary['progress']}")
    if summary.get("webhookToken"):
        rprint(f"Approval token: [cyan]{summary['webhookToken']}[/cyan]")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Step", style="cyan")
    table.add_column("Status")
    for step, step_status in summary["steps"].items():
        step_style = STATUS_STYLES.get(step_status, "white")
        table.add_row(step, f"[{step_style}]{step_status}[/{step_style}]")
    console.print(table)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Host to bind to"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to bind to"),
) -> None:
    """Start the HTTP API.

    Examples:
        resume-review serve
        resume-review serve --port 8080
    """
    import uvicorn

    from api.app import create_app

    config = get_config()
    _setup_logging(config)
    host = host or config.server.host
    port = port or config.server.port

    rprint(f"[bold blue]Resume Review[/bold blue] v{__version__}")
    rprint(f"[dim]URL: http://{host}:{port}[/dim]")

    uvicorn.run(create_app(WorkflowRunner(config=config)), host=host, port=port)


@app.command()
def version() -> None:
    """Show version information."""
    config = get_config()
    workflow = config.workflow

    rprint(f"[bold blue]Resume Review[/bold blue] v{__version__}")
    rprint()
    rprint(f"[dim]Mock sources:[/dim] {workflow.mock_sources}")
    rprint(f"[dim]Mock approval:[/dim] {workflow.mock_approval}")
    rprint(f"[dim]Mock notifications:[/dim] {workflow.mock_notifications}")
    rprint(f"[dim]Mock LLM:[/dim] {workflow.mock_llm}")
    rprint(f"[dim]LLM Backend:[/dim] {config.llm.backend} ({config.llm.model})")


if __name__ == "__main__":
    app()

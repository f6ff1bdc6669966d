"""Shared pytest configuration and fixtures for the workflow tests."""

from pathlib import Path

import pytest

from integrations import LogNotifier, Notification, Notifier
from local_storage import ProfileStore
from orchestrator.errors import NotificationError
from orchestrator.runner import RunHandle, WorkflowRunner
from pipeline.config import Config
from schemas.candidate import CandidateInput
from schemas.progress import EventStatus, ProgressEvent, StepName


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "api: HTTP endpoint tests")
    config.addinivalue_line("markers", "slow: tests that wait on timers")


class FailingNotifier(Notifier):
    """Notifier whose every send fails."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or NotificationError("Slack webhook returned 500")
        self.calls = 0

    @property
    def name(self) -> str:
        return "failing"

    async def send(self, notification: Notification) -> None:
        self.calls += 1
        raise self.exc


async def no_sleep(delay: float) -> None:
    return None


async def drive(handle: RunHandle, registry=None, decision: dict | None = None):
    """Consume a run's stream, answering the approval prompt if one comes.

    Returns:
        (events, result)
    """
    events: list[ProgressEvent] = []
    async for line in handle.events():
        event = ProgressEvent.from_line(line)
        events.append(event)
        if event.status == EventStatus.WAITING and registry is not None and decision is not None:
            await registry.resolve(event.data["webhookToken"], decision)
    return events, await handle.result()


def steps_with(events: list[ProgressEvent], status: EventStatus) -> list[str]:
    return [e.step.value for e in events if e.status == status]


def terminal(events: list[ProgressEvent]) -> list[ProgressEvent]:
    return [e for e in events if e.step == StepName.WORKFLOW and e.status in (EventStatus.COMPLETED, EventStatus.ERROR)]


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    return tmp_path / "artifacts"


@pytest.fixture
def config(artifacts_dir: Path) -> Config:
    cfg = Config()
    cfg.pipeline.artifacts_dir = str(artifacts_dir)
    cfg.workflow.approval_timeout = 0
    return cfg


@pytest.fixture
def real_approval_config(config: Config) -> Config:
    config.workflow.mock_approval = False
    return config


@pytest.fixture
def store() -> ProfileStore:
    return ProfileStore()


@pytest.fixture
def notifier() -> LogNotifier:
    return LogNotifier()


@pytest.fixture
def runner(config: Config, store: ProfileStore, notifier: LogNotifier) -> WorkflowRunner:
    return WorkflowRunner(config=config, store=store, notifier=notifier, sleep=no_sleep)


@pytest.fixture
def candidate() -> CandidateInput:
    return CandidateInput.model_validate(
        {"candidateId": "c1", "jobContext": {"role": "Eng", "skills": ["TypeScript", "React"]}}
    )

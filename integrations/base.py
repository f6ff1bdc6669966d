"""Base classes for external integrations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Notification:
    """Message sent downstream when a review finishes."""

    candidate_id: str
    approved: bool
    channel: str = "#recruiting"
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return f"Candidate {self.candidate_id} review complete. Approved: {str(self.approved).lower()}"


class Notifier(ABC):
    """Abstract downstream notification channel."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Notifier name for logs."""
        ...

    @abstractmethod
    async def send(self, notification: Notification) -> None:
        """Deliver a notification.

        Raises:
            NotificationError: If delivery fails
        """
        ...


class SourceFetcher(ABC):
    """Fetches raw candidate text for one source channel."""

    @abstractmethod
    async def fetch_resume(self, url: str) -> str:
        ...

    @abstractmethod
    async def fetch_linkedin(self, url: str) -> str:
        ...

    @abstractmethod
    async def fetch_github_readme(self, url: str) -> str:
        ...

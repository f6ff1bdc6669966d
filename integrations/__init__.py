"""External integrations used by the workflow steps.

Supports:
- Downstream notifications (log mock, Slack-compatible webhook)
- Source fetching over HTTP (resume upload, LinkedIn, GitHub README)
"""

from .base import Notification, Notifier, SourceFetcher
from .notifiers import LogNotifier, WebhookNotifier
from .sources import HttpSourceFetcher

__all__ = [
    "HttpSourceFetcher",
    "LogNotifier",
    "Notification",
    "Notifier",
    "SourceFetcher",
    "WebhookNotifier",
]

"""Downstream team notification step."""

from integrations.base import Notification, Notifier
from orchestrator.errors import NotificationError


async def notify_teams(
    notifier: Notifier,
    candidate_id: str,
    approved: bool,
    channel: str = "#recruiting",
) -> None:
    """Tell downstream teams a review finished.

    Raises:
        NotificationError: If the notifier could not deliver, whatever it raised
    """
    try:
        await notifier.send(Notification(candidate_id=candidate_id, approved=approved, channel=channel))
    except NotificationError:
        raise
    except Exception as e:
        raise NotificationError(f"{notifier.name} notification failed: {e}") from e

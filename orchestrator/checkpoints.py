"""Human approval waitpoints.

A waitpoint is an addressable suspension point keyed by a token. The run
that creates it awaits a future; whoever holds the token (a reviewer posting
to the approval endpoint, or the CLI prompt) resolves it and the run resumes
with the delivered payload. Waiting costs a parked coroutine, never a thread.

Waitpoint states: OPEN -> RESOLVED | EXPIRED (both terminal).
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .errors import (
    WaitpointAlreadyResolvedError,
    WaitpointConflictError,
    WaitpointExpiredError,
    WaitpointNotFoundError,
)

logger = logging.getLogger(__name__)


class WaitpointState(str, Enum):
    """Lifecycle of a waitpoint."""

    OPEN = "open"
    RESOLVED = "resolved"
    EXPIRED = "expired"


@dataclass
class Waitpoint:
    """A registered suspension point."""

    token: str
    future: asyncio.Future
    state: WaitpointState = WaitpointState.OPEN
    context: dict[str, Any] = field(default_factory=dict)
    timeout: float | None = None
    created_at: datetime = field(default_factory=datetime.now)
    resolved_at: datetime | None = None
    payload: Any = None

    def summary(self) -> dict[str, Any]:
        """Describe the waitpoint for listings (no future, no payload)."""
        return {
            "token": self.token,
            "state": self.state.value,
            "createdAt": self.created_at.isoformat(),
            "timeoutSeconds": self.timeout,
            "context": self.context,
        }


# Terminal waitpoints kept per registry before the oldest are forgotten
MAX_TERMINAL = 256


def approval_token(run_id: str) -> str:
    """Build the namespaced approval token for a run."""
    return f"approval:{run_id}"


class WaitpointRegistry:
    """Process-wide mapping from token to pending waitpoint.

    Creation and resolution happen under one lock, so a token has a single
    writer at a time and a lookup always sees the latest state. Terminal
    waitpoints are kept so that a second resolve is reported as such rather
    than as an unknown token, up to max_terminal of them; older ones are
    forgotten first.
    """

    def __init__(self, default_timeout: float | None = None, max_terminal: int = MAX_TERMINAL) -> None:
        """Initialize registry.

        Args:
            default_timeout: Seconds before unresolved waitpoints expire
                (None or 0 = wait forever)
            max_terminal: Resolved or expired waitpoints retained for
                duplicate detection
        """
        self.default_timeout = default_timeout or None
        self.max_terminal = max_terminal
        self._waitpoints: dict[str, Waitpoint] = {}
        self._terminal: deque[Waitpoint] = deque()
        self._lock = asyncio.Lock()

    async def create(
        self,
        token: str,
        context: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Waitpoint:
        """Register an OPEN waitpoint.

        A terminal waitpoint with the same token is replaced; an open one is
        a conflict (two runs can never share a token).

        Raises:
            WaitpointConflictError: If the token is already open
        """
        async with self._lock:
            existing = self._waitpoints.get(token)
            if existing is not None and existing.state == WaitpointState.OPEN:
                raise WaitpointConflictError(token)

            waitpoint = Waitpoint(
                token=token,
                future=asyncio.get_running_loop().create_future(),
                context=context or {},
                timeout=(timeout if timeout is not None else self.default_timeout) or None,
            )
            self._waitpoints[token] = waitpoint
            logger.info("Waitpoint %s opened (timeout=%s)", token, waitpoint.timeout)
            return waitpoint

    async def wait(self, token: str) -> Any:
        """Suspend until the waitpoint is resolved and return its payload.

        Raises:
            WaitpointNotFoundError: If the token was never created
            WaitpointExpiredError: If the timeout elapsed first
        """
        waitpoint = self._waitpoints.get(token)
        if waitpoint is None:
            raise WaitpointNotFoundError(token)

        try:
            await asyncio.wait({waitpoint.future}, timeout=waitpoint.timeout)
        except asyncio.CancelledError:
            # Waiter is gone; free the token so a resumed run can reopen it
            if waitpoint.state == WaitpointState.OPEN and not waitpoint.future.done():
                waitpoint.future.cancel()
                self._waitpoints.pop(token, None)
            raise

        async with self._lock:
            if waitpoint.future.done() and not waitpoint.future.cancelled():
                return waitpoint.future.result()
            waitpoint.state = WaitpointState.EXPIRED
            waitpoint.future.cancel()
            self._retire(waitpoint)

        logger.warning("Waitpoint %s expired after %ss", token, waitpoint.timeout)
        raise WaitpointExpiredError(token)

    async def resolve(self, token: str, payload: Any) -> Waitpoint:
        """Deliver a payload to the run waiting on token.

        Raises:
            WaitpointNotFoundError: Unknown token
            WaitpointAlreadyResolvedError: Token was resolved before
            WaitpointExpiredError: Token expired before resolution
        """
        async with self._lock:
            waitpoint = self._waitpoints.get(token)
            if waitpoint is None:
                raise WaitpointNotFoundError(token)
            if waitpoint.state == WaitpointState.RESOLVED:
                raise WaitpointAlreadyResolvedError(token)
            if waitpoint.state == WaitpointState.EXPIRED:
                raise WaitpointExpiredError(token)

            waitpoint.state = WaitpointState.RESOLVED
            waitpoint.payload = payload
            waitpoint.resolved_at = datetime.now()
            waitpoint.future.set_result(payload)
            self._retire(waitpoint)

        logger.info("Waitpoint %s resolved", token)
        return waitpoint

    def _retire(self, waitpoint: Waitpoint) -> None:
        """Track a waitpoint that just became terminal. Caller holds the lock."""
        self._terminal.append(waitpoint)
        while len(self._terminal) > self.max_terminal:
            oldest = self._terminal.popleft()
            # The token may have been reopened or discarded since
            if self._waitpoints.get(oldest.token) is oldest:
                del self._waitpoints[oldest.token]

    def get(self, token: str) -> Waitpoint | None:
        return self._waitpoints.get(token)

    def pending(self) -> list[Waitpoint]:
        """Open waitpoints, oldest first."""
        return sorted(
            (w for w in self._waitpoints.values() if w.state == WaitpointState.OPEN),
            key=lambda w: w.created_at,
        )

    async def discard(self, token: str) -> bool:
        """Forget a terminal waitpoint. Open ones are left alone."""
        async with self._lock:
            waitpoint = self._waitpoints.get(token)
            if waitpoint is None or waitpoint.state == WaitpointState.OPEN:
                return False
            del self._waitpoints[token]
            return True

    def __contains__(self, token: object) -> bool:
        return token in self._waitpoints

    def __len__(self) -> int:
        return len(self._waitpoints)

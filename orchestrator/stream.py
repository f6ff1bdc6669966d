"""Progress streaming for workflow runs.

A run owns one ProgressChannel (the byte stream handed to its client) and one
ProgressEmitter that serializes events onto it. Losing the client must never
fail the run, so write failures are logged and the run carries on.
"""

import asyncio
import logging
from typing import AsyncIterator

from schemas.progress import ProgressEvent

logger = logging.getLogger(__name__)

_EOF = object()


class ChannelClosedError(Exception):
    """Raised when writing to a channel whose reader is gone or closed."""

    pass


class ProgressChannel:
    """Single-writer, single-reader line channel for one workflow run.

    Lines are queued in memory until the reader consumes them; the writer
    never blocks on a slow reader.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._detached = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def detached(self) -> bool:
        return self._detached

    async def write(self, line: str) -> None:
        """Append one line for the reader.

        Raises:
            ChannelClosedError: If the channel was closed or the reader left
        """
        if self._detached:
            raise ChannelClosedError("reader disconnected")
        if self._closed:
            raise ChannelClosedError("channel closed")
        await self._queue.put(line)

    def close(self) -> None:
        """Signal end of stream to the reader. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_EOF)

    def detach(self) -> None:
        """Mark the reader as gone and drop anything still buffered."""
        self._detached = True
        while not self._queue.empty():
            self._queue.get_nowait()

    async def lines(self) -> AsyncIterator[str]:
        """Yield lines until the writer closes the channel.

        If the consumer stops early (client disconnect, cancellation) the
        channel is detached so later writes fail fast instead of buffering.
        """
        finished = False
        try:
            while True:
                item = await self._queue.get()
                if item is _EOF:
                    finished = True
                    return
                yield item  # type: ignore[misc]
        finally:
            if not finished:
                self.detach()

    def __aiter__(self) -> AsyncIterator[str]:
        return self.lines()


class ProgressEmitter:
    """Serializes progress events onto a channel.

    Writes go through a per-emitter lock so concurrent emit() calls can never
    interleave partial lines. Every event is also kept in history, which is
    the authoritative append-only log for the run.
    """

    def __init__(self, channel: ProgressChannel | None = None, run_id: str | None = None) -> None:
        self.channel = channel
        self.run_id = run_id
        self.history: list[ProgressEvent] = []
        self._lock = asyncio.Lock()
        self._warned = False

    async def emit(self, event: ProgressEvent) -> None:
        """Append one event to the run's stream.

        Returns once the line is handed to the channel. Channel failures are
        logged and swallowed.
        """
        async with self._lock:
            self.history.append(event)
            if self.channel is None:
                return
            try:
                await self.channel.write(event.to_line())
            except ChannelClosedError as e:
                if not self._warned:
                    logger.warning(
                        "Progress stream for run %s unavailable (%s); continuing without client",
                        self.run_id,
                        e,
                    )
                    self._warned = True
            except Exception:
                logger.exception(
                    "Failed to write %s/%s event for run %s",
                    event.step.value,
                    event.status.value,
                    self.run_id,
                )

    def close(self) -> None:
        if self.channel is not None:
            self.channel.close()

    @property
    def terminal_events(self) -> list[ProgressEvent]:
        return [e for e in self.history if e.is_terminal]

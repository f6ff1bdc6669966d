"""Progress channel and emitter."""

import asyncio
import json

import pytest

from orchestrator.stream import ChannelClosedError, ProgressChannel, ProgressEmitter
from schemas.progress import ProgressEvent, StepName


async def read_all(channel: ProgressChannel) -> list[str]:
    return [line async for line in channel]


async def test_lines_arrive_in_order():
    channel = ProgressChannel()
    emitter = ProgressEmitter(channel)

    for step in (StepName.VALIDATE, StepName.INGEST, StepName.EXTRACT):
        await emitter.emit(ProgressEvent.running(step))
    emitter.close()

    lines = await read_all(channel)
    assert [json.loads(line)["step"] for line in lines] == ["validate", "ingest", "extract"]
    assert all(line.endswith("\n") for line in lines)


async def test_concurrent_emits_never_interleave():
    channel = ProgressChannel()
    emitter = ProgressEmitter(channel)

    await asyncio.gather(*(emitter.emit(ProgressEvent.completed(StepName.EXTRACT, {"n": i})) for i in range(100)))
    emitter.close()

    lines = await read_all(channel)
    assert len(lines) == 100
    assert sorted(json.loads(line)["data"]["n"] for line in lines) == list(range(100))
    assert [e.data["n"] for e in emitter.history] == [json.loads(line)["data"]["n"] for line in lines]


async def test_write_after_detach_raises():
    channel = ProgressChannel()
    channel.detach()
    with pytest.raises(ChannelClosedError):
        await channel.write("x\n")


async def test_write_after_close_raises():
    channel = ProgressChannel()
    channel.close()
    channel.close()
    with pytest.raises(ChannelClosedError):
        await channel.write("x\n")


async def test_emitter_survives_detached_reader():
    channel = ProgressChannel()
    emitter = ProgressEmitter(channel, run_id="r1")
    channel.detach()

    await emitter.emit(ProgressEvent.running(StepName.VALIDATE))
    await emitter.emit(ProgressEvent.completed(StepName.VALIDATE))

    assert len(emitter.history) == 2


async def test_early_consumer_exit_detaches():
    channel = ProgressChannel()
    emitter = ProgressEmitter(channel)
    await emitter.emit(ProgressEvent.running(StepName.VALIDATE))
    await emitter.emit(ProgressEvent.running(StepName.INGEST))

    lines = channel.lines()
    async for _ in lines:
        break
    await lines.aclose()

    assert channel.detached
    await emitter.emit(ProgressEvent.running(StepName.EXTRACT))
    assert len(emitter.history) == 3


async def test_emitter_without_channel_keeps_history():
    emitter = ProgressEmitter()
    await emitter.emit(ProgressEvent.error(StepName.WORKFLOW, "boom"))
    emitter.close()
    assert len(emitter.terminal_events) == 1

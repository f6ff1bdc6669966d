"""Approval waitpoint registry."""

import asyncio

import pytest

from orchestrator.checkpoints import WaitpointRegistry, WaitpointState, approval_token
from orchestrator.errors import (
    WaitpointAlreadyResolvedError,
    WaitpointConflictError,
    WaitpointExpiredError,
    WaitpointNotFoundError,
)


def test_approval_token_is_namespaced():
    assert approval_token("c1-1a2b3c4d") == "approval:c1-1a2b3c4d"


async def test_resolve_delivers_payload_to_waiter():
    registry = WaitpointRegistry()
    await registry.create("approval:r1")

    waiter = asyncio.create_task(registry.wait("approval:r1"))
    await asyncio.sleep(0)
    await registry.resolve("approval:r1", {"approved": True})

    assert await waiter == {"approved": True}
    assert registry.get("approval:r1").state == WaitpointState.RESOLVED


async def test_resolve_before_wait():
    registry = WaitpointRegistry()
    await registry.create("t")
    await registry.resolve("t", {"approved": False, "reason": "X"})

    assert await registry.wait("t") == {"approved": False, "reason": "X"}


async def test_unknown_token():
    registry = WaitpointRegistry()
    with pytest.raises(WaitpointNotFoundError) as exc_info:
        await registry.resolve("approval:nope", {"approved": True})
    assert exc_info.value.status_code == 404


async def test_second_resolve_is_rejected():
    registry = WaitpointRegistry()
    await registry.create("t")
    await registry.resolve("t", {"approved": True})

    with pytest.raises(WaitpointAlreadyResolvedError) as exc_info:
        await registry.resolve("t", {"approved": False})
    assert exc_info.value.status_code == 409
    assert await registry.wait("t") == {"approved": True}


async def test_open_token_conflict():
    registry = WaitpointRegistry()
    await registry.create("t")
    with pytest.raises(WaitpointConflictError):
        await registry.create("t")


async def test_terminal_token_can_be_reopened():
    registry = WaitpointRegistry()
    await registry.create("t")
    await registry.resolve("t", {"approved": True})

    reopened = await registry.create("t")
    assert reopened.state == WaitpointState.OPEN


@pytest.mark.slow
async def test_expiry():
    registry = WaitpointRegistry()
    await registry.create("t", timeout=0.01)

    with pytest.raises(WaitpointExpiredError):
        await registry.wait("t")
    assert registry.get("t").state == WaitpointState.EXPIRED

    with pytest.raises(WaitpointExpiredError) as exc_info:
        await registry.resolve("t", {"approved": True})
    assert exc_info.value.status_code == 410


@pytest.mark.slow
async def test_default_timeout_applies():
    registry = WaitpointRegistry(default_timeout=0.01)
    waitpoint = await registry.create("t")
    assert waitpoint.timeout == 0.01

    with pytest.raises(WaitpointExpiredError):
        await registry.wait("t")


async def test_zero_timeout_means_no_expiry():
    registry = WaitpointRegistry(default_timeout=0)
    waitpoint = await registry.create("t")
    assert waitpoint.timeout is None


async def test_failed_resolve_does_not_touch_other_waitpoints():
    registry = WaitpointRegistry()
    await registry.create("approval:a")
    await registry.create("approval:b")
    waiter_a = asyncio.create_task(registry.wait("approval:a"))

    with pytest.raises(WaitpointNotFoundError):
        await registry.resolve("approval:zzz", {"approved": True})

    await asyncio.sleep(0)
    assert not waiter_a.done()
    assert [w.token for w in registry.pending()] == ["approval:a", "approval:b"]

    await registry.resolve("approval:a", {"approved": True})
    assert await waiter_a == {"approved": True}
    assert registry.get("approval:b").state == WaitpointState.OPEN


async def test_cancelled_waiter_frees_token():
    registry = WaitpointRegistry()
    await registry.create("t")
    waiter = asyncio.create_task(registry.wait("t"))
    await asyncio.sleep(0)

    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    assert "t" not in registry
    await registry.create("t")


async def test_many_concurrent_waiters():
    registry = WaitpointRegistry()
    tokens = [approval_token(f"c{i}") for i in range(50)]
    for token in tokens:
        await registry.create(token)
    waiters = [asyncio.create_task(registry.wait(t)) for t in tokens]

    await asyncio.gather(*(registry.resolve(t, {"approved": i % 2 == 0}) for i, t in enumerate(tokens)))
    results = await asyncio.gather(*waiters)

    assert [r["approved"] for r in results] == [i % 2 == 0 for i in range(50)]
    assert registry.pending() == []


async def test_discard_only_terminal():
    registry = WaitpointRegistry()
    await registry.create("t")
    assert await registry.discard("t") is False

    await registry.resolve("t", {"approved": True})
    assert await registry.discard("t") is True
    assert len(registry) == 0


async def test_terminal_waitpoints_are_bounded():
    registry = WaitpointRegistry(max_terminal=2)
    for token in ("t1", "t2", "t3"):
        await registry.create(token)
        await registry.resolve(token, {"approved": True})

    assert len(registry) == 2
    with pytest.raises(WaitpointNotFoundError):
        await registry.resolve("t1", {"approved": True})
    with pytest.raises(WaitpointAlreadyResolvedError):
        await registry.resolve("t3", {"approved": True})


async def test_open_waitpoints_are_never_pruned():
    registry = WaitpointRegistry(max_terminal=1)
    await registry.create("open")
    for token in ("t1", "t2"):
        await registry.create(token)
        await registry.resolve(token, {"approved": True})

    assert [w.token for w in registry.pending()] == ["open"]
    assert "t2" in registry
    assert "t1" not in registry


async def test_reopened_token_survives_pruning_of_its_old_waitpoint():
    registry = WaitpointRegistry(max_terminal=1)
    await registry.create("t")
    await registry.resolve("t", {"approved": True})
    await registry.create("t")
    await registry.create("u")
    await registry.resolve("u", {"approved": True})

    assert registry.get("t").state == WaitpointState.OPEN

import asyncio
import enum

import pytest

from busgen.bus.runtime import Bus


class Topic(str, enum.Enum):
    A = "a"
    B = "b"


async def _until(cond, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not cond():
        if loop.time() > deadline:
            raise AssertionError("condition not met within %.1fs" % timeout)
        await asyncio.sleep(0.01)


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Bus(0)


def test_publish_beyond_capacity_drops() -> None:
    bus = Bus(3)
    published = []
    dropped = []
    bus.on_publish(lambda e, p: published.append(p))
    bus.on_drop(lambda e, p: dropped.append(p))

    results = [bus.publish(Topic.A, i) for i in range(5)]

    assert results == [True, True, True, False, False]
    assert published == [0, 1, 2]
    assert dropped == [3, 4]
    stats = bus.stats()
    assert stats["published_total"] == 3
    assert stats["dropped_total"] == 2
    assert stats["queue_size"] == 3
    assert stats["queue_maxsize"] == 3


def test_publish_survives_failing_hook() -> None:
    bus = Bus(1)

    def broken(e, p):
        raise RuntimeError("hook broke")

    bus.on_publish(broken)
    bus.on_drop(broken)
    assert bus.publish(Topic.A, 1) is True
    assert bus.publish(Topic.A, 2) is False


def test_subscribe_calls_hook_in_order() -> None:
    bus = Bus(10)
    seen = []
    bus.on_subscribe(seen.append)

    bus.subscribe(Topic.A, lambda p: None)
    bus.subscribe(Topic.B, lambda p: None)

    assert seen == [Topic.A, Topic.B]
    assert bus.stats()["subscribers"] == 2


def test_hooks_can_be_cleared() -> None:
    bus = Bus(1)
    calls = []
    bus.on_publish(lambda e, p: calls.append(p))
    bus.on_publish(None)
    bus.publish(Topic.A, 1)
    assert calls == []


@pytest.mark.asyncio
async def test_dispatch_in_publish_order_to_sync_and_async_handlers() -> None:
    bus = Bus(10)
    seen = []

    def first(p):
        seen.append(("first", p))

    async def second(p):
        await asyncio.sleep(0)
        seen.append(("second", p))

    bus.subscribe(Topic.A, first)
    bus.subscribe(Topic.A, second)
    bus.subscribe(Topic.B, first)

    bus.publish(Topic.A, 1)
    bus.publish(Topic.B, 2)
    bus.publish(Topic.A, 3)

    stop = asyncio.Event()
    task = asyncio.create_task(bus.run(stop))
    await _until(lambda: bus.stats()["dispatched_total"] == 3)
    stop.set()
    await asyncio.wait_for(task, 1)

    assert seen == [
        ("first", 1),
        ("second", 1),
        ("first", 2),
        ("first", 3),
        ("second", 3),
    ]


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_delivery() -> None:
    bus = Bus(10)
    seen = []
    faults = []

    def flaky(p):
        if p == "boom":
            raise RuntimeError("subscriber boom")
        seen.append(("flaky", p))

    bus.subscribe(Topic.A, flaky)
    bus.subscribe(Topic.A, lambda p: seen.append(("steady", p)))
    bus.on_error(lambda e, p, exc: faults.append((e, p, str(exc))))

    bus.publish(Topic.A, "boom")
    bus.publish(Topic.A, "ok")

    stop = asyncio.Event()
    task = asyncio.create_task(bus.run(stop))
    await _until(lambda: bus.stats()["dispatched_total"] == 2)
    stop.set()
    await asyncio.wait_for(task, 1)

    assert seen == [("steady", "boom"), ("flaky", "ok"), ("steady", "ok")]
    assert faults == [(Topic.A, "boom", "subscriber boom")]
    assert bus.stats()["failed_total"] == 1


@pytest.mark.asyncio
async def test_failing_error_hook_does_not_stop_dispatcher() -> None:
    bus = Bus(10)
    received = asyncio.Queue()

    def handler(p):
        if p == "boom":
            raise RuntimeError("boom")
        received.put_nowait(p)

    def broken_hook(e, p, exc):
        raise RuntimeError("hook boom")

    bus.subscribe(Topic.A, handler)
    bus.on_error(broken_hook)

    task = asyncio.create_task(bus.run())
    bus.publish(Topic.A, "boom")
    bus.publish(Topic.A, "ok")

    assert await asyncio.wait_for(received.get(), 1) == "ok"
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_stop_waits_for_in_flight_handler_and_does_not_drain() -> None:
    bus = Bus(10)
    started = asyncio.Event()
    release = asyncio.Event()
    done = []

    async def slow(p):
        started.set()
        await release.wait()
        done.append(p)

    bus.subscribe(Topic.A, slow)
    bus.publish(Topic.A, 1)
    bus.publish(Topic.A, 2)

    stop = asyncio.Event()
    task = asyncio.create_task(bus.run(stop))
    await asyncio.wait_for(started.wait(), 1)
    stop.set()
    release.set()
    await asyncio.wait_for(task, 1)

    assert done == [1]
    assert bus.stats()["queue_size"] == 1


@pytest.mark.asyncio
async def test_run_returns_when_stopped_while_idle() -> None:
    bus = Bus(1)
    stop = asyncio.Event()
    task = asyncio.create_task(bus.run(stop))
    await asyncio.sleep(0.01)
    stop.set()
    await asyncio.wait_for(task, 1)
    assert task.done()


@pytest.mark.asyncio
async def test_subscribe_while_running() -> None:
    bus = Bus(10)
    got = asyncio.Queue()

    task = asyncio.create_task(bus.run())
    await asyncio.sleep(0)
    bus.subscribe(Topic.B, got.put_nowait)
    bus.publish(Topic.B, "late")

    assert await asyncio.wait_for(got.get(), 1) == "late"
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_message_dequeued_as_stop_fires_is_delivered() -> None:
    bus = Bus(10)
    seen = []
    bus.subscribe(Topic.A, seen.append)

    stop = asyncio.Event()
    task = asyncio.create_task(bus.run(stop))
    # Let the dispatcher park on an empty queue.
    await asyncio.sleep(0.01)

    bus.publish(Topic.A, "last")
    stop.set()
    await asyncio.wait_for(task, 1)

    stats = bus.stats()
    assert seen == ["last"]
    assert stats["dispatched_total"] + stats["queue_size"] == stats["published_total"]

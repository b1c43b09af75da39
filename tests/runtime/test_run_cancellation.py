"""Tests for cancelling run_async through its signal or the hosting task."""

import asyncio

import pytest

from yieldfx import Await, Opt, RunAbortedError, delay, run_async, try_


@pytest.mark.asyncio
async def test_already_set_signal_rejects_without_starting() -> None:
    log: list[str] = []
    signal = asyncio.Event()
    signal.set()

    def program():
        log.append("started")
        yield from ()

    with pytest.raises(RunAbortedError, match="Operation aborted"):
        await run_async(program, signal)
    assert log == []


@pytest.mark.asyncio
async def test_signal_during_await_drains_cleanup_and_cancels_owned_awaitable() -> None:
    log: list[str] = []
    cancelled: list[bool] = []

    async def slow() -> None:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    def program():
        try:
            yield Await(slow())
        finally:
            log.append("cleanup")

    signal = asyncio.Event()
    asyncio.get_running_loop().call_later(0.01, signal.set)

    with pytest.raises(RunAbortedError):
        await run_async(program, signal)

    assert log == ["cleanup"]
    await asyncio.sleep(0.01)
    assert cancelled == [True]


@pytest.mark.asyncio
async def test_abort_leaves_foreign_futures_alone() -> None:
    future: asyncio.Future[int] = asyncio.get_running_loop().create_future()

    def program():
        return (yield Await(future))

    signal = asyncio.Event()
    asyncio.get_running_loop().call_soon(signal.set)

    with pytest.raises(RunAbortedError):
        await run_async(program, signal)

    assert not future.cancelled()
    future.set_result(1)


@pytest.mark.asyncio
async def test_cleanup_may_await_while_aborting() -> None:
    log: list[str] = []

    def body():
        yield from delay(10)

    def cleanup():
        yield Await(asyncio.sleep(0))
        log.append("async cleanup")

    signal = asyncio.Event()
    asyncio.get_running_loop().call_later(0.01, signal.set)

    with pytest.raises(RunAbortedError):
        await run_async(try_(body).finally_(cleanup), signal)
    assert log == ["async cleanup"]


@pytest.mark.asyncio
async def test_signal_set_synchronously_is_seen_at_next_suspension() -> None:
    log: list[str] = []
    signal = asyncio.Event()

    def program():
        try:
            signal.set()
            yield Opt("anything")
            log.append("resumed")
        finally:
            log.append("cleanup")

    with pytest.raises(RunAbortedError):
        await run_async(program, signal)
    assert log == ["cleanup"]


@pytest.mark.asyncio
async def test_hosting_task_cancellation_drains_then_reraises() -> None:
    log: list[str] = []

    def program():
        try:
            yield from delay(10)
        finally:
            log.append("cleanup")

    task = asyncio.ensure_future(run_async(program))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert log == ["cleanup"]

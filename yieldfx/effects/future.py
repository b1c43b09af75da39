"""Future/async effects."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Generator
from dataclasses import dataclass
from typing import Any

from yieldfx.errors import DelayAbortedError
from yieldfx.types import Effect, EffectBase
from yieldfx.utils import create_effect_with_trace

from ._validators import ensure_awaitable, ensure_non_negative_number, ensure_optional_event


@dataclass(frozen=True)
class AwaitEffect(EffectBase):
    """Awaits the given awaitable and yields its resolved value."""

    awaitable: Awaitable[Any]

    def __post_init__(self) -> None:
        ensure_awaitable(self.awaitable, name="awaitable")


def await_(awaitable: Awaitable[Any]) -> AwaitEffect:
    return create_effect_with_trace(AwaitEffect(awaitable=awaitable))


def Await(awaitable: Awaitable[Any]) -> Effect:
    return create_effect_with_trace(AwaitEffect(awaitable=awaitable), skip_frames=3)


def _fire(waiter: asyncio.Future[None]) -> None:
    if not waiter.done():
        waiter.set_result(None)


def _abort(waiter: asyncio.Future[None], watcher: asyncio.Future[Any]) -> None:
    if watcher.cancelled() or waiter.done():
        return
    waiter.set_exception(DelayAbortedError())


async def _sleep(seconds: float, signal: asyncio.Event | None) -> None:
    loop = asyncio.get_running_loop()
    waiter: asyncio.Future[None] = loop.create_future()
    handle = loop.call_later(seconds, _fire, waiter)
    watcher: asyncio.Future[Any] | None = None
    if signal is not None:
        watcher = asyncio.ensure_future(signal.wait())
        watcher.add_done_callback(lambda done: _abort(waiter, done))
    try:
        await waiter
    finally:
        handle.cancel()
        if watcher is not None and not watcher.done():
            watcher.cancel()
        if not waiter.done():
            waiter.cancel()


def delay(
    seconds: float, *, signal: asyncio.Event | None = None
) -> Generator[EffectBase, Any, None]:
    """Suspend for ``seconds`` without blocking the event loop.

    When ``signal`` is set before the timer fires the delay fails with
    :class:`DelayAbortedError`. The timer and the signal watcher are released
    on every exit path.
    """

    ensure_non_negative_number(seconds, name="seconds")
    ensure_optional_event(signal, name="signal")
    if signal is not None and signal.is_set():
        raise DelayAbortedError()
    yield Await(_sleep(seconds, signal))


__all__ = [
    "Await",
    "AwaitEffect",
    "await_",
    "delay",
]

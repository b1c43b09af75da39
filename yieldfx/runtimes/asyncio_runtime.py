"""AsyncioRuntime - Runtime for real async I/O execution."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any

from yieldfx._vendor import Err, Result
from yieldfx.coroutine import Coroutine, Done, ProgramLike, Step, drain
from yieldfx.effects._validators import ensure_optional_event
from yieldfx.effects.result import wrap
from yieldfx.errors import RunAbortedError
from yieldfx.runtimes.base import (
    CleanupErrorCallback,
    FinalBrackets,
    RuntimeMixin,
    step_from_future,
)

logger = logging.getLogger(__name__)


class _SignalFired(Exception):
    pass


class AsyncioRuntime(RuntimeMixin):
    """Root driver that answers Await effects on the running event loop.

    ``signal`` is an :class:`asyncio.Event`. Once it is set the run stops at
    the next suspension point, the pending awaitable is cancelled if the
    runtime created it, the program's cleanup is drained, and
    :class:`RunAbortedError` is raised.
    """

    driver_name = "run_async"

    def __init__(self, on_cleanup_errors: CleanupErrorCallback | None = None):
        self._init_reporting(on_cleanup_errors)

    async def _settle(
        self, awaitable: Awaitable[Any], signal: asyncio.Event | None
    ) -> asyncio.Future[Any]:
        future = asyncio.ensure_future(awaitable)
        owned = future is not awaitable
        watcher: asyncio.Future[Any] | None = None
        waiters: set[asyncio.Future[Any]] = {future}
        if signal is not None:
            watcher = asyncio.ensure_future(signal.wait())
            waiters.add(watcher)
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            if owned:
                future.cancel()
            raise
        finally:
            if watcher is not None and not watcher.done():
                watcher.cancel()

        if signal is not None and signal.is_set():
            if not future.done():
                if owned:
                    future.cancel()
            elif not future.cancelled():
                # mark the outcome as retrieved; the abort wins
                future.exception()
            raise _SignalFired()
        return future

    async def _drive(
        self,
        coroutine: Coroutine,
        brackets: FinalBrackets,
        signal: asyncio.Event | None,
    ) -> Any:
        step: Step = coroutine.start
        while True:
            outcome = step()
            if isinstance(outcome, Done):
                return outcome.value
            if signal is not None and signal.is_set():
                raise _SignalFired()
            effect = outcome.effect
            answered = self._answer(brackets, coroutine, effect)
            if answered is None:
                future = await self._settle(effect.awaitable, signal)
                answered = step_from_future(coroutine, future)
            step = answered

    async def _drain(self, coroutine: Coroutine, brackets: FinalBrackets) -> None:
        await self._drive(Coroutine(drain(coroutine)), brackets, None)

    async def run(self, program: ProgramLike, signal: asyncio.Event | None = None) -> Any:
        """Run program with real async I/O."""

        ensure_optional_event(signal, name="signal")
        if signal is not None and signal.is_set():
            raise RunAbortedError()

        coroutine = Coroutine(program)
        brackets = FinalBrackets()
        try:
            return await self._drive(coroutine, brackets, signal)
        except _SignalFired:
            logger.debug("Run aborted by signal; draining cleanup")
            await self._drain(coroutine, brackets)
            raise RunAbortedError() from None
        except asyncio.CancelledError:
            if not coroutine.finished:
                logger.debug("Hosting task cancelled; draining cleanup")
                await self._drain(coroutine, brackets)
            raise
        finally:
            self._flush_cleanup_errors(brackets)

    async def run_safe(
        self, program: ProgramLike, signal: asyncio.Event | None = None
    ) -> Result[Any]:
        """Run program, return Result instead of raising."""
        try:
            return await self.run(wrap(program), signal)
        except Exception as e:
            return Err(e)


async def run_async(
    program: ProgramLike,
    signal: asyncio.Event | None = None,
    *,
    on_cleanup_errors: CleanupErrorCallback | None = None,
) -> Any:
    return await AsyncioRuntime(on_cleanup_errors).run(program, signal)


__all__ = ["AsyncioRuntime", "run_async"]

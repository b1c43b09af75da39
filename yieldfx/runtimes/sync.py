"""SyncRuntime - Runtime for pure synchronous execution."""

from __future__ import annotations

from functools import partial
from typing import Any

from yieldfx._vendor import Err, Result
from yieldfx.coroutine import Coroutine, Done, ProgramLike, Step
from yieldfx.effects.result import wrap
from yieldfx.errors import AsyncEffectInSyncRuntimeError
from yieldfx.runtimes.base import (
    CleanupErrorCallback,
    FinalBrackets,
    RuntimeMixin,
    discard_awaitable,
)


class SyncRuntime(RuntimeMixin):
    driver_name = "run_sync"

    def __init__(self, on_cleanup_errors: CleanupErrorCallback | None = None):
        self._init_reporting(on_cleanup_errors)

    def run(self, program: ProgramLike) -> Any:
        """Run ``program`` to completion; unhandled effects surface as exceptions."""

        coroutine = Coroutine(program)
        brackets = FinalBrackets()
        step: Step = coroutine.start
        try:
            while True:
                outcome = step()
                if isinstance(outcome, Done):
                    return outcome.value
                effect = outcome.effect
                answered = self._answer(brackets, coroutine, effect)
                if answered is None:
                    discard_awaitable(effect.awaitable)
                    answered = partial(
                        coroutine.throw, AsyncEffectInSyncRuntimeError(effect)
                    )
                step = answered
        finally:
            self._flush_cleanup_errors(brackets)

    def run_safe(self, program: ProgramLike) -> Result[Any]:
        """Run program, return Result instead of raising."""
        try:
            return self.run(wrap(program))
        except Exception as e:
            return Err(e)


def run_sync(
    program: ProgramLike, *, on_cleanup_errors: CleanupErrorCallback | None = None
) -> Any:
    return SyncRuntime(on_cleanup_errors).run(program)


__all__ = ["SyncRuntime", "run_sync"]

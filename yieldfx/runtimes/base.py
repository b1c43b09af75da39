"""Shared root-driver machinery."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import partial
from typing import Any, ClassVar

from yieldfx.coroutine import Coroutine, Step
from yieldfx.effects.future import AwaitEffect
from yieldfx.effects.reader import CtxEffect, OptEffect
from yieldfx.effects.result import ErrEffect
from yieldfx.errors import (
    InterpreterInvariantError,
    MissingContextError,
    UnexpectedEffectError,
    UnhandledEffectError,
)
from yieldfx.types import FinalEffect
from yieldfx.utils import DEBUG_EFFECTS

logger = logging.getLogger(__name__)


CleanupErrorCallback = Callable[[Sequence[BaseException]], None]


def log_cleanup_errors(errors: Sequence[BaseException]) -> None:
    """Default ``on_cleanup_errors`` callback: one warning per failed cleanup."""

    for error in errors:
        logger.warning(
            "Error during cleanup: %s: %s",
            type(error).__name__,
            error,
            exc_info=(type(error), error, error.__traceback__),
        )


@dataclass
class FinalBrackets:
    """Bracket depth and the cleanup errors collected while it is non-zero."""

    depth: int = 0
    pending: list[BaseException] = field(default_factory=list)


def step_from_future(coroutine: Coroutine, future: asyncio.Future[Any]) -> Step:
    """Build the step that delivers a settled future's outcome to ``coroutine``."""

    if future.cancelled():
        return partial(coroutine.throw, asyncio.CancelledError())
    error = future.exception()
    if error is not None:
        return partial(coroutine.throw, error)
    return partial(coroutine.resume, future.result())


def discard_awaitable(awaitable: object) -> None:
    # a coroutine object that is never awaited would warn on garbage collection
    if inspect.iscoroutine(awaitable):
        awaitable.close()


class RuntimeMixin:
    """Answers every effect a root driver can answer without an event loop.

    Does NOT define run() - each runtime defines its own signature.
    """

    driver_name: ClassVar[str] = "runtime"

    _on_cleanup_errors: CleanupErrorCallback

    def _init_reporting(self, on_cleanup_errors: CleanupErrorCallback | None = None) -> None:
        self._on_cleanup_errors = on_cleanup_errors or log_cleanup_errors

    def _answer(
        self, brackets: FinalBrackets, coroutine: Coroutine, effect: object
    ) -> Step | None:
        """Return the step that answers ``effect``, or ``None`` for Await."""

        if DEBUG_EFFECTS:
            logger.debug("[%s] effect %r", self.driver_name, effect)

        match effect:
            case OptEffect():
                return partial(coroutine.resume, None)
            case FinalEffect(phase="start"):
                brackets.depth += 1
                return partial(coroutine.resume, None)
            case FinalEffect(phase="end", errors=errors):
                self._close_bracket(brackets, errors)
                return partial(coroutine.resume, None)
            case ErrEffect():
                return partial(coroutine.throw, UnhandledEffectError(effect))
            case CtxEffect(name=name):
                return partial(coroutine.throw, MissingContextError(name))
            case AwaitEffect():
                return None
            case _:
                return partial(
                    coroutine.throw, UnexpectedEffectError(effect, self.driver_name)
                )

    def _close_bracket(
        self, brackets: FinalBrackets, errors: Sequence[BaseException]
    ) -> None:
        if brackets.depth == 0:
            raise InterpreterInvariantError(
                f"[{self.driver_name}] Final end marker without a matching start"
            )
        brackets.depth -= 1
        brackets.pending.extend(errors)
        if brackets.depth == 0:
            self._flush_cleanup_errors(brackets)

    def _flush_cleanup_errors(self, brackets: FinalBrackets) -> None:
        if not brackets.pending:
            return
        errors = tuple(brackets.pending)
        brackets.pending.clear()
        self._on_cleanup_errors(errors)


__all__ = [
    "CleanupErrorCallback",
    "FinalBrackets",
    "RuntimeMixin",
    "discard_awaitable",
    "log_cleanup_errors",
    "step_from_future",
]

"""
try / handle / finally composition for effect generators.

``try_(program)`` wraps a program into a phase. ``.handle(handlers)`` answers
named effects locally and re-yields everything else; ``.finally_(cleanup)``
guarantees that ``cleanup`` runs on every exit path. Phases are iterable, so
they compose with ``yield from`` like any other generator program::

    value = yield from try_(load_user).handle({"db": conn, "NotFound": lambda _: None})
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Mapping
from functools import partial
from typing import TYPE_CHECKING, Any

from yieldfx._vendor import FrozenDict
from yieldfx.coroutine import Coroutine, Done, ProgramLike, Step, drain, to_generator
from yieldfx.effects._validators import ensure_handler_mapping, ensure_program_like_or_thunk
from yieldfx.effects.reader import CtxEffect, OptEffect
from yieldfx.effects.result import ErrEffect
from yieldfx.errors import Abandoned
from yieldfx.types import EffectBase

if TYPE_CHECKING:
    import asyncio

logger = logging.getLogger(__name__)

_MISSING = object()


class EffPhase:
    """Common surface of every phase: chaining plus the root-driver shortcuts."""

    __slots__ = ()

    def __iter__(self) -> Generator[EffectBase, Any, Any]:
        return self._run()

    def _run(self) -> Generator[EffectBase, Any, Any]:
        raise NotImplementedError

    def handle(self, handlers: Mapping[str, Any]) -> HandledPhase:
        return HandledPhase(self, handlers)

    def finally_(self, cleanup: ProgramLike) -> FinalPhase:
        return FinalPhase(self, cleanup)

    def run_sync(self) -> Any:
        from yieldfx.runtimes import run_sync

        return run_sync(self)

    async def run_async(self, signal: asyncio.Event | None = None) -> Any:
        from yieldfx.runtimes import run_async

        return await run_async(self, signal=signal)


class TryPhase(EffPhase):
    __slots__ = ("program",)

    def __init__(self, program: ProgramLike) -> None:
        ensure_program_like_or_thunk(program, name="program")
        self.program = program

    def _run(self) -> Generator[EffectBase, Any, Any]:
        return (yield from to_generator(self.program))

    def __repr__(self) -> str:
        return f"try_({self.program!r})"


class HandledPhase(EffPhase):
    """Answers Ctx/Opt/Err effects whose names appear in ``handlers``.

    A Ctx entry answers with its value whatever it is; an Opt entry only when
    it is not ``None``. An Err entry must be callable: the child is abandoned,
    its cleanup drained (with these same handlers answering cleanup effects),
    and the phase returns ``resolver(error)``. A handled Err yielded during
    that cleanup ends the cleanup without calling its resolver.
    """

    __slots__ = ("inner", "handlers")

    def __init__(self, inner: ProgramLike, handlers: Mapping[str, Any]) -> None:
        ensure_program_like_or_thunk(inner, name="inner")
        ensure_handler_mapping(handlers, name="handlers")
        self.inner = inner
        self.handlers: FrozenDict = FrozenDict(handlers)

    def _lookup(self, effect: object) -> Any:
        match effect:
            case ErrEffect(name=name) if callable(self.handlers.get(name)):
                return self.handlers[name]
            case CtxEffect(name=name) if name in self.handlers:
                return self.handlers[name]
            case OptEffect(name=name) if self.handlers.get(name) is not None:
                return self.handlers[name]
        return _MISSING

    def _answer_cleanup(self, child: Coroutine, effect: object) -> Step | None:
        entry = self._lookup(effect)
        if entry is _MISSING:
            return None
        if isinstance(effect, ErrEffect):
            # the phase result is already decided; a handled failure only ends the cleanup
            return partial(child.throw, Abandoned())
        return partial(child.resume, entry)

    def _run(self) -> Generator[EffectBase, Any, Any]:
        child = Coroutine(self.inner)
        abandoned: Abandoned | None = None
        step: Step = child.start

        while True:
            outcome = step()
            if isinstance(outcome, Done):
                if abandoned is not None:
                    # the child swallowed the abandonment; it must not look like a normal return
                    raise abandoned
                return outcome.value

            effect = outcome.effect
            entry = self._lookup(effect)
            if entry is not _MISSING:
                if not isinstance(effect, ErrEffect):
                    step = partial(child.resume, entry)
                    continue
                if abandoned is not None:
                    step = partial(child.throw, abandoned)
                    continue
                logger.debug("Handling error effect %r", effect.name)
                yield from drain(child, self._answer_cleanup)
                return entry(effect.error)

            try:
                answer = yield effect
            except GeneratorExit:
                child.close()
                raise
            except BaseException as exc:
                if isinstance(exc, Abandoned):
                    abandoned = exc
                step = partial(child.throw, exc)
            else:
                step = partial(child.resume, answer)

    def __repr__(self) -> str:
        return f"{self.inner!r}.handle({sorted(self.handlers)!r})"


class FinalPhase(EffPhase):
    """Runs ``cleanup`` after the child finishes, fails, or is abandoned."""

    __slots__ = ("inner", "cleanup")

    def __init__(self, inner: ProgramLike, cleanup: ProgramLike) -> None:
        ensure_program_like_or_thunk(inner, name="inner")
        ensure_program_like_or_thunk(cleanup, name="cleanup")
        self.inner = inner
        self.cleanup = cleanup

    def _run(self) -> Generator[EffectBase, Any, Any]:
        try:
            value = yield from to_generator(self.inner)
        except GeneratorExit:
            self._cleanup_on_close()
            raise
        except BaseException:
            yield from to_generator(self.cleanup)
            raise
        yield from to_generator(self.cleanup)
        return value

    def _cleanup_on_close(self) -> None:
        """Run ``cleanup`` for a phase closed by ``close()`` or garbage collection.

        Nothing can answer effects at that point, so a cleanup that yields is
        closed and reported the way Python reports a generator that yields
        from a ``finally`` block during ``close()``.
        """

        cleanup = to_generator(self.cleanup)
        try:
            effect = next(cleanup)
        except StopIteration:
            return
        cleanup.close()
        raise RuntimeError(f"cleanup yielded {effect!r} while its phase was being closed")

    def __repr__(self) -> str:
        return f"{self.inner!r}.finally_({self.cleanup!r})"


def try_(program: ProgramLike) -> TryPhase:
    return TryPhase(program)


__all__ = [
    "EffPhase",
    "FinalPhase",
    "HandledPhase",
    "TryPhase",
    "try_",
]

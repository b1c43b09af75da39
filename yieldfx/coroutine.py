"""
Explicit stepping interface over effect generators.

Every layer of the runtime (phases, root drivers, the task scheduler) advances
generators through :class:`Coroutine` instead of relying on ``yield from``
directly, so each layer can inspect an effect before deciding whether to
answer it or pass it outward.
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterable
from dataclasses import dataclass
from functools import partial
from typing import Any, Generic, TypeAlias, TypeVar

from yieldfx.errors import Abandoned, InterpreterInvariantError
from yieldfx.types import EffectBase, FinalEffect

T = TypeVar("T")


@dataclass(frozen=True)
class Suspended:
    """The coroutine yielded ``effect`` and waits for an answer."""

    effect: Any


@dataclass(frozen=True)
class Done(Generic[T]):
    """The coroutine returned ``value``."""

    value: T


Outcome: TypeAlias = "Suspended | Done[Any]"
Step: TypeAlias = "Callable[[], Suspended | Done[Any]]"
LocalAnswer: TypeAlias = "Callable[[Coroutine, Any], Step | None]"

ProgramLike: TypeAlias = Any


def to_generator(program: ProgramLike) -> Generator[Any, Any, Any]:
    """Normalize a generator, phase, or zero-argument factory into a generator."""

    if isinstance(program, Generator):
        return program
    if isinstance(program, Iterable):
        iterator = iter(program)
        if isinstance(iterator, Generator):
            return iterator
        raise TypeError(f"program must produce a generator, got {type(iterator).__name__}")
    if callable(program):
        produced = program()
        if isinstance(produced, Generator):
            return produced
        if isinstance(produced, Iterable):
            iterator = iter(produced)
            if isinstance(iterator, Generator):
                return iterator
        raise TypeError(
            f"program factory must return a generator, got {type(produced).__name__}"
        )
    raise TypeError(
        f"program must be a generator, phase or zero-argument callable, "
        f"got {type(program).__name__}"
    )


class Coroutine:
    """A suspendable computation advanced by explicit ``resume``/``throw`` calls.

    Each call runs the generator up to its next yield and reports either
    :class:`Suspended` with the yielded effect or :class:`Done` with the return
    value. Exceptions escaping the generator propagate to the caller.
    """

    __slots__ = ("_gen", "finished")

    def __init__(self, program: ProgramLike) -> None:
        self._gen = to_generator(program)
        self.finished = False

    def start(self) -> Suspended | Done[Any]:
        return self.resume(None)

    def resume(self, value: Any = None) -> Suspended | Done[Any]:
        return self._advance(self._gen.send, value)

    def throw(self, error: BaseException) -> Suspended | Done[Any]:
        return self._advance(self._gen.throw, error)

    def close(self) -> None:
        self.finished = True
        self._gen.close()

    def forward(self, effect: Any) -> Generator[Any, Any, Suspended | Done[Any]]:
        """Yield ``effect`` outward and feed the answer (or exception) back in."""

        try:
            answer = yield effect
        except GeneratorExit:
            self.close()
            raise
        except BaseException as exc:
            return self.throw(exc)
        return self.resume(answer)

    def _advance(
        self, method: Callable[[Any], Any], arg: Any
    ) -> Suspended | Done[Any]:
        if self.finished:
            raise InterpreterInvariantError("Cannot advance a finished coroutine")
        try:
            effect = method(arg)
        except StopIteration as stop:
            self.finished = True
            return Done(stop.value)
        except BaseException:
            self.finished = True
            raise
        return Suspended(effect)

    def __repr__(self) -> str:
        state = "finished" if self.finished else "suspended"
        return f"Coroutine({getattr(self._gen, '__qualname__', self._gen)!r}, {state})"


def drain(
    coroutine: Coroutine,
    local: LocalAnswer | None = None,
) -> Generator[EffectBase, Any, tuple[BaseException, ...]]:
    """Abandon ``coroutine`` and drive the cleanup it exposes to completion.

    ``Abandoned`` is thrown in at the current suspension point so pending
    ``finally`` blocks run. Effects yielded by that cleanup are offered to
    ``local`` first and forwarded otherwise, bracketed by a Final start/end
    pair. Exceptions raised by the cleanup are collected on the end marker and
    returned; they never propagate.
    """

    if coroutine.finished:
        return ()

    errors: list[BaseException] = []
    interrupted: Abandoned | None = None
    opened = False
    step: Step = partial(coroutine.throw, Abandoned())

    while True:
        try:
            outcome = step()
        except Abandoned:
            break
        except Exception as exc:
            errors.append(exc)
            break
        if isinstance(outcome, Done):
            break

        if not opened:
            opened = True
            yield FinalEffect("start")

        effect = outcome.effect
        if local is not None:
            try:
                answered = local(coroutine, effect)
            except Exception as exc:
                errors.append(exc)
                step = partial(coroutine.throw, Abandoned())
                continue
            if answered is not None:
                step = answered
                continue

        try:
            answer = yield effect
        except GeneratorExit:
            coroutine.close()
            raise
        except BaseException as exc:
            if isinstance(exc, Abandoned):
                interrupted = exc
            step = partial(coroutine.throw, exc)
        else:
            step = partial(coroutine.resume, answer)

    if opened or errors:
        if not opened:
            yield FinalEffect("start")
        yield FinalEffect("end", errors=tuple(errors))
    if interrupted is not None:
        raise interrupted
    return tuple(errors)


__all__ = [
    "Coroutine",
    "Done",
    "LocalAnswer",
    "Outcome",
    "ProgramLike",
    "Step",
    "Suspended",
    "drain",
    "to_generator",
]

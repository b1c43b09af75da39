"""Error effects and conversion between effect failures and ``Result`` values."""

from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import dataclass
from typing import Any, TypeVar

from yieldfx._vendor import Err, Ok, Result
from yieldfx.coroutine import Coroutine, ProgramLike, Suspended, drain, to_generator
from yieldfx.errors import EffectFailure
from yieldfx.types import Effect, EffectBase
from yieldfx.utils import create_effect_with_trace

from ._validators import ensure_program_like_or_thunk, ensure_str

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ErrEffect(EffectBase):
    """Signals a named failure. Handlers receive ``error``; the yield site is never resumed."""

    name: str
    error: Any = None

    def __post_init__(self) -> None:
        ensure_str(self.name, name="name")


def fail(name: str, error: Any = None) -> ErrEffect:
    return create_effect_with_trace(ErrEffect(name=name, error=error))


def Fail(name: str, error: Any = None) -> Effect:
    return create_effect_with_trace(ErrEffect(name=name, error=error), skip_frames=3)


def wrap(program: ProgramLike) -> Generator[EffectBase, Any, Result[Any]]:
    """Run ``program`` and capture its first Fail effect as ``Err(EffectFailure)``.

    The failing program is drained before the ``Err`` is returned, so its
    cleanup effects still reach the enclosing handlers.
    """

    ensure_program_like_or_thunk(program, name="program")
    child = Coroutine(program)
    outcome = child.start()
    while isinstance(outcome, Suspended):
        effect = outcome.effect
        if isinstance(effect, ErrEffect):
            logger.debug("wrap captured error effect %r", effect.name)
            yield from drain(child)
            return Err(EffectFailure(effect.name, effect.error))
        outcome = yield from child.forward(effect)
    return Ok(outcome.value)


def unwrap(program: ProgramLike) -> Generator[EffectBase, Any, Any]:
    """Run ``program`` producing a ``Result`` and turn an ``Err`` back into a failure.

    ``EffectFailure`` payloads are re-yielded as Fail effects; any other error
    is raised.
    """

    ensure_program_like_or_thunk(program, name="program")
    result = yield from to_generator(program)
    if not isinstance(result, Result):
        raise TypeError(f"unwrap expects a Result, got {type(result).__name__}")
    if result.is_ok():
        return result.unwrap()
    error = result.unwrap_err()
    if isinstance(error, EffectFailure):
        yield Fail(error.name, error.error)
    raise error


__all__ = [
    "ErrEffect",
    "Fail",
    "fail",
    "unwrap",
    "wrap",
]

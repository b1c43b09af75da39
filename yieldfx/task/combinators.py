"""High-level combinators over :func:`concurrent`."""

from __future__ import annotations

import math
from collections.abc import Generator, Mapping, Sequence
from typing import Any

from yieldfx.coroutine import ProgramLike
from yieldfx.effects._validators import ensure_callable, ensure_max_concurrency
from yieldfx.errors import NoRaceResultError
from yieldfx.types import EffectBase

from .scheduler import Reducer, Scheduler, TaskSource
from .stream import TASK_END, TaskErr, TaskOk, TaskResultStream


def concurrent(
    source: TaskSource,
    reducer: Reducer,
    max_concurrency: float = math.inf,
) -> Generator[EffectBase, Any, Any]:
    """Run the tasks from ``source`` with at most ``max_concurrency`` active at once.

    ``reducer`` receives a :class:`TaskResultStream` and returns a generator;
    its return value becomes the result of the whole invocation. Tasks still
    running when the reducer finishes are abandoned and their cleanup drained
    before this generator returns.

    Invalid arguments raise immediately rather than on first iteration.
    """

    ensure_max_concurrency(max_concurrency, name="max_concurrency")
    ensure_callable(reducer, name="reducer")
    return Scheduler(source, reducer, max_concurrency).run()


def series(source: TaskSource, reducer: Reducer) -> Generator[EffectBase, Any, Any]:
    return concurrent(source, reducer, max_concurrency=1)


def parallel(source: TaskSource, reducer: Reducer) -> Generator[EffectBase, Any, Any]:
    return concurrent(source, reducer)


def _collect_values(stream: TaskResultStream) -> Generator[EffectBase, Any, list[Any]]:
    values: dict[int, Any] = {}
    while True:
        item = yield from stream.next()
        if item is TASK_END:
            return [values[index] for index in sorted(values)]
        values[item.index] = item.value


def _collect_results(
    stream: TaskResultStream,
) -> Generator[EffectBase, Any, list[TaskOk[Any] | TaskErr]]:
    results: list[TaskOk[Any] | TaskErr] = []
    while True:
        item = yield from stream.result()
        if item is TASK_END:
            return sorted(results, key=lambda result: result.index)
        results.append(item)


def _first_value(stream: TaskResultStream) -> Generator[EffectBase, Any, Any]:
    item = yield from stream.next()
    if item is TASK_END:
        raise NoRaceResultError()
    return item.value


def _first_result(stream: TaskResultStream) -> Generator[EffectBase, Any, TaskOk[Any] | TaskErr]:
    item = yield from stream.result()
    if item is TASK_END:
        raise NoRaceResultError()
    return item


def all_(
    source: TaskSource, max_concurrency: float = math.inf
) -> Generator[EffectBase, Any, list[Any]]:
    """Values of every task ordered by launch index; the first failure wins."""

    return concurrent(source, _collect_values, max_concurrency)


def all_settled(
    source: TaskSource, max_concurrency: float = math.inf
) -> Generator[EffectBase, Any, list[TaskOk[Any] | TaskErr]]:
    return concurrent(source, _collect_results, max_concurrency)


def race(
    source: TaskSource, max_concurrency: float = math.inf
) -> Generator[EffectBase, Any, Any]:
    """Value of the first task to settle; raises if that task failed.

    The losers are abandoned and their cleanup has finished by the time this
    returns.
    """

    return concurrent(source, _first_value, max_concurrency)


def race_result(
    source: TaskSource, max_concurrency: float = math.inf
) -> Generator[EffectBase, Any, TaskOk[Any] | TaskErr]:
    return concurrent(source, _first_result, max_concurrency)


def tuple_(
    programs: Sequence[ProgramLike], max_concurrency: float = math.inf
) -> Generator[EffectBase, Any, tuple[Any, ...]]:
    values = yield from all_(list(programs), max_concurrency)
    return tuple(values)


def _is_program(value: object) -> bool:
    from yieldfx.interpreter import EffPhase

    return isinstance(value, (Generator, EffPhase)) or callable(value)


def object_(
    programs: Mapping[str, Any], max_concurrency: float = math.inf
) -> Generator[EffectBase, Any, dict[str, Any]]:
    """Gather a mapping of programs into a dict with the same keys.

    Zero-argument callables are invoked to build their program. Values that
    are not generators, phases or callables are copied through unchanged.
    """

    keys = [key for key, value in programs.items() if _is_program(value)]
    gathered = yield from all_([programs[key] for key in keys], max_concurrency)
    resolved = dict(zip(keys, gathered))
    return {key: resolved[key] if key in resolved else value for key, value in programs.items()}


__all__ = [
    "all_",
    "all_settled",
    "concurrent",
    "object_",
    "parallel",
    "race",
    "race_result",
    "series",
    "tuple_",
]

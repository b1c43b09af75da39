"""Results produced by scheduled tasks and the stream a reducer pulls them from."""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass, field
from typing import Any, Final, Generic, TypeAlias, TypeVar

from yieldfx.types import EffectBase

T = TypeVar("T")


@dataclass(frozen=True)
class TaskOk(Generic[T]):
    index: int
    value: T


@dataclass(frozen=True)
class TaskErr:
    index: int
    error: BaseException


TaskResult: TypeAlias = "TaskOk[Any] | TaskErr"


class _TaskEnd:
    __slots__ = ()

    def __repr__(self) -> str:
        return "TASK_END"

    def __reduce__(self) -> str:
        return "TASK_END"


TASK_END: Final = _TaskEnd()


@dataclass(frozen=True)
class TaskWait(EffectBase):
    """Asks the scheduler owning ``stream`` for the next task result.

    With ``raises`` set, a failed result is thrown into the reducer instead of
    being returned as :class:`TaskErr`.
    """

    stream: TaskResultStream = field(compare=False)
    raises: bool = True


class TaskResultStream:
    """Pull interface handed to a reducer by :func:`yieldfx.task.concurrent`.

    Results arrive in settlement order. ``TASK_END`` is returned once every
    task has been consumed.
    """

    __slots__ = ()

    def next(self) -> Generator[EffectBase, Any, TaskOk[Any] | _TaskEnd]:
        return (yield TaskWait(self, raises=True))

    def result(self) -> Generator[EffectBase, Any, TaskOk[Any] | TaskErr | _TaskEnd]:
        return (yield TaskWait(self, raises=False))

    def __repr__(self) -> str:
        return f"<TaskResultStream at {id(self):#x}>"


__all__ = [
    "TASK_END",
    "TaskErr",
    "TaskOk",
    "TaskResult",
    "TaskResultStream",
    "TaskWait",
]

"""Concurrency scheduler and the combinators built on it."""

from .combinators import (
    all_,
    all_settled,
    concurrent,
    object_,
    parallel,
    race,
    race_result,
    series,
    tuple_,
)
from .scheduler import Scheduler, TaskState, attach_task_index, task_index_of
from .stream import TASK_END, TaskErr, TaskOk, TaskResult, TaskResultStream, TaskWait

__all__ = [
    "TASK_END",
    "Scheduler",
    "TaskErr",
    "TaskOk",
    "TaskResult",
    "TaskResultStream",
    "TaskState",
    "TaskWait",
    "all_",
    "all_settled",
    "attach_task_index",
    "concurrent",
    "object_",
    "parallel",
    "race",
    "race_result",
    "series",
    "task_index_of",
    "tuple_",
]

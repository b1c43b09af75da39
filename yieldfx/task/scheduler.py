"""
Cooperative scheduler driving a bounded set of task generators.

Tasks run interleaved on one flow of control. Every effect a task yields is
forwarded outward except ``Await``, which the scheduler subscribes to with
``add_done_callback`` so other tasks keep running while it is pending. When no
task can make progress the scheduler itself yields a single ``Await`` on a
wake-up future that any settling awaitable resolves.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable, Generator, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, TypeAlias

from yieldfx.coroutine import Coroutine, Done, ProgramLike, Step, drain
from yieldfx.effects.future import Await, AwaitEffect
from yieldfx.errors import Abandoned, TaskCancelledError
from yieldfx.runtimes.base import step_from_future
from yieldfx.types import EffectBase

from .stream import TASK_END, TaskErr, TaskOk, TaskResultStream, TaskWait, _TaskEnd

logger = logging.getLogger(__name__)

TASK_INDEX_ATTR = "__yieldfx_task_index__"

TaskSource: TypeAlias = (
    "Sequence[ProgramLike] | Callable[[int], ProgramLike | None] | Iterable[ProgramLike]"
)
Reducer: TypeAlias = "Callable[[TaskResultStream], Generator[EffectBase, Any, Any]]"


class TaskState(Enum):
    PENDING = "pending"
    ACTIVE = "active"
    AWAITING = "awaiting"
    COMPLETED = "completed"


def attach_task_index(error: BaseException, index: int) -> BaseException:
    """Record the launch index of the task that raised ``error``.

    The first attribution wins, so an error bubbling through nested schedulers
    keeps the index from the innermost one.
    """

    if hasattr(error, "__dict__") and getattr(error, TASK_INDEX_ATTR, None) is None:
        setattr(error, TASK_INDEX_ATTR, index)
    return error


def task_index_of(error: BaseException) -> int | None:
    return getattr(error, TASK_INDEX_ATTR, None)


def _producer(source: TaskSource) -> Callable[[int], ProgramLike | None]:
    if callable(source):
        return source
    if isinstance(source, Sequence) and not isinstance(source, (str, bytes)):
        items = source
        return lambda index: items[index] if index < len(items) else None
    if isinstance(source, Iterable) and not isinstance(source, (str, bytes)):
        iterator = iter(source)
        return lambda _index: next(iterator, None)
    raise TypeError(
        f"task source must be a sequence, iterable or producer callable, "
        f"got {type(source).__name__}"
    )


def _event_loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


@dataclass(eq=False)
class Task:
    index: int
    coroutine: Coroutine
    state: TaskState = TaskState.PENDING
    future: asyncio.Future[Any] | None = None
    owned: bool = False
    pending_step: Step | None = None


class Scheduler:
    """One invocation of :func:`yieldfx.task.concurrent`.

    The result queue and the active-task table are private to this object and
    only touched from the event-loop thread, so no locking is needed.
    """

    def __init__(
        self,
        source: TaskSource,
        reducer: Reducer,
        max_concurrency: float,
    ) -> None:
        self._produce = _producer(source)
        self._reducer = reducer
        self._max_concurrency = max_concurrency
        self._stream = TaskResultStream()
        self._next_index = 0
        self._exhausted = False
        self._active: dict[int, Task] = {}
        self._ready: deque[Task] = deque()
        self._queue: deque[TaskOk[Any] | TaskErr] = deque()
        self._wakeup: asyncio.Future[None] | None = None
        self._reducer_co: Coroutine | None = None

    def run(self) -> Generator[EffectBase, Any, Any]:
        self._reducer_co = Coroutine(self._reducer(self._stream))
        try:
            value = yield from self._loop(self._reducer_co)
        except GeneratorExit:
            self._close_all()
            raise
        except BaseException:
            yield from self._shutdown()
            raise
        yield from self._shutdown()
        return value

    # ------------------------------------------------------------------
    # main loop
    # ------------------------------------------------------------------

    def _loop(self, reducer: Coroutine) -> Generator[EffectBase, Any, Any]:
        step: Step = reducer.start
        while True:
            outcome = step()
            if isinstance(outcome, Done):
                return outcome.value

            effect = outcome.effect
            if not (isinstance(effect, TaskWait) and effect.stream is self._stream):
                step = yield from self._forward(reducer, effect)
                continue

            result = yield from self._next_result()
            if effect.raises and isinstance(result, TaskErr):
                step = partial(reducer.throw, result.error)
            else:
                step = partial(reducer.resume, result)

    def _next_result(self) -> Generator[EffectBase, Any, TaskOk[Any] | TaskErr | _TaskEnd]:
        while True:
            if self._queue:
                return self._queue.popleft()
            if self._ready:
                task = self._ready.popleft()
                step, task.pending_step = task.pending_step, None
                yield from self._pump(task, step)
                continue
            if len(self._active) < self._max_concurrency and not self._exhausted:
                yield from self._launch()
                continue
            if not self._active:
                return TASK_END
            yield from self._wait()

    def _forward(
        self, target: Coroutine, effect: object
    ) -> Generator[EffectBase, Any, Step]:
        try:
            answer = yield effect
        except (Abandoned, GeneratorExit):
            raise
        except BaseException as exc:
            return partial(target.throw, exc)
        return partial(target.resume, answer)

    def _wait(self) -> Generator[EffectBase, Any, None]:
        wakeup: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._wakeup = wakeup
        try:
            yield Await(wakeup)
        finally:
            self._wakeup = None

    # ------------------------------------------------------------------
    # tasks
    # ------------------------------------------------------------------

    def _launch(self) -> Generator[EffectBase, Any, None]:
        program = self._produce(self._next_index)
        if program is None:
            self._exhausted = True
            return
        index = self._next_index
        self._next_index += 1
        task = Task(index=index, coroutine=Coroutine(program))
        self._active[index] = task
        logger.debug("Launching task %d", index)
        yield from self._pump(task, task.coroutine.start)

    def _pump(self, task: Task, step: Step | None) -> Generator[EffectBase, Any, None]:
        """Run ``task`` until it completes or parks on an awaitable."""

        if step is None:
            return
        task.state = TaskState.ACTIVE
        while True:
            try:
                outcome = step()
            except (Exception, asyncio.CancelledError) as exc:
                self._complete(task, TaskErr(task.index, self._attribute(exc, task.index)))
                return
            if isinstance(outcome, Done):
                self._complete(task, TaskOk(task.index, outcome.value))
                return

            effect = outcome.effect
            if isinstance(effect, AwaitEffect) and _event_loop_running():
                self._subscribe(task, effect.awaitable)
                return
            step = yield from self._forward(task.coroutine, effect)

    def _attribute(self, error: BaseException, index: int) -> BaseException:
        if isinstance(error, asyncio.CancelledError):
            wrapped = TaskCancelledError(index)
            wrapped.__cause__ = error
            error = wrapped
        return attach_task_index(error, index)

    def _complete(self, task: Task, result: TaskOk[Any] | TaskErr) -> None:
        task.state = TaskState.COMPLETED
        task.future = None
        self._active.pop(task.index, None)
        self._queue.append(result)
        logger.debug("Task %d settled: %s", task.index, type(result).__name__)

    def _subscribe(self, task: Task, awaitable: Any) -> None:
        future = asyncio.ensure_future(awaitable)
        task.future = future
        task.owned = future is not awaitable
        task.state = TaskState.AWAITING
        future.add_done_callback(partial(self._on_settled, task))

    def _on_settled(self, task: Task, future: asyncio.Future[Any]) -> None:
        if not future.cancelled():
            # mark the exception as retrieved even when nobody is listening anymore
            future.exception()
        if task.state is not TaskState.AWAITING or self._active.get(task.index) is not task:
            return
        task.pending_step = step_from_future(task.coroutine, future)
        task.state = TaskState.ACTIVE
        task.future = None
        self._ready.append(task)
        if self._wakeup is not None and not self._wakeup.done():
            self._wakeup.set_result(None)

    # ------------------------------------------------------------------
    # teardown
    # ------------------------------------------------------------------

    def _detach(self) -> list[Task]:
        tasks = sorted(self._active.values(), key=lambda task: task.index)
        self._active.clear()
        self._ready.clear()
        self._queue.clear()
        for task in tasks:
            task.state = TaskState.COMPLETED
            if task.owned and task.future is not None and not task.future.done():
                task.future.cancel()
        return tasks

    def _shutdown(self) -> Generator[EffectBase, Any, None]:
        tasks = self._detach()
        reducer = self._reducer_co
        if reducer is not None and not reducer.finished:
            yield from drain(reducer)

        pending = [task for task in tasks if not task.coroutine.finished]
        if not pending:
            return
        logger.debug("Abandoning tasks %s", [task.index for task in pending])
        if len(pending) == 1:
            yield from drain(pending[0].coroutine)
            return

        from .combinators import all_

        yield from all_([partial(drain, task.coroutine) for task in pending])

    def _close_all(self) -> None:
        """Close the reducer and every live task when the scheduler itself is closed.

        Closing runs plain ``finally`` blocks and effect-free ``finally_`` cleanups.
        Every coroutine is closed even if an earlier one raises; the first error
        is re-raised afterwards.
        """

        tasks = self._detach()
        coroutines = [task.coroutine for task in tasks]
        if self._reducer_co is not None:
            coroutines.insert(0, self._reducer_co)
        first_error: Exception | None = None
        for coroutine in coroutines:
            if coroutine.finished:
                continue
            try:
                coroutine.close()
            except Exception as exc:
                logger.debug("Error while closing %r: %r", coroutine, exc)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error


__all__ = [
    "Reducer",
    "Scheduler",
    "Task",
    "TaskSource",
    "TaskState",
    "attach_task_index",
    "task_index_of",
]

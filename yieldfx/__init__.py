"""
yieldfx - algebraic effects on plain Python generators.

Programs are generator functions that ``yield`` effect requests::

    def greet():
        name = yield Ctx("name")
        if not name:
            yield Fail("EmptyName")
        return f"hello {name}"

    try_(greet).handle({"name": "world", "EmptyName": lambda _: "hello?"}).run_sync()
"""

from yieldfx._vendor import Err, FrozenDict, Ok, Result
from yieldfx.coroutine import Coroutine, Done, Suspended, drain, to_generator
from yieldfx.effects import (
    GET_ROOT,
    SET_ROOT,
    Await,
    AwaitEffect,
    Ctx,
    CtxEffect,
    ErrEffect,
    Fail,
    Opt,
    OptEffect,
    RootCell,
    await_,
    ctx,
    delay,
    fail,
    get_root,
    opt,
    root_handlers,
    set_root,
    unwrap,
    update_root,
    wrap,
)
from yieldfx.errors import (
    Abandoned,
    AsyncEffectInSyncRuntimeError,
    DelayAbortedError,
    EffectFailure,
    InterpreterInvariantError,
    MissingContextError,
    NoRaceResultError,
    RunAbortedError,
    TaskCancelledError,
    UnexpectedEffectError,
    UnhandledEffectError,
    YieldfxError,
)
from yieldfx.interpreter import EffPhase, FinalPhase, HandledPhase, TryPhase, try_
from yieldfx.runtimes import AsyncioRuntime, SyncRuntime, run_async, run_sync
from yieldfx.task import (
    TASK_END,
    TaskErr,
    TaskOk,
    TaskResult,
    TaskResultStream,
    all_,
    all_settled,
    concurrent,
    object_,
    parallel,
    race,
    race_result,
    series,
    task_index_of,
    tuple_,
)
from yieldfx.types import Effect, EffectBase, EffectCreationContext, EffectGenerator, FinalEffect

__version__ = "0.1.0"

__all__ = [
    # Results
    "Err",
    "FrozenDict",
    "Ok",
    "Result",
    # Coroutine stepping
    "Coroutine",
    "Done",
    "Suspended",
    "drain",
    "to_generator",
    # Effects
    "Await",
    "AwaitEffect",
    "Ctx",
    "CtxEffect",
    "Effect",
    "EffectBase",
    "EffectCreationContext",
    "EffectGenerator",
    "ErrEffect",
    "Fail",
    "FinalEffect",
    "GET_ROOT",
    "Opt",
    "OptEffect",
    "RootCell",
    "SET_ROOT",
    "await_",
    "ctx",
    "delay",
    "fail",
    "get_root",
    "opt",
    "root_handlers",
    "set_root",
    "unwrap",
    "update_root",
    "wrap",
    # Composition
    "EffPhase",
    "FinalPhase",
    "HandledPhase",
    "TryPhase",
    "try_",
    # Runtimes
    "AsyncioRuntime",
    "SyncRuntime",
    "run_async",
    "run_sync",
    # Tasks
    "TASK_END",
    "TaskErr",
    "TaskOk",
    "TaskResult",
    "TaskResultStream",
    "all_",
    "all_settled",
    "concurrent",
    "object_",
    "parallel",
    "race",
    "race_result",
    "series",
    "task_index_of",
    "tuple_",
    # Errors
    "Abandoned",
    "AsyncEffectInSyncRuntimeError",
    "DelayAbortedError",
    "EffectFailure",
    "InterpreterInvariantError",
    "MissingContextError",
    "NoRaceResultError",
    "RunAbortedError",
    "TaskCancelledError",
    "UnexpectedEffectError",
    "UnhandledEffectError",
    "YieldfxError",
]

"""Effect constructors understood by the yieldfx phases and runtimes."""

from .future import Await, AwaitEffect, await_, delay
from .reader import Ctx, CtxEffect, Opt, OptEffect, ctx, opt
from .result import ErrEffect, Fail, fail, unwrap, wrap
from .state import GET_ROOT, SET_ROOT, RootCell, get_root, root_handlers, set_root, update_root

__all__ = [
    "Await",
    "AwaitEffect",
    "Ctx",
    "CtxEffect",
    "ErrEffect",
    "Fail",
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
]

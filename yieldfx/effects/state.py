"""Access to an externally owned root state through two named context effects.

The store itself lives outside the effect system: whoever runs the program
provides a getter under :data:`GET_ROOT` and a setter under :data:`SET_ROOT`.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from yieldfx.types import EffectBase

from ._validators import ensure_callable
from .reader import Ctx

T = TypeVar("T")

GET_ROOT = "getRoot"
SET_ROOT = "setRoot"


def get_root() -> Generator[EffectBase, Any, Any]:
    getter = yield Ctx(GET_ROOT)
    ensure_callable(getter, name=GET_ROOT)
    return getter()


def set_root(value: Any) -> Generator[EffectBase, Any, None]:
    setter = yield Ctx(SET_ROOT)
    ensure_callable(setter, name=SET_ROOT)
    setter(value)


def update_root(transform: Callable[[Any], Any]) -> Generator[EffectBase, Any, Any]:
    """Replace the root with ``transform(root)`` and return the new value."""

    current = yield from get_root()
    updated = transform(current)
    yield from set_root(updated)
    return updated


def root_handlers(
    getter: Callable[[], Any], setter: Callable[[Any], None]
) -> dict[str, Any]:
    ensure_callable(getter, name="getter")
    ensure_callable(setter, name="setter")
    return {GET_ROOT: getter, SET_ROOT: setter}


@dataclass
class RootCell(Generic[T]):
    """Minimal in-memory store for programs that use :func:`get_root`/:func:`set_root`."""

    value: T

    def get(self) -> T:
        return self.value

    def set(self, value: T) -> None:
        self.value = value

    def handlers(self) -> dict[str, Any]:
        return root_handlers(self.get, self.set)


__all__ = [
    "GET_ROOT",
    "SET_ROOT",
    "RootCell",
    "get_root",
    "root_handlers",
    "set_root",
    "update_root",
]

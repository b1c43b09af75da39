"""Context and optional-context effects."""

from __future__ import annotations

from dataclasses import dataclass

from yieldfx.types import Effect, EffectBase
from yieldfx.utils import create_effect_with_trace

from ._validators import ensure_str


@dataclass(frozen=True)
class CtxEffect(EffectBase):
    """Requests the value registered under ``name`` by an enclosing handler."""

    name: str

    def __post_init__(self) -> None:
        ensure_str(self.name, name="name")


@dataclass(frozen=True)
class OptEffect(EffectBase):
    """Like :class:`CtxEffect`, but resolves to ``None`` when nobody provides it."""

    name: str

    def __post_init__(self) -> None:
        ensure_str(self.name, name="name")


def ctx(name: str) -> CtxEffect:
    return create_effect_with_trace(CtxEffect(name=name))


def opt(name: str) -> OptEffect:
    return create_effect_with_trace(OptEffect(name=name))


def Ctx(name: str) -> Effect:
    return create_effect_with_trace(CtxEffect(name=name), skip_frames=3)


def Opt(name: str) -> Effect:
    return create_effect_with_trace(OptEffect(name=name), skip_frames=3)


__all__ = [
    "Ctx",
    "CtxEffect",
    "Opt",
    "OptEffect",
    "ctx",
    "opt",
]

"""
Core types for the yieldfx effects system.
"""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass, field, replace
from typing import Any, Literal, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound="EffectBase")


@dataclass(frozen=True)
class EffectCreationContext:
    """Context information about where an effect was created."""

    filename: str
    line: int
    function: str
    code: str | None = None
    stack_trace: list[dict[str, Any]] = field(default_factory=list)

    def format_location(self) -> str:
        """Format the creation location as a string."""
        return f"{self.filename}:{self.line} in {self.function}"

    def format_full(self) -> str:
        """Format the full creation context with stack trace."""
        lines = [f"Effect created at {self.format_location()}"]
        if self.code:
            lines.append(f"    {self.code}")
        if self.stack_trace:
            lines.append("\nCreation stack trace:")
            for frame in self.stack_trace:
                lines.append(
                    f'  File "{frame["filename"]}", line {frame["line"]}, in {frame["function"]}'
                )
                if frame.get("code"):
                    lines.append(f"    {frame['code']}")
        return "\n".join(lines)


@dataclass(frozen=True)
class EffectBase:
    """Base dataclass for effect values.

    Effects are inert requests: yielding one suspends the generator until some
    enclosing layer answers it.
    """

    created_at: EffectCreationContext | None = field(
        default=None, compare=False, repr=False, kw_only=True
    )

    def with_created_at(self: E, created_at: EffectCreationContext | None) -> E:
        if created_at is self.created_at:
            return self
        return replace(self, created_at=created_at)


FinalPhaseName: TypeAlias = Literal["start", "end"]


@dataclass(frozen=True)
class FinalEffect(EffectBase):
    """Bracket marker emitted around the cleanup of an abandoned generator.

    ``errors`` is only populated on the ``end`` marker and carries exceptions
    raised by the cleanup; drivers report them without failing the run.
    """

    phase: FinalPhaseName
    errors: tuple[BaseException, ...] = ()

    def __post_init__(self) -> None:
        if self.phase not in ("start", "end"):
            raise ValueError(f"phase must be 'start' or 'end', got {self.phase!r}")


Effect: TypeAlias = EffectBase
EffectGenerator: TypeAlias = Generator[EffectBase, Any, T]


__all__ = [
    "Effect",
    "EffectBase",
    "EffectCreationContext",
    "EffectGenerator",
    "FinalEffect",
    "FinalPhaseName",
]

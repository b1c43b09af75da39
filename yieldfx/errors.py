from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from yieldfx.types import EffectBase


class Abandoned(BaseException):
    """Thrown into a suspended generator to force early termination.

    Derives from ``BaseException`` so ``except Exception`` blocks in user code
    let it through while ``finally`` blocks still run.
    """


class YieldfxError(Exception):
    """Base class for errors raised by the yieldfx runtime."""


class InterpreterInvariantError(YieldfxError):
    """Raised when the Final bracket protocol is violated."""


class UnhandledEffectError(YieldfxError):
    """Raised when a Fail effect reaches the root without a matching handler."""

    def __init__(self, effect: EffectBase) -> None:
        self.effect = effect
        message = f"No handler for error effect {effect.name!r}: {effect.error!r}"
        if effect.created_at is not None:
            message += f"\n{effect.created_at.format_full()}"
        super().__init__(message)

    @property
    def name(self) -> str:
        return self.effect.name

    @property
    def error(self) -> Any:
        return self.effect.error


class MissingContextError(YieldfxError, KeyError):
    """Raised when a Ctx effect reaches the root without a value."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Context not found: {name!r}\n"
            f"Hint: Provide it via `try_(program).handle({{{name!r}: value}})`"
        )

    def __str__(self) -> str:
        return str(self.args[0])


class UnexpectedEffectError(YieldfxError):
    """Raised when a driver receives an effect it never answers."""

    def __init__(self, effect: object, driver: str, message: str | None = None) -> None:
        self.effect = effect
        self.driver = driver
        super().__init__(message or f"[{driver}] Unexpected effect: {effect!r}")


class AsyncEffectInSyncRuntimeError(UnexpectedEffectError):
    def __init__(self, effect: object) -> None:
        super().__init__(
            effect,
            "run_sync",
            "SyncRuntime cannot handle async effects. Use AsyncioRuntime.",
        )


class RunAbortedError(YieldfxError):
    """Raised by ``run_async`` when its cancellation signal fires."""

    def __init__(self, message: str = "Operation aborted") -> None:
        super().__init__(message)


class DelayAbortedError(YieldfxError):
    def __init__(self, message: str = "Delay aborted") -> None:
        super().__init__(message)


class NoRaceResultError(YieldfxError):
    def __init__(self, message: str = "No results in race") -> None:
        super().__init__(message)


class TaskCancelledError(YieldfxError):
    """A task's awaitable was cancelled underneath it."""

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"Task {index} was cancelled")


class EffectFailure(YieldfxError):
    """Payload of an ``Err`` result produced from an unhandled Fail effect."""

    def __init__(self, name: str, error: Any) -> None:
        self.name = name
        self.error = error
        super().__init__(f"{name}: {error!r}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EffectFailure):
            return NotImplemented
        return self.name == other.name and self.error == other.error

    def __hash__(self) -> int:
        return hash((self.name, repr(self.error)))


__all__ = [
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

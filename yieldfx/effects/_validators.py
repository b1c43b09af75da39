"""Runtime validators for effect attribute type checking."""

from __future__ import annotations

import inspect
import math
from collections.abc import Awaitable, Generator, Mapping


def _type_name(value: object) -> str:
    return type(value).__name__


def _is_program_like(value: object) -> bool:
    if isinstance(value, Generator):
        return True
    # Import here to avoid circular imports
    from yieldfx.interpreter import EffPhase
    return isinstance(value, EffPhase)


def ensure_str(value: object, *, name: str) -> None:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be str, got {_type_name(value)}")


def ensure_callable(value: object, *, name: str) -> None:
    if not callable(value):
        raise TypeError(f"{name} must be callable, got {_type_name(value)}")


def ensure_program_like_or_thunk(value: object, *, name: str) -> None:
    if _is_program_like(value):
        return
    if callable(value):
        try:
            inspect.signature(value).bind()
        except TypeError as exc:
            raise TypeError(
                f"{name} callable must accept no required arguments"
            ) from exc
        except ValueError:
            # Unable to introspect (e.g., builtins); assume callable accepts zero args.
            pass
        return
    raise TypeError(
        f"{name} must be a generator, phase, or zero-argument callable, got {_type_name(value)}"
    )


def ensure_handler_mapping(value: object, *, name: str) -> None:
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be Mapping, got {_type_name(value)}")
    for key in value:
        ensure_str(key, name=f"{name} key")


def ensure_awaitable(value: object, *, name: str) -> None:
    if not isinstance(value, Awaitable):
        raise TypeError(f"{name} must be awaitable, got {_type_name(value)}")


def ensure_non_negative_number(value: object, *, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got {_type_name(value)}")
    if math.isnan(value) or value < 0:
        raise ValueError(f"{name} must be >= 0, got {value!r}")


def ensure_max_concurrency(value: object, *, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be an int or math.inf, got {_type_name(value)}")
    if isinstance(value, float) and value != math.inf:
        raise ValueError(f"{name} must be an int or math.inf, got {value!r}")
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value!r}")


def ensure_optional_event(value: object | None, *, name: str) -> None:
    if value is None:
        return
    if not (callable(getattr(value, "is_set", None)) and callable(getattr(value, "wait", None))):
        raise TypeError(f"{name} must be asyncio.Event or None, got {_type_name(value)}")


__all__ = [
    "ensure_awaitable",
    "ensure_callable",
    "ensure_handler_mapping",
    "ensure_max_concurrency",
    "ensure_non_negative_number",
    "ensure_optional_event",
    "ensure_program_like_or_thunk",
    "ensure_str",
]


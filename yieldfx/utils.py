"""
Utility functions and environment configuration for yieldfx.
"""

from __future__ import annotations

import linecache
import os
import sys
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from yieldfx.types import EffectBase, EffectCreationContext


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


# Environment variable to control debug mode
DEBUG_EFFECTS = _env_flag("YIELDFX_DEBUG")


def _is_yieldfx_internal(path: str) -> bool:
    normalized = path.replace("\\", "/").lower()
    return "/yieldfx/" in normalized


def capture_creation_context(skip_frames: int = 2) -> EffectCreationContext | None:
    """
    Capture the caller's frame so error messages can point at the yield site.

    Frames inside the yieldfx package are skipped until user code is reached.
    """
    from yieldfx.types import EffectCreationContext

    frame = sys._getframe(skip_frames)
    while frame.f_back is not None and _is_yieldfx_internal(frame.f_code.co_filename):
        frame = frame.f_back

    filename = frame.f_code.co_filename
    line = frame.f_lineno
    stack: list[dict[str, object]] = []
    current = frame.f_back
    while current is not None and len(stack) < 8:
        stack.append(
            {
                "filename": current.f_code.co_filename,
                "line": current.f_lineno,
                "function": current.f_code.co_name,
                "code": linecache.getline(current.f_code.co_filename, current.f_lineno).strip(),
            }
        )
        current = current.f_back

    return EffectCreationContext(
        filename=filename,
        line=line,
        function=frame.f_code.co_name,
        code=linecache.getline(filename, line).strip() or None,
        stack_trace=stack,
    )


E = TypeVar("E", bound="EffectBase")


def create_effect_with_trace(effect: E, skip_frames: int = 3) -> E:
    """Attach creation context metadata to an effect when debugging is enabled."""

    if not DEBUG_EFFECTS:
        return effect
    return effect.with_created_at(capture_creation_context(skip_frames=skip_frames))


__all__ = [
    "DEBUG_EFFECTS",
    "capture_creation_context",
    "create_effect_with_trace",
]

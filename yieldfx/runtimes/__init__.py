"""Root drivers for yieldfx programs.

- SyncRuntime: pure synchronous execution (Await effects are rejected)
- AsyncioRuntime: answers Await effects on the running asyncio event loop
"""

from yieldfx.runtimes.asyncio_runtime import AsyncioRuntime, run_async
from yieldfx.runtimes.base import CleanupErrorCallback, RuntimeMixin, log_cleanup_errors
from yieldfx.runtimes.sync import SyncRuntime, run_sync

__all__ = [
    "AsyncioRuntime",
    "CleanupErrorCallback",
    "RuntimeMixin",
    "SyncRuntime",
    "log_cleanup_errors",
    "run_async",
    "run_sync",
]

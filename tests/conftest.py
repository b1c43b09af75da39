"""
Shared fixtures for yieldfx tests.

Programs that never await can run under either root driver, so the
``runtime`` fixture parameterizes those tests over both and exposes a common
async surface.
"""

from collections.abc import Sequence
from typing import Any, Protocol

import pytest

from yieldfx import AsyncioRuntime, Result, SyncRuntime


class Runtime(Protocol):
    runtime_type: str
    cleanup_errors: list[BaseException]

    async def run(self, program: Any) -> Any: ...

    async def run_safe(self, program: Any) -> Result[Any]: ...


class SyncRuntimeAdapter:
    runtime_type = "sync"

    def __init__(self) -> None:
        self.cleanup_errors: list[BaseException] = []
        self._runtime = SyncRuntime(on_cleanup_errors=self._collect)

    def _collect(self, errors: Sequence[BaseException]) -> None:
        self.cleanup_errors.extend(errors)

    async def run(self, program: Any) -> Any:
        return self._runtime.run(program)

    async def run_safe(self, program: Any) -> Result[Any]:
        return self._runtime.run_safe(program)


class AsyncioRuntimeAdapter:
    runtime_type = "async"

    def __init__(self) -> None:
        self.cleanup_errors: list[BaseException] = []
        self._runtime = AsyncioRuntime(on_cleanup_errors=self._collect)

    def _collect(self, errors: Sequence[BaseException]) -> None:
        self.cleanup_errors.extend(errors)

    async def run(self, program: Any) -> Any:
        return await self._runtime.run(program)

    async def run_safe(self, program: Any) -> Result[Any]:
        return await self._runtime.run_safe(program)


@pytest.fixture(params=["sync", "async"])
def runtime(request: pytest.FixtureRequest) -> Runtime:
    if request.param == "sync":
        return SyncRuntimeAdapter()
    return AsyncioRuntimeAdapter()


@pytest.fixture
def log() -> list[str]:
    return []

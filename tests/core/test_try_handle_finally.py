"""Tests for try_/handle/finally_ composition.

Programs here never await, so each test runs under both root drivers.
"""

from typing import TYPE_CHECKING

import pytest

from yieldfx import Ctx, CtxEffect, Fail, Opt, UnhandledEffectError, try_

if TYPE_CHECKING:
    from tests.conftest import Runtime


def record(log: list[str], message: str):
    def program():
        log.append(message)
        yield from ()

    return program


@pytest.mark.asyncio
async def test_handle_answers_ctx_and_opt(runtime: "Runtime") -> None:
    def program():
        a = yield Ctx("a")
        b = yield Opt("b")
        c = yield Opt("c")
        return (a, b, c)

    result = await runtime.run(try_(program).handle({"a": 1, "b": 2, "c": None}))

    assert result == (1, 2, None)


@pytest.mark.asyncio
async def test_ctx_entry_set_to_none_is_still_an_answer(runtime: "Runtime") -> None:
    def program():
        return (yield Ctx("a"))

    assert await runtime.run(try_(program).handle({"a": None})) is None


@pytest.mark.asyncio
async def test_handled_error_returns_resolver_result(runtime: "Runtime", log: list[str]) -> None:
    def program():
        log.append("before")
        yield Fail("Boom", 41)
        log.append("after")
        return 0

    result = await runtime.run(try_(program).handle({"Boom": lambda error: error + 1}))

    assert result == 42
    assert log == ["before"]


@pytest.mark.asyncio
async def test_error_escalates_to_the_nearest_matching_handler(runtime: "Runtime") -> None:
    def program():
        yield Fail("Boom", "payload")

    inner = try_(program).handle({"Other": lambda _: "inner"})
    outer = try_(inner).handle({"Boom": lambda error: f"outer:{error}"})

    assert await runtime.run(outer) == "outer:payload"


@pytest.mark.asyncio
async def test_non_callable_entry_does_not_handle_errors(runtime: "Runtime", log: list[str]) -> None:
    def program():
        try:
            yield Fail("Boom", {"code": 7})
        finally:
            log.append("cleanup")

    with pytest.raises(UnhandledEffectError) as exc_info:
        await runtime.run(try_(program).handle({"Boom": "not a resolver"}))

    assert exc_info.value.name == "Boom"
    assert exc_info.value.error == {"code": 7}
    assert log == ["cleanup"]


@pytest.mark.asyncio
async def test_nested_finally_runs_inner_to_outer(runtime: "Runtime", log: list[str]) -> None:
    def body():
        log.append("body")
        yield from ()
        return "done"

    program = try_(try_(body).finally_(record(log, "inner"))).finally_(record(log, "outer"))

    assert await runtime.run(program) == "done"
    assert log == ["body", "inner", "outer"]


@pytest.mark.asyncio
async def test_finally_runs_when_body_raises(runtime: "Runtime", log: list[str]) -> None:
    def body():
        yield from ()
        raise ValueError("bad")

    program = try_(try_(body).finally_(record(log, "inner"))).finally_(record(log, "outer"))

    with pytest.raises(ValueError, match="bad"):
        await runtime.run(program)
    assert log == ["inner", "outer"]


@pytest.mark.asyncio
async def test_abandoned_child_cleanup_is_answered_by_the_same_handlers(
    runtime: "Runtime", log: list[str]
) -> None:
    def program():
        try:
            yield Fail("Boom", "x")
        finally:
            value = yield Ctx("cfg")
            log.append(f"cleanup:{value}")

    phase = try_(program).handle({"Boom": lambda error: f"handled:{error}", "cfg": "c"})

    assert await runtime.run(phase) == "handled:x"
    assert log == ["cleanup:c"]


@pytest.mark.asyncio
async def test_handled_error_during_cleanup_ends_cleanup_without_resolving(
    runtime: "Runtime", log: list[str]
) -> None:
    resolved: list[object] = []

    def program():
        try:
            yield Fail("Boom", "x")
        finally:
            log.append("cleanup")
            yield Fail("Again", "y")
            log.append("after")

    phase = try_(program).handle(
        {"Boom": lambda error: f"handled:{error}", "Again": resolved.append}
    )

    assert await runtime.run(phase) == "handled:x"
    assert log == ["cleanup"]
    assert resolved == []
    assert runtime.cleanup_errors == []


@pytest.mark.asyncio
async def test_finally_cleanup_runs_when_error_is_handled_outside(
    runtime: "Runtime", log: list[str]
) -> None:
    def body():
        yield Fail("Boom")
        log.append("unreachable")

    def cleanup():
        value = yield Ctx("cfg")
        log.append(f"cleanup:{value}")

    phase = try_(body).finally_(cleanup).handle({"Boom": lambda _: "recovered", "cfg": 1})

    assert await runtime.run(phase) == "recovered"
    assert log == ["cleanup:1"]


@pytest.mark.asyncio
async def test_deep_chains_run_every_cleanup_exactly_once(runtime: "Runtime", log: list[str]) -> None:
    def body():
        log.append("body")
        yield Fail("Boom")

    phase = (
        try_(body)
        .finally_(record(log, "first"))
        .handle({"Unrelated": lambda _: None})
        .finally_(record(log, "second"))
        .handle({"Boom": lambda _: "handled"})
        .finally_(record(log, "third"))
    )

    assert await runtime.run(phase) == "handled"
    assert log == ["body", "first", "second", "third"]


@pytest.mark.asyncio
async def test_child_swallowing_abandonment_cannot_return(runtime: "Runtime", log: list[str]) -> None:
    def stubborn():
        try:
            yield Fail("Boom")
        except BaseException:
            log.append("swallowed")
        log.append("continued")
        return "escaped"

    inner = try_(stubborn).handle({"x": 1})
    outer = try_(inner).handle({"Boom": lambda _: "handled"})

    assert await runtime.run(outer) == "handled"
    assert log == ["swallowed", "continued"]


@pytest.mark.asyncio
async def test_cleanup_errors_do_not_replace_the_result(runtime: "Runtime") -> None:
    def program():
        try:
            yield Fail("Boom")
        finally:
            raise RuntimeError("cleanup failed")

    result = await runtime.run(try_(program).handle({"Boom": lambda _: "ok"}))

    assert result == "ok"
    assert [str(error) for error in runtime.cleanup_errors] == ["cleanup failed"]


@pytest.mark.asyncio
async def test_native_exceptions_pass_through_handlers(runtime: "Runtime") -> None:
    def program():
        yield Ctx("a")
        raise KeyError("native")

    with pytest.raises(KeyError):
        await runtime.run(try_(program).handle({"a": 1, "KeyError": lambda _: "nope"}))


@pytest.mark.asyncio
async def test_phase_built_from_factory_is_reusable(runtime: "Runtime") -> None:
    def program():
        return (yield Ctx("a")) * 2

    phase = try_(program).handle({"a": 21})

    assert await runtime.run(phase) == 42
    assert await runtime.run(phase) == 42


def test_phase_run_sync_shortcut() -> None:
    def program():
        return (yield Ctx("a"))

    assert try_(program).handle({"a": "value"}).run_sync() == "value"


@pytest.mark.asyncio
async def test_phase_run_async_shortcut() -> None:
    def program():
        return (yield Ctx("a"))

    assert await try_(program).handle({"a": "value"}).run_async() == "value"


def test_try_rejects_non_programs() -> None:
    with pytest.raises(TypeError):
        try_(42)


def test_handle_rejects_non_mapping() -> None:
    def program():
        yield from ()

    with pytest.raises(TypeError):
        try_(program).handle([("a", 1)])


def test_closing_a_phase_runs_its_cleanup(log: list[str]) -> None:
    def body():
        yield Ctx("missing")

    phase = iter(try_(try_(body).finally_(record(log, "cleanup"))).handle({"a": 1}))
    assert isinstance(next(phase), CtxEffect)

    phase.close()

    assert log == ["cleanup"]


def test_closing_a_phase_rejects_cleanup_that_yields() -> None:
    def body():
        yield Ctx("a")

    def cleanup():
        yield Ctx("b")

    phase = iter(try_(body).finally_(cleanup))
    next(phase)

    with pytest.raises(RuntimeError, match="while its phase was being closed"):
        phase.close()

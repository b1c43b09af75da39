"""Tests for Ctx and Opt effects reaching the root."""

from typing import TYPE_CHECKING

import pytest

from yieldfx import Ctx, CtxEffect, MissingContextError, Opt, OptEffect, ctx, try_

if TYPE_CHECKING:
    from tests.conftest import Runtime


@pytest.mark.asyncio
async def test_missing_ctx_raises_at_the_yield_point(runtime: "Runtime", log: list[str]) -> None:
    def program():
        try:
            yield Ctx("db")
        finally:
            log.append("cleanup")

    with pytest.raises(MissingContextError) as exc_info:
        await runtime.run(program)

    assert exc_info.value.name == "db"
    assert isinstance(exc_info.value, KeyError)
    assert "Context not found: 'db'" in str(exc_info.value)
    assert log == ["cleanup"]


@pytest.mark.asyncio
async def test_missing_ctx_can_be_caught_by_the_program(runtime: "Runtime") -> None:
    def program():
        try:
            return (yield Ctx("db"))
        except KeyError:
            return "fallback"

    assert await runtime.run(program) == "fallback"


@pytest.mark.asyncio
async def test_unanswered_opt_resolves_to_none(runtime: "Runtime") -> None:
    def program():
        return (yield Opt("verbose"))

    assert await runtime.run(program) is None


@pytest.mark.asyncio
async def test_callable_ctx_values_are_returned_as_is(runtime: "Runtime") -> None:
    def lookup(key: str) -> str:
        return key.upper()

    def program():
        fetch = yield Ctx("lookup")
        return fetch("abc")

    assert await runtime.run(try_(program).handle({"lookup": lookup})) == "ABC"


@pytest.mark.asyncio
async def test_inner_handler_shadows_outer(runtime: "Runtime") -> None:
    def program():
        return (yield Ctx("name"))

    phase = try_(try_(program).handle({"name": "inner"})).handle({"name": "outer"})

    assert await runtime.run(phase) == "inner"


def test_constructors_build_effect_values() -> None:
    assert Ctx("a") == CtxEffect(name="a")
    assert ctx("a") == CtxEffect(name="a")
    assert Opt("a") == OptEffect(name="a")


def test_effect_names_must_be_strings() -> None:
    with pytest.raises(TypeError):
        Ctx(1)
    with pytest.raises(TypeError):
        Opt(None)

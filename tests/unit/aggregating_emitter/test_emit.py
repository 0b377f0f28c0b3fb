from __future__ import annotations

import asyncio
from typing import Any

import pytest

from aggregating_emitter import EventContext, EventEmitter, event_ctx

PARALLEL = ["emit", "emit_async"]
ALL_PROTOCOLS = ["emit", "emit_async", "emit_waterfall", "emit_waterfall_async"]


async def dispatch(emitter: EventEmitter, method: str, event: str, *args: Any) -> Any:
    result = getattr(emitter, method)(event, *args)
    if asyncio.iscoroutine(result):
        return await result
    return result


@pytest.mark.asyncio()
@pytest.mark.parametrize("method", ALL_PROTOCOLS)
async def test_wildcard_pattern_matches_single_segment(method: str) -> None:
    emitter = EventEmitter(wildcards=True)
    calls: list[str] = []

    @emitter.on("data.*")
    def handler(ctx: EventContext, *_: Any) -> None:
        calls.append(ctx.event_name)

    await dispatch(emitter, method, "data.get")
    await dispatch(emitter, method, "other.get")
    await dispatch(emitter, method, "data.get.more")

    assert calls == ["data.get"]


@pytest.mark.asyncio()
@pytest.mark.parametrize("method", ALL_PROTOCOLS)
async def test_list_option_pattern(method: str) -> None:
    emitter = EventEmitter(list_options=True)
    calls: list[str] = []
    emitter.on("{a,b,c}.event", lambda ctx: calls.append(ctx.event_name))

    await dispatch(emitter, method, "b.event")
    await dispatch(emitter, method, "d.event")

    assert calls == ["b.event"]


@pytest.mark.asyncio()
@pytest.mark.parametrize("method", ALL_PROTOCOLS)
async def test_off_with_handler_removes_only_that_handler(method: str) -> None:
    emitter = EventEmitter()
    calls: list[str] = []

    def first(_: EventContext) -> None:
        calls.append("first")

    def second(_: EventContext) -> None:
        calls.append("second")

    emitter.on("event", first)
    emitter.on("event", second)
    emitter.off("event", first)

    await dispatch(emitter, method, "event")

    assert calls == ["second"]


@pytest.mark.asyncio()
@pytest.mark.parametrize("method", ALL_PROTOCOLS)
async def test_off_without_handler_removes_all(method: str) -> None:
    emitter = EventEmitter(wildcards=True)
    calls: list[str] = []
    emitter.on("events", lambda _: calls.append("one"))
    emitter.on("events", lambda _: calls.append("two"))

    emitter.off("events")
    await dispatch(emitter, method, "events")

    assert calls == []


@pytest.mark.asyncio()
@pytest.mark.parametrize("method", ALL_PROTOCOLS)
async def test_same_handler_registered_twice_runs_twice(method: str) -> None:
    emitter = EventEmitter()
    calls: list[str] = []

    def handler(_: EventContext) -> None:
        calls.append("called")

    emitter.on("event", handler)
    emitter.on("event", handler)
    await dispatch(emitter, method, "event")

    assert calls == ["called", "called"]


@pytest.mark.asyncio()
@pytest.mark.parametrize("method", PARALLEL)
async def test_returns_results_in_registration_order(method: str) -> None:
    emitter = EventEmitter()
    for n in range(5):
        emitter.on("event", lambda _ctx, n=n: f"result-{n}")

    results = await dispatch(emitter, method, "event")

    assert results == [f"result-{n}" for n in range(5)]


@pytest.mark.asyncio()
@pytest.mark.parametrize("method", PARALLEL)
async def test_arguments_are_passed_to_every_handler(method: str) -> None:
    emitter = EventEmitter()
    received: list[tuple[Any, ...]] = []
    emitter.on("event", lambda _ctx, *args: received.append(args))
    emitter.on("event", lambda _ctx, *args: received.append(args))

    await dispatch(emitter, method, "event", 1, 2, 3)

    assert received == [(1, 2, 3), (1, 2, 3)]


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    "options",
    [{}, {"wildcards": True}, {"list_options": True}, {"lifecycles": True}],
)
async def test_no_matching_handlers_returns_empty(options: dict[str, Any]) -> None:
    emitter = EventEmitter(**options)
    expected: list[Any] = [[]] * 5 if options.get("lifecycles") else []

    assert emitter.emit("nothing") == expected
    assert await emitter.emit_async("nothing") == expected
    assert emitter.emit_waterfall("nothing", 1) is None
    assert await emitter.emit_waterfall_async("nothing", 1) is None


def test_kwargs_are_forwarded() -> None:
    emitter = EventEmitter()
    emitter.on("event", lambda _ctx, *, user: user.upper())

    assert emitter.emit("event", user="ada") == ["ADA"]


def test_colon_is_part_of_the_name_without_lifecycles() -> None:
    emitter = EventEmitter()
    emitter.on("my:event", lambda _: "hit")

    assert emitter.emit("my:event") == ["hit"]
    assert emitter.emit("event") == []


def test_event_ctx_is_set_during_dispatch() -> None:
    emitter = EventEmitter()
    captured: list[EventContext | None] = []

    @emitter.on("ctx.var")
    def handler(ctx: EventContext) -> None:
        captured.append(event_ctx.get())
        assert event_ctx.get() is ctx

    emitter.emit("ctx.var")

    assert len(captured) == 1
    assert event_ctx.get() is None


def test_sync_emit_returns_coroutines_unawaited() -> None:
    emitter = EventEmitter()

    async def handler(_: EventContext) -> str:
        return "async"

    emitter.on("event", handler)
    (result,) = emitter.emit("event")

    assert asyncio.iscoroutine(result)
    assert asyncio.run(result) == "async"


@pytest.mark.asyncio()
async def test_emit_async_runs_handlers_concurrently_but_keeps_order() -> None:
    emitter = EventEmitter()
    started: list[str] = []
    release = asyncio.Event()

    async def slow(_: EventContext) -> str:
        started.append("slow")
        await release.wait()
        return "slow"

    async def fast(_: EventContext) -> str:
        started.append("fast")
        release.set()
        return "fast"

    emitter.on("event", slow)
    emitter.on("event", fast)

    results = await emitter.emit_async("event")

    assert started == ["slow", "fast"]
    assert results == ["slow", "fast"]


@pytest.mark.asyncio()
async def test_emit_async_mixes_sync_and_async_handlers() -> None:
    emitter = EventEmitter()

    async def async_handler(_: EventContext, value: int) -> int:
        await asyncio.sleep(0)
        return value * 2

    emitter.on("event", lambda _ctx, value: value + 1)
    emitter.on("event", async_handler)

    assert await emitter.emit_async("event", 5) == [6, 10]


def test_emit_handler_error_aborts_emission() -> None:
    emitter = EventEmitter(debug=True)
    calls: list[str] = []

    def failing(_: EventContext) -> None:
        raise ValueError("boom")

    emitter.on("event", failing)
    emitter.on("event", lambda _: calls.append("after"))

    with pytest.raises(ValueError, match="boom"):
        emitter.emit("event")

    assert calls == []


@pytest.mark.asyncio()
async def test_emit_async_handler_error_rejects_result() -> None:
    emitter = EventEmitter()

    async def failing(_: EventContext) -> None:
        await asyncio.sleep(0)
        raise RuntimeError("async boom")

    emitter.on("event", failing)
    emitter.on("event", lambda _: "fine")

    with pytest.raises(RuntimeError, match="async boom"):
        await emitter.emit_async("event")


def test_on_works_as_a_decorator_and_returns_the_handler() -> None:
    emitter = EventEmitter()

    def handler(_: EventContext) -> str:
        return "ok"

    assert emitter.on("event", handler) is handler

    @emitter.on("decorated")
    def decorated(_: EventContext) -> str:
        return "decorated"

    assert decorated(None) == "decorated"  # type: ignore[arg-type]
    assert emitter.emit("decorated") == ["decorated"]
    assert emitter.handler_count() == 2
    assert emitter.event_names() == ["event", "decorated"]

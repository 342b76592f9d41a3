import asyncio
import inspect

import pytest

from blueprintkit import blueprint


def shout(props):
    return props["name"].upper()


async def shout_later(props):
    await asyncio.sleep(0)
    return props["name"].upper()


def test_to_async_wraps_sync_result_in_awaitable():
    unit = blueprint(shout).to_async()

    pending = unit({"name": "ada"})

    assert inspect.isawaitable(pending)
    assert asyncio.run(pending) == "ADA"


def test_async_core_defers_output_stages_until_settled():
    events = []
    unit = (
        blueprint(shout_later)
        .output(lambda result, props: events.append("output") or f"{result}!")
        .after(lambda result, props: events.append(("after", result)))
    )

    pending = unit({"name": "ada"})

    assert events == []
    assert asyncio.run(pending) == "ADA!"
    assert events == ["output", ("after", "ADA!")]


def test_async_rejection_skips_output_stages():
    events = []

    async def failing(props):
        raise LookupError("missing")

    unit = blueprint(failing).output(lambda result, props: events.append("output"))

    with pytest.raises(LookupError, match="missing"):
        asyncio.run(unit({}))
    assert events == []


def test_to_async_turns_synchronous_failures_into_rejections():
    unit = blueprint(key="later").to_async()

    pending = unit({})

    assert inspect.isawaitable(pending)
    with pytest.raises(NotImplementedError):
        asyncio.run(pending)


def test_to_async_runs_input_stages_eagerly():
    events = []
    unit = blueprint(shout).before(lambda props: events.append("before")).to_async()

    pending = unit({"name": "x"})

    assert events == ["before"]
    assert asyncio.run(pending) == "X"


def test_to_async_and_to_void_resolve_to_none():
    ran = []
    unit = blueprint(lambda props: ran.append(props) or "ignored").to_async().to_void()

    assert asyncio.run(unit({"a": 1})) is None
    assert ran == [{"a": 1}]


def test_pipe_awaits_deferred_result_before_next_unit():
    unit = blueprint(shout_later).pipe(lambda value: f"{value}?")

    pending = unit({"name": "ok"})

    assert inspect.isawaitable(pending)
    assert asyncio.run(pending) == "OK?"


def test_pipe_awaits_async_next_unit():
    async def suffix(value):
        return value + "!"

    unit = blueprint(shout_later).pipe(suffix).pipe(blueprint(lambda value: len(value)))

    assert asyncio.run(unit({"name": "abc"})) == 4


def test_pipe_keeps_async_flag_of_left_side():
    unit = blueprint(shout).to_async().pipe(lambda value: value.lower())

    assert unit.state.is_async is True
    assert asyncio.run(unit({"name": "MiXeD"})) == "mixed"


def test_concurrent_invocations_do_not_share_stage_values():
    async def echo(props):
        await asyncio.sleep(0.01 if props["n"] == 1 else 0)
        return props["n"]

    unit = blueprint(echo).defaults({"n": 0}).output(lambda result, props: (result, props["n"]))

    async def run_all():
        return await asyncio.gather(unit({"n": 1}), unit({"n": 2}), unit({}))

    assert asyncio.run(run_all()) == [(1, 1), (2, 2), (0, 0)]

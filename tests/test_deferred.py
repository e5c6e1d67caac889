import asyncio
from concurrent.futures import Future

import pytest

from snappack.exceptions import ReductionTimeoutError, SnapshotConfigError
from snappack.strategies import is_deferred, map_result, resolve, resolve_async


def test_plain_values_resolve_immediately() -> None:
    assert is_deferred("value") is False
    assert resolve("value", timeout=0.01) == "value"


def test_completed_future_resolves_to_its_result() -> None:
    future: Future[str] = Future()
    future.set_result("rendered")

    assert is_deferred(future) is True
    assert resolve(future, timeout=1) == "rendered"


def test_pending_future_times_out_with_dedicated_error() -> None:
    future: Future[str] = Future()

    with pytest.raises(ReductionTimeoutError, match="Exceeded timeout of 0.05 seconds"):
        resolve(future, timeout=0.05)


def test_cancelled_future_cannot_be_snapshotted() -> None:
    future: Future[str] = Future()
    future.cancel()

    with pytest.raises(ReductionTimeoutError, match="Couldn't snapshot value"):
        resolve(future, timeout=1)


def test_reduction_errors_propagate_unchanged() -> None:
    future: Future[str] = Future()
    future.set_exception(UnicodeError("bad bytes"))

    with pytest.raises(UnicodeError, match="bad bytes"):
        resolve(future, timeout=1)


def test_coroutine_reduction_resolves_outside_event_loop() -> None:
    async def render() -> str:
        await asyncio.sleep(0)
        return "async"

    assert resolve(map_result(render(), str.upper), timeout=1) == "ASYNC"


def test_slow_coroutine_times_out() -> None:
    async def render() -> str:
        await asyncio.sleep(5)
        return "never"

    with pytest.raises(ReductionTimeoutError, match="Exceeded timeout"):
        resolve(render(), timeout=0.05)


def test_awaitable_inside_running_loop_requires_async_resolution() -> None:
    async def render() -> str:
        return "async"

    async def scenario() -> str:
        with pytest.raises(SnapshotConfigError, match="running event loop"):
            resolve(render(), timeout=1)
        return await resolve_async(render(), timeout=1)

    assert asyncio.run(scenario()) == "async"


def test_resolve_async_accepts_concurrent_futures() -> None:
    async def scenario() -> str:
        future: Future[str] = Future()
        asyncio.get_running_loop().call_later(0.01, future.set_result, "threaded")
        return await resolve_async(future, timeout=1)

    assert asyncio.run(scenario()) == "threaded"

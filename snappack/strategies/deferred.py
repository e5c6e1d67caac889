"""Single-shot deferred reduction results and timeout-bounded resolution."""

from __future__ import annotations

import asyncio
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeoutError
import inspect
from typing import Any, Awaitable, Callable, TypeVar, Union

from snappack.exceptions import ReductionTimeoutError, SnapshotConfigError

T = TypeVar("T")
U = TypeVar("U")

Deferred = Union[Future[T], Awaitable[T]]

CANNOT_SNAPSHOT_MESSAGE = "Couldn't snapshot value"


def is_deferred(result: Any) -> bool:
    return isinstance(result, Future) or inspect.isawaitable(result)


def map_result(result: Deferred[T] | T, transform: Callable[[T], U]) -> Deferred[U] | U:
    """Apply ``transform`` to a plain or deferred reduction result without blocking."""
    if isinstance(result, Future):
        mapped: Future[U] = Future()

        def _chain(source: Future) -> None:
            if source.cancelled():
                mapped.cancel()
                return
            error = source.exception()
            if error is not None:
                mapped.set_exception(error)
                return
            try:
                mapped.set_result(transform(source.result()))
            except Exception as transform_error:
                mapped.set_exception(transform_error)

        result.add_done_callback(_chain)
        return mapped

    if is_deferred(result):

        async def _mapped() -> U:
            return transform(await result)

        return _mapped()

    return transform(result)


def resolve(result: Deferred[T] | T, *, timeout: float) -> T:
    """Block until a deferred result is available, up to ``timeout`` seconds."""
    if isinstance(result, Future):
        try:
            return result.result(timeout=timeout)
        except FutureTimeoutError as error:
            raise ReductionTimeoutError(_timeout_message(timeout)) from error
        except CancelledError as error:
            raise ReductionTimeoutError(CANNOT_SNAPSHOT_MESSAGE) from error

    if inspect.isawaitable(result):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(_await_with_timeout(result, timeout))
        if inspect.iscoroutine(result):
            result.close()
        raise SnapshotConfigError(
            "awaitable reduction inside a running event loop; use the async snapshot assertion"
        )

    return result


async def resolve_async(result: Deferred[T] | T, *, timeout: float) -> T:
    if not is_deferred(result):
        return result
    if isinstance(result, Future):
        return await _await_with_timeout(asyncio.wrap_future(result), timeout)
    return await _await_with_timeout(result, timeout)


async def _await_with_timeout(awaitable: Awaitable[T], timeout: float) -> T:
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as error:
        raise ReductionTimeoutError(_timeout_message(timeout)) from error
    except asyncio.CancelledError as error:
        raise ReductionTimeoutError(CANNOT_SNAPSHOT_MESSAGE) from error


def _timeout_message(timeout: float) -> str:
    return f"Exceeded timeout of {timeout:g} seconds waiting for snapshot"

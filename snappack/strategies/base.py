"""Snapshot strategies: pure reductions from input values to diffable formats."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, TypeVar

from snappack.formats import Diffable
from snappack.strategies.deferred import map_result

V = TypeVar("V")
U = TypeVar("U")
F = TypeVar("F")
G = TypeVar("G")

_FROM_FORMAT: Any = object()


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True, slots=True)
class Strategy(Generic[V, F]):
    """Reduce a value of type ``V`` to a diffable format value of type ``F``.

    ``reduce`` must be pure: the same input always yields the same format
    bytes. It may return a ``concurrent.futures.Future`` or an awaitable
    when the format is produced asynchronously.

    ``path_extension`` defaults to the format's file extension; ``None``
    means an extensionless artifact.
    """

    diffable: Diffable[F]
    reduce: Callable[[V], Any] = _identity
    path_extension: str | None = _FROM_FORMAT

    def __post_init__(self) -> None:
        if self.path_extension is _FROM_FORMAT:
            object.__setattr__(self, "path_extension", self.diffable.file_extension)

    def snapshot(self, value: V) -> Any:
        """Run the reduction; the result may be deferred."""
        return self.reduce(value)

    def pullback(self, transform: Callable[[U], V]) -> "Strategy[U, F]":
        """Pre-compose an input adapter, keeping format and path extension."""
        reduce = self.reduce

        def pulled(value: U) -> Any:
            return reduce(transform(value))

        return replace(self, reduce=pulled)

    def convert(
        self,
        to_format: Callable[[F], G],
        diffable: Diffable[G],
        *,
        path_extension: str | None = _FROM_FORMAT,
    ) -> "Strategy[V, G]":
        """Post-compose a format conversion into another diffable format."""
        reduce = self.reduce

        def converted(value: V) -> Any:
            return map_result(reduce(value), to_format)

        return Strategy(diffable=diffable, reduce=converted, path_extension=path_extension)

    def with_extension(self, path_extension: str | None) -> "Strategy[V, F]":
        return replace(self, path_extension=path_extension)


def apply(strategy: Strategy[V, F], value: V) -> Any:
    return strategy.snapshot(value)

"""Structural tree descriptions of Python values.

Values opt into a custom rendering through the ``Describable`` protocol.
Dataclasses, named tuples, mappings, sequences and sets are walked
structurally; any other object is rendered by its ``repr`` with memory
addresses removed and no children.
"""

from __future__ import annotations

import dataclasses
from datetime import date, datetime, timezone
import enum
import re
from typing import Any, Mapping, Protocol, runtime_checkable

from snappack.strategies.base import Strategy
from snappack.strategies.text import lines

_ADDRESS_RE = re.compile(r"(?: at|:) 0x[0-9a-fA-F]+")
CYCLE_MARKER = "<cycle>"

Child = tuple[str | None, Any]


@runtime_checkable
class Describable(Protocol):
    def __snapshot_description__(self) -> str: ...


def describe(value: Any, *, name: str | None = None, indent: int = 0) -> str:
    """Render ``value`` as an indented tree, one node per line.

    A container reached again while it is still being described renders as
    ``<cycle>`` instead of recursing.
    """
    return _describe(value, name=name, indent=indent, ancestors=frozenset())


def _describe(value: Any, *, name: str | None, indent: int, ancestors: frozenset[int]) -> str:
    label = f"{name}: " if name is not None else ""
    if id(value) in ancestors:
        return f"{' ' * indent}- {label}{CYCLE_MARKER}\n"
    description, children = _inspect(value)
    bullet = "▿" if children else "-"
    parts = [f"{' ' * indent}{bullet} {label}{description}\n"]
    if children:
        ancestors = ancestors | {id(value)}
        parts.extend(
            _describe(child, name=child_name, indent=indent + 2, ancestors=ancestors)
            for child_name, child in children
        )
    return "".join(parts)


@dataclasses.dataclass(frozen=True, slots=True)
class _Pair:
    key: Any
    value: Any


def _inspect(value: Any) -> tuple[str, list[Child]]:
    if isinstance(value, Describable) and not isinstance(value, type):
        return value.__snapshot_description__(), []

    if isinstance(value, enum.Enum):
        return f"{type(value).__name__}.{value.name}", []

    if value is None or isinstance(value, (bool, int, float, complex, str, bytes)):
        return repr(value), []

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.isoformat(), []

    if isinstance(value, date):
        return value.isoformat(), []

    if isinstance(value, _Pair):
        return "(2 elements)", [("key", value.key), ("value", value.value)]

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        children: list[Child] = [
            (field.name, getattr(value, field.name))
            for field in dataclasses.fields(value)
            if field.repr
        ]
        return type(value).__name__, children

    if isinstance(value, tuple) and hasattr(value, "_fields"):
        return type(value).__name__, [(name, getattr(value, name)) for name in value._fields]

    if isinstance(value, Mapping):
        pairs: list[Child] = [(None, _Pair(key, item)) for key, item in value.items()]
        return _count(len(pairs), "key/value pair", "key/value pairs"), pairs

    if isinstance(value, tuple):
        return f"({_count(len(value), 'element', 'elements')})", [(None, item) for item in value]

    if isinstance(value, list):
        return _count(len(value), "element", "elements"), [(None, item) for item in value]

    if isinstance(value, (set, frozenset)):
        members = sorted(value, key=describe)
        return _count(len(members), "member", "members"), [(None, item) for item in members]

    return _ADDRESS_RE.sub("", repr(value)), []


def _count(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


dump: Strategy[Any, str] = lines.pullback(describe)

"""Text, byte, JSON and property list strategies."""

from __future__ import annotations

import dataclasses
import plistlib
from typing import Any

from snappack.core.canonical import VOLATILE_FIELD_NAMES, canonical_json
from snappack.formats import DATA, LINES
from snappack.strategies.base import Strategy

lines: Strategy[str, str] = Strategy(diffable=LINES)
data: Strategy[bytes, bytes] = Strategy(diffable=DATA)


def json_strategy(
    *,
    indent: int = 2,
    strip_volatile: bool = False,
    volatile_field_names: frozenset[str] = VOLATILE_FIELD_NAMES,
) -> Strategy[Any, str]:
    """Pretty, key-sorted canonical JSON stored as a ``.json`` text artifact."""

    def encode(value: Any) -> str:
        return canonical_json(
            value,
            indent=indent,
            strip_volatile=strip_volatile,
            volatile_field_names=volatile_field_names,
        )

    return lines.pullback(encode).with_extension("json")


json: Strategy[Any, str] = json_strategy()


def plist_strategy(*, sort_keys: bool = True) -> Strategy[Any, str]:
    """XML property list stored as a ``.plist`` text artifact.

    Dataclass instances are converted with ``dataclasses.asdict``; other values
    must be plist-compatible (``None`` is not).
    """

    def encode(value: Any) -> str:
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            value = dataclasses.asdict(value)
        return plistlib.dumps(value, fmt=plistlib.FMT_XML, sort_keys=sort_keys).decode("utf-8")

    return lines.pullback(encode).with_extension("plist")


plist: Strategy[Any, str] = plist_strategy()

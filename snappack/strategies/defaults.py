"""Strategy used when an assertion does not name one."""

from __future__ import annotations

from typing import Any

from snappack.strategies.base import Strategy
from snappack.strategies.dump import dump
from snappack.strategies.text import data, lines


def default_strategy(value: Any) -> Strategy[Any, Any]:
    if isinstance(value, str):
        return lines
    if isinstance(value, bytes):
        return data
    return dump

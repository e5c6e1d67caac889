"""Strategy subsystem for SnapKit."""

from snappack.strategies.base import Strategy, apply
from snappack.strategies.defaults import default_strategy
from snappack.strategies.deferred import (
    Deferred,
    is_deferred,
    map_result,
    resolve,
    resolve_async,
)
from snappack.strategies.dump import Describable, describe, dump
from snappack.strategies.http import describe_request, raw_request
from snappack.strategies.text import data, json, json_strategy, lines, plist, plist_strategy

__all__ = [
    "Strategy",
    "apply",
    "default_strategy",
    "Deferred",
    "is_deferred",
    "map_result",
    "resolve",
    "resolve_async",
    "Describable",
    "describe",
    "describe_request",
    "lines",
    "data",
    "json",
    "json_strategy",
    "plist",
    "plist_strategy",
    "dump",
    "raw_request",
]

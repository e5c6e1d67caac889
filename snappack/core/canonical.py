"""Deterministic canonicalization helpers for snapshot formats."""

from __future__ import annotations

import dataclasses
from datetime import date, datetime, timezone
import enum
import json
import math
from pathlib import PurePath
from typing import Any

VOLATILE_FIELD_NAMES = frozenset(
    {
        "duration_ms",
        "elapsed_ms",
        "request_id",
        "trace_id",
        "span_id",
        "pid",
        "thread_id",
    }
)


def canonicalize(
    value: Any,
    *,
    strip_volatile: bool = False,
    volatile_field_names: frozenset[str] = VOLATILE_FIELD_NAMES,
) -> Any:
    """Normalize values to a deterministic JSON-compatible representation."""
    return _canonicalize(
        value,
        strip_volatile=strip_volatile,
        volatile_field_names=volatile_field_names,
    )


def canonical_json(
    value: Any,
    *,
    indent: int | None = None,
    strip_volatile: bool = False,
    volatile_field_names: frozenset[str] = VOLATILE_FIELD_NAMES,
) -> str:
    """Serialize a value to stable canonical JSON.

    Compact separators are used unless ``indent`` is given, in which case the
    output is pretty-printed with one key per line (the form stored in
    ``.json`` snapshot artifacts).
    """
    canonical_value = canonicalize(
        value,
        strip_volatile=strip_volatile,
        volatile_field_names=volatile_field_names,
    )
    return json.dumps(
        canonical_value,
        ensure_ascii=False,
        indent=indent,
        separators=(",", ":") if indent is None else (",", ": "),
        sort_keys=True,
    )


def _canonicalize(
    value: Any,
    *,
    strip_volatile: bool,
    volatile_field_names: frozenset[str],
) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = {field.name: getattr(value, field.name) for field in dataclasses.fields(value)}

    if isinstance(value, dict):
        normalized: dict[str, Any] = {}
        for key in sorted(value.keys(), key=lambda raw: str(raw)):
            key_name = str(key)
            if strip_volatile and key_name.lower() in volatile_field_names:
                continue
            normalized[key_name] = _canonicalize(
                value[key],
                strip_volatile=strip_volatile,
                volatile_field_names=volatile_field_names,
            )
        return normalized

    if isinstance(value, (list, tuple)):
        return [
            _canonicalize(
                item,
                strip_volatile=strip_volatile,
                volatile_field_names=volatile_field_names,
            )
            for item in value
        ]

    if isinstance(value, (set, frozenset)):
        items = [
            _canonicalize(
                item,
                strip_volatile=strip_volatile,
                volatile_field_names=volatile_field_names,
            )
            for item in value
        ]
        items.sort(key=_stable_item_sort_key)
        return items

    if isinstance(value, enum.Enum):
        return _canonicalize(
            value.value,
            strip_volatile=strip_volatile,
            volatile_field_names=volatile_field_names,
        )

    if isinstance(value, str):
        return value.replace("\r\n", "\n").replace("\r", "\n")

    if isinstance(value, bool) or value is None:
        return value

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError("NaN and infinity are not supported in canonical JSON")
        return float(f"{value:.12g}")

    if isinstance(value, datetime):
        return _normalize_datetime(value)

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, PurePath):
        return value.as_posix()

    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")

    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _stable_item_sort_key(item: Any) -> str:
    return json.dumps(item, ensure_ascii=True, separators=(",", ":"), sort_keys=True)


def _normalize_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        return value.isoformat(timespec="microseconds")
    as_utc = value.astimezone(timezone.utc)
    return as_utc.isoformat(timespec="microseconds").replace("+00:00", "Z")

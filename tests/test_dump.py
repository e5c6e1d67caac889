from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import enum
from typing import NamedTuple

from snappack.strategies import Describable, apply, describe, dump


class Color(enum.Enum):
    RED = "red"
    BLUE = "blue"


class Priority(enum.IntEnum):
    LOW = 1


class Point(NamedTuple):
    x: int
    y: int


@dataclass
class User:
    id: int
    name: str
    tags: list[str] = field(default_factory=list)
    secret: str = field(default="hidden", repr=False)


class Money:
    def __init__(self, cents: int) -> None:
        self.cents = cents

    def __snapshot_description__(self) -> str:
        return f"${self.cents // 100}.{self.cents % 100:02d}"


class Opaque:
    pass


def test_dataclass_is_walked_field_by_field() -> None:
    rendered = describe(User(id=1, name="Blob", tags=["admin"]))

    assert rendered == (
        "▿ User\n"
        "  - id: 1\n"
        "  - name: 'Blob'\n"
        "  ▿ tags: 1 element\n"
        "    - 'admin'\n"
    )


def test_mapping_renders_key_value_pairs() -> None:
    rendered = describe({"a": 1})

    assert rendered == (
        "▿ 1 key/value pair\n"
        "  ▿ (2 elements)\n"
        "    - key: 'a'\n"
        "    - value: 1\n"
    )


def test_named_tuple_and_plain_tuple() -> None:
    assert describe(Point(1, 2)) == "▿ Point\n  - x: 1\n  - y: 2\n"
    assert describe((1, "a")) == "▿ (2 elements)\n  - 1\n  - 'a'\n"


def test_sets_are_rendered_in_sorted_order() -> None:
    assert describe({3, 1, 2}) == describe({2, 3, 1})
    assert describe({"b", "a"}) == "▿ 2 members\n  - 'a'\n  - 'b'\n"


def test_enums_datetimes_and_empty_containers() -> None:
    moment = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=2)))

    assert describe(Color.RED) == "- Color.RED\n"
    assert describe(Priority.LOW) == "- Priority.LOW\n"
    assert describe(moment) == "- 2026-01-02T01:04:05+00:00\n"
    assert describe([]) == "- 0 elements\n"


def test_describable_protocol_overrides_structure() -> None:
    assert isinstance(Money(1250), Describable)
    assert describe([Money(1250)]) == "▿ 1 element\n  - $12.50\n"


def test_unknown_objects_fall_back_to_repr_without_address() -> None:
    rendered = describe(Opaque())

    assert rendered.startswith("- <")
    assert "0x" not in rendered
    assert describe(Opaque()) == rendered


def test_dump_strategy_uses_text_artifacts() -> None:
    assert apply(dump, 42) == "- 42\n"
    assert dump.path_extension == "txt"


def test_self_referencing_containers_render_cycle_marker() -> None:
    items: list[object] = []
    items.append(items)
    registry: dict[str, object] = {}
    registry["self"] = registry

    assert apply(dump, items) == "▿ 1 element\n  - <cycle>\n"
    assert describe(registry) == (
        "▿ 1 key/value pair\n"
        "  ▿ (2 elements)\n"
        "    - key: 'self'\n"
        "    - value: <cycle>\n"
    )


def test_shared_children_are_not_mistaken_for_cycles() -> None:
    shared = [1]

    assert describe([shared, shared]) == (
        "▿ 2 elements\n"
        "  ▿ 1 element\n"
        "    - 1\n"
        "  ▿ 1 element\n"
        "    - 1\n"
    )

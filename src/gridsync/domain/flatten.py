"""Flatten nested store records into grid columns.

Records fetched from the store may nest objects (``{"id": 1, "meta": {"city": "NY"}}``).
The grid only knows flat columns, so nested keys are lifted to the top level
without a parent prefix. Values are modelled as a tagged union
(``Scalar | Record | List``) and lists render as comma-joined text.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import CellValue, JsonRecord, JsonValue


@dataclass(frozen=True, slots=True)
class Scalar:
    value: CellValue


@dataclass(frozen=True, slots=True)
class Record:
    fields: tuple[tuple[str, Node], ...]


@dataclass(frozen=True, slots=True)
class List:
    items: tuple[Node, ...]


type Node = Scalar | Record | List


def to_node(value: JsonValue) -> Node:
    """Tag a decoded JSON value."""

    if isinstance(value, Mapping):
        return Record(fields=tuple((str(key), to_node(item)) for key, item in value.items()))
    if isinstance(value, (list, tuple)):
        return List(items=tuple(to_node(item) for item in value))
    return Scalar(value=value)  # type: ignore[arg-type]


def extract_keys(node: Node) -> list[str]:
    """Return column names for ``node``; non-empty nested records contribute their own keys."""

    match node:
        case Record(fields=fields):
            keys: list[str] = []
            for key, child in fields:
                if isinstance(child, Record) and child.fields:
                    keys.extend(extract_keys(child))
                else:
                    keys.append(key)
            return keys
        case _:
            return []


def flatten_node(node: Node) -> dict[str, CellValue]:
    """Lift every leaf of a record to the top level. Later keys win on collisions."""

    flat: dict[str, CellValue] = {}
    match node:
        case Record(fields=fields):
            for key, child in fields:
                match child:
                    case Record():
                        flat.update(flatten_node(child))
                    case Scalar(value=value):
                        flat[key] = value
                    case List():
                        flat[key] = _render_list(child)
    return flat


def _render_list(node: List) -> str:
    parts: list[str] = []
    for item in node.items:
        match item:
            case Scalar(value=value):
                parts.append("" if value is None else str(value))
            case List():
                parts.append(_render_list(item))
            case Record():
                parts.append(", ".join(f"{k}={v}" for k, v in flatten_node(item).items()))
    return ", ".join(parts)


def flatten_record(record: JsonRecord) -> dict[str, CellValue]:
    return flatten_node(to_node(record))


def extract_headers(records: list[JsonRecord]) -> list[str]:
    """Headers are taken from the first record, as the store returns uniform rows."""

    if not records:
        return []
    return extract_keys(to_node(records[0]))

"""Value types exchanged between the grid, the engine and the store."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

type CellValue = str | int | float | bool | None
type JsonValue = CellValue | Sequence[JsonValue] | Mapping[str, JsonValue]
type JsonRecord = Mapping[str, JsonValue]


def is_blank(value: object) -> bool:
    """Return whether a cell counts as empty (``None`` or whitespace-only text)."""

    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def snake_to_title(text: str) -> str:
    """``cargo_type`` -> ``Cargo Type``."""

    return " ".join(word.capitalize() for word in text.split("_") if word)


def same_cell(left: object, right: object) -> bool:
    """Compare two cell values as the store does: by trimmed text, ``None`` only to ``None``."""

    if left is None or right is None:
        return left is right
    return str(left).strip() == str(right).strip()

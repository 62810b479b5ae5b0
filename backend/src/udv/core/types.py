"""Field type registry: declared column types to semantic categories."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Callable


class FieldCategory(str, Enum):
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    DATE = "date"
    DATETIME = "datetime"
    IDENTIFIER = "identifier"


# Checked in order; the first matching rule wins.
_BOOLEAN_NAMES = ("boolean", "bool")
_IDENTIFIER_NAMES = ("uuid", "serial", "bigserial", "smallserial")
_INTEGER_MARKERS = ("int",)
_FLOAT_MARKERS = ("float", "decimal", "numeric", "double", "real")
_DATETIME_MARKERS = ("datetime", "timestamp")
_DATE_MARKERS = ("date",)
_TEXT_MARKERS = ("text", "varchar", "char", "string")


@lru_cache(maxsize=256)
def classify(declared_type: str) -> FieldCategory:
    """Classify a declared type string, defaulting to TEXT if unknown."""
    name = (declared_type or "").strip().lower()

    if name in _BOOLEAN_NAMES:
        return FieldCategory.BOOLEAN
    if name in _IDENTIFIER_NAMES:
        return FieldCategory.IDENTIFIER
    if any(marker in name for marker in _INTEGER_MARKERS):
        return FieldCategory.INTEGER
    if any(marker in name for marker in _FLOAT_MARKERS):
        return FieldCategory.FLOAT
    if any(marker in name for marker in _DATETIME_MARKERS):
        return FieldCategory.DATETIME
    if any(marker in name for marker in _DATE_MARKERS):
        return FieldCategory.DATE
    if any(marker in name for marker in _TEXT_MARKERS):
        return FieldCategory.TEXT
    return FieldCategory.TEXT


def is_searchable(field: Any) -> bool:
    """Whether a field takes part in global search (text category only).

    Accepts anything with a ``type`` attribute, or a declared type string.
    """
    declared = field if isinstance(field, str) else getattr(field, "type", "")
    return classify(declared) is FieldCategory.TEXT


@dataclass(frozen=True)
class CategoryHandler:
    """Per-category behavior used by coercion and form editors.

    ``parser`` turns a raw form string into a typed value and raises
    ValueError when it cannot. ``formatter`` turns a stored value into the
    string an editor displays. ``editor`` names the input kind a UI should
    render.
    """

    parser: Callable[[Any], Any]
    formatter: Callable[[Any], Any]
    editor: str
    alignment: str = "left"


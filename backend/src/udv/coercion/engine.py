"""Schema-driven value coercion.

Inbound: raw strings from filter chips and form inputs become typed values
according to the field's category. A value that cannot be parsed is passed
through unchanged and logged, so the request is still sent.

Outbound: stored values are formatted back into what a form editor shows,
and form values are filtered into the record submitted on create/update.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from udv.core.types import CategoryHandler, FieldCategory
from udv.metadata.loader import Model

logger = logging.getLogger(__name__)

TRUE_VALUES = ("true", "1")
EDIT_DATETIME_FORMAT = "%Y-%m-%dT%H:%M"
_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


# --- Parsers (raw -> typed); raise ValueError when the value is unusable ---


def _parse_number(value: Any) -> int | float:
    """Parse a decimal literal, as an int when it has no fraction or exponent.

    Forms Python's ``float()`` would also take (``nan``, ``inf``,
    ``1_000``) are rejected, as is anything that overflows to infinity.
    """
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, (int, float)):
        number = value
    else:
        text = str(value).strip()
        if not _NUMBER_RE.fullmatch(text):
            raise ValueError(f"not a number: {value!r}")
        try:
            return int(text)
        except ValueError:
            number = float(text)
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {value!r}")
    return number


def _parse_boolean(value: Any) -> bool:
    if value is True:
        return True
    return isinstance(value, str) and value in TRUE_VALUES


def _passthrough(value: Any) -> Any:
    return value


# --- Formatters (stored -> editor value) ---


def _format_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _format_boolean(value: Any) -> bool:
    return value is True or value in ("true", "1", 1)


def _format_date(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()[:10]
    return str(value).split("T")[0]


def _parse_datetime_value(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def _format_datetime(value: Any) -> str:
    """Fixed-width ``YYYY-MM-DDTHH:MM`` for datetime-local inputs.

    Aware values are shown in UTC; anything unparseable becomes "".
    """
    if value is None or value == "":
        return ""
    parsed = _parse_datetime_value(value)
    if parsed is None:
        return ""
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime(EDIT_DATETIME_FORMAT)


CATEGORY_HANDLERS: dict[FieldCategory, CategoryHandler] = {
    FieldCategory.BOOLEAN: CategoryHandler(
        parser=_parse_boolean,
        formatter=_format_boolean,
        editor="checkbox",
    ),
    FieldCategory.INTEGER: CategoryHandler(
        parser=_parse_number,
        formatter=_format_text,
        editor="number",
        alignment="right",
    ),
    FieldCategory.FLOAT: CategoryHandler(
        parser=_parse_number,
        formatter=_format_text,
        editor="number",
        alignment="right",
    ),
    FieldCategory.TEXT: CategoryHandler(
        parser=_passthrough,
        formatter=_format_text,
        editor="text",
    ),
    FieldCategory.DATE: CategoryHandler(
        parser=_passthrough,
        formatter=_format_date,
        editor="date",
    ),
    FieldCategory.DATETIME: CategoryHandler(
        parser=_passthrough,
        formatter=_format_datetime,
        editor="datetime-local",
    ),
    FieldCategory.IDENTIFIER: CategoryHandler(
        parser=_passthrough,
        formatter=_format_text,
        editor="text",
    ),
}


def get_handler(category: FieldCategory) -> CategoryHandler:
    """The parser, formatter and editor kind for ``category``."""
    return CATEGORY_HANDLERS[category]


@dataclass(frozen=True)
class CoercionResult:
    value: Any
    ok: bool


def try_coerce(raw: Any, category: FieldCategory) -> CoercionResult:
    """Coerce ``raw`` and report whether parsing succeeded."""
    try:
        return CoercionResult(value=get_handler(category).parser(raw), ok=True)
    except (ValueError, TypeError):
        return CoercionResult(value=raw, ok=False)


def coerce(raw: Any, category: FieldCategory, field_name: str | None = None) -> Any:
    """Convert a raw value to the type its category implies.

    Numeric parse failures fall back to the raw value unchanged; the
    fallback is logged at warning level.
    """
    result = try_coerce(raw, category)
    if not result.ok:
        logger.warning(
            "Could not coerce %r to %s%s; sending raw value",
            raw,
            category.value,
            f" for field '{field_name}'" if field_name else "",
        )
    return result.value


def format_for_edit(value: Any, category: FieldCategory) -> Any:
    """Render a stored value the way its form editor expects it."""
    return get_handler(category).formatter(value)


def edit_values(record: dict[str, Any], model: Model) -> dict[str, Any]:
    """Format every model field of ``record`` for an edit form."""
    return {
        f.name: format_for_edit(record.get(f.name), f.category)
        for f in model.fields
    }


# --- Outbound submission ---


class SubmissionMode(str, Enum):
    CREATE = "create"
    UPDATE = "update"


def is_auto_generated(name: str) -> bool:
    """Fields the backend fills in: ``id``, timestamps (``*_at``), foreign ids."""
    return name == "id" or "_at" in name or "_id" in name


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _unchanged(raw: Any, value: Any, stored: Any, category: FieldCategory | None) -> bool:
    if value == stored:
        return True
    if category is None:
        return False
    shown = format_for_edit(stored, category)
    return raw == shown or value == shown


@dataclass
class Submission:
    """Record data to send for a create or update."""

    mode: SubmissionMode
    data: dict[str, Any] = field(default_factory=dict)
    coercion_failures: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.data


def build_submission(
    form_values: dict[str, Any],
    model: Model,
    mode: SubmissionMode | str,
    original: dict[str, Any] | None = None,
) -> Submission:
    """Filter and coerce form values into the record to submit.

    Create drops the primary key, auto-generated fields and empty values.
    Update applies the same rules and then keeps only fields that differ
    from ``original``. A value equal to the stored one, or to the stored one
    as ``edit_values`` formats it, is unchanged. An empty result means
    nothing changed.
    """
    mode = SubmissionMode(mode)
    original = original or {}
    submission = Submission(mode=mode)

    for name, raw in form_values.items():
        if name == model.primary_key or is_auto_generated(name):
            continue
        if _is_empty(raw):
            continue

        f = model.get_field(name)
        result = try_coerce(raw, f.category) if f else CoercionResult(value=raw, ok=True)

        if mode is SubmissionMode.UPDATE and name in original:
            if _unchanged(raw, result.value, original[name], f.category if f else None):
                continue
        if not result.ok:
            logger.warning(
                "Could not coerce %r to %s for field '%s'; sending raw value",
                raw,
                f.category.value,
                name,
            )
            submission.coercion_failures.append(name)
        submission.data[name] = result.value

    return submission

"""Value coercion engine."""

from udv.coercion.engine import (
    CATEGORY_HANDLERS,
    Submission,
    SubmissionMode,
    build_submission,
    coerce,
    edit_values,
    format_for_edit,
    try_coerce,
)

__all__ = [
    "CATEGORY_HANDLERS",
    "Submission",
    "SubmissionMode",
    "build_submission",
    "coerce",
    "edit_values",
    "format_for_edit",
    "try_coerce",
]

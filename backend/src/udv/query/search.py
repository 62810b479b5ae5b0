"""Search translator: free-text search to filter clauses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from udv.query.filters import FilterClause, FilterLeaf, Operator, OrGroup


class SearchMode(str, Enum):
    GLOBAL = "global"
    COLUMN = "column"


@dataclass(frozen=True)
class SearchSpec:
    """The active search input.

    In global mode ``term`` is matched against every text field; in column
    mode only against ``column``.
    """

    mode: SearchMode = SearchMode.GLOBAL
    term: str = ""
    column: str | None = None

    @property
    def is_active(self) -> bool:
        if not self.term.strip():
            return False
        return self.mode is SearchMode.GLOBAL or bool(self.column)


def build_search(
    term: str,
    fields: Sequence[str],
    mode: SearchMode | str = SearchMode.GLOBAL,
    column: str | None = None,
) -> FilterClause | None:
    """Translate a search term into a clause, or None when there is nothing to search."""
    mode = SearchMode(mode)
    text = (term or "").strip()
    if not text:
        return None

    if mode is SearchMode.COLUMN:
        if not column:
            return None
        return FilterLeaf(field=column, operator=Operator.CONTAINS, value=text)

    if not fields:
        return None
    return OrGroup(
        tuple(FilterLeaf(field=name, operator=Operator.CONTAINS, value=text) for name in fields)
    )


def search_clause(spec: SearchSpec | None, searchable_fields: Sequence[str]) -> FilterClause | None:
    if spec is None:
        return None
    return build_search(spec.term, searchable_fields, spec.mode, spec.column)

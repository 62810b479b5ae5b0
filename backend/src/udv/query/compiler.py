"""Query descriptor compiler.

Combines the filter list, search clause, sort, group-by and pagination
window into the single descriptor sent to the execution engine. The
compiler never fails: unknown fields and operators are left for the
engine to reject.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from udv.coercion.engine import coerce
from udv.metadata.loader import Model
from udv.query.filters import (
    AndGroup,
    FilterClause,
    FilterLeaf,
    OrGroup,
    compile_filters,
    encode_filter,
)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortSpec:
    field: str
    direction: SortDirection = SortDirection.ASC

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "direction": self.direction.value}


def toggle_sort(current: SortSpec | None, column: str) -> SortSpec | None:
    """Next sort after a click on ``column``'s header.

    A new column sorts ascending; the active ascending column flips to
    descending; the active descending column clears the sort.
    """
    if current is None or current.field != column:
        return SortSpec(field=column, direction=SortDirection.ASC)
    if current.direction is SortDirection.ASC:
        return SortSpec(field=column, direction=SortDirection.DESC)
    return None


@dataclass(frozen=True)
class GroupSpec:
    field: str


@dataclass(frozen=True)
class Aggregate:
    fn: str
    field: str
    alias: str

    def to_dict(self) -> dict[str, str]:
        return {"fn": self.fn, "field": self.field, "alias": self.alias}


def group_aggregates(model: Model) -> list[Aggregate]:
    """The fixed aggregate pair emitted alongside a group key."""
    return [
        Aggregate(fn="count", field="", alias="count"),
        Aggregate(fn="count", field=model.primary_key, alias="total_rows"),
    ]


@dataclass(frozen=True)
class QueryDescriptor:
    """Compiled, serializable query."""

    model: str
    limit: int
    offset: int
    fields: tuple[str, ...] | None = None
    filters: FilterClause | None = None
    sort: tuple[SortSpec, ...] = field(default_factory=tuple)
    group_by: tuple[str, ...] = field(default_factory=tuple)
    aggregates: tuple[Aggregate, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Wire JSON. Absent parts are omitted, never sent empty."""
        body: dict[str, Any] = {"model": self.model}
        if self.fields:
            body["fields"] = list(self.fields)
        if self.filters is not None:
            body["filters"] = encode_filter(self.filters)
        if self.sort:
            body["sort"] = [s.to_dict() for s in self.sort]
        body["pagination"] = {"limit": self.limit, "offset": self.offset}
        if self.group_by:
            body["group_by"] = list(self.group_by)
            body["aggregates"] = [a.to_dict() for a in self.aggregates]
        return body


def coerce_clause(clause: FilterClause, model: Model) -> FilterClause:
    """Coerce leaf values by the declared type of their field.

    Leaves on fields the model does not know keep their raw value.
    """
    if isinstance(clause, FilterLeaf):
        category = model.category_of(clause.field)
        if category is None:
            return clause
        value = coerce(clause.value, category, field_name=clause.field)
        return FilterLeaf(field=clause.field, operator=clause.operator, value=value)
    if isinstance(clause, AndGroup):
        return AndGroup(tuple(coerce_clause(c, model) for c in clause.clauses))
    if isinstance(clause, OrGroup):
        return OrGroup(tuple(coerce_clause(c, model) for c in clause.clauses))
    raise TypeError(f"Not a filter clause: {clause!r}")


def compile_query(
    model: Model,
    filter_leaves: Sequence[FilterClause] = (),
    search: FilterClause | None = None,
    sort: SortSpec | None = None,
    group: GroupSpec | None = None,
    page: int = 1,
    page_size: int = 25,
    fields: Sequence[str] | None = None,
) -> QueryDescriptor:
    """Build the descriptor for one query.

    The search clause, when present, is placed ahead of the filter leaves
    and the combined list is canonicalized together: one clause stands
    alone, several are ANDed in order.
    """
    offset = (page - 1) * page_size

    clauses: list[FilterClause] = []
    if search is not None:
        clauses.append(search)
    clauses.extend(coerce_clause(leaf, model) for leaf in filter_leaves)
    filters = compile_filters(clauses)

    group_by: tuple[str, ...] = ()
    aggregates: tuple[Aggregate, ...] = ()
    if group is not None:
        group_by = (group.field,)
        aggregates = tuple(group_aggregates(model))

    return QueryDescriptor(
        model=model.name,
        limit=page_size,
        offset=offset,
        fields=tuple(fields) if fields else None,
        filters=filters,
        sort=(sort,) if sort is not None else (),
        group_by=group_by,
        aggregates=aggregates,
    )

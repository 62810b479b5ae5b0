"""Filter model: predicate clauses, the UI's flat filter list, and the wire encoder."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Operator(str, Enum):
    """Comparison operators a filter leaf may use (UI vocabulary)."""

    EQUALS = "equals"
    CONTAINS = "contains"
    STARTSWITH = "startswith"
    ENDSWITH = "endswith"
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"

    @classmethod
    def parse(cls, name: str | Operator) -> Operator:
        """Resolve a UI operator name. Unknown names raise ValueError."""
        if isinstance(name, Operator):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            allowed = ", ".join(op.value for op in cls)
            raise ValueError(f"Unknown filter operator '{name}'. Allowed: {allowed}") from None

    @property
    def wire(self) -> str:
        return encode_operator(self)


def encode_operator(op: Operator) -> str:
    """Map an operator to the symbol the execution engine understands."""
    if op is Operator.EQUALS:
        return "="
    if op is Operator.CONTAINS:
        return "contains"
    if op is Operator.STARTSWITH:
        return "starts_with"
    if op is Operator.ENDSWITH:
        return "ends_with"
    if op is Operator.GT:
        return ">"
    if op is Operator.LT:
        return "<"
    if op is Operator.GTE:
        return ">="
    if op is Operator.LTE:
        return "<="
    raise AssertionError(f"Unhandled operator: {op!r}")


@dataclass(frozen=True)
class FilterLeaf:
    field: str
    operator: Operator
    value: Any


@dataclass(frozen=True)
class AndGroup:
    clauses: tuple[FilterClause, ...]

    def __post_init__(self):
        if not self.clauses:
            raise ValueError("AND group needs at least one clause")


@dataclass(frozen=True)
class OrGroup:
    clauses: tuple[FilterClause, ...]

    def __post_init__(self):
        if not self.clauses:
            raise ValueError("OR group needs at least one clause")


FilterClause = Union[FilterLeaf, AndGroup, OrGroup]


def compile_filters(leaves: list[FilterClause] | tuple[FilterClause, ...]) -> FilterClause | None:
    """Assemble a flat clause list into a tree.

    No clauses gives no filter, a single clause is returned unwrapped, and
    two or more are wrapped in one AND group in their original order.
    """
    if not leaves:
        return None
    if len(leaves) == 1:
        return leaves[0]
    return AndGroup(tuple(leaves))


def encode_filter(clause: FilterClause) -> dict[str, Any]:
    """Encode a clause tree as wire JSON.

    Leaves become ``{field, op, value}``; groups ``{"and": [...]}`` or
    ``{"or": [...]}``.
    """
    if isinstance(clause, FilterLeaf):
        return {
            "field": clause.field,
            "op": encode_operator(clause.operator),
            "value": clause.value,
        }
    if isinstance(clause, AndGroup):
        return {"and": [encode_filter(c) for c in clause.clauses]}
    if isinstance(clause, OrGroup):
        return {"or": [encode_filter(c) for c in clause.clauses]}
    raise TypeError(f"Not a filter clause: {clause!r}")


# --- UI filter list ---


_id_counter = itertools.count(1)


def _next_filter_id() -> str:
    return f"f{next(_id_counter)}"


@dataclass(frozen=True)
class FilterEntry:
    """A leaf as the UI holds it, tagged with an id for removal."""

    id: str
    leaf: FilterLeaf


@dataclass(frozen=True)
class FilterList:
    """Ordered list of active filter leaves.

    Immutable: ``add_leaf`` and ``remove_leaf`` return a new list. Ids are
    local to the process and never reach the compiled descriptor.
    """

    entries: tuple[FilterEntry, ...] = field(default_factory=tuple)

    def add_leaf(self, field_name: str, operator: Operator | str, value: Any) -> FilterList:
        entry = FilterEntry(
            id=_next_filter_id(),
            leaf=FilterLeaf(field=field_name, operator=Operator.parse(operator), value=value),
        )
        return FilterList(self.entries + (entry,))

    def remove_leaf(self, filter_id: str) -> FilterList:
        return FilterList(tuple(e for e in self.entries if e.id != filter_id))

    @property
    def leaves(self) -> list[FilterLeaf]:
        return [e.leaf for e in self.entries]

    @property
    def last_id(self) -> str | None:
        return self.entries[-1].id if self.entries else None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

"""Immutable query state and its transitions.

Every UI event maps to one method that returns a new ``QueryState``;
``compile`` is a pure function of the state. Any transition that changes
what rows match (model, filters, search, sort, grouping) sends the user
back to page 1.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from udv.metadata.loader import Model
from udv.query.compiler import GroupSpec, QueryDescriptor, SortSpec, compile_query, toggle_sort
from udv.query.filters import FilterList, Operator
from udv.query.pagination import DEFAULT_PAGE_SIZE, PaginationWindow
from udv.query.search import SearchMode, SearchSpec, search_clause


@dataclass(frozen=True)
class QueryState:
    model: Model | None = None
    filters: FilterList = field(default_factory=FilterList)
    search: SearchSpec = field(default_factory=SearchSpec)
    sort: SortSpec | None = None
    group: GroupSpec | None = None
    fields: tuple[str, ...] | None = None
    pagination: PaginationWindow = field(default_factory=PaginationWindow)

    @classmethod
    def initial(cls, page_size: int = DEFAULT_PAGE_SIZE) -> QueryState:
        return cls(pagination=PaginationWindow(page_size=page_size))

    def _changed(self, **changes: Any) -> QueryState:
        return replace(self, pagination=self.pagination.reset(), **changes)

    # --- model ---

    def select_model(self, model: Model) -> QueryState:
        """Switch models, discarding all per-model query state."""
        return QueryState(
            model=model,
            pagination=PaginationWindow(page_size=self.pagination.page_size),
        )

    # --- filters ---

    def add_filter(self, field_name: str, operator: Operator | str, value: Any) -> QueryState:
        """Append a filter leaf. Field, operator and a non-empty value are required."""
        if not field_name:
            raise ValueError("A filter needs a field")
        if not operator:
            raise ValueError("A filter needs an operator")
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("A filter needs a value")
        return self._changed(filters=self.filters.add_leaf(field_name, operator, value))

    def remove_filter(self, filter_id: str) -> QueryState:
        return self._changed(filters=self.filters.remove_leaf(filter_id))

    def clear_filters(self) -> QueryState:
        return self._changed(filters=FilterList())

    # --- search ---

    def set_search_mode(self, mode: SearchMode | str) -> QueryState:
        """Switch search mode; the other mode's input is cleared."""
        mode = SearchMode(mode)
        if mode is self.search.mode:
            return self
        return self._changed(search=SearchSpec(mode=mode))

    def set_search_term(self, term: str) -> QueryState:
        return self._changed(search=replace(self.search, term=term or ""))

    def set_search_column(self, column: str | None) -> QueryState:
        """Pick the column for column search; the typed term starts over."""
        return self._changed(search=SearchSpec(mode=SearchMode.COLUMN, column=column or None))

    def clear_search(self) -> QueryState:
        return self._changed(search=SearchSpec(mode=self.search.mode))

    # --- sort / group / projection ---

    def click_sort(self, column: str) -> QueryState:
        return self._changed(sort=toggle_sort(self.sort, column))

    def set_group_by(self, field_name: str | None) -> QueryState:
        group = GroupSpec(field=field_name) if field_name else None
        return self._changed(group=group)

    def set_fields(self, fields: list[str] | None) -> QueryState:
        return replace(self, fields=tuple(fields) if fields else None)

    # --- pagination ---

    def set_page_size(self, size: int) -> QueryState:
        return replace(self, pagination=self.pagination.set_page_size(size))

    def go_to_page(self, page: int) -> QueryState:
        return replace(self, pagination=self.pagination.go_to_page(page))

    def apply_result(self, row_count: int, total: int | None = None) -> QueryState:
        return replace(self, pagination=self.pagination.on_result(row_count, total))

    # --- compilation ---

    def compile(self) -> QueryDescriptor | None:
        """Descriptor for the current state, or None before a model is chosen."""
        if self.model is None:
            return None
        return compile_query(
            self.model,
            filter_leaves=self.filters.leaves,
            search=search_clause(self.search, self.model.searchable_fields),
            sort=self.sort,
            group=self.group,
            page=self.pagination.page,
            page_size=self.pagination.page_size,
            fields=self.fields,
        )

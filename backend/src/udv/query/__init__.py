"""Query-model compiler: filters, search, sort, grouping and pagination.

Usage:
    from udv.query import FilterList, SortSpec, compile_query

    filters = FilterList().add_leaf("total", "gt", "100")
    descriptor = compile_query(model, filters.leaves, sort=SortSpec("created_at"))
    body = descriptor.to_dict()
"""

from udv.query.compiler import (
    Aggregate,
    GroupSpec,
    QueryDescriptor,
    SortDirection,
    SortSpec,
    compile_query,
    toggle_sort,
)
from udv.query.filters import (
    AndGroup,
    FilterClause,
    FilterEntry,
    FilterLeaf,
    FilterList,
    Operator,
    OrGroup,
    compile_filters,
    encode_filter,
)
from udv.query.pagination import PAGE_SIZE_OPTIONS, PaginationWindow
from udv.query.search import SearchMode, SearchSpec, build_search

__all__ = [
    "Aggregate",
    "AndGroup",
    "FilterClause",
    "FilterEntry",
    "FilterLeaf",
    "FilterList",
    "GroupSpec",
    "Operator",
    "OrGroup",
    "PAGE_SIZE_OPTIONS",
    "PaginationWindow",
    "QueryDescriptor",
    "SearchMode",
    "SearchSpec",
    "SortDirection",
    "SortSpec",
    "build_search",
    "compile_filters",
    "compile_query",
    "encode_filter",
    "toggle_sort",
]

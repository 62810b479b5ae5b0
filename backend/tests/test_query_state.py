"""Tests for query state transitions."""

import pytest

from udv.query.compiler import SortDirection, SortSpec
from udv.query.pagination import PaginationWindow
from udv.query.search import SearchMode
from udv.session.state import QueryState


@pytest.fixture
def state(orders):
    """Orders selected, on page 3 of a 200-row result."""
    s = QueryState.initial().select_model(orders)
    return s.apply_result(25, total=200).go_to_page(3)


class TestQueryState:
    def test_initial_state_compiles_to_nothing(self):
        assert QueryState.initial().compile() is None

    def test_initial_page_size(self):
        assert QueryState.initial(50).pagination.page_size == 50

    def test_fixture_is_on_page_three(self, state):
        assert state.pagination.page == 3
        assert state.compile().offset == 50

    def test_select_model_discards_query_state(self, state, users):
        state = state.add_filter("status", "equals", "open").click_sort("id")
        switched = state.select_model(users)
        assert switched.model is users
        assert len(switched.filters) == 0
        assert switched.sort is None
        assert switched.pagination == PaginationWindow(page_size=25)

    def test_add_filter_resets_page(self, state):
        new = state.add_filter("total", "gt", "100")
        assert new.pagination.page == 1
        assert len(new.filters) == 1

    @pytest.mark.parametrize(
        "field_name,operator,value",
        [("", "equals", "x"), ("status", "", "x"), ("status", "equals", ""), ("status", "equals", None)],
    )
    def test_add_filter_requires_all_parts(self, state, field_name, operator, value):
        with pytest.raises(ValueError):
            state.add_filter(field_name, operator, value)

    def test_remove_filter_resets_page(self, state):
        with_filter = state.add_filter("status", "equals", "open").apply_result(25, total=200).go_to_page(2)
        removed = with_filter.remove_filter(with_filter.filters.last_id)
        assert len(removed.filters) == 0
        assert removed.pagination.page == 1

    def test_clear_filters(self, state):
        assert len(state.add_filter("status", "equals", "a").clear_filters().filters) == 0

    def test_click_sort_cycles_and_resets_page(self, state):
        first = state.click_sort("created_at")
        assert first.sort == SortSpec("created_at", SortDirection.ASC)
        assert first.pagination.page == 1
        assert first.click_sort("created_at").sort.direction is SortDirection.DESC
        assert first.click_sort("created_at").click_sort("created_at").sort is None

    def test_group_by_resets_page(self, state):
        grouped = state.set_group_by("user_id")
        assert grouped.group.field == "user_id"
        assert grouped.pagination.page == 1
        assert grouped.set_group_by(None).group is None

    def test_set_fields_keeps_page(self, state):
        projected = state.set_fields(["id", "total"])
        assert projected.fields == ("id", "total")
        assert projected.pagination.page == 3

    def test_set_page_size_resets_page(self, state):
        resized = state.set_page_size(100)
        assert resized.pagination.page_size == 100
        assert resized.pagination.page == 1

    def test_go_to_page_out_of_range(self, state):
        assert state.go_to_page(99) == state


class TestSearchState:
    def test_search_term_resets_page(self, state):
        searched = state.set_search_term("rush")
        assert searched.search.term == "rush"
        assert searched.pagination.page == 1

    def test_switching_mode_clears_term(self, state):
        searched = state.set_search_term("rush").set_search_mode(SearchMode.COLUMN)
        assert searched.search.mode is SearchMode.COLUMN
        assert searched.search.term == ""

    def test_same_mode_is_noop(self, state):
        assert state.set_search_mode("global") is state

    def test_column_change_clears_term(self, state):
        s = state.set_search_column("status").set_search_term("open").set_search_column("notes")
        assert s.search.column == "notes"
        assert s.search.term == ""

    def test_clear_search_keeps_mode(self, state):
        s = state.set_search_column("status").set_search_term("open").clear_search()
        assert s.search.mode is SearchMode.COLUMN
        assert s.search.term == ""

    def test_compile_includes_global_search(self, state):
        body = state.set_search_term("rush").compile().to_dict()
        assert body["filters"] == {
            "or": [
                {"field": "status", "op": "contains", "value": "rush"},
                {"field": "notes", "op": "contains", "value": "rush"},
            ]
        }

    def test_compile_search_and_filter(self, state):
        body = state.set_search_term("rush").add_filter("total", "gte", "10").compile().to_dict()
        assert len(body["filters"]["and"]) == 2
        assert body["filters"]["and"][1] == {"field": "total", "op": ">=", "value": 10}

    def test_compile_search_and_two_filters_flat(self, state):
        s = state.set_search_term("rush").add_filter("total", "gte", "10").add_filter("paid", "equals", "true")
        clauses = s.compile().to_dict()["filters"]["and"]
        assert len(clauses) == 3
        assert "or" in clauses[0]
        assert clauses[1:] == [
            {"field": "total", "op": ">=", "value": 10},
            {"field": "paid", "op": "=", "value": True},
        ]

    def test_column_mode_without_column_adds_nothing(self, state):
        s = state.set_search_mode("column").set_search_term("rush")
        assert "filters" not in s.compile().to_dict()

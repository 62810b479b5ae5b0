"""Tests for search term translation."""

from udv.query.filters import FilterLeaf, Operator, OrGroup
from udv.query.search import SearchMode, SearchSpec, build_search, search_clause


class TestBuildSearch:
    def test_global_search_ors_every_field(self):
        clause = build_search("ann", ["name", "email"])
        assert clause == OrGroup(
            (
                FilterLeaf("name", Operator.CONTAINS, "ann"),
                FilterLeaf("email", Operator.CONTAINS, "ann"),
            )
        )

    def test_term_is_trimmed(self):
        clause = build_search("  ann  ", ["name"])
        assert clause.clauses[0].value == "ann"

    def test_single_field_still_wrapped_in_or(self):
        assert isinstance(build_search("x", ["name"]), OrGroup)

    def test_blank_term_gives_nothing(self):
        assert build_search("", ["name"]) is None
        assert build_search("   ", ["name"]) is None
        assert build_search(None, ["name"]) is None

    def test_no_searchable_fields_gives_nothing(self):
        assert build_search("ann", []) is None

    def test_column_mode(self):
        clause = build_search("ann", ["name", "email"], SearchMode.COLUMN, "email")
        assert clause == FilterLeaf("email", Operator.CONTAINS, "ann")

    def test_column_mode_accepts_string(self):
        clause = build_search("ann", [], "column", "email")
        assert clause == FilterLeaf("email", Operator.CONTAINS, "ann")

    def test_column_mode_without_column(self):
        assert build_search("ann", ["name"], SearchMode.COLUMN, None) is None


class TestSearchSpec:
    def test_is_active(self):
        assert SearchSpec(term="ann").is_active
        assert not SearchSpec(term="  ").is_active
        assert not SearchSpec(mode=SearchMode.COLUMN, term="ann").is_active
        assert SearchSpec(mode=SearchMode.COLUMN, term="ann", column="name").is_active

    def test_search_clause(self, users):
        clause = search_clause(SearchSpec(term="ann"), users.searchable_fields)
        assert [leaf.field for leaf in clause.clauses] == ["name", "email"]

    def test_search_clause_none(self):
        assert search_clause(None, ["name"]) is None

"""Tests for the pagination window."""

import pytest

from udv.query.pagination import PAGE_SIZE_OPTIONS, PaginationWindow, validate_page_size


def window(page=1, page_size=25, total=0):
    return PaginationWindow(page=page, page_size=page_size, total_count=total)


class TestPaginationWindow:
    def test_offset(self):
        assert window(page=3, page_size=25, total=200).offset == 50
        assert window().offset == 0

    def test_total_pages(self):
        assert window(total=0).total_pages == 0
        assert window(total=25).total_pages == 1
        assert window(total=26).total_pages == 2

    def test_item_range(self):
        w = window(page=2, page_size=10, total=15)
        assert (w.start_item, w.end_item) == (11, 15)
        assert window().start_item == 0

    def test_go_to_page(self):
        assert window(total=100).go_to_page(4).page == 4

    @pytest.mark.parametrize("target", [0, -1, 5])
    def test_out_of_range_is_ignored(self, target):
        w = window(total=100)
        assert w.go_to_page(target) == w

    def test_next_and_previous(self):
        w = window(total=60)
        assert w.previous_page() == w
        w = w.next_page().next_page()
        assert w.page == 3
        assert not w.has_next
        assert w.next_page() == w
        assert w.previous_page().page == 2

    def test_set_page_size_resets_page(self):
        w = window(page=3, total=200).set_page_size(50)
        assert (w.page, w.page_size) == (1, 50)

    def test_set_page_size_rejects_unknown(self):
        with pytest.raises(ValueError, match="Unsupported page size"):
            window().set_page_size(30)

    def test_reset(self):
        assert window(page=4, total=200).reset().page == 1


class TestOnResult:
    def test_exact_total(self):
        w = window().on_result(25, total=130)
        assert (w.total_count, w.exact) == (130, True)
        assert w.total_pages == 6

    def test_full_page_estimates_more(self):
        w = window(page=2, page_size=10, total=20).on_result(10)
        assert w.total_count == 21
        assert not w.exact
        assert w.has_next

    def test_short_page_pins_total(self):
        w = window(page=2, page_size=10, total=21).on_result(4)
        assert (w.total_count, w.exact) == (14, True)
        assert not w.has_next

    def test_page_clamped_when_total_shrinks(self):
        w = window(page=5, page_size=10, total=100).on_result(0, total=12)
        assert w.page == 2

    def test_empty_result_keeps_page_one(self):
        w = window().on_result(0)
        assert w.page == 1
        assert w.total_pages == 0


class TestPageNumbers:
    def test_few_pages_all_shown(self):
        assert window(total=100).page_numbers() == [1, 2, 3, 4]

    def test_near_start(self):
        assert window(page=2, page_size=10, total=200).page_numbers() == [1, 2, 3, 4, None, 20]

    def test_near_end(self):
        assert window(page=19, page_size=10, total=200).page_numbers() == [1, None, 17, 18, 19, 20]

    def test_middle(self):
        assert window(page=10, page_size=10, total=200).page_numbers() == [1, None, 9, 10, 11, None, 20]


def test_page_size_options():
    assert PAGE_SIZE_OPTIONS == (10, 25, 50, 100)
    assert validate_page_size(100) == 100

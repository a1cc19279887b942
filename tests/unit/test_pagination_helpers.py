from listing_core import go_to_pages, page_window, pages_to_display, serialize_per_page_options, summary
from listing_core.pagination import display_range


def test_pages_to_display_slides_around_current_page() -> None:
    assert pages_to_display(1, 10) == (1, 2, 3, 4, 5)
    assert pages_to_display(2, 10) == (1, 2, 3, 4, 5)
    assert pages_to_display(6, 10) == (4, 5, 6, 7, 8)
    assert pages_to_display(9, 10) == (6, 7, 8, 9, 10)
    assert pages_to_display(2, 3) == (1, 2, 3)
    assert pages_to_display(1, 0) == ()


def test_page_window_flags() -> None:
    window = page_window(page=2, per_page=10, count=95)

    assert window.pages_count == 10
    assert window.has_prev is True
    assert window.has_next is True

    last = page_window(page=10, per_page=10, count=95)
    assert last.has_next is False


def test_display_range_and_summary() -> None:
    assert display_range(1, 10, 95) == (1, 10)
    assert display_range(10, 10, 95) == (91, 95)
    assert display_range(None, 10, 95) == (0, 0)
    assert display_range(1, 10, 0) == (0, 0)

    result = summary(page=2, per_page=10, count=15, visible_count=5)
    assert (result.from_, result.to, result.visible_count, result.count) == (11, 15, 5, 15)


def test_go_to_pages_lists_every_page() -> None:
    assert go_to_pages(count=21, per_page=10) == [1, 2, 3]
    assert go_to_pages(count=0, per_page=10) == []


def test_per_page_options_are_serialized() -> None:
    assert serialize_per_page_options([10, {"value": 25, "label": "twenty five"}]) == [
        {"value": 10, "label": "10"},
        {"value": 25, "label": "twenty five"},
    ]
    assert [option["value"] for option in serialize_per_page_options()] == [10, 25, 50, 100]

import pytest

from task_api.pagination import Pagination, page_offset, paginate


@pytest.mark.parametrize(
    "page, expected",
    [
        (1, Pagination(total_pages=3, has_next=True, has_prev=False)),
        (2, Pagination(total_pages=3, has_next=True, has_prev=True)),
        (3, Pagination(total_pages=3, has_next=False, has_prev=True)),
    ],
)
def test_paginate_25_items_by_10(page, expected):
    assert paginate(page, 10, 25) == expected


def test_paginate_empty_result():
    result = paginate(1, 10, 0)

    assert result.total_pages == 0
    assert result.has_next is False
    assert result.has_prev is False


def test_paginate_exact_multiple():
    result = paginate(2, 5, 10)

    assert result.total_pages == 2
    assert result.has_next is False


def test_page_beyond_last_has_no_next():
    result = paginate(5, 10, 25)

    assert result.has_next is False
    assert result.has_prev is True


@pytest.mark.parametrize("page, limit, expected", [(1, 100, 0), (4, 7, 21), (5, 10, 40)])
def test_page_offset(page, limit, expected):
    assert page_offset(page, limit) == expected

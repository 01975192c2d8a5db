import math
from typing import NamedTuple


class Pagination(NamedTuple):
    total_pages: int
    has_next: bool
    has_prev: bool


def page_offset(page: int, limit: int) -> int:
    """Row offset of the first item on ``page`` (1-based)."""
    return (page - 1) * limit


def paginate(page: int, limit: int, total_count: int) -> Pagination:
    """Compute navigation flags for one page of a filtered result.

    ``page`` and ``limit`` are assumed validated (page >= 1, limit >= 1).
    An empty result has zero pages and no neighbours.
    """
    total_pages = math.ceil(total_count / limit) if total_count > 0 else 0
    return Pagination(
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )

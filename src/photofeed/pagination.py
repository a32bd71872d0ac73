"""Slicing of the fully aggregated gallery feed."""

from typing import List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def resolve_page_size(page_size: Optional[int], limit: Optional[int], default: int) -> int:
    """Pick the effective page size.

    ``limit`` stands in for ``page_size`` when that is absent and otherwise
    caps it.
    """
    if page_size is None:
        return limit or default
    if limit is not None:
        return min(page_size, limit)
    return page_size


def paginate(items: Sequence[T], page: int, page_size: int) -> Tuple[List[T], int]:
    """Return the 1-indexed ``page`` of ``items`` and the full item count.

    Pages past the end yield an empty slice; ``total`` never depends on the
    requested window.
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    start_index = (page - 1) * page_size
    end_index = min(start_index + page_size, len(items))
    return list(items[start_index:end_index]), len(items)

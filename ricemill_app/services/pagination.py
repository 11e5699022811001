from __future__ import annotations

import logging
from dataclasses import dataclass
from math import ceil
from typing import Any, Callable, List, Mapping, Optional, Protocol, Tuple, Union

logger = logging.getLogger(__name__)

ELLIPSIS = "..."

PageNumber = Union[int, str]
PageCallback = Callable[[int], None]


@dataclass(frozen=True)
class PaginationData:
    """Page metadata supplied by the caller in remote mode. Trusted as-is."""
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def coerce(cls, value: Union["PaginationData", Mapping[str, Any]]) -> "PaginationData":
        if isinstance(value, PaginationData):
            return value
        return cls(
            page=int(value.get("page", 1)),
            limit=int(value.get("limit", 0)),
            total=int(value.get("total", 0)),
            pages=int(value.get("pages", 1)),
        )


def page_window(current: int, total: int, radius: int = 2) -> List[PageNumber]:
    """Page buttons to render: first, last and ``radius`` pages around current.

    Each run of hidden pages collapses into one ``ELLIPSIS``.
    """
    if total < 1:
        return []
    current = min(max(current, 1), total)
    shown = {1, total}
    shown.update(range(max(1, current - radius), min(total, current + radius) + 1))

    result: List[PageNumber] = []
    previous: Optional[int] = None
    for number in sorted(shown):
        if previous is not None and number - previous > 1:
            result.append(ELLIPSIS)
        result.append(number)
        previous = number
    return result


class Paginator(Protocol):
    @property
    def current_page(self) -> int: ...

    @property
    def total_pages(self) -> int: ...

    @property
    def total_items(self) -> int: ...

    @property
    def page_size(self) -> int: ...

    @property
    def page_offset(self) -> int: ...

    def go_to(self, page: int) -> None: ...

    def set_page_size(self, size: int) -> None: ...

    def first(self) -> None: ...

    def prev(self) -> None: ...

    def next(self) -> None: ...

    def last(self) -> None: ...

    def page_numbers(self) -> List[PageNumber]: ...

    def showing_range(self, shown: int) -> Tuple[int, int, int]: ...


class _NavigationMixin:
    window_radius: int = 2

    def first(self) -> None:
        self.go_to(1)

    def prev(self) -> None:
        self.go_to(self.current_page - 1)

    def next(self) -> None:
        self.go_to(self.current_page + 1)

    def last(self) -> None:
        self.go_to(self.total_pages)

    @property
    def page_offset(self) -> int:
        return (self.current_page - 1) * self.page_size

    def page_numbers(self) -> List[PageNumber]:
        return page_window(self.current_page, self.total_pages, self.window_radius)

    def showing_range(self, shown: int) -> Tuple[int, int, int]:
        """(first, last, total) item numbers for a page that displays ``shown`` rows."""
        total = self.total_items
        if not total or shown <= 0:
            return 0, 0, total
        start = self.page_offset + 1
        return start, start + shown - 1, total


class LocalPaginator(_NavigationMixin):
    """Slices a row set the grid holds in full."""

    def __init__(self, page_size: int = 10, *, window_radius: int = 2) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self._page = 1
        self._page_size = page_size
        self._row_count = 0
        self.window_radius = window_radius

    @property
    def current_page(self) -> int:
        return self._page

    @property
    def total_pages(self) -> int:
        return max(1, ceil(self._row_count / self._page_size))

    @property
    def total_items(self) -> int:
        return self._row_count

    @property
    def page_size(self) -> int:
        return self._page_size

    def set_row_count(self, count: int) -> None:
        self._row_count = max(0, count)
        self._page = min(self._page, self.total_pages)

    def go_to(self, page: int) -> None:
        self._page = min(max(int(page), 1), self.total_pages)
        logger.debug("Local page -> %s of %s", self._page, self.total_pages)

    def set_page_size(self, size: int) -> None:
        size = int(size)
        if size < 1:
            raise ValueError(f"page_size must be >= 1, got {size}")
        self._page_size = size
        self._page = 1

    def slice(self, rows: List[Any]) -> List[Any]:
        start = self.page_offset
        return rows[start:start + self._page_size]


class RemotePaginator(_NavigationMixin):
    """Mirrors caller metadata and forwards navigation requests."""

    def __init__(
        self,
        pagination_data: Union[PaginationData, Mapping[str, Any]],
        on_page_change: Optional[PageCallback] = None,
        on_page_size_change: Optional[PageCallback] = None,
        *,
        window_radius: int = 2,
    ) -> None:
        self._data = PaginationData.coerce(pagination_data)
        self.on_page_change = on_page_change
        self.on_page_size_change = on_page_size_change
        self.window_radius = window_radius

    @property
    def data(self) -> PaginationData:
        return self._data

    @property
    def current_page(self) -> int:
        return self._data.page

    @property
    def total_pages(self) -> int:
        return self._data.pages

    @property
    def total_items(self) -> int:
        return self._data.total

    @property
    def page_size(self) -> int:
        return self._data.limit

    def sync(self, pagination_data: Union[PaginationData, Mapping[str, Any]]) -> None:
        self._data = PaginationData.coerce(pagination_data)

    def go_to(self, page: int) -> None:
        # Bounds belong to the caller; its metadata may be newer than ours.
        if self.on_page_change is None:
            logger.warning("Page %s requested but no on_page_change callback is set", page)
            return
        logger.debug("Requesting remote page %s", page)
        self.on_page_change(int(page))

    def set_page_size(self, size: int) -> None:
        if self.on_page_size_change is None:
            logger.warning("Page size %s requested but no on_page_size_change callback is set", size)
            return
        logger.debug("Requesting remote page size %s", size)
        self.on_page_size_change(int(size))

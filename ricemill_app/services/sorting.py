from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from ricemill_app.enums import SortDirection
from ricemill_app.services.columns import Column, cell_text

logger = logging.getLogger(__name__)

IndexedRow = Tuple[int, Any]


@dataclass(frozen=True)
class SortState:
    column_index: Optional[int] = None
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def coerce(cls, value: Union["SortState", Mapping[str, Any], None]) -> "SortState":
        if value is None:
            return cls()
        if isinstance(value, SortState):
            return value
        column_index = value.get("column_index", value.get("columnIndex", value.get("col")))
        direction = value.get("direction", value.get("dir")) or SortDirection.ASC
        return cls(
            column_index=None if column_index is None else int(column_index),
            direction=SortDirection(direction),
        )

    def next_for(self, column_index: int) -> "SortState":
        if self.column_index == column_index:
            return SortState(column_index, self.direction.toggled())
        return SortState(column_index, SortDirection.ASC)


SortCallback = Callable[[SortState], None]


def compare_values(a: Any, b: Any, direction: SortDirection) -> int:
    """Compare two cell values; ``None`` trails in both directions."""
    if a is None and b is None:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1
    if isinstance(a, str):
        a = a.lower()
    if isinstance(b, str):
        b = b.lower()
    try:
        if a < b:
            result = -1
        elif a > b:
            result = 1
        else:
            result = 0
    except TypeError:
        a_text, b_text = cell_text(a).lower(), cell_text(b).lower()
        result = (a_text > b_text) - (a_text < b_text)
    return result if direction is SortDirection.ASC else -result


def sort_rows(rows: Sequence[IndexedRow], column: Column, direction: SortDirection) -> List[IndexedRow]:
    if column.sort_fn is not None:
        sort_fn = column.sort_fn

        def _cmp(left: IndexedRow, right: IndexedRow) -> int:
            return sort_fn(left[1], right[1], direction.value)
    else:
        def _cmp(left: IndexedRow, right: IndexedRow) -> int:
            return compare_values(column.value(left[1]), column.value(right[1]), direction)

    return sorted(rows, key=cmp_to_key(_cmp))


class Sorter(Protocol):
    @property
    def state(self) -> SortState: ...

    def sort(self, column_index: int) -> SortState: ...

    def apply(self, columns: Sequence[Column], rows: Sequence[IndexedRow]) -> List[IndexedRow]: ...

    def sync(self, sort_data: Union[SortState, Mapping[str, Any], None]) -> None: ...


class LocalSorter:
    """Sorts a copy of the full row set before it is paginated."""

    def __init__(self, initial: Optional[SortState] = None) -> None:
        self._state = initial or SortState()

    @property
    def state(self) -> SortState:
        return self._state

    def sort(self, column_index: int) -> SortState:
        self._state = self._state.next_for(column_index)
        logger.debug("Local sort on column %s %s", column_index, self._state.direction.value)
        return self._state

    def clear(self) -> None:
        self._state = SortState()

    def sync(self, sort_data: Union[SortState, Mapping[str, Any], None]) -> None:
        # Local state is owned by the grid.
        return

    def apply(self, columns: Sequence[Column], rows: Sequence[IndexedRow]) -> List[IndexedRow]:
        index = self._state.column_index
        if index is None or not 0 <= index < len(columns):
            return list(rows)
        return sort_rows(rows, columns[index], self._state.direction)


class RemoteSorter:
    """Emits sort intents; the caller returns rows already ordered."""

    def __init__(
        self,
        on_sort: Optional[SortCallback],
        sort_data: Union[SortState, Mapping[str, Any], None] = None,
    ) -> None:
        self.on_sort = on_sort
        self._state = SortState.coerce(sort_data)

    @property
    def state(self) -> SortState:
        return self._state

    def sort(self, column_index: int) -> SortState:
        requested = self._state.next_for(column_index)
        if self.on_sort is None:
            logger.warning("Sort requested on column %s but no on_sort callback is set", column_index)
            return requested
        logger.debug("Requesting remote sort %s", requested)
        self.on_sort(requested)
        return requested

    def clear(self) -> None:
        if self.on_sort is not None:
            self.on_sort(SortState())

    def sync(self, sort_data: Union[SortState, Mapping[str, Any], None]) -> None:
        self._state = SortState.coerce(sort_data)

    def apply(self, columns: Sequence[Column], rows: Sequence[IndexedRow]) -> List[IndexedRow]:
        return list(rows)

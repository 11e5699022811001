from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ricemill_app.enums import PaginationMode
from ricemill_app.services.column_layout import MIN_COLUMN_WIDTH, ColumnLayout, HeaderBand
from ricemill_app.services.columns import (
    Column,
    ColumnDescriptor,
    GroupDescriptor,
    normalize_column_groups,
    normalize_columns,
)
from ricemill_app.services.delete_workflow import (
    DeleteWarning,
    DeleteWorkflow,
    RowAction,
    as_action_list,
)
from ricemill_app.services.export_service import ExportService
from ricemill_app.services.pagination import (
    LocalPaginator,
    PageCallback,
    PaginationData,
    Paginator,
    RemotePaginator,
)
from ricemill_app.services.selection import SelectionManager
from ricemill_app.services.sorting import (
    IndexedRow,
    LocalSorter,
    RemoteSorter,
    SortCallback,
    Sorter,
    SortState,
)

logger = logging.getLogger(__name__)

ActionsProvider = Callable[[Any, int], Union[RowAction, Sequence[RowAction], None]]
BulkActionsProvider = Callable[[List[int], List[Any]], Union[RowAction, Sequence[RowAction], None]]

UNCHANGED = object()


class DetailExpansion:
    """At most one expanded row, identified by its global index."""

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self.expanded: Optional[int] = None

    def toggle(self, index: int) -> Optional[int]:
        if not self.enabled:
            return None
        self.expanded = None if self.expanded == index else index
        return self.expanded

    def is_expanded(self, index: int) -> bool:
        return self.enabled and self.expanded == index

    def collapse(self) -> None:
        self.expanded = None


class GridState:
    """Headless state of one data grid.

    Local mode is used unless ``pagination_data`` is given, in which case the
    grid is in remote mode for its whole lifetime: the caller owns slicing and
    ordering, and page, size and sort changes are forwarded through the
    callbacks. Rows are re-supplied with ``set_rows``.
    """

    def __init__(
        self,
        columns: Sequence[ColumnDescriptor],
        rows: Sequence[Any] = (),
        *,
        page_size: int = 10,
        pagination_data: Union[PaginationData, Mapping[str, Any], None] = None,
        sort_data: Union[SortState, Mapping[str, Any], None] = None,
        on_page_change: Optional[PageCallback] = None,
        on_page_size_change: Optional[PageCallback] = None,
        on_sort: Optional[SortCallback] = None,
        actions: Optional[ActionsProvider] = None,
        bulk_actions: Optional[BulkActionsProvider] = None,
        has_detail: bool = False,
        delete_warning: DeleteWarning = None,
        loading: bool = False,
        empty: str = "No data",
        id_fields: Sequence[str] = ("id", "_id"),
        window_radius: int = 2,
        min_column_width: int = MIN_COLUMN_WIDTH,
        column_groups: Optional[Sequence[GroupDescriptor]] = None,
    ) -> None:
        self.columns: List[Column] = normalize_columns(columns)
        self.column_groups = normalize_column_groups(column_groups, self.columns)
        self.id_fields = tuple(id_fields)
        self.actions = actions
        self.bulk_actions_provider = bulk_actions
        self.loading = loading
        self.empty = empty

        self.pagination: Paginator
        self.sorter: Sorter
        if pagination_data is not None:
            self.mode = PaginationMode.REMOTE
            self.pagination = RemotePaginator(
                pagination_data,
                on_page_change,
                on_page_size_change,
                window_radius=window_radius,
            )
            self.sorter = RemoteSorter(on_sort, sort_data)
        else:
            self.mode = PaginationMode.LOCAL
            self.pagination = LocalPaginator(page_size, window_radius=window_radius)
            self.sorter = LocalSorter(SortState.coerce(sort_data) if sort_data is not None else None)

        self.selection = SelectionManager()
        self.layout = ColumnLayout(min_width=min_column_width)
        self.detail = DetailExpansion(enabled=has_detail)
        self.delete = DeleteWorkflow(delete_warning)

        self._rows: List[Any] = []
        self.set_rows(rows)

    @property
    def remote(self) -> bool:
        return self.mode is PaginationMode.REMOTE

    @property
    def rows(self) -> List[Any]:
        return list(self._rows)

    @property
    def sort_state(self) -> SortState:
        return self.sorter.state

    @property
    def is_empty(self) -> bool:
        return not self._rows

    def set_rows(
        self,
        rows: Sequence[Any],
        pagination_data: Union[PaginationData, Mapping[str, Any], None] = None,
        sort_data: Any = UNCHANGED,
        loading: Optional[bool] = None,
    ) -> None:
        old_keys = self._window_keys()
        self._rows = list(rows)
        if isinstance(self.pagination, RemotePaginator):
            if pagination_data is not None:
                self.pagination.sync(pagination_data)
            if sort_data is not UNCHANGED:
                self.sorter.sync(sort_data)
        elif isinstance(self.pagination, LocalPaginator):
            self.pagination.set_row_count(len(self._rows))
        if loading is not None:
            self.loading = loading

        new_keys = self._window_keys()
        window = self._window() if self.remote else None
        self.selection.revalidate(old_keys, new_keys, window=window)
        self._remap_detail(old_keys, new_keys)
        logger.debug("Grid rows set: %s row(s), page %s", len(self._rows), self.pagination.current_page)

    def _remap_detail(self, old_keys: Dict[int, Tuple[str, Any]], new_keys: Dict[int, Tuple[str, Any]]) -> None:
        expanded = self.detail.expanded
        if expanded is None:
            return
        key = old_keys.get(expanded)
        if key is None:
            if expanded not in new_keys:
                self.detail.collapse()
            return
        moved = next((index for index, new_key in new_keys.items() if new_key == key), None)
        if moved is None:
            self.detail.collapse()
        else:
            self.detail.expanded = moved

    def _row_key(self, row: Any, index: int) -> Tuple[str, Any]:
        for field in self.id_fields:
            if isinstance(row, Mapping):
                value = row.get(field)
            else:
                value = getattr(row, field, None)
            if value is not None:
                return ("id", value)
        return ("pos", index)

    def _window(self) -> range:
        start = self.pagination.page_offset if self.remote else 0
        return range(start, start + len(self._rows))

    def _window_keys(self) -> Dict[int, Tuple[str, Any]]:
        return {index: self._row_key(row, index) for index, row in self._indexed()}

    def _indexed(self) -> List[IndexedRow]:
        offset = self.pagination.page_offset if self.remote else 0
        return [(offset + i, row) for i, row in enumerate(self._rows)]

    # -- ordering and paging ------------------------------------------------

    def ordered_rows(self) -> List[IndexedRow]:
        return self.sorter.apply(self.columns, self._indexed())

    def page_rows(self) -> List[IndexedRow]:
        ordered = self.ordered_rows()
        if isinstance(self.pagination, LocalPaginator):
            return self.pagination.slice(ordered)
        return ordered

    def page_indices(self) -> List[int]:
        return [index for index, _ in self.page_rows()]

    def row_number(self, position: int) -> int:
        return self.pagination.page_offset + position + 1

    def sort(self, column_index: int) -> SortState:
        self._check_column(column_index)
        if not self.columns[column_index].sortable:
            return self.sorter.state
        return self.sorter.sort(column_index)

    def clear_sort(self) -> None:
        self.sorter.clear()

    def set_page_size(self, size: int) -> None:
        self.pagination.set_page_size(size)

    # -- selection ------------------------------------------------------------

    def toggle_row(self, index: int) -> bool:
        return self.selection.toggle_row(index)

    def select_all_on_page(self, checked: bool) -> None:
        self.selection.select_all_on_page(checked, self.page_indices())

    def page_all_selected(self) -> bool:
        return self.selection.all_selected(self.page_indices())

    def selected_rows(self) -> List[Any]:
        available = dict(self._indexed())
        return [available[i] for i in self.selection.selected if i in available]

    def bulk_actions(self) -> List[RowAction]:
        if self.bulk_actions_provider is None or not len(self.selection):
            return []
        page_rows = [row for _, row in self.page_rows()]
        return as_action_list(self.bulk_actions_provider(self.selection.selected, page_rows))

    def activate_bulk(self, action: RowAction) -> None:
        """Run ``action`` on the selected rows this grid currently holds.

        In remote mode selections on other pages have no row here; they are
        neither passed to the handler nor cleared by it.
        """
        available = dict(self._indexed())
        indices = [i for i in self.selection.selected if i in available]
        rows = [available[i] for i in indices]
        if not action.destructive:
            action.on_click(rows, indices)
            return
        handled = {self._row_key(row, i) for i, row in zip(indices, rows)}

        def _run(target_rows: Any, target_indices: Any) -> None:
            action.on_click(target_rows, target_indices)
            # The handler may have re-supplied rows; match by identity.
            current = self._window_keys()
            self.selection.discard(
                i for i in self.selection.selected if current.get(i) in handled or (i not in current and i in indices)
            )

        self.delete.request(rows, indices, _run)

    # -- columns, detail and actions --------------------------------------

    def _check_column(self, column_index: int) -> None:
        if not 0 <= column_index < len(self.columns):
            raise ValueError(f"Column index {column_index} out of range (0..{len(self.columns) - 1})")

    def visible_columns(self) -> List[Column]:
        return self.layout.visible(self.columns)

    def header_bands(self) -> List[HeaderBand]:
        if not self.column_groups:
            return []
        return self.layout.header_bands(self.columns, self.column_groups)

    def toggle_column(self, column_index: int) -> bool:
        self._check_column(column_index)
        return self.layout.toggle_column(column_index)

    def toggle_detail(self, index: int) -> Optional[int]:
        return self.detail.toggle(index)

    def actions_for(self, row: Any, index: int) -> List[RowAction]:
        if self.actions is None:
            return []
        return as_action_list(self.actions(row, index))

    def activate(self, action: RowAction, row: Any, index: int) -> None:
        self.delete.dispatch(action, row, index)

    def confirm_delete(self) -> bool:
        return self.delete.confirm()

    def cancel_delete(self) -> bool:
        return self.delete.cancel()

    # -- export -------------------------------------------------------------

    def export_rows(self) -> List[Any]:
        # Remote mode only holds the current page.
        return [row for _, row in self.ordered_rows()]

    def export_csv(self) -> str:
        return ExportService.to_csv(self.export_rows(), self.visible_columns())

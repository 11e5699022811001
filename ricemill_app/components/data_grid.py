from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import flet as ft

from ricemill_app.components.button_styles import cancel_button, danger_button
from ricemill_app.config import GridConfig
from ricemill_app.services.columns import Column, ColumnConfig, ColumnDescriptor, GroupDescriptor
from ricemill_app.services.column_layout import ResizeGesture
from ricemill_app.services.delete_workflow import DeleteWarning, RowAction
from ricemill_app.services.export_service import ExportService
from ricemill_app.services.grid_state import (
    UNCHANGED,
    ActionsProvider,
    BulkActionsProvider,
    GridState,
)
from ricemill_app.services.pagination import ELLIPSIS, PageCallback, PaginationData
from ricemill_app.services.sorting import SortCallback, SortState

__all__ = ["ColumnConfig", "DataGrid"]

logger = logging.getLogger(__name__)

DetailRenderer = Callable[[Any, int], ft.Control]

COLUMN_SPACING = 24
HORIZONTAL_MARGIN = 24
LEADING_WIDTH = 40


def _label(text: str, *, size: int = 12, color: str = "#64748B", weight: Optional[ft.FontWeight] = None) -> ft.Text:
    return ft.Text(text, size=size, color=color, weight=weight)


class DataGrid:
    """Flet rendering of a ``GridState``.

    Owns no data: every interaction goes through the state object and the
    table is rebuilt from it afterwards. In remote mode the caller answers
    page, size and sort callbacks by calling ``set_rows`` with the new page.
    """

    def __init__(
        self,
        columns: Sequence[ColumnDescriptor],
        rows: Sequence[Any] = (),
        *,
        page_size: Optional[int] = None,
        page_size_options: Optional[Sequence[int]] = None,
        pagination_data: Union[PaginationData, Mapping[str, Any], None] = None,
        sort_data: Union[SortState, Mapping[str, Any], None] = None,
        on_page_change: Optional[PageCallback] = None,
        on_page_size_change: Optional[PageCallback] = None,
        on_sort: Optional[SortCallback] = None,
        actions: Optional[ActionsProvider] = None,
        bulk_actions: Optional[BulkActionsProvider] = None,
        render_detail: Optional[DetailRenderer] = None,
        selectable: bool = False,
        hideable_columns: bool = False,
        resizable_columns: bool = False,
        exportable: bool = False,
        show_row_numbers: bool = False,
        loading: bool = False,
        empty: str = "No data",
        delete_warning: DeleteWarning = None,
        column_groups: Optional[Sequence[GroupDescriptor]] = None,
        export_filename: Optional[str] = None,
        title: str = "",
        config: Optional[GridConfig] = None,
    ) -> None:
        self.config = config or GridConfig()
        self.state = GridState(
            columns,
            rows,
            page_size=page_size or self.config.page_size,
            pagination_data=pagination_data,
            sort_data=sort_data,
            on_page_change=on_page_change,
            on_page_size_change=on_page_size_change,
            on_sort=on_sort,
            actions=actions,
            bulk_actions=bulk_actions,
            has_detail=render_detail is not None,
            delete_warning=delete_warning,
            loading=loading,
            empty=empty,
            window_radius=self.config.page_window,
            min_column_width=self.config.min_column_width,
            column_groups=column_groups,
        )
        self.render_detail = render_detail
        self.selectable = selectable
        self.hideable_columns = hideable_columns
        self.resizable_columns = resizable_columns
        self.exportable = exportable
        self.show_row_numbers = show_row_numbers
        self.export_filename = export_filename or self.config.export_filename
        self.page_size_options = list(page_size_options or self.config.page_size_options)
        self.title = title
        self.last_export_path = None
        self._gesture: Optional[ResizeGesture] = None
        self._width_boxes: Dict[int, List[ft.Container]] = {}
        self.root: Optional[ft.Control] = None

        self.title_label = ft.Text(title, size=16, weight=ft.FontWeight.BOLD, color="#1E293B")
        self.results_label = _label("")
        self.export_button = ft.IconButton(
            icon=ft.Icons.FILE_DOWNLOAD_ROUNDED,
            tooltip="Export CSV",
            on_click=lambda e: self._export(),
            visible=exportable,
        )
        self.columns_row = ft.Row([], wrap=True, spacing=12, run_spacing=6, visible=hideable_columns)
        self.select_all_checkbox: Optional[ft.Checkbox] = None
        self.table = ft.DataTable(
            columns=[],
            rows=[],
            column_spacing=COLUMN_SPACING,
            horizontal_margin=HORIZONTAL_MARGIN,
            show_checkbox_column=False,
        )
        if hasattr(self.table, "heading_row_color"):
            self.table.heading_row_color = "#F1F5F9"  # type: ignore[attr-defined]
        if hasattr(self.table, "heading_text_style"):
            self.table.heading_text_style = ft.TextStyle(  # type: ignore[attr-defined]
                size=12,
                weight=ft.FontWeight.W_700,
                color="#475569",
            )
        if hasattr(self.table, "data_text_style"):
            self.table.data_text_style = ft.TextStyle(size=13, color="#1E293B")  # type: ignore[attr-defined]

        self.detail_panel = ft.Container(
            visible=False,
            bgcolor="#F8FAFC",
            padding=ft.padding.symmetric(horizontal=24, vertical=16),
            border=ft.border.all(1, "#E2E8F0"),
            border_radius=8,
        )
        self.bulk_bar = ft.Row([], spacing=8, visible=False)
        self.selected_label = _label("0 selected", color="#1D4ED8")

        self._empty_message = ft.Text(empty, size=12, color="#64748B")
        self._empty_overlay = ft.Container(
            visible=False,
            alignment=ft.alignment.center,
            padding=40,
            content=self._empty_message,
        )
        self._loading_overlay = ft.Container(
            visible=False,
            alignment=ft.alignment.center,
            padding=40,
            content=ft.Column(
                [ft.ProgressRing(), ft.Text("Loading...", size=12, color="#64748B")],
                alignment=ft.MainAxisAlignment.CENTER,
                horizontal_alignment=ft.CrossAxisAlignment.CENTER,
                spacing=8,
                tight=True,
            ),
        )
        self.group_band = ft.Row([], spacing=0, visible=False)
        self._table_viewport = ft.Column(
            [ft.Row([ft.Column([self.group_band, self.table], spacing=0)], scroll=ft.ScrollMode.ADAPTIVE)],
            scroll=ft.ScrollMode.AUTO,
        )

        self.first_button = ft.IconButton(icon=ft.Icons.FIRST_PAGE, tooltip="First page", on_click=lambda e: self._navigate("first"))
        self.prev_button = ft.IconButton(icon=ft.Icons.ARROW_BACK, tooltip="Previous page", on_click=lambda e: self._navigate("prev"))
        self.next_button = ft.IconButton(icon=ft.Icons.ARROW_FORWARD, tooltip="Next page", on_click=lambda e: self._navigate("next"))
        self.last_button = ft.IconButton(icon=ft.Icons.LAST_PAGE, tooltip="Last page", on_click=lambda e: self._navigate("last"))
        self.page_buttons = ft.Row([], spacing=2)
        self.pagination_label = _label("Page 1 of 1")
        self.range_label = _label("")
        self.page_size_dropdown = ft.Dropdown(
            label="Rows",
            width=100,
            value=str(self.state.pagination.page_size),
            options=[ft.dropdown.Option(str(size), str(size)) for size in self.page_size_options],
            on_change=lambda e: self._on_page_size_change(e.control.value),
        )
        self.page_nav = ft.Row(
            [
                self.first_button,
                self.prev_button,
                self.page_buttons,
                self.next_button,
                self.last_button,
                self.pagination_label,
            ],
            spacing=2,
        )
        self.pagination_bar = ft.Row(
            [ft.Row([self.page_size_dropdown, self.range_label], spacing=8), self.page_nav],
            alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
        )

        self._confirm_dialog = ft.AlertDialog(modal=True)
        self._snack_text = ft.Text("")
        self._snack = ft.SnackBar(content=self._snack_text, open=False)
        self._render()

    # -- public API -----------------------------------------------------------

    def build(self) -> ft.Control:
        header = ft.Row(
            [ft.Column([self.title_label, self.results_label], spacing=2), self.export_button],
            alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
        )
        self.root = ft.Column(
            [
                header,
                self.columns_row,
                ft.Container(
                    ft.Column([self._loading_overlay, self._empty_overlay, self._table_viewport], spacing=0),
                    bgcolor="#FFFFFF",
                    border=ft.border.all(1, "#E2E8F0"),
                    border_radius=12,
                ),
                self.detail_panel,
                ft.Row([self.selected_label, self.bulk_bar], spacing=12),
                self.pagination_bar,
            ],
            spacing=8,
        )
        return self.root

    def set_rows(
        self,
        rows: Sequence[Any],
        pagination_data: Union[PaginationData, Mapping[str, Any], None] = None,
        sort_data: Any = UNCHANGED,
        loading: Optional[bool] = None,
    ) -> None:
        self.state.set_rows(rows, pagination_data, sort_data, loading=loading)
        self._refresh()

    def set_loading(self, value: bool) -> None:
        self.state.loading = value
        self._refresh()

    def update(self) -> None:
        if not self.root or getattr(self.root, "page", None) is None:
            return
        try:
            self.root.page.update()
        except Exception:
            logger.exception("DataGrid update failed")

    # -- rendering --------------------------------------------------------------

    def _refresh(self) -> None:
        self._render()
        self.update()

    def _render(self) -> None:
        state = self.state
        visible = state.visible_columns()
        page_rows = state.page_rows()
        self._width_boxes = {}

        self.table.columns = self._build_columns(visible)
        self.table.rows = self._build_rows(visible, page_rows)
        self._sync_sort_indicator(visible)
        self._render_group_band()
        self._render_column_toggles()
        self._render_detail(page_rows)
        self._render_bulk_bar()
        self._render_pagination(len(page_rows))

        loading = state.loading
        self._loading_overlay.visible = loading
        self._empty_overlay.visible = not loading and state.is_empty
        self._table_viewport.visible = not loading and not state.is_empty
        self._empty_message.value = state.empty
        self.results_label.value = f"Total: {state.pagination.total_items} records"

    def _leading_offset(self) -> int:
        return int(self.show_row_numbers) + int(self.selectable)

    def _build_columns(self, visible: List[Column]) -> List[ft.DataColumn]:
        result: List[ft.DataColumn] = []
        if self.show_row_numbers:
            result.append(ft.DataColumn(ft.Container(ft.Text("#"), width=LEADING_WIDTH)))
        if self.selectable:
            self.select_all_checkbox = ft.Checkbox(
                value=self.state.page_all_selected(),
                tooltip="Select all (current page)",
                on_change=lambda e: self._toggle_select_all(bool(e.control.value)),
            )
            result.append(ft.DataColumn(ft.Container(self.select_all_checkbox, width=LEADING_WIDTH)))
        else:
            self.select_all_checkbox = None
        for col in visible:
            label: ft.Control = ft.Text(col.label)
            if self.resizable_columns:
                label = ft.Row([label, self._resize_handle(col)], spacing=4, tight=True)
            on_sort = (lambda e, idx=col.idx: self._on_sort(idx)) if col.sortable else None
            result.append(ft.DataColumn(self._sized(col, label), on_sort=on_sort))
        if self.state.actions is not None:
            result.append(ft.DataColumn(ft.Text("Actions")))
        return result

    def _column_width(self, col: Column) -> Optional[int]:
        width = self.state.layout.width(col.idx)
        if width is None:
            width = col.width
        if width is None and self.state.column_groups:
            # Grouped header bands need fixed column widths to line up.
            width = self.state.layout.default_width
        return width

    def _sized(self, col: Column, content: ft.Control) -> ft.Container:
        box = ft.Container(content=content, width=self._column_width(col))
        self._width_boxes.setdefault(col.idx, []).append(box)
        return box

    def _resize_handle(self, col: Column) -> ft.Control:
        return ft.GestureDetector(
            content=ft.Container(width=6, height=22, bgcolor="#CBD5E1", border_radius=3),
            mouse_cursor=ft.MouseCursor.RESIZE_COLUMN,
            drag_interval=16,
            on_horizontal_drag_start=lambda e, c=col: self._resize_start(c, e),
            on_horizontal_drag_update=lambda e: self._resize_move(e),
            on_horizontal_drag_end=lambda e: self._resize_end(),
        )

    def _build_rows(self, visible: List[Column], page_rows: List[Any]) -> List[ft.DataRow]:
        result: List[ft.DataRow] = []
        for position, (index, row) in enumerate(page_rows):
            on_tap = (lambda e, i=index: self._toggle_detail(i)) if self.render_detail else None
            cells: List[ft.DataCell] = []
            if self.show_row_numbers:
                cells.append(
                    ft.DataCell(ft.Container(ft.Text(str(self.state.row_number(position)), size=12), width=LEADING_WIDTH))
                )
            if self.selectable:
                checkbox = ft.Checkbox(
                    value=self.state.selection.is_selected(index),
                    on_change=lambda e, i=index: self._toggle_row(i),
                )
                cells.append(ft.DataCell(ft.Container(checkbox, width=LEADING_WIDTH)))
            for col in visible:
                cells.append(ft.DataCell(self._sized(col, self._render_cell(col, row)), on_tap=on_tap))
            if self.state.actions is not None:
                cells.append(ft.DataCell(self._render_actions(row, index)))
            result.append(
                ft.DataRow(
                    cells=cells,
                    selected=self.state.selection.is_selected(index),
                    color="#EEF2FF" if self.state.detail.is_expanded(index) else None,
                )
            )
        return result

    def _render_cell(self, col: Column, row: Any) -> ft.Control:
        if col.render is not None:
            rendered = col.render(col.value(row), row)
            if isinstance(rendered, ft.Control):
                return rendered
            return ft.Text("" if rendered is None else str(rendered), size=12)
        return ft.Text(col.text(row), size=12, overflow=ft.TextOverflow.ELLIPSIS)

    def _render_actions(self, row: Any, index: int) -> ft.Control:
        buttons: List[ft.Control] = []
        for action in self.state.actions_for(row, index):
            color = "#DC2626" if action.destructive else "#4F46E5"
            handler = lambda e, a=action, r=row, i=index: self._on_action(a, r, i)
            if action.icon:
                buttons.append(ft.IconButton(icon=action.icon, tooltip=action.label, icon_color=color, on_click=handler))
            else:
                buttons.append(ft.TextButton(action.label, on_click=handler, style=ft.ButtonStyle(color=color)))
        return ft.Row(buttons, spacing=4, tight=True)

    def _sync_sort_indicator(self, visible: List[Column]) -> None:
        sort = self.state.sort_state
        position = next((i for i, col in enumerate(visible) if col.idx == sort.column_index), None)
        if position is None:
            self.table.sort_column_index = None
            return
        self.table.sort_column_index = position + self._leading_offset()
        self.table.sort_ascending = sort.direction.value == "asc"

    def _render_group_band(self) -> None:
        bands = self.state.header_bands()
        self.group_band.visible = bool(bands)
        if not bands:
            self.group_band.controls = []
            return
        lead = HORIZONTAL_MARGIN - COLUMN_SPACING // 2 + self._leading_offset() * (LEADING_WIDTH + COLUMN_SPACING)
        controls: List[ft.Control] = [ft.Container(width=lead)]
        for band in bands:
            controls.append(
                ft.Container(
                    content=ft.Text(band.label, size=11, weight=ft.FontWeight.W_700, color="#475569"),
                    width=self.state.layout.band_width(band, COLUMN_SPACING),
                    alignment=ft.alignment.center,
                    padding=ft.padding.symmetric(vertical=6),
                    bgcolor="#E2E8F0" if band.label else None,
                    border=ft.border.all(1, "#CBD5E1") if band.label else None,
                )
            )
        self.group_band.controls = controls

    def _render_column_toggles(self) -> None:
        if not self.hideable_columns:
            return
        self.columns_row.controls = [_label("Columns:", weight=ft.FontWeight.BOLD)] + [
            ft.Checkbox(
                label=col.label,
                value=not self.state.layout.is_hidden(col.idx),
                on_change=lambda e, idx=col.idx: self._toggle_column(idx),
            )
            for col in self.state.columns
        ]

    def _render_detail(self, page_rows: List[Any]) -> None:
        expanded = self.state.detail.expanded
        match = next(((i, row) for i, row in page_rows if i == expanded), None)
        if self.render_detail is None or match is None:
            self.detail_panel.visible = False
            self.detail_panel.content = None
            return
        index, row = match
        self.detail_panel.content = self.render_detail(row, index)
        self.detail_panel.visible = True

    def _render_bulk_bar(self) -> None:
        count = len(self.state.selection)
        self.selected_label.value = f"{count} selected"
        self.selected_label.visible = self.selectable and count > 0
        actions = self.state.bulk_actions() if self.selectable else []
        self.bulk_bar.controls = [self._bulk_button(action) for action in actions]
        self.bulk_bar.visible = bool(actions)

    def _bulk_button(self, action: RowAction) -> ft.Control:
        on_click = lambda e, a=action: self._on_bulk_action(a)
        if action.destructive:
            return danger_button(action.label, on_click, icon=action.icon or ft.Icons.DELETE_SWEEP_ROUNDED)
        return cancel_button(action.label, on_click, icon=action.icon)

    def _render_pagination(self, shown: int) -> None:
        pagination = self.state.pagination
        current, total_pages = pagination.current_page, pagination.total_pages
        buttons: List[ft.Control] = []
        for number in pagination.page_numbers():
            if number == ELLIPSIS:
                buttons.append(_label("…"))
                continue
            buttons.append(
                ft.TextButton(
                    str(number),
                    disabled=number == current,
                    on_click=lambda e, n=number: self._goto_page(n),
                )
            )
        self.page_buttons.controls = buttons
        self.first_button.disabled = current <= 1
        self.prev_button.disabled = current <= 1
        self.next_button.disabled = current >= total_pages
        self.last_button.disabled = current >= total_pages
        self.pagination_label.value = f"Page {current} of {total_pages}"
        start, end, total = pagination.showing_range(shown)
        self.range_label.value = f"Showing {start} to {end} of {total} entries"
        if str(pagination.page_size) in [opt.key for opt in self.page_size_dropdown.options]:
            self.page_size_dropdown.value = str(pagination.page_size)
        # The size selector stays reachable even when everything fits on one page.
        self.page_nav.visible = self.state.remote or total_pages > 1

    # -- event handlers ----------------------------------------------------------

    def _on_sort(self, column_index: int) -> None:
        self.state.sort(column_index)
        self._refresh()

    def _navigate(self, where: str) -> None:
        getattr(self.state.pagination, where)()
        self._refresh()

    def _goto_page(self, page: int) -> None:
        self.state.pagination.go_to(page)
        self._refresh()

    def _on_page_size_change(self, value: Any) -> None:
        try:
            size = int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid page size %r", value)
            return
        self.state.set_page_size(size)
        self._refresh()

    def _toggle_row(self, index: int) -> None:
        self.state.toggle_row(index)
        self._refresh()

    def _toggle_select_all(self, checked: bool) -> None:
        self.state.select_all_on_page(checked)
        self._refresh()

    def _toggle_column(self, idx: int) -> None:
        self.state.toggle_column(idx)
        self._refresh()

    def _toggle_detail(self, index: int) -> None:
        self.state.toggle_detail(index)
        self._refresh()

    def _resize_start(self, col: Column, e: Any) -> None:
        start_x = getattr(e, "global_x", None) or getattr(e, "local_x", 0) or 0
        self._gesture = self.state.layout.begin_resize(col.idx, start_x, self._column_width(col))

    def _resize_move(self, e: Any) -> None:
        if self._gesture is None:
            return
        delta = getattr(e, "delta_x", None)
        if delta is None:
            delta = getattr(e, "primary_delta", 0) or 0
        width = self._gesture.move_by(delta)
        # Resize in place; rebuilding the header would drop the drag.
        for box in self._width_boxes.get(self._gesture.column_index, []):
            box.width = width
        self._render_group_band()
        self.update()

    def _resize_end(self) -> None:
        gesture, self._gesture = self._gesture, None
        if gesture is not None:
            gesture.end()
        self._refresh()

    def _on_action(self, action: RowAction, row: Any, index: int) -> None:
        try:
            self.state.activate(action, row, index)
        except Exception as exc:
            logger.exception("Row action %r failed", action.label)
            self._notify(f"Error: {exc}", kind="error")
            return
        if action.destructive:
            self._open_delete_dialog()
        else:
            self._refresh()

    def _on_bulk_action(self, action: RowAction) -> None:
        try:
            self.state.activate_bulk(action)
        except Exception as exc:
            logger.exception("Bulk action %r failed", action.label)
            self._notify(f"Error: {exc}", kind="error")
            return
        if action.destructive:
            self._open_delete_dialog()
        else:
            self._refresh()

    def _open_delete_dialog(self) -> None:
        self._confirm_dialog.title = ft.Text("Delete Confirmation")
        self._confirm_dialog.content = ft.Container(
            content=ft.Row(
                [
                    ft.Icon(ft.Icons.WARNING_AMBER_ROUNDED, color="#EA580C"),
                    ft.Text(self.state.delete.message(), expand=True),
                ],
                spacing=10,
            ),
            bgcolor="#FFF7ED",
            padding=12,
            border_radius=8,
            width=420,
        )
        self._confirm_dialog.actions = [
            cancel_button("Cancel", lambda e: self._cancel_delete()),
            danger_button("Delete", lambda e: self._confirm_delete()),
        ]
        self._confirm_dialog.on_dismiss = lambda e: self._cancel_delete()
        self._open_dialog()

    def _confirm_delete(self) -> None:
        try:
            self.state.confirm_delete()
        except Exception as exc:
            logger.exception("Delete handler failed")
            self._notify(f"Error deleting: {exc}", kind="error")
        finally:
            self._close_dialog()
        self._refresh()

    def _cancel_delete(self) -> None:
        if self.state.cancel_delete():
            self._close_dialog()

    def _open_dialog(self) -> None:
        if not self.root or getattr(self.root, "page", None) is None:
            return
        page = self.root.page
        if hasattr(page, "open"):
            page.open(self._confirm_dialog)
        else:
            self._confirm_dialog.open = True
            page.dialog = self._confirm_dialog
            page.update()

    def _close_dialog(self) -> None:
        if not self.root or getattr(self.root, "page", None) is None:
            return
        page = self.root.page
        if hasattr(page, "close"):
            page.close(self._confirm_dialog)
        else:
            self._confirm_dialog.open = False
            page.update()

    def _export(self) -> None:
        try:
            text = self.state.export_csv()
            self.last_export_path = ExportService.write_csv(text, self.export_filename, self.config.export_dir)
        except OSError as exc:
            logger.error("CSV export failed: %s", exc)
            self._notify(f"Export failed: {exc}", kind="error")
            return
        self._notify(f"Exported to {self.last_export_path}", kind="success")

    def _notify(self, message: str, kind: str = "info") -> None:
        if not self.root or getattr(self.root, "page", None) is None:
            return
        page = self.root.page
        colors: Dict[str, tuple] = {
            "error": ("#FEE2E2", "#991B1B"),
            "success": ("#DCFCE7", "#166534"),
        }
        bgcolor, text_color = colors.get(kind, ("#E2E8F0", "#111827"))
        self._snack_text.value = message
        self._snack_text.color = text_color
        self._snack.bgcolor = bgcolor
        if hasattr(page, "open"):
            page.open(self._snack)
        else:
            page.snack_bar = self._snack
            self._snack.open = True
            page.update()

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

import flet as ft

from ricemill_app.components.data_grid import ColumnConfig, DataGrid
from ricemill_app.config import GridConfig, load_config
from ricemill_app.enums import SortDirection
from ricemill_app.services.delete_workflow import RowAction, destructive
from ricemill_app.services.pagination import PaginationData
from ricemill_app.services.sorting import SortState

logger = logging.getLogger(__name__)

COLOR_BG = "#F8FAFC"
COLOR_CARD = "#FFFFFF"
COLOR_BORDER = "#E2E8F0"

VARIETIES = ["Sona Masuri", "BPT 5204", "IR 64", "Swarna", "MTU 1010"]
GODOWNS = ["Godown A", "Godown B", "Main Yard"]


def _format_money(value: Any, row: Optional[Dict[str, Any]] = None) -> str:
    if value is None:
        return "-"
    try:
        return f"₹{float(value):,.2f}"
    except (TypeError, ValueError):
        return str(value)


def sample_vendors() -> List[Dict[str, Any]]:
    names = [
        "Sri Lakshmi Traders", "Annapurna Agro", "balaji paddy co", "Ganga Rice Suppliers",
        "Kaveri Farmers Union", "Mahalakshmi Mills", "Ravi & Sons", "Sai Krishna Agencies",
        "Venkateswara Traders", "Anand Agro Link", "Bharat Grains", "Chaitanya Traders",
    ]
    vendors = []
    for i, name in enumerate(names, 1):
        vendors.append(
            {
                "id": i,
                "name": name,
                "phone": f"98480{i:05d}",
                "village": ["Nellore", "Guntur", "Kakinada", None][i % 4],
                "balance": None if i % 5 == 0 else round(12500.5 * i % 97000, 2),
            }
        )
    return vendors


def sample_deposits(count: int = 137) -> List[Dict[str, Any]]:
    start = date(2025, 4, 1)
    return [
        {
            "_id": f"dep-{i:04d}",
            "date": (start + timedelta(days=i // 3)).isoformat(),
            "variety": VARIETIES[i % len(VARIETIES)],
            "godown": GODOWNS[i % len(GODOWNS)],
            "bags": 40 + (i * 7) % 260,
            "weight": round((40 + (i * 7) % 260) * 75.5, 1),
        }
        for i in range(1, count + 1)
    ]


class InMemoryPageSource:
    """Stands in for the backend list endpoint: returns one page plus metadata."""

    def __init__(self, records: List[Dict[str, Any]], keys: List[str]) -> None:
        self.records = records
        self.keys = keys

    def fetch(self, page: int, limit: int, sort: SortState) -> Tuple[List[Dict[str, Any]], PaginationData]:
        records = list(self.records)
        if sort.column_index is not None:
            key = self.keys[sort.column_index]
            records.sort(
                key=lambda r: (r.get(key) is None, r.get(key)),
                reverse=sort.direction is SortDirection.DESC,
            )
        total = len(records)
        pages = max(1, -(-total // limit))
        page = min(max(page, 1), pages)
        start = (page - 1) * limit
        return records[start:start + limit], PaginationData(page=page, limit=limit, total=total, pages=pages)

    def delete(self, record_id: Any) -> None:
        self.records = [r for r in self.records if r.get("_id") != record_id]


def build_vendor_grid(config: GridConfig, notify) -> DataGrid:
    vendors = sample_vendors()

    def remove_vendor(row: Dict[str, Any], index: int) -> None:
        vendors.remove(row)
        grid.set_rows(vendors)
        notify(f"Vendor {row['name']} deleted")

    def remove_selected(rows: List[Dict[str, Any]], indices: List[int]) -> None:
        for row in rows:
            vendors.remove(row)
        grid.set_rows(vendors)
        notify(f"{len(rows)} vendor(s) deleted")

    grid = DataGrid(
        columns=[
            ColumnConfig(key="name", label="Vendor", width=200),
            "Phone",
            ColumnConfig(key="village", label="Village"),
            ColumnConfig(key="balance", label="Balance", formatter=_format_money),
        ],
        rows=vendors,
        actions=lambda row, i: [
            RowAction("View", lambda r, idx: notify(f"Vendor #{r['id']}"), icon=ft.Icons.VISIBILITY_OUTLINED),
            destructive("Delete", remove_vendor, icon=ft.Icons.DELETE_OUTLINE),
        ],
        bulk_actions=lambda selected, page_rows: [destructive(f"Delete {len(selected)} selected", remove_selected)],
        render_detail=lambda row, i: ft.Text(f"{row['name']} · {row['village'] or 'unknown village'} · {row['phone']}"),
        selectable=True,
        hideable_columns=True,
        resizable_columns=True,
        exportable=True,
        show_row_numbers=True,
        column_groups=[("Vendor information", ["name", "phone", "village"]), ("Accounts", ["balance"])],
        delete_warning=lambda row: f"Delete vendor {row['name']}? This action cannot be undone."
        if isinstance(row, dict)
        else "Delete the selected vendors? This action cannot be undone.",
        export_filename="vendors.csv",
        title="Vendors",
        config=config,
    )
    return grid


def build_deposit_grid(config: GridConfig, notify) -> DataGrid:
    keys = ["date", "variety", "godown", "bags", "weight"]
    source = InMemoryPageSource(sample_deposits(), keys)
    request = {"page": 1, "limit": config.page_size, "sort": SortState()}

    def reload() -> None:
        grid.set_loading(True)
        rows, meta = source.fetch(request["page"], request["limit"], request["sort"])
        grid.set_rows(rows, meta, sort_data=request["sort"], loading=False)

    def on_page_change(page: int) -> None:
        request["page"] = page
        reload()

    def on_page_size_change(size: int) -> None:
        request["limit"] = size
        request["page"] = 1
        reload()

    def on_sort(sort: SortState) -> None:
        request["sort"] = sort
        reload()

    def remove_deposit(row: Dict[str, Any], index: int) -> None:
        source.delete(row["_id"])
        reload()
        notify(f"Deposit {row['_id']} deleted")

    rows, meta = source.fetch(1, config.page_size, SortState())
    grid = DataGrid(
        columns=[
            ColumnConfig(key="date", label="Date"),
            ColumnConfig(key="variety", label="Variety"),
            ColumnConfig(key="godown", label="Godown"),
            ColumnConfig(key="bags", label="Bags"),
            ColumnConfig(key="weight", label="Weight (kg)", formatter=lambda v, _: f"{v:,.1f}"),
        ],
        rows=rows,
        pagination_data=meta,
        sort_data=SortState(),
        on_page_change=on_page_change,
        on_page_size_change=on_page_size_change,
        on_sort=on_sort,
        actions=lambda row, i: destructive("Delete", remove_deposit, icon=ft.Icons.DELETE_OUTLINE),
        exportable=True,
        show_row_numbers=True,
        export_filename="paddy_deposits.csv",
        title="Paddy deposits",
        config=config,
    )
    return grid


def main(page: ft.Page) -> None:
    config = load_config()
    page.title = "Rice Mill ERP"
    page.bgcolor = COLOR_BG
    page.padding = 24
    page.scroll = ft.ScrollMode.AUTO

    snack_text = ft.Text("")
    snack = ft.SnackBar(content=snack_text)

    def notify(message: str) -> None:
        logger.info(message)
        snack_text.value = message
        page.open(snack)

    def card(grid: DataGrid) -> ft.Control:
        return ft.Container(
            grid.build(),
            bgcolor=COLOR_CARD,
            border=ft.border.all(1, COLOR_BORDER),
            border_radius=12,
            padding=16,
        )

    page.add(
        card(build_vendor_grid(config, notify)),
        card(build_deposit_grid(config, notify)),
    )

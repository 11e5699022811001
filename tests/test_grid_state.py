import unittest

from ricemill_app.enums import DeleteState, PaginationMode, SortDirection
from ricemill_app.services.delete_workflow import RowAction, destructive
from ricemill_app.services.grid_state import DetailExpansion, GridState
from ricemill_app.services.pagination import PaginationData
from ricemill_app.services.sorting import SortState


def _rows(count):
    return [{"id": i, "name": f"Vendor {i:02d}", "bags": (i * 7) % 13} for i in range(count)]


COLUMNS = ["Id", "Name", {"key": "bags", "label": "Bags"}]


class LocalGridTests(unittest.TestCase):
    def test_mode_is_local_without_pagination_data(self):
        grid = GridState(COLUMNS, _rows(3))
        self.assertEqual(grid.mode, PaginationMode.LOCAL)
        self.assertFalse(grid.remote)

    def test_page_rows_carry_global_indices(self):
        grid = GridState(COLUMNS, _rows(25), page_size=10)
        grid.pagination.go_to(3)
        self.assertEqual(grid.page_indices(), [20, 21, 22, 23, 24])
        self.assertEqual(grid.row_number(0), 21)

    def test_select_all_on_second_page(self):
        grid = GridState(COLUMNS, _rows(25), page_size=10)
        grid.select_all_on_page(True)
        grid.pagination.next()
        grid.select_all_on_page(True)
        self.assertEqual(grid.selection.selected, list(range(20)))

        grid.select_all_on_page(False)
        self.assertEqual(grid.selection.selected, list(range(10)))

    def test_selection_on_page_two_only(self):
        grid = GridState(COLUMNS, _rows(25), page_size=10)
        grid.pagination.go_to(2)
        grid.select_all_on_page(True)
        self.assertEqual(grid.selection.selected, list(range(10, 20)))
        self.assertTrue(grid.page_all_selected())

    def test_sort_example(self):
        grid = GridState(["Id", "Name"], [{"id": 1, "name": "B"}, {"id": 2, "name": "A"}])
        grid.sort(1)
        self.assertEqual([row["id"] for _, row in grid.page_rows()], [2, 1])
        grid.sort(1)
        self.assertEqual([row["id"] for _, row in grid.page_rows()], [1, 2])

    def test_sort_applies_before_slicing_and_keeps_indices(self):
        rows = _rows(15)
        grid = GridState(COLUMNS, rows, page_size=5)
        grid.sort(0)
        grid.sort(0)
        self.assertEqual(grid.sort_state, SortState(0, SortDirection.DESC))
        self.assertEqual(grid.page_indices(), [14, 13, 12, 11, 10])
        self.assertEqual(rows, _rows(15))

    def test_sort_on_unsortable_column_is_ignored(self):
        grid = GridState([{"key": "x", "label": "X", "sortable": False}], [{"x": 2}, {"x": 1}])
        grid.sort(0)
        self.assertIsNone(grid.sort_state.column_index)

    def test_invalid_column_index(self):
        grid = GridState(COLUMNS, _rows(2))
        with self.assertRaises(ValueError):
            grid.sort(5)
        with self.assertRaises(ValueError):
            grid.toggle_column(-1)

    def test_export_uses_full_sorted_set_and_visible_columns(self):
        grid = GridState(COLUMNS, _rows(12), page_size=5)
        grid.toggle_column(2)
        grid.sort(0)
        grid.sort(0)
        text = grid.export_csv()
        lines = text.split("\n")
        self.assertEqual(lines[0], "Id,Name")
        self.assertEqual(len(lines), 13)
        self.assertEqual(lines[1], '11,"Vendor 11"')

    def test_selection_revalidated_after_refresh(self):
        rows = _rows(5)
        grid = GridState(COLUMNS, rows)
        grid.toggle_row(1)
        grid.toggle_row(3)
        # Row 1 disappears; row 3 moves to index 2.
        grid.set_rows([rows[0], rows[2], rows[3], rows[4]])
        self.assertEqual(grid.selection.selected, [2])
        self.assertEqual(grid.selected_rows(), [rows[3]])

    def test_detail_follows_row_identity_after_refresh(self):
        rows = _rows(5)
        grid = GridState(COLUMNS, rows, has_detail=True)
        grid.toggle_detail(3)
        grid.set_rows([rows[0], rows[2], rows[3], rows[4]])
        self.assertEqual(grid.detail.expanded, 2)
        self.assertIs(grid.rows[grid.detail.expanded], rows[3])

    def test_refresh_reclamps_page_and_collapses_missing_detail(self):
        grid = GridState(COLUMNS, _rows(25), page_size=10, has_detail=True)
        grid.pagination.last()
        grid.toggle_detail(24)
        grid.set_rows(_rows(8))
        self.assertEqual(grid.pagination.current_page, 1)
        self.assertIsNone(grid.detail.expanded)

    def test_row_actions_and_confirmation(self):
        deleted = []
        viewed = []
        grid = GridState(
            COLUMNS,
            _rows(3),
            actions=lambda row, i: [
                RowAction("View", lambda r, idx: viewed.append(idx)),
                destructive("Delete", lambda r, idx: deleted.append((r["id"], idx))),
            ],
        )
        [view, delete] = grid.actions_for(grid.rows[1], 1)
        grid.activate(view, grid.rows[1], 1)
        grid.activate(delete, grid.rows[1], 1)
        self.assertEqual(viewed, [1])
        self.assertEqual(grid.delete.state, DeleteState.PENDING)
        self.assertEqual(deleted, [])

        self.assertTrue(grid.confirm_delete())
        self.assertEqual(deleted, [(1, 1)])

    def test_cancelled_delete_runs_nothing(self):
        deleted = []
        grid = GridState(COLUMNS, _rows(2), actions=lambda row, i: destructive("Delete", lambda r, i: deleted.append(i)))
        [action] = grid.actions_for(grid.rows[0], 0)
        grid.activate(action, grid.rows[0], 0)
        grid.cancel_delete()
        self.assertFalse(grid.confirm_delete())
        self.assertEqual(deleted, [])

    def test_bulk_actions_require_selection(self):
        calls = []
        grid = GridState(
            COLUMNS,
            _rows(4),
            bulk_actions=lambda selected, page_rows: destructive("Delete selected", lambda rows, idx: calls.append(idx)),
        )
        self.assertEqual(grid.bulk_actions(), [])
        grid.toggle_row(0)
        grid.toggle_row(2)
        [action] = grid.bulk_actions()
        grid.activate_bulk(action)
        self.assertEqual(calls, [])
        grid.confirm_delete()
        self.assertEqual(calls, [[0, 2]])
        self.assertEqual(len(grid.selection), 0)

    def test_default_bulk_action_runs_immediately(self):
        seen = []
        grid = GridState(
            COLUMNS,
            _rows(3),
            bulk_actions=lambda selected, page_rows: [RowAction("Print", lambda rows, idx: seen.append(len(rows)))],
        )
        grid.toggle_row(1)
        grid.activate_bulk(grid.bulk_actions()[0])
        self.assertEqual(seen, [1])
        self.assertEqual(grid.selection.selected, [1])


class RemoteGridTests(unittest.TestCase):
    def setUp(self):
        self.pages = []
        self.sizes = []
        self.sorts = []
        self.grid = GridState(
            COLUMNS,
            _rows(10),
            pagination_data={"page": 1, "limit": 10, "total": 45, "pages": 5},
            sort_data={"columnIndex": None, "direction": "asc"},
            on_page_change=self.pages.append,
            on_page_size_change=self.sizes.append,
            on_sort=self.sorts.append,
        )

    def test_mode_is_remote(self):
        self.assertEqual(self.grid.mode, PaginationMode.REMOTE)

    def test_rows_are_rendered_as_supplied(self):
        self.grid.sort(1)
        self.assertEqual(self.sorts, [SortState(1, SortDirection.ASC)])
        self.assertEqual([row["id"] for _, row in self.grid.page_rows()], list(range(10)))

    def test_navigation_goes_through_callbacks(self):
        self.grid.pagination.next()
        self.grid.set_page_size(25)
        self.assertEqual(self.pages, [2])
        self.assertEqual(self.sizes, [25])
        self.assertEqual(self.grid.pagination.current_page, 1)

    def test_resupplied_page_uses_global_indices(self):
        page_two = [{"id": 100 + i} for i in range(10)]
        self.grid.toggle_row(3)
        self.grid.set_rows(page_two, PaginationData(page=2, limit=10, total=45, pages=5))
        self.assertEqual(self.grid.page_indices(), list(range(10, 20)))
        self.grid.select_all_on_page(True)
        self.assertEqual(self.grid.selection.selected, [3] + list(range(10, 20)))
        self.assertEqual(self.grid.row_number(0), 11)

    def test_sort_data_mirrors_caller(self):
        self.grid.set_rows(_rows(10), sort_data=SortState(2, SortDirection.DESC))
        self.assertEqual(self.grid.sort_state, SortState(2, SortDirection.DESC))
        self.grid.set_rows(_rows(10))
        self.assertEqual(self.grid.sort_state, SortState(2, SortDirection.DESC))

    def test_destructive_bulk_covers_only_rows_on_this_page(self):
        calls = []
        grid = GridState(
            COLUMNS,
            _rows(10),
            pagination_data={"page": 1, "limit": 10, "total": 45, "pages": 5},
            bulk_actions=lambda selected, page_rows: destructive(
                "Delete selected", lambda rows, idx: calls.append((len(rows), list(idx)))
            ),
        )
        grid.select_all_on_page(True)
        grid.set_rows([{"id": 100 + i} for i in range(10)], PaginationData(page=2, limit=10, total=45, pages=5))
        grid.select_all_on_page(True)
        [action] = grid.bulk_actions()
        grid.activate_bulk(action)
        grid.confirm_delete()
        self.assertEqual(calls, [(10, list(range(10, 20)))])
        self.assertEqual(grid.selection.selected, list(range(10)))

    def test_header_bands_follow_column_groups(self):
        grid = GridState(
            COLUMNS,
            _rows(2),
            pagination_data={"page": 1, "limit": 10, "total": 2, "pages": 1},
            column_groups=[("Vendor", ["id", "name"])],
        )
        self.assertEqual([(b.label, len(b.columns)) for b in grid.header_bands()], [("Vendor", 2), ("", 1)])
        self.assertEqual(GridState(COLUMNS, _rows(2)).header_bands(), [])

    def test_export_only_current_page(self):
        text = self.grid.export_csv()
        self.assertEqual(len(text.split("\n")), 11)


class DetailExpansionTests(unittest.TestCase):
    def test_exclusive_toggle(self):
        detail = DetailExpansion(enabled=True)
        self.assertEqual(detail.toggle(2), 2)
        self.assertEqual(detail.toggle(5), 5)
        self.assertFalse(detail.is_expanded(2))
        self.assertIsNone(detail.toggle(5))

    def test_inactive_without_renderer(self):
        detail = DetailExpansion()
        self.assertIsNone(detail.toggle(1))
        self.assertIsNone(detail.expanded)


if __name__ == "__main__":
    unittest.main()

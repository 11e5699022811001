import unittest

from ricemill_app.config import GridConfig
from ricemill_app.enums import SortDirection
from ricemill_app.services.sorting import SortState
from ricemill_app.ui_demo import InMemoryPageSource, build_deposit_grid, build_vendor_grid, sample_deposits


class InMemoryPageSourceTests(unittest.TestCase):
    def setUp(self):
        self.source = InMemoryPageSource(sample_deposits(23), ["date", "variety", "godown", "bags", "weight"])

    def test_fetch_returns_page_and_metadata(self):
        rows, meta = self.source.fetch(3, 10, SortState())
        self.assertEqual(len(rows), 3)
        self.assertEqual((meta.page, meta.limit, meta.total, meta.pages), (3, 10, 23, 3))

    def test_fetch_sorts_whole_collection(self):
        rows, _ = self.source.fetch(1, 5, SortState(3, SortDirection.DESC))
        bags = [row["bags"] for row in rows]
        self.assertEqual(bags, sorted(bags, reverse=True))
        self.assertEqual(bags[0], max(r["bags"] for r in self.source.records))

    def test_delete(self):
        self.source.delete("dep-0001")
        self.assertEqual(len(self.source.records), 22)


class DemoGridTests(unittest.TestCase):
    def test_vendor_bulk_delete(self):
        messages = []
        grid = build_vendor_grid(GridConfig(), messages.append)
        grid.state.toggle_row(0)
        grid.state.toggle_row(1)
        [action] = grid.state.bulk_actions()
        grid._on_bulk_action(action)
        self.assertIn("selected vendors", grid.state.delete.message())
        grid._confirm_delete()
        self.assertEqual(grid.state.pagination.total_items, 10)
        self.assertEqual(messages, ["2 vendor(s) deleted"])
        self.assertEqual(len(grid.state.selection), 0)

    def test_deposit_grid_reloads_pages(self):
        grid = build_deposit_grid(GridConfig(page_size=25), lambda message: None)
        self.assertTrue(grid.state.remote)
        grid._navigate("next")
        self.assertEqual(grid.state.pagination.current_page, 2)
        self.assertEqual(grid.state.rows[0]["_id"], "dep-0026")
        grid._on_sort(3)
        self.assertEqual(grid.state.sort_state, SortState(3, SortDirection.ASC))
        self.assertFalse(grid.state.loading)


if __name__ == "__main__":
    unittest.main()

import unittest

from ricemill_app.services.column_layout import ColumnLayout
from ricemill_app.services.columns import normalize_column_groups, normalize_columns


class _FakePointerHost:
    def __init__(self):
        self.listeners = []

    def subscribe(self, on_move, on_up):
        pair = (on_move, on_up)
        self.listeners.append(pair)
        return lambda: self.listeners.remove(pair)


class VisibilityTests(unittest.TestCase):
    def test_hidden_columns_preserve_relative_order(self):
        columns = normalize_columns(["A", "B", "C", "D"])
        layout = ColumnLayout()
        self.assertFalse(layout.toggle_column(1))
        layout.toggle_column(3)
        self.assertEqual([c.label for c in layout.visible(columns)], ["A", "C"])
        self.assertTrue(layout.toggle_column(1))
        self.assertEqual([c.idx for c in layout.visible(columns)], [0, 1, 2])

    def test_hiding_keeps_column_identity(self):
        columns = normalize_columns(["A", "B", "C"])
        layout = ColumnLayout()
        layout.toggle_column(0)
        [b, c] = layout.visible(columns)
        self.assertEqual((b.idx, c.idx), (1, 2))
        self.assertEqual(b.accessor, "b")


class ResizeTests(unittest.TestCase):
    def test_width_follows_pointer_linearly(self):
        layout = ColumnLayout()
        gesture = layout.begin_resize(2, start_x=100, start_width=150)
        self.assertEqual(gesture.move(130), 180)
        self.assertEqual(gesture.move(90), 140)
        gesture.end()
        self.assertEqual(layout.width(2), 140)

    def test_width_never_drops_below_floor(self):
        layout = ColumnLayout()
        with layout.begin_resize(0, start_x=500, start_width=100) as gesture:
            for x in (400, 0, -10_000):
                self.assertEqual(gesture.move(x), 60)
        self.assertEqual(layout.width(0), 60)

    def test_relative_moves_accumulate(self):
        layout = ColumnLayout()
        gesture = layout.begin_resize(0, start_x=0, start_width=100)
        gesture.move_by(15)
        gesture.move_by(10)
        self.assertEqual(layout.width(0), 125)

    def test_end_detaches_listeners_and_is_idempotent(self):
        host = _FakePointerHost()
        layout = ColumnLayout()
        gesture = layout.begin_resize(1, start_x=0, start_width=100, host=host)
        self.assertEqual(len(host.listeners), 1)

        on_move, on_up = host.listeners[0]
        on_move(40)
        on_up()
        self.assertEqual(host.listeners, [])
        self.assertFalse(gesture.active)
        self.assertIsNone(layout.active_gesture)
        gesture.end()
        self.assertIsNone(gesture.move(500))
        self.assertEqual(layout.width(1), 140)

    def test_context_manager_releases_on_error(self):
        host = _FakePointerHost()
        layout = ColumnLayout()
        with self.assertRaises(RuntimeError):
            with layout.begin_resize(0, 0, 100, host=host):
                raise RuntimeError("pointer lost")
        self.assertEqual(host.listeners, [])
        self.assertIsNone(layout.active_gesture)

    def test_new_gesture_releases_previous(self):
        host = _FakePointerHost()
        layout = ColumnLayout()
        first = layout.begin_resize(0, 0, 100, host=host)
        second = layout.begin_resize(1, 0, 100, host=host)
        self.assertFalse(first.active)
        self.assertIs(layout.active_gesture, second)
        self.assertEqual(len(host.listeners), 1)

    def test_start_width_defaults_to_known_width(self):
        layout = ColumnLayout(default_width=120)
        self.assertEqual(layout.begin_resize(0, 0).move(10), 130)
        self.assertEqual(layout.begin_resize(0, 0).move(10), 140)

    def test_invalid_floor(self):
        with self.assertRaises(ValueError):
            ColumnLayout(min_width=0)


class HeaderBandTests(unittest.TestCase):
    def setUp(self):
        self.columns = normalize_columns(["Code", "Name", "Bags", "Weight", "Rate"])
        self.layout = ColumnLayout()

    def _spans(self, groups):
        bands = self.layout.header_bands(self.columns, normalize_column_groups(groups, self.columns))
        return [(band.label, [col.idx for col in band.columns]) for band in bands]

    def test_groups_span_their_columns(self):
        groups = [("Vendor", ["code", "name"]), ("Stock", [2, 3])]
        self.assertEqual(self._spans(groups), [("Vendor", [0, 1]), ("Stock", [2, 3]), ("", [4])])

    def test_hidden_columns_shrink_or_remove_bands(self):
        groups = [("Vendor", ["code", "name"]), ("Stock", [2, 3])]
        self.layout.toggle_column(0)
        self.layout.toggle_column(1)
        self.layout.toggle_column(3)
        self.assertEqual(self._spans(groups), [("Stock", [2]), ("", [4])])

    def test_split_group_gets_one_band_per_run(self):
        self.assertEqual(
            self._spans([("Vendor", [0, 2])]),
            [("Vendor", [0]), ("", [1]), ("Vendor", [2]), ("", [3, 4])],
        )

    def test_band_width_follows_resized_columns(self):
        groups = normalize_column_groups([("Stock", [2, 3])], self.columns)
        with self.layout.begin_resize(2, start_x=0, start_width=100) as gesture:
            gesture.move(50)
        [_, stock, _] = self.layout.header_bands(self.columns, groups)
        self.assertEqual(self.layout.band_width(stock), 290)
        self.assertEqual(self.layout.band_width(stock, spacing=24), 338)


if __name__ == "__main__":
    unittest.main()

import unittest

from skilltrack.layout.masonry import normalize_columns, pack


class MasonryPackTests(unittest.TestCase):
    def test_equal_heights_alternate_columns(self):
        ids = ["p1", "p2", "p3", "p4", "p5"]
        layout = pack(ids, {i: 100 for i in ids}, 2, container_width=1000, gap=0)
        self.assertEqual([layout.positions[i].column for i in ids], [0, 1, 0, 1, 0])
        self.assertEqual(layout.column_heights, [300, 200])
        self.assertEqual(layout.container_height, 300)

    def test_gap_is_added_after_every_panel(self):
        ids = ["p1", "p2", "p3", "p4", "p5"]
        layout = pack(ids, {i: 100 for i in ids}, 2, container_width=1000, gap=16)
        self.assertEqual(layout.column_width, 492)
        self.assertEqual(layout.positions["p2"].left, 508)
        self.assertEqual(layout.positions["p3"].top, 116)
        self.assertEqual(layout.positions["p5"].top, 232)
        self.assertEqual(layout.column_heights, [348, 232])
        self.assertEqual(layout.container_height, 348)

    def test_tall_panel_pushes_later_panels_elsewhere(self):
        layout = pack(["a", "b", "c", "d"], {"a": 500, "b": 100, "c": 100, "d": 100}, 2,
                      container_width=100, gap=0)
        self.assertEqual([layout.positions[i].column for i in "abcd"], [0, 1, 1, 1])
        self.assertEqual(layout.positions["d"].top, 200)

    def test_missing_heights_use_fallback(self):
        layout = pack(["a", "b"], {"a": None, "b": float("nan")}, 1, container_width=300, gap=0,
                      fallback_height=200)
        self.assertEqual(layout.positions["b"].top, 200)
        self.assertEqual(layout.container_height, 400)
        zero = pack(["a"], {"a": 0}, 1, gap=0, fallback_height=150)
        self.assertEqual(zero.container_height, 150)

    def test_columns_are_normalized(self):
        self.assertEqual(normalize_columns(0), 1)
        self.assertEqual(normalize_columns(-4), 1)
        self.assertEqual(normalize_columns(7), 3)
        self.assertEqual(normalize_columns("x"), 1)
        layout = pack(["a", "b"], {"a": 10, "b": 10}, 0, container_width=100, gap=0)
        self.assertEqual(layout.positions["b"].column, 0)

    def test_empty_input_is_empty_layout(self):
        layout = pack([], {}, 3)
        self.assertTrue(layout.is_empty)
        self.assertEqual(layout.container_height, 0)

    def test_deterministic(self):
        ids = ["a", "b", "c", "d", "e"]
        heights = {"a": 120, "b": 80, "c": 300, "d": 50, "e": 75}
        self.assertEqual(pack(ids, heights, 3).to_dict(), pack(ids, heights, 3).to_dict())


if __name__ == "__main__":
    unittest.main()

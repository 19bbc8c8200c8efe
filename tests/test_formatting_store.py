"""
Unit tests for FormattingStore and CellFormatting
"""

import unittest

from task_grid.core import FormattingStore
from task_grid.models import DEFAULT_FORMATTING, CellFormatting, CellIdentifier


class TestCellFormatting(unittest.TestCase):

    def test_merge_keeps_unset_attributes(self):
        base = CellFormatting(text_color="#ff0000", font_weight="bold")
        merged = base.merged_with(CellFormatting(font_weight="normal"))
        self.assertEqual(merged, CellFormatting(text_color="#ff0000", font_weight="normal"))

    def test_dict_keys(self):
        formatting = CellFormatting(background_color="#eee", is_header=True)
        self.assertEqual(formatting.to_dict(), {"backgroundColor": "#eee", "isHeader": True})
        self.assertEqual(CellFormatting.from_dict(formatting.to_dict()), formatting)


class TestFormattingStore(unittest.TestCase):
    """Tests for the sparse formatting map."""

    def setUp(self):
        self.store = FormattingStore()
        self.a = CellIdentifier("t1", "name")
        self.b = CellIdentifier("t1", "status")
        self.c = CellIdentifier("t2", "name")

    def test_default_when_unset(self):
        self.assertEqual(self.store.get_formatting(self.a), DEFAULT_FORMATTING)
        self.assertFalse(self.store.has_formatting(self.a))

    def test_empty_formatting_removes_entry(self):
        self.store.set_formatting(self.a, CellFormatting(font_style="italic"))
        self.store.set_formatting(self.a, CellFormatting())
        self.assertEqual(len(self.store), 0)

    def test_bulk_apply_merges(self):
        self.store.set_formatting(self.a, CellFormatting(text_color="#00f"))
        count = self.store.bulk_apply([self.a, self.b], CellFormatting(font_weight="bold"))

        self.assertEqual(count, 2)
        self.assertEqual(self.store.get_formatting(self.a).text_color, "#00f")
        self.assertEqual(self.store.get_formatting(self.b).font_weight, "bold")

    def test_purge_task_and_column(self):
        for cell in (self.a, self.b, self.c):
            self.store.set_formatting(cell, CellFormatting(font_weight="bold"))

        self.assertEqual(self.store.purge_task("t1"), 2)
        self.assertEqual(self.store.purge_column("name"), 1)
        self.assertEqual(len(self.store), 0)

    def test_snapshot_is_independent(self):
        self.store.set_formatting(self.a, CellFormatting(font_weight="bold"))
        snapshot = self.store.snapshot()
        self.store.clear_formatting(self.a)

        self.assertIn(self.a, snapshot)
        self.store.restore(snapshot)
        self.assertTrue(self.store.has_formatting(self.a))

    def test_apply_batch_none_clears(self):
        self.store.set_formatting(self.a, CellFormatting(font_weight="bold"))
        self.store.apply_batch({self.a: None, self.b: CellFormatting(text_align="right")})

        self.assertFalse(self.store.has_formatting(self.a))
        self.assertEqual(self.store.get_formatting(self.b).text_align, "right")


if __name__ == "__main__":
    unittest.main()

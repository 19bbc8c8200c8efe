"""
Unit tests for the grid value objects
"""

import unittest

from task_grid.models import (
    ActionType,
    CellFormatting,
    CellIdentifier,
    Column,
    ColumnType,
    EditorSnapshot,
    HistoryState,
    Task,
    parse_width,
)


class TestTask(unittest.TestCase):
    """Tests for Task."""

    def test_known_and_dynamic_keys(self):
        task = Task(id="t1").with_values({"name": "Plan", "startDate": "2024-01-01", "owner": "Ana"})

        self.assertEqual(task.name, "Plan")
        self.assertEqual(task.start_date, "2024-01-01")
        self.assertEqual(task.get("owner"), "Ana")
        self.assertEqual(task.get("missing"), "")

    def test_updates_return_new_instances(self):
        task = Task(id="t1", name="a")
        updated = task.with_value("name", "b")
        self.assertEqual(task.name, "a")
        self.assertEqual(updated.name, "b")

    def test_extra_is_read_only(self):
        task = Task(id="t1", extra={"owner": "Ana"})
        with self.assertRaises(TypeError):
            task.extra["owner"] = "Bo"

    def test_dict_round_trip(self):
        task = Task(id="t1", name="Plan", extra={"owner": "Ana"})
        data = task.to_dict()
        self.assertEqual(data["startDate"], "")
        self.assertEqual(Task.from_dict(data), task)

    def test_extra_cannot_shadow_id(self):
        with self.assertRaises(ValueError):
            Task(id="t1", extra={"id": "ABC-1"})
        with self.assertRaises(ValueError):
            Task(id="t1").with_value("id", "ABC-1")

    def test_without_key(self):
        task = Task(id="t1", extra={"owner": "Ana"})
        self.assertFalse(task.without_key("owner").has_key("owner"))
        self.assertTrue(task.without_key("name").has_key("name"))


class TestColumn(unittest.TestCase):
    """Tests for Column."""

    def test_key_defaults_to_id(self):
        self.assertEqual(Column(id="owner", title="OWNER").key, "owner")

    def test_from_dict_widths(self):
        column = Column.from_dict({"id": "a", "title": "A", "type": "Date", "width": "w-40", "minWidth": "min-w-[120px]"})
        self.assertEqual(column.type, ColumnType.DATE)
        self.assertEqual(column.width, 160)
        self.assertEqual(column.min_width, 120)

    def test_parse_width(self):
        self.assertEqual(parse_width(None), 160)
        self.assertEqual(parse_width("200"), 200)
        with self.assertRaises(ValueError):
            parse_width("wide")

    def test_empty_id_rejected(self):
        with self.assertRaises(ValueError):
            Column(id="", title="x")


class TestHistoryState(unittest.TestCase):

    def test_before_and_after_views(self):
        cell = CellIdentifier("t1", "name")
        before = EditorSnapshot(tasks=(Task(id="t1"),))
        after = EditorSnapshot(tasks=(Task(id="t1", name="x"),), formatting={cell: CellFormatting(font_weight="bold")})
        entry = HistoryState(ActionType.EDIT_CELL, "Edited name", before, after)

        self.assertEqual(entry.tasks[0].name, "x")
        self.assertEqual(entry.tasks_before[0].name, "")
        self.assertIn(cell, entry.formatting)
        self.assertEqual(len(entry.formatting_before), 0)
        self.assertEqual(entry.to_summary()["action_type"], "edit_cell")


if __name__ == "__main__":
    unittest.main()

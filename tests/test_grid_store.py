"""
Unit tests for GridStore

Covers row/column mutations, formatting purges and every paste mode.
"""

import unittest
from datetime import date, timedelta

from task_grid.core import FormattingStore, GridStore, default_columns
from task_grid.models import (
    CellCoordinate,
    CellFormatting,
    CellIdentifier,
    ChangeKind,
    Column,
    ColumnType,
    FormattedCellData,
    NormalizedRange,
    PasteFormatting,
    PasteMode,
    SourceFormat,
    Task,
)
from task_grid.utils.exceptions import DuplicateColumnError, InvalidRangeError


def _html_paste(rows):
    """PasteFormatting with formatting from (value, CellFormatting) tuples."""
    return PasteFormatting(
        has_formatting=True,
        raw_data=[[value for value, _ in row] for row in rows],
        source_format=SourceFormat.HTML,
        formatted_data=[[FormattedCellData(value, fmt) for value, fmt in row] for row in rows],
    )


class TestRows(unittest.TestCase):
    """Tests for row insertion and deletion."""

    def setUp(self):
        self.store = GridStore()
        self.changes = []
        self.store.add_listener(self.changes.append)

    def test_new_row_defaults(self):
        """New rows are unnamed medium-priority 'To do' tasks due in a week."""
        task = self.store.add_row()
        today = date.today()

        self.assertEqual(task.name, "")
        self.assertEqual(task.status, "To do")
        self.assertEqual(task.priority, "Medium")
        self.assertEqual(task.start_date, today.isoformat())
        self.assertEqual(task.deadline, (today + timedelta(days=7)).isoformat())

    def test_add_row_at_index(self):
        first = self.store.add_row({"name": "first"})
        second = self.store.add_row({"name": "second"}, index=0)

        self.assertEqual([t.id for t in self.store.tasks], [second.id, first.id])
        self.assertEqual(self.changes[-1].kind, ChangeKind.ROWS_INSERTED)
        self.assertEqual(self.changes[-1].index, 0)

    def test_add_row_bad_index(self):
        with self.assertRaises(InvalidRangeError):
            self.store.add_row(index=5)
        self.assertEqual(self.store.row_count, 0)

    def test_delete_row_purges_formatting(self):
        task = self.store.add_row()
        cell = CellIdentifier(task.id, "name")
        self.store.formatting.set_formatting(cell, CellFormatting(font_weight="bold"))

        self.assertTrue(self.store.delete_row(task.id))
        self.assertEqual(self.store.row_count, 0)
        self.assertFalse(self.store.formatting.has_formatting(cell))

    def test_delete_unknown_row(self):
        self.assertFalse(self.store.delete_row("missing"))


class TestColumns(unittest.TestCase):
    """Tests for column insertion, deletion and renaming."""

    def setUp(self):
        self.store = GridStore()
        self.task = self.store.add_row({"name": "Report"})

    def test_default_columns(self):
        ids = [c.id for c in default_columns()]
        self.assertEqual(ids, ["name", "status", "priority", "startDate", "deadline"])

    def test_generated_column(self):
        """A column added with no arguments is a text column titled by position."""
        column = self.store.add_column()

        self.assertTrue(column.id.startswith("column"))
        self.assertEqual(column.title, "COLUMN 6")
        self.assertEqual(column.type, ColumnType.TEXT)
        self.assertEqual(self.store.get_value(self.task.id, column.id), "")
        self.assertTrue(self.store.tasks[0].has_key(column.key))

    def test_add_column_from_dict(self):
        column = self.store.add_column({"id": "owner", "title": "Owner", "type": "text"}, index=1)

        self.assertEqual(self.store.column_index("owner"), 1)
        self.assertEqual(column.key, "owner")

    def test_duplicate_column_id(self):
        before = self.store.columns
        with self.assertRaises(DuplicateColumnError):
            self.store.add_column({"id": "status", "title": "Again"})
        self.assertEqual(self.store.columns, before)

    def test_duplicate_column_key(self):
        with self.assertRaises(DuplicateColumnError) as ctx:
            self.store.add_column(Column(id="alias", title="Alias", key="name"))
        self.assertEqual(ctx.exception.details["conflict"], "key")

    def test_row_id_key_rejected(self):
        """A column may not write to the row id, whatever its own id."""
        before = self.store.columns
        for definition in ({"id": "id", "title": "Ref"}, Column(id="ref", title="REF", key="id")):
            with self.assertRaises(DuplicateColumnError) as ctx:
                self.store.add_column(definition)
            self.assertEqual(ctx.exception.details["conflict"], "key")
        self.assertEqual(self.store.columns, before)
        self.assertEqual(self.store.tasks[0].id, self.task.id)

    def test_delete_column_purges_values_and_formatting(self):
        self.store.add_column({"id": "owner", "title": "Owner"})
        self.store.set_cell_value(self.task.id, "owner", "Ana")
        cell = CellIdentifier(self.task.id, "owner")
        self.store.formatting.set_formatting(cell, CellFormatting(text_color="#ff0000"))

        self.assertTrue(self.store.delete_column("owner"))
        self.assertFalse(self.store.tasks[0].has_key("owner"))
        self.assertFalse(self.store.formatting.has_formatting(cell))

    def test_delete_fixed_column_keeps_field(self):
        """Removing the status column keeps the row's status value."""
        self.store.set_cell_value(self.task.id, "status", "Done")
        self.store.delete_column("status")
        self.assertEqual(self.store.tasks[0].status, "Done")

    def test_rename_column_uppercases(self):
        column = self.store.rename_column("name", "Task name")
        self.assertEqual(column.title, "TASK NAME")
        self.assertEqual(self.store.get_column("name").title, "TASK NAME")

    def test_rename_unknown_column(self):
        with self.assertRaises(InvalidRangeError):
            self.store.rename_column("missing", "x")


class TestValues(unittest.TestCase):
    """Tests for value writes."""

    def setUp(self):
        self.store = GridStore()
        self.rows = [self.store.add_row({"name": f"t{i}"}) for i in range(3)]

    def test_set_cell_value(self):
        self.store.set_cell_value(self.rows[1].id, "priority", "High")
        self.assertEqual(self.store.get_value(self.rows[1].id, "priority"), "High")

    def test_set_values_checks_all_first(self):
        updates = {CellCoordinate(0, 0): "changed", CellCoordinate(9, 0): "bad"}
        with self.assertRaises(InvalidRangeError):
            self.store.set_values(updates)
        self.assertEqual(self.store.value_at(CellCoordinate(0, 0)), "t0")

    def test_values_are_strings(self):
        self.store.set_cell_value(self.rows[0].id, "name", 42)
        self.assertEqual(self.store.get_value(self.rows[0].id, "name"), "42")


class TestPasteModes(unittest.TestCase):
    """Tests for apply_paste."""

    def setUp(self):
        self.store = GridStore()
        for i in range(3):
            self.store.add_row({"name": f"t{i}", "status": "To do"})

    def test_replace_overwrites_at_anchor(self):
        paste = PasteFormatting.from_values([["a", "Done"], ["b", "Blocked"]])
        result = self.store.apply_paste(NormalizedRange(1, 1, 0, 0), paste, PasteMode.REPLACE)

        self.assertEqual(self.store.value_at(CellCoordinate(1, 0)), "a")
        self.assertEqual(self.store.value_at(CellCoordinate(2, 1)), "Blocked")
        self.assertEqual(self.store.value_at(CellCoordinate(0, 0)), "t0")
        self.assertEqual(result.target, NormalizedRange(1, 2, 0, 1))
        self.assertEqual(result.rows_added, 0)

    def test_replace_grows_grid(self):
        paste = PasteFormatting.from_values([["a"] * 7, ["b"] * 7])
        result = self.store.apply_paste(NormalizedRange(2, 2, 0, 0), paste, PasteMode.REPLACE)

        self.assertEqual(self.store.row_count, 4)
        self.assertEqual(self.store.column_count, 7)
        self.assertEqual(result.rows_added, 1)
        self.assertEqual(result.columns_added, 2)
        self.assertEqual(self.store.value_at(CellCoordinate(3, 6)), "b")

    def test_insert_rows_shifts_existing(self):
        paste = PasteFormatting.from_values([["new1"], ["new2"]])
        self.store.apply_paste(NormalizedRange(1, 1, 0, 0), paste, PasteMode.INSERT_ROWS)

        names = [t.name for t in self.store.tasks]
        self.assertEqual(names, ["t0", "new1", "new2", "t1", "t2"])

    def test_insert_columns_shifts_existing(self):
        paste = PasteFormatting.from_values([["x", "y"]])
        result = self.store.apply_paste(NormalizedRange(0, 0, 1, 1), paste, PasteMode.INSERT_COLUMNS)

        self.assertEqual(self.store.column_count, 7)
        self.assertEqual(self.store.columns[3].id, "status")
        self.assertEqual(self.store.value_at(CellCoordinate(0, 1)), "x")
        self.assertEqual(self.store.value_at(CellCoordinate(0, 2)), "y")
        self.assertEqual(result.columns_added, 2)

    def test_append_two_rows_to_three(self):
        """APPEND of a 2-row payload into a 3-row grid gives 5 rows."""
        paste = PasteFormatting.from_values([["a"], ["b"]])
        result = self.store.apply_paste(NormalizedRange(0, 0, 0, 0), paste, PasteMode.APPEND)

        self.assertEqual(self.store.row_count, 5)
        self.assertEqual([t.name for t in self.store.tasks[3:]], ["a", "b"])
        self.assertEqual(result.target, NormalizedRange(3, 4, 0, 0))

    def test_append_without_selection(self):
        paste = PasteFormatting.from_values([["a"]])
        self.store.apply_paste(None, paste, PasteMode.APPEND)
        self.assertEqual(self.store.tasks[-1].name, "a")

    def test_selection_required(self):
        paste = PasteFormatting.from_values([["a"]])
        with self.assertRaises(InvalidRangeError):
            self.store.apply_paste(None, paste, PasteMode.REPLACE)
        with self.assertRaises(InvalidRangeError):
            self.store.apply_paste(NormalizedRange(5, 5, 0, 0), paste, PasteMode.REPLACE)

    def test_formats_only_keeps_values(self):
        """FORMATS_ONLY changes no values and never grows the grid."""
        before = [t.to_dict() for t in self.store.tasks]
        bold = CellFormatting(font_weight="bold")
        paste = _html_paste([[("x", bold)], [("y", bold)], [("z", bold)], [("w", bold)]])

        result = self.store.apply_paste(NormalizedRange(1, 1, 0, 0), paste, PasteMode.FORMATS_ONLY)

        self.assertEqual([t.to_dict() for t in self.store.tasks], before)
        self.assertEqual(self.store.row_count, 3)
        self.assertEqual(result.formats_applied, 2)
        cell = CellIdentifier(self.store.tasks[2].id, "name")
        self.assertEqual(self.store.formatting.get_formatting(cell).font_weight, "bold")

    def test_values_only_keeps_formatting(self):
        cell = CellIdentifier(self.store.tasks[0].id, "name")
        self.store.formatting.set_formatting(cell, CellFormatting(text_color="#00ff00"))
        paste = _html_paste([[("v", CellFormatting(font_weight="bold"))]])

        self.store.apply_paste(NormalizedRange(0, 0, 0, 0), paste, PasteMode.VALUES_ONLY)

        self.assertEqual(self.store.value_at(CellCoordinate(0, 0)), "v")
        self.assertEqual(self.store.formatting.get_formatting(cell), CellFormatting(text_color="#00ff00"))

    def test_replace_clears_unstyled_cells(self):
        cell = CellIdentifier(self.store.tasks[0].id, "name")
        self.store.formatting.set_formatting(cell, CellFormatting(text_color="#00ff00"))
        paste = _html_paste([[("plain", CellFormatting())]])

        self.store.apply_paste(NormalizedRange(0, 0, 0, 0), paste, PasteMode.REPLACE)

        self.assertFalse(self.store.formatting.has_formatting(cell))

    def test_empty_payload_is_noop(self):
        result = self.store.apply_paste(NormalizedRange(0, 0, 0, 0), PasteFormatting.from_values([]))
        self.assertIsNone(result.target)
        self.assertEqual(self.store.row_count, 3)


class TestRestore(unittest.TestCase):

    def test_restore_emits_reset(self):
        changes = []
        store = GridStore(formatting=FormattingStore())
        store.add_listener(changes.append)
        store.restore([], default_columns())
        self.assertEqual(changes[-1].kind, ChangeKind.RESET)

    def test_restore_replaces_rows_and_columns(self):
        store = GridStore(formatting=FormattingStore())
        store.add_row({"name": "old"})
        columns = [Column(id="title", title="Title"), Column(id="owner", title="Owner")]
        tasks = [Task(id="t1", name="kept", extra={"title": "A", "owner": "Ana"})]

        store.restore(tasks, columns)
        tasks.clear()

        self.assertEqual([c.id for c in store.columns], ["title", "owner"])
        self.assertEqual([t.id for t in store.tasks], ["t1"])
        self.assertEqual(store.tasks[0].get("owner"), "Ana")
        added = store.add_row()
        self.assertEqual(added.get("owner"), "")
        self.assertEqual(store.row_count, 2)


if __name__ == "__main__":
    unittest.main()

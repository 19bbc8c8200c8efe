"""
Unit tests for TableEditor

Exercises every action through the editor so that history, selection and
formatting stay consistent with the grid.
"""

import json
import logging
import os
import unittest
from types import SimpleNamespace
from unittest.mock import Mock, patch

from task_grid import EditorConfig, PasteConfig, TableEditor
from task_grid.core import TableGenerator
from task_grid.config import LLMConfig
from task_grid.models import (
    ActionType,
    CellCoordinate,
    CellFormatting,
    CellIdentifier,
    EditorSnapshot,
    NormalizedRange,
    PasteMode,
)
from task_grid.utils import LLMClient
from task_grid.utils.exceptions import DuplicateColumnError, GenerationError, TaskGridError
from task_grid.utils.logger import set_log_level
from task_grid.utils.snapshot_io import snapshot_from_json, snapshot_to_json


def _editor_with_rows(*names, **kwargs):
    editor = TableEditor(**kwargs)
    for name in names:
        editor.add_row({"name": name})
    editor.history.initialize(editor.snapshot())
    return editor


class TestDocumentLifecycle(unittest.TestCase):
    """Tests for opening, replacing and closing documents."""

    def test_new_document(self):
        editor = TableEditor()
        self.assertEqual(len(editor.tasks), 0)
        self.assertEqual([c.id for c in editor.columns], ["name", "status", "priority", "startDate", "deadline"])
        self.assertEqual(editor.history.current.action_type, ActionType.INITIAL)
        self.assertFalse(editor.can_undo)

    def test_load_document_resets_history(self):
        editor = _editor_with_rows("a")
        editor.add_row()
        editor.load_document(EditorSnapshot(columns=editor.columns))

        self.assertEqual(len(editor.tasks), 0)
        self.assertFalse(editor.can_undo)
        self.assertTrue(editor.selection.is_empty)

    def test_environment_settings_applied(self):
        env = {"GRID_HISTORY_MAX_ENTRIES": "5", "GRID_PASTE_CHUNK_ROWS": "7"}
        with patch.dict(os.environ, env):
            editor = TableEditor()

        self.assertEqual(editor.config.history.max_entries, 5)
        self.assertEqual(editor.config.paste.chunk_rows, 7)
        self.assertEqual(editor.history.max_entries, 5)

    def test_log_level_from_config(self):
        self.addCleanup(set_log_level, "INFO")
        root = logging.getLogger("task_grid")

        TableEditor(EditorConfig(log_level="WARNING"))
        self.assertEqual(root.level, logging.WARNING)

        TableEditor(EditorConfig(log_level="WARNING", debug=True))
        self.assertEqual(root.level, logging.DEBUG)

    def test_closed_editor_rejects_actions(self):
        editor = TableEditor()
        editor.close()
        with self.assertRaises(TaskGridError):
            editor.add_row()


class TestHistoryThroughEditor(unittest.TestCase):
    """Tests for undo/redo of editor actions."""

    def setUp(self):
        self.editor = _editor_with_rows("t0", "t1")
        self.initial = self.editor.snapshot()

    def test_undo_chain_returns_to_initial(self):
        self.editor.add_row({"name": "t2"})
        self.editor.set_cell_value(self.editor.tasks[0].id, "status", "Done")
        self.editor.add_column({"id": "owner", "title": "Owner"})

        while self.editor.can_undo:
            self.editor.undo()

        self.assertEqual(self.editor.snapshot(), self.initial)
        self.assertIsNone(self.editor.undo())

    def test_undo_then_redo_is_identity(self):
        self.editor.set_cell_value(self.editor.tasks[1].id, "name", "renamed")
        after = self.editor.snapshot()

        self.editor.undo()
        self.assertEqual(self.editor.snapshot(), self.initial)
        self.editor.redo()
        self.assertEqual(self.editor.snapshot(), after)

    def test_new_action_clears_redo(self):
        self.editor.add_row()
        self.editor.undo()
        self.assertTrue(self.editor.can_redo)

        self.editor.set_cell_value(self.editor.tasks[0].id, "name", "edited")
        self.assertFalse(self.editor.can_redo)

    def test_each_cell_edit_is_one_entry(self):
        task_id = self.editor.tasks[0].id
        self.editor.set_cell_value(task_id, "name", "a")
        self.editor.set_cell_value(task_id, "name", "ab")

        self.assertEqual(len(self.editor.history.entries()), 3)
        self.editor.undo()
        self.assertEqual(self.editor.get_value(task_id, "name"), "a")

    def test_unchanged_action_not_recorded(self):
        self.editor.rename_column("name", "name")
        self.assertFalse(self.editor.can_undo)

    def test_failed_action_leaves_state(self):
        with self.assertRaises(DuplicateColumnError):
            self.editor.add_column({"id": "status", "title": "Status again"})
        self.assertEqual(self.editor.snapshot(), self.initial)
        self.assertFalse(self.editor.can_undo)

    def test_row_id_column_rejected(self):
        task_id = self.editor.tasks[0].id
        with self.assertRaises(DuplicateColumnError):
            self.editor.add_column({"id": "id"})

        self.assertFalse(self.editor.can_undo)
        text = snapshot_to_json(self.editor.snapshot())
        self.assertEqual(snapshot_from_json(text), self.editor.snapshot())
        self.assertEqual(snapshot_from_json(text).tasks[0].id, task_id)

    def test_redo_listing(self):
        self.editor.add_row({"name": "a"})
        self.editor.add_row({"name": "b"})
        self.editor.undo()
        self.editor.undo()

        listing = self.editor.history.redo_entries()

        self.assertEqual([e["action_type"] for e in listing], ["add_row", "add_row"])
        self.assertEqual([e["row_count"] for e in listing], [3, 4])

    def test_selection_kept_after_undo(self):
        self.editor.select(1, 2)
        self.editor.add_row()
        self.editor.undo()
        self.assertEqual(self.editor.selection.get_normalized_range(), NormalizedRange(1, 1, 2, 2))


class TestEditingActions(unittest.TestCase):
    """Tests for rows, columns, values and formatting."""

    def setUp(self):
        self.editor = _editor_with_rows("t0", "t1", "t2")

    def test_delete_selected_rows_is_one_entry(self):
        self.editor.select(0, 0, 1, 3)
        self.assertEqual(self.editor.delete_selected_rows(), 2)

        self.assertEqual([t.name for t in self.editor.tasks], ["t2"])
        self.assertEqual(self.editor.history.current.description, "Deleted 2 rows")
        self.editor.undo()
        self.assertEqual(len(self.editor.tasks), 3)

    def test_fill_selection(self):
        self.editor.select(1, 0, 2, 1)
        self.assertEqual(self.editor.fill_selection("x"), 4)

        self.assertEqual(self.editor.tasks[2].status, "x")
        self.assertEqual(self.editor.tasks[0].name, "t0")
        self.assertEqual(self.editor.history.current.action_type, ActionType.MULTI_CELL_EDIT)

    def test_clear_selection_values(self):
        self.editor.select(0, 0, 1, 0)
        self.assertEqual(self.editor.clear_selection_values(), 2)

        self.assertEqual([t.name for t in self.editor.tasks], ["", "", "t2"])
        self.assertEqual(self.editor.history.current.action_type, ActionType.MULTI_CELL_EDIT)
        self.editor.undo()
        self.assertEqual(self.editor.tasks[0].name, "t0")

    def test_delete_column_purges_formatting(self):
        self.editor.add_column({"id": "owner", "title": "Owner"})
        cell = CellIdentifier(self.editor.tasks[0].id, "owner")
        self.editor.format_cells(CellFormatting(font_weight="bold"), [cell])

        self.editor.delete_column("owner")
        self.assertEqual(len(self.editor.snapshot().formatting), 0)

        self.editor.undo()
        self.assertEqual(self.editor.get_formatting(cell.task_id, "owner").font_weight, "bold")

    def test_format_selection(self):
        self.editor.select(0, 0, 0, 1)
        self.assertEqual(self.editor.format_cells(CellFormatting(text_color="#ff0000")), 2)
        self.assertEqual(self.editor.history.current.action_type, ActionType.FORMAT_CELLS)

        self.assertEqual(self.editor.clear_formatting(), 2)
        self.assertEqual(len(self.editor.formatting), 0)

    def test_rename_column(self):
        column = self.editor.rename_column("name", "Task")
        self.assertEqual(column.title, "TASK")
        self.assertEqual(self.editor.history.current.action_type, ActionType.RENAME_COLUMN)


class TestPaste(unittest.TestCase):
    """Tests for paste through the editor."""

    def setUp(self):
        self.editor = _editor_with_rows("t0", "t1", "t2")

    def test_append_two_rows(self):
        self.editor.select(0, 0)
        outcome = self.editor.paste(None, "a\tDone\nb\tBlocked", PasteMode.APPEND)

        self.assertTrue(outcome.applied)
        self.assertEqual(len(self.editor.tasks), 5)
        self.assertEqual(outcome.entry.action_type, ActionType.PASTE)
        self.assertEqual(self.editor.selection.get_normalized_range(), NormalizedRange(3, 4, 0, 1))

    def test_append_into_empty_document(self):
        editor = TableEditor()
        outcome = editor.paste(None, "a\nb", PasteMode.APPEND)
        self.assertTrue(outcome.applied)
        self.assertEqual([t.name for t in editor.tasks], ["a", "b"])

    def test_html_paste_applies_formatting(self):
        self.editor.select(0, 0)
        html = '<table><tr><td style="font-weight:bold">Bold</td><td>plain</td></tr></table>'
        self.editor.paste(html, "Bold\tplain")

        task_id = self.editor.tasks[0].id
        self.assertEqual(self.editor.get_value(task_id, "name"), "Bold")
        self.assertEqual(self.editor.get_formatting(task_id, "name").font_weight, "bold")

    def test_formats_only_changes_no_values(self):
        before = [t.to_dict() for t in self.editor.tasks]
        self.editor.select(0, 0)
        html = '<table><tr><td style="color:#ff0000">ignored</td></tr></table>'
        self.editor.paste(html, "ignored", PasteMode.FORMATS_ONLY)

        self.assertEqual([t.to_dict() for t in self.editor.tasks], before)
        self.assertEqual(self.editor.get_formatting(self.editor.tasks[0].id, "name").text_color, "#ff0000")

    def test_selection_grows_to_cover_paste(self):
        self.editor.select(0, 0, 2, 0)
        self.editor.paste(None, "x\ty")
        self.assertEqual(self.editor.selection.get_normalized_range(), NormalizedRange(0, 2, 0, 1))

    def test_malformed_html_uses_text(self):
        self.editor.select(0, 0)
        outcome = self.editor.paste("<table><tr><td>broken", "fallback")
        self.assertTrue(outcome.applied)
        self.assertEqual(self.editor.tasks[0].name, "fallback")
        self.assertEqual(len(self.editor.formatting), 0)

    def test_undo_paste(self):
        before = self.editor.snapshot()
        self.editor.select(2, 0)
        self.editor.paste(None, "a\nb\nc")
        self.assertEqual(len(self.editor.tasks), 5)

        self.editor.undo()
        self.assertEqual(self.editor.snapshot(), before)

    def test_paste_without_selection_discarded(self):
        outcome = self.editor.paste(None, "a", PasteMode.REPLACE)
        self.assertFalse(outcome.applied)
        self.assertEqual(outcome.reason, "selection cleared")
        self.assertFalse(self.editor.can_undo)

    def test_empty_clipboard(self):
        self.editor.select(0, 0)
        outcome = self.editor.paste(None, "")
        self.assertFalse(outcome.applied)
        self.assertEqual(outcome.reason, "clipboard empty")

    def test_stale_ticket_after_document_replaced(self):
        self.editor.select(0, 0)
        ticket = self.editor.begin_paste()
        self.editor.new_document()

        outcome = self.editor.complete_paste(ticket, None, "late")
        self.assertFalse(outcome.applied)
        self.assertEqual(outcome.reason, "document replaced")

    def test_stale_ticket_after_close(self):
        self.editor.select(0, 0)
        ticket = self.editor.begin_paste()
        self.editor.close()
        self.assertEqual(self.editor.complete_paste(ticket, None, "late").reason, "document replaced")

    def test_selection_moved_during_read(self):
        self.editor.select(0, 0)
        ticket = self.editor.begin_paste()
        self.editor.select(2, 1)

        outcome = self.editor.complete_paste(ticket, None, "moved")
        self.assertTrue(outcome.selection_moved)
        self.assertEqual(self.editor.grid.value_at(CellCoordinate(2, 1)), "moved")

    def test_large_paste_is_chunked_into_one_entry(self):
        editor = _editor_with_rows("t0", config=EditorConfig(paste=PasteConfig(chunk_rows=2)))
        editor.select(0, 0)
        outcome = editor.paste(None, "\n".join(f"row{i}" for i in range(5)))

        self.assertEqual(outcome.chunks, 3)
        self.assertEqual([t.name for t in editor.tasks], [f"row{i}" for i in range(5)])
        self.assertEqual(outcome.result.target, NormalizedRange(0, 4, 0, 0))
        self.assertEqual(len(editor.history.entries()), 2)

        editor.undo()
        self.assertEqual([t.name for t in editor.tasks], ["t0"])

    def test_paste_values(self):
        self.editor.select(1, 1)
        outcome = self.editor.paste_values([["Done", "High"]])
        self.assertTrue(outcome.applied)
        self.assertEqual(self.editor.tasks[1].priority, "High")


class TestGeneration(unittest.TestCase):
    """Tests for merging generated content."""

    def _editor(self, reply):
        model = Mock()
        model.invoke.return_value = SimpleNamespace(content=json.dumps(reply), usage_metadata=None)
        client = LLMClient(LLMConfig(api_key="test-key"), chat_model=model)
        editor = TableEditor(generator=TableGenerator(llm_client=client))
        editor.add_row({"name": "existing"})
        editor.history.initialize(editor.snapshot())
        return editor

    def test_generate_adds_columns_and_rows(self):
        editor = self._editor({
            "columns": [
                {"key": "owner", "title": "Owner", "type": "text"},
                {"key": "status", "title": "Status", "type": "status"},
            ],
            "rows": [{"name": "Book venue", "owner": "Ana"}],
        })

        entry = editor.generate("Plan an event")

        self.assertEqual(entry.action_type, ActionType.GENERATE)
        self.assertEqual([c.id for c in editor.columns][-1], "owner")
        self.assertEqual(len(editor.columns), 6)
        new_row = editor.tasks[-1]
        self.assertEqual(new_row.name, "Book venue")
        self.assertEqual(new_row.get("owner"), "Ana")
        self.assertEqual(new_row.status, "To do")
        self.assertEqual(editor.tasks[0].get("owner"), "")

    def test_generation_undone_in_one_step(self):
        editor = self._editor({"columns": [{"key": "owner", "title": "Owner"}], "rows": [{"name": "x"}]})
        before = editor.snapshot()

        editor.generate("anything")
        editor.undo()

        self.assertEqual(editor.snapshot(), before)

    def test_empty_generation(self):
        editor = self._editor({"columns": [], "rows": []})
        self.assertIsNone(editor.generate("nothing"))
        self.assertFalse(editor.can_undo)

    def test_generated_id_column_skipped(self):
        editor = self._editor({"columns": [{"key": "id", "title": "Ref"}], "rows": [{"name": "x"}]})
        editor.generate("anything")

        self.assertNotIn("id", [c.key for c in editor.columns])
        self.assertEqual(editor.tasks[-1].name, "x")


class TestPowerFX(unittest.TestCase):
    """Tests for Power FX export and import through the editor."""

    IMPORT_REPLY = {
        "columns": [
            {"key": "name", "title": "Name", "type": "text"},
            {"key": "owner", "title": "Owner", "type": "text"},
        ],
        "rows": [{"id": "1", "name": "Book venue", "owner": "Ana", "status": "Done"}],
    }

    def _editor(self, reply_text):
        self.model = Mock()
        self.model.invoke.return_value = SimpleNamespace(content=reply_text, usage_metadata=None)
        client = LLMClient(LLMConfig(api_key="test-key"), chat_model=self.model)
        editor = TableEditor(generator=TableGenerator(llm_client=client))
        editor.add_row({"name": "existing"})
        editor.history.initialize(editor.snapshot())
        return editor

    def test_export_strips_code_fence(self):
        editor = self._editor('```powerfx\nClearCollect(ImportedData, {name: "existing"});\n```')

        code = editor.export_powerfx()

        self.assertEqual(code, 'ClearCollect(ImportedData, {name: "existing"});')
        messages = self.model.invoke.call_args.args[0]
        self.assertIn("Collect()", messages[0].content)
        self.assertIn("existing", messages[-1].content)
        self.assertFalse(editor.can_undo)

    def test_export_empty_reply(self):
        editor = self._editor("   ")
        with self.assertRaises(GenerationError):
            editor.export_powerfx()

    def test_import_replaces_document(self):
        editor = self._editor(json.dumps(self.IMPORT_REPLY))

        entry = editor.import_powerfx("ClearCollect(ImportedData, {name: \"Book venue\"})")

        self.assertEqual(entry.action_type, ActionType.INITIAL)
        self.assertEqual(entry.description, "Imported Power FX")
        self.assertEqual([c.id for c in editor.columns], ["name", "owner"])
        self.assertEqual(len(editor.tasks), 1)
        task = editor.tasks[0]
        self.assertEqual(task.name, "Book venue")
        self.assertEqual(task.get("owner"), "Ana")
        self.assertEqual(task.status, "Done")
        self.assertNotEqual(task.id, "1")
        self.assertFalse(editor.can_undo)
        self.assertIn("ClearCollect", self.model.invoke.call_args.args[0][-1].content)

    def test_import_without_columns_uses_defaults(self):
        editor = self._editor('{"rows": [{"name": "Solo", "colour": "red"}]}')
        editor.import_powerfx("Collect(ImportedData, {name: \"Solo\"})")

        self.assertEqual([c.id for c in editor.columns], ["name", "status", "priority", "startDate", "deadline"])
        self.assertEqual(editor.tasks[0].name, "Solo")
        self.assertFalse(editor.tasks[0].has_key("colour"))

    def test_failed_import_keeps_document(self):
        editor = self._editor("I cannot read that code.")
        before = editor.snapshot()

        with self.assertRaises(GenerationError):
            editor.import_powerfx("Collect(x)")
        self.assertEqual(editor.snapshot(), before)

    def test_empty_code_not_sent(self):
        editor = self._editor("{}")
        with self.assertRaises(GenerationError):
            editor.import_powerfx("  ")
        self.model.invoke.assert_not_called()


if __name__ == "__main__":
    unittest.main()

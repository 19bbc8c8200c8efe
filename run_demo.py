#!/usr/bin/env python
"""
Task Grid - Demo Execution

Builds a small task table, pastes into it, formats it, walks the undo
history and exports the result. Generation runs only when an API key is set.
"""

import os
import sys

from task_grid import EditorConfig, EnvConfig, PasteMode, TableEditor
from task_grid.models import CellFormatting
from task_grid.utils import TaskGridError, export_csv, snapshot_to_json

CLIPBOARD_HTML = """
<table>
  <tr><td style="font-weight:bold">Book venue</td><td>In progress</td><td>High</td></tr>
  <tr><td>Send invites</td><td>To do</td><td style="color:#c00000">Medium</td></tr>
</table>
"""


def print_table(editor: TableEditor) -> None:
    titles = [c.title for c in editor.columns]
    print("        " + " | ".join(titles))
    for task in editor.tasks:
        print("        " + " | ".join(task.get(c.key) or "-" for c in editor.columns))
    print()


def main():
    """Main entry point for the editor demo."""
    print("=" * 70)
    print("Task Grid - Demo Execution")
    print("=" * 70)
    print()

    print("Step 1: Loading configuration from .env...")
    EnvConfig.load_env_file()
    config = EditorConfig.from_env()
    print(f"        History depth: {config.history.max_entries}")
    print(f"        Paste chunk rows: {config.paste.chunk_rows}")
    print()

    editor = TableEditor(config)

    print("Step 2: Adding rows...")
    editor.add_row({"name": "Draft agenda", "status": "Done"})
    editor.add_row({"name": "Confirm speakers"})
    print_table(editor)

    print("Step 3: Pasting a styled table after the last row...")
    editor.select(0, 0)
    outcome = editor.paste(CLIPBOARD_HTML, "Book venue\tIn progress\tHigh", PasteMode.APPEND)
    print(f"        Applied: {outcome.applied} (+{outcome.result.rows_added} rows)")
    print_table(editor)

    print("Step 4: Adding an owner column and highlighting the selection...")
    editor.add_column({"id": "owner", "title": "Owner"})
    editor.select(0, 0, 1, 0)
    editor.format_cells(CellFormatting(background_color="#fff2cc"))
    print_table(editor)

    print("Step 5: Undo / redo...")
    for entry in editor.history.entries():
        print(f"        [{entry['formatted_time']}] {entry['action_type']}: {entry['description']}")
    editor.undo()
    print(f"        After undo: {len(editor.columns)} columns, can redo: {editor.can_redo}")
    for entry in editor.history.redo_entries():
        print(f"        Redo available: {entry['description']}")
    editor.redo()
    print(f"        After redo: {len(editor.columns)} columns")
    print()

    if config.llm.api_key:
        print("Step 6: Generating rows...")
        try:
            estimate = editor.generator.estimate("Add three follow-up tasks", editor.tasks, editor.columns)
            print(f"        Estimated cost: ${estimate.cost:.5f} ({estimate.adjusted_total_tokens} tokens)")
            editor.generate("Add three follow-up tasks")
            print_table(editor)
        except TaskGridError as e:
            print(f"        Generation failed: {e.message}")
    else:
        print("Step 6: Skipping generation (set LLM_API_KEY to enable)")
    print()

    print("=" * 70)
    print("Export")
    print("=" * 70)
    print(export_csv(editor.snapshot()))
    if os.getenv("GRID_DEMO_SHOW_JSON"):
        print(snapshot_to_json(editor.snapshot(), indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Task Grid - Spreadsheet-style task table editing engine

The headless core of a task table editor: rows of tasks, dynamic columns,
rectangular selection, rich clipboard paste, per-cell formatting, a
snapshot-based undo/redo history, and an optional LLM collaborator that
suggests new columns and rows.

Installation:
pip install langchain-anthropic langchain-core python-dotenv openpyxl

Configuration:
    Create a .env file for the generation collaborator (optional):

    LLM_API_KEY=sk-ant-...
    GRID_LLM_PROVIDER=anthropic
    GRID_LLM_MODEL=claude-3-5-haiku-20241022

Example:
    >>> from task_grid import TableEditor, PasteMode
    >>>
    >>> editor = TableEditor()
    >>> editor.add_row({"name": "Write report"})
    >>> editor.select(0, 0)
    >>> editor.paste(None, "Plan\\tIn progress\\nReview\\tTo do", PasteMode.APPEND)
    >>> editor.undo()
"""

__version__ = "1.0.0"
__author__ = "Your Name"
__all__ = [
    'TableEditor',
    'PasteOutcome',
    'PasteTicket',
    'EditorConfig',
    'LLMConfig',
    'HistoryConfig',
    'PasteConfig',
    'EnvConfig',
    'ActionType',
    'ColumnType',
    'PasteMode',
    'CellCoordinate',
    'CellIdentifier',
    'CellFormatting',
    'Column',
    'EditorSnapshot',
    'SelectionRange',
    'Task',
    'TaskGridError',
]

from .config import EditorConfig, LLMConfig, HistoryConfig, PasteConfig, EnvConfig
from .models import (
    ActionType,
    CellCoordinate,
    CellFormatting,
    CellIdentifier,
    Column,
    ColumnType,
    EditorSnapshot,
    PasteMode,
    SelectionRange,
    Task,
)
from .core import PasteOutcome, PasteTicket, TableEditor
from .utils.exceptions import TaskGridError

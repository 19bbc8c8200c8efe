"""
Table Editor - One owner object per open document

TableEditor wires the grid, formatting, selection and history together and is
the only entry point for user actions. Every action is staged the same way:

    before = snapshot()  ->  mutate GridStore/FormattingStore  ->  after = snapshot()
    ->  HistoryManager.record(action, before, after)

If the mutation raises, the document is restored to ``before`` and the error
propagates, so the editor stays usable after any failed action.

Paste is two-phase: begin_paste() issues a ticket when the clipboard read
starts, complete_paste() applies the payload against the selection current
at completion. A document that was replaced or closed in between, or a
cleared selection, discards the paste.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Union

from task_grid.config import EditorConfig
from task_grid.core.formatting_store import FormattingStore
from task_grid.core.generator import GenerationResult, TableGenerator
from task_grid.core.grid_store import GridStore, PasteResult, default_columns, new_task
from task_grid.core.history import HistoryManager
from task_grid.core.selection import SelectionModel
from task_grid.models import (
    RESERVED_KEYS,
    ActionType,
    CellFormatting,
    CellIdentifier,
    Column,
    EditorSnapshot,
    HistoryState,
    NormalizedRange,
    PasteFormatting,
    PasteMode,
    SelectionRange,
    Task,
)
from task_grid.utils.clipboard_parser import ClipboardParser
from task_grid.utils.exceptions import TaskGridError
from task_grid.utils.logger import get_logger, set_log_level

logger = get_logger(__name__)

# Modes that write over the selection in place; the selection grows to cover the paste
_OVERWRITE_MODES = (PasteMode.REPLACE, PasteMode.VALUES_ONLY, PasteMode.FORMATS_ONLY)


@dataclass(frozen=True)
class PasteTicket:
    """Issued when a clipboard read starts; redeemed by complete_paste()."""
    generation: int
    selection_version: int
    issued_at: float = field(default_factory=lambda: datetime.now().timestamp())


@dataclass(frozen=True)
class PasteOutcome:
    """
    Result of a paste attempt.

    Attributes:
        applied: False when the paste was discarded or had nothing to paste
        reason: Why a paste was not applied
        result: Grid changes (applied pastes only)
        chunks: Internal steps the paste was applied in
        selection_moved: The selection changed while the clipboard was read
        entry: History entry recorded for the paste
    """
    applied: bool
    reason: str = ""
    result: Optional[PasteResult] = None
    chunks: int = 0
    selection_moved: bool = False
    entry: Optional[HistoryState] = None


class _StagedAction:
    def __init__(self, description: str):
        self.description = description
        self.entry: Optional[HistoryState] = None


class TableEditor:
    """
    Editing engine for one document.

    Usage:
        editor = TableEditor()
        task = editor.add_row({"name": "Draft agenda"})
        editor.select(0, 0)
        editor.paste(html, text)
        editor.undo()

    Args:
        config: Editor configuration (environment defaults when omitted)
        snapshot: Document to open; a new empty document when omitted
        generator: Generation collaborator used by generate()
    """

    def __init__(
        self,
        config: Optional[EditorConfig] = None,
        snapshot: Optional[EditorSnapshot] = None,
        generator: Optional[TableGenerator] = None,
    ):
        self.config = config or EditorConfig.from_env()
        set_log_level("DEBUG" if self.config.debug else self.config.log_level)
        logger.debug(f"Editor configuration: {self.config.to_dict()}")

        self.formatting = FormattingStore()
        self.grid = GridStore(columns=[], formatting=self.formatting)
        self.selection = SelectionModel()
        self.grid.add_listener(self.selection.handle_structural_change)
        self.history = HistoryManager(self.restore_snapshot, self.config.history.max_entries)
        self.parser = ClipboardParser()
        self._generator = generator
        self.generation = 0
        self.closed = False

        self.load_document(snapshot)

    # ------------------------------------------------------------------
    # Document lifecycle
    # ------------------------------------------------------------------

    def load_document(self, snapshot: Optional[EditorSnapshot] = None,
                      description: str = "Initial state") -> HistoryState:
        """Replace the document; history restarts with ``snapshot`` as INITIAL."""
        self._ensure_open()
        if snapshot is None:
            snapshot = EditorSnapshot(columns=tuple(default_columns()))

        self.generation += 1
        self.restore_snapshot(snapshot)
        self.selection.clear()
        entry = self.history.initialize(snapshot, description)
        logger.info(
            f"Loaded document (generation {self.generation}): "
            f"{len(snapshot.tasks)} rows, {len(snapshot.columns)} columns"
        )
        return entry

    def new_document(self) -> HistoryState:
        return self.load_document(None, "New document")

    def close(self) -> None:
        """Tear the document down. Outstanding paste tickets become stale."""
        if self.closed:
            return
        self.generation += 1
        self.grid.remove_listener(self.selection.handle_structural_change)
        self.selection.clear()
        self.closed = True
        logger.info("Closed document")

    def _ensure_open(self) -> None:
        if self.closed:
            raise TaskGridError("Editor is closed", error_code="EDITOR_CLOSED")

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> EditorSnapshot:
        return EditorSnapshot.capture(self.grid.tasks, self.grid.columns, self.formatting.snapshot())

    def restore_snapshot(self, snapshot: EditorSnapshot) -> None:
        """Make ``snapshot`` the live state (history restore callback)."""
        self.grid.restore(snapshot.tasks, snapshot.columns)
        self.formatting.restore(snapshot.formatting)
        self.selection.set_bounds(self.grid.row_count, self.grid.column_count)

    @contextmanager
    def _staged(self, action_type: ActionType, description: str) -> Iterator[_StagedAction]:
        self._ensure_open()
        before = self.snapshot()
        previous_selection = self.selection.raw_range
        staged = _StagedAction(description)
        try:
            yield staged
        except Exception:
            logger.debug(f"{action_type.value} failed; restoring the previous state")
            self.restore_snapshot(before)
            self._reselect(previous_selection)
            raise

        after = self.snapshot()
        if after == before:
            logger.debug(f"{action_type.value} changed nothing; not recorded")
            return
        staged.entry = self.history.record(action_type, before, after, staged.description)

    def _reselect(self, selection: Optional[SelectionRange]) -> None:
        if selection is None:
            return
        if selection.normalized().fits(self.grid.row_count, self.grid.column_count):
            self.selection.set_range(selection)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def tasks(self):
        return self.grid.tasks

    @property
    def columns(self):
        return self.grid.columns

    def get_value(self, task_id: str, column_id: str) -> str:
        return self.grid.get_value(task_id, column_id)

    def get_formatting(self, task_id: str, column_id: str) -> CellFormatting:
        return self.formatting.get_formatting(CellIdentifier(task_id, column_id))

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, start_row: int, start_col: int,
               end_row: Optional[int] = None, end_col: Optional[int] = None) -> NormalizedRange:
        """Select a cell, or the rectangle between two corners."""
        self._ensure_open()
        end_row = start_row if end_row is None else end_row
        end_col = start_col if end_col is None else end_col
        return self.selection.set_range(SelectionRange.of(start_row, start_col, end_row, end_col))

    def selected_cell_ids(self) -> List[CellIdentifier]:
        return [self.grid.cell_identifier(coord) for coord in self.selection.cells_in_range()]

    # ------------------------------------------------------------------
    # Rows and columns
    # ------------------------------------------------------------------

    def add_row(self, values: Optional[Mapping[str, Any]] = None, index: Optional[int] = None) -> Task:
        with self._staged(ActionType.ADD_ROW, "Added row"):
            return self.grid.add_row(values, index)

    def delete_row(self, task_id: str) -> bool:
        with self._staged(ActionType.DELETE_ROW, "Deleted row"):
            return self.grid.delete_row(task_id)

    def delete_selected_rows(self) -> int:
        """Delete every row the selection touches, as one history entry."""
        normalized = self.selection.get_normalized_range()
        if normalized is None:
            return 0
        task_ids = [self.grid.tasks[row].id for row in range(normalized.min_row, normalized.max_row + 1)]
        with self._staged(ActionType.DELETE_ROW, f"Deleted {len(task_ids)} rows") as staged:
            for task_id in task_ids:
                self.grid.delete_row(task_id)
            if len(task_ids) == 1:
                staged.description = "Deleted row"
        return len(task_ids)

    def add_column(
        self,
        column_spec: Union[Column, Mapping[str, Any], None] = None,
        index: Optional[int] = None,
    ) -> Column:
        with self._staged(ActionType.ADD_COLUMN, "Added column") as staged:
            column = self.grid.add_column(column_spec, index)
            staged.description = f"Added column {column.title}"
            return column

    def delete_column(self, column_id: str) -> bool:
        with self._staged(ActionType.DELETE_COLUMN, f"Deleted column {column_id}"):
            return self.grid.delete_column(column_id)

    def rename_column(self, column_id: str, title: str) -> Column:
        with self._staged(ActionType.RENAME_COLUMN, f"Renamed column to {str(title).upper()}"):
            return self.grid.rename_column(column_id, title)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def set_cell_value(self, task_id: str, column_id: str, value: Any) -> Task:
        """Commit one cell edit; each committed edit is one history entry."""
        with self._staged(ActionType.EDIT_CELL, f"Edited {column_id}"):
            return self.grid.set_cell_value(task_id, column_id, value)

    def fill_selection(self, value: Any) -> int:
        """Write ``value`` into every selected cell."""
        coords = self.selection.cells_in_range()
        if not coords:
            return 0
        with self._staged(ActionType.MULTI_CELL_EDIT, f"Edited {len(coords)} cells"):
            return self.grid.set_values({coord: value for coord in coords})

    def clear_selection_values(self) -> int:
        """Empty every selected cell as one MULTI_CELL_EDIT entry."""
        return self.fill_selection("")

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def format_cells(self, formatting: CellFormatting,
                     cell_ids: Optional[Sequence[CellIdentifier]] = None) -> int:
        """Merge ``formatting`` over the given cells (the selection by default)."""
        targets = list(cell_ids) if cell_ids is not None else self.selected_cell_ids()
        if not targets:
            return 0
        with self._staged(ActionType.FORMAT_CELLS, f"Formatted {len(targets)} cells"):
            return self.formatting.bulk_apply(targets, formatting)

    def clear_formatting(self, cell_ids: Optional[Sequence[CellIdentifier]] = None) -> int:
        targets = list(cell_ids) if cell_ids is not None else self.selected_cell_ids()
        if not targets:
            return 0
        with self._staged(ActionType.FORMAT_CELLS, f"Cleared formatting of {len(targets)} cells"):
            return sum(1 for cell_id in targets if self.formatting.clear_formatting(cell_id))

    # ------------------------------------------------------------------
    # Paste
    # ------------------------------------------------------------------

    def begin_paste(self) -> PasteTicket:
        """Call when the clipboard read is issued."""
        self._ensure_open()
        return PasteTicket(generation=self.generation, selection_version=self.selection.version)

    def complete_paste(
        self,
        ticket: PasteTicket,
        clipboard_html: Optional[str],
        clipboard_text: Optional[str],
        mode: Optional[PasteMode] = None,
    ) -> PasteOutcome:
        """
        Apply clipboard data that arrived for ``ticket``.

        The target is the selection current now, not when the read started.
        """
        if self.closed or ticket.generation != self.generation:
            logger.warning("Discarding paste: the document was replaced while reading the clipboard")
            return PasteOutcome(applied=False, reason="document replaced")

        mode = PasteMode(mode) if mode is not None else self.config.paste.default_mode
        selection = self.selection.get_normalized_range()
        if selection is None and mode != PasteMode.APPEND:
            logger.warning("Discarding paste: the selection was cleared")
            return PasteOutcome(applied=False, reason="selection cleared")

        paste_data = self.parser.parse(clipboard_html, clipboard_text)
        if paste_data.is_empty:
            logger.info("Clipboard held nothing to paste")
            return PasteOutcome(applied=False, reason="clipboard empty")

        return self._apply_paste(
            selection,
            paste_data,
            mode,
            selection_moved=self.selection.version != ticket.selection_version,
        )

    def paste(self, clipboard_html: Optional[str], clipboard_text: Optional[str],
              mode: Optional[PasteMode] = None) -> PasteOutcome:
        """Paste payloads that are already in hand."""
        return self.complete_paste(self.begin_paste(), clipboard_html, clipboard_text, mode)

    def paste_values(self, rows: List[List[Any]], mode: PasteMode = PasteMode.REPLACE) -> PasteOutcome:
        """Paste an in-memory grid of values."""
        self._ensure_open()
        selection = self.selection.get_normalized_range()
        if selection is None and mode != PasteMode.APPEND:
            return PasteOutcome(applied=False, reason="selection cleared")
        paste_data = PasteFormatting.from_values(rows)
        if paste_data.is_empty:
            return PasteOutcome(applied=False, reason="clipboard empty")
        return self._apply_paste(selection, paste_data, PasteMode(mode))

    def _apply_paste(
        self,
        selection: Optional[NormalizedRange],
        paste_data: PasteFormatting,
        mode: PasteMode,
        selection_moved: bool = False,
    ) -> PasteOutcome:
        description = (
            f"Pasted {paste_data.row_count}x{paste_data.column_count} cells "
            f"({mode.value}, {paste_data.source_format.value})"
        )
        with self._staged(ActionType.PASTE, description) as staged:
            result, chunks = self._paste_in_chunks(selection, paste_data, mode)

        target = result.target
        if target is not None:
            if selection is not None and mode in _OVERWRITE_MODES:
                target = NormalizedRange(
                    min(target.min_row, selection.min_row), max(target.max_row, selection.max_row),
                    min(target.min_col, selection.min_col), max(target.max_col, selection.max_col),
                )
            self.selection.set_range(
                SelectionRange.of(target.min_row, target.min_col, target.max_row, target.max_col)
            )

        return PasteOutcome(
            applied=True,
            result=result,
            chunks=chunks,
            selection_moved=selection_moved,
            entry=staged.entry,
        )

    def _paste_in_chunks(self, selection: Optional[NormalizedRange], paste_data: PasteFormatting,
                         mode: PasteMode):
        chunk_rows = self.config.paste.chunk_rows
        if mode == PasteMode.INSERT_COLUMNS or paste_data.row_count <= chunk_rows:
            return self.grid.apply_paste(selection, paste_data, mode), 1

        results: List[PasteResult] = []
        for start in range(0, paste_data.row_count, chunk_rows):
            chunk = paste_data.slice_rows(start, start + chunk_rows)
            results.append(self.grid.apply_paste(selection, chunk, mode, row_offset=start))
            logger.debug(f"Applied paste chunk rows {start}..{start + chunk.row_count - 1}")

        targets = [r.target for r in results if r.target is not None]
        target = None
        if targets:
            target = NormalizedRange(
                targets[0].min_row, targets[-1].max_row,
                targets[0].min_col, targets[0].max_col,
            )
        combined = PasteResult(
            mode=mode,
            target=target,
            rows_added=sum(r.rows_added for r in results),
            columns_added=sum(r.columns_added for r in results),
            formats_applied=sum(r.formats_applied for r in results),
        )
        return combined, len(results)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    @property
    def generator(self) -> TableGenerator:
        if self._generator is None:
            self._generator = TableGenerator(config=self.config.llm)
        return self._generator

    def generate(self, prompt: str) -> Optional[HistoryState]:
        """Ask the generation collaborator for rows/columns and merge them."""
        self._ensure_open()
        result = self.generator.generate(prompt, self.grid.tasks, self.grid.columns)
        return self.apply_generation(result)

    def apply_generation(self, result: GenerationResult) -> Optional[HistoryState]:
        """
        Merge generated suggestions as one GENERATE history entry.

        Columns whose key already exists are skipped; rows go through the
        APPEND paste pathway aligned at the first column.
        """
        if result.is_empty:
            return None

        with self._staged(ActionType.GENERATE, "Generated content") as staged:
            existing_keys = {c.key for c in self.grid.columns} | RESERVED_KEYS
            existing_ids = {c.id for c in self.grid.columns}
            added = 0
            for column in result.columns:
                if column.key in existing_keys or column.id in existing_ids:
                    logger.debug(f"Skipping generated column '{column.key}': already present")
                    continue
                self.grid.add_column(column)
                existing_keys.add(column.key)
                existing_ids.add(column.id)
                added += 1

            if result.rows:
                columns = self.grid.columns
                template = new_task(columns)
                values = [
                    [row.get(column.key, template.get(column.key)) for column in columns]
                    for row in result.rows
                ]
                self.grid.apply_paste(None, PasteFormatting.from_values(values), PasteMode.APPEND)

            staged.description = f"Generated {added} columns and {len(result.rows)} rows"

        return staged.entry

    def export_powerfx(self) -> str:
        """Power FX code that rebuilds the current table in Power Apps."""
        self._ensure_open()
        return self.generator.to_powerfx(self.grid.tasks, self.grid.columns)

    def import_powerfx(self, code: str) -> HistoryState:
        """
        Replace the document with the table described by Power FX code.

        History restarts with the imported table as INITIAL. A failed
        conversion leaves the open document untouched.
        """
        self._ensure_open()
        snapshot = self.generator.from_powerfx(code).to_snapshot()
        return self.load_document(snapshot, "Imported Power FX")

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> Optional[HistoryState]:
        self._ensure_open()
        previous = self.selection.raw_range
        entry = self.history.undo()
        self._reselect(previous)
        return entry

    def redo(self) -> Optional[HistoryState]:
        self._ensure_open()
        previous = self.selection.raw_range
        entry = self.history.redo()
        self._reselect(previous)
        return entry

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

"""
Grid Store - Owner of the live rows and columns

GridStore applies value and structural mutations and enforces the paste-mode
policies. Every mutation is computed on copies of the row/column lists and
committed in one assignment, so a failed operation leaves the grid exactly as
it was. Formatting for deleted rows/columns is purged from the attached
FormattingStore, and structural listeners are told about inserts/deletes so
positional state (the selection) can be re-mapped.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from task_grid.core.formatting_store import FormattingStore
from task_grid.models import (
    KNOWN_FIELDS,
    RESERVED_KEYS,
    CellCoordinate,
    CellFormatting,
    CellIdentifier,
    ChangeKind,
    Column,
    ColumnType,
    NormalizedRange,
    PasteFormatting,
    PasteMode,
    Priority,
    Status,
    StructuralChange,
    Task,
)
from task_grid.utils.exceptions import DuplicateColumnError, InvalidRangeError
from task_grid.utils.logger import get_logger

logger = get_logger(__name__)

StructuralListener = Callable[[StructuralChange], None]

DEFAULT_DEADLINE_DAYS = 7


def default_columns() -> List[Column]:
    """The column set of a new document."""
    return [
        Column(id="name", title="NAME", type=ColumnType.TEXT, width=192, min_width=192),
        Column(id="status", title="STATUS", type=ColumnType.STATUS, width=144, min_width=144),
        Column(id="priority", title="PRIORITY", type=ColumnType.PRIORITY, width=144, min_width=144),
        Column(id="startDate", title="START DATE", type=ColumnType.DATE, width=160, min_width=160),
        Column(id="deadline", title="DEADLINE", type=ColumnType.DATE, width=160, min_width=160),
    ]


def new_task(columns: Sequence[Column], values: Optional[Mapping[str, Any]] = None) -> Task:
    """
    Build a row with the default field values.

    New rows start as an unnamed "To do" task of medium priority that begins
    today and is due a week later. Every dynamic column key gets "".
    """
    today = date.today()
    task = Task(
        id=str(uuid.uuid4()),
        name="",
        status=Status.TO_DO.value,
        priority=Priority.MEDIUM.value,
        start_date=today.isoformat(),
        deadline=(today + timedelta(days=DEFAULT_DEADLINE_DAYS)).isoformat(),
        extra={c.key: "" for c in columns if c.key not in KNOWN_FIELDS},
    )
    return task.with_values(values) if values else task


def new_column(columns: Sequence[Column]) -> Column:
    """Generated text column titled after its position ("COLUMN 6")."""
    return Column(
        id=f"column{uuid.uuid4().hex[:8]}",
        title=f"Column {len(columns) + 1}".upper(),
        type=ColumnType.TEXT,
        width=160,
        min_width=160,
    )


@dataclass(frozen=True)
class PasteResult:
    """
    What a paste did to the grid.

    Attributes:
        mode: Paste mode that was applied
        target: Cells written (None when nothing was pasted)
        rows_added: Rows created by insertion, append or growth
        columns_added: Columns created by insertion or growth
        formats_applied: Formatting entries written or cleared
    """
    mode: PasteMode
    target: Optional[NormalizedRange] = None
    rows_added: int = 0
    columns_added: int = 0
    formats_applied: int = 0


class GridStore:
    """
    Exclusive owner of the live task and column lists.

    Usage:
        store = GridStore(columns=default_columns())
        task = store.add_row({"name": "Write report"})
        store.set_cell_value(task.id, "status", "Done")
        store.apply_paste(NormalizedRange(0, 0, 0, 0), paste, PasteMode.REPLACE)
    """

    def __init__(
        self,
        tasks: Optional[Sequence[Task]] = None,
        columns: Optional[Sequence[Column]] = None,
        formatting: Optional[FormattingStore] = None,
    ):
        self._tasks: List[Task] = list(tasks or [])
        self._columns: List[Column] = list(columns if columns is not None else default_columns())
        self.formatting = formatting if formatting is not None else FormattingStore()
        self._listeners: List[StructuralListener] = []

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def columns(self) -> Tuple[Column, ...]:
        return tuple(self._columns)

    @property
    def row_count(self) -> int:
        return len(self._tasks)

    @property
    def column_count(self) -> int:
        return len(self._columns)

    def task_index(self, task_id: str) -> int:
        """Row position of a task, or -1."""
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        return -1

    def column_index(self, column_id: str) -> int:
        """Column position, or -1."""
        for index, column in enumerate(self._columns):
            if column.id == column_id:
                return index
        return -1

    def get_task(self, task_id: str) -> Task:
        index = self.task_index(task_id)
        if index < 0:
            raise InvalidRangeError(f"unknown task '{task_id}'", reference=task_id)
        return self._tasks[index]

    def get_column(self, column_id: str) -> Column:
        index = self.column_index(column_id)
        if index < 0:
            raise InvalidRangeError(f"unknown column '{column_id}'", reference=column_id)
        return self._columns[index]

    def cell_identifier(self, coord: CellCoordinate) -> CellIdentifier:
        self._check_coordinate(coord)
        return CellIdentifier(
            self._tasks[coord.row_index].id,
            self._columns[coord.column_index].id,
        )

    def value_at(self, coord: CellCoordinate) -> str:
        self._check_coordinate(coord)
        return self._tasks[coord.row_index].get(self._columns[coord.column_index].key)

    def get_value(self, task_id: str, column_id: str) -> str:
        return self.get_task(task_id).get(self.get_column(column_id).key)

    def _check_coordinate(self, coord: CellCoordinate) -> None:
        if not (0 <= coord.row_index < len(self._tasks)
                and 0 <= coord.column_index < len(self._columns)):
            raise InvalidRangeError(
                "cell is outside the grid",
                row_count=len(self._tasks),
                column_count=len(self._columns),
                reference=coord,
            )

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: StructuralListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StructuralListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, changes: Sequence[StructuralChange]) -> None:
        for change in changes:
            for listener in list(self._listeners):
                listener(change)

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def add_row(self, values: Optional[Mapping[str, Any]] = None, index: Optional[int] = None) -> Task:
        """Insert a default row at ``index`` (end when omitted)."""
        position = len(self._tasks) if index is None else index
        if not 0 <= position <= len(self._tasks):
            raise InvalidRangeError(
                f"row index {position} is outside 0..{len(self._tasks)}",
                row_count=len(self._tasks),
            )

        task = new_task(self._columns, values)
        tasks = list(self._tasks)
        tasks.insert(position, task)
        self._tasks = tasks

        logger.debug(f"Added row {task.id} at index {position}")
        self._emit([StructuralChange(ChangeKind.ROWS_INSERTED, position, 1)])
        return task

    def delete_row(self, task_id: str) -> bool:
        """Remove a row and its formatting. Unknown ids are a silent no-op."""
        position = self.task_index(task_id)
        if position < 0:
            return False

        self._tasks = self._tasks[:position] + self._tasks[position + 1:]
        self.formatting.purge_task(task_id)

        logger.debug(f"Deleted row {task_id} at index {position}")
        self._emit([StructuralChange(ChangeKind.ROWS_DELETED, position, 1)])
        return True

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def add_column(
        self,
        column_spec: Union[Column, Mapping[str, Any], None] = None,
        index: Optional[int] = None,
    ) -> Column:
        """
        Insert a column at ``index`` (end when omitted).

        ``column_spec`` may be a Column, a mapping in Column.to_dict() shape
        (``id`` optional), or None for a generated "COLUMN N" text column.

        Raises:
            DuplicateColumnError: id or field key already used; grid unchanged
            InvalidRangeError: index outside 0..column_count
        """
        column = self._build_column(column_spec)
        self._check_unique(column, self._columns)

        position = len(self._columns) if index is None else index
        if not 0 <= position <= len(self._columns):
            raise InvalidRangeError(
                f"column index {position} is outside 0..{len(self._columns)}",
                column_count=len(self._columns),
            )

        columns = list(self._columns)
        columns.insert(position, column)
        tasks = _fill_missing_keys(self._tasks, [column])

        self._tasks, self._columns = tasks, columns
        logger.info(f"Added column {column.id} ('{column.title}') at index {position}")
        self._emit([StructuralChange(ChangeKind.COLUMNS_INSERTED, position, 1)])
        return column

    def delete_column(self, column_id: str) -> bool:
        """Remove a column, its dynamic values and its formatting."""
        position = self.column_index(column_id)
        if position < 0:
            return False

        column = self._columns[position]
        columns = self._columns[:position] + self._columns[position + 1:]
        tasks = self._tasks
        if column.key not in KNOWN_FIELDS:
            tasks = [task.without_key(column.key) for task in self._tasks]

        self._tasks, self._columns = tasks, columns
        self.formatting.purge_column(column_id)

        logger.info(f"Deleted column {column_id} at index {position}")
        self._emit([StructuralChange(ChangeKind.COLUMNS_DELETED, position, 1)])
        return True

    def rename_column(self, column_id: str, title: str) -> Column:
        """Change a column header. Titles are stored upper-case."""
        position = self.column_index(column_id)
        if position < 0:
            raise InvalidRangeError(f"unknown column '{column_id}'", reference=column_id)

        renamed = replace(self._columns[position], title=str(title).upper())
        columns = list(self._columns)
        columns[position] = renamed
        self._columns = columns
        return renamed

    def _build_column(self, column_spec: Union[Column, Mapping[str, Any], None]) -> Column:
        if column_spec is None:
            return new_column(self._columns)
        if isinstance(column_spec, Column):
            return column_spec
        data = dict(column_spec)
        generated = new_column(self._columns)
        data.setdefault("id", generated.id)
        data.setdefault("title", generated.title)
        return Column.from_dict(data)

    @staticmethod
    def _check_unique(column: Column, columns: Sequence[Column]) -> None:
        if column.key in RESERVED_KEYS:
            raise DuplicateColumnError(column.id, column.key, "key")
        for existing in columns:
            if existing.id == column.id:
                raise DuplicateColumnError(column.id, column.key, "id")
            if existing.key == column.key:
                raise DuplicateColumnError(column.id, column.key, "key")

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def set_cell_value(self, task_id: str, column_id: str, value: Any) -> Task:
        row = self.task_index(task_id)
        if row < 0:
            raise InvalidRangeError(f"unknown task '{task_id}'", reference=task_id)
        column = self.get_column(column_id)

        updated = self._tasks[row].with_value(column.key, value)
        tasks = list(self._tasks)
        tasks[row] = updated
        self._tasks = tasks
        return updated

    def set_values(self, updates: Mapping[CellCoordinate, Any]) -> int:
        """Write many cells at once. All coordinates are checked before any write."""
        for coord in updates:
            self._check_coordinate(coord)

        by_row: Dict[int, Dict[str, Any]] = {}
        for coord, value in updates.items():
            by_row.setdefault(coord.row_index, {})[self._columns[coord.column_index].key] = value

        tasks = list(self._tasks)
        for row, values in by_row.items():
            tasks[row] = tasks[row].with_values(values)
        self._tasks = tasks
        return len(updates)

    # ------------------------------------------------------------------
    # Paste
    # ------------------------------------------------------------------

    def apply_paste(
        self,
        selection: Optional[NormalizedRange],
        paste_data: PasteFormatting,
        mode: PasteMode = PasteMode.REPLACE,
        row_offset: int = 0,
    ) -> PasteResult:
        """
        Merge clipboard data into the grid according to ``mode``.

        The paste is anchored at the selection's top-left cell. REPLACE and
        VALUES_ONLY overwrite the pasted extent and grow the grid with new
        rows/columns when it runs past the edge; INSERT_ROWS/INSERT_COLUMNS
        shift existing rows/columns at the anchor; APPEND adds rows after the
        last row starting at the anchor column; FORMATS_ONLY writes formatting
        for the cells that exist and never grows the grid. ``selection`` may
        be None only for APPEND, which then aligns at the first column.

        ``row_offset`` places the payload that many rows below the anchor; a
        chunked paste passes the number of rows earlier chunks covered.

        Raises:
            InvalidRangeError: selection missing or outside the grid
        """
        mode = PasteMode(mode)
        if paste_data.is_empty:
            return PasteResult(mode=mode)

        anchor_row, anchor_col = self._paste_anchor(selection, mode)
        if mode != PasteMode.APPEND:
            anchor_row += row_offset
        paste_rows, paste_cols = paste_data.row_count, paste_data.column_count

        tasks = list(self._tasks)
        columns = list(self._columns)
        changes: List[StructuralChange] = []
        rows_added = columns_added = 0

        if mode == PasteMode.INSERT_ROWS:
            tasks[anchor_row:anchor_row] = [new_task(columns) for _ in range(paste_rows)]
            changes.append(StructuralChange(ChangeKind.ROWS_INSERTED, anchor_row, paste_rows))
            rows_added += paste_rows
        elif mode == PasteMode.APPEND:
            anchor_row = len(tasks)
        elif mode == PasteMode.INSERT_COLUMNS:
            inserted = []
            for _ in range(paste_cols):
                column = new_column(columns + inserted)
                inserted.append(column)
            columns[anchor_col:anchor_col] = inserted
            tasks = _fill_missing_keys(tasks, inserted)
            changes.append(StructuralChange(ChangeKind.COLUMNS_INSERTED, anchor_col, paste_cols))
            columns_added += paste_cols

        if mode == PasteMode.FORMATS_ONLY:
            paste_rows = max(0, min(paste_rows, len(tasks) - anchor_row))
            paste_cols = max(0, min(paste_cols, len(columns) - anchor_col))
        else:
            grown_rows = anchor_row + paste_rows - len(tasks)
            if grown_rows > 0:
                changes.append(StructuralChange(ChangeKind.ROWS_INSERTED, len(tasks), grown_rows))
                tasks.extend(new_task(columns) for _ in range(grown_rows))
                rows_added += grown_rows

            grown_cols = anchor_col + paste_cols - len(columns)
            if grown_cols > 0:
                changes.append(StructuralChange(ChangeKind.COLUMNS_INSERTED, len(columns), grown_cols))
                grown = []
                for _ in range(grown_cols):
                    column = new_column(columns)
                    columns.append(column)
                    grown.append(column)
                tasks = _fill_missing_keys(tasks, grown)
                columns_added += grown_cols

        if mode != PasteMode.FORMATS_ONLY:
            for r in range(paste_rows):
                row = anchor_row + r
                tasks[row] = tasks[row].with_values({
                    columns[anchor_col + c].key: paste_data.raw_data[r][c]
                    for c in range(paste_cols)
                })

        format_updates: Dict[CellIdentifier, Optional[CellFormatting]] = {}
        if paste_data.has_formatting and mode != PasteMode.VALUES_ONLY:
            for r in range(paste_rows):
                for c in range(paste_cols):
                    formatting = paste_data.formatting_at(r, c)
                    if formatting is None:
                        continue
                    cell_id = CellIdentifier(tasks[anchor_row + r].id, columns[anchor_col + c].id)
                    format_updates[cell_id] = None if formatting.is_empty() else formatting

        self._tasks, self._columns = tasks, columns
        self.formatting.apply_batch(format_updates)

        target = None
        if paste_rows > 0 and paste_cols > 0:
            target = NormalizedRange(
                anchor_row, anchor_row + paste_rows - 1,
                anchor_col, anchor_col + paste_cols - 1,
            )
        logger.debug(
            f"Pasted {paste_data.row_count}x{paste_data.column_count} ({mode.value}) at "
            f"({anchor_row}, {anchor_col}); +{rows_added} rows, +{columns_added} columns"
        )
        self._emit(changes)
        return PasteResult(
            mode=mode,
            target=target,
            rows_added=rows_added,
            columns_added=columns_added,
            formats_applied=len(format_updates),
        )

    def _paste_anchor(self, selection: Optional[NormalizedRange], mode: PasteMode) -> Tuple[int, int]:
        if selection is None:
            if mode == PasteMode.APPEND:
                return len(self._tasks), 0
            raise InvalidRangeError(f"{mode.value} paste needs a selection")
        if not selection.fits(len(self._tasks), len(self._columns)):
            raise InvalidRangeError(
                "paste target is outside the grid",
                row_count=len(self._tasks),
                column_count=len(self._columns),
                reference=selection,
            )
        return selection.min_row, selection.min_col

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore(self, tasks: Sequence[Task], columns: Sequence[Column]) -> None:
        """Replace the live rows/columns wholesale (undo, redo, import)."""
        self._tasks = list(tasks)
        self._columns = list(columns)
        self._emit([StructuralChange(ChangeKind.RESET)])


def _fill_missing_keys(tasks: Sequence[Task], columns: Sequence[Column]) -> List[Task]:
    keys = [c.key for c in columns if c.key not in KNOWN_FIELDS]
    if not keys:
        return list(tasks)
    return [
        task.with_values({key: "" for key in keys if key not in task.extra})
        for task in tasks
    ]

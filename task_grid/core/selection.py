"""
Selection Model - Active rectangular cell range

Selections are positional. Normalization of start/end ordering happens
here and nowhere else; every other component consumes NormalizedRange.
When the grid inserts or deletes rows/columns the model must be told
(handle_structural_change) so it never points at the wrong cells.
"""

from typing import List, Optional, Tuple

from task_grid.models import (
    CellCoordinate,
    ChangeKind,
    NormalizedRange,
    SelectionRange,
    StructuralChange,
)
from task_grid.utils.exceptions import InvalidRangeError
from task_grid.utils.logger import get_logger

logger = get_logger(__name__)


def _remap_inserted(lo: int, hi: int, index: int, count: int) -> Tuple[int, int]:
    if index <= lo:
        return lo + count, hi + count
    if index <= hi:
        return lo, hi + count
    return lo, hi


def _remap_deleted(lo: int, hi: int, index: int, count: int) -> Optional[Tuple[int, int]]:
    last_deleted = index + count - 1
    first = lo if (lo < index or lo > last_deleted) else last_deleted + 1
    last = hi if (hi > last_deleted or hi < index) else index - 1
    if first > last:
        return None

    def shift(i: int) -> int:
        return i if i < index else i - count

    return shift(first), shift(last)


class SelectionModel:
    """
    Tracks the active range against the current grid bounds.

    Attributes:
        row_count: Rows in the grid the selection refers to
        column_count: Columns in the grid the selection refers to
        version: Bumped on every change; lets callers detect a moved selection
    """

    def __init__(self, row_count: int = 0, column_count: int = 0):
        self.row_count = row_count
        self.column_count = column_count
        self.version = 0
        self._range: Optional[SelectionRange] = None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_bounds(self, row_count: int, column_count: int) -> None:
        """Update grid bounds; a selection that no longer fits is cleared."""
        self.row_count = row_count
        self.column_count = column_count
        if self._range is not None and not self._range.normalized().fits(row_count, column_count):
            logger.debug("Selection fell outside the grid bounds; clearing")
            self.clear()

    def set_range(self, selection: SelectionRange) -> NormalizedRange:
        normalized = selection.normalized()
        if not normalized.fits(self.row_count, self.column_count):
            raise InvalidRangeError(
                "selection is outside the grid",
                row_count=self.row_count,
                column_count=self.column_count,
                reference=normalized,
            )
        self._range = selection
        self.version += 1
        return normalized

    def select_cell(self, row: int, col: int) -> NormalizedRange:
        return self.set_range(SelectionRange.single(row, col))

    def select_all(self) -> Optional[NormalizedRange]:
        if self.row_count == 0 or self.column_count == 0:
            self.clear()
            return None
        return self.set_range(SelectionRange.of(0, 0, self.row_count - 1, self.column_count - 1))

    def clear(self) -> None:
        if self._range is not None:
            self._range = None
            self.version += 1

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return self._range is None

    @property
    def raw_range(self) -> Optional[SelectionRange]:
        return self._range

    @property
    def anchor(self) -> Optional[CellCoordinate]:
        normalized = self.get_normalized_range()
        return normalized.anchor if normalized else None

    def get_normalized_range(self) -> Optional[NormalizedRange]:
        return self._range.normalized() if self._range is not None else None

    def cells_in_range(self) -> List[CellCoordinate]:
        normalized = self.get_normalized_range()
        return list(normalized.coordinates()) if normalized else []

    def is_cell_selected(self, coord: CellCoordinate) -> bool:
        normalized = self.get_normalized_range()
        return normalized.contains(coord) if normalized else False

    # ------------------------------------------------------------------
    # Structural change handling
    # ------------------------------------------------------------------

    def handle_structural_change(self, change: StructuralChange) -> None:
        """Re-map the selection after rows/columns move, or clear it."""
        if change.kind == ChangeKind.ROWS_INSERTED:
            self.row_count += change.count
        elif change.kind == ChangeKind.ROWS_DELETED:
            self.row_count -= change.count
        elif change.kind == ChangeKind.COLUMNS_INSERTED:
            self.column_count += change.count
        elif change.kind == ChangeKind.COLUMNS_DELETED:
            self.column_count -= change.count

        if change.kind == ChangeKind.RESET:
            self.clear()
            return

        normalized = self.get_normalized_range()
        if normalized is None or change.count <= 0:
            return

        rows: Optional[Tuple[int, int]] = (normalized.min_row, normalized.max_row)
        cols: Optional[Tuple[int, int]] = (normalized.min_col, normalized.max_col)

        if change.kind == ChangeKind.ROWS_INSERTED:
            rows = _remap_inserted(normalized.min_row, normalized.max_row, change.index, change.count)
        elif change.kind == ChangeKind.ROWS_DELETED:
            rows = _remap_deleted(normalized.min_row, normalized.max_row, change.index, change.count)
        elif change.kind == ChangeKind.COLUMNS_INSERTED:
            cols = _remap_inserted(normalized.min_col, normalized.max_col, change.index, change.count)
        elif change.kind == ChangeKind.COLUMNS_DELETED:
            cols = _remap_deleted(normalized.min_col, normalized.max_col, change.index, change.count)

        if rows is None or cols is None:
            logger.debug(f"Selection removed by {change.kind.value}; clearing")
            self.clear()
            return

        self._range = SelectionRange.of(rows[0], cols[0], rows[1], cols[1])
        self.version += 1

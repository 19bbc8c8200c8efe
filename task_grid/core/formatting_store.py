"""
Formatting Store - Sparse per-cell style overlays

Formatting is keyed by CellIdentifier (task id + column id), never by
position, so it follows a cell through row/column insertions. A cell with
no entry renders with DEFAULT_FORMATTING.
"""

from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from task_grid.models import DEFAULT_FORMATTING, CellFormatting, CellIdentifier
from task_grid.utils.logger import get_logger

logger = get_logger(__name__)


class FormattingStore:
    """
    Holds the CellIdentifier -> CellFormatting map for one document.

    Usage:
        store = FormattingStore()
        cell = CellIdentifier("task-1", "name")
        store.set_formatting(cell, CellFormatting(font_weight="bold"))
        store.get_formatting(cell).font_weight   # "bold"
        store.purge_task("task-1")
        store.get_formatting(cell) == DEFAULT_FORMATTING   # True
    """

    def __init__(self, entries: Optional[Mapping[CellIdentifier, CellFormatting]] = None):
        self._entries: Dict[CellIdentifier, CellFormatting] = {}
        if entries:
            self.restore(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, cell_id: object) -> bool:
        return cell_id in self._entries

    def __iter__(self) -> Iterator[CellIdentifier]:
        return iter(self._entries)

    def items(self) -> Iterable[Tuple[CellIdentifier, CellFormatting]]:
        return self._entries.items()

    # ------------------------------------------------------------------
    # Single-cell operations
    # ------------------------------------------------------------------

    def set_formatting(self, cell_id: CellIdentifier, formatting: CellFormatting) -> None:
        """Replace the cell's formatting. An empty formatting removes the entry."""
        if formatting.is_empty():
            self._entries.pop(cell_id, None)
        else:
            self._entries[cell_id] = formatting

    def get_formatting(self, cell_id: CellIdentifier) -> CellFormatting:
        return self._entries.get(cell_id, DEFAULT_FORMATTING)

    def has_formatting(self, cell_id: CellIdentifier) -> bool:
        return cell_id in self._entries

    def clear_formatting(self, cell_id: CellIdentifier) -> bool:
        """Drop the cell's entry. Returns False if it had none."""
        return self._entries.pop(cell_id, None) is not None

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def bulk_apply(self, cell_ids: Iterable[CellIdentifier], formatting: CellFormatting) -> int:
        """
        Merge ``formatting`` over each cell's existing style.

        Only the attributes set on ``formatting`` change; a bold toggle keeps
        a cell's colour. Returns the number of cells touched.
        """
        count = 0
        for cell_id in cell_ids:
            current = self._entries.get(cell_id)
            merged = current.merged_with(formatting) if current else formatting
            self.set_formatting(cell_id, merged)
            count += 1
        return count

    def apply_batch(self, updates: Mapping[CellIdentifier, Optional[CellFormatting]]) -> None:
        """Write precomputed replacements in one step; None clears a cell."""
        for cell_id, formatting in updates.items():
            if formatting is None:
                self._entries.pop(cell_id, None)
            else:
                self.set_formatting(cell_id, formatting)

    def purge_task(self, task_id: str) -> int:
        """Remove every entry of a deleted row."""
        return self._purge(lambda cell_id: cell_id.task_id == task_id, f"task {task_id}")

    def purge_column(self, column_id: str) -> int:
        """Remove every entry of a deleted column."""
        return self._purge(lambda cell_id: cell_id.column_id == column_id, f"column {column_id}")

    def _purge(self, predicate, label: str) -> int:
        doomed = [cell_id for cell_id in self._entries if predicate(cell_id)]
        for cell_id in doomed:
            del self._entries[cell_id]
        if doomed:
            logger.debug(f"Purged {len(doomed)} formatting entries for {label}")
        return len(doomed)

    # ------------------------------------------------------------------
    # Snapshot support
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[CellIdentifier, CellFormatting]:
        """Independent copy of the map (values are immutable)."""
        return dict(self._entries)

    def restore(self, entries: Mapping[CellIdentifier, CellFormatting]) -> None:
        self._entries = {
            cell_id: formatting
            for cell_id, formatting in entries.items()
            if not formatting.is_empty()
        }

"""
History Manager - Snapshot-based undo/redo

Every committed action is stored as a HistoryState holding full before and
after snapshots. The first entry is always INITIAL (the document baseline)
and is never undone. Depth is bounded: when the stack overflows, the oldest
action is folded into the baseline.
"""

from typing import Callable, List, Optional

from task_grid.models import ActionType, EditorSnapshot, HistoryState
from task_grid.utils.exceptions import HistoryUnderflowError
from task_grid.utils.logger import get_logger

logger = get_logger(__name__)

RestoreCallback = Callable[[EditorSnapshot], None]

DEFAULT_MAX_ENTRIES = 100


class HistoryManager:
    """
    Linear undo stack with a parallel redo stack.

    Usage:
        history = HistoryManager(restore_fn=editor.restore_snapshot)
        history.record(ActionType.ADD_ROW, before, after, "Added row")
        history.undo()    # restore_fn(before)
        history.redo()    # restore_fn(after)

    Args:
        restore_fn: Called with the snapshot to restore on undo/redo
        max_entries: Maximum undo-stack length, INITIAL included
    """

    def __init__(self, restore_fn: RestoreCallback, max_entries: int = DEFAULT_MAX_ENTRIES):
        if max_entries < 2:
            raise ValueError("max_entries must be at least 2 (INITIAL plus one action)")
        self._restore_fn = restore_fn
        self.max_entries = max_entries
        self._undo_stack: List[HistoryState] = []
        self._redo_stack: List[HistoryState] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self._undo_stack

    @property
    def can_undo(self) -> bool:
        return len(self._undo_stack) > 1

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    @property
    def current(self) -> Optional[HistoryState]:
        return self._undo_stack[-1] if self._undo_stack else None

    @property
    def baseline(self) -> Optional[EditorSnapshot]:
        return self._undo_stack[0].after if self._undo_stack else None

    def entries(self) -> List[dict]:
        """Undo stack as display summaries, oldest first."""
        return [entry.to_summary() for entry in self._undo_stack]

    def redo_entries(self) -> List[dict]:
        """Redo stack as display summaries, next redo first."""
        return [entry.to_summary() for entry in reversed(self._redo_stack)]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def initialize(self, snapshot: EditorSnapshot, description: str = "Initial state") -> HistoryState:
        """Seed the baseline. Any previous history is dropped."""
        entry = HistoryState(
            action_type=ActionType.INITIAL,
            description=description,
            before=snapshot,
            after=snapshot,
        )
        self._undo_stack = [entry]
        self._redo_stack = []
        return entry

    reset = initialize

    def record(
        self,
        action_type: ActionType,
        before: EditorSnapshot,
        after: EditorSnapshot,
        description: str = "",
    ) -> HistoryState:
        """
        Push a committed action and clear the redo stack.

        Recording into an empty history first seeds INITIAL from ``before``.
        """
        if self.is_empty:
            self.initialize(before)

        entry = HistoryState(
            action_type=ActionType(action_type),
            description=description or ActionType(action_type).value.replace("_", " "),
            before=before,
            after=after,
        )
        self._undo_stack.append(entry)
        if self._redo_stack:
            logger.debug(f"Discarding {len(self._redo_stack)} redo entries")
            self._redo_stack = []

        self._evict_overflow()
        logger.debug(f"Recorded {entry.action_type.value}: {entry.description}")
        return entry

    def undo(self) -> Optional[HistoryState]:
        """Restore the top entry's before-state. No-op at the baseline."""
        try:
            entry = self._pop_for("undo")
        except HistoryUnderflowError as e:
            logger.debug(e.message)
            return None

        self._restore_fn(entry.before)
        self._redo_stack.append(entry)
        logger.info(f"Undid {entry.action_type.value}: {entry.description}")
        return entry

    def redo(self) -> Optional[HistoryState]:
        """Re-apply the most recently undone entry. No-op when nothing to redo."""
        try:
            entry = self._pop_for("redo")
        except HistoryUnderflowError as e:
            logger.debug(e.message)
            return None

        self._restore_fn(entry.after)
        self._undo_stack.append(entry)
        logger.info(f"Redid {entry.action_type.value}: {entry.description}")
        return entry

    def _pop_for(self, direction: str) -> HistoryState:
        if direction == "undo":
            if not self.can_undo:
                raise HistoryUnderflowError("undo")
            return self._undo_stack.pop()
        if not self.can_redo:
            raise HistoryUnderflowError("redo")
        return self._redo_stack.pop()

    def _evict_overflow(self) -> None:
        while len(self._undo_stack) > self.max_entries:
            evicted = self._undo_stack.pop(1)
            self._undo_stack[0] = HistoryState(
                action_type=ActionType.INITIAL,
                description=self._undo_stack[0].description,
                before=evicted.after,
                after=evicted.after,
            )
            logger.debug(f"History full; folded {evicted.action_type.value} into the baseline")

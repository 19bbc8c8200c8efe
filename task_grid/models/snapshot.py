"""
Snapshot module - Whole-document state and history entries
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .enums import ActionType
from .formatting import CellFormatting
from .grid import RESERVED_KEYS, CellIdentifier, Column, Task


@dataclass(frozen=True)
class EditorSnapshot:
    """
    Full copy of tasks, columns and formatting at one point in time.

    Rows, columns and formatting values are immutable, so a snapshot
    only copies the containers.
    """
    tasks: Tuple[Task, ...] = ()
    columns: Tuple[Column, ...] = ()
    formatting: Mapping[CellIdentifier, CellFormatting] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "tasks", tuple(self.tasks))
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "formatting", MappingProxyType(dict(self.formatting)))
        for column in self.columns:
            if column.key in RESERVED_KEYS:
                raise ValueError(f"Column '{column.id}' uses the reserved key '{column.key}'")

    @classmethod
    def capture(
        cls,
        tasks: Iterable[Task],
        columns: Iterable[Column],
        formatting: Mapping[CellIdentifier, CellFormatting],
    ) -> "EditorSnapshot":
        return cls(tuple(tasks), tuple(columns), formatting)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict/list/str structure; from_dict(to_dict()) == self."""
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "columns": [column.to_dict() for column in self.columns],
            "formatting": [
                {
                    "taskId": cell_id.task_id,
                    "columnId": cell_id.column_id,
                    "formatting": fmt.to_dict(),
                }
                for cell_id, fmt in self.formatting.items()
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EditorSnapshot":
        formatting = {}
        for entry in data.get("formatting", []):
            cell_id = CellIdentifier(str(entry["taskId"]), str(entry["columnId"]))
            formatting[cell_id] = CellFormatting.from_dict(entry.get("formatting", {}))
        return cls(
            tasks=tuple(Task.from_dict(t) for t in data.get("tasks", [])),
            columns=tuple(Column.from_dict(c) for c in data.get("columns", [])),
            formatting=formatting,
        )


@dataclass(frozen=True)
class HistoryState:
    """
    One undo-stack entry: the document before and after an action.
    """
    action_type: ActionType
    description: str
    before: EditorSnapshot
    after: EditorSnapshot
    action_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: float = field(default_factory=lambda: datetime.now().timestamp())

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return self.after.tasks

    @property
    def columns(self) -> Tuple[Column, ...]:
        return self.after.columns

    @property
    def tasks_before(self) -> Optional[Tuple[Task, ...]]:
        return self.before.tasks

    @property
    def formatting(self) -> Mapping[CellIdentifier, CellFormatting]:
        return self.after.formatting

    @property
    def columns_before(self) -> Optional[Tuple[Column, ...]]:
        return self.before.columns

    @property
    def formatting_before(self) -> Optional[Mapping[CellIdentifier, CellFormatting]]:
        return self.before.formatting

    @property
    def formatted_time(self) -> str:
        return datetime.fromtimestamp(self.timestamp).strftime("%H:%M:%S")

    def to_summary(self) -> Dict[str, Any]:
        """Display-oriented view of the entry (no snapshot payloads)."""
        return {
            "action_id": self.action_id,
            "action_type": self.action_type.value,
            "description": self.description,
            "timestamp": self.timestamp,
            "formatted_time": self.formatted_time,
            "row_count": len(self.after.tasks),
            "column_count": len(self.after.columns),
        }

"""
Grid module - Row, column and cell reference structures

Rows and columns are immutable value objects. Mutations produce new
instances, so snapshots can share unchanged rows with the live grid
without ever aliasing a structure that is later modified.
"""

import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

from .enums import ChangeKind, ColumnType, Priority, Status

# Column key -> Task attribute for the fixed fields every row carries
KNOWN_FIELDS: Mapping[str, str] = MappingProxyType({
    "name": "name",
    "status": "status",
    "priority": "priority",
    "startDate": "start_date",
    "deadline": "deadline",
})

# Row fields no column may write to
RESERVED_KEYS = frozenset({"id"})

DEFAULT_COLUMN_WIDTH = 160

_TAILWIND_WIDTH = re.compile(r"^w-(\d+)$")
_TAILWIND_MIN_WIDTH = re.compile(r"^min-w-\[(\d+)px\]$")


def parse_width(value: Any, default: Optional[int] = DEFAULT_COLUMN_WIDTH) -> Optional[int]:
    """
    Read a column width given as pixels or as a width class.

    Accepts ints, numeric strings, "w-40" (4px units) and "min-w-[160px]".
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"Invalid width: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    match = _TAILWIND_WIDTH.match(text)
    if match:
        return int(match.group(1)) * 4
    match = _TAILWIND_MIN_WIDTH.match(text)
    if match:
        return int(match.group(1))
    raise ValueError(f"Invalid width: {value!r}")


@dataclass(frozen=True)
class Column:
    """
    Column definition.

    Fields:
        id: Unique column identifier (formatting maps key on it)
        title: Header text
        key: Field key the column reads on every row (defaults to id)
        type: Presentation type
        width: Width in pixels
        min_width: Optional minimum width in pixels
    """
    id: str
    title: str
    key: str = ""
    type: ColumnType = ColumnType.TEXT
    width: int = DEFAULT_COLUMN_WIDTH
    min_width: Optional[int] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Column id cannot be empty")
        if not self.key:
            object.__setattr__(self, "key", self.id)
        if not isinstance(self.type, ColumnType):
            object.__setattr__(self, "type", ColumnType(str(self.type).lower()))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "key": self.key,
            "type": self.type.value,
            "width": self.width,
        }
        if self.min_width is not None:
            data["minWidth"] = self.min_width
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Column":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", data["id"])),
            key=str(data.get("key") or data["id"]),
            type=ColumnType(str(data.get("type", ColumnType.TEXT.value)).lower()),
            width=parse_width(data.get("width")),
            min_width=parse_width(data.get("minWidth", data.get("min_width")), default=None),
        )


@dataclass(frozen=True)
class Task:
    """
    A single row.

    The known fields are stored as attributes; any other column key lives
    in ``extra``, an ordered read-only mapping. All values are strings.
    """
    id: str
    name: str = ""
    status: str = Status.TO_DO.value
    priority: str = Priority.MEDIUM.value
    start_date: str = ""
    deadline: str = ""
    extra: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Task id cannot be empty")
        extra = {str(k): str(v) for k, v in self.extra.items()}
        if RESERVED_KEYS.intersection(extra):
            raise ValueError("Task fields cannot shadow the row id")
        object.__setattr__(self, "extra", MappingProxyType(extra))

    def has_key(self, key: str) -> bool:
        return key in KNOWN_FIELDS or key in self.extra

    def get(self, key: str) -> str:
        """Raw value for a column key; "" when the row has no such field."""
        attr = KNOWN_FIELDS.get(key)
        if attr is not None:
            return getattr(self, attr)
        return self.extra.get(key, "")

    def with_value(self, key: str, value: Any) -> "Task":
        value = "" if value is None else str(value)
        attr = KNOWN_FIELDS.get(key)
        if attr is not None:
            return replace(self, **{attr: value})
        extra = dict(self.extra)
        extra[key] = value
        return replace(self, extra=extra)

    def with_values(self, values: Mapping[str, Any]) -> "Task":
        if not values:
            return self
        known: Dict[str, str] = {}
        extra = dict(self.extra)
        for key, value in values.items():
            value = "" if value is None else str(value)
            attr = KNOWN_FIELDS.get(key)
            if attr is not None:
                known[attr] = value
            else:
                extra[key] = value
        return replace(self, extra=extra, **known)

    def without_key(self, key: str) -> "Task":
        if key not in self.extra:
            return self
        extra = dict(self.extra)
        del extra[key]
        return replace(self, extra=extra)

    def to_dict(self) -> Dict[str, str]:
        data = {"id": self.id}
        for key in KNOWN_FIELDS:
            data[key] = self.get(key)
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Task":
        known = {attr: str(data.get(key, "")) for key, attr in KNOWN_FIELDS.items() if key in data}
        extra = {
            str(k): "" if v is None else str(v)
            for k, v in data.items()
            if k != "id" and k not in KNOWN_FIELDS
        }
        return cls(id=str(data["id"]), extra=extra, **known)


@dataclass(frozen=True, order=True)
class CellCoordinate:
    """Positional cell reference; valid only for one rows/columns layout."""
    row_index: int
    column_index: int


@dataclass(frozen=True)
class CellIdentifier:
    """Identity-stable cell reference that survives reordering."""
    task_id: str
    column_id: str


@dataclass(frozen=True)
class NormalizedRange:
    """Ordered, inclusive rectangular range."""
    min_row: int
    max_row: int
    min_col: int
    max_col: int

    @classmethod
    def from_anchor(cls, row: int, col: int, row_count: int, column_count: int) -> "NormalizedRange":
        return cls(row, row + max(row_count, 1) - 1, col, col + max(column_count, 1) - 1)

    @property
    def anchor(self) -> CellCoordinate:
        return CellCoordinate(self.min_row, self.min_col)

    @property
    def row_count(self) -> int:
        return self.max_row - self.min_row + 1

    @property
    def column_count(self) -> int:
        return self.max_col - self.min_col + 1

    def contains(self, coord: CellCoordinate) -> bool:
        return (self.min_row <= coord.row_index <= self.max_row
                and self.min_col <= coord.column_index <= self.max_col)

    def coordinates(self) -> Iterator[CellCoordinate]:
        """Row-major walk over every cell in the range."""
        for row in range(self.min_row, self.max_row + 1):
            for col in range(self.min_col, self.max_col + 1):
                yield CellCoordinate(row, col)

    def fits(self, row_count: int, column_count: int) -> bool:
        return (0 <= self.min_row and self.max_row < row_count
                and 0 <= self.min_col and self.max_col < column_count)


@dataclass(frozen=True)
class SelectionRange:
    """
    Raw selection as the user dragged it. ``start`` is not guaranteed to
    be above/left of ``end``; call normalized() before use.
    """
    start: CellCoordinate
    end: CellCoordinate

    @classmethod
    def single(cls, row: int, col: int) -> "SelectionRange":
        coord = CellCoordinate(row, col)
        return cls(coord, coord)

    @classmethod
    def of(cls, start_row: int, start_col: int, end_row: int, end_col: int) -> "SelectionRange":
        return cls(CellCoordinate(start_row, start_col), CellCoordinate(end_row, end_col))

    def normalized(self) -> NormalizedRange:
        return NormalizedRange(
            min_row=min(self.start.row_index, self.end.row_index),
            max_row=max(self.start.row_index, self.end.row_index),
            min_col=min(self.start.column_index, self.end.column_index),
            max_col=max(self.start.column_index, self.end.column_index),
        )


@dataclass(frozen=True)
class StructuralChange:
    """Notification sent to listeners when rows/columns move."""
    kind: ChangeKind
    index: int = 0
    count: int = 0


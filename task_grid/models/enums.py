"""
Enums module - Column, paste, history and clipboard enumeration types
"""

from enum import Enum


class ColumnType(str, Enum):
    """Column types; decides how a column's string values are presented"""
    TEXT = "text"
    SELECT = "select"
    STATUS = "status"
    PRIORITY = "priority"
    DATE = "date"
    NUMBER = "number"


class Status(str, Enum):
    """Status values offered for the status column"""
    TO_DO = "To do"
    IN_PROGRESS = "In progress"
    DONE = "Done"
    BLOCKED = "Blocked"


class Priority(str, Enum):
    """Priority values offered for the priority column"""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class PasteMode(str, Enum):
    """How clipboard data is merged into the grid"""
    REPLACE = "replace"
    INSERT_ROWS = "insert_rows"
    INSERT_COLUMNS = "insert_columns"
    APPEND = "append"
    VALUES_ONLY = "values_only"
    FORMATS_ONLY = "formats_only"


class ActionType(str, Enum):
    """Tag carried by every history entry"""
    INITIAL = "initial"
    PASTE = "paste"
    ADD_ROW = "add_row"
    DELETE_ROW = "delete_row"
    ADD_COLUMN = "add_column"
    DELETE_COLUMN = "delete_column"
    RENAME_COLUMN = "rename_column"
    EDIT_CELL = "edit_cell"
    MULTI_CELL_EDIT = "multi_cell_edit"
    FORMAT_CELLS = "format_cells"
    GENERATE = "generate"


class SourceFormat(str, Enum):
    """Clipboard payload kind a paste was parsed from"""
    HTML = "html"
    TEXT = "text"


class ChangeKind(str, Enum):
    """Structural grid changes that invalidate positional coordinates"""
    ROWS_INSERTED = "rows_inserted"
    ROWS_DELETED = "rows_deleted"
    COLUMNS_INSERTED = "columns_inserted"
    COLUMNS_DELETED = "columns_deleted"
    RESET = "reset"

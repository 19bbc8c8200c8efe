"""
Models module - Data structures and enums for the table editing engine
"""

from .enums import ActionType, ChangeKind, ColumnType, PasteMode, Priority, SourceFormat, Status
from .grid import (
    KNOWN_FIELDS,
    RESERVED_KEYS,
    CellCoordinate,
    CellIdentifier,
    Column,
    NormalizedRange,
    SelectionRange,
    StructuralChange,
    Task,
    parse_width,
)
from .formatting import DEFAULT_FORMATTING, CellFormatting, FormattedCellData, PasteFormatting
from .snapshot import EditorSnapshot, HistoryState
from .messages import (
    ChatMessage,
    GenerationRequest,
    GenerationResponse,
    GenerationUsage,
    create_generation_request,
    create_generation_response,
    response_text,
)

__all__ = [
    # Enums
    'ActionType',
    'ChangeKind',
    'ColumnType',
    'PasteMode',
    'Priority',
    'SourceFormat',
    'Status',

    # Grid structures
    'KNOWN_FIELDS',
    'RESERVED_KEYS',
    'CellCoordinate',
    'CellIdentifier',
    'Column',
    'NormalizedRange',
    'SelectionRange',
    'StructuralChange',
    'Task',
    'parse_width',

    # Formatting and paste payloads
    'DEFAULT_FORMATTING',
    'CellFormatting',
    'FormattedCellData',
    'PasteFormatting',

    # Snapshots and history
    'EditorSnapshot',
    'HistoryState',

    # Generation messages
    'ChatMessage',
    'GenerationRequest',
    'GenerationResponse',
    'GenerationUsage',
    'create_generation_request',
    'create_generation_response',
    'response_text',
]

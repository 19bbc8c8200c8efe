"""
Utilities module - Logging, errors, clipboard parsing, LLM access and file I/O
"""

from .logger import get_logger, set_log_level
from .exceptions import (
    # Base
    TaskGridError,
    # Configuration
    ConfigurationError,
    MissingDependencyError,
    # Grid
    GridError,
    DuplicateColumnError,
    InvalidRangeError,
    # Clipboard / history / persistence
    MalformedClipboardError,
    HistoryUnderflowError,
    SnapshotError,
    # Generation
    LLMError,
    GenerationError,
    # Utilities
    wrap_exception,
)
from .clipboard_parser import ClipboardParser, parse_css, parse_html_table, parse_text
from .prompt_builder import PromptBuilder
from .llm_client import LLMClient, ResponseWrapper
from .snapshot_io import (
    ImportResult,
    export_csv,
    export_xlsx,
    import_csv,
    import_csv_text,
    import_xlsx,
    load_snapshot,
    save_snapshot,
    snapshot_from_json,
    snapshot_to_json,
)

__all__ = [
    'get_logger',
    'set_log_level',

    # Exceptions
    'TaskGridError',
    'ConfigurationError',
    'MissingDependencyError',
    'GridError',
    'DuplicateColumnError',
    'InvalidRangeError',
    'MalformedClipboardError',
    'HistoryUnderflowError',
    'SnapshotError',
    'LLMError',
    'GenerationError',
    'wrap_exception',

    # Clipboard
    'ClipboardParser',
    'parse_css',
    'parse_html_table',
    'parse_text',

    # LLM
    'PromptBuilder',
    'LLMClient',
    'ResponseWrapper',

    # Snapshot and spreadsheet I/O
    'ImportResult',
    'export_csv',
    'export_xlsx',
    'import_csv',
    'import_csv_text',
    'import_xlsx',
    'load_snapshot',
    'save_snapshot',
    'snapshot_from_json',
    'snapshot_to_json',
]

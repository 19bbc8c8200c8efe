"""
Core module - Grid, selection, formatting, history and the editor facade
"""

from .formatting_store import FormattingStore
from .selection import SelectionModel
from .grid_store import GridStore, PasteResult, default_columns, new_column, new_task
from .history import HistoryManager
from .generator import (
    MODEL_PRICING,
    GenerationResult,
    TableGenerator,
    TokenEstimate,
    estimate_cost,
    estimate_tokens,
    parse_generation_reply,
)
from .editor import PasteOutcome, PasteTicket, TableEditor

__all__ = [
    'FormattingStore',
    'SelectionModel',
    'GridStore',
    'PasteResult',
    'default_columns',
    'new_column',
    'new_task',
    'HistoryManager',
    'MODEL_PRICING',
    'GenerationResult',
    'TableGenerator',
    'TokenEstimate',
    'estimate_cost',
    'estimate_tokens',
    'parse_generation_reply',
    'PasteOutcome',
    'PasteTicket',
    'TableEditor',
]

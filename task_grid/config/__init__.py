"""
Configuration module - Settings and configuration management
"""

from .editor_config import EditorConfig, LLMConfig, LLMProvider, HistoryConfig, PasteConfig
from .env_config import EnvConfig

__all__ = [
    'EditorConfig',
    'LLMConfig',
    'LLMProvider',
    'HistoryConfig',
    'PasteConfig',
    'EnvConfig',
]

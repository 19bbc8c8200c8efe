"""
Editor configuration - Settings for the table editing engine
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import os
from enum import Enum

from task_grid.models.enums import PasteMode


class LLMProvider(str, Enum):
    """Supported LLM providers for the generation collaborator"""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


@dataclass
class LLMConfig:
    """
    Configuration for the text-generation collaborator.

    Attributes:
        provider: LLM provider (anthropic, openai)
        model_name: Model identifier for the provider
        api_key: API key (falls back to LLM_API_KEY or the provider's variable)
        base_url: Base URL for the API, e.g. a relay in front of the provider
        temperature: Temperature for response generation (0-2)
        max_tokens: Maximum tokens in the reply
        timeout: Request timeout in seconds
    """

    provider: str = "anthropic"
    model_name: str = "claude-3-5-haiku-20241022"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.2
    max_tokens: int = 4000
    timeout: int = 60

    def __post_init__(self):
        valid_providers = [p.value for p in LLMProvider]
        if self.provider not in valid_providers:
            raise ValueError(f"Provider must be one of {valid_providers}, got {self.provider}")

        if not 0 <= self.temperature <= 2:
            raise ValueError(f"Temperature must be between 0 and 2, got {self.temperature}")

        if self.max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")

        if self.timeout < 1:
            raise ValueError("timeout must be at least 1 second")

        if not self.api_key:
            self.api_key = os.getenv('LLM_API_KEY') or os.getenv(self.api_key_env_var())

    def api_key_env_var(self) -> str:
        """Provider-specific API key variable (fallback only)."""
        return {
            "anthropic": "ANTHROPIC_API_KEY",
            "openai": "OPENAI_API_KEY",
        }.get(self.provider, f"{self.provider.upper()}_API_KEY")

    @classmethod
    def from_env(cls, prefix: str = "GRID_") -> "LLMConfig":
        return cls(
            provider=os.getenv(f"{prefix}LLM_PROVIDER", "anthropic"),
            model_name=os.getenv(f"{prefix}LLM_MODEL", "claude-3-5-haiku-20241022"),
            api_key=os.getenv("LLM_API_KEY"),
            base_url=os.getenv("LLM_API_BASE_URL"),
            temperature=float(os.getenv(f"{prefix}LLM_TEMPERATURE", "0.2")),
            max_tokens=int(os.getenv(f"{prefix}LLM_MAX_TOKENS", "4000")),
            timeout=int(os.getenv(f"{prefix}LLM_TIMEOUT", "60")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding API key for security."""
        return {
            "provider": self.provider,
            "model_name": self.model_name,
            "base_url": self.base_url,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
        }


@dataclass
class HistoryConfig:
    """
    Undo/redo settings.

    Attributes:
        max_entries: Maximum undo entries kept (the baseline entry included)
    """
    max_entries: int = 100

    def __post_init__(self):
        if self.max_entries < 2:
            raise ValueError("max_entries must be at least 2 (baseline plus one action)")

    @classmethod
    def from_env(cls, prefix: str = "GRID_") -> "HistoryConfig":
        return cls(max_entries=int(os.getenv(f"{prefix}HISTORY_MAX_ENTRIES", "100")))

    def to_dict(self) -> Dict[str, Any]:
        return {"max_entries": self.max_entries}


@dataclass
class PasteConfig:
    """
    Paste settings.

    Attributes:
        chunk_rows: Rows applied per internal step for large pastes
        default_mode: Paste mode used when the caller does not pick one
    """
    chunk_rows: int = 500
    default_mode: PasteMode = PasteMode.REPLACE

    def __post_init__(self):
        if self.chunk_rows < 1:
            raise ValueError("chunk_rows must be at least 1")
        if not isinstance(self.default_mode, PasteMode):
            self.default_mode = PasteMode(str(self.default_mode).lower())

    @classmethod
    def from_env(cls, prefix: str = "GRID_") -> "PasteConfig":
        return cls(
            chunk_rows=int(os.getenv(f"{prefix}PASTE_CHUNK_ROWS", "500")),
            default_mode=PasteMode(os.getenv(f"{prefix}PASTE_DEFAULT_MODE", "replace").lower()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"chunk_rows": self.chunk_rows, "default_mode": self.default_mode.value}


@dataclass
class EditorConfig:
    """
    Configuration settings for a TableEditor.

    Attributes:
        llm: Generation collaborator configuration
        history: Undo/redo configuration
        paste: Paste configuration
        log_level: Logging level (default: 'INFO')
        debug: Enable debug mode with detailed logging (default: False)
    """

    llm: LLMConfig = field(default_factory=LLMConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    paste: PasteConfig = field(default_factory=PasteConfig)
    log_level: str = "INFO"
    debug: bool = False

    def __post_init__(self):
        if self.log_level not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if isinstance(self.llm, dict):
            self.llm = LLMConfig(**self.llm)
        if isinstance(self.history, dict):
            self.history = HistoryConfig(**self.history)
        if isinstance(self.paste, dict):
            self.paste = PasteConfig(**self.paste)

    @classmethod
    def from_env(cls, prefix: str = "GRID_") -> "EditorConfig":
        """
        Create configuration from environment variables.

        Example:
            export GRID_LOG_LEVEL=DEBUG
            export GRID_HISTORY_MAX_ENTRIES=50
            export ANTHROPIC_API_KEY=sk-...
            config = EditorConfig.from_env()
        """
        return cls(
            llm=LLMConfig.from_env(prefix),
            history=HistoryConfig.from_env(prefix),
            paste=PasteConfig.from_env(prefix),
            log_level=os.getenv(f"{prefix}LOG_LEVEL", "INFO").upper(),
            debug=os.getenv(f"{prefix}DEBUG", "false").lower() == "true",
        )

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "EditorConfig":
        """
        Create configuration from dictionary.

        Example:
            config = EditorConfig.from_dict({
                "history": {"max_entries": 20},
                "paste": {"chunk_rows": 100, "default_mode": "values_only"},
            })
        """
        config_dict = dict(config_dict)
        return cls(
            llm=config_dict.pop("llm", {}),
            history=config_dict.pop("history", {}),
            paste=config_dict.pop("paste", {}),
            **config_dict
        )

    def to_dict(self, include_secrets: bool = False) -> Dict[str, Any]:
        result = {
            "llm": self.llm.to_dict(),
            "history": self.history.to_dict(),
            "paste": self.paste.to_dict(),
            "log_level": self.log_level,
            "debug": self.debug,
        }
        if include_secrets and self.llm.api_key:
            result["llm"]["api_key"] = self.llm.api_key
        return result

"""
Environment configuration - Load settings from .env files
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Dict

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class EnvConfig:
    """
    Load and manage configuration from environment variables and .env files.

    Supports multiple sources with priority:
    1. Environment variables (highest priority)
    2. .env file in current/specified directory or up to 3 parents
    """

    _loaded_path: Optional[Path] = None

    @classmethod
    def load_env_file(cls, path: Optional[str] = None) -> bool:
        """
        Load environment variables from .env file.

        Variables already present in the process environment are not
        overwritten.

        Args:
            path: Path to .env file (default: search current dir and parents)

        Returns:
            True if file was loaded, False otherwise
        """
        if path:
            env_path: Optional[Path] = Path(path)
        else:
            env_path = None
            current = Path.cwd()
            for _ in range(4):  # Current dir + 3 parent levels
                potential_path = current / ".env"
                if potential_path.exists():
                    env_path = potential_path
                    break
                if current.parent == current:
                    break
                current = current.parent

        if env_path and env_path.exists():
            load_dotenv(env_path, override=False)
            cls._loaded_path = env_path
            logger.debug(f"Loaded environment from {env_path}")
            return True

        return False

    @staticmethod
    def get(key: str, default: Optional[str] = None) -> Optional[str]:
        """Get environment variable with optional default."""
        return os.getenv(key, default)

    @staticmethod
    def get_bool(key: str, default: bool = False) -> bool:
        """Get boolean environment variable."""
        value = os.getenv(key, str(default)).lower()
        return value in ('true', '1', 'yes', 'on')

    @staticmethod
    def get_int(key: str, default: int = 0) -> int:
        """Get integer environment variable."""
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    @staticmethod
    def get_float(key: str, default: float = 0.0) -> float:
        """Get float environment variable."""
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    @staticmethod
    def get_json(key: str, default: Optional[Dict] = None) -> Optional[Dict]:
        """Get JSON environment variable."""
        value = os.getenv(key)
        if not value:
            return default
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return default

    @staticmethod
    def check_required(*keys: str) -> bool:
        """
        Check if required environment variables are set.

        Returns:
            True if all are set, False otherwise
        """
        missing = [key for key in keys if not os.getenv(key)]
        if missing:
            logger.warning(f"Missing required environment variables: {', '.join(missing)}")
            return False
        return True

    @staticmethod
    def show_config_template(llm_provider: str = "anthropic") -> str:
        """
        Show .env template for configuration.

        Args:
            llm_provider: LLM provider to show config for

        Returns:
            Template as string
        """
        common = """
GRID_LOG_LEVEL=INFO
GRID_ENABLE_FILE_LOGGING=false
GRID_HISTORY_MAX_ENTRIES=100
GRID_PASTE_CHUNK_ROWS=500
GRID_PASTE_DEFAULT_MODE=replace
"""
        templates = {
            "anthropic": """
# Anthropic Configuration
ANTHROPIC_API_KEY=sk-ant-...
GRID_LLM_PROVIDER=anthropic
GRID_LLM_MODEL=claude-3-5-haiku-20241022
GRID_LLM_MAX_TOKENS=4000
""",
            "openai": """
# OpenAI Configuration
OPENAI_API_KEY=sk-...
GRID_LLM_PROVIDER=openai
GRID_LLM_MODEL=gpt-4o-mini
GRID_LLM_MAX_TOKENS=4000
""",
            "proxy": """
# Anthropic-compatible relay in front of the API
LLM_API_KEY=relay-token
LLM_API_BASE_URL=https://example.invalid/functions/v1/claude-api-proxy
GRID_LLM_PROVIDER=anthropic
GRID_LLM_MODEL=claude-3-5-haiku-20241022
""",
        }

        return templates.get(llm_provider, templates["anthropic"]) + common

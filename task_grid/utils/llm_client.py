"""
LLM Client Wrapper for the generation collaborator

Wraps a LangChain chat model (Anthropic by default, OpenAI optionally) behind
the chat-completion contract the engine uses: a GenerationRequest goes in, a
GenerationResponse comes out. A base URL can be configured so that a relay
service sits in front of the provider.

Example usage:
    from task_grid.models import create_generation_request
    from task_grid.utils.llm_client import LLMClient

    # Uses environment variables: LLM_API_KEY, GRID_LLM_PROVIDER, etc.
    client = LLMClient()
    response = client.send(create_generation_request(model=client.model, system="Reply in JSON",
                                                     prompt="List three tasks", max_tokens=500))
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from task_grid.config import LLMConfig, LLMProvider
from task_grid.models import (
    GenerationRequest,
    GenerationResponse,
    create_generation_response,
)
from .exceptions import ConfigurationError, LLMError, MissingDependencyError

logger = logging.getLogger(__name__)


class ResponseWrapper:
    """Wrapper for responses to provide LangChain-compatible interface."""

    def __init__(self, text: str, usage: Optional[Dict[str, int]] = None):
        self.content = text
        self.usage = usage or {}

    def __str__(self):
        return self.content


class LLMClient:
    """
    Provider-agnostic chat client.

    Args:
        config: LLM settings (from environment when omitted)
        chat_model: Pre-built LangChain chat model; skips provider setup
    """

    def __init__(self, config: Optional[LLMConfig] = None, chat_model: Any = None):
        self.config = config or LLMConfig.from_env()
        self.provider = self.config.provider
        self.model = self.config.model_name

        logger.info("Initializing LLM Client")
        logger.debug(f"  Provider: {self.provider}")
        logger.debug(f"  Model: {self.model}")
        logger.debug(f"  Base URL: {self.config.base_url or '(provider default)'}")

        if chat_model is not None:
            self.client = chat_model
            return

        if not self.config.api_key:
            raise ConfigurationError(
                setting_name="LLM_API_KEY",
                message="API key not found. Set LLM_API_KEY or "
                f"{self.config.api_key_env_var()}, or pass api_key in LLMConfig."
            )

        self.client = None
        self._initialize_langchain_wrapper()

    def _initialize_langchain_wrapper(self):
        """Initialize LangChain wrapper for the provider."""
        logger.debug(f"Initializing LangChain wrapper for {self.provider}")

        if self.provider == 'anthropic':
            self._init_langchain_anthropic()
        elif self.provider == 'openai':
            self._init_langchain_openai()
        else:
            raise ConfigurationError(
                setting_name="provider",
                message=f"Unsupported provider: {self.provider}",
                expected_value=self.list_supported_providers(),
                actual_value=self.provider
            )

    def _init_langchain_anthropic(self):
        """Initialize LangChain Anthropic wrapper."""
        try:
            from langchain_anthropic import ChatAnthropic
        except ImportError:
            raise MissingDependencyError(
                package_name="langchain-anthropic",
                install_command="pip install langchain-anthropic",
                purpose="LangChain Anthropic wrapper"
            )

        kwargs: Dict[str, Any] = {
            'model_name': self.model,
            'temperature': self.config.temperature,
            'max_tokens': self.config.max_tokens,
            'timeout': self.config.timeout,
            'api_key': self.config.api_key,
        }
        if self.config.base_url:
            kwargs['base_url'] = self.config.base_url

        self.client = ChatAnthropic(**kwargs)
        logger.info(f"Initialized LangChain ChatAnthropic (model: {self.model})")

    def _init_langchain_openai(self):
        """Initialize LangChain OpenAI wrapper."""
        try:
            from langchain_openai import ChatOpenAI
        except ImportError:
            raise MissingDependencyError(
                package_name="langchain-openai",
                install_command="pip install langchain-openai",
                purpose="LangChain OpenAI wrapper"
            )

        kwargs: Dict[str, Any] = {
            'model': self.model,
            'api_key': self.config.api_key,
            'temperature': self.config.temperature,
            'max_tokens': self.config.max_tokens,
            'timeout': self.config.timeout,
        }
        if self.config.base_url:
            kwargs['base_url'] = self.config.base_url

        self.client = ChatOpenAI(**kwargs)
        logger.info(f"Initialized LangChain ChatOpenAI (model: {self.model})")

    def invoke(self, messages: List[Any], **kwargs) -> ResponseWrapper:
        """
        LangChain-compatible invoke method.

        Raises:
            LLMError: the provider call failed
        """
        try:
            response = self.client.invoke(messages, **kwargs)  # type: ignore
        except Exception as e:
            logger.error(f"Error in LangChain invoke: {str(e)}")
            raise LLMError(str(e), provider=self.provider, model=self.model, original_error=e) from e

        content = response.content if hasattr(response, 'content') else str(response)
        usage = getattr(response, 'usage_metadata', None) or {}
        return ResponseWrapper(
            content if isinstance(content, str) else str(content),
            usage={
                'input_tokens': int(usage.get('input_tokens', 0)),
                'output_tokens': int(usage.get('output_tokens', 0)),
            } if usage else None,
        )

    def send(self, request: GenerationRequest) -> GenerationResponse:
        """Run a chat-completion shaped request and wrap the reply the same way."""
        from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

        messages: List[Any] = [SystemMessage(content=request["system"])]
        for message in request["messages"]:
            if message["role"] == "assistant":
                messages.append(AIMessage(content=message["content"]))
            else:
                messages.append(HumanMessage(content=message["content"]))

        logger.debug(
            f"Sending generation request ({len(request['messages'])} messages, "
            f"max_tokens={request['max_tokens']})"
        )
        response = self.invoke(messages)
        return create_generation_response(
            text=response.content,
            model=request.get("model", self.model),
            response_id=f"msg_{uuid.uuid4().hex[:24]}",
            usage=response.usage or None,
        )

    @staticmethod
    def list_supported_providers() -> List[str]:
        """List all supported providers."""
        return [p.value for p in LLMProvider]

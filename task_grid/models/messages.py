"""
Message Formats for the text-generation collaborator

The engine talks to the generation service with a chat-completion shaped
contract: a request of ``{model, system, messages, max_tokens}`` and a reply
whose ``content`` blocks carry the generated text.

Key Principles:
- Type safety via TypedDict
- Same field names as the wire payload so requests can be logged verbatim
"""

from typing import TypedDict, Optional, Any, Literal, NotRequired


class ChatMessage(TypedDict):
    """A single conversational turn."""
    role: Literal["user", "assistant"]
    content: str


class GenerationRequest(TypedDict):
    """
    Request sent to the generation service.

    Usage:
        request = create_generation_request(
            model="claude-3-5-haiku-20241022",
            system="You design task tables...",
            prompt="Add a column for owners",
            max_tokens=4000
        )
    """
    model: str
    system: str
    messages: list[ChatMessage]
    max_tokens: int
    temperature: NotRequired[float]


class ContentBlock(TypedDict):
    type: Literal["text"]
    text: str


class GenerationUsage(TypedDict):
    input_tokens: int
    output_tokens: int


class GenerationResponse(TypedDict):
    """Chat-completion shaped reply."""
    id: str
    model: str
    role: Literal["assistant"]
    content: list[ContentBlock]
    stop_reason: NotRequired[Optional[str]]
    usage: NotRequired[GenerationUsage]


def create_generation_request(
    model: str,
    system: str,
    prompt: str,
    max_tokens: int,
    temperature: Optional[float] = None
) -> GenerationRequest:
    """Build a single-turn generation request."""
    request = GenerationRequest(
        model=model,
        system=system,
        messages=[ChatMessage(role="user", content=prompt)],
        max_tokens=max_tokens,
    )
    if temperature is not None:
        request["temperature"] = temperature
    return request


def response_text(response: GenerationResponse) -> str:
    """Concatenate the text blocks of a reply."""
    return "".join(
        block.get("text", "")
        for block in response.get("content", [])
        if block.get("type") == "text"
    )


def create_generation_response(
    text: str,
    model: str,
    response_id: str,
    usage: Optional[dict[str, Any]] = None
) -> GenerationResponse:
    """Wrap plain text in the chat-completion reply shape."""
    response = GenerationResponse(
        id=response_id,
        model=model,
        role="assistant",
        content=[ContentBlock(type="text", text=text)],
    )
    if usage:
        response["usage"] = GenerationUsage(
            input_tokens=int(usage.get("input_tokens", 0)),
            output_tokens=int(usage.get("output_tokens", 0)),
        )
    return response

"""Protocol definitions for reasoning (LLM) providers."""

from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    """Role of a message in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolInvocation(BaseModel):
    """A tool call requested by the reasoning service.

    ``arguments`` is the loosely-typed map the service produced; it is only
    trusted after validation against the tool catalog.
    """

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    call_id: str | None = None


class Message(BaseModel):
    """A message in a tool-using conversation.

    Assistant messages may carry ``tool_calls``; tool messages answer one
    call and reference it through ``tool_call_id``.
    """

    role: MessageRole
    content: str = ""
    tool_calls: list[ToolInvocation] = Field(default_factory=list)
    tool_call_id: str | None = None
    name: str | None = None


class ReasoningResponse(BaseModel):
    """One turn from the reasoning service: text, tool calls, or both."""

    text_parts: list[str] = Field(default_factory=list)
    tool_invocations: list[ToolInvocation] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(part for part in self.text_parts if part)


@runtime_checkable
class ReasoningClient(Protocol):
    """Protocol for reasoning providers.

    Implement this protocol to add support for new LLM APIs. Failures are
    raised as ``ReasoningError``.
    """

    async def converse(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> ReasoningResponse:
        """
        Continue a conversation with a declared tool catalog.

        Args:
            messages: Conversation so far, including tool exchanges
            tools: OpenAI-style function schemas
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens to generate

        Returns:
            ReasoningResponse with text parts and requested tool calls
        """
        ...

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        """
        Generate a plain completion for a single prompt.

        Args:
            prompt: The user prompt
            system_prompt: Optional system prompt
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens to generate

        Returns:
            The generated text
        """
        ...

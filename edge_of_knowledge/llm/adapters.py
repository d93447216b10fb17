"""Adapter implementations for reasoning providers."""

import json
import logging
from typing import Any

import anthropic
import openai
from openai import AsyncOpenAI

from ..errors import ConfigurationError, ReasoningError
from ..settings import (
    ANTHROPIC_API_KEY,
    ANTHROPIC_DEFAULT_MODEL,
    OPENROUTER_API_KEY,
    OPENROUTER_BASE_URL,
    OPENROUTER_DEFAULT_MODEL,
)
from .protocols import Message, MessageRole, ReasoningClient, ReasoningResponse, ToolInvocation

logger = logging.getLogger(__name__)


class OpenRouterAdapter(ReasoningClient):
    """
    Adapter for OpenRouter API.

    OpenRouter provides access to many LLMs through an OpenAI-compatible API,
    including function calling.

    Usage:
        async with OpenRouterAdapter() as llm:
            response = await llm.converse(messages, get_tool_schema())
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
    ):
        """
        Initialize the OpenRouter adapter.

        Args:
            api_key: Optional API key. If not provided, uses OPENROUTER_API_KEY env var.
            model: Model to use. Defaults to OPENROUTER_DEFAULT_MODEL.
            base_url: API base URL. Defaults to OPENROUTER_BASE_URL.
        """
        self.api_key = api_key or OPENROUTER_API_KEY
        self.model = model or OPENROUTER_DEFAULT_MODEL
        self.base_url = base_url or OPENROUTER_BASE_URL
        self._client: AsyncOpenAI | None = None

        if not self.api_key:
            raise ConfigurationError(
                "OpenRouter API key required. Set OPENROUTER_API_KEY in .env"
            )

        logger.info(f"OpenRouter adapter initialized with model: {self.model}")

    async def __aenter__(self) -> "OpenRouterAdapter":
        self._client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            max_retries=3,
            timeout=120.0,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    @staticmethod
    def _format_message(msg: Message) -> dict[str, Any]:
        if msg.role == MessageRole.TOOL:
            return {
                "role": "tool",
                "tool_call_id": msg.tool_call_id,
                "content": msg.content,
            }

        formatted: dict[str, Any] = {"role": msg.role.value, "content": msg.content}
        if msg.role == MessageRole.ASSISTANT and msg.tool_calls:
            formatted["content"] = msg.content or None
            formatted["tool_calls"] = [
                {
                    "id": call.call_id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": json.dumps(call.arguments),
                    },
                }
                for call in msg.tool_calls
            ]
        return formatted

    async def converse(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> ReasoningResponse:
        """Run one tool-calling turn."""
        formatted_messages = [self._format_message(m) for m in messages]
        logger.debug(f"Conversing ({len(messages)} messages, {len(tools)} tools) with {self.model}")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=formatted_messages,
                tools=tools,
                tool_choice="auto",
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.OpenAIError as e:
            raise ReasoningError(f"OpenRouter request failed: {e}") from e

        if not response.choices:
            raise ReasoningError("OpenRouter returned no choices")

        message = response.choices[0].message
        invocations = []
        for call in message.tool_calls or []:
            try:
                arguments = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError as e:
                raise ReasoningError(
                    f"Malformed arguments for tool '{call.function.name}': {e}"
                ) from e
            if not isinstance(arguments, dict):
                raise ReasoningError(f"Arguments for tool '{call.function.name}' are not an object")
            invocations.append(ToolInvocation(
                name=call.function.name,
                arguments=arguments,
                call_id=call.id,
            ))

        text_parts = [message.content] if message.content else []
        logger.debug(f"Usage: {response.usage}")
        return ReasoningResponse(text_parts=text_parts, tool_invocations=invocations)

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        """Generate a completion for a simple prompt."""
        messages: list[dict] = []

        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        messages.append({"role": "user", "content": prompt})

        logger.info(f"Completing prompt ({len(prompt)} chars) with {self.model}")
        logger.debug(f"Temperature: {temperature}, max_tokens: {max_tokens}")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.OpenAIError as e:
            raise ReasoningError(f"OpenRouter request failed: {e}") from e

        if not response.choices:
            raise ReasoningError("OpenRouter returned no choices")

        result = response.choices[0].message.content or ""
        logger.info(f"Completion received ({len(result)} chars)")
        return result


class AnthropicAdapter(ReasoningClient):
    """
    Adapter for Anthropic API (direct).

    Uses the Anthropic Python SDK directly for Claude models. Tool schemas
    are accepted in OpenAI function format and converted.

    Usage:
        async with AnthropicAdapter() as llm:
            response = await llm.converse(messages, get_tool_schema())
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
    ):
        """
        Initialize the Anthropic adapter.

        Args:
            api_key: Optional API key. If not provided, uses ANTHROPIC_API_KEY env var.
            model: Model to use. Defaults to ANTHROPIC_DEFAULT_MODEL.
        """
        self.api_key = api_key or ANTHROPIC_API_KEY
        self.model = model or ANTHROPIC_DEFAULT_MODEL
        self._client: anthropic.AsyncAnthropic | None = None

        if not self.api_key:
            raise ConfigurationError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY in .env"
            )

        logger.info(f"Anthropic adapter initialized with model: {self.model}")

    async def __aenter__(self) -> "AnthropicAdapter":
        self._client = anthropic.AsyncAnthropic(
            api_key=self.api_key,
            max_retries=3,
            timeout=120.0,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    @staticmethod
    def convert_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Convert OpenAI function schemas to Anthropic tool definitions."""
        converted = []
        for tool in tools:
            function = tool.get("function", tool)
            converted.append({
                "name": function["name"],
                "description": function.get("description", ""),
                "input_schema": function.get("parameters", {"type": "object", "properties": {}}),
            })
        return converted

    @staticmethod
    def convert_messages(messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
        """Split out the system prompt and build alternating content blocks.

        Consecutive user-side entries (tool results followed by a nudge, for
        example) are merged into a single user turn.
        """
        system_prompt = ""
        formatted: list[dict[str, Any]] = []

        def append(role: str, blocks: list[dict[str, Any]]) -> None:
            if formatted and formatted[-1]["role"] == role:
                formatted[-1]["content"].extend(blocks)
            else:
                formatted.append({"role": role, "content": blocks})

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_prompt = msg.content
            elif msg.role == MessageRole.TOOL:
                append("user", [{
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id,
                    "content": msg.content,
                }])
            elif msg.role == MessageRole.ASSISTANT:
                blocks: list[dict[str, Any]] = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                for call in msg.tool_calls:
                    blocks.append({
                        "type": "tool_use",
                        "id": call.call_id,
                        "name": call.name,
                        "input": call.arguments,
                    })
                append("assistant", blocks)
            else:
                append("user", [{"type": "text", "text": msg.content}])

        return system_prompt, formatted

    async def converse(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> ReasoningResponse:
        """Run one tool-calling turn."""
        system_prompt, formatted_messages = self.convert_messages(messages)
        logger.debug(f"Conversing ({len(messages)} messages, {len(tools)} tools) with {self.model}")

        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens or 4096,
                messages=formatted_messages,
                tools=self.convert_tools(tools),
                temperature=temperature,
                **({"system": system_prompt} if system_prompt else {}),
            )
        except anthropic.AnthropicError as e:
            raise ReasoningError(f"Anthropic request failed: {e}") from e

        text_parts: list[str] = []
        invocations: list[ToolInvocation] = []
        for block in message.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                invocations.append(ToolInvocation(
                    name=block.name,
                    arguments=dict(block.input or {}),
                    call_id=block.id,
                ))

        logger.debug(
            f"Tool turn received: {len(invocations)} tool calls, "
            f"stop_reason={message.stop_reason}"
        )
        return ReasoningResponse(text_parts=text_parts, tool_invocations=invocations)

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        """Generate a completion for a simple prompt."""
        logger.info(f"Completing prompt ({len(prompt)} chars) with {self.model}")
        logger.debug(f"Temperature: {temperature}, max_tokens: {max_tokens}")

        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens or 4096,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                **({"system": system_prompt} if system_prompt else {}),
            )
        except anthropic.AnthropicError as e:
            raise ReasoningError(f"Anthropic request failed: {e}") from e

        result = "".join(block.text for block in message.content if block.type == "text")
        logger.info(f"Completion received ({len(result)} chars)")
        logger.debug(f"Usage: input={message.usage.input_tokens}, output={message.usage.output_tokens}")
        return result

"""Reasoning provider integrations with protocol-based adapter pattern."""

from .protocols import (
    Message,
    MessageRole,
    ReasoningClient,
    ReasoningResponse,
    ToolInvocation,
)
from .adapters import AnthropicAdapter, OpenRouterAdapter

__all__ = [
    # Protocols
    "Message",
    "MessageRole",
    "ReasoningClient",
    "ReasoningResponse",
    "ToolInvocation",
    # Adapters
    "OpenRouterAdapter",
    "AnthropicAdapter",
]

"""Exception types shared across the package."""


class EdgeOfKnowledgeError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(EdgeOfKnowledgeError, ValueError):
    """A required credential or backend setting is missing or unsupported."""


class ReasoningError(EdgeOfKnowledgeError, RuntimeError):
    """The reasoning service failed or returned a response we cannot use."""


class InvalidToolInvocation(EdgeOfKnowledgeError, ValueError):
    """A tool call names an unknown tool or carries invalid arguments."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(message)
        self.tool_name = tool_name

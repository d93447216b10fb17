"""Protocol definition for web search providers."""

from typing import Protocol, runtime_checkable

from .models import WebResult


@runtime_checkable
class WebSearchProvider(Protocol):
    """Protocol for web search providers.

    Same failure policy as paper search: return an empty list, never raise
    on network or parsing errors.
    """

    async def search_web(self, query: str, limit: int = 5) -> list[WebResult]:
        """
        Search the web for a query.

        Args:
            query: Search query string
            limit: Maximum number of results to return (at most 10)

        Returns:
            Ranked list of WebResult objects, empty on failure
        """
        ...

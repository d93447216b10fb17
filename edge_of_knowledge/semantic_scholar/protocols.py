"""Protocol definitions for academic paper search providers."""

from typing import Protocol, runtime_checkable

from .models import Paper, PaperDetails


@runtime_checkable
class PaperSearchProvider(Protocol):
    """Protocol for academic paper search providers.

    Implementations must not raise on network or HTTP failures: a failed
    search returns an empty list and a failed lookup returns ``None``.
    """

    async def search_papers(self, query: str, limit: int = 10) -> list[Paper]:
        """
        Search for papers matching a query.

        Args:
            query: Search query string
            limit: Maximum number of results to return (at most 20)

        Returns:
            Ranked list of Paper objects, empty on failure
        """
        ...

    async def get_paper_details(self, paper_id: str) -> PaperDetails | None:
        """
        Fetch extended fields for a single paper.

        Args:
            paper_id: Provider paper identifier

        Returns:
            PaperDetails, or None if the paper is unknown or the call failed
        """
        ...

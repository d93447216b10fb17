"""Adapter implementations for the paper search protocol."""

import logging

import httpx
from pydantic import ValidationError

from .client import SemanticScholarClient
from .models import Paper, PaperDetails, SearchResponse
from .protocols import PaperSearchProvider

logger = logging.getLogger(__name__)

MAX_SEARCH_LIMIT = 20


class SemanticScholarAdapter(PaperSearchProvider):
    """
    Adapter for Semantic Scholar API.

    Failures are logged and reported as an empty result so one bad query
    never aborts a batch of tool calls.

    Usage:
        async with SemanticScholarAdapter() as adapter:
            papers = await adapter.search_papers("photonic crystals butterflies")
            details = await adapter.get_paper_details(papers[0].paper_id)
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the Semantic Scholar adapter.

        Args:
            api_key: Optional API key. If not provided, uses SEMANTIC_SCHOLAR_API_KEY
                    environment variable.
            timeout: Optional per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        kwargs = {"api_key": api_key, "transport": transport}
        if timeout is not None:
            kwargs["timeout"] = timeout
        self._client = SemanticScholarClient(**kwargs)
        self._entered = False

    async def __aenter__(self) -> "SemanticScholarAdapter":
        await self._client.__aenter__()
        self._entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self._client.__aexit__(exc_type, exc_val, exc_tb)
        self._entered = False

    def _ensure_entered(self) -> None:
        if not self._entered:
            raise RuntimeError(
                "Adapter not initialized. Use 'async with' context manager."
            )

    async def search_papers(self, query: str, limit: int = 10) -> list[Paper]:
        """Search via /paper/search, returning [] on any failure."""
        self._ensure_entered()
        limit = max(1, min(limit, MAX_SEARCH_LIMIT))

        try:
            response_data = await self._client.search_papers(query=query, limit=limit)
            response = SearchResponse.model_validate(response_data)
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning(f"Paper search failed for '{query}': {e}")
            return []

        return response.data[:limit]

    async def get_paper_details(self, paper_id: str) -> PaperDetails | None:
        """Fetch /paper/{id}, returning None when unknown or on failure."""
        self._ensure_entered()

        try:
            paper_data = await self._client.get_paper(paper_id)
            if paper_data is None:
                return None
            return PaperDetails.model_validate(paper_data)
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning(f"Paper details failed for {paper_id}: {e}")
            return None

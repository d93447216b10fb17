"""DuckDuckGo adapter for the web search protocol."""

import logging
from typing import Any

import httpx

from ..settings import WEB_SEARCH_TIMEOUT
from .models import WebResult
from .parsing import parse_html_results, parse_instant_answer
from .protocols import WebSearchProvider

logger = logging.getLogger(__name__)

INSTANT_ANSWER_URL = "https://api.duckduckgo.com/"
HTML_SEARCH_URL = "https://html.duckduckgo.com/html/"
MAX_WEB_LIMIT = 10

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class DuckDuckGoAdapter(WebSearchProvider):
    """
    Keyless web search backed by DuckDuckGo.

    The Instant Answer API is tried first; when it has nothing for the query
    the HTML results page is fetched and parsed.

    Usage:
        async with DuckDuckGoAdapter() as web:
            results = await web.search_web("structural coloration", limit=5)
    """

    def __init__(
        self,
        timeout: float = WEB_SEARCH_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "DuckDuckGoAdapter":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    async def search_web(self, query: str, limit: int = 5) -> list[WebResult]:
        """Search the web, returning [] when both strategies fail."""
        limit = max(1, min(limit, MAX_WEB_LIMIT))
        logger.info(f"Web search: query='{query}', limit={limit}")

        try:
            results = await self._search_instant_answer(query, limit)
            if results:
                logger.info(f"Got {len(results)} results from Instant Answer API")
                return results
        except (httpx.HTTPError, ValueError) as e:
            logger.info(f"Instant Answer API failed: {e}")

        try:
            results = await self._search_html(query, limit)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"HTML search failed for '{query}': {e}")
            return []

        logger.info(f"Parsed {len(results)} results from HTML search")
        return results

    async def _search_instant_answer(self, query: str, limit: int) -> list[WebResult]:
        response = await self.client.get(
            INSTANT_ANSWER_URL,
            params={"q": query, "format": "json", "no_html": "1", "skip_disambig": "1"},
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        return parse_instant_answer(response.json(), query, limit)

    async def _search_html(self, query: str, limit: int) -> list[WebResult]:
        response = await self.client.get(
            HTML_SEARCH_URL,
            params={"q": query},
            headers=BROWSER_HEADERS,
        )
        response.raise_for_status()
        return parse_html_results(response.text, limit)

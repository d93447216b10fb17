"""Async HTTP client for Semantic Scholar API with rate limiting."""

import asyncio
import logging
import time
from typing import Any

import httpx

from ..settings import (
    SEMANTIC_SCHOLAR_API_KEY,
    SEMANTIC_SCHOLAR_BASE_URL,
    RATE_LIMIT_REQUESTS_PER_SECOND,
    RATE_LIMIT_REQUESTS_PER_SECOND_NO_KEY,
    MAX_RETRIES,
    RETRY_BACKOFF_FACTOR,
    PAPER_SEARCH_TIMEOUT,
)

logger = logging.getLogger(__name__)

SEARCH_FIELDS = [
    "paperId",
    "title",
    "authors",
    "year",
    "citationCount",
    "abstract",
    "url",
    "venue",
    "isOpenAccess",
]

DETAIL_FIELDS = SEARCH_FIELDS + [
    "fieldsOfStudy",
    "publicationDate",
    "references.paperId",
    "references.title",
    "citations.paperId",
    "citations.title",
]


class RateLimiter:
    """Minimum-interval rate limiter shared by concurrent requests."""

    def __init__(self, requests_per_second: float):
        self.requests_per_second = requests_per_second
        self.min_interval = 1.0 / requests_per_second
        self.last_request_time = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until we can make another request."""
        async with self._lock:
            now = time.monotonic()
            time_since_last = now - self.last_request_time
            if time_since_last < self.min_interval:
                await asyncio.sleep(self.min_interval - time_since_last)
            self.last_request_time = time.monotonic()


class SemanticScholarClient:
    """Async client for Semantic Scholar API."""

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = PAPER_SEARCH_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key or SEMANTIC_SCHOLAR_API_KEY
        self.base_url = SEMANTIC_SCHOLAR_BASE_URL
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport

        # Set rate limit based on whether we have an API key
        rate_limit = (
            RATE_LIMIT_REQUESTS_PER_SECOND
            if self.api_key
            else RATE_LIMIT_REQUESTS_PER_SECOND_NO_KEY
        )
        self.rate_limiter = RateLimiter(rate_limit)

        self.headers: dict[str, str] = {"Accept": "application/json"}
        if self.api_key:
            self.headers["x-api-key"] = self.api_key
            logger.info("Semantic Scholar client initialized with API key")
        else:
            logger.info("No Semantic Scholar API key - using shared rate limit")

        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "SemanticScholarClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
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

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make a request with rate limiting and exponential backoff retry.

        A 404 is returned to the caller untouched so lookups can report
        not-found without an exception.
        """
        last_exception: Exception | None = None
        last_response: httpx.Response | None = None

        for attempt in range(self.max_retries):
            await self.rate_limiter.acquire()
            logger.debug(f"Request attempt {attempt + 1}/{self.max_retries}: {method} {url}")

            try:
                response = await self.client.request(method, url, **kwargs)
            except (httpx.ConnectError, httpx.ReadTimeout) as e:
                last_exception = e
                backoff = RETRY_BACKOFF_FACTOR ** attempt
                logger.warning(f"Connection error: {e}, backoff {backoff}s")
                await asyncio.sleep(backoff)
                continue

            last_response = response
            logger.debug(f"Response status: {response.status_code}")

            if response.status_code == 429:
                retry_after = int(response.headers.get("Retry-After", 0) or 0)
                backoff = max(retry_after, RETRY_BACKOFF_FACTOR ** (attempt + 1))
                logger.warning(f"Rate limited (429), waiting {backoff}s (attempt {attempt + 1})")
                await asyncio.sleep(backoff)
                continue

            if response.status_code in (500, 502, 503, 504):
                backoff = RETRY_BACKOFF_FACTOR ** attempt
                logger.warning(f"Server error ({response.status_code}), backoff {backoff}s")
                await asyncio.sleep(backoff)
                continue

            if response.status_code == 404:
                return response

            response.raise_for_status()
            return response

        logger.error(f"Request failed after {self.max_retries} retries")
        if last_exception:
            raise last_exception
        if last_response is not None:
            raise httpx.HTTPStatusError(
                f"Request failed with status {last_response.status_code}",
                request=last_response.request,
                response=last_response,
            )
        raise RuntimeError("Request failed after all retries")

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Make a GET request."""
        return await self._request_with_retry("GET", url, **kwargs)

    async def search_papers(self, query: str, limit: int = 10) -> dict[str, Any]:
        """Search for papers using the /paper/search endpoint."""
        params = {
            "query": query,
            "fields": ",".join(SEARCH_FIELDS),
            "limit": limit,
        }

        logger.info(f"Searching papers: query='{query}', limit={limit}")
        response = await self.get("/paper/search", params=params)
        data = response.json()

        found = len(data.get("data") or [])
        logger.info(f"Search returned {found} papers (total available: {data.get('total', 0)})")
        return data

    async def get_paper(self, paper_id: str) -> dict[str, Any] | None:
        """Fetch one paper with references and citations, None on 404."""
        params = {"fields": ",".join(DETAIL_FIELDS)}
        response = await self.get(f"/paper/{paper_id}", params=params)
        if response.status_code == 404:
            logger.info(f"Paper not found: {paper_id}")
            return None
        return response.json()

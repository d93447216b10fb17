"""Parsers for DuckDuckGo responses (Instant Answer JSON and HTML results)."""

import logging
from typing import Any
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup

from .models import WebResult, extract_domain

logger = logging.getLogger(__name__)


def _text(node) -> str:
    return " ".join(node.get_text().split())


def extract_real_url(ddg_url: str) -> str:
    """Resolve a DuckDuckGo redirect link (``//duckduckgo.com/l/?uddg=...``)."""
    target = parse_qs(urlparse(ddg_url).query).get("uddg")
    if target:
        return target[0]
    if ddg_url.startswith("//"):
        return "https:" + ddg_url
    return ddg_url


def _is_external(url: str) -> bool:
    return url.startswith("http") and "duckduckgo.com" not in url and "/y.js" not in url


def parse_instant_answer(data: dict[str, Any], query: str, limit: int) -> list[WebResult]:
    """Convert an Instant Answer API payload into results."""
    results: list[WebResult] = []

    if data.get("Abstract") and data.get("AbstractURL"):
        results.append(WebResult(
            title=data.get("Heading") or query,
            url=data["AbstractURL"],
            snippet=data["Abstract"],
            source=data.get("AbstractSource") or "Wikipedia",
        ))

    for topic in data.get("RelatedTopics") or []:
        if len(results) >= limit:
            break
        text = topic.get("Text")
        first_url = topic.get("FirstURL")
        if text and first_url:
            results.append(WebResult(
                title=text.split(" - ")[0] or text[:60],
                url=first_url,
                snippet=text,
                source="DuckDuckGo",
            ))

    return results[:limit]


def parse_html_results(page: str, limit: int) -> list[WebResult]:
    """Extract results from the DuckDuckGo HTML endpoint.

    Tries the structured ``.result`` blocks first, then bare ``uddg=``
    redirect links when the markup has changed.
    """
    soup = BeautifulSoup(page, "lxml")
    results: list[WebResult] = []

    for block in soup.select("div.result"):
        if len(results) >= limit:
            break
        title_link = block.select_one("a.result__a")
        if title_link is None or not title_link.get("href"):
            continue

        url = extract_real_url(title_link["href"])
        title = _text(title_link)
        if not _is_external(url) or len(title) <= 3:
            continue

        snippet_node = block.select_one(".result__snippet")
        snippet = _text(snippet_node) if snippet_node is not None else ""
        results.append(WebResult(url=url, title=title, snippet=snippet, source=extract_domain(url)))

    if results:
        return results

    for link in soup.select('a[href*="uddg="]'):
        if len(results) >= limit:
            break
        url = extract_real_url(link["href"])
        title = _text(link)
        if _is_external(url) and len(title) > 5 and "DuckDuckGo" not in title:
            results.append(WebResult(url=url, title=title, source=extract_domain(url)))

    logger.debug(f"Parsed {len(results)} results from redirect links")
    return results

"""Web search integration with protocol-based adapter pattern."""

from .models import WebResult, extract_domain
from .protocols import WebSearchProvider
from .adapters import DuckDuckGoAdapter
from .parsing import parse_html_results, parse_instant_answer

__all__ = [
    "WebResult",
    "extract_domain",
    "WebSearchProvider",
    "DuckDuckGoAdapter",
    "parse_html_results",
    "parse_instant_answer",
]

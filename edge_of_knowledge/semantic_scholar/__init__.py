"""Semantic Scholar API integration with protocol-based adapter pattern."""

from .models import (
    Author,
    Paper,
    PaperDetails,
    PaperReference,
    SearchResponse,
    format_authors,
    last_studied_year,
)
from .protocols import PaperSearchProvider
from .adapters import SemanticScholarAdapter
from .client import SemanticScholarClient

__all__ = [
    # Models
    "Author",
    "Paper",
    "PaperDetails",
    "PaperReference",
    "SearchResponse",
    "format_authors",
    "last_studied_year",
    # Protocols (for implementing custom providers)
    "PaperSearchProvider",
    # Adapters
    "SemanticScholarAdapter",
    # Low-level client
    "SemanticScholarClient",
]

"""Configuration settings for the edge-of-knowledge research service."""

import logging
import os
from dotenv import load_dotenv

load_dotenv()

# Logging setup
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)

# Semantic Scholar
SEMANTIC_SCHOLAR_API_KEY = os.getenv("SEMANTIC_SCHOLAR_API_KEY")
SEMANTIC_SCHOLAR_BASE_URL = "https://api.semanticscholar.org/graph/v1"

# OpenRouter
# Any OpenAI-compatible model with function calling works, e.g.:
# - google/gemini-2.5-pro
# - anthropic/claude-sonnet-4
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
OPENROUTER_DEFAULT_MODEL = os.getenv("OPENROUTER_DEFAULT_MODEL", "google/gemini-2.5-pro")

# Anthropic (direct API)
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_DEFAULT_MODEL = os.getenv("ANTHROPIC_DEFAULT_MODEL", "claude-sonnet-4-20250514")

# Rate limiting settings
RATE_LIMIT_REQUESTS_PER_SECOND = 10  # With API key
RATE_LIMIT_REQUESTS_PER_SECOND_NO_KEY = 1.0  # Shared public pool

# Retry settings
MAX_RETRIES = 3
RETRY_BACKOFF_FACTOR = 2.0

# Provider timeouts (seconds)
PAPER_SEARCH_TIMEOUT = float(os.getenv("PAPER_SEARCH_TIMEOUT", "10.0"))
WEB_SEARCH_TIMEOUT = float(os.getenv("WEB_SEARCH_TIMEOUT", "15.0"))

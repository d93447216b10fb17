"""Models for web search results."""

from urllib.parse import urlparse

from pydantic import BaseModel, model_validator


class WebResult(BaseModel):
    """A single ranked web snippet. ``url`` is the deduplication key."""

    url: str
    title: str
    snippet: str = ""
    source: str = ""

    @model_validator(mode="after")
    def _default_source(self) -> "WebResult":
        if not self.source:
            self.source = extract_domain(self.url)
        return self


def extract_domain(url: str) -> str:
    """Hostname of a URL without a leading ``www.``."""
    host = urlparse(url).hostname or ""
    if host.startswith("www."):
        host = host[4:]
    return host or url

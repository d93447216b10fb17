"""Pydantic models for Semantic Scholar API responses."""

from pydantic import BaseModel, Field, field_validator, model_validator

PAPER_URL_TEMPLATE = "https://www.semanticscholar.org/paper/{paper_id}"


class Author(BaseModel):
    """Author information."""

    author_id: str | None = Field(None, alias="authorId")
    name: str | None = None

    model_config = {"populate_by_name": True}


class PaperReference(BaseModel):
    """A reference or citation edge pointing at another paper."""

    paper_id: str | None = Field(None, alias="paperId")
    title: str | None = None

    model_config = {"populate_by_name": True}


class Paper(BaseModel):
    """Paper metadata returned from the search endpoint.

    Missing values are normalized so downstream code never sees ``None`` for
    the fields the research loop depends on: ``year`` is 0 when unknown,
    ``citation_count`` is 0 when absent and ``url`` falls back to the
    Semantic Scholar landing page.
    """

    paper_id: str = Field(..., alias="paperId")
    title: str = "Untitled"
    authors: list[Author] = Field(default_factory=list)
    year: int = 0
    citation_count: int = Field(0, alias="citationCount", ge=0)
    abstract: str | None = None
    venue: str | None = None
    url: str = ""
    is_open_access: bool | None = Field(None, alias="isOpenAccess")

    model_config = {"populate_by_name": True}

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value):
        return value or "Untitled"

    @field_validator("year", "citation_count", mode="before")
    @classmethod
    def _none_to_zero(cls, value):
        return value or 0

    @field_validator("authors", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or []

    @field_validator("url", mode="before")
    @classmethod
    def _none_url(cls, value):
        return value or ""

    @field_validator("venue", mode="before")
    @classmethod
    def _blank_venue(cls, value):
        return value or None

    @model_validator(mode="after")
    def _default_url(self) -> "Paper":
        if not self.url:
            self.url = PAPER_URL_TEMPLATE.format(paper_id=self.paper_id)
        return self


class PaperDetails(Paper):
    """Extended paper fields from the single-paper endpoint."""

    fields_of_study: list[str] = Field(default_factory=list, alias="fieldsOfStudy")
    publication_date: str | None = Field(None, alias="publicationDate")
    references: list[PaperReference] = Field(default_factory=list)
    citations: list[PaperReference] = Field(default_factory=list)

    @field_validator("fields_of_study", "references", "citations", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return value or []


class SearchResponse(BaseModel):
    """Response from the paper search endpoint."""

    total: int = 0
    offset: int = 0
    next: int | None = None
    data: list[Paper] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return value or []


def format_authors(authors: list[Author], max_authors: int = 3) -> str:
    """Format an author list for display, e.g. ``"A, B, C et al."``."""
    names = [a.name for a in authors if a.name]
    if not names:
        return "Unknown authors"

    shown = ", ".join(names[:max_authors])
    if len(names) > max_authors:
        return f"{shown} et al."
    return shown


def last_studied_year(papers: list[Paper]) -> str:
    """Most recent known publication year, or ``"Unknown"``."""
    years = [p.year for p in papers if p.year > 0]
    return str(max(years)) if years else "Unknown"

"""Tool catalog and executor for the research agent."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from ..errors import InvalidToolInvocation
from ..llm.protocols import ToolInvocation
from ..semantic_scholar.models import Paper, PaperDetails, format_authors
from ..semantic_scholar.protocols import PaperSearchProvider
from ..web_search.models import WebResult
from ..web_search.protocols import WebSearchProvider

logger = logging.getLogger(__name__)


class ToolType(Enum):
    """Tools available to the research agent."""

    SEARCH_PAPERS = "search_papers"
    SEARCH_WEB = "search_web"
    GET_PAPER_DETAILS = "get_paper_details"
    FINISH_RESEARCH = "finish_research"


# Names some models use for the paper search tool
TOOL_ALIASES = {
    "search_academic_papers": ToolType.SEARCH_PAPERS.value,
}


@dataclass
class ToolDefinition:
    """Definition of a tool offered to the reasoning service."""

    name: str
    description: str
    parameters: dict[str, dict]
    required_params: list[str]


TOOL_DEFINITIONS: dict[str, ToolDefinition] = {
    ToolType.SEARCH_PAPERS.value: ToolDefinition(
        name="search_papers",
        description=(
            "Search Semantic Scholar for academic papers on a topic. Returns title, "
            "authors, year, citation count, and abstract. Use this for scientific "
            "research and peer-reviewed literature."
        ),
        parameters={
            "query": {
                "type": "string",
                "description": (
                    "Search query for academic papers (e.g., \"quantum entanglement "
                    "biology\", \"photonic crystals butterflies\")"
                ),
            },
            "limit": {
                "type": "integer",
                "description": "Max papers to return (1-20, default 10)",
            },
        },
        required_params=["query"],
    ),
    ToolType.SEARCH_WEB.value: ToolDefinition(
        name="search_web",
        description=(
            "Search the web for general information, news, Wikipedia articles, and "
            "recent developments. Good for context that may not be in academic papers."
        ),
        parameters={
            "query": {
                "type": "string",
                "description": "Web search query for general information",
            },
            "limit": {
                "type": "integer",
                "description": "Max results to return (1-10, default 5)",
            },
        },
        required_params=["query"],
    ),
    ToolType.GET_PAPER_DETAILS.value: ToolDefinition(
        name="get_paper_details",
        description=(
            "Get full details of a specific paper including abstract, references, "
            "and citations. Use this when you need more information about a "
            "promising paper."
        ),
        parameters={
            "paperId": {
                "type": "string",
                "description": "Semantic Scholar paper ID from a previous search",
            },
        },
        required_params=["paperId"],
    ),
    ToolType.FINISH_RESEARCH.value: ToolDefinition(
        name="finish_research",
        description=(
            "Call this when you have gathered enough information to generate the "
            "exploration content. You should have 5-15 quality papers and some web "
            "context before calling this."
        ),
        parameters={
            "summary": {
                "type": "string",
                "description": "Brief summary of what you learned from your research",
            },
            "confidence": {
                "type": "number",
                "description": "Confidence level 0-1 that you have enough info to create a good exploration",
            },
            "key_papers": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Paper IDs of the most relevant papers found",
            },
            "frontier_detected": {
                "type": "boolean",
                "description": (
                    "Whether you detected a research frontier (gap in knowledge, "
                    "active debate, or unsolved problem)"
                ),
            },
        },
        required_params=["summary", "confidence"],
    ),
}


def get_tool_schema() -> list[dict]:
    """
    Get OpenAI-style function schema for all tools.

    Returns:
        List of tool schemas for LLM function calling
    """
    schemas = []

    for tool_def in TOOL_DEFINITIONS.values():
        schema = {
            "type": "function",
            "function": {
                "name": tool_def.name,
                "description": tool_def.description,
                "parameters": {
                    "type": "object",
                    "properties": tool_def.parameters,
                    "required": tool_def.required_params,
                },
            },
        }
        schemas.append(schema)

    return schemas


def get_tool_descriptions() -> str:
    """
    Get human-readable tool descriptions.

    Returns:
        Formatted string describing all available tools
    """
    lines = ["Available tools:\n"]

    for name, tool_def in TOOL_DEFINITIONS.items():
        lines.append(f"- {name}: {tool_def.description}")
        if tool_def.required_params:
            lines.append(f"  Required: {', '.join(tool_def.required_params)}")

    return "\n".join(lines)


# -----------------------------------------------------------------------------
# Validated arguments (closed tagged union over the four tools)
# -----------------------------------------------------------------------------


class _LimitArgs(BaseModel):
    query: str = Field(..., min_length=1)
    limit: int | None = None

    @field_validator("limit", mode="before")
    @classmethod
    def _coerce_limit(cls, value):
        if isinstance(value, float):
            return int(value)
        return value


class SearchPapersArgs(_LimitArgs):
    kind: Literal["search_papers"] = "search_papers"


class SearchWebArgs(_LimitArgs):
    kind: Literal["search_web"] = "search_web"


class GetPaperDetailsArgs(BaseModel):
    kind: Literal["get_paper_details"] = "get_paper_details"
    paper_id: str = Field(..., alias="paperId", min_length=1)

    model_config = {"populate_by_name": True}


class FinishResearchArgs(BaseModel):
    kind: Literal["finish_research"] = "finish_research"
    summary: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)
    key_papers: list[str] = Field(default_factory=list)
    frontier_detected: bool = False

    @field_validator("key_papers", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return value or []


ToolArguments = Annotated[
    Union[SearchPapersArgs, SearchWebArgs, GetPaperDetailsArgs, FinishResearchArgs],
    Field(discriminator="kind"),
]

_ARGUMENTS = TypeAdapter(ToolArguments)


def canonical_tool_name(name: str) -> str:
    """Map aliases onto catalog names."""
    return TOOL_ALIASES.get(name, name)


def parse_invocation(invocation: ToolInvocation) -> ToolArguments:
    """
    Validate a raw tool call against the catalog.

    Args:
        invocation: Tool call as produced by the reasoning service

    Returns:
        One of the four typed argument models

    Raises:
        InvalidToolInvocation: Unknown tool name or invalid arguments
    """
    name = canonical_tool_name(invocation.name)
    if name not in TOOL_DEFINITIONS:
        raise InvalidToolInvocation(name, f"Unknown tool: {invocation.name}")

    payload = {**invocation.arguments, "kind": name}
    try:
        return _ARGUMENTS.validate_python(payload)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or name}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidToolInvocation(name, f"Invalid arguments for {name}: {problems}") from e


# -----------------------------------------------------------------------------
# Outcomes
# -----------------------------------------------------------------------------


@dataclass
class ToolOutcome:
    """Result of one tool invocation.

    ``result`` is the payload returned to the reasoning service; ``papers``
    and ``web_results`` carry the normalized evidence for accumulation.
    """

    name: str
    result: dict[str, Any] | None = None
    error: str | None = None
    elapsed_ms: float = 0.0
    call_id: str | None = None
    papers: list[Paper] = field(default_factory=list)
    web_results: list[WebResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_response(self) -> dict[str, Any]:
        """Payload for the tool-result message."""
        if self.error is not None:
            return {"error": self.error}
        return self.result or {}

    def summary(self) -> str:
        """Short description for logs and the tool-call audit trail."""
        if self.error is not None:
            return f"error: {self.error}"
        result = self.result or {}
        if self.name == ToolType.SEARCH_PAPERS.value:
            return f"{result.get('count', 0)} papers"
        if self.name == ToolType.SEARCH_WEB.value:
            return f"{result.get('count', 0)} results"
        if self.name == ToolType.GET_PAPER_DETAILS.value:
            return f"details for \"{truncate(result.get('title', ''), 33)}\""
        if self.name == ToolType.FINISH_RESEARCH.value:
            return "research complete"
        return "ok"


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def format_papers_for_agent(papers: list[Paper]) -> dict[str, Any]:
    return {
        "count": len(papers),
        "papers": [
            {
                "id": p.paper_id,
                "title": p.title,
                "authors": ", ".join(a.name for a in p.authors if a.name) or "Unknown",
                "year": p.year,
                "citations": p.citation_count,
                "abstract": truncate(p.abstract, 300) if p.abstract else "No abstract available",
                "url": p.url,
                "venue": p.venue or "Unknown venue",
            }
            for p in papers
        ],
    }


def format_web_results_for_agent(results: list[WebResult]) -> dict[str, Any]:
    return {
        "count": len(results),
        "results": [
            {
                "title": r.title,
                "url": r.url,
                "snippet": truncate(r.snippet, 200),
                "source": r.source,
            }
            for r in results
        ],
    }


def format_paper_details_for_agent(paper: PaperDetails) -> dict[str, Any]:
    return {
        "id": paper.paper_id,
        "title": paper.title,
        "authors": format_authors(paper.authors, max_authors=len(paper.authors) or 1),
        "year": paper.year,
        "citations": paper.citation_count,
        "abstract": paper.abstract or "No abstract available",
        "url": paper.url,
        "venue": paper.venue or "Unknown venue",
        "fields": paper.fields_of_study,
        "topReferences": [
            {"title": r.title, "id": r.paper_id} for r in paper.references[:5]
        ],
        "topCitations": [
            {"title": c.title, "id": c.paper_id} for c in paper.citations[:5]
        ],
    }


# -----------------------------------------------------------------------------
# Executor
# -----------------------------------------------------------------------------


class ToolExecutor:
    """
    Executes batches of tool calls against the evidence providers.

    Every call is validated, timed out and isolated: a failure becomes an
    outcome with ``error`` set and never propagates past ``execute``. Batch
    methods return outcomes in invocation order. The executor holds no state
    across calls.
    """

    def __init__(
        self,
        paper_provider: PaperSearchProvider,
        web_provider: WebSearchProvider,
        config=None,
    ):
        """
        Initialize the tool executor.

        Args:
            paper_provider: Academic paper search provider
            web_provider: Web search provider
            config: ToolExecutorConfig (defaults if omitted)
        """
        if config is None:
            from ..config.loader import ToolExecutorConfig
            config = ToolExecutorConfig()

        self.paper_provider = paper_provider
        self.web_provider = web_provider
        self.call_timeout = config.call_timeout_seconds
        self.bounded_batch_size = config.bounded_batch_size
        self.default_paper_limit = config.default_paper_limit
        self.max_paper_limit = config.max_paper_limit
        self.default_web_limit = config.default_web_limit
        self.max_web_limit = config.max_web_limit

    @staticmethod
    def _clamp(value: int | None, default: int, maximum: int) -> int:
        return max(1, min(value or default, maximum))

    async def _dispatch(self, args: ToolArguments) -> ToolOutcome:
        if isinstance(args, SearchPapersArgs):
            limit = self._clamp(args.limit, self.default_paper_limit, self.max_paper_limit)
            papers = await self.paper_provider.search_papers(args.query, limit)
            return ToolOutcome(
                name=args.kind,
                result=format_papers_for_agent(papers),
                papers=list(papers),
            )

        elif isinstance(args, SearchWebArgs):
            limit = self._clamp(args.limit, self.default_web_limit, self.max_web_limit)
            results = await self.web_provider.search_web(args.query, limit)
            return ToolOutcome(
                name=args.kind,
                result=format_web_results_for_agent(results),
                web_results=list(results),
            )

        elif isinstance(args, GetPaperDetailsArgs):
            details = await self.paper_provider.get_paper_details(args.paper_id)
            if details is None:
                return ToolOutcome(name=args.kind, error="Paper not found")
            return ToolOutcome(
                name=args.kind,
                result=format_paper_details_for_agent(details),
                papers=[details],
            )

        elif isinstance(args, FinishResearchArgs):
            return ToolOutcome(
                name=args.kind,
                result={
                    "summary": args.summary,
                    "confidence": args.confidence,
                    "keyPapers": args.key_papers,
                    "frontierDetected": args.frontier_detected,
                },
            )

        raise InvalidToolInvocation(str(getattr(args, "kind", "")), f"Unhandled tool: {args!r}")

    async def execute(self, invocation: ToolInvocation) -> ToolOutcome:
        """
        Execute a single tool call.

        Args:
            invocation: Tool call to execute

        Returns:
            ToolOutcome with result or error, and elapsed time
        """
        start = time.perf_counter()
        name = canonical_tool_name(invocation.name)

        try:
            args = parse_invocation(invocation)
            outcome = await asyncio.wait_for(self._dispatch(args), timeout=self.call_timeout)
        except InvalidToolInvocation as e:
            logger.warning(f"Rejected tool call: {e}")
            outcome = ToolOutcome(name=name, error=str(e))
        except asyncio.TimeoutError:
            logger.warning(f"Tool {name} timed out after {self.call_timeout}s")
            outcome = ToolOutcome(name=name, error=f"Timed out after {self.call_timeout}s")
        except Exception as e:
            logger.warning(f"Tool {name} failed: {e}")
            outcome = ToolOutcome(name=name, error=str(e) or type(e).__name__)

        outcome.call_id = invocation.call_id
        outcome.elapsed_ms = round((time.perf_counter() - start) * 1000, 1)
        return outcome

    async def execute_parallel(self, invocations: list[ToolInvocation]) -> list[ToolOutcome]:
        """Run all calls concurrently; outcomes keep invocation order."""
        if not invocations:
            return []
        logger.info(f"Executing {len(invocations)} tool calls in parallel")
        return list(await asyncio.gather(*(self.execute(inv) for inv in invocations)))

    async def execute_bounded(
        self,
        invocations: list[ToolInvocation],
        batch_size: int | None = None,
    ) -> list[ToolOutcome]:
        """Run calls in fixed-size concurrent batches; outcomes keep invocation order."""
        batch_size = max(1, batch_size or self.bounded_batch_size)
        outcomes: list[ToolOutcome] = []

        for i in range(0, len(invocations), batch_size):
            batch = invocations[i : i + batch_size]
            logger.debug(f"Executing batch {i // batch_size + 1} ({len(batch)} calls)")
            outcomes.extend(await asyncio.gather(*(self.execute(inv) for inv in batch)))

        return outcomes

    async def execute_batch(
        self,
        invocations: list[ToolInvocation],
        mode: Literal["parallel", "bounded"] = "parallel",
    ) -> list[ToolOutcome]:
        """
        Execute multiple tool calls.

        Args:
            invocations: Tool calls to execute
            mode: "parallel" (all at once) or "bounded" (fixed-size batches)

        Returns:
            List of tool outcomes, same length and order as invocations
        """
        if mode == "bounded":
            return await self.execute_bounded(invocations)
        return await self.execute_parallel(invocations)

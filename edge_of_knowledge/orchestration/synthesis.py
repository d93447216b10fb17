"""Content synthesis: turn a finished ResearchContext into exploration content."""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field

from ..semantic_scholar.models import Paper, format_authors
from .classifier import (
    LIMITED_RESEARCH_REASON,
    FrontierAssessment,
    classify,
    upgrade_with_model_signal,
)
from .models import ResearchContext, ResearchMode
from .prompts import SYSTEM_PROMPT, build_branch_exploration_prompt, build_experiment_prompt

if TYPE_CHECKING:
    from ..config.loader import ReasoningConfig
    from ..llm.protocols import ReasoningClient

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_BRACED_JSON = re.compile(r"\{[\s\S]*\}")


def format_research_for_prompt(context: ResearchContext, current_year: int | None = None) -> str:
    """Render collected evidence as the research section of the synthesis prompt."""
    current_year = current_year or date.today().year
    sections: list[str] = []
    papers = context.papers

    if papers:
        paper_list = []
        for i, p in enumerate(papers[:10], 1):
            abstract = p.abstract[:200] if p.abstract else "N/A"
            paper_list.append(
                f"{i}. \"{p.title}\" ({p.year}) - {p.citation_count} citations\n"
                f"   Authors: {format_authors(p.authors)}\n"
                f"   Abstract: {abstract}..."
            )
        sections.append(
            f"ACADEMIC PAPERS FOUND ({len(papers)} total):\n" + "\n\n".join(paper_list)
        )

        years = [p.year for p in papers if p.year > 0]
        if years:
            recent = sum(1 for y in years if y >= current_year - 2)
            sections.append(
                f"Paper year range: {min(years)}-{max(years)}\n"
                f"Recent papers (last 2 years): {recent}"
            )
    else:
        sections.append("NO ACADEMIC PAPERS FOUND - This may indicate a research frontier.")

    web_results = context.web_results
    if web_results:
        web_list = [
            f"{i}. {r.title} ({r.source})\n   {r.snippet}"
            for i, r in enumerate(web_results[:5], 1)
        ]
        sections.append(
            f"WEB CONTEXT ({len(web_results)} results):\n" + "\n\n".join(web_list)
        )

    if context.research_summary:
        sections.append(
            f"RESEARCH AGENT SUMMARY:\n{context.research_summary}\n\n"
            f"Agent confidence: {context.research_confidence}\n"
            f"Frontier detected: {'Yes' if context.frontier_detected else 'No'}"
        )

    sections.append(
        "RESEARCH PROCESS:\n"
        f"- Iterations: {context.iteration_count}\n"
        f"- Total time: {context.total_time_ms:.0f}ms\n"
        f"- Tool calls: {context.process_trail()}"
    )

    return "\n\n---\n\n".join(sections)


def extract_json(text: str) -> dict[str, Any]:
    """Pull a JSON object out of model output.

    Prefers a fenced code block, then the outermost ``{...}`` span. Returns
    an empty dict when nothing parses.
    """
    match = _FENCED_JSON.search(text) or _BRACED_JSON.search(text)
    if not match:
        logger.warning("No JSON found in synthesis response")
        return {}

    candidate = (match.group(1) if match.lastindex else match.group(0)).strip()
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse synthesis response: {e}")
        return {}

    if not isinstance(parsed, dict):
        logger.warning("Synthesis response JSON is not an object")
        return {}
    return parsed


# -----------------------------------------------------------------------------
# Exploration content
# -----------------------------------------------------------------------------


class Citation(BaseModel):
    paper_id: str = Field(alias="paperId")
    title: str
    authors: str
    year: int
    citation_count: int = Field(alias="citationCount")
    url: str

    model_config = {"populate_by_name": True}


class KnowledgeMap(BaseModel):
    established: list[str] = Field(default_factory=list)
    debated: list[str] = Field(default_factory=list)
    unknown: list[str] = Field(default_factory=list)


class BranchSuggestion(BaseModel):
    id: str
    title: str
    teaser: str
    type: Literal["science", "unknown", "experiment", "paper", "custom"]
    search_query: str | None = Field(default=None, alias="searchQuery")

    model_config = {"populate_by_name": True}


class Experiment(BaseModel):
    id: str
    title: str
    hypothesis: str
    materials: list[str] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    expected_outcome: str = Field(alias="expectedOutcome")
    difficulty: Literal["beginner", "intermediate", "advanced"] = "intermediate"

    model_config = {"populate_by_name": True}


class ScientificTerm(BaseModel):
    term: str
    definition: str
    search_query: str | None = Field(default=None, alias="searchQuery")
    category: str | None = None

    model_config = {"populate_by_name": True}


class RelatedTopic(BaseModel):
    title: str
    teaser: str
    search_query: str = Field(alias="searchQuery")

    model_config = {"populate_by_name": True}


class ExplorationContent(BaseModel):
    """Structured exploration content delivered to the caller."""

    headline: str
    summary: str
    citations: list[Citation] = Field(default_factory=list)
    research_heat: str = Field(alias="researchHeat")
    branches: list[BranchSuggestion] = Field(default_factory=list)
    experiments: list[Experiment] | None = None
    scientific_terms: list[ScientificTerm] | None = Field(default=None, alias="scientificTerms")
    related_topics: list[RelatedTopic] | None = Field(default=None, alias="relatedTopics")
    is_frontier: bool = Field(alias="isFrontier")
    frontier_reason: str | None = Field(default=None, alias="frontierReason")
    depth: str
    knowledge_map: KnowledgeMap | None = Field(default=None, alias="knowledgeMap")

    model_config = {"populate_by_name": True}

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _list_of_dicts(value: Any) -> list[dict[str, Any]] | None:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, dict)]


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item]


def normalize_branch_type(value: Any) -> str:
    if value in ("science", "unknown", "experiment", "paper"):
        return value
    if value == "deeper":
        return "science"
    return "custom"


def normalize_difficulty(value: Any) -> str:
    if value in ("beginner", "intermediate", "advanced"):
        return value
    return "intermediate"


def normalize_branches(raw: Any) -> list[BranchSuggestion]:
    items = _list_of_dicts(raw) or []
    return [
        BranchSuggestion(
            id=str(b.get("id") or f"branch-{i}"),
            title=str(b.get("title") or "Explore"),
            teaser=str(b.get("teaser") or "Discover more..."),
            type=normalize_branch_type(b.get("type")),
            search_query=str(b["searchQuery"]) if b.get("searchQuery") else None,
        )
        for i, b in enumerate(items)
    ]


def normalize_experiments(raw: Any) -> list[Experiment] | None:
    items = _list_of_dicts(raw)
    if items is None:
        return None
    return [
        Experiment(
            id=str(e.get("id") or f"exp-{i}"),
            title=str(e.get("title") or "Experiment"),
            hypothesis=str(e.get("hypothesis") or "Testing..."),
            materials=_str_list(e.get("materials")),
            steps=_str_list(e.get("steps")),
            expected_outcome=str(e.get("expectedOutcome") or "Observe the results"),
            difficulty=normalize_difficulty(e.get("difficulty")),
        )
        for i, e in enumerate(items)
    ]


def normalize_scientific_terms(raw: Any) -> list[ScientificTerm] | None:
    items = _list_of_dicts(raw)
    if items is None:
        return None
    return [
        ScientificTerm(
            term=str(t["term"]),
            definition=str(t["definition"]),
            search_query=str(t["searchQuery"]) if t.get("searchQuery") else None,
            category=str(t["category"]) if t.get("category") else None,
        )
        for t in items
        if t.get("term") and t.get("definition")
    ]


def normalize_related_topics(raw: Any) -> list[RelatedTopic] | None:
    items = _list_of_dicts(raw)
    if items is None:
        return None
    return [
        RelatedTopic(
            title=str(t["title"]),
            teaser=str(t.get("teaser") or "Explore this topic"),
            search_query=str(t["searchQuery"]),
        )
        for t in items
        if t.get("title") and t.get("searchQuery")
    ]


def normalize_knowledge_map(raw: Any) -> KnowledgeMap | None:
    if not isinstance(raw, dict):
        return None
    return KnowledgeMap(
        established=_str_list(raw.get("established")),
        debated=_str_list(raw.get("debated")),
        unknown=_str_list(raw.get("unknown")),
    )


def build_citations(papers: list[Paper], limit: int = 5) -> list[Citation]:
    return [
        Citation(
            paper_id=p.paper_id,
            title=p.title,
            authors=format_authors(p.authors),
            year=p.year,
            citation_count=p.citation_count,
            url=p.url,
        )
        for p in papers[:limit]
    ]


def assess_research(context: ResearchContext, current_year: int | None = None) -> FrontierAssessment:
    """Classify the collected papers, upgraded by the agent's own frontier flag."""
    assessment = classify(context.papers, current_year=current_year)
    if context.frontier_detected:
        assessment = upgrade_with_model_signal(assessment, True, LIMITED_RESEARCH_REASON)
    return assessment


def normalize_content(
    raw: dict[str, Any],
    title: str,
    papers: list[Paper],
    assessment: FrontierAssessment,
) -> ExplorationContent:
    """
    Build exploration content from parsed model output with defaults.

    Frontier status and depth come from ``assessment`` upgraded by the
    model's claims; the model can never make a topic look better understood
    than the paper evidence says.
    """
    final = upgrade_with_model_signal(
        assessment,
        model_says_frontier=raw.get("isFrontier") is True,
        model_reason=raw.get("frontierReason") if isinstance(raw.get("frontierReason"), str) else None,
        model_depth=raw.get("depth") if isinstance(raw.get("depth"), str) else None,
    )

    return ExplorationContent(
        headline=str(raw.get("headline") or f"Exploring {title}"),
        summary=str(raw.get("summary") or "Investigating this branch of knowledge..."),
        citations=build_citations(papers),
        research_heat=assessment.research_heat.value,
        branches=normalize_branches(raw.get("branches")),
        experiments=normalize_experiments(raw.get("experiments")),
        scientific_terms=normalize_scientific_terms(raw.get("scientificTerms")),
        related_topics=normalize_related_topics(raw.get("relatedTopics")),
        is_frontier=final.is_frontier,
        frontier_reason=final.frontier_reason if final.is_frontier else None,
        depth=final.depth.value,
        knowledge_map=normalize_knowledge_map(raw.get("knowledgeMap")),
    )


class ContentSynthesizer:
    """
    Makes the single final reasoning call that writes exploration content.

    Usage:
        synthesizer = ContentSynthesizer(reasoning_client)
        content = await synthesizer.synthesize(context, title="Bioluminescence")
    """

    def __init__(self, reasoning_client: ReasoningClient, config: ReasoningConfig | None = None):
        from ..config.loader import ReasoningConfig

        self.client = reasoning_client
        config = config or ReasoningConfig()
        self.temperature = config.synthesis_temperature
        self.max_tokens = config.synthesis_max_tokens

    def build_prompt(self, context: ResearchContext, title: str, observation: str | None = None) -> str:
        research = format_research_for_prompt(context)
        observation = observation or context.topic
        if context.mode == ResearchMode.EXPERIMENT:
            return build_experiment_prompt(observation, research)
        return build_branch_exploration_prompt(title, observation, research)

    async def synthesize(
        self,
        context: ResearchContext,
        title: str | None = None,
        observation: str | None = None,
        current_year: int | None = None,
    ) -> ExplorationContent:
        """
        Generate exploration content from a finished research context.

        Raises:
            ReasoningError: If the reasoning call fails
        """
        title = title or context.topic
        prompt = self.build_prompt(context, title, observation)

        logger.info(
            f"Synthesizing content for '{title}' from {context.paper_count} papers "
            f"and {context.web_result_count} web results"
        )
        text = await self.client.complete(
            prompt,
            system_prompt=SYSTEM_PROMPT,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        raw = extract_json(text)
        assessment = assess_research(context, current_year)
        return normalize_content(raw, title, context.papers, assessment)

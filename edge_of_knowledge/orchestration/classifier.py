"""Frontier and depth classification from paper evidence.

Paper counts and publication years are the ground truth. A model-asserted
frontier signal can only upgrade a classification, and only when it comes
with a reason.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum

from ..semantic_scholar.models import Paper


class KnowledgeDepth(str, Enum):
    """Maturity of a topic, from settled to the edge of knowledge."""

    KNOWN = "known"
    INVESTIGATED = "investigated"
    DEBATED = "debated"
    UNKNOWN = "unknown"
    FRONTIER = "frontier"

    @property
    def rank(self) -> int:
        return _DEPTH_ORDER[self]

    @classmethod
    def parse(cls, value: str | None) -> KnowledgeDepth | None:
        try:
            return cls(value) if value else None
        except ValueError:
            return None


_DEPTH_ORDER = {
    KnowledgeDepth.KNOWN: 0,
    KnowledgeDepth.INVESTIGATED: 1,
    KnowledgeDepth.DEBATED: 2,
    KnowledgeDepth.UNKNOWN: 3,
    KnowledgeDepth.FRONTIER: 4,
}


class ResearchHeat(str, Enum):
    """Recency-based activity label."""

    HOT = "hot"
    WARM = "warm"
    COLD = "cold"
    DORMANT = "dormant"


NO_RESEARCH_REASON = "No published research specifically addresses this observation."
LIMITED_RESEARCH_REASON = "This specific area has limited published research."


@dataclass(frozen=True)
class FrontierAssessment:
    is_frontier: bool
    frontier_reason: str | None
    depth: KnowledgeDepth
    research_heat: ResearchHeat


def research_heat(papers: list[Paper], current_year: int | None = None) -> ResearchHeat:
    """hot: >=3 papers in the last 2 years; warm: >=2 in the last 3; cold: any; else dormant."""
    current_year = current_year or date.today().year
    very_recent = sum(1 for p in papers if p.year and p.year >= current_year - 2)
    recent = sum(1 for p in papers if p.year and p.year >= current_year - 3)

    if very_recent >= 3:
        return ResearchHeat.HOT
    if recent >= 2:
        return ResearchHeat.WARM
    if papers:
        return ResearchHeat.COLD
    return ResearchHeat.DORMANT


def classify(
    papers: list[Paper],
    confidence: float | None = None,
    current_year: int | None = None,
) -> FrontierAssessment:
    """
    Classify a topic's research maturity from the papers found for it.

    Args:
        papers: Collected papers (year 0 means unknown and is ignored for recency)
        confidence: Optional 0-100 confidence from the caller
        current_year: Reference year for recency windows (defaults to today)

    Returns:
        FrontierAssessment; pure and deterministic for a given input
    """
    current_year = current_year or date.today().year
    heat = research_heat(papers, current_year)
    count = len(papers)
    known_years = [p.year for p in papers if p.year > 0]
    recent = sum(1 for y in known_years if y >= current_year - 3)

    def frontier(reason: str) -> FrontierAssessment:
        return FrontierAssessment(True, reason, KnowledgeDepth.FRONTIER, heat)

    if count == 0:
        return frontier(NO_RESEARCH_REASON)

    if count <= 2 and recent == 0:
        return frontier(f"Only {count} papers found, none in the last 3 years.")

    if known_years and max(known_years) < current_year - 5:
        return frontier(
            f"Research appears dormant. The last paper was published in {max(known_years)}."
        )

    has_confidence = confidence is not None
    if count <= 5 or (has_confidence and confidence < 40):
        depth = KnowledgeDepth.UNKNOWN
    elif has_confidence and confidence < 60:
        depth = KnowledgeDepth.DEBATED
    # A large, confidently understood body of work stays "known" even when active
    elif recent >= 3 and not (has_confidence and confidence >= 80 and count >= 10):
        depth = KnowledgeDepth.DEBATED
    elif has_confidence and confidence < 80:
        depth = KnowledgeDepth.INVESTIGATED
    elif count >= 10:
        depth = KnowledgeDepth.KNOWN
    else:
        depth = KnowledgeDepth.INVESTIGATED

    return FrontierAssessment(False, None, depth, heat)


def upgrade_with_model_signal(
    assessment: FrontierAssessment,
    model_says_frontier: bool = False,
    model_reason: str | None = None,
    model_depth: str | KnowledgeDepth | None = None,
) -> FrontierAssessment:
    """
    Merge a model-asserted signal into a paper-based assessment.

    The result is never shallower than ``assessment``. A frontier claim
    without a reason is ignored.
    """
    is_frontier = assessment.is_frontier or (model_says_frontier and bool(model_reason))

    depth = assessment.depth
    parsed = model_depth if isinstance(model_depth, KnowledgeDepth) else KnowledgeDepth.parse(model_depth)
    # depth "frontier" is reserved for assessments flagged as frontier
    if parsed is not None and parsed.rank > depth.rank and parsed != KnowledgeDepth.FRONTIER:
        depth = parsed

    if is_frontier:
        return replace(
            assessment,
            is_frontier=True,
            depth=KnowledgeDepth.FRONTIER,
            frontier_reason=model_reason or assessment.frontier_reason,
        )
    return replace(assessment, depth=depth, frontier_reason=None)

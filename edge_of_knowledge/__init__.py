"""Edge of Knowledge: research agent that maps what is known, debated and unknown."""

from .orchestration import (
    ExplorationRequest,
    ExplorationResult,
    Explorer,
    ResearchAgent,
    ResearchContext,
    ResearchMode,
    classify,
    explore_topic,
    explore_topic_stream,
)

__all__ = [
    "ExplorationRequest",
    "ExplorationResult",
    "Explorer",
    "ResearchAgent",
    "ResearchContext",
    "ResearchMode",
    "classify",
    "explore_topic",
    "explore_topic_stream",
]

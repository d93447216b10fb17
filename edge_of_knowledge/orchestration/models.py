"""Data models for the research agent loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..llm.protocols import ToolInvocation
from ..semantic_scholar.models import Paper
from ..web_search.models import WebResult

if TYPE_CHECKING:
    from ..config.loader import FallbackConfig
    from .tools import ToolOutcome


class ResearchMode(str, Enum):
    """What an exploration concentrates on."""

    SCIENCE = "science"
    UNKNOWN = "unknown"
    EXPERIMENT = "experiment"
    FREEFORM = "freeform"

    @classmethod
    def from_value(cls, value: str | ResearchMode | None) -> ResearchMode:
        """Parse a mode, treating anything unrecognised as free-form."""
        if isinstance(value, ResearchMode):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.FREEFORM


class LoopState(Enum):
    """State of one research loop execution."""

    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class TerminationReason(str, Enum):
    """Why the loop stopped."""

    FINISHED = "finished"
    FAIL_FORWARD = "fail-forward"
    NO_TOOL_CALLS = "no-tool-calls"
    LIMIT_REACHED = "limit-reached"
    REASONING_FAILURE = "reasoning-failure"


@dataclass(frozen=True)
class TerminalSummary:
    """The final ``{summary, confidence, frontier_detected}`` of a run."""

    summary: str
    confidence: float
    frontier_detected: bool
    key_papers: tuple[str, ...] = ()
    synthesized: bool = False  # True when computed by the fallback formula

    def __post_init__(self):
        if not 0 <= self.confidence <= 1:
            raise ValueError("Confidence must be between 0 and 1")


def fallback_summary(paper_count: int, config: FallbackConfig | None = None) -> TerminalSummary:
    """Terminal summary used when the loop ends without a finish signal.

    confidence = min(base + per_paper * paper_count, max); the topic is
    flagged as frontier when fewer than ``frontier_paper_threshold`` papers
    were found.
    """
    if config is None:
        from ..config.loader import FallbackConfig
        config = FallbackConfig()

    confidence = min(
        config.base_confidence + config.confidence_per_paper * paper_count,
        config.max_confidence,
    )
    return TerminalSummary(
        summary=config.summary_text,
        confidence=round(confidence, 4),
        frontier_detected=paper_count < config.frontier_paper_threshold,
        synthesized=True,
    )


@dataclass
class ToolCallLogEntry:
    """One row of the audit trail: what was called in an iteration and what came back."""

    iteration: int
    calls: list[str]
    results: list[str]
    invocations: list[ToolInvocation] = field(default_factory=list)
    outcomes: list[ToolOutcome] = field(default_factory=list)
    is_error: bool = False


@dataclass
class ResearchContext:
    """Evidence and bookkeeping for one exploration request.

    Owned by the loop execution that created it. Papers are keyed by
    ``paper_id`` and web results by ``url``; re-adding a known key is a
    no-op. Once the loop terminates the context is sealed and any further
    mutation raises ``RuntimeError``.
    """

    topic: str
    mode: ResearchMode = ResearchMode.FREEFORM
    prior_context: Any = None
    collected_papers: dict[str, Paper] = field(default_factory=dict)
    collected_web_results: dict[str, WebResult] = field(default_factory=dict)
    iteration_count: int = 0
    tool_call_log: list[ToolCallLogEntry] = field(default_factory=list)
    terminal: TerminalSummary | None = None
    state: LoopState = LoopState.RUNNING
    termination_reason: TerminationReason | None = None
    total_time_ms: float = 0.0
    _sealed: bool = field(default=False, repr=False)

    @property
    def papers(self) -> list[Paper]:
        return list(self.collected_papers.values())

    @property
    def web_results(self) -> list[WebResult]:
        return list(self.collected_web_results.values())

    @property
    def paper_count(self) -> int:
        return len(self.collected_papers)

    @property
    def web_result_count(self) -> int:
        return len(self.collected_web_results)

    @property
    def has_evidence(self) -> bool:
        return bool(self.collected_papers or self.collected_web_results)

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    @property
    def research_summary(self) -> str | None:
        return self.terminal.summary if self.terminal else None

    @property
    def research_confidence(self) -> float | None:
        return self.terminal.confidence if self.terminal else None

    @property
    def frontier_detected(self) -> bool:
        return bool(self.terminal and self.terminal.frontier_detected)

    def _check_mutable(self) -> None:
        if self._sealed:
            raise RuntimeError("ResearchContext is sealed; the loop has terminated")

    def add_paper(self, paper: Paper) -> bool:
        """Insert a paper unless its id is already known. Returns True if added."""
        self._check_mutable()
        if paper.paper_id in self.collected_papers:
            return False
        self.collected_papers[paper.paper_id] = paper
        return True

    def add_web_result(self, result: WebResult) -> bool:
        """Insert a web result unless its url is already known. Returns True if added."""
        self._check_mutable()
        if result.url in self.collected_web_results:
            return False
        self.collected_web_results[result.url] = result
        return True

    def accumulate(self, outcomes: list[ToolOutcome]) -> tuple[int, int]:
        """Fold successful tool outcomes into the context.

        Returns:
            (new papers, new web results) added by this batch
        """
        new_papers = 0
        new_web = 0
        for outcome in outcomes:
            if outcome.error is not None:
                continue
            new_papers += sum(self.add_paper(p) for p in outcome.papers)
            new_web += sum(self.add_web_result(r) for r in outcome.web_results)
        return new_papers, new_web

    def advance_iteration(self) -> int:
        self._check_mutable()
        self.iteration_count += 1
        return self.iteration_count

    def log(self, entry: ToolCallLogEntry) -> None:
        self._check_mutable()
        self.tool_call_log.append(entry)

    def terminate(
        self,
        state: LoopState,
        reason: TerminationReason,
        terminal: TerminalSummary,
    ) -> None:
        """Record the terminal state. Allowed exactly once."""
        self._check_mutable()
        if self.terminal is not None:
            raise RuntimeError("Terminal summary already recorded")
        if state == LoopState.RUNNING:
            raise ValueError("Cannot terminate into the running state")
        self.state = state
        self.termination_reason = reason
        self.terminal = terminal

    def seal(self, total_time_ms: float) -> None:
        """Freeze the context after the loop has terminated."""
        if self.terminal is None:
            raise RuntimeError("Cannot seal a context without a terminal summary")
        self.total_time_ms = total_time_ms
        self._sealed = True

    def process_trail(self) -> str:
        """Tool calls across iterations, joined in order."""
        return " → ".join(", ".join(entry.calls) for entry in self.tool_call_log)

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "mode": self.mode.value,
            "state": self.state.value,
            "terminationReason": self.termination_reason.value if self.termination_reason else None,
            "iterations": self.iteration_count,
            "papersFound": self.paper_count,
            "webResultsFound": self.web_result_count,
            "researchSummary": self.research_summary,
            "researchConfidence": self.research_confidence,
            "frontierDetected": self.frontier_detected,
            "totalTimeMs": self.total_time_ms,
            "toolCalls": [
                {"iteration": e.iteration, "calls": e.calls, "results": e.results}
                for e in self.tool_call_log
            ],
        }

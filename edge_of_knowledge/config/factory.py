"""Factory functions to create backends from configuration."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from ..errors import ConfigurationError
from ..llm.protocols import Message, MessageRole, ReasoningResponse, ToolInvocation
from ..semantic_scholar.models import Author, Paper, PaperDetails
from ..web_search.models import WebResult

if TYPE_CHECKING:
    from ..llm.protocols import ReasoningClient
    from ..orchestration.explorer import Explorer
    from ..orchestration.research_agent import ResearchAgent
    from ..orchestration.synthesis import ContentSynthesizer
    from ..orchestration.tools import ToolExecutor
    from ..semantic_scholar.protocols import PaperSearchProvider
    from ..web_search.protocols import WebSearchProvider
    from .loader import ProfileConfig, ProvidersConfig, ReasoningConfig, ToolExecutorConfig


_TOPIC_PATTERN = re.compile(r'exploring the topic "([^"]+)"')


class MockReasoningClient:
    """Scripted reasoning client for testing and offline runs.

    Plays back ``script`` one response per ``converse`` call. The default
    script searches papers and the web for the topic, then finishes.
    """

    def __init__(
        self,
        script: list[ReasoningResponse] | None = None,
        completion: str | None = None,
    ):
        self.script = list(script) if script is not None else None
        self.completion = completion
        self.converse_calls: list[list[Message]] = []
        self.complete_calls: list[str] = []

    def _default_turn(self, turn: int, topic: str) -> ReasoningResponse:
        if turn == 0:
            return ReasoningResponse(tool_invocations=[
                ToolInvocation(name="search_papers", arguments={"query": topic, "limit": 5}),
                ToolInvocation(name="search_web", arguments={"query": topic}),
            ])
        return ReasoningResponse(tool_invocations=[
            ToolInvocation(
                name="finish_research",
                arguments={
                    "summary": f"[Mock research summary for: {topic}]",
                    "confidence": 0.75,
                    "frontier_detected": False,
                },
            ),
        ])

    async def converse(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> ReasoningResponse:
        """Return the next scripted response."""
        turn = len(self.converse_calls)
        self.converse_calls.append(list(messages))

        if self.script is not None:
            if turn < len(self.script):
                return self.script[turn]
            return ReasoningResponse()

        first_user = next((m.content for m in messages if m.role == MessageRole.USER), "")
        match = _TOPIC_PATTERN.search(first_user)
        return self._default_turn(turn, match.group(1) if match else "mock topic")

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        """Return a mock exploration as JSON."""
        self.complete_calls.append(prompt)
        if self.completion is not None:
            return self.completion
        return "```json\n" + json.dumps({
            "headline": "[Mock headline]",
            "summary": f"[Mock exploration of: {prompt[:50]}...]",
            "depth": "investigated",
            "confidence": 70,
            "knowledgeMap": {"established": [], "debated": [], "unknown": []},
            "branches": [],
            "isFrontier": False,
        }) + "\n```"

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


def _mock_papers(query: str) -> list[PaperDetails]:
    slug = re.sub(r"[^a-z0-9]+", "-", query.lower()).strip("-") or "topic"
    return [
        PaperDetails(
            paper_id=f"mock-{slug}-{i}",
            title=f"[Mock paper {i} on {query}]",
            authors=[Author(name="A. Researcher"), Author(name="B. Scientist")],
            year=2019 + i,
            citation_count=10 * (5 - i),
            abstract=f"[Mock abstract {i}]",
            venue="Mock Journal",
        )
        for i in range(1, 5)
    ]


class MockPaperProvider:
    """Mock academic search returning deterministic papers per query."""

    def __init__(self, papers: list[Paper] | None = None):
        self.papers = papers
        self.search_calls: list[tuple[str, int]] = []
        self.detail_calls: list[str] = []
        self._known: dict[str, Paper] = {p.paper_id: p for p in papers or []}

    async def search_papers(self, query: str, limit: int = 10) -> list[Paper]:
        self.search_calls.append((query, limit))
        papers = self.papers if self.papers is not None else _mock_papers(query)
        for p in papers:
            self._known.setdefault(p.paper_id, p)
        return list(papers[:limit])

    async def get_paper_details(self, paper_id: str) -> PaperDetails | None:
        self.detail_calls.append(paper_id)
        paper = self._known.get(paper_id)
        if paper is None:
            return None
        return PaperDetails.model_validate(paper.model_dump())

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


class MockWebProvider:
    """Mock web search returning deterministic results per query."""

    def __init__(self, results: list[WebResult] | None = None):
        self.results = results
        self.search_calls: list[tuple[str, int]] = []

    async def search_web(self, query: str, limit: int = 5) -> list[WebResult]:
        self.search_calls.append((query, limit))
        if self.results is not None:
            return list(self.results[:limit])
        return [
            WebResult(
                url=f"https://example.org/{i}?q={query.replace(' ', '+')}",
                title=f"[Mock web result {i} for {query}]",
                snippet="[Mock snippet]",
            )
            for i in range(1, 3)
        ][:limit]

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


def create_reasoning_client(config: ReasoningConfig) -> ReasoningClient:
    """Create a reasoning backend from configuration.

    Args:
        config: Reasoning configuration

    Returns:
        ReasoningClient instance (OpenRouterAdapter, AnthropicAdapter, or Mock)

    Raises:
        ConfigurationError: If the backend is unsupported or its api_key is missing
    """
    if config.backend == "openrouter":
        from ..llm import OpenRouterAdapter

        if not config.api_key:
            raise ConfigurationError("OpenRouter backend requires api_key (set OPENROUTER_API_KEY)")

        return OpenRouterAdapter(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
        )

    elif config.backend == "anthropic":
        from ..llm import AnthropicAdapter

        if not config.api_key:
            raise ConfigurationError("Anthropic backend requires api_key (set ANTHROPIC_API_KEY)")

        return AnthropicAdapter(
            api_key=config.api_key,
            model=config.model,
        )

    elif config.backend == "mock":
        return MockReasoningClient()

    else:
        raise ConfigurationError(f"Unsupported reasoning backend: {config.backend}")


def create_paper_provider(config: ProvidersConfig) -> PaperSearchProvider:
    """Create the academic paper search provider.

    Raises:
        ConfigurationError: If backend type is not supported
    """
    if config.paper_backend == "semantic_scholar":
        from ..semantic_scholar import SemanticScholarAdapter

        return SemanticScholarAdapter(
            api_key=config.semantic_scholar_api_key,
            timeout=config.request_timeout,
        )

    elif config.paper_backend == "mock":
        return MockPaperProvider()

    else:
        raise ConfigurationError(f"Unsupported paper backend: {config.paper_backend}")


def create_web_provider(config: ProvidersConfig) -> WebSearchProvider:
    """Create the web search provider.

    Raises:
        ConfigurationError: If backend type is not supported
    """
    if config.web_backend == "duckduckgo":
        from ..web_search import DuckDuckGoAdapter

        return DuckDuckGoAdapter(timeout=config.request_timeout)

    elif config.web_backend == "mock":
        return MockWebProvider()

    else:
        raise ConfigurationError(f"Unsupported web backend: {config.web_backend}")


def create_tool_executor(
    paper_provider,
    web_provider,
    config: ToolExecutorConfig | None = None,
) -> ToolExecutor:
    """Create a ToolExecutor over the given providers."""
    from ..orchestration.tools import ToolExecutor

    return ToolExecutor(
        paper_provider=paper_provider,
        web_provider=web_provider,
        config=config,
    )


def create_research_agent(
    profile: ProfileConfig,
    reasoning_client,
    paper_provider,
    web_provider,
) -> ResearchAgent:
    """Create a ResearchAgent wired to the given backends.

    Args:
        profile: Profile configuration
        reasoning_client: Entered reasoning client
        paper_provider: Entered paper search provider
        web_provider: Entered web search provider

    Returns:
        ResearchAgent instance
    """
    from ..orchestration.research_agent import ResearchAgent

    return ResearchAgent(
        reasoning_client=reasoning_client,
        tool_executor=create_tool_executor(paper_provider, web_provider, profile.tools),
        loop_config=profile.agent,
        reasoning_config=profile.reasoning,
        fallback_config=profile.fallback,
    )


def create_synthesizer(profile: ProfileConfig, reasoning_client) -> ContentSynthesizer:
    """Create the content synthesizer."""
    from ..orchestration.synthesis import ContentSynthesizer

    return ContentSynthesizer(reasoning_client, profile.reasoning)


def create_explorer(
    profile: ProfileConfig,
    reasoning_client,
    paper_provider,
    web_provider,
) -> Explorer:
    """Create an Explorer (research agent + synthesizer) from a profile.

    This is the main factory function for callers that want a complete
    exploration pipeline.
    """
    from ..orchestration.explorer import Explorer

    return Explorer(
        agent=create_research_agent(profile, reasoning_client, paper_provider, web_provider),
        synthesizer=create_synthesizer(profile, reasoning_client),
    )

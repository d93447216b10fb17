"""Explorer: research loop plus content synthesis behind one call."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, field_validator

from ..errors import ConfigurationError
from .models import ResearchContext, ResearchMode
from .progress import ProgressCallback, ProgressEmitter, ProgressEvent, ProgressStage
from .research_agent import ResearchAgent
from .synthesis import ContentSynthesizer, ExplorationContent

if TYPE_CHECKING:
    from ..config.loader import ProfileConfig

logger = logging.getLogger(__name__)


class ExplorationRequest(BaseModel):
    """What the caller wants explored."""

    topic: str = Field(..., min_length=1)
    mode: ResearchMode = ResearchMode.FREEFORM
    title: str | None = None
    observation: str | None = None
    prior_context: Any = None
    max_iterations: int | None = Field(default=None, ge=1)

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, value):
        return ResearchMode.from_value(value)

    @property
    def display_title(self) -> str:
        return self.title or self.topic


@dataclass
class ExplorationResult:
    """Outcome of one exploration: content, the research behind it, and the event trail."""

    content: ExplorationContent | None = None
    research: ResearchContext | None = None
    events: list[ProgressEvent] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.content is not None


class Explorer:
    """
    Runs the research agent and then synthesizes exploration content.

    ``explore`` is the blocking variant (wall-clock capped, errors raise).
    ``explore_with_progress`` streams events and always ends its stream with
    exactly one ``complete`` or ``error`` event.
    """

    def __init__(self, agent: ResearchAgent, synthesizer: ContentSynthesizer):
        self.agent = agent
        self.synthesizer = synthesizer

    async def explore(self, request: ExplorationRequest) -> ExplorationResult:
        """
        Explore a topic without progress events.

        Raises:
            ReasoningError: If the synthesis call fails
        """
        research = await self.agent.run(
            request.topic,
            request.mode,
            request.prior_context,
            max_iterations=request.max_iterations,
        )
        content = await self.synthesizer.synthesize(
            research,
            title=request.display_title,
            observation=request.observation,
        )
        return ExplorationResult(content=content, research=research)

    async def explore_with_progress(
        self,
        request: ExplorationRequest,
        on_progress: ProgressCallback | ProgressEmitter | None = None,
    ) -> ExplorationResult:
        """
        Explore a topic while streaming progress events.

        Failures never propagate: they become the terminal ``error`` event and
        ``ExplorationResult.error``.
        """
        emitter = on_progress if isinstance(on_progress, ProgressEmitter) else ProgressEmitter(on_progress)
        research: ResearchContext | None = None

        try:
            research = await self.agent.run_with_progress(
                request.topic,
                request.mode,
                request.prior_context,
                on_progress=emitter,
                max_iterations=request.max_iterations,
            )

            emitter.emit(
                ProgressStage.GENERATING,
                "Writing exploration content...",
                papers_found=research.paper_count,
                web_results_found=research.web_result_count,
            )
            content = await self.synthesizer.synthesize(
                research,
                title=request.display_title,
                observation=request.observation,
            )
        except Exception as e:
            logger.exception(f"Exploration of '{request.topic}' failed")
            message = str(e) or "Exploration failed"
            emitter.error(message)
            return ExplorationResult(research=research, events=emitter.events, error=message)

        emitter.complete(research.paper_count, research.web_result_count)
        return ExplorationResult(content=content, research=research, events=emitter.events)


async def explore_topic(
    request: ExplorationRequest,
    config: ProfileConfig | None = None,
) -> ExplorationResult:
    """
    Build the configured backends and run a blocking exploration.

    Raises:
        ConfigurationError: If a required credential is missing
    """
    from ..config import (
        create_explorer,
        create_paper_provider,
        create_reasoning_client,
        create_web_provider,
        load_config,
    )

    config = config or load_config()
    reasoning_client = create_reasoning_client(config.reasoning)
    paper_provider = create_paper_provider(config.providers)
    web_provider = create_web_provider(config.providers)

    async with reasoning_client, paper_provider, web_provider:
        explorer = create_explorer(config, reasoning_client, paper_provider, web_provider)
        return await explorer.explore(request)


async def explore_topic_stream(
    request: ExplorationRequest,
    on_progress: ProgressCallback | None = None,
    config: ProfileConfig | None = None,
) -> ExplorationResult:
    """
    Build the configured backends and run a streaming exploration.

    A configuration error ends the stream with an ``error`` event before any
    research starts.
    """
    from ..config import (
        create_explorer,
        create_paper_provider,
        create_reasoning_client,
        create_web_provider,
        load_config,
    )

    emitter = ProgressEmitter(on_progress)
    try:
        config = config or load_config()
        reasoning_client = create_reasoning_client(config.reasoning)
        paper_provider = create_paper_provider(config.providers)
        web_provider = create_web_provider(config.providers)
    except ConfigurationError as e:
        logger.error(f"Cannot start exploration: {e}")
        emitter.error(str(e))
        return ExplorationResult(events=emitter.events, error=str(e))

    async with reasoning_client, paper_provider, web_provider:
        explorer = create_explorer(config, reasoning_client, paper_provider, web_provider)
        return await explorer.explore_with_progress(request, emitter)

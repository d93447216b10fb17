"""
Research Agent: the iterative, tool-using evidence-gathering loop.

Each iteration makes exactly one reasoning call, runs the requested tools in
parallel and folds the deduplicated evidence into a ResearchContext. The
loop ends on a valid finish_research call, when the model stops calling
tools, on the iteration cap (and wall-clock cap for the blocking variant),
or after repeated reasoning failures.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

from ..errors import InvalidToolInvocation, ReasoningError
from ..llm.protocols import Message, MessageRole, ToolInvocation
from .models import (
    LoopState,
    ResearchContext,
    ResearchMode,
    TerminalSummary,
    TerminationReason,
    ToolCallLogEntry,
    fallback_summary,
)
from .progress import ProgressCallback, ProgressEmitter, ProgressStage
from .prompts import COMPLETION_HINT, build_agent_prompt
from .tools import (
    FinishResearchArgs,
    ToolExecutor,
    ToolType,
    canonical_tool_name,
    get_tool_schema,
    parse_invocation,
)

if TYPE_CHECKING:
    from ..config.loader import AgentLoopConfig, FallbackConfig, ReasoningConfig
    from ..llm.protocols import ReasoningClient

logger = logging.getLogger(__name__)


def describe_invocation(invocation: ToolInvocation) -> str:
    """Compact ``name({...})`` form used in the audit trail."""
    return f"{invocation.name}({json.dumps(invocation.arguments, default=str)[:100]})"


class ResearchAgent:
    """
    Drives the research loop for one topic at a time.

    The agent itself is stateless between runs: every call to ``run`` or
    ``run_with_progress`` creates and exclusively owns a fresh
    ResearchContext, so one agent can serve concurrent requests.

    Usage:
        agent = ResearchAgent(reasoning_client, tool_executor)
        context = await agent.run("bioluminescent fungi", ResearchMode.SCIENCE)
    """

    def __init__(
        self,
        reasoning_client: ReasoningClient,
        tool_executor: ToolExecutor,
        loop_config: AgentLoopConfig | None = None,
        reasoning_config: ReasoningConfig | None = None,
        fallback_config: FallbackConfig | None = None,
    ):
        """
        Initialize the research agent.

        Args:
            reasoning_client: Tool-calling reasoning client
            tool_executor: Executor for paper/web tools
            loop_config: Iteration and time caps, failure policy
            reasoning_config: Temperature and token budget per call
            fallback_config: Constants for the forced-termination summary
        """
        from ..config.loader import AgentLoopConfig, FallbackConfig, ReasoningConfig

        self.client = reasoning_client
        self.executor = tool_executor
        self.loop_config = loop_config or AgentLoopConfig()
        self.reasoning_config = reasoning_config or ReasoningConfig()
        self.fallback_config = fallback_config or FallbackConfig()
        self.tools = get_tool_schema()

    async def run(
        self,
        topic: str,
        mode: ResearchMode | str = ResearchMode.FREEFORM,
        prior_context: Any = None,
        max_iterations: int | None = None,
        max_duration_ms: int | None = None,
    ) -> ResearchContext:
        """
        Run the loop to completion without progress events.

        Bounded by both the iteration cap and the wall-clock cap.

        Args:
            topic: What to research
            mode: Research focus
            prior_context: Optional earlier analysis, passed to the model as JSON
            max_iterations: Overrides the configured iteration cap
            max_duration_ms: Overrides the configured wall-clock cap

        Returns:
            Sealed ResearchContext with a terminal summary
        """
        return await self._run(
            topic,
            ResearchMode.from_value(mode),
            prior_context,
            emitter=None,
            max_iterations=max_iterations or self.loop_config.max_iterations,
            max_duration_ms=max_duration_ms or self.loop_config.max_duration_ms,
        )

    async def run_with_progress(
        self,
        topic: str,
        mode: ResearchMode | str = ResearchMode.FREEFORM,
        prior_context: Any = None,
        on_progress: ProgressCallback | ProgressEmitter | None = None,
        max_iterations: int | None = None,
    ) -> ResearchContext:
        """
        Run the loop while emitting progress events.

        Only the iteration cap applies. When ``on_progress`` is a plain
        callback the agent owns the stream and closes it with ``complete``;
        when it is a ProgressEmitter the caller owns the terminal event.

        Args:
            topic: What to research
            mode: Research focus
            prior_context: Optional earlier analysis
            on_progress: Sink callback or an emitter shared with the caller
            max_iterations: Overrides the configured iteration cap

        Returns:
            Sealed ResearchContext with a terminal summary
        """
        owns_stream = not isinstance(on_progress, ProgressEmitter)
        emitter = on_progress if isinstance(on_progress, ProgressEmitter) else ProgressEmitter(on_progress)

        context = await self._run(
            topic,
            ResearchMode.from_value(mode),
            prior_context,
            emitter=emitter,
            max_iterations=max_iterations or self.loop_config.max_iterations,
            max_duration_ms=None,
        )

        if owns_stream:
            emitter.complete(context.paper_count, context.web_result_count, "Research complete")
        return context

    async def _run(
        self,
        topic: str,
        mode: ResearchMode,
        prior_context: Any,
        emitter: ProgressEmitter | None,
        max_iterations: int,
        max_duration_ms: int | None,
    ) -> ResearchContext:
        start = time.monotonic()
        context = ResearchContext(topic=topic, mode=mode, prior_context=prior_context)
        messages = [
            Message(role=MessageRole.USER, content=build_agent_prompt(topic, mode, prior_context)),
        ]
        consecutive_failures = 0

        def emit(stage: ProgressStage, message: str, **fields: Any) -> None:
            if emitter is not None:
                emitter.emit(stage, message, **fields)

        logger.info(f"Starting research on '{topic}' (mode={mode.value}, max_iterations={max_iterations})")
        emit(ProgressStage.STARTING, f"Starting research on {topic}...", iteration=0)

        while context.state == LoopState.RUNNING:
            if context.iteration_count >= max_iterations:
                logger.info(f"Iteration cap reached ({max_iterations})")
                self._abort(context, TerminationReason.LIMIT_REACHED)
                break

            elapsed_ms = (time.monotonic() - start) * 1000
            if max_duration_ms is not None and elapsed_ms >= max_duration_ms:
                logger.info(f"Time budget exhausted after {elapsed_ms:.0f}ms")
                self._abort(context, TerminationReason.LIMIT_REACHED)
                break

            iteration = context.advance_iteration()
            emit(
                ProgressStage.THINKING,
                f"Planning research step {iteration}...",
                iteration=iteration,
                papers_found=context.paper_count,
                web_results_found=context.web_result_count,
            )

            try:
                response = await self.client.converse(
                    messages,
                    self.tools,
                    temperature=self.reasoning_config.temperature,
                    max_tokens=self.reasoning_config.max_tokens,
                )
            except ReasoningError as e:
                consecutive_failures += 1
                self._handle_reasoning_failure(context, iteration, e, consecutive_failures, emit)
                continue
            except Exception as e:
                consecutive_failures += 1
                error = ReasoningError(str(e) or type(e).__name__)
                self._handle_reasoning_failure(context, iteration, error, consecutive_failures, emit)
                continue

            consecutive_failures = 0
            invocations = [
                inv if inv.call_id else inv.model_copy(update={"call_id": f"call_{iteration}_{i}"})
                for i, inv in enumerate(response.tool_invocations)
            ]

            if not invocations:
                if response.text:
                    logger.info(f"Agent replied without tool calls: {response.text[:200]}")
                self._abort(context, TerminationReason.NO_TOOL_CALLS)
                emit(ProgressStage.ANALYZING, "No further research requested", iteration=iteration)
                break

            finish_args = self._find_finish(invocations)
            if finish_args is not None:
                context.log(ToolCallLogEntry(
                    iteration=iteration,
                    calls=[f"finish_research(confidence: {finish_args.confidence})"],
                    results=["Research complete"],
                ))
                context.terminate(
                    LoopState.COMPLETED,
                    TerminationReason.FINISHED,
                    TerminalSummary(
                        summary=finish_args.summary,
                        confidence=finish_args.confidence,
                        frontier_detected=finish_args.frontier_detected,
                        key_papers=tuple(finish_args.key_papers),
                    ),
                )
                emit(
                    ProgressStage.ANALYZING,
                    "Research complete",
                    iteration=iteration,
                    papers_found=context.paper_count,
                    web_results_found=context.web_result_count,
                    detail=finish_args.summary[:200],
                )
                break

            await self._execute_tools(context, iteration, response.text, invocations, messages, emit)

        total_ms = round((time.monotonic() - start) * 1000, 1)
        context.seal(total_ms)

        logger.info(
            f"Research agent finished ({context.state.value}, {context.termination_reason.value}): "
            f"iterations={context.iteration_count}, papers={context.paper_count}, "
            f"web_results={context.web_result_count}, time={total_ms}ms, "
            f"confidence={context.research_confidence}"
        )
        return context

    def _find_finish(self, invocations: list[ToolInvocation]) -> FinishResearchArgs | None:
        """Return validated finish arguments if the batch contains a usable finish call.

        An invalid finish call is left in the batch so the executor reports the
        validation error back to the model.
        """
        for invocation in invocations:
            if canonical_tool_name(invocation.name) != ToolType.FINISH_RESEARCH.value:
                continue
            try:
                args = parse_invocation(invocation)
            except InvalidToolInvocation as e:
                logger.warning(f"Ignoring invalid finish_research call: {e}")
                continue
            return args
        return None

    async def _execute_tools(
        self,
        context: ResearchContext,
        iteration: int,
        assistant_text: str,
        invocations: list[ToolInvocation],
        messages: list[Message],
        emit,
    ) -> None:
        for invocation in invocations:
            name = canonical_tool_name(invocation.name)
            if name == ToolType.GET_PAPER_DETAILS.value:
                paper_id = invocation.arguments.get("paperId") or invocation.arguments.get("paper_id")
                emit(
                    ProgressStage.READING,
                    f"Reading paper details ({paper_id})",
                    iteration=iteration,
                    tool_name=name,
                    detail=str(paper_id) if paper_id else None,
                )
            elif name != ToolType.FINISH_RESEARCH.value:
                query = invocation.arguments.get("query")
                target = "papers" if name == ToolType.SEARCH_PAPERS.value else "the web"
                emit(
                    ProgressStage.SEARCHING,
                    f"Searching {target}: {query}" if query else f"Calling {name}",
                    iteration=iteration,
                    tool_name=name,
                    detail=str(query) if query else None,
                )

        outcomes = await self.executor.execute_parallel(invocations)
        new_papers, new_web = context.accumulate(outcomes)

        context.log(ToolCallLogEntry(
            iteration=iteration,
            calls=[describe_invocation(inv) for inv in invocations],
            results=[o.error or f"{o.name}: {o.summary()}" for o in outcomes],
            invocations=invocations,
            outcomes=outcomes,
        ))

        messages.append(Message(
            role=MessageRole.ASSISTANT,
            content=assistant_text,
            tool_calls=invocations,
        ))
        for outcome in outcomes:
            messages.append(Message(
                role=MessageRole.TOOL,
                content=json.dumps(outcome.to_response(), default=str),
                tool_call_id=outcome.call_id,
                name=outcome.name,
            ))

        failed = sum(1 for o in outcomes if o.error is not None)
        logger.info(
            f"Iteration {iteration}: {len(outcomes)} tool calls ({failed} failed), "
            f"+{new_papers} papers, +{new_web} web results"
        )
        emit(
            ProgressStage.ANALYZING,
            f"Found {new_papers} new papers and {new_web} new web results",
            iteration=iteration,
            papers_found=context.paper_count,
            web_results_found=context.web_result_count,
        )

        if (
            context.paper_count >= self.loop_config.completion_hint_min_papers
            and iteration >= self.loop_config.completion_hint_min_iterations
        ):
            messages.append(Message(role=MessageRole.USER, content=COMPLETION_HINT))

    def _handle_reasoning_failure(
        self,
        context: ResearchContext,
        iteration: int,
        error: ReasoningError,
        consecutive_failures: int,
        emit,
    ) -> None:
        logger.error(f"Agent iteration {iteration} failed: {error}")
        context.log(ToolCallLogEntry(
            iteration=iteration,
            calls=["ERROR"],
            results=[str(error) or "Unknown error"],
            is_error=True,
        ))
        emit(
            ProgressStage.ANALYZING,
            f"Research step {iteration} failed, continuing with gathered evidence",
            iteration=iteration,
            papers_found=context.paper_count,
            web_results_found=context.web_result_count,
            detail=str(error)[:200],
        )

        if iteration >= 2 and context.has_evidence:
            logger.info("Completing early with the evidence gathered so far")
            context.terminate(
                LoopState.COMPLETED,
                TerminationReason.FAIL_FORWARD,
                fallback_summary(context.paper_count, self.fallback_config),
            )
        elif consecutive_failures >= self.loop_config.max_consecutive_failures and not context.has_evidence:
            logger.error(f"Giving up after {consecutive_failures} consecutive reasoning failures")
            self._abort(context, TerminationReason.REASONING_FAILURE)

    def _abort(self, context: ResearchContext, reason: TerminationReason) -> None:
        context.terminate(
            LoopState.ABORTED,
            reason,
            fallback_summary(context.paper_count, self.fallback_config),
        )

"""Research orchestration: tool execution, the agent loop, classification and synthesis."""

from .models import (
    LoopState,
    ResearchContext,
    ResearchMode,
    TerminalSummary,
    TerminationReason,
    ToolCallLogEntry,
    fallback_summary,
)
from .tools import (
    TOOL_DEFINITIONS,
    FinishResearchArgs,
    GetPaperDetailsArgs,
    SearchPapersArgs,
    SearchWebArgs,
    ToolDefinition,
    ToolExecutor,
    ToolOutcome,
    ToolType,
    get_tool_descriptions,
    get_tool_schema,
    parse_invocation,
)
from .progress import ProgressCallback, ProgressEmitter, ProgressEvent, ProgressStage
from .classifier import (
    FrontierAssessment,
    KnowledgeDepth,
    ResearchHeat,
    classify,
    research_heat,
    upgrade_with_model_signal,
)
from .research_agent import ResearchAgent
from .synthesis import (
    ContentSynthesizer,
    ExplorationContent,
    extract_json,
    format_research_for_prompt,
    normalize_content,
)
from .explorer import (
    ExplorationRequest,
    ExplorationResult,
    Explorer,
    explore_topic,
    explore_topic_stream,
)

__all__ = [
    # Models
    "LoopState",
    "ResearchContext",
    "ResearchMode",
    "TerminalSummary",
    "TerminationReason",
    "ToolCallLogEntry",
    "fallback_summary",
    # Tools
    "TOOL_DEFINITIONS",
    "FinishResearchArgs",
    "GetPaperDetailsArgs",
    "SearchPapersArgs",
    "SearchWebArgs",
    "ToolDefinition",
    "ToolExecutor",
    "ToolOutcome",
    "ToolType",
    "get_tool_descriptions",
    "get_tool_schema",
    "parse_invocation",
    # Progress
    "ProgressCallback",
    "ProgressEmitter",
    "ProgressEvent",
    "ProgressStage",
    # Classification
    "FrontierAssessment",
    "KnowledgeDepth",
    "ResearchHeat",
    "classify",
    "research_heat",
    "upgrade_with_model_signal",
    # Agent loop
    "ResearchAgent",
    # Synthesis
    "ContentSynthesizer",
    "ExplorationContent",
    "extract_json",
    "format_research_for_prompt",
    "normalize_content",
    # Explorer
    "ExplorationRequest",
    "ExplorationResult",
    "Explorer",
    "explore_topic",
    "explore_topic_stream",
]

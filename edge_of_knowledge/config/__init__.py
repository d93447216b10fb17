"""Configuration system for reasoning backends, providers and the research loop."""

from .loader import (
    load_config,
    load_config_from_env,
    load_config_from_yaml,
    read_config_file,
    AgentLoopConfig,
    ConfigFile,
    FallbackConfig,
    ProfileConfig,
    ProvidersConfig,
    ReasoningConfig,
    ToolExecutorConfig,
)
from .factory import (
    create_reasoning_client,
    create_paper_provider,
    create_web_provider,
    create_tool_executor,
    create_research_agent,
    create_synthesizer,
    create_explorer,
    MockReasoningClient,
    MockPaperProvider,
    MockWebProvider,
)

__all__ = [
    # Loader
    "load_config",
    "load_config_from_env",
    "load_config_from_yaml",
    "read_config_file",
    "AgentLoopConfig",
    "ConfigFile",
    "FallbackConfig",
    "ProfileConfig",
    "ProvidersConfig",
    "ReasoningConfig",
    "ToolExecutorConfig",
    # Factory
    "create_reasoning_client",
    "create_paper_provider",
    "create_web_provider",
    "create_tool_executor",
    "create_research_agent",
    "create_synthesizer",
    "create_explorer",
    # Mocks
    "MockReasoningClient",
    "MockPaperProvider",
    "MockWebProvider",
]

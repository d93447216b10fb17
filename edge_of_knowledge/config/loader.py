"""Configuration loader with Pydantic validation and env var expansion."""

import logging
import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "profiles.yaml"
DEFAULT_PROFILE = "default"


class ReasoningConfig(BaseModel):
    """Configuration for the reasoning (LLM) backend."""

    backend: Literal["openrouter", "anthropic", "mock"] = "openrouter"
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = 2048
    synthesis_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    synthesis_max_tokens: int = 4096

    @field_validator("api_key", "model", "base_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        # An unset ${VAR} expands to "", which means "not configured"
        if isinstance(value, str) and not value.strip():
            return None
        return value


class AgentLoopConfig(BaseModel):
    """Configuration for the research agent loop."""

    max_iterations: int = Field(default=10, ge=1)
    max_duration_ms: int = Field(default=240_000, ge=1)  # Blocking variant only
    max_consecutive_failures: int = Field(default=2, ge=1)
    completion_hint_min_papers: int = 10
    completion_hint_min_iterations: int = 3


class ToolExecutorConfig(BaseModel):
    """Configuration for tool execution."""

    call_timeout_seconds: float = Field(default=20.0, gt=0)
    bounded_batch_size: int = Field(default=3, ge=1)
    default_paper_limit: int = 10
    max_paper_limit: int = 20
    default_web_limit: int = 5
    max_web_limit: int = 10


class FallbackConfig(BaseModel):
    """Constants for the terminal summary synthesized on forced termination."""

    base_confidence: float = 0.3
    confidence_per_paper: float = 0.05
    max_confidence: float = Field(default=0.8, le=1.0)
    frontier_paper_threshold: int = 5
    summary_text: str = "Research gathered through iterative search"


class ProvidersConfig(BaseModel):
    """Configuration for the evidence providers."""

    paper_backend: Literal["semantic_scholar", "mock"] = "semantic_scholar"
    web_backend: Literal["duckduckgo", "mock"] = "duckduckgo"
    semantic_scholar_api_key: str | None = None
    request_timeout: float = 10.0

    @field_validator("semantic_scholar_api_key", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ProfileConfig(BaseModel):
    """Configuration profile containing all backend configs."""

    reasoning: ReasoningConfig = ReasoningConfig()
    agent: AgentLoopConfig = AgentLoopConfig()
    tools: ToolExecutorConfig = ToolExecutorConfig()
    fallback: FallbackConfig = FallbackConfig()
    providers: ProvidersConfig = ProvidersConfig()


class ConfigFile(BaseModel):
    """Root configuration file structure."""

    profiles: dict[str, ProfileConfig]


def expand_env_vars(value: str) -> str:
    """Expand ${VAR} references in a string with environment variables.

    Unset variables expand to an empty string.

    Args:
        value: String potentially containing env var references

    Returns:
        String with env vars expanded
    """
    if not isinstance(value, str):
        return value

    pattern = r"\$\{([^}]+)\}"

    def replacer(match):
        return os.environ.get(match.group(1), "")

    return re.sub(pattern, replacer, value)


def expand_env_vars_recursive(data):
    """Recursively expand env vars in nested dict/list structures.

    Args:
        data: Dict, list, or primitive value

    Returns:
        Data structure with all env vars expanded
    """
    if isinstance(data, dict):
        return {k: expand_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def read_config_file(config_path: Path = DEFAULT_CONFIG_PATH) -> ConfigFile:
    """Read and validate a profiles file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config is invalid
    """
    with open(config_path) as f:
        raw_data = yaml.safe_load(f) or {}

    return ConfigFile(**expand_env_vars_recursive(raw_data))


def load_config_from_yaml(config_path: Path, profile_name: str) -> ProfileConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config YAML file
        profile_name: Name of profile to load

    Returns:
        ProfileConfig for the requested profile

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config is invalid
        KeyError: If profile doesn't exist
    """
    config_file = read_config_file(config_path)

    if profile_name not in config_file.profiles:
        available = ", ".join(config_file.profiles.keys())
        raise KeyError(
            f"Profile '{profile_name}' not found. " f"Available profiles: {available}"
        )

    return config_file.profiles[profile_name]


def load_config_from_env() -> ProfileConfig:
    """Load configuration from environment variables (fallback mode).

    Picks Anthropic when only ANTHROPIC_API_KEY is set, OpenRouter otherwise.

    Returns:
        ProfileConfig constructed from environment variables
    """
    if os.environ.get("ANTHROPIC_API_KEY") and not os.environ.get("OPENROUTER_API_KEY"):
        reasoning = ReasoningConfig(
            backend="anthropic",
            model=os.environ.get("ANTHROPIC_DEFAULT_MODEL"),
            api_key=os.environ.get("ANTHROPIC_API_KEY"),
        )
    else:
        reasoning = ReasoningConfig(
            backend="openrouter",
            model=os.environ.get("OPENROUTER_DEFAULT_MODEL"),
            api_key=os.environ.get("OPENROUTER_API_KEY"),
            base_url=os.environ.get("OPENROUTER_BASE_URL"),
        )

    providers = ProvidersConfig(
        semantic_scholar_api_key=os.environ.get("SEMANTIC_SCHOLAR_API_KEY"),
    )

    return ProfileConfig(reasoning=reasoning, providers=providers)


def load_config(
    profile: str | None = None,
    config_path: Path | None = None,
) -> ProfileConfig:
    """Load configuration from YAML file or environment variables.

    Tries the YAML profiles file first and falls back to environment
    variables if the file is missing or invalid.

    Args:
        profile: Profile name to load. If None, uses EDGE_PROFILE env var
                or "default".
        config_path: Path to config file. If None, uses the bundled
                    edge_of_knowledge/config/profiles.yaml.

    Returns:
        ProfileConfig with all backend configurations

    Raises:
        KeyError: If requested profile doesn't exist
    """
    if profile is None:
        profile = os.environ.get("EDGE_PROFILE", DEFAULT_PROFILE)

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        logger.warning(f"Config file {config_path} not found, using environment variables")
        return load_config_from_env()

    try:
        config = load_config_from_yaml(config_path, profile)
    except KeyError:
        raise
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Falling back to environment variables...")
        return load_config_from_env()

    logger.debug(f"Loaded profile '{profile}' from {config_path}")
    return config

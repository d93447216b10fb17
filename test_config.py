"""
Configuration System Tests

Tests for the YAML profile loader, env var expansion and factory functions.
"""

import asyncio
import os
from pathlib import Path

from edge_of_knowledge.config.loader import DEFAULT_CONFIG_PATH


def test_load_config_from_yaml():
    """Test loading configuration from the bundled profiles file."""
    print("=" * 60)
    print("TEST 1: Load configuration from YAML")
    print("=" * 60)

    from edge_of_knowledge.config.loader import load_config_from_yaml

    profile = load_config_from_yaml(DEFAULT_CONFIG_PATH, "default")
    print(f"\nLoaded profile: default")
    print(f"  Reasoning backend: {profile.reasoning.backend}")
    print(f"  Reasoning model: {profile.reasoning.model}")
    print(f"  Max iterations: {profile.agent.max_iterations}")

    assert profile.reasoning.backend == "openrouter"
    assert profile.reasoning.temperature == 0.7
    assert profile.reasoning.max_tokens == 2048
    assert profile.agent.max_iterations == 10
    assert profile.providers.paper_backend == "semantic_scholar"
    print("\n[PASS] default profile loaded correctly")

    profile = load_config_from_yaml(DEFAULT_CONFIG_PATH, "test")
    assert profile.reasoning.backend == "mock"
    assert profile.providers.paper_backend == "mock"
    assert profile.providers.web_backend == "mock"
    print("[PASS] test profile loaded correctly")


def test_unknown_profile_raises():
    """Test that asking for a missing profile names the available ones."""
    from edge_of_knowledge.config.loader import load_config_from_yaml

    try:
        load_config_from_yaml(DEFAULT_CONFIG_PATH, "does-not-exist")
    except KeyError as e:
        assert "default" in str(e)
        print("[PASS] Unknown profile rejected")
    else:
        raise AssertionError("expected KeyError")


def test_env_var_expansion(monkeypatch, tmp_path: Path):
    """Test ${VAR} expansion, including unset variables."""
    print("\n" + "=" * 60)
    print("TEST 2: ${VAR} expansion")
    print("=" * 60)

    from edge_of_knowledge.config.loader import expand_env_vars_recursive, load_config_from_yaml

    monkeypatch.setenv("EDGE_TEST_KEY", "sk-test")
    monkeypatch.delenv("EDGE_MISSING_KEY", raising=False)

    expanded = expand_env_vars_recursive({
        "a": "${EDGE_TEST_KEY}",
        "b": ["x-${EDGE_TEST_KEY}", 3],
        "c": "${EDGE_MISSING_KEY}",
    })
    assert expanded == {"a": "sk-test", "b": ["x-sk-test", 3], "c": ""}

    config_path = tmp_path / "profiles.yaml"
    config_path.write_text(
        "profiles:\n"
        "  p:\n"
        "    reasoning:\n"
        "      backend: anthropic\n"
        "      api_key: ${EDGE_MISSING_KEY}\n"
    )
    profile = load_config_from_yaml(config_path, "p")
    # Unset credential means "not configured"
    assert profile.reasoning.api_key is None
    print("\n[PASS] Env vars expanded; unset credentials become None")


def test_load_config_main(monkeypatch):
    """Test the main load_config function and EDGE_PROFILE."""
    print("\n" + "=" * 60)
    print("TEST 3: Main load_config function")
    print("=" * 60)

    from edge_of_knowledge.config import load_config

    profile = load_config(profile="test")
    assert profile.reasoning.backend == "mock"
    print("[PASS] load_config with explicit profile works")

    monkeypatch.setenv("EDGE_PROFILE", "anthropic")
    profile = load_config()
    assert profile.reasoning.backend == "anthropic"
    print("[PASS] load_config with EDGE_PROFILE works")


def test_load_config_missing_file_falls_back_to_env(monkeypatch, tmp_path: Path):
    """Test the environment-only fallback when no profiles file exists."""
    from edge_of_knowledge.config import load_config

    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-test")
    profile = load_config(profile="default", config_path=tmp_path / "missing.yaml")

    assert profile.reasoning.backend == "openrouter"
    assert profile.reasoning.api_key == "sk-or-test"
    assert profile.agent.max_iterations == 10
    assert profile.fallback.base_confidence == 0.3
    print("[PASS] Environment fallback works correctly")


def test_factory_missing_credentials():
    """Test that missing credentials are a configuration error."""
    print("\n" + "=" * 60)
    print("TEST 4: Factory - missing credentials")
    print("=" * 60)

    from edge_of_knowledge.config import ReasoningConfig, create_reasoning_client
    from edge_of_knowledge.errors import ConfigurationError

    for backend in ("openrouter", "anthropic"):
        try:
            create_reasoning_client(ReasoningConfig(backend=backend, api_key=""))
        except ConfigurationError as e:
            print(f"  {backend}: {e}")
        else:
            raise AssertionError(f"{backend} without api_key should fail")

    print("\n[PASS] Missing credentials rejected before any request")


def test_factory_create_adapters():
    """Test creating real adapters without opening connections."""
    from edge_of_knowledge.config import (
        ProvidersConfig,
        ReasoningConfig,
        create_paper_provider,
        create_reasoning_client,
        create_web_provider,
    )
    from edge_of_knowledge.llm import AnthropicAdapter, OpenRouterAdapter
    from edge_of_knowledge.semantic_scholar import SemanticScholarAdapter
    from edge_of_knowledge.web_search import DuckDuckGoAdapter

    client = create_reasoning_client(ReasoningConfig(backend="openrouter", api_key="sk-or-test", model="x/y"))
    assert isinstance(client, OpenRouterAdapter)
    assert client.model == "x/y"

    client = create_reasoning_client(ReasoningConfig(backend="anthropic", api_key="sk-ant-test"))
    assert isinstance(client, AnthropicAdapter)

    providers = ProvidersConfig()
    assert isinstance(create_paper_provider(providers), SemanticScholarAdapter)
    assert isinstance(create_web_provider(providers), DuckDuckGoAdapter)
    print("[PASS] Adapters created from config")


def test_factory_create_explorer():
    """Test building and running a complete explorer from the test profile."""
    print("\n" + "=" * 60)
    print("TEST 5: Factory - create_explorer with mock backends")
    print("=" * 60)

    from edge_of_knowledge.config import (
        create_explorer,
        create_paper_provider,
        create_reasoning_client,
        create_web_provider,
        load_config,
    )
    from edge_of_knowledge.orchestration import ExplorationRequest

    profile = load_config(profile="test")

    async def run():
        client = create_reasoning_client(profile.reasoning)
        papers = create_paper_provider(profile.providers)
        web = create_web_provider(profile.providers)
        async with client, papers, web:
            explorer = create_explorer(profile, client, papers, web)
            return await explorer.explore(ExplorationRequest(topic="firefly synchrony", mode="science"))

    result = asyncio.run(run())

    print(f"\nHeadline: {result.content.headline}")
    print(f"Papers: {result.research.paper_count}, web: {result.research.web_result_count}")
    assert result.ok
    assert result.research.paper_count == 4
    assert result.research.web_result_count == 2
    assert result.research.research_summary == "[Mock research summary for: firefly synchrony]"
    print("\n[PASS] create_explorer works correctly")


def main():
    """Run the tests that need no pytest fixtures."""
    print("\n" + "=" * 60)
    print("CONFIGURATION SYSTEM TESTS")
    print("=" * 60)

    test_load_config_from_yaml()
    test_unknown_profile_raises()
    test_factory_missing_credentials()
    test_factory_create_adapters()
    test_factory_create_explorer()

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()

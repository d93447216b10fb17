"""
Explorer Tests

End-to-end explorations with mock backends: event streams, error events and
configuration failures.
"""

import asyncio

from edge_of_knowledge.config import (
    MockPaperProvider,
    MockReasoningClient,
    MockWebProvider,
    ProfileConfig,
    ReasoningConfig,
    create_explorer,
    load_config,
)
from edge_of_knowledge.errors import ReasoningError
from edge_of_knowledge.orchestration import (
    ExplorationRequest,
    ProgressStage,
    ResearchMode,
    explore_topic,
    explore_topic_stream,
)


class BrokenSynthesisClient(MockReasoningClient):
    """Researches normally, then fails the synthesis call."""

    async def complete(self, prompt, system_prompt=None, temperature=0.7, max_tokens=None):
        raise ReasoningError("synthesis backend unavailable")


def make_explorer(client=None):
    profile = load_config(profile="test")
    return create_explorer(
        profile,
        client or MockReasoningClient(),
        MockPaperProvider(),
        MockWebProvider(),
    )


def test_request_validation():
    """Unknown modes fall back to freeform; empty topics are rejected."""
    request = ExplorationRequest(topic="tides", mode="nonsense")
    assert request.mode == ResearchMode.FREEFORM
    assert request.display_title == "tides"

    request = ExplorationRequest(topic="tides", mode="Experiment", title="Moon pull")
    assert request.mode == ResearchMode.EXPERIMENT
    assert request.display_title == "Moon pull"

    try:
        ExplorationRequest(topic="")
    except ValueError:
        print("[PASS] Exploration requests validated")
    else:
        raise AssertionError("empty topic should be rejected")


def test_streaming_exploration_completes():
    """A successful streaming run ends with generating then complete."""
    print("=" * 60)
    print("TEST 1: Streaming exploration")
    print("=" * 60)

    received = []
    explorer = make_explorer()

    result = asyncio.run(explorer.explore_with_progress(
        ExplorationRequest(topic="bioluminescent fungi", mode="science"),
        received.append,
    ))

    stages = [e.stage for e in received]
    print(f"  stages: {[s.value for s in stages]}")
    assert result.ok
    assert stages[0] == ProgressStage.STARTING
    assert stages[-2:] == [ProgressStage.GENERATING, ProgressStage.COMPLETE]
    assert sum(1 for s in stages if s.is_terminal) == 1
    assert received[-1].papers_found == 4
    assert received[-1].web_results_found == 2
    assert result.events == received
    assert result.content.headline == "[Mock headline]"
    print("[PASS] Stream ended with a single complete event")


def test_streaming_exploration_error():
    """A synthesis failure becomes the single terminal error event."""
    print("\n" + "=" * 60)
    print("TEST 2: Streaming exploration error")
    print("=" * 60)

    received = []
    explorer = make_explorer(BrokenSynthesisClient())

    result = asyncio.run(explorer.explore_with_progress(
        ExplorationRequest(topic="ball lightning"),
        received.append,
    ))

    stages = [e.stage for e in received]
    assert not result.ok
    assert result.error == "synthesis backend unavailable"
    assert result.research is not None
    assert stages[-1] == ProgressStage.ERROR
    assert ProgressStage.COMPLETE not in stages
    assert received[-1].message == "synthesis backend unavailable"
    print("[PASS] Error reported as terminal event")


def test_blocking_exploration_raises():
    """The blocking variant propagates synthesis failures."""
    explorer = make_explorer(BrokenSynthesisClient())

    try:
        asyncio.run(explorer.explore(ExplorationRequest(topic="ball lightning")))
    except ReasoningError:
        print("[PASS] Blocking exploration raised")
    else:
        raise AssertionError("expected ReasoningError")


def test_explore_topic_with_test_profile():
    """The module-level entry points build mock backends from the test profile."""
    profile = load_config(profile="test")

    result = asyncio.run(explore_topic(ExplorationRequest(topic="sea foam"), profile))
    assert result.ok
    assert result.research.research_summary == "[Mock research summary for: sea foam]"

    received = []
    result = asyncio.run(explore_topic_stream(ExplorationRequest(topic="sea foam"), received.append, profile))
    assert result.ok
    assert received[-1].stage == ProgressStage.COMPLETE
    print("[PASS] explore_topic and explore_topic_stream")


def test_stream_configuration_error():
    """Missing credentials produce only an error event."""
    received = []
    profile = ProfileConfig(reasoning=ReasoningConfig(backend="openrouter", api_key=None))

    result = asyncio.run(explore_topic_stream(ExplorationRequest(topic="sea foam"), received.append, profile))

    assert [e.stage for e in received] == [ProgressStage.ERROR]
    assert "api_key" in result.error
    assert result.research is None
    print("[PASS] Configuration error streamed")


def main():
    print("\n" + "=" * 60)
    print("EXPLORER TESTS")
    print("=" * 60)

    test_request_validation()
    test_streaming_exploration_completes()
    test_streaming_exploration_error()
    test_blocking_exploration_raises()
    test_explore_topic_with_test_profile()
    test_stream_configuration_error()

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()

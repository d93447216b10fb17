"""
Tool Executor Tests

Validation of tool calls, per-call error isolation, timeouts, ordering and
bounded batching.
"""

import asyncio

from edge_of_knowledge.config import ToolExecutorConfig
from edge_of_knowledge.llm import ToolInvocation
from edge_of_knowledge.orchestration.tools import (
    FinishResearchArgs,
    GetPaperDetailsArgs,
    SearchPapersArgs,
    ToolExecutor,
    get_tool_schema,
    parse_invocation,
)
from edge_of_knowledge.errors import InvalidToolInvocation
from edge_of_knowledge.semantic_scholar import Author, Paper, PaperDetails
from edge_of_knowledge.web_search import WebResult


def make_paper(paper_id: str, year: int = 2024, **kwargs) -> Paper:
    return Paper(
        paper_id=paper_id,
        title=kwargs.pop("title", f"Paper {paper_id}"),
        authors=[Author(name="Ada Lovelace"), Author(name="Alan Turing")],
        year=year,
        citation_count=kwargs.pop("citation_count", 5),
        **kwargs,
    )


class SlowPaperProvider:
    """Paper provider whose latency depends on the query."""

    def __init__(self, delays: dict[str, float] | None = None, fail_on: set[str] | None = None):
        self.delays = delays or {}
        self.fail_on = fail_on or set()
        self.calls: list[tuple[str, int]] = []
        self.active = 0
        self.max_active = 0

    async def search_papers(self, query: str, limit: int = 10) -> list[Paper]:
        self.calls.append((query, limit))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(query, 0))
            if query in self.fail_on:
                raise RuntimeError(f"provider exploded on {query}")
            return [make_paper(f"{query}-1"), make_paper(f"{query}-2")]
        finally:
            self.active -= 1

    async def get_paper_details(self, paper_id: str) -> PaperDetails | None:
        if paper_id == "missing":
            return None
        return PaperDetails(paper_id=paper_id, title="Detailed", fields_of_study=["Biology"])


class StaticWebProvider:
    def __init__(self):
        self.calls: list[tuple[str, int]] = []

    async def search_web(self, query: str, limit: int = 5) -> list[WebResult]:
        self.calls.append((query, limit))
        return [WebResult(url="https://en.wikipedia.org/wiki/Firefly", title="Firefly", snippet="x" * 500)]


def make_executor(papers=None, web=None, **config) -> ToolExecutor:
    return ToolExecutor(
        papers or SlowPaperProvider(),
        web or StaticWebProvider(),
        ToolExecutorConfig(**config),
    )


def test_tool_schema_catalog():
    """Test the OpenAI-format catalog exposes the four tools."""
    schema = get_tool_schema()
    names = [tool["function"]["name"] for tool in schema]

    assert names == ["search_papers", "search_web", "get_paper_details", "finish_research"]
    finish = schema[3]["function"]["parameters"]
    assert finish["required"] == ["summary", "confidence"]
    print("[PASS] Tool catalog has the four tools")


def test_parse_invocation_tagged_union():
    """Test raw tool calls are parsed into the matching typed arguments."""
    args = parse_invocation(ToolInvocation(name="search_academic_papers", arguments={"query": "moss", "limit": 3.0}))
    assert isinstance(args, SearchPapersArgs)
    assert args.limit == 3

    args = parse_invocation(ToolInvocation(name="get_paper_details", arguments={"paperId": "abc"}))
    assert isinstance(args, GetPaperDetailsArgs)
    assert args.paper_id == "abc"

    args = parse_invocation(ToolInvocation(
        name="finish_research",
        arguments={"summary": "done", "confidence": 0.9, "key_papers": None},
    ))
    assert isinstance(args, FinishResearchArgs)
    assert args.key_papers == []
    assert args.frontier_detected is False
    print("[PASS] Invocations parsed into the tagged union")


def test_parse_invocation_rejects_invalid():
    """Test unknown tools and bad arguments are rejected."""
    bad = [
        ToolInvocation(name="delete_everything", arguments={}),
        ToolInvocation(name="search_papers", arguments={}),
        ToolInvocation(name="search_web", arguments={"query": ""}),
        ToolInvocation(name="finish_research", arguments={"summary": "done"}),
        ToolInvocation(name="finish_research", arguments={"summary": "done", "confidence": 1.5}),
    ]
    for invocation in bad:
        try:
            parse_invocation(invocation)
        except InvalidToolInvocation as e:
            print(f"  rejected {invocation.name}: {e}")
        else:
            raise AssertionError(f"{invocation} should be rejected")
    print("[PASS] Invalid invocations rejected")


def test_outcomes_keep_invocation_order():
    """Test outcomes match invocation order regardless of completion order."""
    print("=" * 60)
    print("TEST: Order invariant")
    print("=" * 60)

    papers = SlowPaperProvider(delays={"a": 0.05, "b": 0.0, "c": 0.02})
    executor = make_executor(papers)
    invocations = [
        ToolInvocation(name="search_papers", arguments={"query": q}, call_id=q)
        for q in ("a", "b", "c")
    ]

    outcomes = asyncio.run(executor.execute_parallel(invocations))

    assert [o.call_id for o in outcomes] == ["a", "b", "c"]
    assert [o.papers[0].paper_id for o in outcomes] == ["a-1", "b-1", "c-1"]
    assert papers.max_active == 3
    print("[PASS] Outcomes returned in invocation order")


def test_failure_is_isolated():
    """Test one failing call does not abort the batch."""
    papers = SlowPaperProvider(fail_on={"boom"})
    executor = make_executor(papers)
    invocations = [
        ToolInvocation(name="search_papers", arguments={"query": "boom"}),
        ToolInvocation(name="search_papers", arguments={"query": "fine"}),
        ToolInvocation(name="unknown_tool", arguments={}),
    ]

    outcomes = asyncio.run(executor.execute_parallel(invocations))

    assert len(outcomes) == 3
    assert "provider exploded" in outcomes[0].error
    assert outcomes[0].to_response() == {"error": outcomes[0].error}
    assert outcomes[1].ok
    assert outcomes[1].result["count"] == 2
    assert outcomes[2].error == "Unknown tool: unknown_tool"
    print("[PASS] Failures isolated per call")


def test_call_timeout():
    """Test a provider call that never returns is cut off."""
    papers = SlowPaperProvider(delays={"hang": 10})
    executor = make_executor(papers, call_timeout_seconds=0.05)

    outcomes = asyncio.run(executor.execute_parallel([
        ToolInvocation(name="search_papers", arguments={"query": "hang"}),
        ToolInvocation(name="search_papers", arguments={"query": "quick"}),
    ]))

    assert "Timed out" in outcomes[0].error
    assert outcomes[1].ok
    assert outcomes[0].elapsed_ms < 5000
    print("[PASS] Hanging call timed out without stalling the batch")


def test_bounded_batches():
    """Test bounded mode never exceeds the batch size and keeps order."""
    papers = SlowPaperProvider(delays={str(i): 0.01 * (7 - i) for i in range(7)})
    executor = make_executor(papers, bounded_batch_size=3)
    invocations = [
        ToolInvocation(name="search_papers", arguments={"query": str(i)}, call_id=str(i))
        for i in range(7)
    ]

    outcomes = asyncio.run(executor.execute_batch(invocations, mode="bounded"))

    assert [o.call_id for o in outcomes] == [str(i) for i in range(7)]
    assert papers.max_active <= 3
    print("[PASS] Bounded batches respect the concurrency ceiling")


def test_limit_clamping():
    """Test limits default and clamp to the configured ranges."""
    papers = SlowPaperProvider()
    web = StaticWebProvider()
    executor = make_executor(papers, web)

    asyncio.run(executor.execute_parallel([
        ToolInvocation(name="search_papers", arguments={"query": "a"}),
        ToolInvocation(name="search_papers", arguments={"query": "b", "limit": 500}),
        ToolInvocation(name="search_papers", arguments={"query": "c", "limit": -4}),
        ToolInvocation(name="search_web", arguments={"query": "d"}),
        ToolInvocation(name="search_web", arguments={"query": "e", "limit": 99}),
    ]))

    assert sorted(papers.calls) == [("a", 10), ("b", 20), ("c", 1)]
    assert sorted(web.calls) == [("d", 5), ("e", 10)]
    print("[PASS] Limits clamped")


def test_result_formatting():
    """Test the payloads returned to the reasoning service."""
    executor = make_executor()

    web_outcome, details, missing, finish = asyncio.run(executor.execute_parallel([
        ToolInvocation(name="search_web", arguments={"query": "fireflies"}),
        ToolInvocation(name="get_paper_details", arguments={"paperId": "p1"}),
        ToolInvocation(name="get_paper_details", arguments={"paperId": "missing"}),
        ToolInvocation(name="finish_research", arguments={"summary": "ok", "confidence": 0.6}),
    ]))

    result = web_outcome.result["results"][0]
    assert result["source"] == "en.wikipedia.org"
    assert len(result["snippet"]) == 200
    assert result["snippet"].endswith("...")

    assert details.result["fields"] == ["Biology"]
    assert details.result["venue"] == "Unknown venue"
    assert details.papers[0].paper_id == "p1"

    assert missing.error == "Paper not found"

    assert finish.result == {
        "summary": "ok",
        "confidence": 0.6,
        "keyPapers": [],
        "frontierDetected": False,
    }
    print("[PASS] Results formatted for the agent")


if __name__ == "__main__":
    test_tool_schema_catalog()
    test_parse_invocation_tagged_union()
    test_parse_invocation_rejects_invalid()
    test_outcomes_keep_invocation_order()
    test_failure_is_isolated()
    test_call_timeout()
    test_bounded_batches()
    test_limit_clamping()
    test_result_formatting()
    print("\nALL TESTS PASSED!")

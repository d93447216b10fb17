"""
Semantic Scholar Tests

Model normalization plus the client and adapter against httpx.MockTransport.
"""

import asyncio

import httpx

from edge_of_knowledge.semantic_scholar import (
    Author,
    Paper,
    PaperDetails,
    PaperSearchProvider,
    SemanticScholarAdapter,
    SemanticScholarClient,
    format_authors,
    last_studied_year,
)

SEARCH_PAYLOAD = {
    "total": 2,
    "offset": 0,
    "data": [
        {
            "paperId": "abc123",
            "title": "Synchronous flashing in fireflies",
            "authors": [{"authorId": "1", "name": "J. Buck"}, {"authorId": "2", "name": "E. Buck"}],
            "year": 2021,
            "citationCount": 42,
            "abstract": "We study synchrony.",
            "url": "https://www.semanticscholar.org/paper/abc123",
            "venue": "Science",
            "isOpenAccess": True,
        },
        {
            "paperId": "def456",
            "title": None,
            "authors": None,
            "year": None,
            "citationCount": None,
            "abstract": None,
            "url": None,
            "venue": "",
        },
    ],
}

DETAIL_PAYLOAD = {
    "paperId": "abc123",
    "title": "Synchronous flashing in fireflies",
    "authors": [{"authorId": "1", "name": "J. Buck"}],
    "year": 2021,
    "citationCount": 42,
    "fieldsOfStudy": ["Biology"],
    "publicationDate": "2021-05-01",
    "references": [{"paperId": "r1", "title": "Older work"}],
    "citations": None,
}


def make_transport(search_status=200, detail_status=200, requests=None, search_body=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        path = request.url.path
        if path.endswith("/paper/search"):
            if search_body is not None:
                return httpx.Response(search_status, text=search_body)
            return httpx.Response(search_status, json=SEARCH_PAYLOAD)
        if path.endswith("/paper/abc123"):
            return httpx.Response(detail_status, json=DETAIL_PAYLOAD)
        return httpx.Response(404, json={"error": "Paper not found"})

    return httpx.MockTransport(handler)


def test_models_normalize_missing_values():
    """Missing values are normalized so the loop never sees None."""
    print("=" * 60)
    print("TEST 1: Model normalization")
    print("=" * 60)

    paper = Paper.model_validate(SEARCH_PAYLOAD["data"][1])
    assert paper.title == "Untitled"
    assert paper.year == 0
    assert paper.citation_count == 0
    assert paper.authors == []
    assert paper.venue is None
    assert paper.url == "https://www.semanticscholar.org/paper/def456"

    details = PaperDetails.model_validate(DETAIL_PAYLOAD)
    assert details.fields_of_study == ["Biology"]
    assert details.references[0].paper_id == "r1"
    assert details.citations == []
    print("[PASS] Models normalized")


def test_author_helpers():
    authors = [Author(name=n) for n in ("A", "B", "C", "D")]
    assert format_authors(authors) == "A, B, C et al."
    assert format_authors(authors[:2]) == "A, B"
    assert format_authors([Author(name=None)]) == "Unknown authors"

    papers = [Paper(paper_id="x", year=0), Paper(paper_id="y", year=2019), Paper(paper_id="z", year=2016)]
    assert last_studied_year(papers) == "2019"
    assert last_studied_year([Paper(paper_id="x")]) == "Unknown"
    print("[PASS] Author and year helpers")


def test_client_search_request():
    """The client sends fields, limit and the API key header."""
    print("\n" + "=" * 60)
    print("TEST 2: SemanticScholarClient")
    print("=" * 60)

    requests = []

    async def run():
        async with SemanticScholarClient(api_key="test", transport=make_transport(requests=requests)) as client:
            return await client.search_papers("firefly synchrony", limit=5)

    data = asyncio.run(run())

    assert data["total"] == 2
    request = requests[0]
    assert request.headers["x-api-key"] == "test"
    assert request.url.params["query"] == "firefly synchrony"
    assert request.url.params["limit"] == "5"
    assert "citationCount" in request.url.params["fields"]
    print("[PASS] Search request built correctly")


def test_client_get_paper_not_found():
    async def run():
        async with SemanticScholarClient(api_key="test", transport=make_transport()) as client:
            return await client.get_paper("missing")

    assert asyncio.run(run()) is None
    print("[PASS] 404 returns None")


def test_adapter_search_and_details():
    """The adapter returns typed papers and details."""
    print("\n" + "=" * 60)
    print("TEST 3: SemanticScholarAdapter")
    print("=" * 60)

    async def run():
        async with SemanticScholarAdapter(api_key="test", transport=make_transport()) as adapter:
            papers = await adapter.search_papers("firefly synchrony", limit=1)
            details = await adapter.get_paper_details("abc123")
            missing = await adapter.get_paper_details("nope")
            return papers, details, missing

    papers, details, missing = asyncio.run(run())

    assert isinstance(SemanticScholarAdapter(api_key="test"), PaperSearchProvider)
    assert [p.paper_id for p in papers] == ["abc123"]
    assert papers[0].authors[0].name == "J. Buck"
    assert papers[0].is_open_access is True
    assert details.publication_date == "2021-05-01"
    assert missing is None
    print("[PASS] Adapter returns typed results")


def test_adapter_failures_return_empty():
    """Client errors and malformed payloads never raise from the adapter."""

    async def run(transport):
        async with SemanticScholarAdapter(api_key="test", transport=transport) as adapter:
            return (
                await adapter.search_papers("anything"),
                await adapter.get_paper_details("abc123"),
            )

    papers, details = asyncio.run(run(make_transport(search_status=400, detail_status=400)))
    assert papers == []
    assert details is None

    papers, _ = asyncio.run(run(make_transport(search_body="not json")))
    assert papers == []
    print("[PASS] Failures reported as empty results")


def test_adapter_requires_context_manager():
    adapter = SemanticScholarAdapter(api_key="test")
    try:
        asyncio.run(adapter.search_papers("x"))
    except RuntimeError:
        print("[PASS] Adapter requires 'async with'")
    else:
        raise AssertionError("expected RuntimeError")


def main():
    print("\n" + "=" * 60)
    print("SEMANTIC SCHOLAR TESTS")
    print("=" * 60)

    test_models_normalize_missing_values()
    test_author_helpers()
    test_client_search_request()
    test_client_get_paper_not_found()
    test_adapter_search_and_details()
    test_adapter_failures_return_empty()
    test_adapter_requires_context_manager()

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()

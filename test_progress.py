"""
Progress Emitter Tests

Terminal-event discipline and fire-and-forget delivery to sinks.
"""

import asyncio

from edge_of_knowledge.orchestration.progress import ProgressEmitter, ProgressEvent, ProgressStage


def test_single_terminal_event():
    """The stream accepts exactly one terminal event."""
    print("=" * 60)
    print("TEST 1: Terminal event")
    print("=" * 60)

    received = []
    emitter = ProgressEmitter(received.append)
    emitter.emit(ProgressStage.STARTING, "Starting research on moss...", iteration=0)
    emitter.emit(ProgressStage.THINKING, "Planning research step 1...", iteration=1)
    emitter.complete(papers_found=3, web_results_found=1)

    assert emitter.closed
    assert emitter.terminal_event.stage == ProgressStage.COMPLETE
    assert [e.stage for e in received] == [
        ProgressStage.STARTING,
        ProgressStage.THINKING,
        ProgressStage.COMPLETE,
    ]

    for attempt in (
        lambda: emitter.error("late failure"),
        lambda: emitter.emit(ProgressStage.THINKING, "after the end"),
    ):
        try:
            attempt()
        except RuntimeError:
            pass
        else:
            raise AssertionError("emitting after the terminal event should fail")

    assert len(emitter.events) == 3
    print("[PASS] Only one terminal event accepted")


def test_sink_exceptions_are_dropped():
    """A raising sink never interrupts the emitter."""
    calls = []

    def broken_sink(event: ProgressEvent):
        calls.append(event.stage)
        raise ValueError("sink is broken")

    emitter = ProgressEmitter(broken_sink)
    emitter.emit(ProgressStage.SEARCHING, "Searching papers: moss", tool_name="search_papers")
    emitter.error("Exploration failed")

    assert calls == [ProgressStage.SEARCHING, ProgressStage.ERROR]
    assert emitter.terminal_event.stage == ProgressStage.ERROR
    print("[PASS] Sink exceptions swallowed")


def test_async_sink_is_scheduled():
    """Coroutine sinks are scheduled without blocking emit."""
    print("\n" + "=" * 60)
    print("TEST 2: Async sink")
    print("=" * 60)

    delivered = []

    async def slow_sink(event: ProgressEvent):
        await asyncio.sleep(0.01)
        delivered.append(event.stage)

    async def failing_sink(event: ProgressEvent):
        raise RuntimeError("async sink failed")

    async def run():
        emitter = ProgressEmitter(slow_sink)
        emitter.emit(ProgressStage.THINKING, "Planning research step 1...")
        emitter.complete(papers_found=0, web_results_found=0)
        # emit returned before delivery finished
        assert delivered == []
        await emitter.drain()

        failing = ProgressEmitter(failing_sink)
        failing.error("boom")
        await failing.drain()

    asyncio.run(run())

    assert delivered == [ProgressStage.THINKING, ProgressStage.COMPLETE]
    print("[PASS] Async deliveries scheduled and drained")


def test_event_wire_format():
    """Events serialize with camelCase keys and omit unset fields."""
    emitter = ProgressEmitter()
    event = emitter.emit(
        ProgressStage.ANALYZING,
        "Found 2 new papers and 1 new web results",
        iteration=2,
        papers_found=2,
        web_results_found=1,
    )

    assert event.to_dict() == {
        "stage": "analyzing",
        "message": "Found 2 new papers and 1 new web results",
        "iteration": 2,
        "papersFound": 2,
        "webResultsFound": 1,
    }

    try:
        event.message = "changed"
    except Exception:
        print("[PASS] Events are immutable")
    else:
        raise AssertionError("events should be frozen")


def main():
    print("\n" + "=" * 60)
    print("PROGRESS EMITTER TESTS")
    print("=" * 60)

    test_single_terminal_event()
    test_sink_exceptions_are_dropped()
    test_async_sink_is_scheduled()
    test_event_wire_format()

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()

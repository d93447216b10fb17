"""Progress events emitted while an exploration runs."""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ProgressStage(str, Enum):
    """Lifecycle stage of an exploration."""

    STARTING = "starting"
    THINKING = "thinking"
    SEARCHING = "searching"
    READING = "reading"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ProgressStage.COMPLETE, ProgressStage.ERROR)


class ProgressEvent(BaseModel):
    """A single immutable progress event."""

    stage: ProgressStage
    message: str
    iteration: int | None = None
    tool_name: str | None = Field(default=None, alias="toolName")
    papers_found: int | None = Field(default=None, alias="papersFound")
    web_results_found: int | None = Field(default=None, alias="webResultsFound")
    detail: str | None = None

    model_config = {"populate_by_name": True, "frozen": True}

    def to_dict(self) -> dict[str, Any]:
        """Wire form with camelCase keys and unset fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


ProgressCallback = Callable[[ProgressEvent], Any]


class ProgressEmitter:
    """
    Append-only event stream delivered to an optional sink.

    Delivery is fire-and-forget: sink exceptions are logged and dropped,
    and an awaitable returned by the sink is scheduled, never awaited by the
    emitter. The stream accepts exactly one terminal event (``complete`` or
    ``error``); emitting after it raises ``RuntimeError``.
    """

    def __init__(self, sink: ProgressCallback | None = None):
        self._sink = sink
        self._events: list[ProgressEvent] = []
        self._pending: set[asyncio.Future] = set()
        self._closed = False

    @property
    def events(self) -> list[ProgressEvent]:
        return list(self._events)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def terminal_event(self) -> ProgressEvent | None:
        if self._closed:
            return self._events[-1]
        return None

    def emit(self, stage: ProgressStage, message: str, **fields: Any) -> ProgressEvent:
        if self._closed:
            raise RuntimeError(
                f"Progress stream already terminated; cannot emit '{stage.value}'"
            )

        event = ProgressEvent(stage=stage, message=message, **fields)
        self._events.append(event)
        if stage.is_terminal:
            self._closed = True

        logger.debug(f"[{event.stage.value}] {event.message}")
        self._deliver(event)
        return event

    def complete(self, papers_found: int, web_results_found: int, message: str = "Exploration complete") -> ProgressEvent:
        return self.emit(
            ProgressStage.COMPLETE,
            message,
            papers_found=papers_found,
            web_results_found=web_results_found,
        )

    def error(self, message: str) -> ProgressEvent:
        return self.emit(ProgressStage.ERROR, message)

    def _deliver(self, event: ProgressEvent) -> None:
        if self._sink is None:
            return

        try:
            result = self._sink(event)
            if inspect.isawaitable(result):
                future = asyncio.ensure_future(result)
                self._pending.add(future)
                future.add_done_callback(self._on_delivered)
        except Exception as e:
            logger.warning(f"Progress sink failed on '{event.stage.value}' event: {e}")

    def _on_delivered(self, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning(f"Progress sink failed asynchronously: {exc}")

    async def drain(self) -> None:
        """Wait for scheduled asynchronous deliveries to settle."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

"""In-process progress event bus keyed by search id.

Usage::

    from adlib_scraper.events import event_bus

    sub = event_bus.subscribe(search_id)
    async for evt in sub:
        ...
    sub.close()

Events published for a search with no live subscriber are dropped; a late
subscriber only sees events published after it subscribed.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional

from .logging import jlog

EVENT_TYPES = frozenset(
    {"status", "scroll", "capturing", "checking", "skipped", "ad_captured", "warning", "complete", "error"}
)
_LOG_LEVELS = {"warning": "warning", "error": "error"}


@dataclass
class ProgressEvent:
    type: str
    message: str
    progress: Optional[float] = None
    ad: Optional[dict[str, Any]] = None
    extra: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if self.type not in EVENT_TYPES:
            raise ValueError(f"unknown progress event type: {self.type}")
        if self.progress is not None:
            self.progress = max(0.0, min(100.0, float(self.progress)))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type, "message": self.message}
        if self.progress is not None:
            payload["progress"] = self.progress
        if self.ad is not None:
            payload["ad"] = self.ad
        payload.update({k: v for k, v in self.extra.items() if v is not None})
        return payload

    def format_sse(self) -> str:
        return f"data: {json.dumps(self.to_dict(), ensure_ascii=False)}\n\n"


_CLOSED = object()


class Subscription:
    """One subscriber's ordered view of a search's events.

    Once closed (by the consumer or by the bus detaching it), pending events
    still drain in order, then :meth:`get` returns None and iteration stops.
    """

    def __init__(self, bus: "EventBus", search_id: str, maxsize: int) -> None:
        self.bus = bus
        self.search_id = search_id
        self.queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    async def get(self) -> Optional[ProgressEvent]:
        item = await self.queue.get()
        if item is _CLOSED:
            # Leave the marker for later callers.
            self.queue.put_nowait(_CLOSED)
            return None
        return item

    def _mark_closed(self) -> None:
        self.closed = True
        if self.queue.full():
            # The oldest pending event makes room for the end marker.
            self.queue.get_nowait()
        self.queue.put_nowait(_CLOSED)

    def close(self) -> None:
        self.bus.unsubscribe(self)

    def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        return self._iter()

    async def _iter(self) -> AsyncIterator[ProgressEvent]:
        while True:
            evt = await self.get()
            if evt is None:
                return
            yield evt
            if evt.type in ("complete", "error"):
                return


class EventBus:
    def __init__(self, queue_size: int = 100) -> None:
        self._subscribers: dict[str, list[Subscription]] = {}
        self._queue_size = queue_size
        self.dropped = 0

    def subscribe(self, search_id: str) -> Subscription:
        sub = Subscription(self, str(search_id), self._queue_size)
        self._subscribers.setdefault(sub.search_id, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        if sub.closed:
            return
        sub._mark_closed()
        subs = self._subscribers.get(sub.search_id)
        if not subs:
            return
        if sub in subs:
            subs.remove(sub)
        if not subs:
            del self._subscribers[sub.search_id]

    def subscriber_count(self, search_id: str) -> int:
        return len(self._subscribers.get(str(search_id), ()))

    def publish(self, search_id: str, event: ProgressEvent) -> int:
        """Deliver ``event`` to every subscriber of ``search_id``; return the delivery count."""

        subs = list(self._subscribers.get(str(search_id), ()))
        if not subs:
            self.dropped += 1
            return 0
        delivered = 0
        for sub in subs:
            try:
                sub.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                jlog("warning", event="subscriber_detached", search_id=search_id, reason="queue_full")
                self.unsubscribe(sub)
        return delivered


class ProgressReporter:
    """Emits a search's progress events to the bus and mirrors them to the log."""

    def __init__(self, bus: EventBus, search_id: str) -> None:
        self.bus = bus
        self.search_id = str(search_id)

    def emit(
        self,
        event_type: str,
        message: str,
        *,
        progress: float | None = None,
        ad: dict[str, Any] | None = None,
        **extra: Any,
    ) -> ProgressEvent:
        evt = ProgressEvent(type=event_type, message=message, progress=progress, ad=ad, extra=extra)
        jlog(
            _LOG_LEVELS.get(event_type, "info"),
            event="progress",
            search_id=self.search_id,
            progress_type=event_type,
            message=message,
            progress=evt.progress,
        )
        self.bus.publish(self.search_id, evt)
        return evt


event_bus = EventBus()


__all__ = ["EVENT_TYPES", "EventBus", "ProgressEvent", "ProgressReporter", "Subscription", "event_bus"]

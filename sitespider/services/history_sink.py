from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from sitespider.domain.fetch_task import FetchTask
from sitespider.domain.parse_result import Candidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrawlEvent:
    """What one dispatched task produced.

    Either the response summary (`status_code`, `content_type`, `size`) or
    `error` is set. `accepted` holds the positions in `candidates` of the
    ones the frontier queued.
    """

    crawl_id: str
    task: FetchTask
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    size: Optional[int] = None
    error: Optional[str] = None
    skipped_robots: bool = False
    candidates: tuple[Candidate, ...] = ()
    accepted: tuple[int, ...] = ()
    recorded_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def succeeded(self) -> bool:
        return self.error is None and not self.skipped_robots

    @property
    def accepted_uris(self) -> tuple[str, ...]:
        return tuple(self.candidates[i].uri for i in self.accepted)


class HistorySink(Protocol):
    def record(self, event: CrawlEvent) -> None: ...


class InMemoryHistorySink:
    """Keeps events in memory, newest last. Bounded when `max_events` is set."""

    def __init__(self, max_events: Optional[int] = None):
        self._lock = threading.Lock()
        self._events: list[CrawlEvent] = []
        self._max_events = max_events

    def record(self, event: CrawlEvent) -> None:
        with self._lock:
            self._events.append(event)
            if self._max_events is not None and len(self._events) > self._max_events:
                del self._events[0 : len(self._events) - self._max_events]

    def events(self, crawl_id: Optional[str] = None) -> list[CrawlEvent]:
        with self._lock:
            if crawl_id is None:
                return list(self._events)
            return [e for e in self._events if e.crawl_id == crawl_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def list_for_crawl(self, crawl_id: str, limit: int = 100, offset: int = 0) -> list[dict]:
        """Same shape as `HistoryRepository.list_for_crawl`."""
        events = self.events(crawl_id)[offset : offset + limit]
        return [event_to_dict(e) for e in events]


def event_to_dict(event: CrawlEvent) -> dict:
    task = event.task
    accepted = set(event.accepted)
    return {
        "uri": task.uri,
        "method": task.method,
        "depth": task.depth,
        "parent_uri": task.parent_uri,
        "status_code": event.status_code,
        "content_type": event.content_type,
        "size": event.size,
        "error": event.error,
        "skipped_robots": event.skipped_robots,
        "recorded_at": event.recorded_at,
        "discovered": [
            {"uri": c.uri, "method": c.method, "source": c.source, "accepted": i in accepted}
            for i, c in enumerate(event.candidates)
        ],
    }

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class CrawlState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self in (CrawlState.COMPLETED, CrawlState.STOPPED)


@dataclass(frozen=True)
class FrontierCounts:
    """Frontier counters read together under the frontier lock.

    `fetched + failed + skipped_robots + in_flight + queued == accepted`.
    """

    queued: int = 0
    in_flight: int = 0
    accepted: int = 0
    rejected: int = 0
    duplicates: int = 0
    fetched: int = 0
    failed: int = 0
    skipped_robots: int = 0


@dataclass(frozen=True)
class CrawlRunSnapshot:
    crawl_id: str
    state: str
    started_at: Optional[datetime]
    finished_at: Optional[datetime]
    fetched: int
    failed: int
    skipped_robots: int
    queued: int
    in_flight: int
    accepted: int
    rejected: int
    duplicates: int
    max_depth: Optional[int]
    concurrency: int
    stop_reason: Optional[str] = None
    error: Optional[str] = None


class CrawlRun:
    """Status of one crawl run. Task counters live in the frontier."""

    def __init__(self, crawl_id: str, max_depth: Optional[int], concurrency: int):
        self.crawl_id = crawl_id
        self.state = CrawlState.IDLE
        self.started_at: Optional[datetime] = None
        self.finished_at: Optional[datetime] = None
        self.max_depth = max_depth
        self.concurrency = concurrency
        self.stop_reason: Optional[str] = None
        self.error: Optional[str] = None

    def snapshot(self, frontier: FrontierCounts) -> CrawlRunSnapshot:
        return CrawlRunSnapshot(
            crawl_id=self.crawl_id,
            state=self.state.value,
            started_at=self.started_at,
            finished_at=self.finished_at,
            fetched=frontier.fetched,
            failed=frontier.failed,
            skipped_robots=frontier.skipped_robots,
            queued=frontier.queued,
            in_flight=frontier.in_flight,
            accepted=frontier.accepted,
            rejected=frontier.rejected,
            duplicates=frontier.duplicates,
            max_depth=self.max_depth,
            concurrency=self.concurrency,
            stop_reason=self.stop_reason,
            error=self.error,
        )

    def __repr__(self):
        return f"<CrawlRun id={self.crawl_id} state={self.state.value}>"

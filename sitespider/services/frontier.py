"""Deduplicating work queue shared by the fetch workers of one crawl run."""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from typing import Any, Callable, Optional

from sitespider.domain.crawl_run import FrontierCounts
from sitespider.domain.fetch_task import FetchTask
from sitespider.domain.visited_tracker import VisitedTracker
from sitespider.services.scope_filter import ScopeFilter
from sitespider.utils.url_canonicalizer import canonicalize

logger = logging.getLogger(__name__)

OUTCOMES = ("fetched", "failed", "skipped_robots")


class Frontier:
    """Pending fetch tasks plus the visited set of one run.

    - `offer` canonicalizes, checks depth, scope, visited state and the
      parent's child limit, and enqueues, all under one lock.
    - `take` blocks until a task is available and returns None once the
      frontier is closed or drained (queue empty, nothing in flight).
    - FIFO unless a `priority` key is given; equal keys keep insertion order.
    """

    def __init__(
        self,
        scope_filter: ScopeFilter,
        *,
        method_sensitive: bool = True,
        parameter_handling: str = "use_all",
        visited: Optional[VisitedTracker] = None,
        priority: Optional[Callable[[FetchTask], Any]] = None,
    ):
        self._scope = scope_filter
        self._method_sensitive = method_sensitive
        self._parameter_handling = parameter_handling
        self._visited = visited or VisitedTracker()
        self._priority = priority

        self._cond = threading.Condition()
        self._heap: list = []
        self._seq = itertools.count()
        self._in_flight = 0
        self._accepted = 0
        self._rejected = 0
        self._duplicates = 0
        self._outcomes = dict.fromkeys(OUTCOMES, 0)
        self._closed = False
        self._paused = False

    def offer(
        self,
        uri: str,
        depth: int,
        context_id: Optional[str] = None,
        user_id: Optional[str] = None,
        *,
        method: str = "GET",
        body: Optional[str] = None,
        parent_uri: Optional[str] = None,
    ) -> bool:
        """Enqueue `uri` unless it is closed, invalid, too deep, out of scope,
        already seen or over its parent's child limit."""
        with self._cond:
            if self._closed:
                return False

            identity = canonicalize(
                uri,
                method=method,
                body=body,
                method_sensitive=self._method_sensitive,
                parameter_handling=self._parameter_handling,
            )
            if identity is None:
                self._rejected += 1
                logger.debug("Rejected (invalid uri) %s", uri)
                return False
            if not self._scope.within_depth(depth):
                self._rejected += 1
                logger.debug("Rejected (depth %s) %s", depth, uri)
                return False
            if not self._scope.in_scope(uri, context_id):
                self._rejected += 1
                return False
            if self._visited.is_visited(identity):
                self._duplicates += 1
                return False
            if not self._scope.child_limit_not_exceeded(parent_uri):
                self._rejected += 1
                logger.debug("Rejected (max children of %s) %s", parent_uri, uri)
                return False

            self._visited.mark(identity)
            self._scope.record_child(parent_uri)
            task = FetchTask(
                uri=uri,
                depth=depth,
                method=(method or "GET").upper(),
                body=body,
                parent_uri=parent_uri,
                context_id=context_id,
                user_id=user_id,
            )
            key = self._priority(task) if self._priority else 0
            heapq.heappush(self._heap, (key, next(self._seq), task))
            self._accepted += 1
            self._cond.notify()
            return True

    def take(self) -> Optional[FetchTask]:
        """Next task, or None when there is no more work for this run."""
        with self._cond:
            while True:
                if self._closed:
                    return None
                if not self._paused:
                    if self._heap:
                        _, _, task = heapq.heappop(self._heap)
                        self._in_flight += 1
                        return task
                    if self._in_flight == 0:
                        # wake the other workers so they observe the drain too
                        self._cond.notify_all()
                        return None
                self._cond.wait()

    def mark_done(self, task: FetchTask, outcome: Optional[str] = None) -> None:
        """Release `task` and count its outcome in the same critical section."""
        if outcome is not None and outcome not in OUTCOMES:
            raise ValueError(f"unknown outcome {outcome!r}")
        with self._cond:
            if self._in_flight <= 0:
                logger.warning("mark_done called with nothing in flight: %s", task.uri)
                return
            self._in_flight -= 1
            if outcome is not None:
                self._outcomes[outcome] += 1
            if self._in_flight == 0:
                self._cond.notify_all()

    def pause(self) -> None:
        with self._cond:
            self._paused = True

    def resume(self) -> None:
        with self._cond:
            self._paused = False
            self._cond.notify_all()

    def close(self) -> None:
        """Stop dispatching; later offers return False."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def drained(self) -> bool:
        with self._cond:
            return not self._heap and self._in_flight == 0

    def queued_tasks(self) -> list[FetchTask]:
        """Tasks still waiting, in dispatch order."""
        with self._cond:
            return [task for _, _, task in sorted(self._heap)]

    def snapshot(self) -> FrontierCounts:
        with self._cond:
            return FrontierCounts(
                queued=len(self._heap),
                in_flight=self._in_flight,
                accepted=self._accepted,
                rejected=self._rejected,
                duplicates=self._duplicates,
                fetched=self._outcomes["fetched"],
                failed=self._outcomes["failed"],
                skipped_robots=self._outcomes["skipped_robots"],
            )

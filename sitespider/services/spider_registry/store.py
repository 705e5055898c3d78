from __future__ import annotations

from collections import deque
from typing import Dict, List, Optional

from sitespider.services.crawl_controller import CrawlController


class ControllerStore:
    """Controllers by crawl id; keeps at most `max_completed_records`
    finished runs, evicting the oldest first."""

    def __init__(self, *, max_completed_records: int):
        if max_completed_records < 0:
            raise ValueError("max_completed_records must be >= 0")
        self._controllers: Dict[str, CrawlController] = {}
        self._max_completed_records = max_completed_records
        self._completed_order = deque()

    def add(self, controller: CrawlController) -> None:
        self._controllers[controller.crawl_id] = controller

    def remove(self, crawl_id: str) -> None:
        self._controllers.pop(crawl_id, None)

    def get(self, crawl_id: str) -> Optional[CrawlController]:
        return self._controllers.get(crawl_id)

    def mark_completed(self, crawl_id: str) -> List[str]:
        """Record `crawl_id` as finished and return the ids evicted to stay in bounds."""
        if crawl_id not in self._controllers or crawl_id in self._completed_order:
            return []
        self._completed_order.append(crawl_id)
        evicted: List[str] = []
        while len(self._completed_order) > self._max_completed_records:
            oldest = self._completed_order.popleft()
            if self._controllers.pop(oldest, None) is not None:
                evicted.append(oldest)
        return evicted

    def list_all(self) -> List[CrawlController]:
        return list(self._controllers.values())

    def list_active(self) -> List[CrawlController]:
        return [c for c in self._controllers.values() if not c.state.is_terminal]

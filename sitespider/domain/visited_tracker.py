from collections import OrderedDict
from typing import Optional


class VisitedTracker:
    """
    Tracks the canonical identities already enqueued during one crawl run.

    Unbounded by default so that at-most-once dispatch holds for the whole
    run. A `max_size` evicts the oldest identities first; evicted identities
    may then be accepted again.
    """

    def __init__(self, max_size: Optional[int] = None):
        self._max_size = int(max_size) if max_size is not None else None
        if self._max_size is not None and self._max_size <= 0:
            self._max_size = None
        self._visited: "OrderedDict[str, None]" = OrderedDict()

    def mark(self, identity: str) -> None:
        """Mark an identity as visited."""
        if identity in self._visited:
            return
        self._visited[identity] = None
        if self._max_size is not None:
            while len(self._visited) > self._max_size:
                self._visited.popitem(last=False)

    def is_visited(self, identity: str) -> bool:
        return identity in self._visited

    def __len__(self) -> int:
        return len(self._visited)

from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable, List, Optional, Union

from sitespider.domain.config import SpiderConfig
from sitespider.domain.crawl_run import CrawlRunSnapshot
from sitespider.exceptions import CrawlNotFoundError
from sitespider.services.crawl_controller import CrawlController

from .models import SpiderHandle
from .store import ControllerStore

logger = logging.getLogger(__name__)

HandleOrId = Union[SpiderHandle, str]


class SpiderRegistry:
    """Thread-safe in-memory control surface for crawl runs.

    `controller_factory(config, crawl_id=..., on_finish=...)` builds one
    `CrawlController` per run. Finished runs stay queryable until more than
    `max_completed_runs` have finished after them.
    """

    def __init__(self, controller_factory: Callable[..., CrawlController], *, max_completed_runs: int = 100):
        self._controller_factory = controller_factory
        self._lock = threading.Lock()
        self._store = ControllerStore(max_completed_records=max_completed_runs)

    def start_crawl(self, config: SpiderConfig) -> SpiderHandle:
        """Start a run for `config`. `ConfigurationError` propagates and nothing is registered."""
        crawl_id = str(uuid.uuid4())
        controller = self._controller_factory(config, crawl_id=crawl_id, on_finish=self._on_finish)
        with self._lock:
            self._store.add(controller)
        try:
            controller.start()
        except Exception:
            with self._lock:
                self._store.remove(crawl_id)
            raise
        logger.info("Registered crawl %s (%s)", crawl_id, config.config_path or "inline")
        return SpiderHandle(crawl_id=crawl_id, config_path=config.config_path)

    def _on_finish(self, controller: CrawlController) -> None:
        with self._lock:
            evicted = self._store.mark_completed(controller.crawl_id)
        for crawl_id in evicted:
            logger.debug("Evicted finished crawl %s", crawl_id)

    def get(self, handle: HandleOrId) -> CrawlController:
        crawl_id = handle.crawl_id if isinstance(handle, SpiderHandle) else str(handle)
        with self._lock:
            controller = self._store.get(crawl_id)
        if controller is None:
            raise CrawlNotFoundError(crawl_id)
        return controller

    def pause(self, handle: HandleOrId) -> None:
        self.get(handle).pause()

    def resume(self, handle: HandleOrId) -> None:
        self.get(handle).resume()

    def stop(self, handle: HandleOrId) -> None:
        self.get(handle).stop()

    def status(self, handle: HandleOrId) -> CrawlRunSnapshot:
        return self.get(handle).snapshot()

    def find_status(self, crawl_id: str) -> Optional[CrawlRunSnapshot]:
        try:
            return self.status(crawl_id)
        except CrawlNotFoundError:
            return None

    def list_active(self) -> List[CrawlRunSnapshot]:
        with self._lock:
            controllers = self._store.list_active()
        return [c.snapshot() for c in controllers]

    def list_all(self) -> List[CrawlRunSnapshot]:
        with self._lock:
            controllers = self._store.list_all()
        return [c.snapshot() for c in controllers]

    def stop_all(self) -> int:
        """Request a stop for every active run; returns how many were signalled."""
        with self._lock:
            controllers = self._store.list_active()
        stopped = 0
        for controller in controllers:
            try:
                controller.stop(reason="shutdown")
                stopped += 1
            except Exception as e:
                logger.warning("Could not stop crawl %s: %s", controller.crawl_id, e)
        return stopped

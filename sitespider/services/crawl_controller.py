import logging
import threading
import time
import uuid
from datetime import datetime
from typing import Callable, Optional

from sitespider.domain.config import SpiderConfig
from sitespider.domain.crawl_run import CrawlRun, CrawlRunSnapshot, CrawlState, FrontierCounts
from sitespider.exceptions import InvalidStateTransition
from sitespider.services.fetch_scheduler import FetchScheduler
from sitespider.services.fetcher import Fetcher
from sitespider.services.frontier import Frontier
from sitespider.services.parsers import ParserRegistry, build_default_parser_registry
from sitespider.services.scope_filter import ScopeFilter

logger = logging.getLogger(__name__)


class CrawlController:
    """State machine for a single crawl run.

    IDLE -> RUNNING -> (PAUSED <-> RUNNING) -> COMPLETED | STOPPED.
    A controller runs once; a new run needs a new controller. A monitor
    thread moves the run to COMPLETED when the frontier drains, or to
    STOPPED after a stop request once in-flight tasks have finished.
    """

    def __init__(
        self,
        config: SpiderConfig,
        *,
        fetcher: Fetcher,
        history_sink=None,
        robots_service=None,
        value_provider=None,
        parser_registry: Optional[ParserRegistry] = None,
        crawl_id: Optional[str] = None,
        user_agent: Optional[str] = None,
        priority=None,
        on_finish: Optional[Callable[["CrawlController"], None]] = None,
        poll_interval: float = 0.05,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.crawl_id = crawl_id or str(uuid.uuid4())
        self.run = CrawlRun(self.crawl_id, config.max_depth, config.concurrency)
        self._fetcher = fetcher
        self._history_sink = history_sink
        self._robots_service = robots_service
        self._value_provider = value_provider
        self._parser_registry = parser_registry
        self._user_agent = user_agent
        self._priority = priority
        self._on_finish = on_finish
        self._poll_interval = poll_interval
        self._clock = clock

        self._lock = threading.RLock()
        self._stop_requested = threading.Event()
        self._finished = threading.Event()
        self.frontier: Optional[Frontier] = None
        self.scheduler: Optional[FetchScheduler] = None
        self._monitor_thread: Optional[threading.Thread] = None

    @property
    def state(self) -> CrawlState:
        with self._lock:
            return self.run.state

    def _require(self, action: str, *allowed: CrawlState) -> None:
        if self.run.state not in allowed:
            raise InvalidStateTransition(self.run.state.value, action)

    def start(self) -> None:
        """Validate the config, seed the frontier and start the workers.

        Raises `ConfigurationError` (state stays IDLE) or `InvalidStateTransition`.
        """
        with self._lock:
            self._require("start", CrawlState.IDLE)
            self.config.validate()

            scope = ScopeFilter(self.config)
            self.frontier = Frontier(
                scope,
                method_sensitive=self.config.method_sensitive,
                parameter_handling=self.config.parameter_handling,
                priority=self._priority,
            )
            registry = self._parser_registry or build_default_parser_registry(self.config.parse)
            self.scheduler = FetchScheduler(
                frontier=self.frontier,
                fetcher=self._fetcher,
                parser_registry=registry,
                config=self.config,
                run=self.run,
                history_sink=self._history_sink,
                robots_service=self._robots_service,
                value_provider=self._value_provider,
                user_agent=self._user_agent,
            )

            for seed in self.config.seeds:
                if not self.frontier.offer(seed, 0, self.config.context_id, self.config.user_id):
                    logger.info("Seed not queued: %s", seed)

            self.run.state = CrawlState.RUNNING
            self.run.started_at = datetime.utcnow()
            logger.info("Crawl %s started with %d seeds", self.crawl_id, len(self.config.seeds))
            self.scheduler.start(self.config.concurrency)
            self._monitor_thread = threading.Thread(
                target=self._monitor, name=f"spider-monitor-{self.crawl_id[:8]}", daemon=True
            )
            self._monitor_thread.start()

    def pause(self) -> None:
        with self._lock:
            self._require("pause", CrawlState.RUNNING)
            self.scheduler.pause()
            self.run.state = CrawlState.PAUSED
            logger.info("Crawl %s paused", self.crawl_id)

    def resume(self) -> None:
        with self._lock:
            self._require("resume", CrawlState.PAUSED)
            self.run.state = CrawlState.RUNNING
            self.scheduler.resume()
            logger.info("Crawl %s resumed", self.crawl_id)

    def stop(self, reason: str = "requested") -> None:
        """Request a graceful stop; the run turns STOPPED once in-flight tasks finish."""
        with self._lock:
            self._require("stop", CrawlState.IDLE, CrawlState.RUNNING, CrawlState.PAUSED)
            if self.run.state == CrawlState.IDLE:
                self.run.state = CrawlState.STOPPED
                self.run.stop_reason = reason
                self.run.finished_at = datetime.utcnow()
                self._finished.set()
                return
            self._request_stop(reason)

    def _request_stop(self, reason: str) -> None:
        if self._stop_requested.is_set():
            return
        self._stop_requested.set()
        self.run.stop_reason = reason
        self.scheduler.stop()
        logger.info("Crawl %s stopping (%s)", self.crawl_id, reason)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the run is terminal; False on timeout."""
        return self._finished.wait(timeout)

    def snapshot(self) -> CrawlRunSnapshot:
        with self._lock:
            counts = self.frontier.snapshot() if self.frontier is not None else FrontierCounts()
            return self.run.snapshot(counts)

    def _monitor(self) -> None:
        max_duration = self.config.max_duration_seconds
        deadline = None if max_duration is None else self._clock() + max_duration
        try:
            while self.scheduler.is_alive():
                if deadline is not None and self._clock() >= deadline:
                    with self._lock:
                        if not self._stop_requested.is_set():
                            logger.info("Crawl %s reached max duration of %ss", self.crawl_id, max_duration)
                            self._request_stop("max_duration")
                self.scheduler.join(timeout=self._poll_interval)
        finally:
            with self._lock:
                if self._stop_requested.is_set():
                    self.run.state = CrawlState.STOPPED
                else:
                    self.run.state = CrawlState.COMPLETED
                self.run.finished_at = datetime.utcnow()
            snap = self.snapshot()
            logger.info(
                "Crawl %s %s: fetched=%s failed=%s rejected=%s",
                self.crawl_id, snap.state, snap.fetched, snap.failed, snap.rejected,
            )
            self._finished.set()
            if self._on_finish is not None:
                try:
                    self._on_finish(self)
                except Exception:
                    logger.exception("on_finish callback failed for crawl %s", self.crawl_id)

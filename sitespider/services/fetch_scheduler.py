import logging
import threading
from typing import Optional

from sitespider.domain.config import SpiderConfig
from sitespider.domain.crawl_run import CrawlRun
from sitespider.domain.fetch_task import FetchTask
from sitespider.domain.http_response import HttpMessage
from sitespider.domain.parse_context import ParseContext
from sitespider.exceptions import HttpFetchError
from sitespider.services.fetcher import Fetcher
from sitespider.services.frontier import Frontier
from sitespider.services.history_sink import CrawlEvent
from sitespider.services.parsers import ParserRegistry
from sitespider.services.value_provider import DefaultValueProvider

logger = logging.getLogger(__name__)


class FetchScheduler:
    """Fixed pool of worker threads draining one frontier.

    Each task is fetched once (no retry), parsed, and its candidates offered
    back at `depth + 1`. Every dispatched task produces exactly one history
    event and is always marked done, whatever happened to it.
    """

    def __init__(
        self,
        *,
        frontier: Frontier,
        fetcher: Fetcher,
        parser_registry: ParserRegistry,
        config: SpiderConfig,
        run: CrawlRun,
        history_sink=None,
        robots_service=None,
        value_provider=None,
        user_agent: Optional[str] = None,
    ):
        self.frontier = frontier
        self.fetcher = fetcher
        self.parser_registry = parser_registry
        self.config = config
        self.run = run
        self.history_sink = history_sink
        self.robots_service = robots_service
        self.value_provider = value_provider or DefaultValueProvider()
        self.user_agent = user_agent
        self._threads: list[threading.Thread] = []

    def start(self, concurrency: int) -> None:
        if self._threads:
            raise RuntimeError("scheduler already started")
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        for i in range(concurrency):
            t = threading.Thread(target=self._worker_loop, name=f"spider-worker-{i}", daemon=True)
            self._threads.append(t)
            t.start()
        logger.info("Started %d workers for crawl %s", concurrency, self.run.crawl_id)

    def stop(self) -> None:
        """Let in-flight tasks finish; nothing queued is dispatched afterwards."""
        self.frontier.close()

    def pause(self) -> None:
        self.frontier.pause()

    def resume(self) -> None:
        self.frontier.resume()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the workers; True when all of them have exited."""
        for t in self._threads:
            t.join(timeout)
        return not self.is_alive()

    def is_alive(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def _worker_loop(self) -> None:
        while True:
            task = self.frontier.take()
            if task is None:
                return
            self.process(task)

    def process(self, task: FetchTask) -> None:
        """Fetch, parse and expand one task taken from the frontier."""
        event = None
        try:
            event = self._handle(task)
        except Exception as e:
            logger.error("Unexpected error processing %s: %s", task.uri, e, exc_info=True)
            event = CrawlEvent(crawl_id=self.run.crawl_id, task=task, error=str(e))
        finally:
            self._emit(event)
            self.frontier.mark_done(task, _outcome(event))

    def _handle(self, task: FetchTask) -> CrawlEvent:
        crawl_id = self.run.crawl_id
        if self._skip_due_to_robots(task):
            return CrawlEvent(crawl_id=crawl_id, task=task, skipped_robots=True)

        headers = {}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        if self.config.send_referer_header and task.parent_uri:
            headers["Referer"] = task.parent_uri

        try:
            response = self.fetcher.fetch(
                task.uri,
                method=task.method,
                headers=headers,
                body=task.body,
                identity=task.identity,
                timeout=self.config.fetch_timeout_seconds,
            )
        except HttpFetchError as e:
            logger.warning("Fetch failed for %s: %s", task.uri, e)
            return CrawlEvent(crawl_id=crawl_id, task=task, error=str(e))
        except Exception as e:
            logger.error("Fetch error for %s: %s", task.uri, e, exc_info=True)
            return CrawlEvent(crawl_id=crawl_id, task=task, error=str(e))

        logger.info("Fetched %s %s -> status %s (depth %s)", task.method, task.uri, response.status_code, task.depth)

        message = HttpMessage(
            uri=task.uri,
            method=task.method,
            response=response,
            request_headers=headers,
            request_body=task.body,
        )
        ctx = ParseContext(
            self.config,
            self.value_provider,
            message,
            task.depth,
            context_id=task.context_id,
            user_id=task.user_id,
        )
        result = self.parser_registry.parse(ctx)

        accepted = []
        for i, candidate in enumerate(result.candidates):
            if self.frontier.offer(
                candidate.uri,
                task.depth + 1,
                task.context_id,
                task.user_id,
                method=candidate.method,
                body=candidate.body,
                parent_uri=task.uri,
            ):
                accepted.append(i)
        logger.debug("%s: %d candidates, %d queued", task.uri, len(result.candidates), len(accepted))

        return CrawlEvent(
            crawl_id=crawl_id,
            task=task,
            status_code=response.status_code,
            content_type=response.content_type,
            size=len(response.text or ""),
            candidates=tuple(result.candidates),
            accepted=tuple(accepted),
        )

    def _skip_due_to_robots(self, task: FetchTask) -> bool:
        if self.robots_service is None or not self.config.respect_robots_txt:
            return False
        if not self.robots_service.allowed_by_robots(task.uri, True):
            logger.info("Skipping (robots) %s", task.uri)
            return True
        return False

    def _emit(self, event: Optional[CrawlEvent]) -> None:
        if self.history_sink is None or event is None:
            return
        try:
            self.history_sink.record(event)
        except Exception as e:
            logger.warning("Failed to record history for %s: %s", event.task.uri, e, exc_info=True)


def _outcome(event: Optional[CrawlEvent]) -> str:
    if event is None or event.error is not None:
        return "failed"
    if event.skipped_robots:
        return "skipped_robots"
    return "fetched"

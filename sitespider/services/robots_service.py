import logging
from typing import Optional
from urllib.parse import urlsplit

from sitespider.services.robots_cache import RobotsCache
from sitespider.services.robots_fetcher import RobotsFetcher

logger = logging.getLogger(__name__)


class RobotsService:
    """
    Answers whether a URI may be fetched under its origin's robots.txt.

    Fails open: unreachable or unparsable robots.txt allows everything.
    """

    def __init__(self, http_service, user_agent: str,
                 robots_fetcher: Optional[RobotsFetcher] = None,
                 cache: Optional[RobotsCache] = None):
        self.user_agent = user_agent
        self.robots_fetcher = robots_fetcher if robots_fetcher is not None else RobotsFetcher(http_service)
        self.cache = cache if cache is not None else RobotsCache()

    def allowed_by_robots(self, uri: str, robots_enabled: bool = True) -> bool:
        if not robots_enabled:
            return True

        parsed = urlsplit(uri)
        if not parsed.scheme or not parsed.netloc:
            return True

        origin = f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"
        entry = self.cache.get(origin)
        if entry is not None:
            robots_parser = entry.parser
        else:
            robots_parser = self.robots_fetcher.fetch(f"{origin}/robots.txt")
            self.cache.set(origin, robots_parser)

        if robots_parser is None:
            return True

        try:
            return robots_parser.can_fetch(self.user_agent, uri)
        except Exception:
            logger.exception("Error checking robots permission for %s", uri)
            return True

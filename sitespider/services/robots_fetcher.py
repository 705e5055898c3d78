import logging
from typing import Optional
from urllib.robotparser import RobotFileParser

from sitespider.exceptions import HttpFetchError
from sitespider.utils.url_canonicalizer import resolve_uri

logger = logging.getLogger(__name__)

MAX_ROBOTS_REDIRECTS = 5


class RobotsFetcher:
    """Fetch robots.txt through an `http_service` exposing `fetch_robots(url)`
    and return a parsed RobotFileParser, or None when unavailable.

    Redirects are followed up to `max_redirects` hops. A 4xx response yields
    an allow-all parser; network errors, 5xx and unresolved redirects yield None.
    """

    def __init__(self, http_service, max_redirects: int = MAX_ROBOTS_REDIRECTS):
        self.http_service = http_service
        self.max_redirects = max_redirects

    def fetch(self, robots_url: str) -> Optional[RobotFileParser]:
        url = robots_url
        for _ in range(self.max_redirects + 1):
            try:
                response = self.http_service.fetch_robots(url)
            except HttpFetchError:
                logger.warning("Network error fetching robots.txt from %s", url, exc_info=True)
                return None
            if not response.is_redirect:
                break
            target = resolve_uri(url, response.header("Location"))
            if target is None:
                logger.warning("robots.txt at %s redirects without a usable Location; allowing all", url)
                return None
            logger.debug("robots.txt at %s redirects to %s", url, target)
            url = target
        else:
            logger.warning("Too many redirects fetching robots.txt from %s; allowing all", robots_url)
            return None

        robots_parser = RobotFileParser()
        robots_parser.set_url(url)
        if 400 <= response.status_code < 500:
            robots_parser.parse([])
            return robots_parser
        if response.status_code != 200 or not response.text:
            logger.info("No usable robots.txt at %s (status %s); allowing all", url, response.status_code)
            return None

        try:
            robots_parser.parse(response.text.splitlines())
            return robots_parser
        except Exception:
            logger.exception("Error parsing robots.txt from %s", url)
            return None

import logging
from urllib.parse import urlparse

from sitespider.domain.http_response import HttpMessage
from sitespider.domain.parse_context import ParseContext
from sitespider.domain.parse_result import Candidate, ParseResult
from sitespider.utils.url_canonicalizer import resolve_uri

logger = logging.getLogger(__name__)


class RobotsTxtParser:
    """Extracts `Sitemap:` URLs and literal Allow/Disallow paths from robots.txt."""

    name = "robots_txt"

    def can_parse(self, message: HttpMessage) -> bool:
        if message.response.status_code != 200:
            return False
        return urlparse(message.uri).path.endswith("/robots.txt")

    def parse(self, ctx: ParseContext) -> ParseResult:
        candidates = []
        seen = set()
        for raw_line in (ctx.response.text or "").splitlines():
            line = raw_line.split("#", 1)[0].strip()
            if ":" not in line:
                continue
            directive, value = line.split(":", 1)
            directive = directive.strip().lower()
            value = value.strip()
            if not value:
                continue
            if directive in ("allow", "disallow"):
                # wildcard patterns are not fetchable paths
                if "*" in value or "$" in value:
                    continue
            elif directive != "sitemap":
                continue
            uri = resolve_uri(ctx.uri, value)
            if uri and uri not in seen:
                seen.add(uri)
                candidates.append(Candidate(uri=uri, source=self.name))
        logger.debug("robots.txt at %s yielded %d candidates", ctx.uri, len(candidates))
        return ParseResult(candidates=candidates, stop_further_parsing=True)

import logging
import re
from typing import Optional

from bs4 import Comment

from sitespider.domain.http_response import HttpMessage
from sitespider.domain.parse_context import ParseContext, is_html
from sitespider.domain.parse_result import Candidate, ParseResult
from sitespider.utils.url_canonicalizer import find_absolute_urls, resolve_uri

logger = logging.getLogger(__name__)

_HREF_TAGS = ["a", "area", "link"]
_SRC_TAGS = ["frame", "iframe", "script", "img"]
_REFRESH_URL_RE = re.compile(r"url\s*=\s*['\"]?([^'\";]+)", re.IGNORECASE)
_COMMENT_ATTR_RE = re.compile(r"""(?:href|src)\s*=\s*["']([^"']+)["']""", re.IGNORECASE)


def _refresh_target(content: Optional[str]) -> Optional[str]:
    if not content:
        return None
    m = _REFRESH_URL_RE.search(content)
    return m.group(1).strip() if m else None


class HtmlParser:
    """Links, frames, embedded resources and literal URLs of an HTML page.

    Relative references resolve against the document's `<base href>` when
    present.
    """

    name = "html"

    def can_parse(self, message: HttpMessage) -> bool:
        return is_html(message.response.content_type)

    def parse(self, ctx: ParseContext) -> ParseResult:
        soup = ctx.soup
        base = ctx.base_url
        found: list[str] = []

        for tag in soup.find_all(_HREF_TAGS, href=True):
            found.append(resolve_uri(base, tag["href"]))
        for tag in soup.find_all(_SRC_TAGS, src=True):
            found.append(resolve_uri(base, tag["src"]))

        for meta in soup.find_all("meta"):
            if (meta.get("http-equiv") or "").strip().lower() == "refresh":
                found.append(resolve_uri(base, _refresh_target(meta.get("content"))))

        for script in soup.find_all("script"):
            if script.has_attr("src"):
                continue
            for url in find_absolute_urls(script.string or ""):
                found.append(resolve_uri(base, url))

        if ctx.config.parse.parse_comments:
            for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
                for url in find_absolute_urls(comment):
                    found.append(resolve_uri(base, url))
                for ref in _COMMENT_ATTR_RE.findall(comment):
                    found.append(resolve_uri(base, ref))

        candidates = []
        seen = set()
        for uri in found:
            if uri and uri not in seen:
                seen.add(uri)
                candidates.append(Candidate(uri=uri, source=self.name))
        logger.debug("Extracted %d links from %s", len(candidates), ctx.uri)
        return ParseResult(candidates=candidates)

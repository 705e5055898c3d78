from urllib.parse import urlparse

from sitespider.domain.http_response import HttpMessage
from sitespider.domain.parse_context import ParseContext
from sitespider.domain.parse_result import Candidate, ParseResult
from sitespider.utils.url_canonicalizer import resolve_uri


class SitemapXmlParser:
    """Every `<loc>` of a sitemap or sitemap index becomes a candidate."""

    name = "sitemap_xml"

    def can_parse(self, message: HttpMessage) -> bool:
        if message.response.status_code != 200:
            return False
        if urlparse(message.uri).path.lower().endswith("sitemap.xml"):
            return True
        head = (message.response.text or "")[:2048].lower()
        return "<urlset" in head or "<sitemapindex" in head

    def parse(self, ctx: ParseContext) -> ParseResult:
        candidates = []
        seen = set()
        for loc in ctx.soup.find_all("loc"):
            uri = resolve_uri(ctx.uri, loc.get_text(strip=True))
            if uri and uri not in seen:
                seen.add(uri)
                candidates.append(Candidate(uri=uri, source=self.name))
        return ParseResult(candidates=candidates, stop_further_parsing=True)

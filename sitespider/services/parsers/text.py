from sitespider.domain.http_response import HttpMessage
from sitespider.domain.parse_context import ParseContext
from sitespider.domain.parse_result import Candidate, ParseResult
from sitespider.utils.url_canonicalizer import find_absolute_urls, resolve_uri


class TextParser:
    """Absolute URLs written out in plain text bodies."""

    name = "text"

    def can_parse(self, message: HttpMessage) -> bool:
        ct = (message.response.content_type or "").lower()
        return ct.startswith("text/plain")

    def parse(self, ctx: ParseContext) -> ParseResult:
        candidates = []
        seen = set()
        for found in find_absolute_urls(ctx.response.text):
            uri = resolve_uri(ctx.uri, found)
            if uri and uri not in seen:
                seen.add(uri)
                candidates.append(Candidate(uri=uri, source=self.name))
        return ParseResult(candidates=candidates)

from sitespider.domain.http_response import HttpMessage
from sitespider.domain.parse_context import ParseContext
from sitespider.domain.parse_result import Candidate, ParseResult
from sitespider.utils.url_canonicalizer import resolve_uri


class RedirectParser:
    """Turns a 3xx `Location` header into a GET candidate."""

    name = "redirect"

    def can_parse(self, message: HttpMessage) -> bool:
        return message.response.is_redirect and bool(message.response.header("Location"))

    def parse(self, ctx: ParseContext) -> ParseResult:
        location = ctx.response.header("Location")
        uri = resolve_uri(ctx.uri, location)
        if uri is None:
            return ParseResult(stop_further_parsing=True)
        return ParseResult(candidates=[Candidate(uri=uri, source=self.name)], stop_further_parsing=True)

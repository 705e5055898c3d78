from __future__ import annotations

import logging
from typing import Iterable, Optional

from sitespider.domain.config import DEFAULT_MAX_PARSE_SIZE_BYTES
from sitespider.domain.parse_context import ParseContext
from sitespider.domain.parse_result import ParseResult
from sitespider.exceptions import ParserError
from sitespider.services.parsers.base import ContentParser

logger = logging.getLogger(__name__)


class ParserRegistry:
    """Ordered set of content parsers.

    Parsers run in registration order. Candidates accumulate until a parser
    sets `stop_further_parsing`. A parser that raises is logged and skipped.
    """

    def __init__(self, parsers: Optional[Iterable[ContentParser]] = None, *, max_parse_size_bytes: int = DEFAULT_MAX_PARSE_SIZE_BYTES):
        self._parsers: list[ContentParser] = list(parsers or [])
        self.max_parse_size_bytes = max_parse_size_bytes

    def register(self, parser: ContentParser) -> None:
        self._parsers.append(parser)

    def remove(self, name: str) -> bool:
        before = len(self._parsers)
        self._parsers = [p for p in self._parsers if p.name != name]
        return len(self._parsers) != before

    @property
    def parsers(self) -> list[ContentParser]:
        return list(self._parsers)

    def parse(self, ctx: ParseContext) -> ParseResult:
        result = ParseResult()
        text = ctx.message.response.text or ""
        if self.max_parse_size_bytes and len(text.encode("utf-8", errors="ignore")) > self.max_parse_size_bytes:
            logger.debug("Skipping parse of %s: body larger than %s bytes", ctx.uri, self.max_parse_size_bytes)
            return result

        for parser in self._parsers:
            try:
                if not parser.can_parse(ctx.message):
                    continue
                parsed = parser.parse(ctx)
            except Exception as e:
                err = ParserError(parser.name, ctx.uri, e)
                logger.warning("%s", err, exc_info=True)
                continue
            result.extend(parsed)
            if parsed.stop_further_parsing:
                logger.debug("Parser %s stopped further parsing of %s", parser.name, ctx.uri)
                break
        return result

from __future__ import annotations

from typing import Protocol

from sitespider.domain.http_response import HttpMessage
from sitespider.domain.parse_context import ParseContext
from sitespider.domain.parse_result import ParseResult


class ContentParser(Protocol):
    """A parser for one kind of content.

    The registry only calls `parse` for messages `can_parse` accepted.
    """

    name: str

    def can_parse(self, message: HttpMessage) -> bool: ...

    def parse(self, ctx: ParseContext) -> ParseResult: ...

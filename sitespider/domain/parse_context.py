from __future__ import annotations

import logging
from functools import cached_property
from typing import TYPE_CHECKING, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from sitespider.domain.config import SpiderConfig
from sitespider.domain.http_response import HttpMessage

if TYPE_CHECKING:
    from sitespider.services.value_provider import ValueProvider

logger = logging.getLogger(__name__)


class ParseContext:
    """Per-fetch state handed to every parser.

    Owned by the worker that fetched `message` and dropped once that task is
    done. `base_url` and `soup` are computed on first access and kept for
    the lifetime of this instance.
    """

    def __init__(
        self,
        config: SpiderConfig,
        value_provider: "ValueProvider",
        message: HttpMessage,
        depth: int,
        context_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ):
        self.config = config
        self.value_provider = value_provider
        self.message = message
        self.depth = depth
        self.context_id = context_id
        self.user_id = user_id
        self.path = urlparse(message.uri).path or "/"

    @property
    def uri(self) -> str:
        return self.message.uri

    @property
    def response(self):
        return self.message.response

    @cached_property
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.message.response.text or "", "html.parser")

    @cached_property
    def base_url(self) -> str:
        """Request URI, or the document's `<base href>` resolved against it."""
        if is_html(self.message.response.content_type):
            base = self.soup.find("base", href=True)
            if base and base["href"].strip():
                try:
                    return urljoin(self.message.uri, base["href"].strip())
                except ValueError:
                    logger.debug("Ignoring malformed <base href> on %s", self.message.uri)
        return self.message.uri

    def __repr__(self):
        return f"<ParseContext uri={self.uri} depth={self.depth}>"


def is_html(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    ct = content_type.lower()
    return "text/html" in ct or "application/xhtml" in ct

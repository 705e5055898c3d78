from __future__ import annotations

from typing import Mapping, Optional, Protocol

from sitespider.domain.fetch_task import SpiderIdentity
from sitespider.domain.http_response import HttpResponse


class Fetcher(Protocol):
    """Transport used by the fetch workers.

    Implementations perform exactly one request (no redirect following) and
    raise `HttpFetchError` for network and transport failures, timeouts
    included.
    """

    def fetch(
        self,
        uri: str,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[str] = None,
        identity: Optional[SpiderIdentity] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse: ...

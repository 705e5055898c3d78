import logging
from typing import Callable, Mapping, Optional

import requests

from sitespider.domain.fetch_task import SpiderIdentity
from sitespider.domain.http_response import HttpResponse
from sitespider.exceptions import HttpFetchError

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class HttpService:
    """
    requests-based transport for the spider.

    `http_client` is a `requests.request`-compatible callable so tests can
    inject a fake. Redirects are never followed here; they surface as 3xx
    responses for the redirect parser. `auth_headers`, when given, maps the
    fetch identity to extra headers (session cookies, tokens).
    """

    def __init__(
        self,
        user_agent: str,
        http_client: Callable = requests.request,
        timeout: float = 10,
        auth_headers: Optional[Callable[[SpiderIdentity], Mapping[str, str]]] = None,
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client
        self.auth_headers = auth_headers

    def fetch(
        self,
        uri: str,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[str] = None,
        identity: Optional[SpiderIdentity] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """Perform one request and return status, body text, Content-Type and headers."""
        request_headers = {"User-Agent": self.user_agent}
        if body is not None:
            request_headers["Content-Type"] = FORM_CONTENT_TYPE
        if identity is not None and self.auth_headers is not None:
            request_headers.update(self.auth_headers(identity))
        request_headers.update(headers or {})

        try:
            resp = self.http_client(
                method,
                uri,
                headers=request_headers,
                data=body,
                timeout=timeout if timeout is not None else self.timeout,
                allow_redirects=False,
            )
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(uri, e) from e

        resp_headers = dict(resp.headers) if hasattr(resp, "headers") else {}
        ct = resp_headers.get("Content-Type")
        if ct is None:
            ct = next((v for k, v in resp_headers.items() if k.lower() == "content-type"), None)
        logger.debug("%s %s -> %s", method, uri, resp.status_code)
        return HttpResponse(resp.status_code, resp.text, ct, resp_headers)

    def fetch_robots(self, robots_url: str) -> HttpResponse:
        """Fetch robots.txt - delegates to fetch()."""
        return self.fetch(robots_url)

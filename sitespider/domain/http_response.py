from typing import Mapping, NamedTuple, Optional


class HttpResponse(NamedTuple):
    """Response from HTTP fetch operation."""
    status_code: int
    text: str
    content_type: Optional[str] = None
    headers: Mapping[str, str] = {}

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def is_redirect(self) -> bool:
        return 300 <= int(self.status_code) < 400


class HttpMessage(NamedTuple):
    """A request together with the response it produced."""
    uri: str
    method: str
    response: HttpResponse
    request_headers: Mapping[str, str] = {}
    request_body: Optional[str] = None

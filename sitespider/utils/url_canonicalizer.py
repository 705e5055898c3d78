"""URL resolution and canonical identities for frontier dedup."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

ALLOWED_SCHEMES = ("http", "https")
SKIP_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "data:", "about:")

_DEFAULT_PORTS = {"http": 80, "https": 443}


def resolve_uri(base_url: str, href: Optional[str]) -> Optional[str]:
    """Resolve a possibly relative reference against `base_url`.

    Returns None for empty references, in-page fragments, non-navigational
    schemes, and anything that is malformed or does not resolve to http(s).
    """
    if href is None:
        return None
    candidate = href.strip()
    if not candidate or candidate.startswith("#"):
        return None
    if candidate.lower().startswith(SKIP_HREF_PREFIXES):
        return None
    try:
        parsed = urlsplit(urljoin(base_url, candidate))
    except ValueError:
        # e.g. an unbalanced "[" in the host
        return None
    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not parsed.netloc:
        return None
    return urlunsplit(parsed._replace(fragment=""))


def _normalize_netloc(parsed) -> Optional[str]:
    host = (parsed.hostname or "").lower()
    if not host:
        return None
    try:
        port = parsed.port
    except ValueError:
        return None
    if ":" in host:
        host = f"[{host}]"
    userinfo = ""
    if parsed.username:
        userinfo = parsed.username
        if parsed.password:
            userinfo += ":" + parsed.password
        userinfo += "@"
    if port is not None and port != _DEFAULT_PORTS.get(parsed.scheme.lower()):
        return f"{userinfo}{host}:{port}"
    return f"{userinfo}{host}"


def _normalize_params(raw: str, parameter_handling: str) -> str:
    if not raw or parameter_handling == "ignore_completely":
        return ""
    pairs = parse_qsl(raw, keep_blank_values=True)
    if parameter_handling == "ignore_value":
        names = sorted({name for name, _ in pairs})
        return "&".join(names)
    pairs.sort(key=lambda item: (item[0], item[1]))
    return urlencode(pairs)


def normalize_uri(uri: str, parameter_handling: str = "use_all") -> Optional[str]:
    """Lowercase scheme and host, drop default port and fragment, sort the query.

    Returns None for URIs that are not absolute http(s).
    """
    if not uri:
        return None
    try:
        parsed = urlsplit(uri.strip())
    except ValueError:
        return None
    scheme = parsed.scheme.lower()
    if scheme not in ALLOWED_SCHEMES or not parsed.netloc:
        return None
    netloc = _normalize_netloc(parsed)
    if not netloc:
        return None
    path = parsed.path or "/"
    query = _normalize_params(parsed.query, parameter_handling)
    return urlunsplit((scheme, netloc, path, query, ""))


def canonicalize(
    uri: str,
    method: str = "GET",
    body: Optional[str] = None,
    method_sensitive: bool = True,
    parameter_handling: str = "use_all",
) -> Optional[str]:
    """Return the dedup identity for a request, or None if `uri` is unusable.

    Two URIs that differ only in fragment or query parameter order map to the
    same identity. With `method_sensitive` the method is part of the identity
    and a form-encoded body is sorted and appended.
    """
    normalized = normalize_uri(uri, parameter_handling)
    if normalized is None:
        return None
    if not method_sensitive:
        return normalized
    identity = f"{(method or 'GET').upper()} {normalized}"
    if body:
        identity += " " + _normalize_params(body, parameter_handling)
    return identity


_ABSOLUTE_URL_RE = re.compile(r"""https?://[^\s"'<>`\\)\]]+""", re.IGNORECASE)


def find_absolute_urls(text: str) -> list[str]:
    """Literal http(s) URLs in free text, in order of appearance."""
    if not text:
        return []
    return [m.group(0).rstrip(".,;:") for m in _ABSOLUTE_URL_RE.finditer(text)]

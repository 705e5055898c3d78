import logging
from urllib.parse import urlencode, urlsplit, urlunsplit

from sitespider.domain.http_response import HttpMessage
from sitespider.domain.parse_context import ParseContext, is_html
from sitespider.domain.parse_result import Candidate, ParseResult
from sitespider.utils.url_canonicalizer import resolve_uri

logger = logging.getLogger(__name__)

_SKIPPED_INPUT_TYPES = ("submit", "button", "image", "reset", "file")


def _attributes(tag) -> dict:
    attrs = {}
    for key, value in tag.attrs.items():
        attrs[key] = " ".join(value) if isinstance(value, list) else str(value)
    return attrs


class HtmlFormParser:
    """Builds GET or POST candidates from HTML forms.

    Field values come from the context's value provider, so a form always
    produces the same request for the same page.
    """

    name = "html_forms"

    def can_parse(self, message: HttpMessage) -> bool:
        return is_html(message.response.content_type)

    def parse(self, ctx: ParseContext) -> ParseResult:
        options = ctx.config.parse
        if not options.process_forms:
            return ParseResult()

        candidates = []
        for form in ctx.soup.find_all("form"):
            method = (form.get("method") or "GET").strip().upper()
            if method not in ("GET", "POST"):
                method = "GET"
            if method == "POST" and not options.post_forms:
                logger.debug("Skipping POST form on %s", ctx.uri)
                continue
            action = resolve_uri(ctx.base_url, form.get("action") or ctx.uri)
            if action is None:
                continue

            params = tuple(self._field_values(ctx, form, action))
            if method == "GET":
                parts = urlsplit(action)
                uri = urlunsplit(parts._replace(query=urlencode(params)))
                candidates.append(Candidate(uri=uri, method="GET", params=params, source=self.name))
            else:
                candidates.append(
                    Candidate(uri=action, method="POST", params=params, body=urlencode(params), source=self.name)
                )
        return ParseResult(candidates=candidates)

    def _field_values(self, ctx: ParseContext, form, action: str):
        provider = ctx.value_provider
        grouped = {}

        for field in form.find_all(["input", "textarea", "select"]):
            name = field.get("name")
            if not name:
                continue
            attrs = _attributes(field)
            if field.name == "input":
                field_type = (field.get("type") or "text").lower()
                attrs["type"] = field_type
                if field_type in _SKIPPED_INPUT_TYPES:
                    continue
                if field_type in ("radio", "checkbox"):
                    entry = grouped.setdefault(name, {"default": None, "declared": [], "attrs": attrs})
                    value = field.get("value", "on")
                    entry["declared"].append(value)
                    if field.has_attr("checked") and entry["default"] is None:
                        entry["default"] = value
                    continue
                default = field.get("value")
                declared = []
            elif field.name == "textarea":
                attrs.setdefault("type", "textarea")
                default = field.get_text()
                declared = []
            else:
                choices = field.find_all("option")
                declared = [o.get("value", o.get_text(strip=True)) for o in choices]
                selected = [o for o in choices if o.has_attr("selected")]
                default = selected[0].get("value", selected[0].get_text(strip=True)) if selected else None
                attrs.setdefault("type", "select")
            yield name, provider.get_value(action, name, default, declared, attrs)

        for name, entry in grouped.items():
            yield name, provider.get_value(action, name, entry["default"], entry["declared"], entry["attrs"])

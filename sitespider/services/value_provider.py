from __future__ import annotations

import logging
from typing import Mapping, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TEXT_VALUE = "sitespider"

# Values for HTML5 input types that reject free text
_VALUES_BY_TYPE = {
    "email": "foo-bar@example.com",
    "number": "1",
    "range": "1",
    "url": "https://www.example.com",
    "tel": "9999999999",
    "color": "#ffffff",
    "date": "2018-01-01",
    "datetime-local": "2018-01-01T00:00",
    "month": "2018-01",
    "week": "2018-W01",
    "time": "00:00",
    "password": "SiteSpider1!",
    "hidden": "",
}


class ValueProvider(Protocol):
    """Supplies a concrete value for a form field."""

    def get_value(
        self,
        uri: str,
        field_id: str,
        default_value: Optional[str],
        declared_values: Sequence[str],
        attributes: Mapping[str, str],
    ) -> str: ...


class DefaultValueProvider:
    """Deterministic values: the field default, then the first declared
    value, then a value suited to the field's `type` attribute.
    """

    def __init__(self, overrides: Optional[Mapping[str, str]] = None):
        # field name -> value, checked before anything else
        self._overrides = dict(overrides or {})

    def get_value(
        self,
        uri: str,
        field_id: str,
        default_value: Optional[str],
        declared_values: Sequence[str],
        attributes: Mapping[str, str],
    ) -> str:
        if field_id in self._overrides:
            return self._overrides[field_id]
        if default_value:
            return default_value
        for value in declared_values or ():
            if value:
                return value
        field_type = (attributes.get("type") or "text").strip().lower()
        value = _VALUES_BY_TYPE.get(field_type, DEFAULT_TEXT_VALUE)
        logger.debug("Generated value %r for field %s (type=%s) on %s", value, field_id, field_type, uri)
        return value

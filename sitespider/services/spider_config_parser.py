import os
from typing import Optional

from sitespider.domain.config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_MAX_DEPTH,
    ParseOptions,
    ScopeDefinition,
    ScopeRule,
    SpiderConfig,
)
from sitespider.exceptions import ConfigurationError

_PARSE_KEYS = {
    "comments": "parse_comments",
    "robots_txt": "parse_robots_txt",
    "sitemap_xml": "parse_sitemap_xml",
    "process_forms": "process_forms",
    "post_forms": "post_forms",
    "max_parse_size_bytes": "max_parse_size_bytes",
}


class SpiderConfigParser:
    """Parse a YAML job dict into a SpiderConfig.

    Responsibility: schema of job files. It does NOT perform filesystem IO.
    Structural problems raise `ConfigurationError`; value checks are left to
    `SpiderConfig.validate`.

    Example::

        seeds: [https://example.com/]
        max_depth: 3
        concurrency: 4
        context: {id: shop, user: alice}
        scope:
          exclude:
            - prefix: /admin
        parse:
          comments: false
    """

    def __init__(self, *, default_max_depth: Optional[int] = DEFAULT_MAX_DEPTH,
                 default_concurrency: int = DEFAULT_CONCURRENCY,
                 default_fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS):
        self.default_max_depth = default_max_depth
        self.default_concurrency = default_concurrency
        self.default_fetch_timeout = default_fetch_timeout

    def parse(self, *, data: dict, config_path: Optional[str] = None) -> SpiderConfig:
        if not isinstance(data, dict):
            raise ConfigurationError("job", "must be a mapping")

        seeds = data.get("seeds", [])
        if isinstance(seeds, str):
            seeds = [seeds]
        if not isinstance(seeds, list):
            raise ConfigurationError("seeds", "must be a list of URLs")

        context = data.get("context") or {}
        if not isinstance(context, dict):
            raise ConfigurationError("context", "must be a mapping with 'id' and/or 'user'")

        contexts = data.get("contexts") or {}
        if not isinstance(contexts, dict):
            raise ConfigurationError("contexts", "must map context ids to scope definitions")

        return SpiderConfig(
            seeds=[str(s) for s in seeds],
            config_path=os.path.basename(config_path) if config_path else None,
            max_depth=data.get("max_depth", self.default_max_depth),
            max_children=data.get("max_children"),
            concurrency=data.get("concurrency", self.default_concurrency),
            fetch_timeout_seconds=data.get("fetch_timeout_seconds", self.default_fetch_timeout),
            max_duration_seconds=data.get("max_duration_seconds"),
            scope=self._parse_scope("scope", data.get("scope")),
            contexts={str(name): self._parse_scope(f"contexts.{name}", d) for name, d in contexts.items()},
            context_id=_optional_str(context.get("id")),
            user_id=_optional_str(context.get("user")),
            parse=self._parse_options(data.get("parse")),
            method_sensitive=data.get("method_sensitive", True),
            parameter_handling=data.get("parameter_handling", "use_all"),
            send_referer_header=data.get("send_referer_header", True),
            respect_robots_txt=data.get("robots", False),
        )

    def _parse_scope(self, field: str, raw) -> ScopeDefinition:
        if raw is None:
            return ScopeDefinition()
        if not isinstance(raw, dict):
            raise ConfigurationError(field, "must be a mapping with 'include' and/or 'exclude'")
        return ScopeDefinition(
            include=self._parse_rules(f"{field}.include", raw.get("include")),
            exclude=self._parse_rules(f"{field}.exclude", raw.get("exclude")),
        )

    def _parse_rules(self, field: str, raw) -> tuple:
        if not raw:
            return ()
        if not isinstance(raw, list):
            raise ConfigurationError(field, "must be a list of rules")
        rules = []
        for item in raw:
            # each rule is a one-key mapping such as {prefix: /admin}
            if not isinstance(item, dict) or len(item) != 1:
                raise ConfigurationError(field, f"rule must be a single 'kind: pattern' mapping, got {item!r}")
            (kind, value), = item.items()
            rules.append(ScopeRule(kind=str(kind), value=str(value)))
        return tuple(rules)

    def _parse_options(self, raw) -> ParseOptions:
        if raw is None:
            return ParseOptions()
        if not isinstance(raw, dict):
            raise ConfigurationError("parse", "must be a mapping")
        unknown = set(raw) - set(_PARSE_KEYS)
        if unknown:
            raise ConfigurationError("parse", f"unknown options: {', '.join(sorted(unknown))}")
        return ParseOptions(**{_PARSE_KEYS[k]: v for k, v in raw.items()})


def _optional_str(value) -> Optional[str]:
    return None if value is None else str(value)

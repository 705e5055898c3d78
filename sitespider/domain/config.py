from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional
from urllib.parse import urlparse

from sitespider.exceptions import ConfigurationError

SCOPE_RULE_KINDS = ("exact", "prefix", "regex", "host")
PARAMETER_HANDLING_MODES = ("use_all", "ignore_value", "ignore_completely")

DEFAULT_MAX_DEPTH = 5
DEFAULT_CONCURRENCY = 2
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_PARSE_SIZE_BYTES = 2_621_440


@dataclass(frozen=True)
class ScopeRule:
    """One include or exclude pattern.

    `kind` is one of `exact`, `prefix`, `regex` or `host`. A `prefix` value
    starting with "/" is matched against the URI path only.
    """

    kind: str
    value: str


@dataclass(frozen=True)
class ScopeDefinition:
    include: tuple[ScopeRule, ...] = ()
    exclude: tuple[ScopeRule, ...] = ()


@dataclass(frozen=True)
class ParseOptions:
    """Toggles for the default parser set."""

    parse_comments: bool = True
    parse_robots_txt: bool = True
    parse_sitemap_xml: bool = True
    process_forms: bool = True
    post_forms: bool = True
    max_parse_size_bytes: int = DEFAULT_MAX_PARSE_SIZE_BYTES


@dataclass(frozen=True)
class SpiderConfigData:
    """Crawl-behavior fields for a spider run. Collections are read-only."""

    seeds: tuple[str, ...]
    max_depth: Optional[int] = DEFAULT_MAX_DEPTH
    max_children: Optional[int] = None
    concurrency: int = DEFAULT_CONCURRENCY
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    max_duration_seconds: Optional[float] = None
    scope: ScopeDefinition = field(default_factory=ScopeDefinition)
    contexts: Mapping[str, ScopeDefinition] = field(default_factory=lambda: MappingProxyType({}))
    context_id: Optional[str] = None
    user_id: Optional[str] = None
    parse: ParseOptions = field(default_factory=ParseOptions)
    method_sensitive: bool = True
    parameter_handling: str = "use_all"
    send_referer_header: bool = True
    respect_robots_txt: bool = False


class SpiderConfig:
    """Configuration for one spider run.

    Wraps the crawl settings (`data`) together with the job file it was
    loaded from, if any. Instances are treated as immutable snapshots once a
    run has started.
    """

    def __init__(
        self,
        seeds=None,
        *,
        config_path: Optional[str] = None,
        max_depth: Optional[int] = DEFAULT_MAX_DEPTH,
        max_children: Optional[int] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        max_duration_seconds: Optional[float] = None,
        scope: Optional[ScopeDefinition] = None,
        contexts: Optional[dict[str, ScopeDefinition]] = None,
        context_id: Optional[str] = None,
        user_id: Optional[str] = None,
        parse: Optional[ParseOptions] = None,
        method_sensitive: bool = True,
        parameter_handling: str = "use_all",
        send_referer_header: bool = True,
        respect_robots_txt: bool = False,
    ):
        self.config_path = config_path
        # 0 children means "no limit", as in the job file format
        if max_children == 0:
            max_children = None
        self.data = SpiderConfigData(
            seeds=tuple(seeds or ()),
            max_depth=max_depth,
            max_children=max_children,
            concurrency=concurrency,
            fetch_timeout_seconds=fetch_timeout_seconds,
            max_duration_seconds=max_duration_seconds,
            scope=scope or ScopeDefinition(),
            contexts=MappingProxyType(dict(contexts or {})),
            context_id=context_id,
            user_id=user_id,
            parse=parse or ParseOptions(),
            method_sensitive=bool(method_sensitive),
            parameter_handling=parameter_handling,
            send_referer_header=bool(send_referer_header),
            respect_robots_txt=bool(respect_robots_txt),
        )

    @property
    def seeds(self) -> tuple[str, ...]:
        return self.data.seeds

    @property
    def max_depth(self) -> Optional[int]:
        return self.data.max_depth

    @property
    def max_children(self) -> Optional[int]:
        return self.data.max_children

    @property
    def concurrency(self) -> int:
        return self.data.concurrency

    @property
    def fetch_timeout_seconds(self) -> float:
        return self.data.fetch_timeout_seconds

    @property
    def max_duration_seconds(self) -> Optional[float]:
        return self.data.max_duration_seconds

    @property
    def scope(self) -> ScopeDefinition:
        return self.data.scope

    @property
    def contexts(self) -> Mapping[str, ScopeDefinition]:
        return self.data.contexts

    @property
    def context_id(self) -> Optional[str]:
        return self.data.context_id

    @property
    def user_id(self) -> Optional[str]:
        return self.data.user_id

    @property
    def parse(self) -> ParseOptions:
        return self.data.parse

    @property
    def method_sensitive(self) -> bool:
        return self.data.method_sensitive

    @property
    def parameter_handling(self) -> str:
        return self.data.parameter_handling

    @property
    def send_referer_header(self) -> bool:
        return self.data.send_referer_header

    @property
    def respect_robots_txt(self) -> bool:
        return self.data.respect_robots_txt

    def validate(self) -> None:
        """Raise `ConfigurationError` if this config cannot start a run."""
        data = self.data
        if not data.seeds:
            raise ConfigurationError("seeds", "at least one seed URL is required")
        for seed in data.seeds:
            try:
                parsed = urlparse(seed)
            except ValueError as e:
                raise ConfigurationError("seeds", f"malformed URL {seed!r}: {e}") from e
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ConfigurationError("seeds", f"not an absolute http(s) URL: {seed!r}")
        if not isinstance(data.concurrency, int) or data.concurrency < 1:
            raise ConfigurationError("concurrency", "must be an integer >= 1")
        if data.max_depth is not None and data.max_depth < 0:
            raise ConfigurationError("max_depth", "must be >= 0")
        if data.max_children is not None and data.max_children < 0:
            raise ConfigurationError("max_children", "must be >= 0")
        if data.fetch_timeout_seconds is None or data.fetch_timeout_seconds <= 0:
            raise ConfigurationError("fetch_timeout_seconds", "must be > 0")
        if data.max_duration_seconds is not None and data.max_duration_seconds <= 0:
            raise ConfigurationError("max_duration_seconds", "must be > 0")
        if data.parameter_handling not in PARAMETER_HANDLING_MODES:
            raise ConfigurationError(
                "parameter_handling",
                f"must be one of {', '.join(PARAMETER_HANDLING_MODES)}",
            )
        if data.parse.max_parse_size_bytes < 0:
            raise ConfigurationError("max_parse_size_bytes", "must be >= 0")
        if data.context_id is not None and data.contexts and data.context_id not in data.contexts:
            raise ConfigurationError("context_id", f"unknown context {data.context_id!r}")

        _validate_scope("scope", data.scope)
        for name, definition in data.contexts.items():
            _validate_scope(f"contexts.{name}", definition)

    def __repr__(self):
        return f"<SpiderConfig path={self.config_path} seeds={len(self.seeds)} max_depth={self.max_depth}>"


def _validate_scope(field_name: str, definition: ScopeDefinition) -> None:
    for rule in tuple(definition.include) + tuple(definition.exclude):
        if rule.kind not in SCOPE_RULE_KINDS:
            raise ConfigurationError(field_name, f"unknown rule kind {rule.kind!r}")
        if not rule.value:
            raise ConfigurationError(field_name, f"empty {rule.kind} pattern")
        if rule.kind == "regex":
            try:
                re.compile(rule.value)
            except re.error as e:
                raise ConfigurationError(field_name, f"invalid regex {rule.value!r}: {e}") from e

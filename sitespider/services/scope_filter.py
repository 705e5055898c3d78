from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urlsplit

from sitespider.domain.config import ScopeDefinition, ScopeRule, SpiderConfig
from sitespider.utils.url_canonicalizer import normalize_uri

logger = logging.getLogger(__name__)


class _CompiledRule:
    def __init__(self, rule: ScopeRule):
        self.kind = rule.kind
        self.value = rule.value
        self._regex = re.compile(rule.value) if rule.kind == "regex" else None
        self._exact = normalize_uri(rule.value) if rule.kind == "exact" else None
        self._host = rule.value.strip().lower().strip(".") if rule.kind == "host" else None

    def matches(self, uri: str, host: str, path: str) -> bool:
        if self.kind == "exact":
            return uri == (self._exact or self.value)
        if self.kind == "prefix":
            if self.value.startswith("/"):
                return path.startswith(self.value)
            return uri.startswith(self.value)
        if self.kind == "regex":
            return self._regex.search(uri) is not None
        if self.kind == "host":
            return host == self._host or host.endswith("." + self._host)
        return False


class _CompiledScope:
    def __init__(self, definition: ScopeDefinition):
        self.include = [_CompiledRule(r) for r in definition.include]
        self.exclude = [_CompiledRule(r) for r in definition.exclude]

    def excluded(self, uri: str, host: str, path: str) -> bool:
        return any(r.matches(uri, host, path) for r in self.exclude)

    def included(self, uri: str, host: str, path: str) -> bool:
        return any(r.matches(uri, host, path) for r in self.include)


class ScopeFilter:
    """Scope, depth and per-parent child limit checks for discovered URIs.

    Exclude rules win over include rules. Without include rules the hosts of
    the seeds (and their subdomains) are in scope. Child counts are only read
    and written by the frontier while it holds its lock.
    """

    def __init__(self, config: SpiderConfig):
        self.max_depth = config.max_depth
        self.max_children = config.max_children
        self._scope = _CompiledScope(config.scope)
        self._contexts = {name: _CompiledScope(d) for name, d in config.contexts.items()}
        self._seed_hosts = set()
        for seed in config.seeds:
            host = (urlsplit(seed).hostname or "").lower()
            if host:
                self._seed_hosts.add(_CompiledRule(ScopeRule("host", host)))
        self._children: dict[str, int] = {}

    def in_scope(self, uri: str, context_id: Optional[str] = None) -> bool:
        normalized = normalize_uri(uri)
        if normalized is None:
            return False
        parts = urlsplit(normalized)
        host = (parts.hostname or "").lower()
        path = parts.path or "/"

        if self._scope.excluded(normalized, host, path):
            logger.debug("Out of scope (excluded): %s", uri)
            return False
        if self._scope.include:
            if not self._scope.included(normalized, host, path):
                logger.debug("Out of scope (not included): %s", uri)
                return False
        elif not any(r.matches(normalized, host, path) for r in self._seed_hosts):
            logger.debug("Out of scope (foreign host): %s", uri)
            return False

        context = self._contexts.get(context_id) if context_id else None
        if context is not None:
            if context.excluded(normalized, host, path):
                logger.debug("Out of scope for context %s (excluded): %s", context_id, uri)
                return False
            if context.include and not context.included(normalized, host, path):
                logger.debug("Out of scope for context %s: %s", context_id, uri)
                return False
        return True

    def within_depth(self, depth: int) -> bool:
        if depth < 0:
            return False
        return self.max_depth is None or depth <= self.max_depth

    def child_limit_not_exceeded(self, parent_uri: Optional[str]) -> bool:
        if parent_uri is None or self.max_children is None:
            return True
        return self._children.get(self._parent_key(parent_uri), 0) < self.max_children

    def record_child(self, parent_uri: Optional[str]) -> None:
        if parent_uri is None:
            return
        key = self._parent_key(parent_uri)
        self._children[key] = self._children.get(key, 0) + 1

    @staticmethod
    def _parent_key(parent_uri: str) -> str:
        return normalize_uri(parent_uri) or parent_uri

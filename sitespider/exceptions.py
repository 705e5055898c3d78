"""Custom exceptions for SiteSpider services."""


class ConfigurationError(Exception):
    """Raised when a spider configuration cannot be used to start a run."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid spider configuration '{field}': {reason}")


class ConfigNotFoundError(Exception):
    """Raised when a requested job file cannot be found on disk."""

    def __init__(self, config_path: str, reason: str = "not found"):
        self.config_path = config_path
        self.reason = reason
        super().__init__(f"Config '{config_path}' {reason}")


class HttpFetchError(Exception):
    """Raised when an HTTP fetch fails due to network/transport errors."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"HTTP fetch failed for {url}: {original}")


class ParserError(Exception):
    """Wraps an exception raised by a single content parser."""

    def __init__(self, parser_name: str, url: str, original: Exception):
        self.parser_name = parser_name
        self.url = url
        self.original = original
        super().__init__(f"Parser {parser_name} failed on {url}: {original}")


class InvalidStateTransition(Exception):
    """Raised when a control action is not valid in the current crawl state."""

    def __init__(self, current: str, action: str):
        self.current = current
        self.action = action
        super().__init__(f"Cannot {action} a crawl in state '{current}'")


class CrawlNotFoundError(KeyError):
    """Raised when a crawl id is not known to the spider registry."""

    def __init__(self, crawl_id: str):
        self.crawl_id = crawl_id
        super().__init__(crawl_id)

    def __str__(self):
        return f"Crawl '{self.crawl_id}' not found"

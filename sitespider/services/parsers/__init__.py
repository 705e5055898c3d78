from sitespider.domain.config import ParseOptions

from .html_forms import HtmlFormParser
from .html_links import HtmlParser
from .redirect import RedirectParser
from .registry import ParserRegistry
from .robots_txt import RobotsTxtParser
from .sitemap_xml import SitemapXmlParser
from .text import TextParser


def build_default_parser_registry(options: ParseOptions = None) -> ParserRegistry:
    """Registry with the baseline parsers in their default order."""
    options = options or ParseOptions()
    registry = ParserRegistry(max_parse_size_bytes=options.max_parse_size_bytes)
    registry.register(RedirectParser())
    if options.parse_robots_txt:
        registry.register(RobotsTxtParser())
    if options.parse_sitemap_xml:
        registry.register(SitemapXmlParser())
    registry.register(HtmlParser())
    registry.register(HtmlFormParser())
    registry.register(TextParser())
    return registry


__all__ = [
    "ParserRegistry",
    "RedirectParser",
    "RobotsTxtParser",
    "SitemapXmlParser",
    "HtmlParser",
    "HtmlFormParser",
    "TextParser",
    "build_default_parser_registry",
]

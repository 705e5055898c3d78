"""Domain objects for SiteSpider - explicit re-exports to satisfy linters."""
from .config import SpiderConfig as SpiderConfig
from .crawl_run import CrawlRun as CrawlRun
from .crawl_run import CrawlState as CrawlState
from .fetch_task import FetchTask as FetchTask
from .parse_result import Candidate as Candidate
from .parse_result import ParseResult as ParseResult

__all__ = ["SpiderConfig", "CrawlRun", "CrawlState", "FetchTask", "Candidate", "ParseResult"]

"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests
from sqlalchemy.orm import sessionmaker

from sitespider import config as env
from sitespider.db.engine import make_engine
from sitespider.repository.history import HistoryRepository
from sitespider.services.config_file_store import ConfigFileStore
from sitespider.services.config_service import ConfigService
from sitespider.services.crawl_controller import CrawlController
from sitespider.services.history_sink import InMemoryHistorySink
from sitespider.services.http_service import HttpService
from sitespider.services.robots_cache import RobotsCache
from sitespider.services.robots_service import RobotsService
from sitespider.services.spider_config_parser import SpiderConfigParser
from sitespider.services.spider_registry import SpiderRegistry
from sitespider.services.value_provider import DefaultValueProvider


# Environment variables used by the container (read via `sitespider.config` helpers).
#
# DATABASE_URL (str | optional)
#   SQLAlchemy URL for the crawl history tables. When unset, history is kept
#   in memory and lost on restart.
#
# SPIDER_HISTORY_BACKEND (str, default: "sql" when DATABASE_URL is set, else "memory")
#   Where per-task crawl events go: "sql" or "memory".
#
# USER_AGENT (str, default: "SiteSpider/0.1")
#   User-Agent header for outbound requests and robots.txt matching.
#
# HTTP_TIMEOUT (float seconds, default: 10)
#   Default per-fetch timeout, used when a job file does not set one.
#
# SPIDER_CONCURRENCY (int, default: 2)
#   Default worker count per crawl.
#
# SPIDER_MAX_DEPTH (int, default: 5)
#   Default depth limit per crawl.
#
# SPIDER_CONFIGS_DIR (str, default: "configs")
#   Directory holding YAML job files.
#
# SPIDER_MAX_COMPLETED_RUNS (int, default: 100)
#   Finished crawls kept queryable in the registry.
#
# SPIDER_MEMORY_HISTORY_MAX_EVENTS (int, default: 100000)
#   Bound for the in-memory history backend.
#
# SPIDER_ROBOTS_CACHE_MAX_SIZE (int, default: 2048)
#   Max origins kept in the robots.txt cache (LRU eviction).
#
# SPIDER_ROBOTS_CACHE_TTL_SECONDS (int seconds, default: 3600)
#   TTL for robots.txt cache entries.
_DATABASE_URL = env.DATABASE_URL

ENV = {
    "DATABASE_URL": _DATABASE_URL,
    "SPIDER_HISTORY_BACKEND": env.get_str_env(
        "SPIDER_HISTORY_BACKEND", "sql" if _DATABASE_URL else "memory"
    ).strip().lower(),
    "USER_AGENT": env.USER_AGENT,
    "HTTP_TIMEOUT": env.get_float_env("HTTP_TIMEOUT", 10.0),
    "SPIDER_CONCURRENCY": env.get_int_env("SPIDER_CONCURRENCY", 2),
    "SPIDER_MAX_DEPTH": env.get_int_env("SPIDER_MAX_DEPTH", 5),
    "SPIDER_CONFIGS_DIR": env.get_str_env("SPIDER_CONFIGS_DIR", "configs"),
    "SPIDER_MAX_COMPLETED_RUNS": env.get_int_env("SPIDER_MAX_COMPLETED_RUNS", 100),
    "SPIDER_MEMORY_HISTORY_MAX_EVENTS": env.get_int_env("SPIDER_MEMORY_HISTORY_MAX_EVENTS", 100_000),
    "SPIDER_ROBOTS_CACHE_MAX_SIZE": env.get_int_env("SPIDER_ROBOTS_CACHE_MAX_SIZE", 2048),
    "SPIDER_ROBOTS_CACHE_TTL_SECONDS": env.get_int_env("SPIDER_ROBOTS_CACHE_TTL_SECONDS", 3600),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for SiteSpider."""

    config = providers.Configuration(default=ENV)

    # Database engine - Singleton to reuse connection pool
    db_engine = providers.Singleton(
        make_engine,
        database_url=config.DATABASE_URL
    )
    session_factory = providers.Factory(
        sessionmaker,
        bind=db_engine,
        future=True
    )

    history_repository = providers.Singleton(
        HistoryRepository,
        session_factory=session_factory
    )

    memory_history = providers.Singleton(
        InMemoryHistorySink,
        max_events=config.SPIDER_MEMORY_HISTORY_MAX_EVENTS.as_(int),
    )

    history_sink = providers.Selector(
        config.SPIDER_HISTORY_BACKEND,
        sql=history_repository,
        memory=memory_history,
    )

    http_service = providers.Singleton(
        HttpService,
        user_agent=config.USER_AGENT.as_(str),
        http_client=providers.Object(requests.request),
        timeout=config.HTTP_TIMEOUT.as_(float)
    )

    robots_cache = providers.Singleton(
        RobotsCache,
        max_size=config.SPIDER_ROBOTS_CACHE_MAX_SIZE.as_(int),
        ttl_seconds=config.SPIDER_ROBOTS_CACHE_TTL_SECONDS.as_(int),
    )

    robots_service = providers.Singleton(
        RobotsService,
        http_service=http_service,
        user_agent=config.USER_AGENT.as_(str),
        cache=robots_cache,
    )

    value_provider = providers.Singleton(DefaultValueProvider)

    spider_config_parser = providers.Singleton(
        SpiderConfigParser,
        default_max_depth=config.SPIDER_MAX_DEPTH.as_(int),
        default_concurrency=config.SPIDER_CONCURRENCY.as_(int),
        default_fetch_timeout=config.HTTP_TIMEOUT.as_(float),
    )

    config_file_store = providers.Singleton(
        ConfigFileStore,
        configs_dir=config.SPIDER_CONFIGS_DIR.as_(str),
    )

    config_service = providers.Singleton(
        ConfigService,
        file_store=config_file_store,
        parser=spider_config_parser,
    )

    # One controller per crawl run
    crawl_controller = providers.Factory(
        CrawlController,
        fetcher=http_service,
        history_sink=history_sink,
        robots_service=robots_service,
        value_provider=value_provider,
        user_agent=config.USER_AGENT.as_(str),
    )

    spider_registry = providers.Singleton(
        SpiderRegistry,
        controller_factory=crawl_controller.provider,
        max_completed_runs=config.SPIDER_MAX_COMPLETED_RUNS.as_(int),
    )

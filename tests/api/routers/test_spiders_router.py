from unittest.mock import Mock

import pytest
from fastapi import HTTPException

from sitespider.api.routers.spiders import StartSpiderRequest, create_spiders_router
from sitespider.domain.config import SpiderConfig
from sitespider.domain.crawl_run import CrawlRunSnapshot
from sitespider.exceptions import (
    ConfigNotFoundError,
    ConfigurationError,
    CrawlNotFoundError,
    InvalidStateTransition,
)
from sitespider.services.spider_registry import SpiderHandle


def _get_endpoint(router, path: str, method: str):
    for route in router.routes:
        if getattr(route, "path", None) != path:
            continue
        methods = getattr(route, "methods", set())
        if method.upper() in methods:
            return route.endpoint
    raise AssertionError(f"No route found for {method} {path}")


def _snapshot(crawl_id="c1", state="running"):
    return CrawlRunSnapshot(
        crawl_id=crawl_id,
        state=state,
        started_at=None,
        finished_at=None,
        fetched=0,
        failed=0,
        skipped_robots=0,
        queued=1,
        in_flight=0,
        accepted=1,
        rejected=0,
        duplicates=0,
        max_depth=5,
        concurrency=2,
    )


def _registry():
    return Mock(
        start_crawl=Mock(return_value=SpiderHandle(crawl_id="c1")),
        status=Mock(return_value=_snapshot()),
        find_status=Mock(return_value=_snapshot()),
        list_active=Mock(return_value=[_snapshot()]),
    )


def test_start_with_inline_seeds():
    registry = _registry()
    router = create_spiders_router(registry, Mock())
    endpoint = _get_endpoint(router, "/spiders/start", "POST")

    body = endpoint(StartSpiderRequest(seeds=["http://t/a"], max_depth=1, context_id="shop"))

    assert body["crawl_id"] == "c1"
    assert body["status"]["state"] == "running"
    config = registry.start_crawl.call_args.args[0]
    assert isinstance(config, SpiderConfig)
    assert config.seeds == ("http://t/a",)
    assert config.max_depth == 1
    assert config.context_id == "shop"


def test_start_with_job_file():
    cfg = SpiderConfig(["http://t/a"], config_path="site.yml")
    config_service = Mock(get_config=Mock(return_value=cfg))
    registry = _registry()
    router = create_spiders_router(registry, config_service)
    endpoint = _get_endpoint(router, "/spiders/start", "POST")

    endpoint(StartSpiderRequest(config="site.yml"))
    config_service.get_config.assert_called_once_with("site.yml")
    registry.start_crawl.assert_called_once_with(cfg)


def test_start_missing_job_file_404():
    config_service = Mock(get_config=Mock(side_effect=ConfigNotFoundError("x.yml")))
    router = create_spiders_router(_registry(), config_service)
    endpoint = _get_endpoint(router, "/spiders/start", "POST")
    with pytest.raises(HTTPException) as exc:
        endpoint(StartSpiderRequest(config="x.yml"))
    assert exc.value.status_code == 404


def test_start_requires_config_or_seeds():
    router = create_spiders_router(_registry(), Mock())
    endpoint = _get_endpoint(router, "/spiders/start", "POST")
    with pytest.raises(HTTPException) as exc:
        endpoint(StartSpiderRequest())
    assert exc.value.status_code == 400


def test_start_invalid_config_422():
    registry = _registry()
    registry.start_crawl.side_effect = ConfigurationError("concurrency", "must be an integer >= 1")
    router = create_spiders_router(registry, Mock())
    endpoint = _get_endpoint(router, "/spiders/start", "POST")
    with pytest.raises(HTTPException) as exc:
        endpoint(StartSpiderRequest(seeds=["http://t/a"], concurrency=0))
    assert exc.value.status_code == 422
    assert "concurrency" in exc.value.detail


def test_active_and_status():
    registry = _registry()
    router = create_spiders_router(registry, Mock())
    assert _get_endpoint(router, "/spiders/active", "GET")()[0]["crawl_id"] == "c1"
    assert _get_endpoint(router, "/spiders/{crawl_id}", "GET")("c1")["queued"] == 1

    registry.find_status.return_value = None
    with pytest.raises(HTTPException) as exc:
        _get_endpoint(router, "/spiders/{crawl_id}", "GET")("nope")
    assert exc.value.status_code == 404


@pytest.mark.parametrize("action", ["pause", "resume", "stop"])
def test_control_actions(action):
    registry = _registry()
    router = create_spiders_router(registry, Mock())
    endpoint = _get_endpoint(router, f"/spiders/{{crawl_id}}/{action}", "POST")

    assert endpoint("c1")["crawl_id"] == "c1"
    getattr(registry, action).assert_called_once_with("c1")

    getattr(registry, action).side_effect = CrawlNotFoundError("c1")
    with pytest.raises(HTTPException) as exc:
        endpoint("c1")
    assert exc.value.status_code == 404

    getattr(registry, action).side_effect = InvalidStateTransition("completed", action)
    with pytest.raises(HTTPException) as exc:
        endpoint("c1")
    assert exc.value.status_code == 409


def test_history():
    reader = Mock(list_for_crawl=Mock(return_value=[{"uri": "http://t/a"}]))
    router = create_spiders_router(_registry(), Mock(), history_reader=reader)
    endpoint = _get_endpoint(router, "/spiders/{crawl_id}/history", "GET")

    assert endpoint("c1", limit=10, offset=5) == [{"uri": "http://t/a"}]
    reader.list_for_crawl.assert_called_once_with("c1", limit=10, offset=5)

    with pytest.raises(HTTPException) as exc:
        endpoint("c1", limit=0, offset=0)
    assert exc.value.status_code == 400


def test_history_unavailable():
    router = create_spiders_router(_registry(), Mock())
    with pytest.raises(HTTPException) as exc:
        _get_endpoint(router, "/spiders/{crawl_id}/history", "GET")("c1")
    assert exc.value.status_code == 404

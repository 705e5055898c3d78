import threading
import time
from functools import partial

import pytest

from sitespider.domain.config import SpiderConfig
from sitespider.domain.http_response import HttpResponse
from sitespider.exceptions import ConfigurationError, CrawlNotFoundError, InvalidStateTransition
from sitespider.services.crawl_controller import CrawlController
from sitespider.services.spider_registry import SpiderHandle, SpiderRegistry


class _GatedFetcher:
    def __init__(self, gate: threading.Event):
        self.gate = gate

    def fetch(self, uri, method="GET", headers=None, body=None, identity=None, timeout=None):
        self.gate.wait(5)
        return HttpResponse(200, "<html></html>", "text/html", {})


def _wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def _registry(gate=None, max_completed_runs=100):
    if gate is None:
        gate = threading.Event()
        gate.set()
    factory = partial(CrawlController, fetcher=_GatedFetcher(gate), poll_interval=0.01)
    return SpiderRegistry(factory, max_completed_runs=max_completed_runs)


def test_start_crawl_returns_handle_and_runs():
    registry = _registry()
    handle = registry.start_crawl(SpiderConfig(["http://t/a"], config_path="site.yml"))
    assert isinstance(handle, SpiderHandle)
    assert handle.config_path == "site.yml"
    assert registry.get(handle).wait(5)
    assert registry.status(handle.crawl_id).state == "completed"


def test_control_through_registry():
    gate = threading.Event()
    registry = _registry(gate)
    handle = registry.start_crawl(SpiderConfig(["http://t/1", "http://t/2"], concurrency=1))

    registry.pause(handle)
    assert registry.status(handle).state == "paused"
    assert [s.crawl_id for s in registry.list_active()] == [handle.crawl_id]

    registry.resume(handle)
    registry.stop(handle)
    gate.set()
    assert registry.get(handle).wait(5)
    assert registry.status(handle).state == "stopped"
    assert registry.list_active() == []
    assert [s.crawl_id for s in registry.list_all()] == [handle.crawl_id]


def test_unknown_crawl_id():
    registry = _registry()
    with pytest.raises(CrawlNotFoundError):
        registry.status("missing")
    with pytest.raises(CrawlNotFoundError):
        registry.stop(SpiderHandle(crawl_id="missing"))
    assert registry.find_status("missing") is None


def test_invalid_transition_propagates():
    registry = _registry()
    handle = registry.start_crawl(SpiderConfig(["http://t/a"]))
    registry.get(handle).wait(5)
    with pytest.raises(InvalidStateTransition):
        registry.pause(handle)


def test_invalid_config_is_not_registered():
    registry = _registry()
    with pytest.raises(ConfigurationError):
        registry.start_crawl(SpiderConfig([]))
    assert registry.list_all() == []


def test_completed_runs_are_bounded():
    registry = _registry(max_completed_runs=2)
    handles = []
    for _ in range(3):
        handle = registry.start_crawl(SpiderConfig(["http://t/a"]))
        registry.get(handle).wait(5)
        handles.append(handle)

    assert _wait_until(lambda: registry.find_status(handles[0].crawl_id) is None)
    assert registry.find_status(handles[1].crawl_id) is not None
    assert registry.find_status(handles[2].crawl_id) is not None


def test_stop_all_signals_active_runs():
    gate = threading.Event()
    registry = _registry(gate)
    a = registry.start_crawl(SpiderConfig(["http://t/a"]))
    b = registry.start_crawl(SpiderConfig(["http://t/b"]))
    assert registry.stop_all() == 2
    gate.set()
    for handle in (a, b):
        assert registry.get(handle).wait(5)
        snap = registry.status(handle)
        assert snap.state == "stopped"
        assert snap.stop_reason == "shutdown"

from __future__ import annotations

from sitespider.domain.config import SpiderConfig
from sitespider.domain.crawl_run import CrawlRun
from sitespider.domain.http_response import HttpResponse
from sitespider.exceptions import HttpFetchError
from sitespider.services.fetch_scheduler import FetchScheduler
from sitespider.services.frontier import Frontier
from sitespider.services.history_sink import InMemoryHistorySink, event_to_dict
from sitespider.services.parsers import build_default_parser_registry
from sitespider.services.scope_filter import ScopeFilter


class _FakeFetcher:
    def __init__(self, pages: dict[str, HttpResponse], errors: dict[str, Exception] | None = None):
        self.pages = pages
        self.errors = errors or {}
        self.calls = []

    def fetch(self, uri, method="GET", headers=None, body=None, identity=None, timeout=None):
        self.calls.append({"uri": uri, "method": method, "headers": dict(headers or {}), "body": body, "timeout": timeout})
        if uri in self.errors:
            raise self.errors[uri]
        return self.pages.get(uri, HttpResponse(404, "", "text/html", {}))


class _FakeRobots:
    def __init__(self, denied):
        self.denied = set(denied)

    def allowed_by_robots(self, url, robots_enabled=True):
        return url not in self.denied


class _BrokenSink:
    def record(self, event):
        raise RuntimeError("db down")


def _html(body: str) -> HttpResponse:
    return HttpResponse(200, f"<html><body>{body}</body></html>", "text/html", {})


def _setup(fetcher, *, config=None, sink=None, robots=None, user_agent="SiteSpider/test"):
    cfg = config or SpiderConfig(["http://t/a"])
    frontier = Frontier(ScopeFilter(cfg), method_sensitive=cfg.method_sensitive, parameter_handling=cfg.parameter_handling)
    run = CrawlRun("crawl-1", cfg.max_depth, cfg.concurrency)
    scheduler = FetchScheduler(
        frontier=frontier,
        fetcher=fetcher,
        parser_registry=build_default_parser_registry(cfg.parse),
        config=cfg,
        run=run,
        history_sink=sink if sink is not None else InMemoryHistorySink(),
        robots_service=robots,
        user_agent=user_agent,
    )
    return frontier, run, scheduler


def test_seed_with_self_link_queues_only_new_page():
    fetcher = _FakeFetcher({"http://t/a": _html('<a href="/b">b</a><a href="/a">self</a>')})
    sink = InMemoryHistorySink()
    frontier, run, scheduler = _setup(fetcher, sink=sink)

    assert frontier.offer("http://t/a", 0)
    scheduler.process(frontier.take())

    snap = run.snapshot(frontier.snapshot())
    assert (snap.fetched, snap.queued, snap.rejected) == (1, 1, 0)
    assert snap.duplicates == 1
    assert snap.in_flight == 0
    [queued] = frontier.queued_tasks()
    assert queued.uri == "http://t/b"
    assert queued.depth == 1
    assert queued.parent_uri == "http://t/a"

    [event] = sink.events("crawl-1")
    assert event.status_code == 200
    assert event.accepted == (0,)
    assert event.accepted_uris == ("http://t/b",)
    assert [c.uri for c in event.candidates] == ["http://t/b", "http://t/a"]


def test_robots_txt_emits_sitemap_candidate():
    fetcher = _FakeFetcher(
        {"http://t/robots.txt": HttpResponse(200, "User-agent: *\nSitemap: http://t/sitemap.xml\n", "text/plain", {})}
    )
    sink = InMemoryHistorySink()
    frontier, _, scheduler = _setup(fetcher, config=SpiderConfig(["http://t/robots.txt"]), sink=sink)
    frontier.offer("http://t/robots.txt", 0)
    scheduler.process(frontier.take())

    [event] = sink.events()
    # robots parser stops further parsing, so the text parser adds nothing
    assert [(c.uri, c.source) for c in event.candidates] == [("http://t/sitemap.xml", "robots_txt")]
    assert [t.uri for t in frontier.queued_tasks()] == ["http://t/sitemap.xml"]


def test_request_headers_and_timeout():
    fetcher = _FakeFetcher({})
    cfg = SpiderConfig(["http://t/a"], fetch_timeout_seconds=3.5)
    frontier, _, scheduler = _setup(fetcher, config=cfg)
    frontier.offer("http://t/b", 1, parent_uri="http://t/a")
    scheduler.process(frontier.take())
    call = fetcher.calls[0]
    assert call["headers"] == {"User-Agent": "SiteSpider/test", "Referer": "http://t/a"}
    assert call["timeout"] == 3.5


def test_referer_header_can_be_disabled():
    fetcher = _FakeFetcher({})
    cfg = SpiderConfig(["http://t/a"], send_referer_header=False)
    frontier, _, scheduler = _setup(fetcher, config=cfg)
    frontier.offer("http://t/b", 1, parent_uri="http://t/a")
    scheduler.process(frontier.take())
    assert "Referer" not in fetcher.calls[0]["headers"]


def test_post_candidate_is_fetched_with_body():
    page = _html('<form action="/login" method="post"><input name="user" value="bob"></form>')
    fetcher = _FakeFetcher({"http://t/a": page})
    frontier, _, scheduler = _setup(fetcher)
    frontier.offer("http://t/a", 0)
    scheduler.process(frontier.take())
    scheduler.process(frontier.take())
    post = fetcher.calls[1]
    assert post["uri"] == "http://t/login"
    assert post["method"] == "POST"
    assert post["body"] == "user=bob"


def test_fetch_error_counts_failed_and_records_event():
    fetcher = _FakeFetcher({}, errors={"http://t/a": HttpFetchError("http://t/a", OSError("refused"))})
    sink = InMemoryHistorySink()
    frontier, run, scheduler = _setup(fetcher, sink=sink)
    frontier.offer("http://t/a", 0)
    scheduler.process(frontier.take())
    assert frontier.snapshot().failed == 1
    assert frontier.snapshot().fetched == 0
    [event] = sink.events()
    assert not event.succeeded
    assert "refused" in event.error
    assert frontier.drained


def test_unexpected_fetcher_exception_is_contained():
    fetcher = _FakeFetcher({}, errors={"http://t/a": ValueError("bad")})
    frontier, run, scheduler = _setup(fetcher)
    frontier.offer("http://t/a", 0)
    scheduler.process(frontier.take())
    assert frontier.snapshot().failed == 1
    assert frontier.snapshot().in_flight == 0


def test_robots_disallowed_task_is_skipped():
    fetcher = _FakeFetcher({})
    cfg = SpiderConfig(["http://t/a"], respect_robots_txt=True)
    sink = InMemoryHistorySink()
    frontier, run, scheduler = _setup(fetcher, config=cfg, sink=sink, robots=_FakeRobots(["http://t/a"]))
    frontier.offer("http://t/a", 0)
    scheduler.process(frontier.take())
    assert fetcher.calls == []
    assert frontier.snapshot().skipped_robots == 1
    assert sink.events()[0].skipped_robots


def test_robots_ignored_unless_enabled():
    fetcher = _FakeFetcher({})
    frontier, run, scheduler = _setup(fetcher, robots=_FakeRobots(["http://t/a"]))
    frontier.offer("http://t/a", 0)
    scheduler.process(frontier.take())
    assert len(fetcher.calls) == 1
    assert frontier.snapshot().skipped_robots == 0


def test_history_sink_failure_does_not_break_task():
    fetcher = _FakeFetcher({"http://t/a": _html('<a href="/b">b</a>')})
    frontier, run, scheduler = _setup(fetcher, sink=_BrokenSink())
    frontier.offer("http://t/a", 0)
    scheduler.process(frontier.take())
    assert frontier.snapshot().fetched == 1
    assert frontier.snapshot().in_flight == 0
    assert frontier.snapshot().queued == 1


def test_workers_drain_frontier():
    pages = {
        "http://t/a": _html('<a href="/b">b</a><a href="/c">c</a>'),
        "http://t/b": _html('<a href="/c">c</a>'),
        "http://t/c": _html(""),
    }
    fetcher = _FakeFetcher(pages)
    frontier, run, scheduler = _setup(fetcher)
    frontier.offer("http://t/a", 0)
    scheduler.start(2)
    assert scheduler.join(timeout=5)
    assert sorted(c["uri"] for c in fetcher.calls) == ["http://t/a", "http://t/b", "http://t/c"]
    assert frontier.snapshot().fetched == 3
    assert frontier.drained


def test_same_uri_get_duplicate_and_post_accepted_are_told_apart():
    page = _html('<a href="/a">self</a><form action="/a" method="post"><input name="q" value="1"></form>')
    sink = InMemoryHistorySink()
    frontier, _, scheduler = _setup(_FakeFetcher({"http://t/a": page}), sink=sink)
    frontier.offer("http://t/a", 0)
    scheduler.process(frontier.take())

    [event] = sink.events()
    discovered = {(d["uri"], d["method"], d["accepted"]) for d in event_to_dict(event)["discovered"]}
    assert ("http://t/a", "GET", False) in discovered
    assert ("http://t/a", "POST", True) in discovered

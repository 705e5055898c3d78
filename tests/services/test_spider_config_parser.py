import pytest

from sitespider.domain.config import DEFAULT_CONCURRENCY, ScopeRule
from sitespider.exceptions import ConfigurationError
from sitespider.services.spider_config_parser import SpiderConfigParser


def test_parse_uses_basename_for_config_path():
    parser = SpiderConfigParser()
    cfg = parser.parse(config_path="/tmp/some/nested/test.yml", data={"seeds": ["http://example.com"]})
    assert cfg.config_path == "test.yml"
    assert cfg.seeds == ("http://example.com",)


def test_parse_defaults():
    cfg = SpiderConfigParser(default_max_depth=7).parse(data={"seeds": "http://example.com"})
    assert cfg.seeds == ("http://example.com",)
    assert cfg.max_depth == 7
    assert cfg.concurrency == DEFAULT_CONCURRENCY
    assert cfg.max_children is None
    assert cfg.respect_robots_txt is False
    assert cfg.method_sensitive is True
    assert cfg.parameter_handling == "use_all"
    assert cfg.parse.parse_comments is True


def test_parse_full_job():
    data = {
        "seeds": ["https://example.com/"],
        "max_depth": 3,
        "max_children": 10,
        "concurrency": 4,
        "fetch_timeout_seconds": 2.5,
        "max_duration_seconds": 60,
        "robots": True,
        "send_referer_header": False,
        "method_sensitive": False,
        "parameter_handling": "ignore_value",
        "context": {"id": "shop", "user": 42},
        "scope": {
            "include": [{"host": "example.com"}],
            "exclude": [{"prefix": "/admin"}, {"regex": "logout"}],
        },
        "contexts": {"shop": {"include": [{"prefix": "/shop"}]}},
        "parse": {"comments": False, "post_forms": False, "max_parse_size_bytes": 1024},
    }
    cfg = SpiderConfigParser().parse(data=data, config_path="site.yml")
    cfg.validate()

    assert (cfg.max_depth, cfg.max_children, cfg.concurrency) == (3, 10, 4)
    assert cfg.fetch_timeout_seconds == 2.5
    assert cfg.max_duration_seconds == 60
    assert cfg.respect_robots_txt is True
    assert cfg.send_referer_header is False
    assert cfg.method_sensitive is False
    assert cfg.parameter_handling == "ignore_value"
    assert (cfg.context_id, cfg.user_id) == ("shop", "42")
    assert cfg.scope.include == (ScopeRule("host", "example.com"),)
    assert cfg.scope.exclude == (ScopeRule("prefix", "/admin"), ScopeRule("regex", "logout"))
    assert cfg.contexts["shop"].include == (ScopeRule("prefix", "/shop"),)
    assert cfg.parse.parse_comments is False
    assert cfg.parse.post_forms is False
    assert cfg.parse.process_forms is True
    assert cfg.parse.max_parse_size_bytes == 1024


def test_zero_max_children_means_unlimited():
    cfg = SpiderConfigParser().parse(data={"seeds": ["http://example.com"], "max_children": 0})
    assert cfg.max_children is None


@pytest.mark.parametrize(
    "data, field",
    [
        (["http://example.com"], "job"),
        ({"seeds": {"a": 1}}, "seeds"),
        ({"seeds": [], "context": "shop"}, "context"),
        ({"seeds": [], "contexts": ["shop"]}, "contexts"),
        ({"seeds": [], "scope": ["x"]}, "scope"),
        ({"seeds": [], "scope": {"exclude": {"prefix": "/a"}}}, "scope.exclude"),
        ({"seeds": [], "scope": {"exclude": [{"prefix": "/a", "host": "b"}]}}, "scope.exclude"),
        ({"seeds": [], "parse": {"bogus": True}}, "parse"),
    ],
)
def test_structural_errors(data, field):
    with pytest.raises(ConfigurationError) as exc:
        SpiderConfigParser().parse(data=data)
    assert exc.value.field == field


def test_value_errors_are_left_to_validate():
    cfg = SpiderConfigParser().parse(data={"seeds": ["http://example.com"], "scope": {"include": [{"glob": "*"}]}})
    with pytest.raises(ConfigurationError) as exc:
        cfg.validate()
    assert exc.value.field == "scope"

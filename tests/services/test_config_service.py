import pytest

from sitespider.exceptions import ConfigNotFoundError, ConfigurationError
from sitespider.services.config_file_store import ConfigFileStore
from sitespider.services.config_service import ConfigService


def _service(tmp_path):
    return ConfigService(ConfigFileStore(configs_dir=str(tmp_path)))


def test_get_config_parses_job_file(tmp_path):
    (tmp_path / "site.yml").write_text(
        "seeds:\n  - https://example.com/\nmax_depth: 1\nscope:\n  exclude:\n    - prefix: /admin\n",
        encoding="utf-8",
    )
    cfg = _service(tmp_path).get_config("site.yml")
    assert cfg.config_path == "site.yml"
    assert cfg.seeds == ("https://example.com/",)
    assert cfg.max_depth == 1
    assert cfg.scope.exclude[0].value == "/admin"


def test_get_config_missing(tmp_path):
    with pytest.raises(ConfigNotFoundError) as exc:
        _service(tmp_path).get_config("missing.yml")
    assert exc.value.config_path == "missing.yml"


def test_get_config_invalid_yaml(tmp_path):
    (tmp_path / "bad.yml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigNotFoundError) as exc:
        _service(tmp_path).get_config("bad.yml")
    assert "valid YAML" in str(exc.value)


def test_get_config_structural_error(tmp_path):
    (tmp_path / "bad.yml").write_text("seeds: []\nparse: [1]\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        _service(tmp_path).get_config("bad.yml")


def test_list_and_raw(tmp_path):
    (tmp_path / "a.yml").write_text("seeds: []\n", encoding="utf-8")
    svc = _service(tmp_path)
    assert svc.list_configs() == ["a.yml"]
    assert svc.get_config_yaml("a.yml") == "seeds: []\n"
    assert svc.get_config_yaml("nope.yml") is None

import threading
import time
from unittest.mock import Mock, patch

import pytest
import requests

from archfolio.config.core.provider import (
    DEFAULT_TTL_MILLIS, CacheEntry, ConfigSource, SourceCache, SourceLoader
)
from archfolio.config.defaults import DEFAULT_CONFIG
from archfolio.config.environment import EnvironmentAdapter
from archfolio.core.enums import SourceType
from archfolio.core.exceptions import SourceLoadError, SourceNotFoundError, UnsupportedFormatError

pytestmark = pytest.mark.unit


class TestConfigSource:

    def test_cache_key(self):
        assert ConfigSource.file("config/site.json").cache_key == "config/site.json"
        assert ConfigSource.default().cache_key == "default"
        assert ConfigSource.environment().cache_key == "environment"

    def test_type_from_string(self):
        source = ConfigSource("url", "https://example.com/config.json", 5)
        assert source.type is SourceType.URL

    def test_defaults(self):
        source = ConfigSource.file("a.json")
        assert source.ttl_millis == DEFAULT_TTL_MILLIS == 300_000
        assert source.cacheable is False
        assert source.optional is False


class TestSourceCache:

    def test_hit_within_ttl_and_expiry(self, fake_clock):
        cache = SourceCache(clock=fake_clock)
        cache.put("a", {"x": 1}, ttl_millis=1000)

        fake_clock.advance(999)
        assert cache.get("a") == {"x": 1}

        fake_clock.advance(1)
        assert cache.get("a") is None
        assert cache.stats()['size'] == 0

    def test_returns_copies(self, fake_clock):
        cache = SourceCache(clock=fake_clock)
        value = {"x": [1]}
        cache.put("a", value)
        value["x"].append(2)
        cache.get("a")["x"].append(3)
        assert cache.get("a") == {"x": [1]}

    def test_clear_and_invalidate(self, fake_clock):
        cache = SourceCache(clock=fake_clock)
        cache.put("a", {})
        cache.put("b", {})

        assert cache.invalidate("a") is True
        assert cache.invalidate("a") is False
        assert "b" in cache

        cache.clear("b")
        assert "b" not in cache
        cache.put("c", {})
        cache.clear()
        assert cache.stats()['size'] == 0

    def test_stats(self, fake_clock):
        cache = SourceCache(clock=fake_clock)
        cache.get("missing")
        cache.put("a", {})
        cache.get("a")
        assert cache.stats() == {'size': 1, 'keys': ['a'], 'hits': 1, 'misses': 1}

    def test_entry_freshness(self):
        entry = CacheEntry({}, captured_at_millis=0, ttl_millis=10, source_key="a")
        assert entry.is_fresh(9)
        assert not entry.is_fresh(10)


class TestSourceLoader:

    def test_json_file(self, loader, write_json):
        write_json("config/site.json", {"personal": {"name": "Ada"}})
        assert loader.load_from_source(ConfigSource.file("config/site.json")) == {"personal": {"name": "Ada"}}

    def test_absolute_path(self, loader, write_json):
        path = write_json("abs.json", {"a": 1})
        assert loader.load_from_source(ConfigSource.file(str(path))) == {"a": 1}

    def test_yaml_file(self, loader, tmp_path):
        (tmp_path / "site.yaml").write_text("personal:\n  name: Ada\nseo:\n  keywords: [a, b]\n")
        config = loader.load_from_source(ConfigSource.file("site.yaml"))
        assert config == {"personal": {"name": "Ada"}, "seo": {"keywords": ["a", "b"]}}

    def test_empty_yaml_is_empty_mapping(self, loader, tmp_path):
        (tmp_path / "empty.yml").write_text("")
        assert loader.load_from_source(ConfigSource.file("empty.yml")) == {}

    def test_python_file(self, loader, tmp_path):
        (tmp_path / "site.py").write_text("YEAR = 2020\nCONFIG = {'portfolio': {'projectsPerPage': YEAR // 202}}\n")
        assert loader.load_from_source(ConfigSource.file("site.py")) == {'portfolio': {'projectsPerPage': 10}}

    def test_python_file_without_config(self, loader, tmp_path):
        (tmp_path / "nothing.py").write_text("VALUE = 1\n")
        with pytest.raises(SourceLoadError, match="CONFIG"):
            loader.load_from_source(ConfigSource.file("nothing.py"))

    def test_python_file_that_raises(self, loader, tmp_path):
        (tmp_path / "broken.py").write_text("raise RuntimeError('nope')\n")
        with pytest.raises(SourceLoadError, match="RuntimeError"):
            loader.load_from_source(ConfigSource.file("broken.py"))

    def test_python_config_function_that_raises(self, loader, tmp_path):
        (tmp_path / "cfg.py").write_text("def config():\n    raise RuntimeError('boom')\n")
        with pytest.raises(SourceLoadError, match="RuntimeError: boom"):
            loader.load_from_source(ConfigSource.file("cfg.py"))

    def test_python_config_function(self, loader, tmp_path):
        (tmp_path / "cfg.py").write_text("def config():\n    return {'seo': {'locale': 'nb-NO'}}\n")
        assert loader.load_from_source(ConfigSource.file("cfg.py")) == {'seo': {'locale': 'nb-NO'}}

    def test_python_file_reloaded_on_every_read(self, loader, tmp_path):
        path = tmp_path / "site.py"
        path.write_text("CONFIG = {'v': 1}\n")
        assert loader.load_from_source(ConfigSource.file("site.py")) == {'v': 1}
        path.write_text("CONFIG = {'v': 22}\n")
        assert loader.load_from_source(ConfigSource.file("site.py")) == {'v': 22}

    def test_invalid_utf8(self, loader, tmp_path):
        (tmp_path / "bad.json").write_bytes(b"\xff\xfe")
        with pytest.raises(SourceLoadError, match="cannot read file"):
            loader.load_from_source(ConfigSource.file("bad.json"))

    @pytest.mark.parametrize("name", ["site.pyc", "site.toml", "site"])
    def test_unsupported_formats(self, loader, tmp_path, name):
        (tmp_path / name).write_bytes(b"data")
        with pytest.raises(UnsupportedFormatError):
            loader.load_from_source(ConfigSource.file(name))

    def test_missing_file(self, loader):
        with pytest.raises(SourceNotFoundError):
            loader.load_from_source(ConfigSource.file("missing.json"))

    def test_invalid_json(self, loader, tmp_path):
        (tmp_path / "bad.json").write_text("{not json")
        with pytest.raises(SourceLoadError, match="invalid JSON"):
            loader.load_from_source(ConfigSource.file("bad.json"))

    def test_document_must_be_a_mapping(self, loader, write_json):
        write_json("list.json", [1, 2])
        with pytest.raises(SourceLoadError, match="mapping"):
            loader.load_from_source(ConfigSource.file("list.json"))

    def test_default_source_is_a_copy(self, loader):
        config = loader.load_from_source(ConfigSource.default())
        config['personal']['name'] = 'Changed'
        assert DEFAULT_CONFIG['personal']['name'] == 'Your Name'

    def test_environment_source(self, tmp_path):
        loader = SourceLoader(EnvironmentAdapter({'CHATBOT_MODEL': 'small'}), base_dir=str(tmp_path))
        assert loader.load_from_source(ConfigSource.environment()) == {'chatbot': {'model': 'small'}}

    def test_cacheable_file_read_once_within_ttl(self, loader, write_json, fake_clock):
        write_json("site.json", {"v": 1})
        source = ConfigSource.file("site.json", cacheable=True, ttl_millis=1000)

        with patch.object(SourceLoader, '_load_file', wraps=loader._load_file) as load_file:
            assert loader.load_from_source(source) == {"v": 1}
            write_json("site.json", {"v": 2})
            fake_clock.advance(500)
            assert loader.load_from_source(source) == {"v": 1}
            assert load_file.call_count == 1

            fake_clock.advance(500)
            assert loader.load_from_source(source) == {"v": 2}
            assert load_file.call_count == 2

    def test_uncacheable_file_read_every_time(self, loader, write_json):
        write_json("site.json", {"v": 1})
        source = ConfigSource.file("site.json")
        loader.load_from_source(source)
        write_json("site.json", {"v": 2})
        assert loader.load_from_source(source) == {"v": 2}
        assert loader.cache.stats()['size'] == 0


class TestUrlSources:

    def setup_method(self):
        self.session = Mock(spec=requests.Session)
        self.loader = SourceLoader(EnvironmentAdapter({}), session=self.session, timeout=3)

    def response(self, ok=True, status=200, payload=None, reason="OK"):
        response = Mock()
        response.ok = ok
        response.status_code = status
        response.reason = reason
        if isinstance(payload, Exception):
            response.json.side_effect = payload
        else:
            response.json.return_value = payload
        return response

    def test_successful_fetch(self):
        self.session.get.return_value = self.response(payload={"seo": {"title": "Remote"}})
        config = self.loader.load_from_source(ConfigSource.url("https://cfg.example.com/site.json"))

        assert config == {"seo": {"title": "Remote"}}
        self.session.get.assert_called_once_with("https://cfg.example.com/site.json", timeout=3)

    def test_http_error(self):
        self.session.get.return_value = self.response(ok=False, status=404, reason="Not Found")
        with pytest.raises(SourceLoadError, match="HTTP 404"):
            self.loader.load_from_source(ConfigSource.url("https://cfg.example.com/site.json"))

    def test_unparseable_body(self):
        self.session.get.return_value = self.response(payload=ValueError("no json"))
        with pytest.raises(SourceLoadError, match="not valid JSON"):
            self.loader.load_from_source(ConfigSource.url("https://cfg.example.com/site.json"))

    def test_connection_error(self):
        self.session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(SourceLoadError, match="request failed"):
            self.loader.load_from_source(ConfigSource.url("https://cfg.example.com/site.json"))


class TestLoadAll:

    def test_results_ordered_by_priority(self, loader, write_json):
        write_json("low.json", {"layer": "low"})
        write_json("high.json", {"layer": "high"})
        sources = [
            ConfigSource.file("high.json", 30),
            ConfigSource.default(0),
            ConfigSource.file("low.json", 10),
        ]

        report = loader.load_all(sources)

        assert [source.priority for source in report.sources] == [0, 10, 30]
        assert [config.get("layer") for config in report.configs] == [None, "low", "high"]
        assert report.warnings == []

    def test_completion_order_does_not_matter(self, loader):
        slow_started = threading.Event()

        def fake_load(source):
            if source.locator == "slow.json":
                slow_started.set()
                time.sleep(0.05)
            return {"name": source.locator}

        sources = [ConfigSource.file("slow.json", 1), ConfigSource.file("fast.json", 2)]
        with patch.object(loader, 'load_from_source', side_effect=fake_load):
            report = loader.load_all(sources)

        assert slow_started.is_set()
        assert [config["name"] for config in report.configs] == ["slow.json", "fast.json"]

    def test_failures_are_skipped_with_warning(self, loader, write_json):
        write_json("good.json", {"ok": True})
        report = loader.load_all([ConfigSource.file("good.json", 1), ConfigSource.file("gone.json", 2)])

        assert report.configs == [{"ok": True}]
        assert len(report.failed) == 1
        assert report.failed[0][0].locator == "gone.json"
        assert "gone.json" in report.warnings[0]
        assert not report.all_failed

    def test_undecodable_and_raising_sources_are_skipped(self, loader, write_json, tmp_path):
        write_json("good.json", {"ok": True})
        (tmp_path / "bad.json").write_bytes(b"\xff\xfe")
        (tmp_path / "cfg.py").write_text("def config():\n    raise RuntimeError('boom')\n")

        report = loader.load_all([
            ConfigSource.file("good.json", 1), ConfigSource.file("bad.json", 2), ConfigSource.file("cfg.py", 3),
        ])

        assert report.configs == [{"ok": True}]
        assert [source.locator for source, _ in report.failed] == ["bad.json", "cfg.py"]
        assert len(report.warnings) == 2

    def test_missing_optional_file_is_an_empty_layer(self, loader):
        report = loader.load_all([ConfigSource.file("local.json", 5, optional=True)])
        assert report.configs == [{}]
        assert report.warnings == []

    def test_all_failed(self, loader):
        report = loader.load_all([ConfigSource.file("a.json", 1), ConfigSource.url("not-a-url", 2)])
        assert report.all_failed
        assert len(report.warnings) == 2

    def test_duplicate_priorities_warn_and_keep_declaration_order(self, loader, write_json):
        write_json("first.json", {"who": "first"})
        write_json("second.json", {"who": "second"})
        report = loader.load_all([ConfigSource.file("first.json", 10), ConfigSource.file("second.json", 10)])

        assert [config["who"] for config in report.configs] == ["first", "second"]
        assert any("priority 10" in warning for warning in report.warnings)

"""
Property-based tests for configuration loading and validation.
"""

import json

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from graph_crawler.config import (
    ConfigManager,
    CrawlerConfig,
    DEFAULT_SERVICE_URL,
    LOG_LEVELS
)
from graph_crawler.utils.errors import ConfigurationError


ENV_NAMES = ["SERVICE_URL", "TIMEOUT", "USER_AGENT", "DEBUG", "LOG_LEVEL"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(f"GRAPH_CRAWLER_{name}", raising=False)


@st.composite
def crawler_config_strategy(draw):
    """Generate valid configuration file contents."""
    data = {
        "service_url": draw(st.sampled_from([
            "http://localhost:8080/neighbors/",
            "https://graph.example.org/api/neighbors",
        ])),
        "request_timeout": draw(st.floats(min_value=0.1, max_value=120.0)),
        "user_agent": draw(st.text(min_size=1, max_size=30, alphabet=st.characters(
            categories=("Lu", "Ll", "Nd"), include_characters="/.-"))),
        "max_workers": draw(st.integers(min_value=1, max_value=64)),
        "debug": draw(st.booleans()),
        "log_level": draw(st.sampled_from(LOG_LEVELS)),
    }
    keys = draw(st.sets(st.sampled_from(sorted(data))))
    return {key: data[key] for key in keys}


class TestCrawlerConfig:

    def test_defaults(self):
        config = CrawlerConfig()
        assert config.service_url == DEFAULT_SERVICE_URL
        assert config.request_timeout == 10.0
        assert config.max_workers == 8
        assert config.debug is False
        assert config.user_agent

    @pytest.mark.parametrize("overrides", [
        {"service_url": ""},
        {"request_timeout": 0},
        {"request_timeout": -1.0},
        {"request_timeout": float("nan")},
        {"request_timeout": float("inf")},
        {"user_agent": ""},
        {"max_workers": 0},
        {"max_workers": True},
        {"log_level": "LOUD"},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ConfigurationError) as exc_info:
            CrawlerConfig(**overrides)
        assert exc_info.value.details["errors"]

    def test_all_violations_reported(self):
        with pytest.raises(ConfigurationError) as exc_info:
            CrawlerConfig(request_timeout=0, max_workers=0)
        assert len(exc_info.value.details["errors"]) == 2

    @pytest.mark.parametrize("service_url", ["http://h/n", "http://h/n/"])
    def test_neighbor_url_joins_with_single_slash(self, service_url):
        assert CrawlerConfig(service_url=service_url).neighbor_url("A%20B") == "http://h/n/A%20B"


class TestConfigManager:

    @given(config_data=crawler_config_strategy())
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_file_round_trip(self, config_data, tmp_path_factory):
        """Property: any schema-valid file loads to a config carrying the same values."""
        config_path = tmp_path_factory.mktemp("config") / "crawler.json"
        config_path.write_text(json.dumps(config_data))

        manager = ConfigManager(str(config_path))
        config = manager.load_config()

        for key, value in config_data.items():
            assert getattr(config, key) == value

        exported = manager.export_config()
        ConfigManager().validate_config(exported)

    def test_no_file_uses_defaults(self):
        assert ConfigManager().load_config() == CrawlerConfig()

    def test_missing_file_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigManager(str(tmp_path / "absent.json")).load_config()

    def test_invalid_json_rejected(self, tmp_path):
        config_path = tmp_path / "crawler.json"
        config_path.write_text("{broken")
        with pytest.raises(ConfigurationError):
            ConfigManager(str(config_path)).load_config()

    def test_directory_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(str(tmp_path)).load_config()
        assert exc_info.value.details["path"] == str(tmp_path)

    def test_non_utf8_file_rejected(self, tmp_path):
        config_path = tmp_path / "crawler.json"
        config_path.write_bytes(b"{\"user_agent\": \"caf\xe9\"}")
        with pytest.raises(ConfigurationError):
            ConfigManager(str(config_path)).load_config()

    @pytest.mark.parametrize("config_data", [
        {"unknown_key": 1},
        {"max_workers": "eight"},
        {"request_timeout": 0},
        {"log_level": "verbose"},
        {"debug": "yes"},
    ])
    def test_schema_violations_rejected(self, tmp_path, config_data):
        config_path = tmp_path / "crawler.json"
        config_path.write_text(json.dumps(config_data))
        with pytest.raises(ConfigurationError):
            ConfigManager(str(config_path)).load_config()

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        config_path = tmp_path / "crawler.json"
        config_path.write_text(json.dumps({"service_url": "http://file.test/", "request_timeout": 3}))

        monkeypatch.setenv("GRAPH_CRAWLER_SERVICE_URL", "http://env.test/")
        monkeypatch.setenv("GRAPH_CRAWLER_TIMEOUT", "7.5")
        monkeypatch.setenv("GRAPH_CRAWLER_DEBUG", "true")
        monkeypatch.setenv("GRAPH_CRAWLER_LOG_LEVEL", "info")

        config = ConfigManager(str(config_path)).load_config()

        assert config.service_url == "http://env.test/"
        assert config.request_timeout == 7.5
        assert config.debug is True
        assert config.log_level == "INFO"

    def test_non_numeric_timeout_env_rejected(self, monkeypatch):
        monkeypatch.setenv("GRAPH_CRAWLER_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError):
            ConfigManager().load_config()

    @pytest.mark.parametrize("value", ["inf", "nan", "-inf"])
    def test_non_finite_timeout_env_rejected(self, monkeypatch, value):
        monkeypatch.setenv("GRAPH_CRAWLER_TIMEOUT", value)
        with pytest.raises(ConfigurationError):
            ConfigManager().load_config()

    def test_export_before_load_is_empty(self):
        assert ConfigManager().export_config() == {}

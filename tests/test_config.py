"""
Tests für Settings und Validatoren
"""

import pytest

from metricsproxy.config import ENV_MAPPING, load_settings
from metricsproxy.validators import (
    ConfigurationError, validate_log_level, validate_metrics_path, validate_port,
    validate_upstream_url, validate_upstream_urls
)

from conftest import URL_A, URL_B


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Entfernt alle Proxy-Variablen und isoliert .env Dateien"""
    for env_var in ENV_MAPPING.values():
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestValidators:

    @pytest.mark.parametrize("url", [
        "http://node-exporter:9100/metrics",
        "https://example.com/metrics",
        "http://127.0.0.1:8080/",
    ])
    def test_valid_urls(self, url):
        assert validate_upstream_url(url) == url

    def test_whitespace_is_stripped(self):
        assert validate_upstream_url("  http://a.test/metrics \n") == "http://a.test/metrics"

    @pytest.mark.parametrize("url, code", [
        ("", "INVALID_URL_LENGTH"),
        ("http://a.test/" + "x" * 2048, "INVALID_URL_LENGTH"),
        ("ftp://a.test/metrics", "INVALID_URL_SCHEME"),
        ("a.test/metrics", "INVALID_URL_SCHEME"),
        ("http:///metrics", "INVALID_URL_HOST"),
        ("http://a.test:notaport/metrics", "INVALID_URL_PORT"),
    ])
    def test_invalid_urls(self, url, code):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_upstream_url(url)
        assert exc_info.value.code == code

    def test_urls_required(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_upstream_urls([])
        assert exc_info.value.code == "NO_UPSTREAM_URLS"

    def test_urls_optional(self):
        assert validate_upstream_urls([], required=False) == []

    def test_url_order_kept(self):
        assert validate_upstream_urls([URL_B, URL_A]) == [URL_B, URL_A]

    def test_port_range(self):
        assert validate_port(9090) == 9090
        with pytest.raises(ConfigurationError):
            validate_port(0)
        with pytest.raises(ConfigurationError):
            validate_port(70000)

    @pytest.mark.parametrize("level, expected", [
        ("debug", "DEBUG"),
        ("Warning", "WARNING"),
        (" critical ", "CRITICAL"),
    ])
    def test_log_level(self, level, expected):
        assert validate_log_level(level) == expected

    @pytest.mark.parametrize("level", ["warn", "verbose", ""])
    def test_invalid_log_level(self, level):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_log_level(level)
        assert exc_info.value.code == "INVALID_LOG_LEVEL"

    def test_metrics_path(self):
        assert validate_metrics_path("/federate") == "/federate"
        with pytest.raises(ConfigurationError):
            validate_metrics_path("metrics")


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings(use_env=False)

        assert settings.port == 8080
        assert settings.metrics_path == "/metrics"
        assert settings.upstream_urls == ()
        assert settings.prefixes == ()
        assert settings.verbose is False

    def test_overrides(self):
        settings = load_settings(
            use_env=False,
            port=9100,
            upstream_urls=[URL_A, URL_B],
            prefixes=["metric_"],
            verbose=True,
            log_level="debug",
        )

        assert settings.port == 9100
        assert settings.upstream_urls == (URL_A, URL_B)
        assert settings.prefixes == ("metric_",)
        assert settings.verbose is True
        assert settings.log_level == "DEBUG"

    def test_require_urls(self):
        with pytest.raises(ConfigurationError):
            load_settings(use_env=False, require_urls=True)

    def test_invalid_port_type(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(use_env=False, port="eighty")
        assert exc_info.value.code == "INVALID_SETTINGS"

    def test_invalid_log_level_in_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warn")

        with pytest.raises(ConfigurationError):
            load_settings()

    def test_settings_are_frozen(self):
        settings = load_settings(use_env=False)
        with pytest.raises(Exception):
            settings.port = 1

    def test_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("UPSTREAM_URLS", f"{URL_A}, {URL_B}")
        monkeypatch.setenv("METRIC_PREFIXES", "metric_,another_")
        monkeypatch.setenv("PROXY_PORT", "9200")
        monkeypatch.setenv("VERBOSE", "true")

        settings = load_settings()

        assert settings.upstream_urls == (URL_A, URL_B)
        assert settings.prefixes == ("metric_", "another_")
        assert settings.port == 9200
        assert settings.verbose is True

    def test_overrides_win_over_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("UPSTREAM_URLS", URL_A)
        monkeypatch.setenv("PROXY_PORT", "9200")

        settings = load_settings(port=9300, upstream_urls=[URL_B], prefixes=[])

        assert settings.port == 9300
        assert settings.upstream_urls == (URL_B,)

    def test_empty_overrides_keep_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("UPSTREAM_URLS", URL_A)

        settings = load_settings(upstream_urls=[], port=None)

        assert settings.upstream_urls == (URL_A,)
        assert settings.port == 8080

    def test_env_local_file(self, clean_env):
        (clean_env / ".env.local").write_text(f"UPSTREAM_URLS={URL_A}\nMETRICS_PATH=/federate\n")

        settings = load_settings()

        assert settings.upstream_urls == (URL_A,)
        assert settings.metrics_path == "/federate"

    def test_invalid_url_in_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("UPSTREAM_URLS", "not-a-url")

        with pytest.raises(ConfigurationError):
            load_settings()

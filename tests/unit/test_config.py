"""
Unit tests for ServerConfig.
"""

import os

import pytest

from nocaseserver.config import ServerConfig


ENV_VARS = [
    "PORT", "NOCASE_ROOT", "NOCASE_HOST", "NOCASE_SPA", "NOCASE_PLAIN_404",
    "NOCASE_CACHE", "NOCASE_WORKERS", "NOCASE_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    """Tests for built-in defaults."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.port == 8080
        assert config.host == "127.0.0.1"
        assert config.spa is True
        assert config.plain_404 is False
        assert config.cache_size == 2000
        assert config.chunk_size == 64 * 1024
        assert config.log_format == "text"

    def test_root_made_absolute(self):
        assert ServerConfig(root_dir=".").root_dir == os.path.abspath(".")


class TestFromEnv:
    """Tests for ServerConfig.from_env()."""

    def test_no_env_gives_defaults(self, clean_env):
        assert ServerConfig.from_env() == ServerConfig()

    def test_reads_variables(self, clean_env, tmp_path):
        clean_env.setenv("PORT", "3000")
        clean_env.setenv("NOCASE_ROOT", str(tmp_path))
        clean_env.setenv("NOCASE_HOST", "0.0.0.0")
        clean_env.setenv("NOCASE_SPA", "off")
        clean_env.setenv("NOCASE_PLAIN_404", "yes")
        clean_env.setenv("NOCASE_CACHE", "0")
        clean_env.setenv("NOCASE_WORKERS", "8")
        clean_env.setenv("NOCASE_LOG_LEVEL", "debug")

        config = ServerConfig.from_env()

        assert config.port == 3000
        assert config.root_dir == str(tmp_path)
        assert config.host == "0.0.0.0"
        assert config.spa is False
        assert config.plain_404 is True
        assert config.cache_size == 0
        assert config.max_workers == 8
        assert config.log_level == "DEBUG"

    def test_malformed_values_fall_back(self, clean_env):
        clean_env.setenv("PORT", "eighty")
        clean_env.setenv("NOCASE_SPA", "maybe")
        clean_env.setenv("NOCASE_CACHE", "")

        config = ServerConfig.from_env()

        assert config.port == 8080
        assert config.spa is True
        assert config.cache_size == 2000

    def test_few_workers_lowers_minimum(self, clean_env):
        clean_env.setenv("NOCASE_WORKERS", "2")

        config = ServerConfig.from_env()

        assert config.min_workers == 2
        assert config.max_workers == 2


class TestValidate:
    """Tests for fail-fast validation."""

    def test_valid(self, tmp_path):
        ServerConfig(root_dir=str(tmp_path)).validate()

    def test_port_zero_allowed(self, tmp_path):
        ServerConfig(root_dir=str(tmp_path), port=0).validate()

    @pytest.mark.parametrize("overrides,message", [
        ({"port": 70000}, "port"),
        ({"port": -1}, "port"),
        ({"cache_size": -1}, "cache_size"),
        ({"chunk_size": 0}, "chunk_size"),
        ({"min_workers": 0}, "min_workers"),
        ({"min_workers": 8, "max_workers": 4}, "max_workers"),
        ({"log_level": "LOUD"}, "log level"),
        ({"log_format": "xml"}, "log format"),
    ])
    def test_invalid(self, tmp_path, overrides, message):
        config = ServerConfig(root_dir=str(tmp_path), **overrides)

        with pytest.raises(ValueError, match=message):
            config.validate()

    def test_missing_root(self, tmp_path):
        with pytest.raises(ValueError, match="Root directory"):
            ServerConfig(root_dir=str(tmp_path / "missing")).validate()

    def test_root_is_file(self, tmp_path):
        file_path = tmp_path / "f.txt"
        file_path.write_text("x")

        with pytest.raises(ValueError, match="Root directory"):
            ServerConfig(root_dir=str(file_path)).validate()

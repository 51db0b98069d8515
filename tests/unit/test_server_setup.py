"""
Unit tests for HTTPServer construction (nothing is bound or started).
"""

import pytest

from nocaseserver import HTTPServer, ServerConfig, NocaseStaticHandler, ResolutionCache


class TestServerSetup:
    """Tests for how the server wires its handler and cache."""

    def test_builds_handler_and_cache_from_config(self, web_root):
        server = HTTPServer(ServerConfig(root_dir=str(web_root), cache_size=50, spa=False))

        assert server.cache.capacity == 50
        assert server.handler.resolver.cache is server.cache
        assert server.handler.spa is False

    def test_prebuilt_handler_keeps_its_own_cache(self, web_root):
        own_cache = ResolutionCache(10)
        handler = NocaseStaticHandler(str(web_root), cache=own_cache)

        server = HTTPServer(ServerConfig(root_dir=str(web_root)), handler=handler)

        assert server.handler is handler
        assert server.cache is own_cache

    def test_prebuilt_handler_without_cache(self, web_root):
        handler = NocaseStaticHandler(str(web_root))

        server = HTTPServer(ServerConfig(root_dir=str(web_root)), handler=handler)

        assert server.cache is None

    def test_invalid_config_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="Root directory does not exist"):
            HTTPServer(ServerConfig(root_dir=str(tmp_path / "missing")))

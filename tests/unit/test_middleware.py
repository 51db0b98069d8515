"""
Unit tests for the middleware pipeline and access logging.
"""

import json
import logging

import pytest

from nocaseserver.http import ResponseBuilder, HTTPStatus, not_found
from nocaseserver.middleware import (
    MiddlewarePipeline,
    FunctionMiddleware,
    function_middleware,
    LoggingMiddleware,
)


def file_handler(request):
    return ResponseBuilder().file("/srv/video.mp4", 0, 4096).build()


class TestPipeline:
    """Tests for MiddlewarePipeline ordering."""

    def test_first_added_is_outermost(self, request_factory):
        calls = []

        def tracer(name):
            def mw(request, next):
                calls.append(f"{name}:before")
                response = next(request)
                calls.append(f"{name}:after")
                return response
            return FunctionMiddleware(mw, name=name)

        pipeline = MiddlewarePipeline().use(tracer("outer"), tracer("inner"))
        pipeline.wrap(lambda request: not_found())(request_factory())

        assert calls == ["outer:before", "inner:before", "inner:after", "outer:after"]

    def test_short_circuit(self, request_factory):
        @function_middleware
        def deny(request, next):
            return not_found(plain=True)

        handler = MiddlewarePipeline().add(deny).wrap(file_handler)

        assert handler(request_factory()).body == b"Not found"

    def test_len_and_names(self):
        pipeline = MiddlewarePipeline().add(LoggingMiddleware())

        assert len(pipeline) == 1
        assert [mw.name for mw in pipeline] == ["LoggingMiddleware"]


class TestLoggingMiddleware:
    """Tests for access log lines."""

    def test_text_line_uses_announced_length(self, request_factory, caplog):
        middleware = LoggingMiddleware()

        with caplog.at_level(logging.INFO, logger="nocaseserver.access"):
            middleware(request_factory("GET", "/Video.MP4"), file_handler)

        line = caplog.records[-1].getMessage()
        assert line.startswith("127.0.0.1 - - [")
        assert '"GET /Video.MP4" 200 4096' in line

    def test_text_line_includes_range(self, request_factory, caplog):
        middleware = LoggingMiddleware()

        with caplog.at_level(logging.INFO, logger="nocaseserver.access"):
            middleware(request_factory("GET", "/v.mp4", range="bytes=0-9"), file_handler)

        assert caplog.records[-1].getMessage().endswith("range=bytes=0-9")

    def test_json_line(self, request_factory, caplog):
        middleware = LoggingMiddleware(log_format="json")

        with caplog.at_level(logging.INFO, logger="nocaseserver.access"):
            middleware(request_factory("HEAD", "/missing"), lambda r: not_found())

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["method"] == "HEAD"
        assert entry["path"] == "/missing"
        assert entry["status_code"] == HTTPStatus.NOT_FOUND
        assert "range" not in entry

    def test_request_id_header(self, request_factory):
        middleware = LoggingMiddleware(include_request_id=True)

        response = middleware(request_factory(), file_handler)

        assert len(response.headers["X-Request-ID"]) == 8

    def test_handler_exception_logged_and_raised(self, request_factory, caplog):
        def explode(request):
            raise RuntimeError("disk on fire")

        with pytest.raises(RuntimeError):
            LoggingMiddleware()(request_factory("GET", "/x"), explode)

        assert "disk on fire" in caplog.text

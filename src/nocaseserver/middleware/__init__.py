"""
=============================================================================
MIDDLEWARE
=============================================================================

    Request ──► LoggingMiddleware ──► ... ──► NocaseStaticHandler
    Response ◄── LoggingMiddleware ◄── ... ◄──┘

HTTPServer installs LoggingMiddleware by default; server.use(...) adds
more between it and the file handler.

=============================================================================
"""

from .base import (
    Middleware,
    MiddlewarePipeline,
    NextHandler,
    FunctionMiddleware,
    function_middleware,
)
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "FunctionMiddleware",
    "function_middleware",
    "LoggingMiddleware",
    "RequestLog",
]

"""
=============================================================================
MIDDLEWARE BASE CLASSES
=============================================================================

A middleware is a callable (request, next) → response. It may act before
calling next, after it, or instead of it:

    class TimingHeader(Middleware):
        def __call__(self, request, next):
            start = time.time()
            response = next(request)
            response.set_header("X-Elapsed", f"{time.time() - start:.3f}")
            return response

The file handler sits at the centre; everything else wraps it.

=============================================================================
"""

import functools
import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterator, List, Optional

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


NextHandler = Callable[[HTTPRequest], HTTPResponse]
MiddlewareFunc = Callable[[HTTPRequest, NextHandler], HTTPResponse]


class Middleware(ABC):
    """Base class for middleware."""

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Call next(request) to continue the chain, or return a response
        directly to short-circuit it.
        """

    @property
    def name(self) -> str:
        return type(self).__name__


class MiddlewarePipeline:
    """
    Chains middleware around a final handler.

    First added = outermost:

        pipeline.add(LoggingMiddleware())   # sees every request first
        pipeline.add(other)                 # closest to the handler

        ┌───────────────────────────────────────────┐
        │  LoggingMiddleware                        │
        │  ┌─────────────────────────────────────┐  │
        │  │  other                              │  │
        │  │  ┌───────────────────────────────┐  │  │
        │  │  │  NocaseStaticHandler.handle   │  │  │
        │  │  └───────────────────────────────┘  │  │
        │  └─────────────────────────────────────┘  │
        └───────────────────────────────────────────┘
    """

    def __init__(self, *layers: Middleware):
        self._layers: List[Middleware] = list(layers)

    def add(self, layer: Middleware) -> "MiddlewarePipeline":
        self._layers.append(layer)
        logger.debug(f"Middleware layer {len(self._layers)}: {layer.name}")
        return self

    def use(self, *layers: Middleware) -> "MiddlewarePipeline":
        for layer in layers:
            self.add(layer)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Return handler wrapped in every layer.

        Built inside-out, so [MW1, MW2] + h runs MW1 → MW2 → h.
        """
        for layer in self._layers[::-1]:
            handler = functools.partial(_call_layer, layer, handler)
        return handler

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._layers)


def _call_layer(layer: Middleware, inner: NextHandler, request: HTTPRequest) -> HTTPResponse:
    return layer(request, inner)


class FunctionMiddleware(Middleware):
    """
    Adapts a plain (request, next) function:

        def no_cache(request, next):
            response = next(request)
            response.set_header("Cache-Control", "no-store")
            return response

        server.use(FunctionMiddleware(no_cache))
    """

    def __init__(self, func: MiddlewareFunc, name: Optional[str] = None):
        self.func = func
        self._label = name or getattr(func, "__name__", type(self).__name__)

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        return self.func(request, next)

    @property
    def name(self) -> str:
        return self._label


def function_middleware(func: MiddlewareFunc) -> FunctionMiddleware:
    """Decorator form of FunctionMiddleware."""
    return FunctionMiddleware(func)

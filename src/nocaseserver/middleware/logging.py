"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One line per request on the "nocaseserver.access" logger, in Apache-like
text or JSON:

    text:
    127.0.0.1 - - [19/Oct/2026:10:00:00 +0000] "GET /IMG/Logo.PNG" 200 5120 0.41ms
    127.0.0.1 - - [19/Oct/2026:10:00:01 +0000] "GET /video.mp4" 206 1048576 0.38ms range=bytes=0-1048575

    json:
    {"request_id": "a1b2c3d4", "method": "GET", "path": "/IMG/Logo.PNG", ...}

The size is what the response announces (Content-Length), not len(body):
file bodies are streamed after this middleware has returned.

Access logs use their own logger name, so they can be routed or silenced
separately from the server's operational logs:

    logging.getLogger("nocaseserver.access").setLevel(logging.WARNING)

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import dataclass, asdict
from typing import Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("nocaseserver.access")

TIMESTAMP_FORMAT = "%d/%b/%Y:%H:%M:%S %z"


@dataclass
class RequestLog:
    """One access log entry."""

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str
    range: Optional[str] = None

    def to_dict(self) -> dict:
        fields = asdict(self)
        fields["duration_ms"] = round(self.duration_ms, 2)
        if self.range is None:
            fields.pop("range")
        return fields

    def to_text(self) -> str:
        request_line = f"{self.method} {self.path}"
        text = (
            f"{self.client_ip} - - [{self.timestamp}] \"{request_line}\" "
            f"{self.status_code} {self.content_length} {self.duration_ms:.2f}ms"
        )
        return text if self.range is None else f"{text} range={self.range}"


class LoggingMiddleware(Middleware):
    """
    Access log middleware. HTTPServer installs it as the outermost layer.

    Handler exceptions are logged at ERROR and re-raised for the server
    to turn into a 500.
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = False,
        log_level: int = logging.INFO,
    ):
        """
        Args:
            log_format: "text" or "json".
            include_request_id: Echo the generated ID as X-Request-ID.
            log_level: Level access lines are logged at.
        """
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            logger.error(
                f"[{request_id}] {request.method} {request.path} failed after "
                f"{_elapsed_ms(started):.2f}ms: {type(e).__name__}: {e}"
            )
            raise

        entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0] or "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=response.content_length,
            duration_ms=_elapsed_ms(started),
            timestamp=time.strftime(TIMESTAMP_FORMAT),
            range=request.range,
        )
        line = json.dumps(entry.to_dict()) if self.log_format == "json" else entry.to_text()
        logger.log(self.log_level, line)

        if self.include_request_id:
            response.set_header("X-Request-ID", request_id)
        return response


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000

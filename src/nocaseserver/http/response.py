"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses, either with an in-memory body (error pages)
or with a file body that the connection streams from disk.

=============================================================================
TWO KINDS OF BODY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     IN-MEMORY VS STREAMED BODY                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   body=b"Not found"               file=FileBody(path, 900, 100)     │
    │   ─────────────────               ─────────────────────────────     │
    │   Small, generated here           Lives on disk, may be gigabytes   │
    │   to_bytes() = head + body        head_bytes() sent first, then     │
    │                                   the connection copies the slice   │
    │                                   chunk by chunk                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A response never has both. For a file body, Content-Length is set by the
handler (the file size or the range length), never computed from `body`.

=============================================================================
BUILDER PATTERN
=============================================================================

    response = (ResponseBuilder()
        .status(HTTPStatus.PARTIAL_CONTENT)
        .header("Content-Range", "bytes 0-99/1000")
        .file("/srv/www/video.mp4", offset=0, length=100)
        .build())

Each method returns the builder; build() returns the HTTPResponse.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional, Dict, Union

from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "nocase-server/1.0"

ALLOWED_METHODS = ["GET", "HEAD"]

NOT_FOUND_HTML = """<!DOCTYPE html>
<html>
<head><title>404 - File not found</title></head>
<body>
<h1>404 - File not found</h1>
<p>The requested file could not be found.</p>
</body>
</html>"""

NOT_FOUND_TEXT = "Not found"

INTERNAL_ERROR_TEXT = "Internal error"


@dataclass(frozen=True)
class FileBody:
    """
    A slice of a file on disk, to be streamed after the headers.

    Attributes:
        path: Absolute path of the file.
        offset: First byte to send.
        length: Number of bytes to send.
    """
    path: str
    offset: int
    length: int


@dataclass
class HTTPResponse:
    """
    An HTTP response to be sent to the client.

        Handler returns        head_bytes()             Connection
        HTTPResponse   ─────►  status line + headers ─► sendall(head)
                               body / file           ─► sendall(body) or
                                                        send_file(file)
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    file: Optional[FileBody] = None
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 206 Partial Content" """
        return f"{self.version} {self.status.value} {self.status.phrase}"

    @property
    def content_length(self) -> int:
        """Number of body bytes this response announces."""
        if "Content-Length" in self.headers:
            return int(self.headers["Content-Length"])
        if self.file is not None:
            return self.file.length
        return len(self.body)

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def without_body(self) -> "HTTPResponse":
        """
        Drop the body but keep every header (HEAD requests).

        Content-Length is pinned first, so a HEAD response announces
        exactly what the GET would have sent.
        """
        self.headers.setdefault("Content-Length", str(self.content_length))
        self.body = b""
        self.file = None
        return self

    def head_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the status line and headers, ending with the blank line.

        Adds Content-Length, Date and Server when the handler didn't.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(self.content_length)
        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        return "\r\n".join(lines).encode("utf-8") + b"\r\n"

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """Headers plus the in-memory body. File bodies are not included."""
        return self.head_bytes(server_name) + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.NOT_FOUND)
            .text("Not found")
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._file: Optional[FileBody] = None

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Raw body; strings are encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self._file = None
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._headers["Content-Type"] = content_type
        return self.body(text)

    def html(self, html: str) -> "ResponseBuilder":
        self._headers["Content-Type"] = "text/html; charset=utf-8"
        return self.body(html)

    def file(self, path: str, offset: int, length: int) -> "ResponseBuilder":
        """
        Stream `length` bytes of `path` starting at `offset`.

        Also sets Content-Length to `length`.
        """
        self._file = FileBody(path, offset, length)
        self._body = b""
        self._headers["Content-Length"] = str(length)
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
            file=self._file,
        )


def format_http_date(dt: datetime) -> str:
    """HTTP-date (RFC 7231) for an aware UTC datetime: Wed, 01 Jan 2026 12:00:00 GMT"""
    return format_datetime(dt, usegmt=True)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def not_found(plain: bool = False) -> HTTPResponse:
    """
    404 Not Found, as an HTML page or the literal "Not found".

    Used for every "absent" outcome: missing files, traversal attempts,
    symlink escapes and missing directory indexes all look the same.
    """
    builder = ResponseBuilder().status(HTTPStatus.NOT_FOUND)
    if plain:
        builder.text(NOT_FOUND_TEXT)
    else:
        builder.html(NOT_FOUND_HTML)
    return builder.build()


def method_not_allowed(allowed_methods: Optional[list[str]] = None) -> HTTPResponse:
    """405 Method Not Allowed with an Allow header and no body."""
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods or ALLOWED_METHODS))
        .build())


def range_not_satisfiable(content_range: str) -> HTTPResponse:
    """416 Range Not Satisfiable with `Content-Range: bytes */size`."""
    return (ResponseBuilder()
        .status(HTTPStatus.RANGE_NOT_SATISFIABLE)
        .header("Content-Range", content_range)
        .build())


def internal_error() -> HTTPResponse:
    """500 with a generic body. Details go to the server log only."""
    return (ResponseBuilder()
        .status(HTTPStatus.INTERNAL_SERVER_ERROR)
        .text(INTERNAL_ERROR_TEXT)
        .build())


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """
    Plain-text error for failures outside the handler (parse errors,
    timeouts, overload). Always closes the connection.
    """
    builder = ResponseBuilder().status(status).close_connection()
    if status == HTTPStatus.METHOD_NOT_ALLOWED:
        builder.header("Allow", ", ".join(ALLOWED_METHODS))
    return builder.text(message).build()

"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes read from a socket into an HTTPRequest.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /IMG/Logo.PNG?v=3 HTTP/1.1\r\n     ← Request line              │
    │  Host: localhost:8080\r\n               ┐                           │
    │  Range: bytes=0-99\r\n                  ├ Headers                   │
    │  Connection: keep-alive\r\n             ┘                           │
    │  \r\n                                   ← Blank line                │
    │  (no body for GET/HEAD)                                             │
    └─────────────────────────────────────────────────────────────────────┘

A static file server cares about very little of this: the method, the
decoded path, the Range header and whether to keep the connection open.

=============================================================================
WHAT THE PARSER DOES NOT DO
=============================================================================

It does not reject ".." in paths. Traversal is handled by the resolver,
which answers 404 like any other missing file. A parser-level 400 would
tell a scanner "you found something interesting".

=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote, urlsplit


Address = Tuple[str, int]

DEFAULT_MAX_REQUEST_SIZE = 10 * 1024 * 1024

SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")


class HTTPParseError(Exception):
    """
    Raised when an HTTP request cannot be parsed.

    Carries the status code the server should answer with:

        400 Bad Request                - Malformed request syntax
        405 Method Not Allowed         - Unknown method
        413 Payload Too Large          - Request exceeds size limit
        505 HTTP Version Not Supported - Unknown HTTP version
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Header names are stored lowercase. `path` is percent-decoded and
    carries no query string or fragment.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    client_address: Address = ("", 0)
    raw: bytes = b""

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    @property
    def host(self) -> str:
        return self.get_header("host")

    @property
    def user_agent(self) -> str:
        return self.get_header("user-agent")

    @property
    def range(self) -> Optional[str]:
        """Raw Range header value, None if the client sent none."""
        return self.headers.get("range")

    @property
    def is_head(self) -> bool:
        return self.method == "HEAD"

    @property
    def is_keep_alive(self) -> bool:
        """
        HTTP/1.1 keeps alive unless "Connection: close".
        HTTP/1.0 closes unless "Connection: keep-alive".
        """
        token = self.get_header("connection").strip().lower()
        if self.version == "HTTP/1.0":
            return token == "keep-alive"
        return token != "close"


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    Usage:
        parser = RequestParser(max_request_size=64 * 1024)
        request = parser.parse(raw_bytes, ("127.0.0.1", 54321))
    """

    KNOWN_METHODS = frozenset({
        "GET", "HEAD", "POST", "PUT", "DELETE",
        "PATCH", "OPTIONS", "TRACE", "CONNECT",
    })

    REQUEST_LINE = re.compile(r"([A-Z]+) (\S+) (HTTP/[0-9]\.[0-9])")

    def __init__(self, max_request_size: int = DEFAULT_MAX_REQUEST_SIZE):
        self.max_request_size = max_request_size

    def parse(self, data: bytes, client_address: Address = ("", 0)) -> HTTPRequest:
        """
        Parse raw HTTP request data.

        Args:
            data: Raw request bytes (headers and body).
            client_address: Client's (ip, port) for logging.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(f"Request too large: {len(data)} bytes", status_code=413)

        head, terminator, rest = data.partition(b"\r\n\r\n")
        if not terminator:
            raise HTTPParseError("Incomplete request: no header terminator")

        request_line, *header_lines = head.decode("utf-8", errors="replace").split("\r\n")
        method, target, version = self._split_request_line(request_line)
        path = self._target_path(target)
        headers = self._collect_headers(header_lines)

        declared = headers.get("content-length", "0").strip()
        if not (declared.isascii() and declared.isdigit()):
            raise HTTPParseError(f"Invalid Content-Length header: {declared!r}")
        if len(rest) < int(declared):
            raise HTTPParseError(
                f"Incomplete body: expected {declared} bytes, got {len(rest)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            body=rest[:int(declared)],
            client_address=client_address,
            raw=data,
        )

    def _split_request_line(self, line: str) -> Tuple[str, str, str]:
        match = self.REQUEST_LINE.fullmatch(line)
        if match is None:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, target, version = match.groups()
        if method not in self.KNOWN_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)
        if version not in SUPPORTED_VERSIONS:
            raise HTTPParseError(f"Unsupported HTTP version: {version}", status_code=505)
        return method, target, version

    @staticmethod
    def _target_path(target: str) -> str:
        """
        Decoded path of a request target, without query or fragment.

        =====================================================================
        REQUEST TARGET FORMS
        =====================================================================

            origin-form:    /img/logo.png?v=3
            absolute-form:  http://example.com/img/logo.png   (proxies)

        Only the path matters to us. Origin-form targets are split by
        hand instead of with urlsplit(), because urlsplit("//img/logo.png")
        would read "img" as a host name.

        =====================================================================
        """
        if target.startswith(("http://", "https://")):
            raw_path = urlsplit(target).path
        else:
            raw_path = target.split("#", 1)[0].partition("?")[0]
        return unquote(raw_path) or "/"

    @staticmethod
    def _collect_headers(lines: List[str]) -> Dict[str, str]:
        """
        Lowercase-named header dict. Repeats are joined with ", ",
        folded continuation lines are appended, malformed lines skipped.
        """
        headers: Dict[str, str] = {}
        last: Optional[str] = None

        for line in filter(None, lines):
            if line[0] in " \t":
                if last is not None:
                    headers[last] = f"{headers[last]} {line.strip()}"
                continue

            name, colon, value = line.partition(":")
            name = name.strip().lower()
            if not colon or not name:
                continue

            value = value.strip()
            headers[name] = f"{headers[name]}, {value}" if name in headers else value
            last = name

        return headers


def parse_request(
    data: bytes,
    client_address: Address = ("", 0),
    max_size: int = DEFAULT_MAX_REQUEST_SIZE,
) -> HTTPRequest:
    """Parse a request in one call with a throwaway RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)

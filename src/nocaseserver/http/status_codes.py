"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes a static file server actually emits, with their reason
phrases for the response status line.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ Code │ When we send it                                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │ 200  │ Whole file served                                            │
    │ 206  │ Valid Range header, slice of the file served                 │
    │ 400  │ Request line or headers could not be parsed                  │
    │ 404  │ Nothing resolves (missing, traversal, symlink escape)        │
    │ 405  │ Anything other than GET or HEAD                              │
    │ 408  │ Client too slow to send its request                          │
    │ 413  │ Request larger than max_request_size                         │
    │ 416  │ Range header present but unsatisfiable                       │
    │ 500  │ Unexpected filesystem or I/O failure                         │
    │ 503  │ Worker pool queue full                                       │
    │ 505  │ Not HTTP/1.0 or HTTP/1.1                                     │
    └─────────────────────────────────────────────────────────────────────┘

Note there is no 403: a file we refuse to serve looks exactly like a
file that doesn't exist.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.PARTIAL_CONTENT == 206
        True
        >>> HTTPStatus.PARTIAL_CONTENT.phrase
        'Partial Content'
    """

    # 2xx Success
    OK = 200
    PARTIAL_CONTENT = 206                # Range request fulfilled

    # 4xx Client Errors
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    RANGE_NOT_SATISFIABLE = 416

    # 5xx Server Errors
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line, e.g. "Not Found"."""
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Range Not Satisfiable",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}

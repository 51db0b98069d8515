"""
=============================================================================
HTTP MODULE
=============================================================================

HTTP/1.1 protocol pieces: request parsing, response building, status
codes, MIME types and Range header handling.

    Raw bytes ──► RequestParser ──► HTTPRequest ──► handler
                                                      │
    Socket   ◄──  head_bytes() + body/file  ◄── HTTPResponse

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    FileBody,
    not_found,           # 404 Not Found (HTML or plain)
    method_not_allowed,  # 405 Method Not Allowed
    range_not_satisfiable,  # 416 Range Not Satisfiable
    internal_error,      # 500 Internal error
    error_response,
    format_http_date,
)
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_type, ContentTypeLookup
from .ranges import ByteRange, parse_range, unsatisfied_range

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",
    "HTTPResponse",
    "ResponseBuilder",
    "FileBody",
    "not_found",
    "method_not_allowed",
    "range_not_satisfiable",
    "internal_error",
    "error_response",
    "format_http_date",
    "HTTPStatus",
    "get_mime_type",
    "get_content_type",
    "ContentTypeLookup",
    "ByteRange",
    "parse_range",
    "unsatisfied_range",
]

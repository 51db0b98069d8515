"""
=============================================================================
CASE-INSENSITIVE STATIC FILE HANDLER
=============================================================================

Serves files from a root directory, resolving request paths without
regard to case, with SPA fallback and byte-range support.

=============================================================================
REQUEST STATE MACHINE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   METHOD_CHECK ──(not GET/HEAD)──────────────────────────► 405      │
    │        │                                                             │
    │        ▼                                                             │
    │   RESOLVE ──(miss)──► SPA? ──► resolve ["index.html"] ──(miss)► 404 │
    │        │                              │                              │
    │        ▼ ◄────────────────────────────┘                              │
    │   SAFETY_CHECK ──(symlink escapes root)──────────────────► 404      │
    │        │                                                             │
    │        ▼                                                             │
    │   DIRECTORY? ──► resolve ["index.html"] inside ──(miss)──► 404      │
    │        │                                                             │
    │        ▼                                                             │
    │   STAT ──► RANGE_DECISION                                           │
    │              ├── no Range header ─────────────────────────► 200     │
    │              ├── valid Range ─────────────────────────────► 206     │
    │              └── invalid Range ───────────────────────────► 416     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SECURITY: ONE ANSWER FOR EVERY "NO"
=============================================================================

Traversal attempts, symlink escapes, unreadable directories and plain
typos all produce the same 404. A distinct 403 would let an attacker
map which paths exist outside the web root.

    GET /../../etc/passwd             → 404   (".." segment)
    GET /escape.txt  (→ /etc/passwd)  → 404   (symlink escape)
    GET /missing.txt                  → 404   (absent)

=============================================================================
SPA FALLBACK
=============================================================================

Single-page apps route on the client: /dashboard/settings has no file
on disk, the browser just needs index.html. With `spa=True` every path
that does not resolve is answered with the root index.html (status 200).

=============================================================================
"""

import os
import stat
import logging
from typing import Optional

from ..fs import (
    CaseInsensitiveResolver,
    Found,
    ResolutionCache,
    check_symlink_safety,
)
from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse,
    ResponseBuilder,
    HTTPStatus,
    ALLOWED_METHODS,
    not_found,
    method_not_allowed,
    range_not_satisfiable,
    internal_error,
)
from ..http.mime_types import get_content_type, ContentTypeLookup
from ..http.ranges import parse_range, unsatisfied_range


logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"


class NocaseStaticHandler:
    """
    Request handler for case-insensitive static file serving.

    =========================================================================
    USAGE
    =========================================================================

        cache = ResolutionCache(2000)
        handler = NocaseStaticHandler("/srv/www", cache=cache, spa=False)

        response = handler.handle(request)

    The handler is stateless per request and safe to call from many
    worker threads at once; the only shared state is the cache.

    =========================================================================
    """

    def __init__(
        self,
        root_dir: str,
        spa: bool = True,
        plain_404: bool = False,
        cache: Optional[ResolutionCache] = None,
        resolver: Optional[CaseInsensitiveResolver] = None,
        content_type: ContentTypeLookup = get_content_type,
    ):
        """
        Args:
            root_dir: Directory to serve. Made absolute; must exist.
            spa: Serve the root index.html for paths that don't resolve.
            plain_404: Answer 404 with "Not found" instead of an HTML page.
            cache: Resolution cache shared with other handlers (optional).
            resolver: Pre-built resolver; overrides `cache` when given.
            content_type: Function mapping a file path to Content-Type.
        """
        self.root_dir = os.path.abspath(root_dir)
        self.spa = spa
        self.plain_404 = plain_404
        self.resolver = resolver or CaseInsensitiveResolver(cache)
        self.content_type = content_type

        if not os.path.isdir(self.root_dir):
            raise ValueError(f"Root directory does not exist: {root_dir}")

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Answer one request.

        Never raises: unexpected errors are logged and become a 500.
        """
        # ─────────────────────────────────────────────────────────────────
        # METHOD CHECK
        # ─────────────────────────────────────────────────────────────────
        if request.method not in ALLOWED_METHODS:
            return method_not_allowed()

        try:
            response = self._serve(request)
        except (FileNotFoundError, NotADirectoryError):
            # Deleted between resolution and stat/open
            response = self._not_found()
        except Exception:
            logger.exception(f"Error serving {request.path}")
            response = internal_error()

        if request.is_head:
            response.without_body()
        return response

    def _serve(self, request: HTTPRequest) -> HTTPResponse:
        # ─────────────────────────────────────────────────────────────────
        # RESOLVE (with SPA fallback)
        # ─────────────────────────────────────────────────────────────────
        path = self._locate(split_segments(request.path))
        if path is None:
            return self._not_found()

        # ─────────────────────────────────────────────────────────────────
        # STAT
        # ─────────────────────────────────────────────────────────────────
        st = os.stat(path)
        if not stat.S_ISREG(st.st_mode):
            return self._not_found()

        size = st.st_size
        content_type = self.content_type(path)

        # ─────────────────────────────────────────────────────────────────
        # RANGE DECISION
        # ─────────────────────────────────────────────────────────────────
        range_header = request.range
        if not range_header:
            return (ResponseBuilder()
                .status(HTTPStatus.OK)
                .content_type(content_type)
                .header("Accept-Ranges", "bytes")
                .file(path, 0, size)
                .build())

        byte_range = parse_range(range_header, size)
        if byte_range is None:
            logger.debug(f"Unsatisfiable range {range_header!r} for {path} ({size} bytes)")
            return range_not_satisfiable(unsatisfied_range(size))

        return (ResponseBuilder()
            .status(HTTPStatus.PARTIAL_CONTENT)
            .content_type(content_type)
            .header("Accept-Ranges", "bytes")
            .header("Content-Range", byte_range.content_range(size))
            .file(path, byte_range.start, byte_range.length)
            .build())

    def _locate(self, segments: list[str]) -> Optional[str]:
        """
        Turn request segments into a safe, real path of something to serve.

        Returns None for every flavour of "not there".
        """
        result = self.resolver.resolve(self.root_dir, segments)
        if not isinstance(result, Found) and self.spa:
            result = self.resolver.resolve(self.root_dir, [INDEX_FILE])
        if not isinstance(result, Found):
            return None

        path = check_symlink_safety(self.root_dir, result.path)
        if path is None:
            return None

        if os.path.isdir(path):
            index = self.resolver.resolve(path, [INDEX_FILE])
            if not isinstance(index, Found):
                return None
            path = check_symlink_safety(self.root_dir, index.path)

        return path

    def _not_found(self) -> HTTPResponse:
        return not_found(plain=self.plain_404)


def split_segments(url_path: str) -> list[str]:
    """
    Split a decoded URL path into non-empty segments.

        >>> split_segments("/img//Logo.PNG/")
        ['img', 'Logo.PNG']
        >>> split_segments("/")
        []
    """
    return [seg for seg in url_path.split("/") if seg]


def serve_nocase(root_dir: str, **kwargs) -> NocaseStaticHandler:
    """
    Create a case-insensitive static file handler.

    Example:
        handler = serve_nocase("/srv/www", spa=False, plain_404=True)
    """
    return NocaseStaticHandler(root_dir, **kwargs)

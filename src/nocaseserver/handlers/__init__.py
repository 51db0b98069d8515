"""
=============================================================================
REQUEST HANDLERS
=============================================================================

NocaseStaticHandler / serve_nocase()
    Serves a directory tree, matching every path segment to the disk
    entry whose name is equal ignoring case. SPA fallback, byte ranges,
    HEAD, and a uniform 404 for anything missing or unsafe.

=============================================================================
USAGE
=============================================================================

    from nocaseserver.handlers import serve_nocase

    handler = serve_nocase("/srv/www", plain_404=True)
    response = handler.handle(request)

=============================================================================
"""

from .static import NocaseStaticHandler, serve_nocase, split_segments

__all__ = [
    "NocaseStaticHandler",
    "serve_nocase",
    "split_segments",
]

"""
=============================================================================
NOCASE-SERVER
=============================================================================

A static file server that ignores case in URL paths, for sites built on
case-insensitive file systems (Windows, macOS) and deployed on
case-sensitive ones (Linux):

    GET /Images/Logo.PNG   ──►   ./dist/images/logo.png     200

=============================================================================
PACKAGE LAYOUT
=============================================================================

    nocaseserver/
    ├── __init__.py         ← You are here
    ├── __main__.py         ← CLI: python -m nocaseserver [folder] -p 8080
    ├── config.py           ← ServerConfig (defaults, env, validation)
    ├── server.py           ← HTTPServer: wires everything together
    │
    ├── fs/                 ← Path resolution (no HTTP in here)
    │   ├── safety.py       ← is_inside, check_symlink_safety
    │   ├── cache.py        ← ResolutionCache (bounded, FIFO eviction)
    │   └── resolver.py     ← CaseInsensitiveResolver
    │
    ├── http/               ← Protocol
    │   ├── request.py      ← RequestParser, HTTPRequest
    │   ├── response.py     ← HTTPResponse, ResponseBuilder, FileBody
    │   ├── ranges.py       ← Range header parsing
    │   ├── status_codes.py
    │   └── mime_types.py
    │
    ├── core/               ← Networking
    │   ├── socket_server.py
    │   ├── connection.py   ← buffered reads, chunked file streaming
    │   └── thread_pool.py
    │
    ├── handlers/
    │   └── static.py       ← NocaseStaticHandler
    │
    └── middleware/
        ├── base.py
        └── logging.py      ← access log

=============================================================================
QUICK START
=============================================================================

    from nocaseserver import HTTPServer, ServerConfig

    HTTPServer(ServerConfig(root_dir="./dist", port=8080)).run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer, create_app
from .config import ServerConfig
from .handlers import NocaseStaticHandler, serve_nocase
from .fs import ResolutionCache, CaseInsensitiveResolver, resolve_nocase_safe

__all__ = [
    "HTTPServer",
    "create_app",
    "ServerConfig",
    "NocaseStaticHandler",
    "serve_nocase",
    "ResolutionCache",
    "CaseInsensitiveResolver",
    "resolve_nocase_safe",
    "__version__",
]

"""
=============================================================================
CORE MODULE: Networking
=============================================================================

    ┌───────────────┐   Connection   ┌────────────┐   worker thread
    │ SocketServer  │ ─────────────► │ ThreadPool │ ─────────────────►
    │ accept loop   │                │   queue    │   HTTPServer._handle_connection
    └───────────────┘                └────────────┘

SocketServer accepts, Connection does per-client I/O (including file
streaming), ThreadPool runs one task per connection.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]

"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket: bind, listen, accept, and hand each accepted
client to a callback as a Connection.

=============================================================================
SOCKET LIFECYCLE
=============================================================================

    bind()   ──► listen() ──► accept() loop ──► close()
       │                          │
       │                          └── one new socket per client,
       │                              wrapped in a Connection
       │
       └── port 0 asks the OS for a free port; the real one is read
           back with getsockname() (tests rely on this)

The accept() call has a 1 second timeout so the loop can notice that
shutdown() was called without needing a wake-up connection.

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR  Rebind right after a restart, ignoring TIME_WAIT.
TCP_NODELAY   Send small responses (404s, HEAD) without Nagle delay.

SO_REUSEPORT is not set, so a second server on the same port fails with
"Address already in use" instead of splitting traffic with the first.

=============================================================================
SIGNALS
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, systemd) trigger shutdown().
Python only allows installing handlers from the main thread, so when the
server runs in a background thread (tests, embedding) the handlers are
left alone and the owner calls shutdown() itself.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Dict, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ACCEPT_TIMEOUT = 1.0
SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)

ConnectionHandler = Callable[[Connection], None]


class SocketServer:
    """
    Listening socket plus accept loop.

    Usage:
        server = SocketServer(config)
        server.bind()                    # optional; start() binds too
        server.start(pool_submit)        # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._listener: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None
        self._accepting = False
        self._ready_event = threading.Event()
        self._previous_handlers: Dict[int, object] = {}

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); the configured one before bind()."""
        return self._bound_address or (self.config.host, self.config.port)

    @property
    def port(self) -> int:
        return self.address[1]

    def bind(self):
        """
        Create, bind and listen.

        Separate from start() so callers can learn the real port (and
        see bind errors such as EADDRINUSE) before the accept loop runs.

        Raises:
            OSError: If the address can't be bound.
        """
        if self._listener is not None:
            return

        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        listener.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        listener.settimeout(ACCEPT_TIMEOUT)

        target = (self.config.host, self.config.port)
        try:
            listener.bind(target)
            listener.listen(self.config.backlog)
        except OSError as e:
            listener.close()
            logger.error(f"Cannot listen on {target[0]}:{target[1]}: {e}")
            raise

        self._listener = listener
        self._bound_address = listener.getsockname()[:2]

    def start(self, on_connection: ConnectionHandler):
        """
        Bind if needed, then accept until shutdown() is called.

        Args:
            on_connection: Called with each new Connection, on the
                           accepting thread. It should hand the
                           connection off quickly (to a pool).
        """
        self.bind()
        self._accepting = True
        self._install_signal_handlers()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            while self._accepting:
                conn = self._accept()
                if conn is not None:
                    on_connection(conn)
        finally:
            self._close()

    def shutdown(self):
        """Stop the accept loop. Idempotent, callable from any thread."""
        if self._accepting:
            logger.info("Shutting down socket server...")
        self._accepting = False

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop is running. False on timeout."""
        return self._ready_event.wait(timeout)

    def _accept(self) -> Optional[Connection]:
        """Next client as a Connection; None on timeout or listener error."""
        try:
            client, peer = self._listener.accept()
        except socket.timeout:
            return None
        except OSError as e:
            if self._accepting:
                logger.error(f"Accept failed: {e}")
            self._accepting = False
            return None

        logger.debug(f"Accepted {peer[0]}:{peer[1]}")
        return Connection(
            socket=client,
            address=peer,
            buffer_size=self.config.buffer_size,
            timeout=self.config.timeout,
            keep_alive_timeout=self.config.keep_alive_timeout,
            max_request_size=self.config.max_request_size,
            chunk_size=self.config.chunk_size,
        )

    def _install_signal_handlers(self):
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, leaving signal handlers alone")
            return

        def on_signal(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down")
            self.shutdown()

        for signum in SHUTDOWN_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, on_signal)

    def _close(self):
        while self._previous_handlers:
            signum, handler = self._previous_handlers.popitem()
            signal.signal(signum, handler)

        if self._listener is not None:
            self._listener.close()
            self._listener = None

        self._ready_event.clear()
        logger.info("Socket server stopped")

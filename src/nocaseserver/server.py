"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer ──accept──► ThreadPool ──► _process_connection       │
    │                                                │                     │
    │                     ┌──────────────────────────┘                     │
    │                     ▼                                                │
    │   Connection.read_request() ──► RequestParser.parse()               │
    │                     │                                                │
    │                     ▼                                                │
    │   MiddlewarePipeline ──► NocaseStaticHandler.handle()               │
    │                     │            │                                   │
    │                     │            └── CaseInsensitiveResolver         │
    │                     │                    └── ResolutionCache         │
    │                     ▼                                                │
    │   send head_bytes() ──► send body, or stream FileBody from disk     │
    │                     │                                                │
    │                     └── keep-alive? loop : close                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

One ResolutionCache is shared by every worker thread for the lifetime
of the server.

=============================================================================
HEAD REQUESTS
=============================================================================

HEAD gets the same status and headers as GET, including Content-Length,
and never a body. The handler already drops it; the server drops it
again for any response a middleware may have produced.

=============================================================================
"""

import logging
from typing import Optional, Callable

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .core.connection import ConnectionState
from .fs import ResolutionCache
from .handlers import NocaseStaticHandler
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus,
    error_response, internal_error,
)
from .middleware import MiddlewarePipeline, Middleware, LoggingMiddleware


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Case-insensitive static file server.

    =========================================================================
    USAGE
    =========================================================================

        server = HTTPServer(ServerConfig(root_dir="./dist", port=8080))
        server.run()                       # blocks until Ctrl+C

    In tests, on a background thread:

        server = HTTPServer(ServerConfig(root_dir=tmp, port=0))
        threading.Thread(target=server.run, daemon=True).start()
        server.wait_until_ready(5)
        url = f"http://127.0.0.1:{server.port}/"
        ...
        server.shutdown()

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        handler: Optional[NocaseStaticHandler] = None,
    ):
        """
        Args:
            config: Server configuration. Defaults serve the current directory.
            handler: Pre-built file handler; built from config when omitted.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        if handler is None:
            handler = NocaseStaticHandler(
                self.config.root_dir,
                spa=self.config.spa,
                plain_404=self.config.plain_404,
                cache=ResolutionCache(self.config.cache_size),
            )
        self.handler = handler
        # None when a pre-built handler runs without a cache
        self.cache: Optional[ResolutionCache] = handler.resolver.cache

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))

        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False

    def use(self, middleware: Middleware) -> "HTTPServer":
        """
        Add middleware between the access logger and the file handler.

        Must be called before run().
        """
        self._middleware.add(middleware)
        return self

    @property
    def port(self) -> int:
        """The bound port; the configured one until the socket is bound."""
        return self._socket_server.port

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server accepts connections. False on timeout."""
        return self._socket_server.wait_until_ready(timeout)

    def run(self, configure_logging: bool = True):
        """
        Start the server (blocking) until shutdown() or a signal.

        Raises:
            OSError: If the port can't be bound (e.g. already in use).
        """
        if configure_logging:
            self._setup_logging()

        self._socket_server.bind()

        self._handler = self._middleware.wrap(self.handler.handle)
        self._running = True
        self._thread_pool.start()

        logger.info(
            f"nocase-server » http://{self.config.host}:{self.port}  "
            f"(root: {self.config.root_dir})"
        )
        logger.debug(
            f"spa={self.config.spa} plain_404={self.config.plain_404} "
            f"cache={self.config.cache_size} "
            f"workers={self.config.min_workers}-{self.config.max_workers}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask the server to stop. Safe to call from any thread."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("nocaseserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=self.config.keep_alive_timeout + 1)
        logger.info("Server stopped")

    def _handle_connection(self, conn: Connection):
        """Hand a new connection to the pool, or answer 503 if it's full."""
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            block=False,
        )
        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Serve every request on one connection (runs in a worker thread).

            read → parse → handle → send → keep-alive? ─┐
              ▲                                          │
              └──────────────────────────────────────────┘
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except ValueError as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.debug(f"[{conn.id}] Parse error: {e}")
                    self._send_error(conn, HTTPStatus(e.status_code), str(e))
                    break

                conn.state = ConnectionState.PROCESSING
                response = self._dispatch(conn, request)

                keep_alive = request.is_keep_alive and self.config.keep_alive
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive",
                        f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if not self._send(conn, response):
                    break

                if not keep_alive or response.headers.get("Connection") == "close":
                    break

                conn.set_keep_alive()

    def _dispatch(self, conn: Connection, request: HTTPRequest) -> HTTPResponse:
        try:
            response = self._handler(request)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            response = internal_error()

        if request.is_head:
            response.without_body()
        return response

    def _send(self, conn: Connection, response: HTTPResponse) -> bool:
        """Send headers, then the in-memory body or the file slice."""
        if response.file is None:
            return conn.send_response(response.to_bytes(self.config.server_name))

        if not conn.send_response(response.head_bytes(self.config.server_name)):
            return False
        return conn.send_file(response.file)

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Error for failures before a request reaches the handler."""
        response = error_response(status, message)
        conn.send_response(response.to_bytes(self.config.server_name))


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Create a server instance.

    Example:
        app = create_app(ServerConfig(root_dir="./public", spa=False))
        app.run()
    """
    return HTTPServer(config)

"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: buffered request reading, response
writing, file streaming and an orderly close.

=============================================================================
READING: TCP IS A BYTE STREAM
=============================================================================

recv() returns whatever the kernel has, not "one request". A request
line can arrive in three pieces, or two pipelined requests in one:

    recv() → b"GET /IMG/lo"
    recv() → b"go.png HTTP/1.1\r\nHost: x\r\n\r\nHEAD / HTTP/1.1\r\n..."

So bytes accumulate in a buffer until the header terminator appears.
Whatever follows the current request stays in the buffer for the next
read_request() call.

=============================================================================
WRITING: STREAMING FILES WITH BACKPRESSURE
=============================================================================

A 2 GB video must not be read into memory. send_file() copies a slice
of the file one chunk at a time:

    ┌──────────┐  read(64 KiB)  ┌────────┐  sendall()  ┌──────────────┐
    │   file   │ ─────────────► │ chunk  │ ──────────► │ client socket│
    └──────────┘                └────────┘             └──────────────┘
         ▲                                                    │
         └───────────── next read only after sendall() ◄──────┘
                        returns (kernel buffer drained)

sendall() blocks while the client's receive window is full, so a slow
client slows down the disk reads instead of filling our memory. At
most one chunk per connection is in flight.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► KEEP_ALIVE ──┐
     │         │                          │                      │
     │         ▼                          ▼                      │
     └─────► CLOSING ◄────────────────────┴──────────────────────┘
               │
               ▼
             CLOSED

=============================================================================
"""

import socket
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..http.response import FileBody


logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"

DEFAULT_CHUNK_SIZE = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and shutdown."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used in log lines.
        state: Current connection state.
        requests_handled: Number of requests read so far.
        chunk_size: Bytes read from disk per sendall() when streaming.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: float = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 64 * 1024
    chunk_size: int = DEFAULT_CHUNK_SIZE

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request from the socket.

        Returns:
            The request bytes (headers and body), or None when the client
            closed the connection or an idle keep-alive connection timed out.

        Raises:
            TimeoutError: The first request did not arrive in time.
            ValueError: The request exceeds max_request_size.
        """
        self.state = ConnectionState.READING

        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            while HEADER_TERMINATOR not in self._buffer:
                if not self._fill():
                    return None

            header_end = self._buffer.find(HEADER_TERMINATOR)
            body_start = header_end + len(HEADER_TERMINATOR)
            content_length = self._parse_content_length(self._buffer[:header_end])

            while len(self._buffer) - body_start < content_length:
                if not self._fill():
                    break

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")

        finally:
            self.socket.settimeout(self.timeout)

    def _fill(self) -> bool:
        """Append one recv() worth of data to the buffer. False on EOF."""
        try:
            chunk = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return False
        if not chunk:
            return False

        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise ValueError(f"Request too large: {len(self._buffer)} bytes")
        return True

    def _parse_content_length(self, headers: bytes) -> int:
        """
        Find Content-Length in raw header bytes, 0 if absent.

        The full parser validates the value later; here a bad value
        only means "no body to wait for".
        """
        header_str = headers.decode("latin-1").lower()
        for line in header_str.split("\r\n"):
            if line.startswith("content-length:"):
                value = line.split(":", 1)[1].strip()
                return int(value) if value.isascii() and value.isdigit() else 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send bytes to the client.

        Returns:
            True if everything was sent, False if the client went away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False
        return True

    def send_file(self, body: FileBody) -> bool:
        """
        Stream `body.length` bytes of a file, starting at `body.offset`.

        Only one chunk is held in memory at a time. Stops early, without
        raising, when the client disconnects or the file can't be read
        (the headers are already out, so the only option left is to
        drop the connection).

        Returns:
            True if the whole slice was sent.
        """
        self.state = ConnectionState.WRITING
        remaining = body.length

        try:
            with open(body.path, "rb") as f:
                f.seek(body.offset)
                while remaining > 0:
                    chunk = f.read(min(self.chunk_size, remaining))
                    if not chunk:
                        logger.warning(
                            f"[{self.id}] {body.path} shrank while streaming, "
                            f"{remaining} bytes short"
                        )
                        return False
                    try:
                        self.socket.sendall(chunk)
                    except OSError as e:
                        logger.info(f"[{self.id}] Client gone during transfer: {e}")
                        return False
                    remaining -= len(chunk)
        except OSError as e:
            logger.error(f"[{self.id}] Error reading {body.path}: {e}")
            return False

        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection: send FIN, drain what the client still sends,
        release the descriptor. Safe to call twice.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        self.socket.close()
        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")

    def set_keep_alive(self):
        """Mark the connection as waiting for its next request."""
        self.state = ConnectionState.KEEP_ALIVE

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

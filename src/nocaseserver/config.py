"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All settings live in one dataclass. Three layers feed it, later layers
winning:

    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │  Defaults    │ ──► │  Environment     │ ──► │  CLI flags       │
    │  (dataclass) │     │  (from_env())    │     │  (__main__)      │
    └──────────────┘     └──────────────────┘     └──────────────────┘

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    PORT               Listen port (default 8080)
    NOCASE_ROOT        Directory to serve (default ".")
    NOCASE_HOST        Bind address (default 127.0.0.1)
    NOCASE_SPA         SPA fallback on/off (default on)
    NOCASE_PLAIN_404   Plain-text 404 bodies (default off)
    NOCASE_CACHE       Resolution cache capacity, 0 disables (default 2000)
    NOCASE_WORKERS     Max worker threads (default 16)
    NOCASE_LOG_LEVEL   DEBUG, INFO, WARNING, ERROR (default INFO)

PORT has no prefix so the server drops into platforms (Heroku, Cloud Run,
most PaaS) that announce the port that way.

A malformed number or boolean falls back to the default rather than
crashing at import; validate() still catches values that parse but make
no sense (port 70000, negative cache).

=============================================================================
INTERVIEW QUESTIONS ABOUT CONFIGURATION
=============================================================================

Q: "Why validate at startup instead of when a value is used?"
A: "A bad cache size discovered at the first cache miss is a production
   incident. Discovered at startup it's a one-line error message."

Q: "Why is port 0 valid?"
A: "The OS picks a free port. Tests start servers on port 0 and read the
   real port back, so parallel test runs never collide."

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .fs.cache import DEFAULT_CACHE_SIZE


TRUTHY = {"1", "true", "yes", "on"}
FALSY = {"0", "false", "no", "off"}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the case-insensitive file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    WHAT TO SERVE
    - root_dir, spa, plain_404, cache_size, chunk_size

    NETWORK
    - host, port, backlog, buffer_size, timeout

    HTTP
    - keep_alive, keep_alive_timeout, max_request_size, server_name

    THREADING
    - min_workers, max_workers

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # WHAT TO SERVE
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "."
    """Directory to serve. Made absolute in __post_init__."""

    spa: bool = True
    """Answer unresolvable paths with the root index.html."""

    plain_404: bool = False
    """404 body is "Not found" (text/plain) instead of an HTML page."""

    cache_size: int = DEFAULT_CACHE_SIZE
    """Resolution cache capacity in entries. 0 disables caching."""

    chunk_size: int = 64 * 1024
    """Bytes read from disk per write when streaming a file."""

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    port: int = 8080
    backlog: int = 128
    buffer_size: int = 8192

    timeout: Optional[float] = 30.0
    """Seconds to wait for the first request on a new connection."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    keep_alive_timeout: float = 5.0

    max_request_size: int = 64 * 1024
    """GET and HEAD carry no body, so 64 KB of headers is plenty."""

    server_name: str = "nocase-server/1.0"

    # ─────────────────────────────────────────────────────────────────────
    # THREADING
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 16

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """'text' (Apache-like) or 'json' for the access log."""

    def __post_init__(self):
        self.root_dir = os.path.abspath(self.root_dir)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        Usage:
            PORT=3000 NOCASE_CACHE=0 python -m nocaseserver ./dist
        """
        defaults = cls()
        max_workers = _env_int("NOCASE_WORKERS", defaults.max_workers)
        return cls(
            root_dir=os.getenv("NOCASE_ROOT", defaults.root_dir),
            host=os.getenv("NOCASE_HOST", defaults.host),
            port=_env_int("PORT", defaults.port),
            spa=_env_bool("NOCASE_SPA", defaults.spa),
            plain_404=_env_bool("NOCASE_PLAIN_404", defaults.plain_404),
            cache_size=_env_int("NOCASE_CACHE", defaults.cache_size),
            min_workers=min(defaults.min_workers, max_workers),
            max_workers=max_workers,
            log_level=os.getenv("NOCASE_LOG_LEVEL", defaults.log_level).upper(),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: With a message naming the offending setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.cache_size < 0:
            raise ValueError(f"cache_size must be >= 0, got {self.cache_size}")

        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Invalid log format: {self.log_format}. Use 'text' or 'json'.")

        if not os.path.isdir(self.root_dir):
            raise ValueError(f"Root directory does not exist: {self.root_dir}")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in TRUTHY:
        return True
    if value in FALSY:
        return False
    return default

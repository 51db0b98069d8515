"""
=============================================================================
COMMAND-LINE INTERFACE
=============================================================================

    nocase-server [folder] [options]
    python -m nocaseserver [folder] [options]

Examples:

    nocase-server                         # serve ./ on 127.0.0.1:8080
    nocase-server ./dist -p 3000          # serve ./dist on port 3000
    nocase-server ./site --no-spa         # real 404s instead of index.html
    nocase-server ./site --plain-404      # 404 body is just "Not found"
    nocase-server ./site --cache 0        # no resolution cache
    PORT=5000 nocase-server ./dist        # port from the environment

=============================================================================
EXIT CODES
=============================================================================

    0   Clean shutdown (Ctrl+C / SIGTERM), or -h / -v
    1   Port already in use, or invalid configuration
    2   Bad command-line arguments (argparse)

=============================================================================
"""

import argparse
import errno
import sys
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig, LOG_LEVELS, LOG_FORMATS
from .server import HTTPServer


def build_parser(defaults: Optional[ServerConfig] = None) -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Defaults come from `defaults` (normally ServerConfig.from_env()), so
    flags override environment variables which override built-in values.
    """
    defaults = defaults or ServerConfig.from_env()

    parser = argparse.ArgumentParser(
        prog="nocase-server",
        description="Static file server with case-insensitive path matching",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  nocase-server ./dist                  # Serve ./dist on port 8080
  nocase-server ./dist -p 3000          # Custom port
  nocase-server ./site --no-spa         # Disable SPA fallback
  nocase-server ./site --cache 0        # Disable the resolution cache
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # WHAT TO SERVE
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "folder",
        nargs="?",
        default=defaults.root_dir,
        help="Directory to serve (default: current directory)"
    )

    parser.add_argument(
        "--no-spa",
        dest="spa",
        action="store_false",
        default=defaults.spa,
        help="Disable SPA fallback (unknown paths get 404, not index.html)"
    )

    parser.add_argument(
        "--plain-404",
        action="store_true",
        default=defaults.plain_404,
        help='Answer 404 with plain "Not found" instead of an HTML page'
    )

    parser.add_argument(
        "--cache",
        type=int,
        metavar="N",
        default=defaults.cache_size,
        help=f"Resolution cache size in entries, 0 disables (default: {defaults.cache_size})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port}, or $PORT)"
    )

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host}, loopback only; "
             "use 0.0.0.0 to listen on all interfaces)"
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.max_workers,
        help=f"Maximum worker threads (default: {defaults.max_workers})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=__version__,
    )

    return parser


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Translate parsed arguments into a ServerConfig."""
    return ServerConfig(
        root_dir=args.folder,
        host=args.host,
        port=args.port,
        spa=args.spa,
        plain_404=args.plain_404,
        cache_size=args.cache,
        min_workers=max(1, min(4, args.workers)),
        max_workers=args.workers,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point. Returns the process exit code.
    """
    args = build_parser().parse_args(argv)
    config = build_config(args)

    try:
        server = HTTPServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            print(f"Port {config.port} already in use", file=sys.stderr)
            return 1
        raise

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
pytest configuration and fixtures.
"""

import os
import socket
import threading
from pathlib import Path
from typing import Generator
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from nocaseserver import HTTPServer, ServerConfig
from nocaseserver.http import HTTPRequest


DATA_BIN = bytes(i % 256 for i in range(1000))

INDEX_HTML = b"<!DOCTYPE html><title>home</title><h1>home</h1>"


@pytest.fixture
def web_root(tmp_path: Path) -> Path:
    """
    A small site with mixed-case names:

        index.html
        data.bin            (1000 bytes)
        empty.txt           (0 bytes)
        Images/Logo.png
        docs/ReadMe.TXT
        Sub/INDEX.HTML
        noindex/file.txt
    """
    root = tmp_path / "www"
    root.mkdir()

    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "data.bin").write_bytes(DATA_BIN)
    (root / "empty.txt").write_bytes(b"")

    (root / "Images").mkdir()
    (root / "Images" / "Logo.png").write_bytes(b"\x89PNG fake image")

    (root / "docs").mkdir()
    (root / "docs" / "ReadMe.TXT").write_text("read me\n")

    (root / "Sub").mkdir()
    (root / "Sub" / "INDEX.HTML").write_text("<h1>sub</h1>")

    (root / "noindex").mkdir()
    (root / "noindex" / "file.txt").write_text("x")

    return root


@pytest.fixture
def outside_file(tmp_path: Path) -> Path:
    """A file next to the web root, never reachable through it."""
    secret = tmp_path / "secret.txt"
    secret.write_text("top secret")
    return secret


def make_symlink(link: Path, target: Path):
    """Create a symlink or skip the test where that isn't allowed."""
    try:
        os.symlink(target, link, target_is_directory=target.is_dir())
    except (OSError, NotImplementedError) as e:
        pytest.skip(f"symlinks not supported here: {e}")


@pytest.fixture
def symlink():
    return make_symlink


def make_request(method: str = "GET", path: str = "/", **headers) -> HTTPRequest:
    """Build an HTTPRequest; header kwargs use underscores for dashes."""
    return HTTPRequest(
        method=method,
        path=path,
        headers={k.replace("_", "-").lower(): v for k, v in headers.items()},
        client_address=("127.0.0.1", 50000),
    )


@pytest.fixture
def request_factory():
    return make_request


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestServer:
    """Runs an HTTPServer in a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.port

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


def server_config(root: Path, **overrides) -> ServerConfig:
    settings = dict(
        root_dir=str(root),
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
        chunk_size=128,
    )
    settings.update(overrides)
    return ServerConfig(**settings)


@pytest.fixture
def start_server(web_root: Path):
    """Factory fixture: start_server(**config_overrides) -> TestServer."""
    started = []

    def start(**overrides) -> TestServer:
        srv = TestServer(HTTPServer(server_config(web_root, **overrides)))
        srv.start()
        started.append(srv)
        return srv

    yield start

    for srv in started:
        srv.stop()


@pytest.fixture
def test_server(start_server) -> Generator[TestServer, None, None]:
    """A running server over web_root with default settings."""
    yield start_server()

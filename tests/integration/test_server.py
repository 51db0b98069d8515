"""
End-to-end tests: a real server on a real socket.
"""

import http.client
import socket
import threading

import pytest

from conftest import DATA_BIN, INDEX_HTML


def fetch(port: int, method: str = "GET", path: str = "/", headers=None):
    conn = http.client.HTTPConnection("127.0.0.1", port, timeout=5)
    try:
        conn.request(method, path, headers=headers or {})
        response = conn.getresponse()
        return response.status, dict(response.getheaders()), response.read()
    finally:
        conn.close()


def raw_exchange(port: int, payload: bytes) -> bytes:
    """Send raw bytes, read until the server closes."""
    with socket.create_connection(("127.0.0.1", port), timeout=5) as sock:
        sock.sendall(payload)
        data = b""
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                return data
            data += chunk


def raw_exchange_status(port: int, target: str):
    """Send a request line verbatim (http.client would normalize it)."""
    data = raw_exchange(
        port, f"GET {target} HTTP/1.1\r\nConnection: close\r\n\r\n".encode()
    )
    head, _, body = data.partition(b"\r\n\r\n")
    status = int(head.split(b" ", 2)[1])
    return status, head, body


class TestServing:
    """Basic GET behaviour over the wire."""

    def test_root(self, test_server):
        status, headers, body = fetch(test_server.port)

        assert status == 200
        assert body == INDEX_HTML
        assert headers["Content-Type"] == "text/html; charset=utf-8"
        assert headers["Accept-Ranges"] == "bytes"
        assert headers["Server"] == "nocase-server/1.0"

    def test_case_insensitive(self, test_server):
        status, headers, body = fetch(test_server.port, path="/IMAGES/logo.PNG")

        assert status == 200
        assert headers["Content-Type"] == "image/png"
        assert body == b"\x89PNG fake image"

    def test_percent_encoded_path(self, test_server, web_root):
        (web_root / "My Files").mkdir()
        (web_root / "My Files" / "Notes.txt").write_text("notes")

        status, _, body = fetch(test_server.port, path="/my%20files/NOTES.TXT")

        assert status == 200
        assert body == b"notes"

    def test_streams_file_in_chunks(self, test_server):
        """chunk_size is 128 in tests, so this takes several writes."""
        status, headers, body = fetch(test_server.port, path="/data.bin")

        assert status == 200
        assert headers["Content-Length"] == "1000"
        assert body == DATA_BIN

    def test_large_file(self, test_server, web_root):
        payload = bytes(range(256)) * 4096  # 1 MiB
        (web_root / "Big.BIN").write_bytes(payload)

        status, _, body = fetch(test_server.port, path="/big.bin")

        assert status == 200
        assert body == payload

    def test_spa_fallback(self, test_server):
        status, _, body = fetch(test_server.port, path="/app/route/42")

        assert status == 200
        assert body == INDEX_HTML

    def test_traversal_never_leaks(self, start_server, outside_file):
        server = start_server(spa=False)

        status, _, body = raw_exchange_status(server.port, "/../secret.txt")

        assert status == 404
        assert b"top secret" not in body


class TestNotFound:
    """404 variants."""

    def test_html_404(self, start_server):
        server = start_server(spa=False)

        status, headers, body = fetch(server.port, path="/missing.txt")

        assert status == 404
        assert headers["Content-Type"] == "text/html; charset=utf-8"
        assert b"404 - File not found" in body

    def test_plain_404(self, start_server):
        server = start_server(spa=False, plain_404=True)

        status, headers, body = fetch(server.port, path="/missing.txt")

        assert status == 404
        assert headers["Content-Type"] == "text/plain; charset=utf-8"
        assert body == b"Not found"


class TestRanges:
    """Range requests over the wire."""

    def test_partial_content(self, test_server):
        status, headers, body = fetch(
            test_server.port, path="/DATA.BIN", headers={"Range": "bytes=100-899"}
        )

        assert status == 206
        assert headers["Content-Range"] == "bytes 100-899/1000"
        assert headers["Content-Length"] == "800"
        assert body == DATA_BIN[100:900]

    def test_suffix(self, test_server):
        status, _, body = fetch(
            test_server.port, path="/data.bin", headers={"Range": "bytes=-10"}
        )

        assert status == 206
        assert body == DATA_BIN[-10:]

    def test_unsatisfiable(self, test_server):
        status, headers, body = fetch(
            test_server.port, path="/data.bin", headers={"Range": "bytes=9999999-"}
        )

        assert status == 416
        assert headers["Content-Range"] == "bytes */1000"
        assert body == b""


class TestMethods:
    """HEAD and disallowed methods."""

    def test_head_has_headers_no_body(self, test_server):
        get_status, get_headers, _ = fetch(test_server.port, path="/data.bin")
        head_status, head_headers, head_body = fetch(
            test_server.port, method="HEAD", path="/data.bin"
        )

        assert head_status == get_status == 200
        assert head_headers["Content-Length"] == get_headers["Content-Length"] == "1000"
        assert head_headers["Content-Type"] == get_headers["Content-Type"]
        assert head_body == b""

    def test_head_sends_no_body_bytes(self, test_server):
        data = raw_exchange(
            test_server.port,
            b"HEAD /data.bin HTTP/1.1\r\nConnection: close\r\n\r\n",
        )

        head, _, body = data.partition(b"\r\n\r\n")
        assert b"Content-Length: 1000" in head
        assert body == b""

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE"])
    def test_not_allowed(self, test_server, method):
        status, headers, _ = fetch(test_server.port, method=method, path="/index.html")

        assert status == 405
        assert headers["Allow"] == "GET, HEAD"

    def test_unknown_method(self, test_server):
        data = raw_exchange(test_server.port, b"BREW /pot HTTP/1.1\r\n\r\n")

        assert data.startswith(b"HTTP/1.1 405 Method Not Allowed\r\n")
        assert b"Allow: GET, HEAD\r\n" in data

    def test_unsupported_version(self, test_server):
        data = raw_exchange(test_server.port, b"GET / HTTP/3.0\r\n\r\n")
        assert data.startswith(b"HTTP/1.1 505 ")

    def test_garbage(self, test_server):
        data = raw_exchange(test_server.port, b"hello there\r\n\r\n")
        assert data.startswith(b"HTTP/1.1 400 Bad Request\r\n")


class TestConnections:
    """Keep-alive and concurrency."""

    def test_keep_alive_reuses_connection(self, test_server):
        conn = http.client.HTTPConnection("127.0.0.1", test_server.port, timeout=5)
        try:
            for path in ("/", "/Images/Logo.png", "/data.bin"):
                conn.request("GET", path)
                response = conn.getresponse()
                response.read()
                assert response.status == 200
                assert response.getheader("Connection") == "keep-alive"
            first_socket = conn.sock

            conn.request("HEAD", "/index.html")
            conn.getresponse().read()
            assert conn.sock is first_socket
        finally:
            conn.close()

    def test_http10_closes(self, test_server):
        data = raw_exchange(test_server.port, b"GET /docs/readme.txt HTTP/1.0\r\n\r\n")

        assert data.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"Connection: close\r\n" in data
        assert data.endswith(b"read me\n")

    def test_pipelined(self, test_server):
        data = raw_exchange(
            test_server.port,
            b"GET /empty.txt HTTP/1.1\r\n\r\n"
            b"GET /docs/readme.txt HTTP/1.1\r\nConnection: close\r\n\r\n",
        )

        assert data.count(b"HTTP/1.1 200 OK") == 2
        assert data.endswith(b"read me\n")

    def test_concurrent_clients(self, test_server):
        results = []
        errors = []

        def client():
            try:
                results.append(fetch(test_server.port, path="/DATA.bin")[2])
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=client) for _ in range(12)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert results == [DATA_BIN] * 12

    def test_shared_cache_fills(self, test_server):
        fetch(test_server.port, path="/images/logo.png")
        fetch(test_server.port, path="/IMAGES/LOGO.PNG")

        assert len(test_server.server.cache) >= 2

    def test_cache_disabled(self, start_server):
        server = start_server(cache_size=0)

        status, _, _ = fetch(server.port, path="/images/logo.png")

        assert status == 200
        assert len(server.server.cache) == 0

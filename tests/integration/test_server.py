"""
Integration tests: a real server on a real socket.
"""

import os
import socket
import threading
from pathlib import Path

import pytest

from staticserver import HTTPServer, ServerConfig
from staticserver.__main__ import main

from conftest import LiveServer, ParsedResponse, read_until_closed


class TestDirectoryListing:
    """GET / over the wire."""

    def test_listing(self, live_server: LiveServer, content_root: Path):
        """Test that the listing links every entry in enumeration order."""
        response = live_server.get("/")

        expected = "<br>".join(
            f'<a href="/{name}">{name}</a>' for name in os.listdir(content_root)
        )
        assert response.status_line == "HTTP/1.1 200 OK"
        assert response.headers == {"Content-Type": "text/html"}
        assert response.body == expected.encode("utf-8")


class TestFileServing:
    """GET /<name> over the wire."""

    @pytest.mark.parametrize("name,content_type", [
        ("index.html", "text/html"),
        ("style.css", "text/css"),
        ("hello.txt", "text/plain"),
        ("notes.md", "text/plain"),
        ("photo.jpg", "image/jpg"),
        ("data.bin", "application/octet-stream"),
    ])
    def test_file(self, live_server: LiveServer, content_root: Path, name: str, content_type: str):
        """Test that each file arrives byte-identical with its type."""
        response = live_server.get(f"/{name}")

        assert response.status == 200
        assert response.headers == {"Content-Type": content_type}
        assert response.body == (content_root / name).read_bytes()

    def test_exact_bytes(self, live_server: LiveServer):
        """Test the complete response for a small file."""
        raw = live_server.request(b"GET /hello.txt HTTP/1.1\r\n\r\n")

        assert raw == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"\r\n"
            b"hello world\n"
        )

    def test_no_content_length(self, live_server: LiveServer):
        """Test that the body is delimited by close, not by a length."""
        response = live_server.get("/photo.jpg")

        assert "Content-Length" not in response.headers

    def test_not_found(self, live_server: LiveServer):
        """Test the 404 response, byte for byte."""
        raw = live_server.request(b"GET /nope.txt HTTP/1.1\r\n\r\n")

        assert raw == (
            b"HTTP/1.1 404 Not Found\r\n"
            b"Content-Type: text/plain\r\n"
            b"\r\n"
            b"File Not Found"
        )

    def test_request_without_version(self, live_server: LiveServer):
        """Test that "GET /hello.txt" with no version is served."""
        response = ParsedResponse.from_bytes(live_server.request(b"GET /hello.txt\r\n"))

        assert response.status == 200
        assert response.body == b"hello world\n"


class TestBadRequests:
    """Requests the server refuses."""

    @pytest.mark.parametrize("path", ["/../secret.txt", "/docs/../../secret.txt"])
    def test_traversal(self, live_server: LiveServer, path: str):
        """Test that escaping the root gives 400 and not the secret."""
        response = live_server.get(path)

        assert response.status == 400
        assert b"top secret" not in response.raw

    def test_nul_byte_in_path(self, live_server: LiveServer):
        """Test that a NUL byte in the path is a bad request."""
        raw = live_server.request(b"GET /a\x00b.txt HTTP/1.1\r\n\r\n")

        assert raw.startswith(b"HTTP/1.1 400 Bad Request\r\n")

    @pytest.mark.parametrize("line", [b"GARBAGE", b"GET", b"GET  /"])
    def test_malformed_request_line(self, live_server: LiveServer, line: bytes):
        """Test that an unparseable request line gives 400."""
        response = ParsedResponse.from_bytes(live_server.request(line + b"\r\n\r\n"))

        assert response.status_line == "HTTP/1.1 400 Bad Request"
        assert response.headers == {"Content-Type": "text/plain"}

    def test_line_too_long(self, live_server: LiveServer):
        """Test that a request line that never ends gives 400."""
        raw = live_server.request(b"GET /" + b"a" * 20000)

        assert raw.startswith(b"HTTP/1.1 400 Bad Request\r\n")


class TestIgnoredMethods:
    """Non-GET requests get no response at all."""

    def test_post_gets_nothing(self, live_server: LiveServer):
        """Test that no bytes are written for a POST."""
        with live_server.connect(timeout=0.5) as sock:
            sock.sendall(b"POST /hello.txt HTTP/1.1\r\nHost: x\r\n\r\n")

            with pytest.raises(socket.timeout):
                sock.recv(1024)

    def test_post_with_body_gets_nothing(self, live_server: LiveServer):
        """Test that the body lines of a POST are not answered as requests."""
        with live_server.connect(timeout=1.0) as sock:
            sock.sendall(
                b"POST /hello.txt HTTP/1.1\r\nHost: x\r\nContent-Length: 13\r\n\r\n"
                b"field=value\r\n"
            )

            with pytest.raises(socket.timeout):
                sock.recv(1024)

    def test_get_after_post_with_body(self, live_server: LiveServer):
        """Test that a GET following a POST body is still answered."""
        raw = live_server.request(
            b"POST /hello.txt HTTP/1.1\r\nContent-Length: 13\r\n\r\n"
            b"field=value\r\n"
            b"GET /hello.txt HTTP/1.1\r\n\r\n"
        )

        response = ParsedResponse.from_bytes(raw)
        assert response.status == 200
        assert response.body == b"hello world\n"

    def test_post_then_close(self, live_server: LiveServer):
        """Test that the server closes without writing when the client leaves."""
        with live_server.connect() as sock:
            sock.sendall(b"DELETE /hello.txt HTTP/1.1\r\n\r\n")
            sock.shutdown(socket.SHUT_WR)

            assert read_until_closed(sock) == b""

    def test_get_after_ignored_post(self, live_server: LiveServer):
        """Test that a GET on the same connection is still answered."""
        raw = live_server.request(
            b"POST /hello.txt HTTP/1.1\r\nHost: x\r\nContent-Length: 0\r\n\r\n"
            b"GET /hello.txt HTTP/1.1\r\nHost: x\r\n\r\n"
        )

        response = ParsedResponse.from_bytes(raw)
        assert response.status == 200
        assert response.body == b"hello world\n"

    def test_file_unchanged_by_post(self, live_server: LiveServer, content_root: Path):
        """Test that ignored methods have no side effects."""
        with live_server.connect() as sock:
            sock.sendall(b"PUT /hello.txt HTTP/1.1\r\n\r\n")
            sock.shutdown(socket.SHUT_WR)
            read_until_closed(sock)

        assert (content_root / "hello.txt").read_text() == "hello world\n"


class TestConcurrency:
    """Connections are independent of each other."""

    def test_idle_client_does_not_block_others(self, live_server: LiveServer):
        """Test that a silent connection doesn't delay another client."""
        with live_server.connect() as idle:
            idle.sendall(b"GET /hel")  # Never finished

            response = live_server.get("/hello.txt")

            assert response.status == 200

    def test_many_clients(self, live_server: LiveServer, content_root: Path):
        """Test parallel requests all get the right body."""
        expected = (content_root / "photo.jpg").read_bytes()
        results = []
        lock = threading.Lock()

        def fetch():
            response = live_server.get("/photo.jpg")
            with lock:
                results.append(response.body == expected)

        threads = [threading.Thread(target=fetch) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10.0)

        assert results == [True] * 20


class TestIdleTimeout:
    """The optional idle timeout."""

    def test_idle_connection_is_dropped(self, content_root: Path):
        """Test that a client that sends nothing is closed silently."""
        config = ServerConfig(
            host="127.0.0.1",
            port=0,
            root=str(content_root),
            idle_timeout=0.2,
            log_level="WARNING",
        )
        live = LiveServer(HTTPServer(config))
        live.start()
        try:
            with live.connect(timeout=5.0) as sock:
                assert read_until_closed(sock) == b""
        finally:
            live.stop()


class TestStartup:
    """Startup failures."""

    @pytest.fixture
    def occupied_port(self):
        """A port with a live listener on it."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            sock.listen(1)
            yield sock.getsockname()[1]

    def test_bind_failure_raises(self, content_root: Path, occupied_port: int):
        """Test that an occupied port is fatal."""
        server = HTTPServer(ServerConfig(
            host="127.0.0.1",
            port=occupied_port,
            root=str(content_root),
            log_level="WARNING",
        ))

        with pytest.raises(OSError):
            server.run()

    def test_cli_exits_nonzero_on_bind_failure(self, content_root: Path, occupied_port: int, capsys):
        """Test that the CLI reports an occupied port and exits 1."""
        status = main([
            "--host", "127.0.0.1",
            "--port", str(occupied_port),
            "--root", str(content_root),
            "--log-level", "WARNING",
        ])

        assert status == 1
        assert "cannot listen" in capsys.readouterr().err

    def test_cli_exits_nonzero_on_missing_root(self, tmp_path: Path, capsys):
        """Test that a missing root is reported before binding."""
        status = main(["--root", str(tmp_path / "missing"), "--port", "0"])

        assert status == 1
        assert "invalid configuration" in capsys.readouterr().err

    def test_server_on_ephemeral_port(self, server_config: ServerConfig):
        """Test that port 0 reports the real port once listening."""
        live = LiveServer(HTTPServer(server_config))
        live.start()
        try:
            assert live.port != 0
            assert live.get("/hello.txt").status == 200
        finally:
            live.stop()

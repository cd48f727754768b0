"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import HTTPServer, ServerConfig


# Bytes that are not valid UTF-8, to catch any accidental decoding
BINARY_CONTENT = bytes(range(256)) * 64


@pytest.fixture
def content_root(tmp_path: Path) -> Path:
    """
    A content root with one file per interesting case.

        tmp_path/
        ├── secret.txt          ← OUTSIDE the root, must never be served
        └── public/
            ├── index.html
            ├── style.css
            ├── hello.txt
            ├── notes.md
            ├── photo.jpg       (binary)
            ├── data.bin        (unmapped extension)
            └── docs/
                └── guide.txt
    """
    (tmp_path / "secret.txt").write_text("top secret")

    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text("<h1>Hello</h1>")
    (root / "style.css").write_text("body { color: red; }")
    (root / "hello.txt").write_text("hello world\n")
    (root / "notes.md").write_text("# Notes\n")
    (root / "photo.jpg").write_bytes(BINARY_CONTENT)
    (root / "data.bin").write_bytes(b"\x00\x01\x02")
    (root / "docs").mkdir()
    (root / "docs" / "guide.txt").write_text("guide")
    return root


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class LiveServer:
    """Runs an HTTPServer in a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def connect(self, timeout: float = 5.0) -> socket.socket:
        """Open a client socket to the server."""
        return socket.create_connection(("127.0.0.1", self.port), timeout=timeout)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes and read until the server closes the connection."""
        with self.connect(timeout) as sock:
            sock.sendall(raw)
            return read_until_closed(sock)

    def get(self, path: str) -> "ParsedResponse":
        """Send a GET request and parse the response."""
        raw = f"GET {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode()
        return ParsedResponse.from_bytes(self.request(raw))


class ParsedResponse:
    """Minimal response parser for assertions."""

    def __init__(self, status_line: str, headers: dict, body: bytes, raw: bytes):
        self.status_line = status_line
        self.headers = headers
        self.body = body
        self.raw = raw

    @property
    def status(self) -> int:
        return int(self.status_line.split(" ")[1])

    @classmethod
    def from_bytes(cls, raw: bytes) -> "ParsedResponse":
        head, _, body = raw.partition(b"\r\n\r\n")
        lines = head.decode("latin-1").split("\r\n")
        headers = {}
        for line in lines[1:]:
            name, _, value = line.partition(":")
            headers[name.strip()] = value.strip()
        return cls(lines[0], headers, body, raw)


def read_until_closed(sock: socket.socket) -> bytes:
    """Read from a socket until the peer closes it."""
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def server_config(content_root: Path) -> ServerConfig:
    """Test server configuration: ephemeral port, temp content root."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        root=str(content_root),
        log_level="WARNING",
    )


@pytest.fixture
def live_server(server_config: ServerConfig) -> Generator[LiveServer, None, None]:
    """A running server serving content_root."""
    live = LiveServer(HTTPServer(server_config))
    live.start()

    yield live

    live.stop()

"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps one accepted client socket with the small API the
server needs: read a request line, skip a header block, send bytes, close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. A client that sends

    "GET /a.txt HTTP/1.1\r\nHost: x\r\n\r\n"

in one call may be read by the server as any split of those bytes:

    recv() → "GET /a.t"
    recv() → "xt HTTP/1.1\r\nHost: x\r\n\r\n"

So we never parse a single recv() result directly. Bytes go into a
buffer, and we only parse once the buffer holds a complete request line,
i.e. once it contains a CRLF:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Request Line Accumulation                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   _buffer = b""                                                      │
    │                                                                      │
    │   while b"\r\n" not in _buffer:                                      │
    │       chunk = recv()                                                 │
    │       if chunk == b"": return None      ← client went away           │
    │       _buffer += chunk                                               │
    │                                                                      │
    │   line, _, _buffer = _buffer.partition(b"\r\n")                      │
    │         ▲              ▲                                             │
    │         │              └── leftovers (headers...) stay buffered      │
    │         └── the request line                                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)

LINE_TERMINATOR = b"\r\n"
HEADER_TERMINATOR = b"\r\n\r\n"

# Upper bounds on discarding unread client bytes in close()
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    Tracked for logging and so close() is idempotent.
    """
    NEW = "new"                # Just accepted, haven't read anything yet
    READING = "reading"        # Waiting for / reading a request line
    PROCESSING = "processing"  # Request line parsed, handler is executing
    WRITING = "writing"        # Sending response data
    CLOSING = "closing"        # About to close (shutdown sequence)
    CLOSED = "closed"          # Connection closed, socket released


@dataclass(eq=False)
class Connection:
    """
    Represents a client connection.

    eq=False keeps identity hashing, so connections can live in a set.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. BUFFERED READING                                                 │
    │     └── Accumulate bytes until a full request line is present       │
    │     └── Refuse lines longer than max_line_size                      │
    │                                                                      │
    │  2. IDLE TIMEOUT (optional)                                          │
    │     └── None by default: an idle client is held open forever        │
    │                                                                      │
    │  3. GRACEFUL CLOSE                                                   │
    │     └── FIN first, then drain, then release the descriptor          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Unique connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
        last_activity: Timestamp of last activity.
        requests_seen: Number of request lines read on this connection.
        discarding: True after an ignored request, until a request line
                     parses again. Lines that fail to parse meanwhile are
                     the ignored request's body and get no response.
    """

    # Required parameters
    socket: socket.socket
    address: tuple[str, int]

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    requests_seen: int = 0
    discarding: bool = False

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192             # How much to read at once
    idle_timeout: Optional[float] = None  # None = wait forever
    max_line_size: int = 8192           # Longest acceptable request line

    # Internal state (not shown in repr for cleaner logs)
    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        """Configure the socket: blocking, with the optional idle timeout."""
        self.socket.setblocking(True)
        self.socket.settimeout(self.idle_timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def client_port(self) -> int:
        """Get the client port."""
        return self.address[1]

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    @property
    def is_closed(self) -> bool:
        """Check whether close() has completed."""
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_request_line(self) -> Optional[bytes]:
        """
        Read one CRLF-terminated request line from the socket.

        Returns:
            The line WITHOUT its CRLF, or None if the client closed the
            connection before a full line arrived.

        Raises:
            TimeoutError: If idle_timeout elapsed with no complete line.
            ValueError: If the line exceeds max_line_size.
        """
        self.state = ConnectionState.READING

        try:
            while LINE_TERMINATOR not in self._buffer:
                if len(self._buffer) > self.max_line_size:
                    raise ValueError(
                        f"Request line too long: {len(self._buffer)} bytes"
                    )

                chunk = self._recv()
                if not chunk:
                    return None  # Connection closed by client

                self._buffer += chunk
        except socket.timeout:
            raise TimeoutError("Timed out waiting for request line")

        line, _, self._buffer = self._buffer.partition(LINE_TERMINATOR)

        if len(line) > self.max_line_size:
            raise ValueError(f"Request line too long: {len(line)} bytes")

        self.requests_seen += 1
        return line

    def skip_headers(self) -> bool:
        """
        Discard the rest of the current request, up to its blank line.

        Called after a request line we chose not to answer, so that its
        header lines are not mistaken for the next request line.

            buffer: b"Host: x\r\n\r\nGET / HTTP/1.1\r\n"
                     ─────────────── ─────────────────
                      discarded       kept for next read

        Returns:
            True if the blank line was found, False if the client closed
            the connection first.

        Raises:
            TimeoutError: If idle_timeout elapsed first.
            ValueError: If the header block exceeds a sane size.
        """
        # The request line's own CRLF was consumed already, so prepend one:
        # a request with no headers is then "\r\n" + "\r\n..." as well
        limit = self.max_line_size * 8

        try:
            while True:
                probe = LINE_TERMINATOR + self._buffer
                end = probe.find(HEADER_TERMINATOR)
                if end != -1:
                    self._buffer = probe[end + len(HEADER_TERMINATOR):]
                    return True

                if len(self._buffer) > limit:
                    raise ValueError(f"Header block too large: {len(self._buffer)} bytes")

                chunk = self._recv()
                if not chunk:
                    return False

                self._buffer += chunk
        except socket.timeout:
            raise TimeoutError("Timed out waiting for end of headers")

    def _recv(self) -> bytes:
        """
        Receive data from socket with error handling.

        Returns:
            Received bytes, or empty bytes if connection closed.
        """
        try:
            data = self.socket.recv(self.buffer_size)
            self.last_activity = time.time()
            return data
        except (ConnectionResetError, BrokenPipeError):
            # Client disconnected abruptly
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response data to the client.

        Uses sendall() so a large file body is written completely.

        Args:
            data: Response bytes to send.

        Returns:
            True if send succeeded, False if connection lost.
        """
        self.state = ConnectionState.WRITING
        self.last_activity = time.time()

        try:
            self.socket.sendall(data)
            self.last_activity = time.time()
            return True
        except OSError as e:
            # Client disconnected (reset, broken pipe, ...)
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN, the client sees end-of-body
        2. Drain what the client still sends (headers we never read), for
           at most DRAIN_TIMEOUT seconds and DRAIN_LIMIT bytes
        3. close(): release the file descriptor

        Draining matters: closing a socket with unread data makes the
        kernel send RST instead of FIN, and the client may then lose the
        tail of the response it hasn't read yet.
        """
        if self.state == ConnectionState.CLOSED:
            return  # Already closed

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        # Bounded in both time and bytes
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0

        try:
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break

                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Includes socket.timeout

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allow `with conn:` so the connection is always closed:

            with conn:
                line = conn.read_request_line()
                conn.send_response(response)
            # Connection closed here, even on error
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions

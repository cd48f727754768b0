"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together: the socket server accepts, a thread per
connection reads the request line, the static handler decides the
response, and the connection writes it and closes.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌──────────────┐   accept()   ┌──────────────┐  new thread  ┌───────────┐
    │ SocketServer │ ───────────► │  Connection  │ ───────────► │  worker   │
    └──────────────┘              └──────────────┘              └─────┬─────┘
                                                                      │
          ┌───────────────────────────────────────────────────────────┘
          ▼
    read_request_line()  ── None (client left) ─────────────► close
          │              ── TimeoutError (idle) ────────────► close
          │              ── ValueError (line too long) ─────► 400, close
          ▼
    RequestLineParser    ── HTTPParseError ─────────────────► 400, close
          │
          ▼
    StaticFileHandler    ── None (not GET) ──► skip headers, read again;
          │                 lines that fail to parse from here on are that
          │                 request's body and are dropped without a reply
          │              ── exception ──────────────────────► 500, close
          ▼
    send response ──────────────────────────────────────────► close

=============================================================================
WHY A THREAD PER CONNECTION?
=============================================================================

A client that connects and never sends a full request line is held open
for as long as it likes (unless idle_timeout is set). With a fixed pool
of N workers, N such clients would starve everyone else. One thread per
connection keeps connections fully independent: a slow, idle or failing
connection affects only its own thread.

=============================================================================
"""

import logging
import socket
import threading
import time
from typing import Optional, Tuple

from .access_log import AccessLogger
from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState
from .handlers import StaticFileHandler
from .http import (
    RequestLine, RequestLineParser, HTTPParseError,
    HTTPResponse, bad_request, internal_error, MIME_TYPES,
)


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Static file HTTP server.

    =========================================================================
    USAGE
    =========================================================================

        server = HTTPServer(ServerConfig(port=3000, root="./public"))
        server.run()    # Blocks until Ctrl+C / SIGTERM / shutdown()

    From another thread (tests):

        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.wait_until_ready(5.0)
        host, port = server.address
        ...
        server.shutdown()

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Initialize the HTTP server.

        Args:
            config: Server configuration. Uses defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self._socket_server = SocketServer(self.config)
        self._parser = RequestLineParser()
        self._handler = StaticFileHandler(self.config.root, MIME_TYPES)
        self._access_log = AccessLogger(self.config.log_format)

        # Live connections, so shutdown can wake threads blocked in recv()
        self._connections: set[Connection] = set()
        self._threads: set[threading.Thread] = set()
        self._lock = threading.Lock()

        self._running = False

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def address(self) -> Tuple[str, int]:
        """Get the bound (host, port); the real port once listening."""
        return self._socket_server.address

    @property
    def handler(self) -> StaticFileHandler:
        """Get the static file handler."""
        return self._handler

    @property
    def active_connections(self) -> int:
        """Number of connections currently being handled."""
        with self._lock:
            return len(self._connections)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server (blocking).

        Args:
            host: Override config host.
            port: Override config port.

        Raises:
            OSError: If the listening address cannot be bound.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        self._running = True

        logger.info(f"Serving {self.config.root} on {self.config.host}:{self.config.port}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the server is accepting connections.

        Returns:
            True if listening, False on timeout.
        """
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Stop accepting connections; run() returns shortly after."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("staticserver").setLevel(level)

    def _shutdown(self):
        """
        Graceful shutdown.

        1. Stop the accept loop (already done by the time we get here)
        2. Wake connection threads blocked in recv() by shutting their
           sockets down
        3. Give them a moment to finish writing and exit
        """
        logger.info("Shutting down server...")
        self._running = False

        with self._lock:
            connections = list(self._connections)
            threads = list(self._threads)

        for conn in connections:
            try:
                conn.socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # Already closed

        for thread in threads:
            thread.join(timeout=2.0)

        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Start a thread for a freshly accepted connection.

        Called on the accept loop's thread, so it must not block.

        Args:
            conn: The client connection.
        """
        thread = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )

        with self._lock:
            self._connections.add(conn)
            self._threads.add(thread)

        thread.start()

    def _process_connection(self, conn: Connection):
        """
        Process one connection (runs in its own thread).

        Reads request lines until one produces a response, writes it, and
        closes. Ignored requests (non-GET) leave the connection open for
        the next request line.

        Args:
            conn: The client connection.
        """
        try:
            with conn:  # Context manager ensures connection is closed
                while self._running:
                    if self._serve_one(conn):
                        break
        except Exception as e:
            # Never let one connection's failure escape its thread
            logger.exception(f"[{conn.id}] Connection error: {e}")
        finally:
            with self._lock:
                self._connections.discard(conn)
                self._threads.discard(threading.current_thread())

    def _serve_one(self, conn: Connection) -> bool:
        """
        Read one request line and answer it.

        Args:
            conn: The client connection.

        Returns:
            True when the connection is finished (response sent, client
            gone, or error); False to keep waiting for another request.
        """
        try:
            line = conn.read_request_line()
        except TimeoutError:
            logger.debug(f"[{conn.id}] Idle timeout, dropping connection")
            return True
        except ValueError as e:
            if conn.discarding:
                logger.debug(f"[{conn.id}] {e} in ignored request body, dropping connection")
                return True
            logger.info(f"[{conn.id}] {e}")
            self._send(conn, None, bad_request(), time.time())
            return True

        if line is None:
            logger.debug(f"[{conn.id}] Client closed before sending a request line")
            return True

        started_at = time.time()

        # ─────────────────────────────────────────────────────────────────
        # PARSE
        # ─────────────────────────────────────────────────────────────────
        try:
            request = self._parser.parse(line, conn.address)
        except HTTPParseError as e:
            if conn.discarding:
                # Body of the ignored request: no response, keep reading
                logger.debug(f"[{conn.id}] Discarding body line of ignored request")
                return False
            logger.info(f"[{conn.id}] {e}")
            self._send(conn, None, bad_request(), started_at)
            return True

        conn.discarding = False

        # ─────────────────────────────────────────────────────────────────
        # HANDLE
        # ─────────────────────────────────────────────────────────────────
        conn.state = ConnectionState.PROCESSING

        try:
            response = self._handler.handle(request)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            response = internal_error()

        # ─────────────────────────────────────────────────────────────────
        # IGNORED METHOD: no response, keep the connection
        # ─────────────────────────────────────────────────────────────────
        if response is None:
            conn.discarding = True
            try:
                return not conn.skip_headers()
            except TimeoutError:
                logger.debug(f"[{conn.id}] Idle timeout, dropping connection")
                return True
            except ValueError as e:
                logger.info(f"[{conn.id}] {e}, dropping connection")
                return True

        self._send(conn, request, response, started_at)
        return True

    def _send(
        self,
        conn: Connection,
        request: Optional[RequestLine],
        response: HTTPResponse,
        started_at: float,
    ):
        """
        Write a response and record it in the access log.

        Args:
            conn: The connection to write to.
            request: The request being answered, None if unparseable.
            response: The response.
            started_at: When the request line was read.
        """
        if conn.send_response(response.to_bytes()):
            self._access_log.log(conn.id, conn.client_ip, request, response, started_at)

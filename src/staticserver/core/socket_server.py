"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

This module owns the listening socket: it binds, listens, and accepts
connections, handing each accepted client to a callback. It knows
nothing about HTTP.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket
    2. bind()      Reserve IP:PORT for this process
                   └─ FAILS if the port is taken or privileged
    3. listen()    Start queueing incoming connections
    4. accept()    Take the next queued connection
                   └─ Returns a NEW socket just for that client
                   └─ The listening socket keeps listening
    5. close()     Release the listening socket

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    │   (Server Socket)     │     Bound to 0.0.0.0:3000
                    └───────────┬───────────┘     Never sends/receives data
                                │ accept()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌────────┐             ┌────────┐             ┌────────┐
    │ Client │             │ Client │             │ Client │
    │ Socket │             │ Socket │             │ Socket │
    └────────┘             └────────┘             └────────┘

=============================================================================
BIND FAILURE IS FATAL
=============================================================================

If bind() fails there is nothing useful the server can do: no retry, no
fallback port. The error is logged and re-raised so the process exits
with a diagnostic.

=============================================================================
SIGNAL HANDLING
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, kill) stop the accept loop.
Python only allows installing signal handlers from the main thread, so
when the server runs on a background thread (tests, embedding) signals
are left alone and shutdown() must be called explicitly.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(callback)                                                   │
    │        ├──► _create_socket()   socket() + SO_REUSEADDR              │
    │        ├──► bind()             OSError → log + raise (fatal)        │
    │        ├──► listen()                                                 │
    │        ├──► _setup_signals()   main thread only                     │
    │        └──► _accept_loop()     BLOCKS until shutdown()              │
    │                 └──► accept() → Connection(...) → callback(conn)    │
    │                                                                      │
    │    shutdown()        _running = False (loop exits within 1s)        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    # How often accept() wakes up to check for shutdown
    ACCEPT_POLL_INTERVAL = 1.0

    def __init__(self, config: ServerConfig):
        """
        Initialize the socket server.

        Args:
            config: Server configuration containing host, port, backlog, etc.

        Note: the socket is created lazily in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None
        self._running = False

        # Set once listening, cleared on cleanup
        self._ready_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        Get the server's bound address (IP, port).

        After bind this is the ACTUAL address, so port 0 in the config
        reports the ephemeral port the OS picked.
        """
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """
        Create and configure the server socket.

        Returns:
            Configured socket ready for binding.
        """
        # AF_INET = IPv4, SOCK_STREAM = TCP
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # SO_REUSEADDR: rebind right after a restart instead of waiting
        # out TIME_WAIT. Does NOT let two live servers share a port.
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # accept() times out periodically so the loop can notice shutdown
        sock.settimeout(self.ACCEPT_POLL_INTERVAL)

        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers that trigger shutdown()."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and accept connections until shutdown().

        This method BLOCKS.

        Args:
            connection_handler: Called with each accepted Connection. It
                                must return quickly (hand the connection
                                off to a thread) or accepting stalls.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._setup_signals()

        host, port = self._bound_address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Main loop for accepting connections.

        Args:
            connection_handler: Callback for each new connection.
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                # Normal: lets us re-check self._running
                continue
            except OSError as e:
                # Socket error - usually means we're shutting down
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address[:2],
                buffer_size=self.config.buffer_size,
                idle_timeout=self.config.idle_timeout,
                max_line_size=self.config.max_line_size,
            )

            try:
                connection_handler(conn)
            except Exception as e:
                # A failing hand-off must not take the listener down
                logger.exception(f"[{conn.id}] Connection handler failed: {e}")
                conn.close()

    def shutdown(self):
        """
        Initiate graceful shutdown.

        Safe to call from a signal handler, another thread, or more than
        once.
        """
        logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        """Clean up resources on shutdown."""
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the server is listening.

        Args:
            timeout: Maximum time to wait in seconds. None = wait forever.

        Returns:
            True if listening, False on timeout.
        """
        return self._ready_event.wait(timeout)

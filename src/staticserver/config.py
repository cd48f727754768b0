"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m staticserver --port 8000                        │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=8000 python -m staticserver                     │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │      └── port 3000, files from the package's public/ directory     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The two settings that matter most are `port` and `root`. The rest tune
the socket layer and logging.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


# Directory served when no root is configured: public/ next to this file
DEFAULT_ROOT = str(Path(__file__).resolve().parent / "public")

LOG_FORMATS = ("text", "json")


def _optional_float(value: Optional[str]) -> Optional[float]:
    """Parse an optional float from an environment string ("" → None)."""
    if value is None or value.strip() == "":
        return None
    return float(value)


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size

    REQUEST SETTINGS
    - max_line_size, idle_timeout

    CONTENT
    - root

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All network interfaces (default)
    - "127.0.0.1" - Localhost only
    """

    port: int = 3000
    """
    The port number to listen on.
    0 asks the OS for any free port (useful in tests).
    """

    backlog: int = 128
    """Maximum number of queued connections waiting for accept()."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_line_size: int = 8192
    """
    Longest request line accepted, in bytes.
    A client that sends more than this without a CRLF gets 400.
    """

    idle_timeout: Optional[float] = None
    """
    Seconds to wait for a complete request line before dropping the
    connection silently. None = wait forever.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    root: str = field(default=DEFAULT_ROOT)
    """
    Directory to serve files from.
    Fixed for the lifetime of the server.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """
    Access log format: 'text' or 'json'.
    JSON is better for log aggregators, text for humans.
    """

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST          Server host (default: 0.0.0.0)
        HTTP_PORT          Server port (default: 3000)
        HTTP_ROOT          Directory to serve (default: package public/)
        HTTP_IDLE_TIMEOUT  Seconds before an idle connection is dropped
                           (default: unset, never)
        HTTP_LOG_LEVEL     Logging level (default: INFO)
        HTTP_LOG_FORMAT    Access log format, text or json (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("HTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("HTTP_PORT", "3000")),
            root=os.getenv("HTTP_ROOT", DEFAULT_ROOT),
            idle_timeout=_optional_float(os.getenv("HTTP_IDLE_TIMEOUT")),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad setting fails immediately, not on
        the first request.

        Raises:
            ValueError: If any setting is invalid.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not os.path.isdir(self.root):
            raise ValueError(f"Root directory does not exist: {self.root}")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.max_line_size < 1:
            raise ValueError("max_line_size must be >= 1")

        if self.idle_timeout is not None and self.idle_timeout <= 0:
            raise ValueError("idle_timeout must be > 0")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}")

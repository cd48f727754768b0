"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can emit, and the reason phrase written
after each one on the status line.

    HTTP/1.1 404 Not Found
             ─── ─────────
              │      │
              │      └── Reason phrase (from STATUS_PHRASES)
              └───────── Status code (HTTPStatus)

The server only ever answers with four codes:

    200 OK            - directory listing or file content
    400 Bad Request   - request line could not be parsed, or the path
                        tries to leave the content root
    404 Not Found     - the named file does not exist
    500 Server Error  - an I/O failure that is not "file absent"

Note that 500 uses the short phrase "Server Error" rather than the
RFC 7231 "Internal Server Error". Reason phrases are informational only
(clients must ignore them), so this is a cosmetic choice.

=============================================================================
"""

from enum import IntEnum
from types import MappingProxyType


class HTTPStatus(IntEnum):
    """
    HTTP status codes used by the server.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200                        # Listing or file served
    BAD_REQUEST = 400               # Malformed request line / traversal
    NOT_FOUND = 404                 # File does not exist
    INTERNAL_SERVER_ERROR = 500     # I/O failure other than "absent"

    @property
    def phrase(self) -> str:
        """Get the reason phrase for this status code."""
        return STATUS_PHRASES.get(int(self), "Unknown")

    @property
    def is_success(self) -> bool:
        """Check if this is a 2xx (success) status code."""
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        """Check if this is a 4xx (client error) status code."""
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        """Check if this is a 5xx (server error) status code."""
        return 500 <= self < 600


# =============================================================================
# REASON PHRASES
# =============================================================================
#
# Read-only view: built once at import time, never mutated afterwards, so
# every connection thread can read it without locking.
#
# =============================================================================

STATUS_PHRASES = MappingProxyType({
    200: "OK",
    400: "Bad Request",
    404: "Not Found",
    500: "Server Error",
})

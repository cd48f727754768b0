"""
=============================================================================
HTTP REQUEST LINE PARSING
=============================================================================

This server reads exactly one thing from a request: its FIRST LINE.

    GET /style.css HTTP/1.1\r\n        ← request line (parsed)
    Host: localhost:3000\r\n           ← headers (ignored)
    Accept: text/css\r\n
    \r\n

Headers, query strings and bodies are never interpreted. The request line
is enough to decide what to send back: the method says whether we answer
at all, the path says which file.

=============================================================================
REQUEST LINE FORMAT (RFC 7230)
=============================================================================

    METHOD SP REQUEST-TARGET SP HTTP-VERSION CRLF

    Example: "GET /notes.md HTTP/1.1"
              ─┬─ ────┬──── ────┬───
               │      │         │
             Method  Path    Version (optional here)

We are lenient about the version: "GET /" with no version is accepted,
which is what very old (HTTP/0.9 style) clients send. What we DO require
is two non-empty, space-separated tokens. Anything less is a malformed
request and the server answers 400 Bad Request.

The path is kept verbatim: no percent-decoding, no query splitting.
"GET /a.txt?x=1" asks for a file literally named "a.txt?x=1".

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional
import re


class HTTPParseError(Exception):
    """
    Raised when a request line cannot be parsed.

    Carries the HTTP status code that should be returned to the client.
    For this server that is always 400 Bad Request, but the attribute
    keeps the error self-describing for the code that catches it.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code  # HTTP status to return


@dataclass(frozen=True)
class RequestLine:
    """
    The parsed first line of an HTTP request.

    Frozen: a request line is a value, derived once from the wire and
    then only read.

    Attributes:
        method:         Request method exactly as sent ("GET", "POST", ...).
                        Matching is case-sensitive: "get" is not GET.
        path:           Request target exactly as sent ("/", "/a.txt").
        version:        Protocol version token, or None if omitted.
        client_address: (ip, port) of the client, for logging.
    """

    method: str
    path: str
    version: Optional[str] = None
    client_address: tuple[str, int] = ("", 0)

    @property
    def is_get(self) -> bool:
        """Check if this is a GET request (the only method we answer)."""
        return self.method == "GET"

    @property
    def is_root(self) -> bool:
        """Check if the path names the root directory listing."""
        return self.path == "/"

    @property
    def relative_path(self) -> str:
        """
        The path with its leading slash removed.

        "/css/site.css" → "css/site.css". This is the file name relative
        to the content root.
        """
        return self.path[1:] if self.path.startswith("/") else self.path


class RequestLineParser:
    """
    Parses raw request-line bytes into RequestLine objects.

    ==========================================================================
    REGEX PATTERN EXPLAINED
    ==========================================================================

    REQUEST_LINE_PATTERN: ^([^ ]+) ([^ ]+)(?: (.*))?$

        ([^ ]+)      - Group 1: METHOD (anything except space)
        ` `          - Single space (SP in RFC)
        ([^ ]+)      - Group 2: PATH (anything except space)
        (?: (.*))?   - Group 3: optional " VERSION" (rest of line)

    Splitting is on single spaces, like the wire format. "GET  /" (two
    spaces) has an empty second token and does not match.

    ==========================================================================
    """

    REQUEST_LINE_PATTERN = re.compile(r"^([^ ]+) ([^ ]+)(?: (.*))?$")

    def parse(
        self,
        line: bytes,
        client_address: tuple[str, int] = ("", 0),
    ) -> RequestLine:
        """
        Parse one request line.

        Args:
            line: The request line bytes, WITHOUT the trailing CRLF.
                  A stray trailing CRLF is tolerated and stripped.
            client_address: Client's (ip, port) tuple for logging.

        Returns:
            Parsed RequestLine.

        Raises:
            HTTPParseError: If the line lacks a method and a path.
        """
        # Request lines are ASCII in practice; replace anything else
        # rather than failing on decode
        text = line.decode("utf-8", errors="replace")
        if text.endswith("\r\n"):
            text = text[:-2]

        match = self.REQUEST_LINE_PATTERN.match(text)
        if not match:
            raise HTTPParseError(f"Invalid request line: {text!r}")

        method, path, version = match.groups()

        return RequestLine(
            method=method,
            path=path,
            version=version or None,
            client_address=client_address,
        )


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_request_line(
    line: bytes,
    client_address: tuple[str, int] = ("", 0),
) -> RequestLine:
    """
    Convenience function to parse a request line.

    Args:
        line: Raw request line bytes (no CRLF).
        client_address: Client's (ip, port) tuple.

    Returns:
        Parsed RequestLine.
    """
    return RequestLineParser().parse(line, client_address)

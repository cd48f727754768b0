"""
=============================================================================
HTTP RESPONSE
=============================================================================

Builds responses and serializes them to the exact bytes that go on the wire.

=============================================================================
WIRE FORMAT
=============================================================================

Every response this server sends has the same shape:

    HTTP/1.1 200 OK\r\n                ← Status line
    Content-Type: text/html\r\n        ← The ONLY header
    \r\n                               ← Empty line (separator)
    <a href="/a.txt">a.txt</a>         ← Body bytes

There is no Content-Length header. The client knows the body has ended
because the server closes the connection after writing it:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  Body Delimited by Connection Close                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Server                                 Client                      │
    │      │   status line + headers ───────►   │                          │
    │      │   body bytes ──────────────────►   │  (keeps reading...)      │
    │      │   FIN ─────────────────────────►   │  recv() == b""           │
    │      │                                    │  → body complete         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

This is the HTTP/1.0 way of ending a body and is still valid HTTP/1.1
(RFC 7230 §3.3.3, rule 7). It rules out keep-alive, which we don't do.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from .status_codes import HTTPStatus


# Bodies used by the error responses
NOT_FOUND_BODY = "File Not Found"


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

        Handler returns          to_bytes()              Socket sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes

    Attributes:
        status:       HTTP status code.
        content_type: Value of the Content-Type header, or None to omit it.
        body:         Response body bytes.
        headers:      Extra headers, written after Content-Type.
                      The server itself never sets any.
        version:      Protocol version on the status line.
    """

    status: HTTPStatus = HTTPStatus.OK
    content_type: Optional[str] = None
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def header_bytes(self) -> bytes:
        """
        Serialize the status line and headers, including the blank line.

        Returns:
            Everything that precedes the body on the wire.
        """
        lines = [self.status_line]

        if self.content_type:
            lines.append(f"Content-Type: {self.content_type}")

        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")

        # Empty line separates headers from body
        lines.append("")

        return "\r\n".join(lines).encode("latin-1") + b"\r\n"

    def to_bytes(self) -> bytes:
        """
        Serialize the response to bytes for sending over socket.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        return self.header_bytes() + self.body


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One-liners for every response the server produces.
#
#     return ok(content, "text/css")
#     return not_found()
#
# =============================================================================

def ok(body: Union[str, bytes], content_type: str) -> HTTPResponse:
    """
    Create a 200 OK response.

    Args:
        body: Response body. Strings are encoded as UTF-8.
        content_type: Content-Type header value.

    Returns:
        HTTPResponse with 200 status
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    return HTTPResponse(status=HTTPStatus.OK, content_type=content_type, body=body)


def plain_text(status: HTTPStatus, message: Optional[str] = None) -> HTTPResponse:
    """
    Create a plain-text response for the given status.

    Args:
        status: HTTP status code.
        message: Body text. Defaults to the status's reason phrase.

    Returns:
        HTTPResponse with a text/plain body
    """
    text = message if message is not None else status.phrase
    return HTTPResponse(
        status=status,
        content_type="text/plain",
        body=text.encode("utf-8"),
    )


def bad_request(message: Optional[str] = None) -> HTTPResponse:
    """
    Create a 400 Bad Request response.

    Used when the request line is malformed or the path tries to escape
    the content root.
    """
    return plain_text(HTTPStatus.BAD_REQUEST, message)


def not_found() -> HTTPResponse:
    """
    Create a 404 Not Found response.

    The body is always "File Not Found", whatever was requested.
    """
    return plain_text(HTTPStatus.NOT_FOUND, NOT_FOUND_BODY)


def internal_error(message: Optional[str] = None) -> HTTPResponse:
    """
    Create a 500 Server Error response.

    Don't put exception details in the message: they would leak
    filesystem paths to the client. Log them instead.
    """
    return plain_text(HTTPStatus.INTERNAL_SERVER_ERROR, message)

"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Turns bytes from TCP into a request line, and responses back into bytes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST LINE PARSER (request.py)                                    │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   b"GET /a.txt HTTP/1.1"                                     │
    │ Output:  RequestLine(method="GET", path="/a.txt", ...)              │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE (response.py)                                              │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   ok(b"hello", "text/plain")                                 │
    │ Output:  b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\n\r\nhello"│
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ TABLES (status_codes.py, mime_types.py)                             │
    │ ─────────────────────────────────────────────────────────────────── │
    │ 404 → "Not Found"            .css → "text/css"                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import RequestLine, RequestLineParser, HTTPParseError, parse_request_line
from .response import (
    HTTPResponse,
    ok,             # 200 OK
    plain_text,     # any status, text/plain body
    bad_request,    # 400 Bad Request
    not_found,      # 404 Not Found
    internal_error, # 500 Server Error
)
from .status_codes import HTTPStatus, STATUS_PHRASES
from .mime_types import MIME_TYPES, DEFAULT_MIME_TYPE, get_mime_type

__all__ = [
    # Request parsing
    "RequestLine",
    "RequestLineParser",
    "HTTPParseError",
    "parse_request_line",

    # Responses
    "HTTPResponse",
    "ok",
    "plain_text",
    "bad_request",
    "not_found",
    "internal_error",

    # Tables
    "HTTPStatus",
    "STATUS_PHRASES",
    "MIME_TYPES",
    "DEFAULT_MIME_TYPE",
    "get_mime_type",
]

"""
=============================================================================
ACCESS LOG
=============================================================================

One log record per response written, on the "staticserver.access" logger.

    127.0.0.1 - - [19/Oct/2026:11:30:02 +0000] "GET /style.css" 200 1234 0.41ms

Configure it like any other logger:

    logging.getLogger("staticserver.access").setLevel(logging.WARNING)
    logging.getLogger("staticserver.access").addHandler(file_handler)

Requests we deliberately ignore (non-GET) produce no response and
therefore no access record.

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass, asdict

from .http.request import RequestLine
from .http.response import HTTPResponse


logger = logging.getLogger("staticserver.access")


@dataclass
class AccessRecord:
    """
    Structured log entry for one response.

    Fields:
        connection_id:  Connection identifier, matches the server's debug logs
        method:         Request method ("-" if the line was unparseable)
        path:           Request path ("-" if the line was unparseable)
        client_ip:      Client's IP address
        status_code:    Status code sent
        content_length: Body size in bytes
        duration_ms:    Time from request line to response written
        timestamp:      When the response was written
    """

    connection_id: str
    method: str
    path: str
    client_ip: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Format in the Apache common-log style."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """
    Emits AccessRecords in text or JSON form.

    5xx responses are logged at WARNING so they stand out; everything
    else at INFO.
    """

    def __init__(self, log_format: str = "text"):
        """
        Args:
            log_format: "text" (Apache style) or "json".
        """
        self.log_format = log_format

    def log(
        self,
        connection_id: str,
        client_ip: str,
        request: RequestLine | None,
        response: HTTPResponse,
        started_at: float,
    ) -> AccessRecord:
        """
        Build and emit the record for one response.

        Args:
            connection_id: Connection.id of the connection.
            client_ip: Client address.
            request: Parsed request line, or None if parsing failed.
            response: The response that was sent.
            started_at: time.time() when the request line was read.

        Returns:
            The emitted record.
        """
        record = AccessRecord(
            connection_id=connection_id,
            method=request.method if request else "-",
            path=request.path if request else "-",
            client_ip=client_ip,
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=(time.time() - started_at) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        level = logging.WARNING if response.status.is_server_error else logging.INFO

        if self.log_format == "json":
            logger.log(level, json.dumps(record.to_dict()))
        else:
            logger.log(level, record.to_text())

        return record

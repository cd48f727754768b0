"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Everything this server knows how to answer lives here:

    GET /            → HTML links to every entry of the content root
    GET /<name>      → the bytes of <root>/<name>

=============================================================================
FLOW
=============================================================================

    RequestLine
        │
        ├── method != GET ──────────► None (no response at all)
        │
        ├── path == "/" ────────────► list_directory()
        │                                 │
        │                                 ├── ok ──────► 200 text/html
        │                                 └── OSError ─► 500
        │
        └── anything else ──────────► serve_file(path[1:])
                                          │
                                          ├── escapes root, NUL ─► 400
                                          ├── absent ───────► 404
                                          ├── other OSError ► 500
                                          └── ok ───────────► 200 <mime>

=============================================================================
PATH TRAVERSAL
=============================================================================

A request like "GET /../../etc/passwd" must not read /etc/passwd. Before
touching the filesystem we normalize the candidate path LEXICALLY:

    root      = /srv/public
    requested = ../../etc/passwd
    joined    = /srv/public/../../etc/passwd
    normpath  = /etc/passwd               ← outside root → 400

commonpath([root, candidate]) must equal root, otherwise we refuse. The
check is purely string-based, so no stat() or open() happens for a path
that fails it.

=============================================================================
"""

import html
import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from ..http.request import RequestLine
from ..http.response import (
    HTTPResponse, ok, bad_request, not_found, internal_error,
)
from ..http.mime_types import MIME_TYPES, get_mime_type


logger = logging.getLogger(__name__)

# Errors that mean "there is no file by that name"
_ABSENT_ERRORS = (FileNotFoundError, IsADirectoryError, NotADirectoryError)


class PathTraversalError(ValueError):
    """Raised when a requested path cannot name a file inside the content root."""


class StaticFileHandler:
    """
    Handler for the root listing and for serving files.

    The handler holds no mutable state: the root and the MIME table are
    fixed at construction and only read afterwards, so one instance is
    shared by every connection thread.

    Usage:
        handler = StaticFileHandler("/srv/public")
        response = handler.handle(request_line)
        if response is not None:
            conn.send_response(response.to_bytes())
    """

    def __init__(
        self,
        root_dir: str | Path,
        mime_types: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize the handler.

        Args:
            root_dir: Directory to serve files from. Resolved to an
                      absolute path once, here.
            mime_types: Extension → Content-Type table. Defaults to
                        MIME_TYPES.
        """
        self.root_dir = os.path.realpath(os.fspath(root_dir))
        self.mime_types = mime_types if mime_types is not None else MIME_TYPES

    def handle(self, request: RequestLine) -> Optional[HTTPResponse]:
        """
        Route a request line to the listing or to a file.

        Args:
            request: The parsed request line.

        Returns:
            The response to send, or None when the request must be
            ignored (any method other than GET).
        """
        if not request.is_get:
            logger.debug(f"Ignoring {request.method} {request.path}")
            return None

        if request.is_root:
            return self.list_directory()

        return self.serve_file(request.relative_path)

    # =========================================================================
    # DIRECTORY LISTING
    # =========================================================================

    def list_directory(self) -> HTTPResponse:
        """
        Render the root directory's entries as links.

        Entries appear in the order the OS enumerates them (os.listdir),
        which is NOT necessarily alphabetical. Each one becomes

            <a href="/name">name</a>

        and the links are joined by <br>.

        Names are HTML-escaped in both places; a browser unescapes the
        attribute, so href="/a&amp;b.txt" still requests /a&b.txt.

        Returns:
            200 text/html with the links, or 500 if the root can't be read.
        """
        try:
            entries = os.listdir(self.root_dir)
        except OSError as e:
            # Missing or unreadable root is a server problem, not a 404
            logger.error(f"Cannot list root directory {self.root_dir}: {e}")
            return internal_error()

        links = "<br>".join(
            f'<a href="/{html.escape(name)}">{html.escape(name)}</a>'
            for name in entries
        )
        return ok(links, "text/html")

    # =========================================================================
    # FILE SERVING
    # =========================================================================

    def resolve(self, relative_path: str) -> str:
        """
        Turn a request path into a filesystem path under the root.

        Args:
            relative_path: Request path with its leading slash removed.

        Returns:
            Absolute, normalized path inside root_dir.

        Raises:
            PathTraversalError: If the path normalizes to outside root_dir,
                                or contains a NUL byte (no file can have
                                one in its name).
        """
        if "\x00" in relative_path:
            raise PathTraversalError(f"NUL byte in path: {relative_path!r}")

        candidate = os.path.normpath(os.path.join(self.root_dir, relative_path))

        try:
            inside = os.path.commonpath([self.root_dir, candidate]) == self.root_dir
        except ValueError:
            # Mixed absolute/relative or different drives (Windows)
            inside = False

        if not inside:
            raise PathTraversalError(f"Path escapes root: {relative_path!r}")

        return candidate

    def serve_file(self, relative_path: str) -> HTTPResponse:
        """
        Read a whole file and send it back.

        The file is read completely BEFORE anything is written, so an
        error never leaves a half-sent 200 on the wire.

        Args:
            relative_path: Request path with its leading slash removed.

        Returns:
            200 with the file's bytes, or a 400/404/500 error response.
        """
        try:
            full_path = self.resolve(relative_path)
        except PathTraversalError as e:
            logger.warning(f"Rejected path: {e}")
            return bad_request()

        try:
            with open(full_path, "rb") as f:
                content = f.read()
        except _ABSENT_ERRORS:
            logger.debug(f"Not found: {relative_path}")
            return not_found()
        except OSError as e:
            logger.error(f"Error reading {full_path}: {e}")
            return internal_error()

        return ok(content, get_mime_type(full_path, self.mime_types))

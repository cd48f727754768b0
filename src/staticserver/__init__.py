"""
=============================================================================
STATICSERVER - A Static File Server on Raw Sockets
=============================================================================

Serves the files of one directory over HTTP/1.1, using nothing but a TCP
socket: no http.server, no socketserver, no framework. Status lines and
headers are written by hand.

    GET /          → HTML links to every file in the root directory
    GET /notes.md  → the bytes of <root>/notes.md

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    staticserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m staticserver)
    ├── server.py            # HTTPServer: lifecycle + per-connection flow
    ├── config.py            # ServerConfig dataclass
    ├── access_log.py        # One log record per response
    ├── core/                # Low-level components
    │   ├── socket_server.py # Listening socket + accept loop
    │   └── connection.py    # Buffered client connection
    ├── http/                # HTTP protocol components
    │   ├── request.py       # Request line parsing
    │   ├── response.py      # Response serialization
    │   ├── status_codes.py  # Status codes + reason phrases
    │   └── mime_types.py    # Extension → Content-Type
    ├── handlers/
    │   └── static.py        # Root listing + file serving
    └── public/              # Default content root

=============================================================================
QUICK START
=============================================================================

    # Serve the bundled public/ directory on port 3000
    python -m staticserver

    # Serve another directory
    python -m staticserver --root ./site --port 8000

    # From code
    from staticserver import HTTPServer, ServerConfig

    HTTPServer(ServerConfig(root="./site")).run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "__version__"]

"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The low-level networking pieces, with no HTTP knowledge:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Creates the TCP listening socket, binds, listens                 │
    │  • Runs the accept() loop                                           │
    │  • Handles graceful shutdown via signals (SIGTERM, SIGINT)         │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ One Connection per accept()
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Wraps a client socket                                            │
    │  • Buffers bytes until a full request line has arrived              │
    │  • Sends responses, closes with FIN + drain                         │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
]

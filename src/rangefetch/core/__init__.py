"""
=============================================================================
CORE MODULE - Transport
=============================================================================

The low-level layer: getting request bytes to the server and response
bytes back, over plain TCP sockets.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          DOWNLOADER                                  │
    │  • Knows about ranges, cursors, Content-Length                      │
    │  • Only talks to the Exchange interface                             │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ exchange(request bytes)
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                        SOCKET EXCHANGE                               │
    │  • Opens a new Connection per request                               │
    │  • Writes the request, reads until the server closes                │
    │  • Turns every socket error into TransportError                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .connection import Connection, ConnectionState, Exchange, SocketExchange

__all__ = [
    "Connection",
    "ConnectionState",
    "Exchange",
    "SocketExchange",
]

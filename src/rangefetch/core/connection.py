"""
=============================================================================
REQUEST EXCHANGE
=============================================================================

One request, one connection, one response:

    ┌─────────────────────────────────────────────────────────────────┐
    │                    exchange(request)                             │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   TCP Connect ──► sendall(request) ──► recv() until EOF ──► Close│
    │                                                                  │
    │   Every call pays its own TCP handshake. No pooling, no reuse,  │
    │   no state carried from one request to the next.                │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
WHY READ UNTIL EOF?
=============================================================================

TCP is a byte stream, not a message protocol. recv() can hand back any
slice of the response:

    recv() → "HTTP/1.1 206 Par"        (partial status line)
    recv() → "tial Content\r\nCon..."  (rest + headers + some body)
    recv() → "...body bytes..."
    recv() → b""                       (peer closed: we have it all)

Every request we send says "Connection: close", so the server closes the
stream right after the body. recv() returning b"" is the end of the
response, and no Content-Length bookkeeping is needed to find it.

=============================================================================
SWAPPING THE TRANSPORT
=============================================================================

The downloader only knows the Exchange interface. SocketExchange is the
default; a pooled or persistent transport (or an in-memory fake in tests)
just needs to implement exchange(request) -> response bytes.

=============================================================================
"""

import logging
import socket
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..config import Endpoint
from ..errors import TransportError


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging."""
    NEW = "new"            # Not connected yet
    WRITING = "writing"    # Sending the request
    READING = "reading"    # Reading the response until EOF
    CLOSED = "closed"      # Socket released


class Exchange(ABC):
    """
    Capability interface: send one request, get back the whole response.

    Implementations must return the complete raw response bytes, or raise
    TransportError. They must not terminate the process.
    """

    @abstractmethod
    def exchange(self, request: bytes) -> bytes:
        """Send a request and return the raw response bytes."""


@dataclass
class Connection:
    """
    A single client connection to the server.

    Wraps a raw socket with just the operations an exchange needs:
    connect, write everything, read to end of stream, close.

    Attributes:
        endpoint: Server to connect to.
        buffer_size: Bytes asked for per recv() call.
        id: Short identifier used to correlate log lines.
        state: Current connection state.
        bytes_sent: Request bytes written so far.
        bytes_received: Response bytes read so far.
    """

    endpoint: Endpoint
    buffer_size: int = 8192

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    bytes_sent: int = 0
    bytes_received: int = 0

    _socket: Optional[socket.socket] = field(default=None, repr=False)

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    def open(self) -> "Connection":
        """
        Open the TCP connection.

        Raises:
            TransportError: If the server cannot be reached.
        """
        try:
            self._socket = socket.create_connection(self.endpoint.address)
        except OSError as e:
            raise TransportError(f"Failed to connect to {self.endpoint}: {e}") from e

        logger.debug(f"[{self.id}] Connected to {self.endpoint}")
        return self

    def send_all(self, data: bytes) -> None:
        """
        Write all of data to the socket.

        sendall() blocks until every byte is handed to the kernel; plain
        send() may write only part of it.
        """
        self.state = ConnectionState.WRITING
        try:
            self._require_socket().sendall(data)
        except OSError as e:
            raise TransportError(f"Failed to send request to {self.endpoint}: {e}") from e
        self.bytes_sent += len(data)

    def read_to_end(self) -> bytes:
        """
        Read from the socket until the peer closes the stream.

        Returns:
            Everything the server sent.
        """
        self.state = ConnectionState.READING
        sock = self._require_socket()
        buffer = bytearray()

        try:
            while True:
                chunk = sock.recv(self.buffer_size)
                if not chunk:
                    break  # Peer closed the stream
                buffer.extend(chunk)
        except OSError as e:
            raise TransportError(f"Failed to read response from {self.endpoint}: {e}") from e

        self.bytes_received = len(buffer)
        return bytes(buffer)

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self.state == ConnectionState.CLOSED:
            return

        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass  # Nothing left to release
            self._socket = None

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed: sent {self.bytes_sent} bytes, "
            f"received {self.bytes_received} bytes in {self.age:.3f}s"
        )

    def _require_socket(self) -> socket.socket:
        if self._socket is None:
            raise TransportError(f"[{self.id}] Connection is not open")
        return self._socket

    # =========================================================================
    # CONTEXT MANAGER: guarantees the socket is released
    # =========================================================================

    def __enter__(self) -> "Connection":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions


class SocketExchange(Exchange):
    """
    Default Exchange: a fresh TCP connection for every request.

    Example:
        exchange = SocketExchange(Endpoint("127.0.0.1", 8080))
        raw = exchange.exchange(build_request(endpoint))
    """

    def __init__(self, endpoint: Endpoint, buffer_size: int = 8192):
        self.endpoint = endpoint
        self.buffer_size = buffer_size

    def exchange(self, request: bytes) -> bytes:
        with Connection(self.endpoint, buffer_size=self.buffer_size) as conn:
            conn.send_all(request)
            return conn.read_to_end()


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Exchange - the capability the downloader depends on
# 2. Connection - one socket: open, send_all, read_to_end, close
# 3. SocketExchange - connection-per-request implementation
#
# Every OSError becomes a TransportError; the socket is always closed.
# =============================================================================

"""
=============================================================================
HTTP REQUEST BUILDER
=============================================================================

Builds the raw bytes of the two requests this client ever sends: a plain
GET used to learn the resource length, and a ranged GET for each chunk.

=============================================================================
REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     RANGED GET REQUEST                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET / HTTP/1.1\r\n                  ← request line                │
    │   Host: 127.0.0.1:8080\r\n            ← required in HTTP/1.1        │
    │   Range: bytes=65536-131071\r\n       ← only on chunk requests      │
    │   Connection: close\r\n               ← server closes after reply   │
    │   \r\n                                ← end of headers              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

"Connection: close" is what makes read-until-EOF a correct way to collect
the response: the server ends the stream once the body is written.

=============================================================================
HALF-OPEN RANGES VS HTTP RANGES
=============================================================================

Inside the client every range is half-open, [start, end):

    start = 65536, end = 131072   →   65536 bytes

HTTP byte ranges are inclusive on both ends (RFC 7233), so the same range
goes on the wire as:

    Range: bytes=65536-131071

ByteRange.header_value is the ONLY place that conversion happens. All
arithmetic (cursor, window, lengths) uses the half-open form.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional

from ..config import Endpoint


HTTP_VERSION = "HTTP/1.1"
CRLF = "\r\n"


@dataclass(frozen=True)
class ByteRange:
    """
    A half-open byte range [start, end) within a resource.

    Attributes:
        start: First byte offset (inclusive).
        end: Offset one past the last byte (exclusive).
    """

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"Range start must be >= 0, got {self.start}")
        if self.end <= self.start:
            raise ValueError(f"Range end must be > start, got [{self.start}, {self.end})")

    @property
    def length(self) -> int:
        """Number of bytes covered by the range."""
        return self.end - self.start

    @property
    def header_value(self) -> str:
        """The Range header value, in HTTP's inclusive form."""
        return f"bytes={self.start}-{self.end - 1}"

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


def build_request(
    endpoint: Endpoint,
    path: str = "/",
    byte_range: Optional[ByteRange] = None,
) -> bytes:
    """
    Build a GET request for the resource, optionally for one byte range.

    Args:
        endpoint: Server the request is addressed to (Host header).
        path: Request target.
        byte_range: Range to ask for, or None for the whole resource.

    Returns:
        The encoded request, ready to be written to a socket.

    Example:
        >>> build_request(Endpoint("127.0.0.1", 8080), "/", ByteRange(0, 10))
        b'GET / HTTP/1.1\\r\\nHost: 127.0.0.1:8080\\r\\nRange: bytes=0-9\\r\\nConnection: close\\r\\n\\r\\n'
    """
    lines = [
        f"GET {path} {HTTP_VERSION}",
        f"Host: {endpoint.authority}",
    ]
    if byte_range is not None:
        lines.append(f"Range: {byte_range.header_value}")
    lines.append("Connection: close")

    # Trailing empty string produces the blank line that ends the headers
    return (CRLF.join(lines) + CRLF + CRLF).encode("ascii")

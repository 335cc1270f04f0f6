"""
=============================================================================
HTTP MODULE - Just Enough HTTP/1.1
=============================================================================

The protocol layer of the client: building requests and parsing responses
from raw bytes, without an HTTP library.

    REQUEST (we send):                RESPONSE (we receive):
    ──────────────────                ──────────────────────
    GET / HTTP/1.1\r\n                HTTP/1.1 206 Partial Content\r\n
    Host: 127.0.0.1:8080\r\n          Content-Length: 65536\r\n
    Range: bytes=0-65535\r\n          \r\n
    Connection: close\r\n             [65536 body bytes]
    \r\n

Key points:
- Lines end with CRLF (\r\n), not just \n
- Headers and body separated by an empty line (\r\n\r\n)
- Header names are case-insensitive ("Content-Length" = "content-length")
- Body length is declared by Content-Length; the body itself may be shorter

=============================================================================
"""

from .request import ByteRange, build_request
from .response import HTTPResponse, ResponseParser, parse_response, parse_content_length
from .status_codes import HTTPStatus, ACCEPTED_CHUNK_STATUSES, phrase_for

__all__ = [
    # Request building
    "ByteRange",
    "build_request",

    # Response parsing
    "HTTPResponse",
    "ResponseParser",
    "parse_response",
    "parse_content_length",

    # Status codes
    "HTTPStatus",
    "ACCEPTED_CHUNK_STATUSES",
    "phrase_for",
]

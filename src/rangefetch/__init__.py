"""
=============================================================================
RANGEFETCH - Chunked HTTP Range Downloads From Raw Sockets
=============================================================================

Fetches a resource from an HTTP/1.1 server in fixed-size byte ranges, one
connection per range, reassembles the ranges in order, and fingerprints the
result so it can be checked end to end.

No HTTP library is involved: requests are built and responses parsed from
raw bytes.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    rangefetch/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m rangefetch)
    ├── config.py            # Endpoint + ClientConfig
    ├── downloader.py        # DownloadSession: length discovery + range loop
    ├── digest.py            # Payload fingerprint
    ├── errors.py            # Typed failures
    ├── core/
    │   └── connection.py    # Exchange interface, one-shot TCP connection
    └── http/
        ├── request.py       # ByteRange, request bytes
        ├── response.py      # Response parser
        └── status_codes.py  # Status enum, accepted chunk statuses

=============================================================================
QUICK START
=============================================================================

    from rangefetch import ClientConfig, DownloadSession

    session = DownloadSession(ClientConfig(host="127.0.0.1", port=8080))
    result = session.download()

    print(result.state.value, result.total_length, result.digest)

=============================================================================
"""

__version__ = "1.0.0"

from .config import ClientConfig, Endpoint
from .downloader import DownloadSession, DownloadResult, ChunkRecord, SessionState, download
from .digest import Digest, compute_digest
from .errors import (
    RangeFetchError,
    TransportError,
    ResponseError,
    MalformedResponse,
    InvalidStatusLine,
    MissingHeader,
    ParseError,
    UnexpectedStatus,
)

__all__ = [
    "ClientConfig",
    "Endpoint",
    "DownloadSession",
    "DownloadResult",
    "ChunkRecord",
    "SessionState",
    "download",
    "Digest",
    "compute_digest",
    "RangeFetchError",
    "TransportError",
    "ResponseError",
    "MalformedResponse",
    "InvalidStatusLine",
    "MissingHeader",
    "ParseError",
    "UnexpectedStatus",
    "__version__",
]

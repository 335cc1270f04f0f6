"""
=============================================================================
CHUNKED DOWNLOADER / REASSEMBLER
=============================================================================

Downloads a resource as a sequence of byte-range requests and stitches the
pieces back together, in order, into one buffer.

=============================================================================
THE ALGORITHM
=============================================================================

    total_length = Content-Length of an un-ranged GET     (exactly once)
    cursor = 0

    while cursor < total_length:
        end   = min(cursor + window_size, total_length)
        reply = GET with Range [cursor, end)
        check status ∈ {200, 206}
        chunk = first min(Content-Length, len(body)) bytes
                (never more than total_length - cursor)
        if chunk is empty: stop early
        buffer += chunk
        cursor += len(chunk)         ← bytes RECEIVED, not bytes asked for

Example with total_length = 150000, window_size = 65536:

    ┌──────────────────────┬──────────────────────┬────────────────┐
    │  [0, 65536)          │  [65536, 131072)     │ [131072,150000)│
    └──────────────────────┴──────────────────────┴────────────────┘
      request 1              request 2              request 3

=============================================================================
SHORT READS
=============================================================================

A server may declare Content-Length: 1000 and then deliver 400 bytes.
Because the cursor moves by what was actually accepted, the next request
simply starts at the first missing byte:

    requested [0, 1000)   → got 400 bytes → cursor = 400
    requested [400, 1400) → ...

Nothing is skipped and nothing is fetched twice.

=============================================================================
SESSION STATE MACHINE
=============================================================================

    INIT ──discover_length()──► LENGTH_KNOWN ──download()──► DOWNLOADING
      │                                                          │
      │ (any error)                        ┌─────────────────────┼──────────┐
      ▼                                    ▼                     ▼          ▼
    FAILED ◄───────────(any error)──── FAILED               COMPLETE   TRUNCATED

    COMPLETE   every byte arrived: len(buffer) == total_length
    TRUNCATED  a chunk came back empty first: len(buffer) < total_length
    FAILED     transport, parse or status error (exception propagates)

TRUNCATED is a normal return, not an exception. Callers must look at
result.state instead of assuming the download is complete.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from .config import ClientConfig
from .core.connection import Exchange, SocketExchange
from .digest import Digest, compute_digest
from .errors import RangeFetchError, UnexpectedStatus
from .http.request import ByteRange, build_request
from .http.response import HTTPResponse, ResponseParser
from .http.status_codes import ACCEPTED_CHUNK_STATUSES, phrase_for


logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle of a download session."""
    INIT = "init"                    # Nothing fetched yet
    LENGTH_KNOWN = "length_known"    # total_length established
    DOWNLOADING = "downloading"      # Range requests in progress
    COMPLETE = "complete"            # All bytes received
    TRUNCATED = "truncated"          # Stopped early on an empty chunk
    FAILED = "failed"                # Aborted by an error


@dataclass(frozen=True)
class ChunkRecord:
    """
    What happened to one range request.

    Attributes:
        requested: The range that was asked for.
        status_code: Status of the chunk response.
        declared_length: The response's own Content-Length.
        received_length: Body bytes that actually arrived.
        accepted_length: Bytes appended to the buffer.
    """

    requested: ByteRange
    status_code: int
    declared_length: int
    received_length: int
    accepted_length: int

    @property
    def is_short(self) -> bool:
        """True if fewer bytes were accepted than were requested."""
        return self.accepted_length < self.requested.length


@dataclass
class DownloadResult:
    """
    Outcome of a finished (COMPLETE or TRUNCATED) session.

    Attributes:
        state: SessionState.COMPLETE or SessionState.TRUNCATED.
        total_length: Size reported by length discovery.
        data: The reassembled payload.
        chunks: One record per range request, in request order.
        digest: Fingerprint of data.
    """

    state: SessionState
    total_length: int
    data: bytes
    digest: Digest
    chunks: List[ChunkRecord] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.state == SessionState.COMPLETE

    @property
    def missing_bytes(self) -> int:
        """How many bytes of the resource were never received."""
        return self.total_length - len(self.data)


ChunkCallback = Callable[[ChunkRecord], None]


class DownloadSession:
    """
    One chunked download of one resource.

    =========================================================================
    USAGE
    =========================================================================

        session = DownloadSession(ClientConfig(port=8080, window_size=65536))
        result = session.download()

        if result.is_complete:
            print(result.digest)
        else:
            print(f"Truncated, {result.missing_bytes} bytes missing")

    A session runs once. Create a new one to download again.

    =========================================================================
    OWNERSHIP
    =========================================================================

    The buffer belongs to the session and only grows by append. Nothing
    else writes to it while the download runs, so there is no locking.

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        exchange: Optional[Exchange] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ):
        """
        Initialize a download session.

        Args:
            config: Client configuration. Defaults to ClientConfig().
            exchange: Transport used for every request. Defaults to a
                      SocketExchange for config.endpoint.
            on_chunk: Called with a ChunkRecord after every range request.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ClientConfig()
        self.config.validate()

        self.endpoint = self.config.endpoint
        self.exchange = exchange or SocketExchange(self.endpoint, self.config.buffer_size)
        self.on_chunk = on_chunk

        self.state = SessionState.INIT
        self.cursor = 0
        self.chunks: List[ChunkRecord] = []

        self._total_length: Optional[int] = None
        self._buffer = bytearray()
        self._parser = ResponseParser()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def total_length(self) -> Optional[int]:
        """Resource size, or None before length discovery."""
        return self._total_length

    @property
    def received(self) -> int:
        """Bytes reassembled so far."""
        return len(self._buffer)

    # =========================================================================
    # LENGTH DISCOVERY
    # =========================================================================

    def discover_length(self) -> int:
        """
        Learn the resource size from an un-ranged GET.

        Happens exactly once per session, before any range request.

        Returns:
            The total length in bytes.

        Raises:
            TransportError: If the exchange fails.
            MalformedResponse, InvalidStatusLine: If the response is bad.
            MissingHeader: If the response has no Content-Length.
            ParseError: If Content-Length is not a non-negative integer.
            RuntimeError: If called after the session has left INIT.
        """
        if self.state != SessionState.INIT:
            raise RuntimeError(f"Length discovery not allowed in state {self.state.value}")

        try:
            response = self._fetch(None)
            total_length = response.content_length()
        except RangeFetchError:
            self.state = SessionState.FAILED
            raise

        self._total_length = total_length
        self.state = SessionState.LENGTH_KNOWN
        logger.info(f"Total length of {self.config.path} on {self.endpoint}: {total_length} bytes")
        return total_length

    # =========================================================================
    # CHUNKED DOWNLOAD
    # =========================================================================

    def download(self) -> DownloadResult:
        """
        Download the whole resource in window_size ranges.

        Runs length discovery first if it has not happened yet.

        Returns:
            DownloadResult in state COMPLETE or TRUNCATED.

        Raises:
            RangeFetchError: Any transport, parse or status error. The
                             session is left in state FAILED.
            RuntimeError: If the session already ran.
        """
        if self.state == SessionState.INIT:
            self.discover_length()

        if self.state != SessionState.LENGTH_KNOWN:
            raise RuntimeError(f"Download not allowed in state {self.state.value}")

        self.state = SessionState.DOWNLOADING
        try:
            self._download_chunks()
        except RangeFetchError:
            self.state = SessionState.FAILED
            raise

        if len(self._buffer) == self._total_length:
            self.state = SessionState.COMPLETE
            logger.info(f"Download complete: {len(self._buffer)} bytes in {len(self.chunks)} chunks")
        else:
            self.state = SessionState.TRUNCATED
            logger.warning(
                f"Download truncated: received {len(self._buffer)} of "
                f"{self._total_length} bytes"
            )

        return DownloadResult(
            state=self.state,
            total_length=self._total_length,
            data=bytes(self._buffer),
            digest=compute_digest(self._buffer, self.config.digest_algorithm),
            chunks=list(self.chunks),
        )

    def _download_chunks(self) -> None:
        """The range loop. Leaves early on the first empty chunk."""
        total_length = self._total_length
        window_size = self.config.window_size

        while self.cursor < total_length:
            end = min(self.cursor + window_size, total_length)
            requested = ByteRange(self.cursor, end)

            payload, record = self._fetch_chunk(requested)
            self.chunks.append(record)
            logger.debug(f"Downloaded chunk: {record.accepted_length} bytes (requested {requested})")

            if self.on_chunk is not None:
                self.on_chunk(record)

            if not payload:
                logger.info("No more data received, stopping")
                break

            self._buffer.extend(payload)
            self.cursor += len(payload)

    def _fetch_chunk(self, requested: ByteRange) -> tuple[bytes, ChunkRecord]:
        """
        Request one range and decide how many of its bytes to keep.

        Accepted length = min(declared, received). Trusting the smaller of
        the two tolerates short bodies without reading past what the server
        declared. The result is also capped at the bytes still missing from
        the resource, so the buffer never outgrows total_length.
        """
        response = self._fetch(requested)

        if response.status_code not in ACCEPTED_CHUNK_STATUSES:
            raise UnexpectedStatus(
                response.status_code,
                response.reason or phrase_for(response.status_code),
            )

        declared = response.content_length()
        received = len(response.body)
        remaining = self._total_length - self.cursor
        accepted = min(declared, received, remaining)

        if min(declared, received) > remaining:
            logger.warning(
                f"Server sent more than the {remaining} bytes left for {requested}: "
                f"declared {declared}, received {received}; keeping {accepted}"
            )
        elif received < declared:
            logger.debug(f"Short read for {requested}: declared {declared}, received {received}")

        record = ChunkRecord(
            requested=requested,
            status_code=response.status_code,
            declared_length=declared,
            received_length=received,
            accepted_length=accepted,
        )
        return response.body[:accepted], record

    def _fetch(self, byte_range: Optional[ByteRange]) -> HTTPResponse:
        """Build, exchange and parse one request."""
        request = build_request(self.endpoint, self.config.path, byte_range)
        raw = self.exchange.exchange(request)
        response = self._parser.parse(raw)
        logger.debug(
            f"{response.status_code} {response.reason} for "
            f"{byte_range if byte_range is not None else 'full resource'}: "
            f"{len(response.body)} body bytes"
        )
        return response


def download(
    config: Optional[ClientConfig] = None,
    exchange: Optional[Exchange] = None,
    on_chunk: Optional[ChunkCallback] = None,
) -> DownloadResult:
    """
    Convenience function: run one download session and return its result.

    Use DownloadSession directly to inspect the session state after a
    failure.
    """
    return DownloadSession(config, exchange, on_chunk).download()


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. discover_length() - one un-ranged GET, Content-Length is the total
# 2. download() - range loop, cursor advances by accepted bytes
# 3. COMPLETE / TRUNCATED returned, FAILED raised
# 4. Exchange is injected, so tests and other transports plug in
# =============================================================================

"""
pytest configuration and fixtures.
"""

import re
import socket
import threading
from typing import Callable, Dict, Generator, List, Optional, Tuple

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rangefetch import ClientConfig
from rangefetch.core.connection import Exchange


RANGE_PATTERN = re.compile(rb"\r\nRange: bytes=(\d+)-(\d+)\r\n")


def build_response(
    status: str = "206 Partial Content",
    headers: Optional[Dict[str, object]] = None,
    body: bytes = b"",
) -> bytes:
    """Build raw response bytes. Headers are written exactly as given."""
    head = f"HTTP/1.1 {status}\r\n"
    for name, value in (headers or {}).items():
        head += f"{name}: {value}\r\n"
    return head.encode() + b"\r\n" + body


def parse_range(request: bytes) -> Optional[Tuple[int, int]]:
    """Extract the inclusive (first, last) pair from a request's Range header."""
    match = RANGE_PATTERN.search(request)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


class PayloadExchange(Exchange):
    """
    In-memory server: serves a payload with HTTP range semantics.

    Records every request. `overrides` maps a request index (0 is length
    discovery) to raw response bytes returned instead of the payload. With
    ignore_range set it behaves like a server without range support and
    answers every request with 200 and the whole payload.
    """

    def __init__(
        self,
        payload: bytes,
        overrides: Optional[Dict[int, bytes]] = None,
        ignore_range: bool = False,
    ):
        self.payload = payload
        self.overrides = overrides or {}
        self.ignore_range = ignore_range
        self.requests: List[bytes] = []
        self._lock = threading.Lock()

    def exchange(self, request: bytes) -> bytes:
        with self._lock:
            index = len(self.requests)
            self.requests.append(request)

        if index in self.overrides:
            return self.overrides[index]

        byte_range = parse_range(request)
        if byte_range is None or self.ignore_range:
            return build_response(
                "200 OK",
                {"Content-Length": len(self.payload)},
                self.payload,
            )

        first, last = byte_range
        body = self.payload[first:last + 1]
        return build_response(
            "206 Partial Content",
            {
                "Content-Range": f"bytes {first}-{first + len(body) - 1}/{len(self.payload)}",
                "Content-Length": len(body),
            },
            body,
        )

    @property
    def ranges(self) -> List[Optional[Tuple[int, int]]]:
        """Inclusive ranges of all requests, None for un-ranged ones."""
        return [parse_range(r) for r in self.requests]


class RangeServer:
    """Threaded TCP server that answers each connection with a PayloadExchange."""

    def __init__(self, handler: PayloadExchange):
        self.handler = handler
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))
        self._socket.listen(16)
        self._socket.settimeout(0.1)
        self.port = self._socket.getsockname()[1]
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        """Start serving in a background thread."""
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def stop(self):
        """Stop the server."""
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self._socket.close()

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._socket.accept()
            except socket.timeout:
                continue
            except OSError:
                break

            with conn:
                conn.settimeout(5.0)
                data = b""
                while b"\r\n\r\n" not in data:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    data += chunk
                if b"\r\n\r\n" not in data:
                    continue  # Client hung up without a request
                try:
                    conn.sendall(self.handler.exchange(data))
                except OSError:
                    continue


@pytest.fixture
def payload() -> bytes:
    """150000 bytes of non-repeating-per-window test data."""
    return bytes((i * 7 + i // 251) % 256 for i in range(150000))


@pytest.fixture
def make_exchange() -> Callable[..., PayloadExchange]:
    """Factory for in-memory range exchanges."""
    return PayloadExchange


@pytest.fixture
def response_bytes() -> Callable[..., bytes]:
    """Factory for raw response bytes."""
    return build_response


@pytest.fixture
def config() -> ClientConfig:
    """Default test client configuration."""
    return ClientConfig(
        host="127.0.0.1",
        port=8080,
        window_size=65536,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def range_server(payload: bytes) -> Generator[RangeServer, None, None]:
    """A real TCP server serving `payload` with range support."""
    server = RangeServer(PayloadExchange(payload))
    server.start()

    yield server

    server.stop()

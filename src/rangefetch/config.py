"""
=============================================================================
CLIENT CONFIGURATION
=============================================================================

Centralized configuration for a download session.

Every value that used to be a constant at the top of a script (server
address, chunk size, hash function) lives here, with a documented default,
and is passed explicitly into the session.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m rangefetch --window-size 16384                  │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── RANGEFETCH_PORT=9000 python -m rangefetch                 │
    │                                                                      │
    │   3. Defaults (this file)                                           │
    │      └── 127.0.0.1:8080, 64 KB windows, SHA-256                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import hashlib
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Endpoint:
    """
    Host and port identifying the server.

    Frozen: the endpoint cannot change in the middle of a session.
    """

    host: str
    port: int

    @property
    def authority(self) -> str:
        """The host:port form used in the Host header."""
        return f"{self.host}:{self.port}"

    @property
    def address(self) -> tuple[str, int]:
        """The (host, port) tuple socket functions expect."""
        return (self.host, self.port)

    def __str__(self) -> str:
        return self.authority


@dataclass
class ClientConfig:
    """
    Configuration for the range-fetching client.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, path, buffer_size

    DOWNLOAD SETTINGS
    - window_size, digest_algorithm

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Server host to connect to."""

    port: int = 8080
    """Server port to connect to."""

    path: str = "/"
    """
    Request target sent on the request line.
    The resource whose bytes are fetched.
    """

    buffer_size: int = 8192
    """
    How many bytes each recv() call asks for (8 KB default).
    Does not limit the response size; reading continues until EOF.
    """

    # ─────────────────────────────────────────────────────────────────────
    # DOWNLOAD SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    window_size: int = 64 * 1024
    """
    Bytes requested per ranged request (64 KB default).
    Smaller = more round trips, larger = more memory per response.
    """

    digest_algorithm: str = "sha256"
    """
    hashlib algorithm used to fingerprint the reassembled payload.
    Anything hashlib.new() accepts: sha256, sha1, md5, blake2b, ...
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)."""

    @property
    def endpoint(self) -> Endpoint:
        """The server endpoint for this configuration."""
        return Endpoint(self.host, self.port)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        RANGEFETCH_HOST         Server host (default: 127.0.0.1)
        RANGEFETCH_PORT         Server port (default: 8080)
        RANGEFETCH_PATH         Request path (default: /)
        RANGEFETCH_WINDOW_SIZE  Bytes per range request (default: 65536)
        RANGEFETCH_ALGORITHM    Digest algorithm (default: sha256)
        RANGEFETCH_LOG_LEVEL    Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("RANGEFETCH_HOST", "127.0.0.1"),
            port=int(os.getenv("RANGEFETCH_PORT", "8080")),
            path=os.getenv("RANGEFETCH_PATH", "/"),
            window_size=int(os.getenv("RANGEFETCH_WINDOW_SIZE", str(64 * 1024))),
            digest_algorithm=os.getenv("RANGEFETCH_ALGORITHM", "sha256"),
            log_level=os.getenv("RANGEFETCH_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called at startup so a bad value fails before the first
        connection is opened.
        """
        if not self.host:
            raise ValueError("host must not be empty")

        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")

        if not self.path.startswith("/"):
            raise ValueError(f"path must start with '/': {self.path!r}")

        if self.window_size < 1:
            raise ValueError(f"window_size must be > 0, got {self.window_size}")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.digest_algorithm.lower() not in hashlib.algorithms_available:
            raise ValueError(f"Unknown digest algorithm: {self.digest_algorithm}")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Endpoint - immutable host/port pair for one session
# 2. ClientConfig - typed settings with documented defaults
# 3. from_env() - environment overrides
# 4. validate() - fail-fast checks before any I/O
# =============================================================================

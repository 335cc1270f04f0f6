"""
=============================================================================
DIGEST COMPUTATION
=============================================================================

Fingerprints the reassembled payload so it can be compared with a digest
published by the server operator (or computed from the source file).

If even one chunk is missing, duplicated or out of order, the fingerprint
changes completely:

    sha256(chunk_a + chunk_b)  !=  sha256(chunk_b + chunk_a)
    sha256(chunk_a + chunk_a)  !=  sha256(chunk_a)

So one comparison at the end checks the whole reassembly.

=============================================================================
"""

import hashlib
import hmac
from dataclasses import dataclass


DEFAULT_ALGORITHM = "sha256"


@dataclass(frozen=True)
class Digest:
    """
    A fixed-length fingerprint of a byte sequence.

    Attributes:
        algorithm: hashlib algorithm name ("sha256").
        hexdigest: Lowercase hex fingerprint.
    """

    algorithm: str
    hexdigest: str

    def matches(self, expected: str) -> bool:
        """Compare against an expected hex digest (case-insensitive)."""
        return hmac.compare_digest(
            self.hexdigest.encode(), expected.strip().lower().encode()
        )

    def __str__(self) -> str:
        return self.hexdigest


def compute_digest(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> Digest:
    """
    Hash data in a single pass and return its fingerprint.

    Pure function: same bytes in, same digest out.

    Raises:
        ValueError: If hashlib does not know the algorithm.
    """
    hasher = hashlib.new(algorithm)
    hasher.update(data)
    return Digest(algorithm=hasher.name, hexdigest=hasher.hexdigest())

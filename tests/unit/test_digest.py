"""
Unit tests for digest computation.
"""

import hashlib

import pytest

from rangefetch.digest import Digest, compute_digest


class TestComputeDigest:
    """Tests for compute_digest()."""

    def test_sha256_default(self):
        """Test that SHA-256 is the default fingerprint."""
        digest = compute_digest(b"Hello")

        assert digest.algorithm == "sha256"
        assert digest.hexdigest == hashlib.sha256(b"Hello").hexdigest()
        assert len(digest.hexdigest) == 64

    def test_deterministic(self):
        """Test that the same bytes always give the same digest."""
        assert compute_digest(b"data") == compute_digest(b"data")

    def test_order_sensitive(self):
        """Test that reordered chunks change the fingerprint."""
        assert compute_digest(b"HelloWorld") != compute_digest(b"WorldHello")

    def test_chunked_equals_contiguous(self):
        """Test that joined chunks hash like the contiguous bytes."""
        chunks = [bytes([i]) * 1000 for i in range(10)]
        buffer = bytearray()
        for chunk in chunks:
            buffer.extend(chunk)

        assert compute_digest(buffer) == compute_digest(b"".join(chunks))

    def test_unknown_algorithm(self):
        """Test that unknown algorithms are rejected."""
        with pytest.raises(ValueError):
            compute_digest(b"data", "not-a-hash")


class TestDigest:
    """Tests for Digest dataclass."""

    def test_matches(self):
        """Test comparing with an expected digest."""
        digest = compute_digest(b"Hello")
        expected = hashlib.sha256(b"Hello").hexdigest()

        assert digest.matches(expected)
        assert digest.matches(expected.upper())
        assert digest.matches(f"  {expected}\n")
        assert not digest.matches("0" * 64)

    def test_str(self):
        """Test that str() is the hex fingerprint."""
        assert str(Digest("sha256", "abc")) == "abc"

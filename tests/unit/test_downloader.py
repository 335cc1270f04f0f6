"""
Unit tests for the chunked downloader.
"""

import hashlib
import logging
import math
from dataclasses import replace

import pytest

from rangefetch import download
from rangefetch.config import ClientConfig
from rangefetch.downloader import ChunkRecord, DownloadSession, SessionState
from rangefetch.errors import MalformedResponse, MissingHeader, ParseError, UnexpectedStatus


def half_open(ranges):
    """Convert recorded inclusive ranges to [start, end) pairs."""
    return [(first, last + 1) for first, last in ranges]


class TestLengthDiscovery:
    """Tests for DownloadSession.discover_length()."""

    def test_discover_length(self, config, payload, make_exchange):
        """Test that Content-Length of the un-ranged response is the total."""
        exchange = make_exchange(payload)
        session = DownloadSession(config, exchange)

        assert session.total_length is None
        assert session.discover_length() == 150000
        assert session.total_length == 150000
        assert session.state == SessionState.LENGTH_KNOWN
        assert exchange.ranges == [None]

    def test_missing_content_length(self, config, make_exchange, response_bytes):
        """Test that no chunk is requested when the length is unknown."""
        exchange = make_exchange(b"", overrides={
            0: response_bytes("200 OK", {"Server": "test"}, b"abc"),
        })
        session = DownloadSession(config, exchange)

        with pytest.raises(MissingHeader):
            session.download()

        assert len(exchange.requests) == 1
        assert session.state == SessionState.FAILED

    def test_invalid_content_length(self, config, make_exchange, response_bytes):
        """Test that a non-integer total length fails the session."""
        exchange = make_exchange(b"", overrides={
            0: response_bytes("200 OK", {"Content-Length": "lots"}, b""),
        })
        session = DownloadSession(config, exchange)

        with pytest.raises(ParseError):
            session.discover_length()

        assert session.state == SessionState.FAILED
        assert session.total_length is None

    def test_length_discovered_once(self, config, payload, make_exchange):
        """Test that length discovery cannot run twice."""
        exchange = make_exchange(payload)
        session = DownloadSession(config, exchange)
        session.discover_length()

        with pytest.raises(RuntimeError):
            session.discover_length()

        session.download()
        assert exchange.ranges.count(None) == 1


class TestChunkedDownload:
    """Tests for DownloadSession.download()."""

    def test_three_windows(self, config, payload, make_exchange):
        """Test 150000 bytes in 65536-byte windows."""
        exchange = make_exchange(payload)
        result = DownloadSession(config, exchange).download()

        assert exchange.ranges[0] is None
        assert half_open(exchange.ranges[1:]) == [
            (0, 65536),
            (65536, 131072),
            (131072, 150000),
        ]
        assert result.state == SessionState.COMPLETE
        assert result.is_complete
        assert result.total_length == 150000
        assert len(result.data) == 150000
        assert result.data == payload
        assert result.missing_bytes == 0

    @pytest.mark.parametrize("total_length,window_size", [
        (1, 1),
        (10, 3),
        (1000, 1000),
        (1000, 999),
        (1001, 1000),
        (5000, 7000),
        (150000, 4096),
    ])
    def test_ranges_cover_resource(self, payload, make_exchange, total_length, window_size):
        """Test that ranges are contiguous, in order and within bounds."""
        data = payload[:total_length]
        exchange = make_exchange(data)
        config = ClientConfig(window_size=window_size)

        result = DownloadSession(config, exchange).download()
        ranges = half_open(exchange.ranges[1:])

        assert ranges[0][0] == 0
        assert ranges[-1][1] == total_length
        for (start, end), (next_start, _) in zip(ranges, ranges[1:]):
            assert end == next_start
        for start, end in ranges:
            assert 0 <= start < end <= total_length
        assert len(ranges) <= math.ceil(total_length / window_size)
        assert result.data == data

    def test_short_read_advances_by_received(self, payload, make_exchange, response_bytes):
        """Test that the next range starts after the bytes actually received."""
        data = payload[:2000]
        exchange = make_exchange(data, overrides={
            1: response_bytes("206 Partial Content", {"Content-Length": 1000}, data[:400]),
        })
        session = DownloadSession(ClientConfig(window_size=1000), exchange)

        result = session.download()

        assert half_open(exchange.ranges[1:]) == [(0, 1000), (400, 1400), (1400, 2000)]
        assert result.chunks[0].declared_length == 1000
        assert result.chunks[0].received_length == 400
        assert result.chunks[0].accepted_length == 400
        assert result.chunks[0].is_short
        assert result.state == SessionState.COMPLETE
        assert result.data == data

    def test_body_longer_than_declared(self, payload, make_exchange, response_bytes):
        """Test that bytes beyond the declared Content-Length are ignored."""
        data = payload[:2000]
        exchange = make_exchange(data, overrides={
            1: response_bytes("206 Partial Content", {"Content-Length": 10}, data[:100]),
        })

        result = DownloadSession(ClientConfig(window_size=1000), exchange).download()

        assert result.chunks[0].accepted_length == 10
        assert exchange.ranges[2] == (10, 1009)
        assert result.data == data

    def test_server_ignores_range(self, payload, make_exchange):
        """Test that a 200 with the whole resource is accepted in full."""
        data = payload[:2000]
        exchange = make_exchange(data, ignore_range=True)

        result = DownloadSession(ClientConfig(window_size=1000), exchange).download()

        assert result.state == SessionState.COMPLETE
        assert result.data == data
        assert result.digest.hexdigest == hashlib.sha256(data).hexdigest()
        assert len(exchange.requests) == 2
        assert result.chunks[0].status_code == 200
        assert result.chunks[0].accepted_length == 2000

    def test_over_delivery_capped_at_remaining(self, payload, make_exchange, response_bytes, caplog):
        """Test that bytes past the end of the resource are dropped."""
        data = payload[:2000]
        exchange = make_exchange(data, overrides={
            2: response_bytes("206 Partial Content", {"Content-Length": 1500}, data[1000:] + b"x" * 500),
        })

        with caplog.at_level(logging.WARNING, logger="rangefetch.downloader"):
            result = DownloadSession(ClientConfig(window_size=1000), exchange).download()

        assert result.state == SessionState.COMPLETE
        assert result.data == data
        assert result.chunks[1].received_length == 1500
        assert result.chunks[1].accepted_length == 1000
        assert "more than the 1000 bytes left" in caplog.text

    def test_chunks_not_logged_at_info(self, config, payload, make_exchange, caplog):
        """Test that per-chunk lines stay below INFO."""
        with caplog.at_level(logging.INFO, logger="rangefetch.downloader"):
            DownloadSession(config, make_exchange(payload)).download()

        assert "Downloaded chunk" not in caplog.text
        assert "Download complete" in caplog.text

    def test_empty_chunk_truncates(self, config, payload, make_exchange, response_bytes):
        """Test that an empty chunk ends the session as TRUNCATED."""
        exchange = make_exchange(payload, overrides={
            2: response_bytes("206 Partial Content", {"Content-Length": 0}, b""),
        })

        result = DownloadSession(config, exchange).download()

        assert result.state == SessionState.TRUNCATED
        assert not result.is_complete
        assert result.data == payload[:65536]
        assert result.missing_bytes == 150000 - 65536
        assert len(exchange.requests) == 3

    def test_declared_but_missing_body_truncates(self, config, payload, make_exchange, response_bytes):
        """Test that a declared length with no body bytes is a zero-byte chunk."""
        exchange = make_exchange(payload, overrides={
            1: response_bytes("206 Partial Content", {"Content-Length": 65536}, b""),
        })

        result = DownloadSession(config, exchange).download()

        assert result.state == SessionState.TRUNCATED
        assert result.data == b""
        assert result.chunks[0].accepted_length == 0

    def test_not_found_aborts(self, config, payload, make_exchange, response_bytes):
        """Test that a 404 chunk aborts without appending its body."""
        exchange = make_exchange(payload, overrides={
            2: response_bytes("404 Not Found", {"Content-Length": 9}, b"not found"),
        })
        session = DownloadSession(config, exchange)

        with pytest.raises(UnexpectedStatus) as exc_info:
            session.download()

        assert exc_info.value.status_code == 404
        assert session.state == SessionState.FAILED
        assert session.received == 65536
        assert session.cursor == 65536
        assert len(exchange.requests) == 3

    def test_range_not_satisfiable_aborts(self, config, payload, make_exchange, response_bytes):
        """Test that 416 is not an accepted chunk status."""
        exchange = make_exchange(payload, overrides={
            1: response_bytes("416 Range Not Satisfiable", {"Content-Length": 0}, b""),
        })

        with pytest.raises(UnexpectedStatus) as exc_info:
            DownloadSession(config, exchange).download()

        assert exc_info.value.status_code == 416

    def test_chunk_without_content_length(self, config, payload, make_exchange, response_bytes):
        """Test that a chunk must declare its own length."""
        exchange = make_exchange(payload, overrides={
            1: response_bytes("206 Partial Content", {}, payload[:65536]),
        })
        session = DownloadSession(config, exchange)

        with pytest.raises(MissingHeader):
            session.download()

        assert session.received == 0

    def test_malformed_chunk_response(self, config, payload, make_exchange):
        """Test that an unparseable chunk response fails the session."""
        exchange = make_exchange(payload, overrides={1: b"garbage without separator"})
        session = DownloadSession(config, exchange)

        with pytest.raises(MalformedResponse):
            session.download()

        assert session.state == SessionState.FAILED

    def test_empty_resource(self, config, make_exchange):
        """Test that a zero-length resource completes without range requests."""
        exchange = make_exchange(b"")

        result = DownloadSession(config, exchange).download()

        assert result.state == SessionState.COMPLETE
        assert result.data == b""
        assert len(exchange.requests) == 1
        assert result.digest.hexdigest == hashlib.sha256(b"").hexdigest()

    def test_session_runs_once(self, config, payload, make_exchange):
        """Test that a finished session cannot be restarted."""
        session = DownloadSession(config, make_exchange(payload))
        session.download()

        with pytest.raises(RuntimeError):
            session.download()

    def test_chunk_callback(self, config, payload, make_exchange):
        """Test that every range request is reported, in order."""
        records = []
        session = DownloadSession(config, make_exchange(payload), on_chunk=records.append)

        session.download()

        assert all(isinstance(r, ChunkRecord) for r in records)
        assert [r.accepted_length for r in records] == [65536, 65536, 18928]
        assert [r.requested.start for r in records] == [0, 65536, 131072]

    def test_buffer_never_exceeds_total(self, payload, make_exchange):
        """Test the buffer bound while chunks arrive."""
        observed = []
        session = DownloadSession(ClientConfig(window_size=7000), make_exchange(payload))
        session.on_chunk = lambda r: observed.append(session.received + r.accepted_length)

        session.download()

        assert observed
        assert all(size <= 150000 for size in observed)

    def test_invalid_window_size(self, config, make_exchange):
        """Test that a non-positive window is rejected up front."""
        with pytest.raises(ValueError):
            DownloadSession(replace(config, window_size=0), make_exchange(b""))

    def test_download_function(self, config, payload, make_exchange):
        """Test the one-call convenience function."""
        result = download(config, make_exchange(payload))

        assert result.is_complete
        assert result.data == payload


class TestDownloadDigest:
    """Tests for the fingerprint of the reassembled payload."""

    def test_digest_matches_contiguous_hash(self, config, payload, make_exchange):
        """Test that reassembly is byte-identical to the original."""
        result = DownloadSession(config, make_exchange(payload)).download()

        assert result.digest.algorithm == "sha256"
        assert result.digest.hexdigest == hashlib.sha256(payload).hexdigest()

    def test_digest_independent_of_window(self, payload, make_exchange):
        """Test that chunking does not change the fingerprint."""
        small = DownloadSession(ClientConfig(window_size=1000), make_exchange(payload)).download()
        large = DownloadSession(ClientConfig(window_size=100000), make_exchange(payload)).download()

        assert small.digest == large.digest

    def test_configured_algorithm(self, payload, make_exchange):
        """Test that the digest algorithm comes from config."""
        config = ClientConfig(digest_algorithm="md5")
        result = DownloadSession(config, make_exchange(payload)).download()

        assert result.digest.algorithm == "md5"
        assert result.digest.hexdigest == hashlib.md5(payload).hexdigest()

"""
=============================================================================
HTTP RESPONSE PARSER
=============================================================================

Parses raw HTTP/1.1 response bytes into structured HTTPResponse objects.
This is the client-side mirror of a server's request parser: a small,
strict grammar with one typed failure per field.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │                                                                 │ │
    │  │    HTTP/1.1 206 Partial Content\r\n                            │ │
    │  │    ───┬──── ─┬─ ───────┬───────                                │ │
    │  │       │      │         │                                        │ │
    │  │    Version  Code   Reason phrase (may contain spaces)           │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Content-Range: bytes 0-4/150000\r\n                         │ │
    │  │    Content-Length: 5\r\n                                       │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BLANK LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n               ← header/body boundary is \r\n\r\n       │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    Hello              ← Content-Length bytes (maybe fewer!)    │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FAILURE MODES
=============================================================================

    No \r\n\r\n anywhere            → MalformedResponse
    Header block not valid UTF-8    → MalformedResponse
    Status line not 3 fields        → InvalidStatusLine
    Status code not digits          → InvalidStatusLine
    Header line without a colon     → skipped (lenient)
    Content-Length missing          → MissingHeader   (on lookup)
    Content-Length not an integer   → ParseError      (on lookup)

A missing or malformed value is never silently turned into 0.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
import re

from ..errors import InvalidStatusLine, MalformedResponse, MissingHeader, ParseError


HEADER_TERMINATOR = b"\r\n\r\n"


@dataclass
class HTTPResponse:
    """
    Represents a parsed HTTP response.

    Attributes:
        status_code: Numeric status code (200, 206, 404, ...).
        headers: Header names (lowercased) mapped to trimmed values.
        body: Everything after the header/body boundary, untrimmed.
        version: Protocol from the status line ("HTTP/1.1").
        reason: Reason phrase from the status line.
        raw: The original response bytes.
    """

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"
    reason: str = ""
    raw: bytes = field(default=b"", repr=False)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a header value (case-insensitive lookup).

        Works for any spelling of the name because headers are stored
        lowercase: "Content-Length", "content-length" and "CONTENT-LENGTH"
        all resolve to the same entry.
        """
        return self.headers.get(name.lower(), default)

    def content_length(self) -> int:
        """
        Get the declared Content-Length as an integer.

        Raises:
            MissingHeader: If the response has no Content-Length.
            ParseError: If the value is not a non-negative integer.
        """
        value = self.get_header("content-length")
        if value is None:
            raise MissingHeader("Content-Length")
        return parse_content_length(value)


def parse_content_length(value: str) -> int:
    """
    Parse a Content-Length value strictly.

    Only ASCII digits are accepted: no sign, no inner whitespace, no
    comma-joined duplicates.
    """
    if not ResponseParser.DIGITS_PATTERN.fullmatch(value):
        raise ParseError("Content-Length", value)
    return int(value)


class ResponseParser:
    """
    Parses raw HTTP response bytes into HTTPResponse objects.

    ==========================================================================
    PARSER ARCHITECTURE
    ==========================================================================

        Raw Response Bytes
              │
              ▼
        ┌───────────────────────────────────────────────────────────────────┐
        │  RESPONSE PARSER                                                  │
        ├───────────────────────────────────────────────────────────────────┤
        │                                                                    │
        │  1. Find Header/Body Separator (\r\n\r\n) ──────────────────────►│
        │     │  Not found? → MalformedResponse                            │
        │     ▼                                                             │
        │  2. Decode Header Block (strict UTF-8) ─────────────────────────►│
        │     │  Invalid? → MalformedResponse                              │
        │     ▼                                                             │
        │  3. Parse Status Line ──────────────────────────────────────────►│
        │     │  VERSION SP CODE SP REASON                                  │
        │     │  Invalid? → InvalidStatusLine                              │
        │     ▼                                                             │
        │  4. Parse Headers ──────────────────────────────────────────────►│
        │     │  "Name: Value" pairs, names lowercased                     │
        │     ▼                                                             │
        │  5. Build HTTPResponse Object ──────────────────────────────────►│
        │                                                                    │
        └───────────────────────────────────────────────────────────────────┘

    The body is returned as-is. Deciding how many of its bytes to trust
    (Content-Length vs. what actually arrived) is the caller's job.

    ==========================================================================
    """

    VERSION_PATTERN = re.compile(r"HTTP/\d\.\d")
    DIGITS_PATTERN = re.compile(r"[0-9]+")

    def parse(self, data: bytes) -> HTTPResponse:
        """
        Parse raw HTTP response data into an HTTPResponse object.

        Args:
            data: Raw response bytes, as read from the socket until EOF.

        Returns:
            Parsed HTTPResponse object.

        Raises:
            MalformedResponse: No header terminator, or undecodable headers.
            InvalidStatusLine: Status line is not well-formed.
        """
        header_section, body = self.split(data)

        lines = header_section.split("\r\n")
        version, status_code, reason = self._parse_status_line(lines[0])
        headers = self._parse_headers(lines[1:])

        return HTTPResponse(
            status_code=status_code,
            headers=headers,
            body=body,
            version=version,
            reason=reason,
            raw=data,
        )

    def split(self, data: bytes) -> tuple[str, bytes]:
        """
        Split a response into its decoded header block and raw body.

        The header block excludes the terminating \r\n\r\n; the body starts
        right after it.
        """
        header_end = data.find(HEADER_TERMINATOR)
        if header_end == -1:
            raise MalformedResponse("Failed to find end of headers")

        try:
            header_section = data[:header_end].decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedResponse(f"Header block is not valid UTF-8: {e}") from e

        return header_section, data[header_end + len(HEADER_TERMINATOR):]

    def _parse_status_line(self, line: str) -> tuple[str, int, str]:
        """
        Parse the HTTP status line.

        =====================================================================
        STATUS LINE FORMAT (RFC 7230)
        =====================================================================

            HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE CRLF

            "HTTP/1.1 206 Partial Content"
              → ("HTTP/1.1", 206, "Partial Content")

        The reason phrase is everything after the code, so a multi-word
        phrase counts as one field.

        =====================================================================

        Returns:
            Tuple of (version, status_code, reason)

        Raises:
            InvalidStatusLine: If the line is malformed
        """
        parts = line.split(None, 2)
        if len(parts) != 3:
            raise InvalidStatusLine(f"Invalid status line: {line!r}", line)

        version, code, reason = parts
        if not self.VERSION_PATTERN.fullmatch(version):
            raise InvalidStatusLine(f"Invalid protocol in status line: {line!r}", line)

        if not self.DIGITS_PATTERN.fullmatch(code):
            raise InvalidStatusLine(f"Non-numeric status code: {code!r}", line)

        return version, int(code), reason.strip()

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse header lines into a dictionary.

        - Names are trimmed and lowercased, values trimmed.
        - Split happens on the FIRST colon only, so values may contain
          colons ("Date: Mon, 01 Jan 2024 10:00:00 GMT").
        - Lines starting with whitespace continue the previous header
          (obsolete line folding).
        - A repeated name is joined with ", " so every key stays unique.
        - Lines with no colon or an empty name are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            name, sep, value = line.partition(":")
            name = name.strip().lower()
            if not sep or not name:
                current_name = None
                continue  # Malformed header line, not fatal

            value = value.strip()
            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value
            current_name = name

        return headers


def parse_response(data: bytes) -> HTTPResponse:
    """Convenience function to parse an HTTP response in one call."""
    return ResponseParser().parse(data)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. ResponseParser.split() - header block / body at the first \r\n\r\n
# 2. _parse_status_line() - strict VERSION CODE REASON grammar
# 3. _parse_headers() - case-insensitive, lenient on junk lines
# 4. HTTPResponse.content_length() - MissingHeader / ParseError, never 0
# =============================================================================

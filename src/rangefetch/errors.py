"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure a download session can hit is surfaced as a typed exception.
Nothing in the library terminates the process; the CLI is the only place
that turns these into exit codes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      EXCEPTION HIERARCHY                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   RangeFetchError                                                    │
    │   ├── TransportError        connect / write / read failed            │
    │   ├── ResponseError                                                  │
    │   │   ├── MalformedResponse  no \r\n\r\n, header not UTF-8           │
    │   │   ├── InvalidStatusLine  bad status line or non-numeric code     │
    │   │   ├── MissingHeader      required header absent                  │
    │   │   └── ParseError         header value not a valid integer        │
    │   └── UnexpectedStatus      chunk status outside {200, 206}          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

All of these are fatal for the current session (fail-fast, no retry).
A short read is NOT an error: it ends the session in the TRUNCATED state.

=============================================================================
"""

from typing import Optional


class RangeFetchError(Exception):
    """Base class for every error raised by rangefetch."""


class TransportError(RangeFetchError, ConnectionError):
    """
    Raised when the TCP exchange with the server fails.

    Also a builtin ConnectionError, so callers that already catch
    ConnectionError around network code keep working.
    """


class ResponseError(RangeFetchError):
    """Base class for errors found while parsing a response."""


class MalformedResponse(ResponseError):
    """The response has no header/body boundary or undecodable headers."""


class InvalidStatusLine(ResponseError):
    """
    The status line is not "PROTOCOL CODE REASON" or the code is not numeric.
    """

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class MissingHeader(ResponseError):
    """A header the client needs (Content-Length) was not sent."""

    def __init__(self, header: str):
        super().__init__(f"{header} header not found")
        self.header = header


class ParseError(ResponseError):
    """A header value could not be parsed as a non-negative integer."""

    def __init__(self, header: str, value: str):
        super().__init__(f"Failed to parse {header}: {value!r}")
        self.header = header
        self.value = value


class UnexpectedStatus(RangeFetchError):
    """
    A chunk response came back with a status other than 200 or 206.

    Carries the status code so callers can tell a 404 (wrong path) from
    a 416 (range not satisfiable) without parsing the message.
    """

    def __init__(self, status_code: int, reason: Optional[str] = None):
        message = f"Unexpected status code: {status_code}"
        if reason:
            message += f" {reason}"
        super().__init__(message)
        self.status_code = status_code

"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The subset of status codes a range-fetching client actually meets.

    HTTP/1.1 206 Partial Content
             ─── ───────────────
              │         │
              │         └── Reason phrase (informational only)
              └──────────── Status code (what we act on)

=============================================================================
WHICH CODES MATTER FOR RANGE REQUESTS?
=============================================================================

    ┌──────┬───────────────────────────┬──────────────────────────────────┐
    │ Code │ Meaning                   │ What the downloader does         │
    ├──────┼───────────────────────────┼──────────────────────────────────┤
    │ 200  │ OK (whole resource)       │ Accept (server ignored Range)    │
    │ 206  │ Partial Content           │ Accept (normal chunk response)   │
    │ 404  │ Not Found                 │ Abort with UnexpectedStatus      │
    │ 416  │ Range Not Satisfiable     │ Abort with UnexpectedStatus      │
    │ 5xx  │ Server error              │ Abort with UnexpectedStatus      │
    └──────┴───────────────────────────┴──────────────────────────────────┘

Servers may send codes that are not listed here; the parser keeps the raw
integer, and this enum is only used for naming and classification.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to the plain integers the parser
    produces:

        >>> HTTPStatus.PARTIAL_CONTENT == 206
        True
        >>> HTTPStatus.PARTIAL_CONTENT.phrase
        'Partial Content'
    """

    # 2xx SUCCESS
    OK = 200
    NO_CONTENT = 204
    PARTIAL_CONTENT = 206            # Range request fulfilled

    # 3xx REDIRECTION (not followed by this client)
    MOVED_PERMANENTLY = 301
    FOUND = 302
    NOT_MODIFIED = 304

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    RANGE_NOT_SATISFIABLE = 416      # Range outside the resource

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """Get the standard reason phrase for this status code."""
        return _STATUS_PHRASES.get(self, "Unknown")


# Status codes a chunk response may carry. 200 is tolerated because a server
# that ignores Range sends the whole resource with 200 OK.
ACCEPTED_CHUNK_STATUSES = frozenset({HTTPStatus.OK, HTTPStatus.PARTIAL_CONTENT})


def phrase_for(code: int) -> str:
    """
    Get the reason phrase for any integer status code.

    Unlike HTTPStatus(code).phrase this never raises for codes outside
    the enum, which matters when logging whatever a server sent back.
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",
    HTTPStatus.MOVED_PERMANENTLY: "Moved Permanently",
    HTTPStatus.FOUND: "Found",
    HTTPStatus.NOT_MODIFIED: "Not Modified",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Range Not Satisfiable",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}

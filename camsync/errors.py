# Reported for attempts that raised outside this taxonomy
UNEXPECTED_KIND = "unexpected"


class SyncError(Exception):
    """Base exception for a failed endpoint attempt."""

    kind = UNEXPECTED_KIND


class TransportError(SyncError):
    """Raised when the connection fails or the relay answers with an error status."""

    kind = "transport"


class FetchTimeoutError(SyncError):
    """Raised when a retrieval exceeds its deadline."""

    kind = "timeout"


class EnvelopeError(SyncError):
    """Raised when the feed document cannot be extracted from a relay envelope."""

    kind = "envelope"


class ResponseValidationError(SyncError):
    """Raised when a payload is not a feed document (e.g. an HTML error page)."""

    kind = "validation"


class FeedParseError(SyncError):
    """Raised when the feed document is malformed or holds no usable cameras."""

    kind = "parse"

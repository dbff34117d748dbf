"""
Errors raised while decoding an adaptor data stream.

Every error aborts the session: no partial result is ever returned.
I/O failures from the underlying source are not wrapped and surface as
the original ``OSError``.
"""

from __future__ import annotations


class AdaptorDataError(Exception):
    """Base class for all errors raised by the decoder."""


class FormatError(AdaptorDataError, ValueError):
    """The stream does not follow the adaptor data format."""


class HeaderError(FormatError):
    """Malformed header: bad prefix, version number or delimiter."""


class EncodingError(FormatError):
    """A text token is not valid UTF-8."""


class SequenceError(FormatError):
    """Commands arrived in an order the active protocol does not allow."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class RepositoryUnavailableError(AdaptorDataError):
    """The document source reported that its repository is unusable.

    Kept apart from FormatError so callers can tell a broken stream from
    a source that is only temporarily unavailable.
    """

    def __init__(self, detail: str = "") -> None:
        message = "Repository unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.detail = detail

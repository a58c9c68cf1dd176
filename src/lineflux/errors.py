"""
Error Definitions.

All exceptions raised by the SDK derive from `LineFluxError`, so callers can
catch every library failure with a single clause while still being able to
discriminate between build-time, transport and server-side problems.
"""

from typing import Optional


class LineFluxError(Exception):
    """Base class for every error raised by the SDK."""


class InvalidQueryError(LineFluxError):
    """A query could not be built (e.g. empty measurement name, mixed precisions in a batch)."""


class EmptyQueryError(InvalidQueryError):
    """
    Raised when rendering a query that carries no payload.

    A write query needs at least one field; a read query needs at least one
    non-blank statement.
    """


class InvalidTimestampError(LineFluxError, ValueError):
    """An explicit timestamp is not representable as a signed 64-bit count of its unit."""


class UrlConstructionError(LineFluxError):
    """The request URL could not be assembled from the client configuration."""


class TransportError(LineFluxError):
    """
    Network or transport-level failure.

    The original exception raised by the transport is always chained as
    `__cause__`.
    """


class DatabaseError(LineFluxError):
    """
    The server reported an error.

    Attributes:
        message: The server message, verbatim.
        status_code: The HTTP status of the response, when known.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(DatabaseError):
    """The server rejected the credentials (HTTP 401)."""


class AuthorizationError(DatabaseError):
    """The authenticated user is not allowed to run the request (HTTP 403)."""


class DeserializationError(LineFluxError):
    """
    A response body could not be decoded.

    When typed decoding fails, the location of the offending row is kept so
    the caller can find it in the raw payload.

    Attributes:
        statement_index: Index of the statement result in the response.
        series_index: Index of the series inside the statement result.
        series_name: Measurement name reported for the series.
        row_index: Index of the row inside the series.
    """

    def __init__(
        self,
        message: str,
        *,
        statement_index: Optional[int] = None,
        series_index: Optional[int] = None,
        series_name: Optional[str] = None,
        row_index: Optional[int] = None,
    ):
        super().__init__(message)
        self.statement_index = statement_index
        self.series_index = series_index
        self.series_name = series_name
        self.row_index = row_index

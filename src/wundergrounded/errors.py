"""Exception hierarchy for wundergrounded.

Only ``ProgrammingError`` is ever raised at the caller. Every other error is
delivered as the first argument of the request callback.
"""

from typing import Any


class WundergroundError(Exception):
    """Base exception for everything the client reports."""


class ProgrammingError(WundergroundError):
    """A request was made without a callable callback."""


class MissingAPIKey(WundergroundError):
    """No API key was configured before a request."""


class MissingQuery(WundergroundError):
    """A request was made with an empty query."""


class EmptyQueue(WundergroundError):
    """A request was made before any feature was queued."""


class InvalidParameter(WundergroundError):
    """A feature was given a malformed date or date range."""


class TransportError(WundergroundError):
    """Network failure, timeout, non-200 status or unparseable body."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class ProviderError(WundergroundError):
    """A 200 response whose body carries ``response.error``.

    Callbacks receive ``payload`` itself rather than this exception;
    ``Outcome.raise_for_error()`` raises it.
    """

    def __init__(self, message: str, payload: Any) -> None:
        super().__init__(message)
        self.payload = payload

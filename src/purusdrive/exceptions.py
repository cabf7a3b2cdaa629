"""Custom exception hierarchy for purusdrive."""

from __future__ import annotations


class PurusError(Exception):
    """Base exception for all purusdrive errors."""


class PurusConfigError(PurusError):
    """Invalid or missing configuration."""


class PurusStorageError(PurusError):
    """Local store or preference file could not be read or written."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class PurusRemoteError(PurusError):
    """Remote record service failure.

    Sync callers do not retry these internally; the whole sync is simply
    re-triggered on the next launch or foreground.  ``permanent`` is only
    informational and ends up in the log message.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        operation: str = "",
        permanent: bool = False,
    ) -> None:
        self.code = code
        self.operation = operation
        self.permanent = permanent
        super().__init__(message)


class PurusTransportError(PurusRemoteError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        operation: str = "",
    ) -> None:
        self.status_code = status_code
        super().__init__(message, code="transport", operation=operation)


class PurusRemoteApiError(PurusRemoteError):
    """Server returned a ``serverErrorCode`` for a zone or record."""


class PurusTransitionError(PurusError):
    """A storage mode transition did not complete in time."""

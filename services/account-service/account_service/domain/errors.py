"""Error taxonomy for account workflows.

Every error carries the HTTP status it is reported with, so the API layer can
map the whole family with a single handler.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for failures reported back to the caller."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AccountError):
    """Malformed or out-of-range input."""

    status_code = 400


class AuthError(AccountError):
    """Bad credentials, or an absent, invalid or superseded session token."""

    status_code = 401


class InvalidTokenError(AccountError):
    """Token failed signature, structure or expiry checks."""

    status_code = 401


class ConflictError(AccountError):
    """A unique key is already taken."""

    status_code = 409


class ProcessingError(AccountError):
    """A downstream library (e.g. image decoding) failed."""

    status_code = 500


class InternalError(AccountError):
    """Anything unanticipated."""

    status_code = 500

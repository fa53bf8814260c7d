"""
Domain errors raised by the ledgers.

Each error carries the HTTP status it maps to; the API layer renders them
as ``{"msg": ...}`` responses.
"""


class LedgerError(Exception):
    """Base class for attendance and leave rule violations."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(LedgerError):
    """Missing or malformed input."""


class Conflict(LedgerError):
    """A record already exists for the same (employee, day) key."""


class PreconditionFailed(LedgerError):
    """The operation is not allowed in the record's current state."""


class AlreadyCompleted(PreconditionFailed):
    """The step was already performed (e.g. checked out twice)."""


class NotFound(LedgerError):
    status_code = 404

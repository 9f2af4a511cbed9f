"""Error taxonomy shared by services and the HTTP layer."""


class LiftLedgerError(Exception):
    """Base class for errors raised by lift-ledger services."""

    status_code = 500

    def __init__(self, message: str, details: list | dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        data = {"error": self.message}
        if self.details is not None:
            data["details"] = self.details
        return data


class ValidationError(LiftLedgerError):
    """Malformed or out-of-range input."""

    status_code = 400


class ConflictError(LiftLedgerError):
    """Duplicate names, already-scheduled exercises, already-deleted rows."""

    status_code = 400


class AuthenticationError(LiftLedgerError):
    """No authenticated identity on the request."""

    status_code = 401


class PermissionDeniedError(LiftLedgerError):
    """Authenticated, but not allowed to act on the target."""

    status_code = 403


class NotFoundError(LiftLedgerError):
    """A referenced row does not exist."""

    status_code = 404

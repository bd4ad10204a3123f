"""
Error kinds raised by the service layer and the entity stores.

Every error carries a ``code`` that the GraphQL layer copies into the
``extensions`` of the error response, so clients can branch on it
without parsing messages.
"""


class AcademicRecordsError(Exception):
    """Base class for all application errors."""

    code = "INTERNAL_SERVER_ERROR"


class Unauthenticated(AcademicRecordsError):
    """A guarded operation was invoked without a valid identity."""

    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "UNAUTHENTICATED") -> None:
        super().__init__(message)


class InvalidCredentials(AcademicRecordsError):
    """Login failed.

    The message is the same for an unknown email and a wrong password.
    """

    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class NotFound(AcademicRecordsError):
    code = "NOT_FOUND"


class ValidationFailure(AcademicRecordsError):
    code = "BAD_USER_INPUT"


class StoreFailure(AcademicRecordsError):
    code = "INTERNAL_SERVER_ERROR"

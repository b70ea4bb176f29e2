"""
Error taxonomy shared by every service.

Services raise these for expected business conditions; the handler installed
in ``portal.main`` turns each one into a JSON body of the form
``{"detail": <message>, "error": <kind>}`` with the status code below, so no
business failure ever escapes a request as a 500.
"""

from fastapi import status


class PortalError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(PortalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "unauthenticated"


class Forbidden(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "forbidden"


class NotFound(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class ValidationError(PortalError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "validation_error"


class ConflictOrStorageFailure(PortalError):
    """Write rejected by the database or the file store. The user may retry."""

    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"

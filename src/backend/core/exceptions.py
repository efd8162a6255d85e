"""
Domain exceptions.

Each exception carries the HTTP status and machine-readable code used when it
reaches an HTTP handler; the live channel reports the same code in its acks.
"""

from typing import Optional

from fastapi import status


class CRMError(Exception):
    """Base exception for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "error"
    default_message: str = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.code, "message": self.message}


class ValidationFailure(CRMError):
    """A required field is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_failure"
    default_message = "Invalid request"


class AuthFailure(CRMError):
    """Bad credentials on login."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "auth_failure"
    default_message = "Invalid Credentials!"


class NotFound(CRMError):
    """Referenced engineer or message does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found"


class WindowExpired(CRMError):
    """Edit/delete attempted after the allowed window."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "window_expired"
    default_message = "Time window expired"


class EditWindowExpired(WindowExpired):
    default_message = "Edit time expired. Messages can only be edited within 5 minutes."


class DeleteWindowExpired(WindowExpired):
    default_message = "Delete time expired. Messages can only be deleted within 5 minutes."


class UploadFailure(CRMError):
    """File could not be accepted or written."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "upload_failure"
    default_message = "File upload failed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class PersistenceFailure(CRMError):
    """Any database error. Detail is logged, never returned to clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "persistence_failure"
    default_message = "Server error"

    def to_dict(self) -> dict:
        return {"success": False, "error": self.code, "message": self.default_message}

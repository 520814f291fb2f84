"""Error taxonomy shared by the verifier, validator and routes.

Every error is an ``HTTPException`` so it can be raised from plain helper
functions and still render as ``{"detail": ...}`` without extra handlers.
"""

from fastapi import HTTPException, status


class PortalError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=type(self).status_code, detail=detail)


class InvalidRequest(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidCredentials(PortalError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = 'Invalid credentials.') -> None:
        super().__init__(detail)


class Forbidden(PortalError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(PortalError):
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateSubmission(PortalError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, detail: str = 'Feedback has already been submitted for this course.') -> None:
        super().__init__(detail)


class RecordInUse(PortalError):
    status_code = status.HTTP_409_CONFLICT


class MissingField(PortalError):
    status_code = 422

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f'{field} is required.')


class OutOfRange(PortalError):
    status_code = 422

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f'{field} must be a whole number between 1 and 10.')


class RemoteFailure(PortalError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, detail: str = 'Database unavailable. Verify DATABASE_URL and database credentials.') -> None:
        super().__init__(detail)

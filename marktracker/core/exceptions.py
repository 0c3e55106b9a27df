"""Application errors and the HTTP status each one maps to.

Route handlers raise these; the handlers registered in ``marktracker.main``
turn them into ``{"message": ...}`` JSON responses.
"""

from fastapi import status


class MarkTrackerError(Exception):
    """Base class for every error surfaced to API clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = 'Server Error'

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class ServerError(MarkTrackerError):
    pass


class InvalidCredentials(MarkTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = 'Invalid credentials'


class Unauthenticated(MarkTrackerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = 'Authentication required'


class InvalidToken(MarkTrackerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = 'Invalid token'


class Forbidden(MarkTrackerError):
    status_code = status.HTTP_403_FORBIDDEN
    message = 'Forbidden: insufficient rights'


class ForbiddenSelfDelete(Forbidden):
    message = 'Cannot delete yourself.'


class Unauthorized(Forbidden):
    """Raised when a teacher acts on a mark record they did not create."""

    message = 'Not authorized to modify this mark record.'


class NotFound(MarkTrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    message = 'Resource not found.'


class UnknownStudent(NotFound):
    message = 'Student with this Roll Number does not exist.'


class DuplicateUsername(MarkTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = 'Username already exists.'


class DuplicateRollNumber(MarkTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = 'Roll Number already exists.'


class DuplicateMark(MarkTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, roll_number: str, subject: str):
        """Initialize the error.

        Args:
            roll_number: Roll number of the conflicting record.
            subject: Subject of the conflicting record.
        """
        self.roll_number = roll_number
        self.subject = subject
        super().__init__(
            f'Mark record already exists for Roll Number {roll_number} in {subject}. '
            'Please use Edit Mark to update.'
        )


class ValidationError(MarkTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = 'Invalid data'


class WeakPassword(ValidationError):
    message = 'Password must be at least 6 characters long.'

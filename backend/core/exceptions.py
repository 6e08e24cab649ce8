"""
Domain errors raised by the service layer.

Views let these propagate; ``backend.core.exception_handler`` turns them into
``{'error': message}`` responses with the matching HTTP status.
"""
from rest_framework import status


class ServiceError(Exception):
    """Base class for errors raised by services"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDenied(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT

"""API error taxonomy.

Every client-facing failure is an ``ApiError`` carrying the HTTP status and the
``data`` payload placed in the ``ERR`` envelope.
"""

from typing import Any

from fastapi import status


class ApiError(Exception):
    """Base error rendered as ``{"status": "ERR", "data": ...}``."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "internal server error"

    def __init__(self, data: Any = None):
        self.data = self.default_message if data is None else data
        super().__init__(self.data if isinstance(self.data, str) else self.default_message)

    def to_envelope(self) -> dict[str, Any]:
        """Convert the error to a response envelope."""
        return {"status": "ERR", "data": self.data}


class MissingField(ApiError):
    """A required body field is absent or blank."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "missing required fields"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"missing required fields: {field}")


class ValidationFailed(ApiError):
    """One or more field rules failed; ``data`` lists every failure."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "validation failed"

    def __init__(self, errors: list[dict[str, str]]):
        self.errors = errors
        super().__init__(errors)


class MalformedBody(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "request body must be a JSON object"


class InvalidId(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "invalid id format"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "not found"


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "a header with a valid token is required"


class TokenExpired(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "the token has expired"


class InvalidToken(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "the token is not valid"


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "not authorized to access this resource"


class AlreadyRegistered(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "email already registered"


class InvalidCredentials(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "invalid credentials"


class InternalError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "internal server error"

"""Exceptions raised by the backend clients."""


class ClientError(Exception):
    """Base exception for all client errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class ConnectionError(ClientError):
    """The backend could not be reached, or a write timed out."""


class APIError(ClientError):
    """The backend answered with a non-2xx status.

    Attributes:
        status_code: HTTP status of the response
        details: Error message from the response body, if any
    """

    def __init__(self, message: str, status_code: int, details: str | None = None):
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(APIError):
    def __init__(self, message: str = "Resource not found", details: str | None = None):
        super().__init__(message, status_code=404, details=details)


class ConflictError(APIError):
    """A write collided with existing data, e.g. a duplicate key."""

    def __init__(self, message: str = "Conflict", details: str | None = None):
        super().__init__(message, status_code=409, details=details)


class RateLimitError(APIError):
    def __init__(self, message: str = "Rate limit exceeded", details: str | None = None):
        super().__init__(message, status_code=429, details=details)


class ValidationError(ClientError):
    """Backend data did not match the expected schema.

    Attributes:
        errors: One message per failed field
    """

    def __init__(self, message: str, errors: list | None = None):
        self.errors = errors or []
        super().__init__(message)

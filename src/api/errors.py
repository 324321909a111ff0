from typing import Optional


class ApiError(Exception):
    """
    Base error raised by the API client.

    status is the HTTP status code, or 0 when the request never got a response.
    """

    def __init__(self, message: str, status: int = 0, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


class NetworkFailure(ApiError):
    """non-2xx response or transport error"""


class LoginFailed(NetworkFailure):
    pass


class AccessDenied(NetworkFailure):
    """Credentials were valid but the account is not an admin."""


class ValidationFailure(Exception):
    """
    Client-side form validation error, raised before any request is made.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

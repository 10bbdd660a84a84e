import logging

logger = logging.getLogger(__name__)


class AppError(Exception):
    def __init__(self, message: str, status_code: int = 400, detail: str | None = None):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.message)


class TransportError(AppError):
    """No response reached the client (DNS, connect, timeout, reset)."""

    def __init__(self, message: str = "Network error", detail: str | None = None):
        super().__init__(message=message, status_code=0, detail=detail)


class ResponseError(AppError):
    """The server answered with a non-success status."""

    def __init__(self, message: str = "Request failed", status_code: int = 500, detail: str | None = None):
        super().__init__(message=message, status_code=status_code, detail=detail)


class UnknownResponseError(AppError):
    def __init__(self, message: str = "Unknown server response", status_code: int = 502, detail: str | None = None):
        super().__init__(message=message, status_code=status_code, detail=detail)


class ValidationError(AppError):
    def __init__(self, message: str = "Validation error", detail: str | None = None):
        super().__init__(message=message, status_code=422, detail=detail)


class StorageError(AppError):
    def __init__(self, message: str = "Local storage unavailable", detail: str | None = None):
        super().__init__(message=message, status_code=507, detail=detail)


def describe(error: Exception) -> str:
    """User-facing text for an error reaching the notice channel."""
    if isinstance(error, AppError):
        return error.message
    logger.error("Unexpected error surfaced to the user: %r", error)
    return "Something went wrong. Please try again."

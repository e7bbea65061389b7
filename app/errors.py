class AppError(Exception):
    """Operational error that is surfaced to the caller with its status code."""

    default_message = "Internal server error"
    status_code = 500

    def __init__(self, message: str | None = None, status_code: int | None = None, *, is_operational: bool = True):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.is_operational = is_operational
        super().__init__(self.message)


class ValidationError(AppError):
    default_message = "Validation failed"
    status_code = 400

    def __init__(self, message: str | None = None, details=None):
        super().__init__(message)
        self.details = details


class AuthenticationError(AppError):
    default_message = "Authentication failed"
    status_code = 401


class ForbiddenError(AppError):
    default_message = "Access forbidden"
    status_code = 403


class NotFoundError(AppError):
    default_message = "Resource not found"
    status_code = 404


class ConflictError(AppError):
    default_message = "Resource already exists"
    status_code = 409

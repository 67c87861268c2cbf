"""Errors raised by the account services. Each maps to one HTTP status in app.main."""


class AccountError(Exception):
    """Base class for account lifecycle and authentication failures."""

    status_code = 400
    default_message = "Account operation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConflictError(AccountError):
    """Duplicate email or provider identity."""

    status_code = 409
    default_message = "Account already exists"


class NotFoundError(AccountError):
    status_code = 404
    default_message = "User not found"


class UnauthorizedError(AccountError):
    status_code = 401
    default_message = "Invalid credentials"


class ForbiddenError(AccountError):
    status_code = 403
    default_message = "Forbidden"


class InvalidTokenError(AccountError):
    """Verification token is unknown, already used, or expired. Callers cannot tell which."""

    status_code = 400
    default_message = "Invalid or expired verification token"


class NotificationError(AccountError):
    status_code = 503
    default_message = "Failed to send verification email"

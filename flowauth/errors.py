"""Error taxonomy shared by every flow.

Each component raises a concrete ``AppError`` subclass (or one of the two
internal causes at the bottom of this module). The exception handlers turn
them into the public error envelope; nothing else inspects exceptions.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes for API clients."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    ACCOUNT_EXISTS = "ACCOUNT_EXISTS"
    WRONG_CREDENTIALS = "WRONG_CREDENTIALS"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    EMAIL_NOT_VERIFIED = "EMAIL_NOT_VERIFIED"
    INVALID_OR_EXPIRED_TOKEN = "INVALID_OR_EXPIRED_TOKEN"
    INVALID_ID_FORMAT = "INVALID_ID_FORMAT"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"


ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_FAILED: 400,
    ErrorCode.ACCOUNT_EXISTS: 400,
    ErrorCode.INVALID_OR_EXPIRED_TOKEN: 400,
    ErrorCode.INVALID_ID_FORMAT: 400,
    ErrorCode.WRONG_CREDENTIALS: 401,
    ErrorCode.INVALID_EMAIL: 401,
    ErrorCode.INVALID_PASSWORD: 401,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.INVALID_TOKEN: 401,
    ErrorCode.TOKEN_EXPIRED: 401,
    ErrorCode.EMAIL_NOT_VERIFIED: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.METHOD_NOT_ALLOWED: 405,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.SERVER_ERROR: 500,
}


class AppError(Exception):
    """Base class for failures that have a client-facing shape."""

    code: ErrorCode = ErrorCode.SERVER_ERROR
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, errors: dict[str, str] | None = None) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return ERROR_CODE_TO_STATUS[self.code]


class ValidationFailedError(AppError):
    code = ErrorCode.VALIDATION_FAILED
    default_message = "Validation failed"


class AccountExistsError(AppError):
    code = ErrorCode.ACCOUNT_EXISTS
    default_message = "User already exists"

    def __init__(self, message: str | None = None, errors: dict[str, str] | None = None) -> None:
        super().__init__(message, errors or {"email": "Email already exists"})


class WrongCredentialsError(AppError):
    code = ErrorCode.WRONG_CREDENTIALS
    default_message = "Invalid email or password"


class InvalidEmailError(AppError):
    code = ErrorCode.INVALID_EMAIL
    default_message = "Invalid email"


class InvalidPasswordError(AppError):
    code = ErrorCode.INVALID_PASSWORD
    default_message = "Invalid password"


class EmailNotVerifiedError(AppError):
    code = ErrorCode.EMAIL_NOT_VERIFIED
    default_message = "Please verify your email address before logging in"


class InvalidOrExpiredTokenError(AppError):
    code = ErrorCode.INVALID_OR_EXPIRED_TOKEN
    default_message = "Invalid or expired token"


class InvalidIdFormatError(AppError):
    code = ErrorCode.INVALID_ID_FORMAT
    default_message = "Invalid ID format"

    def __init__(self, message: str | None = None, errors: dict[str, str] | None = None) -> None:
        super().__init__(message, errors or {"id": "The provided ID is not in a valid format"})


class UnauthorizedError(AppError):
    code = ErrorCode.UNAUTHORIZED
    default_message = "Not authorized"


class InvalidSessionTokenError(UnauthorizedError):
    code = ErrorCode.INVALID_TOKEN
    default_message = "Invalid token"

    def __init__(self, message: str | None = None, errors: dict[str, str] | None = None) -> None:
        super().__init__(message, errors or {"auth": "The provided token is invalid"})


class SessionTokenExpiredError(UnauthorizedError):
    code = ErrorCode.TOKEN_EXPIRED
    default_message = "Token expired"

    def __init__(self, message: str | None = None, errors: dict[str, str] | None = None) -> None:
        super().__init__(message, errors or {"auth": "The provided token has expired"})


class NotFoundError(AppError):
    code = ErrorCode.NOT_FOUND
    default_message = "Resource not found"


class MethodNotAllowedError(AppError):
    code = ErrorCode.METHOD_NOT_ALLOWED
    default_message = "Method not allowed"


class RateLimitedError(AppError):
    code = ErrorCode.RATE_LIMITED
    default_message = "Rate limit exceeded. Try again later."


class ServerError(AppError):
    code = ErrorCode.SERVER_ERROR


class EmailDeliveryError(ServerError):
    default_message = "Failed to send email. Please try again later."


# Internal causes. These never reach the client with their own text.


class CredentialProcessingError(Exception):
    """The password hashing backend failed."""


class NotificationError(Exception):
    """An email could not be handed to the delivery channel."""

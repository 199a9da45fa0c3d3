"""
Domain errors.

Every failure a service can report is an ApiError subclass with a stable
``kind`` (the machine-readable discriminator rendered in the error envelope),
a default HTTP ``status`` and a human-readable ``message``. The HTTP boundary
in api/errors.py handles them all the same way; nothing inspects messages.
"""
from __future__ import annotations


class ApiError(Exception):
    kind = "API_ERROR"
    status = 500
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, status: int | None = None, details: dict | None = None):
        self.message = message or self.message
        self.status = status or self.status
        self.details = details
        super().__init__(self.message)

    def __repr__(self):
        return f"<{self.__class__.__name__} kind={self.kind} status={self.status}>"


# Credentials / users

class DuplicateEmail(ApiError):
    kind = "DUPLICATE_EMAIL"
    status = 400
    message = "Email already in use"


class InvalidCredentials(ApiError):
    kind = "INVALID_CREDENTIALS"
    status = 400
    message = "Invalid email or password"


class UserNotFound(ApiError):
    kind = "USER_NOT_FOUND"
    status = 404
    message = "User not found"


class InvalidRole(ApiError):
    kind = "INVALID_ROLE"
    status = 400
    message = "Invalid role"


# Access tokens

class TokenRequired(ApiError):
    kind = "TOKEN_REQUIRED"
    status = 401
    message = "Token required"


class TokenRevoked(ApiError):
    kind = "TOKEN_REVOKED"
    status = 403
    message = "Token has been revoked"


class TokenExpired(ApiError):
    kind = "TOKEN_EXPIRED"
    status = 403
    message = "Token expired"


class TokenInvalid(ApiError):
    kind = "TOKEN_INVALID"
    status = 403
    message = "Invalid token"


class Forbidden(ApiError):
    kind = "FORBIDDEN"
    status = 403
    message = "Forbidden: insufficient permissions"


# Refresh tokens / sessions

class MissingRefreshToken(ApiError):
    kind = "MISSING_REFRESH_TOKEN"
    status = 400
    message = "Refresh token is missing"


class UnknownRefreshToken(ApiError):
    kind = "UNKNOWN_REFRESH_TOKEN"
    status = 401
    message = "Refresh token not found"


class ExpiredOrInvalidRefreshToken(ApiError):
    kind = "EXPIRED_OR_INVALID_REFRESH_TOKEN"
    status = 401
    message = "Invalid or expired refresh token"


class BlacklistWriteFailed(ApiError):
    kind = "BLACKLIST_WRITE_FAILED"
    status = 400
    message = "Failed to blacklist access token"


# Catalog

class BookNotFound(ApiError):
    kind = "BOOK_NOT_FOUND"
    status = 404
    message = "Book not found"


class DuplicateBook(ApiError):
    kind = "DUPLICATE_BOOK"
    status = 409
    message = "A book with this file_url already exists"


class FavoriteExists(ApiError):
    kind = "FAVORITE_EXISTS"
    status = 409
    message = "Book already in favorites"


class FavoriteNotFound(ApiError):
    kind = "FAVORITE_NOT_FOUND"
    status = 404
    message = "Book not found in favorites"

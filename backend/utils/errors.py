from fastapi import HTTPException, status


class AuthError(HTTPException):
    """
    Base for every error the seller auth flows raise on purpose.
    `kind` is stable and safe to show to clients; messages stay generic.
    """

    kind = "auth_error"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(
            status_code=self.status_code,
            detail={"error": self.kind, "message": self.message},
        )


# -------------------------------
# Input
# -------------------------------

class ValidationError(AuthError):
    kind = "validation_error"
    message = "Missing or malformed input"


# -------------------------------
# Lookup
# -------------------------------

class NotFound(AuthError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Seller not found"


class InvalidSellerId(NotFound):
    kind = "invalid_seller_id"
    message = "Invalid seller ID"


# -------------------------------
# Conflicts
# -------------------------------

class Conflict(AuthError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
    message = "Conflicting state"


class DuplicateEmail(Conflict):
    kind = "duplicate_email"
    message = "Seller already exists"


class AllocationExhausted(Conflict):
    kind = "allocation_exhausted"
    message = "Could not allocate a seller ID, please retry"


class AlreadyVerified(Conflict):
    kind = "already_verified"
    message = "Email is already verified"


# -------------------------------
# Authentication
# -------------------------------

class InvalidCredentials(AuthError):
    kind = "invalid_credentials"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid credentials"


class NotVerified(AuthError):
    kind = "not_verified"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Please verify your email or phone number before logging in"


class InvalidToken(AuthError):
    kind = "invalid_token"
    message = "Invalid verification token"


class TokenExpired(AuthError):
    kind = "token_expired"
    message = "Verification token has expired"


class InvalidOtp(AuthError):
    kind = "invalid_otp"
    message = "Invalid OTP"


class OtpExpired(AuthError):
    kind = "otp_expired"
    message = "OTP expired or not requested"


class TooManyAttempts(AuthError):
    kind = "too_many_attempts"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many OTP attempts. Please request a new OTP."


class RateLimited(AuthError):
    kind = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests. Please try again later."


# -------------------------------
# Authorization
# -------------------------------

class Unauthenticated(AuthError):
    kind = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class Forbidden(AuthError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden: Insufficient permissions"


# -------------------------------
# Collaborators
# -------------------------------

class DependencyError(AuthError):
    kind = "dependency_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "A backing service is unavailable"


class SessionInvalidationFailed(DependencyError):
    kind = "session_invalidation_failed"
    message = "Logged out, but the session could not be closed"


class DuplicateKey(Exception):
    """Raised by a store when an insert hits a unique index."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"duplicate key on {field}")

"""Typed authentication errors.

Each error carries the HTTP status and machine-readable code it maps to at the
API boundary, plus a message that is safe to return to clients.
"""

from enum import Enum


class VerificationFailure(str, Enum):
    """Closed set of identity-token verification outcomes other than success."""
    EXPIRED = "expired"
    INVALID = "invalid"
    MISSING = "missing"


class RejectionCode(str, Enum):
    """Gatekeeper rejection codes returned to clients."""
    NO_TOKEN = "NO_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    AUTH_ERROR = "AUTH_ERROR"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    ACCOUNT_DEACTIVATED = "ACCOUNT_DEACTIVATED"


class FirebaseConfigError(RuntimeError):
    """Identity provider credentials are missing or unusable (fatal at startup)."""


class TokenVerificationError(Exception):
    """An identity token could not be verified."""

    def __init__(self, kind: VerificationFailure, detail: str = ""):
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail


class AuthServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400
    code = "BAD_REQUEST"
    message = "Request failed."

    def __init__(self, message: str = None, code: str = None, status_code: int = None):
        self.message = message or self.message
        self.code = code or self.code
        self.status_code = status_code or self.status_code
        super().__init__(self.message)


class ValidationError(AuthServiceError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid request."


class InvalidCredentialsError(AuthServiceError):
    """Unknown email or wrong password. Deliberately indistinguishable."""
    status_code = 401
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class PasswordNotConfiguredError(AuthServiceError):
    status_code = 400
    code = "PASSWORD_NOT_CONFIGURED"
    message = "Password not set. Please use Google Sign In first"


class CurrentPasswordIncorrectError(AuthServiceError):
    status_code = 401
    code = "CURRENT_PASSWORD_INCORRECT"
    message = "Current password is incorrect"


class NoPasswordSetError(AuthServiceError):
    status_code = 400
    code = "NO_PASSWORD_SET"
    message = "No password set for this account"


class WrongPasswordError(AuthServiceError):
    status_code = 401
    code = "WRONG_PASSWORD"
    message = "Wrong password"


class IdentityVerificationError(AuthServiceError):
    """Federated sign-in was attempted with a token that did not verify."""
    status_code = 401
    code = RejectionCode.AUTH_ERROR.value
    message = "Authentication failed."

    @classmethod
    def from_failure(cls, kind: VerificationFailure) -> "IdentityVerificationError":
        if kind == VerificationFailure.EXPIRED:
            return cls(
                message="Authentication token expired. Please refresh.",
                code=RejectionCode.TOKEN_EXPIRED.value,
            )
        return cls()


_REJECTIONS = {
    RejectionCode.NO_TOKEN: (401, "Authentication required. No token provided."),
    RejectionCode.TOKEN_EXPIRED: (401, "Authentication token expired. Please refresh."),
    RejectionCode.AUTH_ERROR: (401, "Authentication failed. Invalid token."),
    RejectionCode.USER_NOT_FOUND: (401, "User account not found."),
    RejectionCode.ACCOUNT_DEACTIVATED: (403, "Account is deactivated. Please contact support."),
}


class AuthenticationRejected(AuthServiceError):
    """A protected request was rejected by the gatekeeper."""

    def __init__(self, rejection: RejectionCode):
        status_code, message = _REJECTIONS[rejection]
        super().__init__(message=message, code=rejection.value, status_code=status_code)
        self.rejection = rejection

"""FastAPI dependencies for authentication."""

import logging
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from workops.auth.errors import (
    AuthenticationRejected,
    RejectionCode,
    TokenVerificationError,
    VerificationFailure,
)
from workops.auth.firebase import FirebaseIdentityProvider
from workops.auth.service import AuthService
from workops.database.database import get_db
from workops.database.user_repository import UserRepository
from workops.models.user import User

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def get_identity_provider(request: Request) -> FirebaseIdentityProvider:
    """Identity provider built once at application startup."""
    provider = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        raise RuntimeError("Identity provider is not initialized")
    return provider


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    identity_provider: FirebaseIdentityProvider = Depends(get_identity_provider),
) -> AuthService:
    return AuthService(users, identity_provider)


def _reject(request: Request, code: RejectionCode, reason: str) -> AuthenticationRejected:
    logger.warning(f"Auth blocked: {request.method} {request.url.path} - {reason}")
    return AuthenticationRejected(code)


def _authenticate(
    request: Request,
    authorization: str,
    users: UserRepository,
    identity_provider: FirebaseIdentityProvider,
) -> User:
    if not authorization.startswith(BEARER_PREFIX):
        raise _reject(request, RejectionCode.NO_TOKEN, "No Authorization Bearer token")

    token = authorization[len(BEARER_PREFIX):]
    if not token:
        raise _reject(request, RejectionCode.NO_TOKEN, "Empty token")

    try:
        identity = identity_provider.verify_id_token(token)
    except TokenVerificationError as e:
        if e.kind == VerificationFailure.EXPIRED:
            raise _reject(request, RejectionCode.TOKEN_EXPIRED, "Token expired") from e
        raise _reject(request, RejectionCode.AUTH_ERROR, f"Invalid token ({e.kind.value})") from e

    user = users.get_by_firebase_uid(identity.uid)
    if user is None:
        raise _reject(request, RejectionCode.USER_NOT_FOUND, f"User not found for UID: {identity.uid}")

    if not user.is_active:
        raise _reject(request, RejectionCode.ACCOUNT_DEACTIVATED, f"Account deactivated: {user.email}")

    request.state.user = user
    request.state.firebase_user = identity
    logger.info(f"Auth ok: {request.method} {request.url.path} - user={user.email}")
    return user


def get_current_user(
    request: Request,
    authorization: str = Header(default=""),
    users: UserRepository = Depends(get_user_repository),
    identity_provider: FirebaseIdentityProvider = Depends(get_identity_provider),
) -> User:
    """Get the current authenticated user from a Firebase ID bearer token.

    Steps run in order: bearer extraction, token verification, user lookup by
    Firebase UID, active check. On success the user and the decoded identity
    are attached to `request.state`.

    Raises:
        AuthenticationRejected: NO_TOKEN, TOKEN_EXPIRED, AUTH_ERROR,
            USER_NOT_FOUND (401) or ACCOUNT_DEACTIVATED (403).
    """
    try:
        return _authenticate(request, authorization, users, identity_provider)
    except AuthenticationRejected:
        raise
    except Exception as e:
        logger.error(f"Auth error: {request.method} {request.url.path} - {type(e).__name__}: {str(e)}")
        raise AuthenticationRejected(RejectionCode.AUTH_ERROR) from e

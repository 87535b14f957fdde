"""Login, sign-up and password management for WorkOps users.

Two ways in:
- Federated sign-in: a verified Firebase identity is reconciled with the local
  user record (created on first sign-in, profile refreshed afterwards).
- Email/password: only for users who signed in with Google at least once and
  then set a password. A successful login returns a Firebase custom token the
  client exchanges for a regular ID token.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError

from workops.auth.errors import (
    CurrentPasswordIncorrectError,
    IdentityVerificationError,
    InvalidCredentialsError,
    NoPasswordSetError,
    PasswordNotConfiguredError,
    TokenVerificationError,
    ValidationError,
    WrongPasswordError,
)
from workops.auth.firebase import FirebaseIdentityProvider, VerifiedIdentity
from workops.auth.passwords import hash_password, verify_password
from workops.database.user_repository import UserRepository
from workops.models.user import User, normalize_email

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthService:
    """Reconciles federated identities with local users and handles passwords."""

    def __init__(self, users: UserRepository, identity_provider: FirebaseIdentityProvider):
        self.users = users
        self.identity_provider = identity_provider

    def sign_in_with_google(self, id_token: Optional[str]) -> User:
        """Verify a Firebase ID token and sign the user in (or up)."""
        if not id_token:
            raise ValidationError("ID token is required.")

        try:
            identity = self.identity_provider.verify_id_token(id_token)
        except TokenVerificationError as e:
            logger.warning(f"Google sign-in rejected: {e.kind.value}")
            raise IdentityVerificationError.from_failure(e.kind) from e

        return self.sign_in_or_up(identity)

    def sign_in_or_up(self, identity: VerifiedIdentity) -> User:
        """Find or create the user for a verified identity.

        Idempotent by Firebase UID. Display name and photo are refreshed from
        the identity when it carries non-empty values.
        """
        user = self.users.get_by_firebase_uid(identity.uid)

        if user is None:
            if not identity.email:
                logger.warning(f"Sign-up refused for {identity.uid}: token carries no email")
                raise IdentityVerificationError()

            now = datetime.utcnow()
            new_user = User(
                id=str(uuid.uuid4()),
                firebase_uid=identity.uid,
                email=normalize_email(identity.email),
                display_name=identity.name or "",
                photo_url=identity.picture or "",
                created_at=now,
                updated_at=now,
            )
            try:
                user = self.users.create(new_user)
                logger.info(f"New user created: {user.email}")
                return user
            except IntegrityError:
                # Lost a race with a concurrent first sign-in for the same UID.
                user = self.users.get_by_firebase_uid(identity.uid)
                if user is None:
                    raise
                logger.info(f"User {identity.uid} was created concurrently, continuing as existing user")

        user = self.users.update_profile(
            user.id,
            display_name=identity.name or user.display_name,
            photo_url=identity.picture or user.photo_url,
        )
        logger.info(f"User logged in: {user.email}")
        return user

    def login_with_password(self, email: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        """Authenticate with email/password and mint a Firebase custom token.

        Unknown email and wrong password fail identically.
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self.users.get_by_email(email)
        if user is None:
            raise InvalidCredentialsError()

        if not user.is_password_set or not user.password_hash:
            raise PasswordNotConfiguredError()

        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        custom_token = self.identity_provider.create_custom_token(user.firebase_uid)
        logger.info(f"Email/password login successful: {user.email}")
        return user, custom_token

    def set_password(
        self,
        user: User,
        password: Optional[str],
        confirm_password: Optional[str],
        current_password: Optional[str] = None,
    ) -> User:
        """Set or change the user's password.

        Changing an existing password requires the current one. Nothing is
        written unless every check passes.
        """
        if user.is_password_set and user.password_hash:
            if not current_password:
                raise ValidationError("Current password is required")
            if not verify_password(current_password, user.password_hash):
                raise CurrentPasswordIncorrectError()

        if not password or not confirm_password:
            raise ValidationError("Password and confirm password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if password != confirm_password:
            raise ValidationError("Passwords do not match")

        updated = self.users.set_password_hash(user.id, hash_password(password))
        logger.info(f"Password set successfully for user: {updated.email}")
        return updated

    def verify_current_password(self, user: User, current_password: Optional[str]) -> None:
        """Re-confirm the user's password before a sensitive action."""
        if not current_password:
            raise ValidationError("Current password is required")
        if not user.is_password_set or not user.password_hash:
            raise NoPasswordSetError()
        if not verify_password(current_password, user.password_hash):
            raise WrongPasswordError()

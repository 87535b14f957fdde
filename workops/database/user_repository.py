"""Repository for User database operations."""

import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from workops.models.user import User, normalize_email
from workops.database.models import UserDB

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        """Get user by local ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        return user_db.to_pydantic() if user_db else None

    def get_by_firebase_uid(self, firebase_uid: str) -> Optional[User]:
        """Get user by identity provider subject ID."""
        user_db = self.db.query(UserDB).filter(UserDB.firebase_uid == firebase_uid).first()
        return user_db.to_pydantic() if user_db else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        user_db = self.db.query(UserDB).filter(UserDB.email == normalize_email(email)).first()
        return user_db.to_pydantic() if user_db else None

    def create(self, user: User) -> User:
        """Create a new user.

        Raises:
            sqlalchemy.exc.IntegrityError: If another record already holds the
                same firebase_uid or email.
        """
        try:
            user_db = UserDB.from_pydantic(user)
            user_db.email = normalize_email(user.email)
            self.db.add(user_db)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user_db.id}: {user_db.email}")
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user {user.firebase_uid}: {type(e).__name__}: {str(e)}")
            raise

    def update_profile(self, user_id: str, *, display_name: str, photo_url: str) -> User:
        """Write the display name and photo URL of an existing user.

        Only these two columns are written; password and access fields changed
        by concurrent requests are left alone.

        Raises:
            ValueError: If the user does not exist.
        """
        return self._write(user_id, display_name=display_name, photo_url=photo_url)

    def set_password_hash(self, user_id: str, password_hash: str) -> User:
        """Store a new password digest and enable email/password login.

        Raises:
            ValueError: If the user does not exist.
        """
        return self._write(user_id, password_hash=password_hash, is_password_set=True)

    def _write(self, user_id: str, **columns) -> User:
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        if not user_db:
            raise ValueError(f"User {user_id} not found")

        for name, value in columns.items():
            setattr(user_db, name, value)
        user_db.updated_at = datetime.utcnow()
        try:
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Updated user {user_id} ({', '.join(columns)}): {user_db.email}")
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {user_id}: {type(e).__name__}: {str(e)}")
            raise

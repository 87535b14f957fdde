"""SQLAlchemy database models for WorkOps."""

from datetime import datetime
import uuid
from sqlalchemy import Column, String, Boolean, DateTime

from workops.database.database import Base
from workops.models.user import DEFAULT_USER_ROLE


class UserDB(Base):
    """Database model for User.

    `firebase_uid` and `email` are unique at the store level; concurrent
    first sign-ins for the same subject surface as IntegrityError on insert.
    """

    __tablename__ = "users"

    # Primary key (local, store-generated)
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Federated identity
    firebase_uid = Column(String, nullable=False, unique=True, index=True)

    # User profile
    email = Column(String, nullable=False, unique=True, index=True)
    display_name = Column(String, nullable=False, default="")
    photo_url = Column(String, nullable=False, default="")

    # Password login
    password_hash = Column(String, nullable=True)
    is_password_set = Column(Boolean, nullable=False, default=False)

    # Access
    role = Column(String, nullable=False, default=DEFAULT_USER_ROLE)
    is_active = Column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from workops.models.user import User
        return User(
            id=self.id,
            firebase_uid=self.firebase_uid,
            email=self.email,
            display_name=self.display_name or "",
            photo_url=self.photo_url or "",
            password_hash=self.password_hash,
            is_password_set=bool(self.is_password_set),
            role=self.role,
            is_active=bool(self.is_active),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        return cls(
            id=user.id,
            firebase_uid=user.firebase_uid,
            email=user.email,
            display_name=user.display_name,
            photo_url=user.photo_url,
            password_hash=user.password_hash,
            is_password_set=user.is_password_set,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

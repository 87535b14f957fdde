"""User data model for WorkOps."""

import os
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()

DEFAULT_USER_ROLE = os.getenv("DEFAULT_USER_ROLE", "engineer")


def normalize_email(email: str) -> str:
    """Canonical stored form of an email address (trimmed, lowercase)."""
    return (email or "").strip().lower()


class User(BaseModel):
    """User model for WorkOps.

    Users are created only through federated (Google/Firebase) sign-in and are
    keyed by the Firebase UID. The password fields are populated once the user
    opts into email/password login.
    """

    id: str = Field(..., description="Local user identifier (UUID v4)")
    firebase_uid: str = Field(..., description="Identity provider subject ID")
    email: str = Field(..., description="User email address (lowercase)")
    display_name: str = Field("", description="User display name")
    photo_url: str = Field("", description="User avatar URL")
    password_hash: Optional[str] = Field(None, description="bcrypt digest, null until a password is set")
    is_password_set: bool = Field(False, description="Whether email/password login is enabled")
    role: str = Field(DEFAULT_USER_ROLE, description="User role (echoed back, not enforced)")
    is_active: bool = Field(True, description="Inactive users are blocked from all authenticated access")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")

    class Config:
        """Pydantic configuration."""
        validate_assignment = True

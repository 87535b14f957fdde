"""Request/response models for authentication endpoints.

Field presence is checked by the auth service so that missing fields produce
the API's own 400 messages; the request models therefore make everything
optional.
"""

from typing import Optional
from pydantic import BaseModel, Field

from workops.models.user import User


class GoogleAuthRequest(BaseModel):
    """Request model for Google sign-in."""
    id_token: Optional[str] = Field(None, alias="idToken", description="Firebase ID token from Google sign-in")


class LoginRequest(BaseModel):
    """Request model for email/password login."""
    email: Optional[str] = None
    password: Optional[str] = None


class SetPasswordRequest(BaseModel):
    """Request model for setting or changing a password."""
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(None, alias="confirmPassword")
    current_password: Optional[str] = Field(None, alias="currentPassword")


class VerifyPasswordRequest(BaseModel):
    """Request model for re-confirming the current password."""
    current_password: Optional[str] = Field(None, alias="currentPassword")


class UserResponse(BaseModel):
    """Public user profile. The password hash is never serialized."""
    id: str
    email: str
    display_name: str = Field("", alias="displayName")
    photo_url: str = Field("", alias="photoURL")
    role: str
    is_password_set: bool = Field(False, alias="isPasswordSet")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            photo_url=user.photo_url,
            role=user.role,
            is_password_set=user.is_password_set,
        )


class MessageResponse(BaseModel):
    """Response model for operations without a payload."""
    success: bool = True
    message: str


class AuthResponse(MessageResponse):
    """Response model for authentication."""
    user: UserResponse


class LoginResponse(AuthResponse):
    """Response model for email/password login."""
    custom_token: str = Field(..., alias="customToken")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True


class CurrentUserResponse(BaseModel):
    """Response model for the current user."""
    success: bool = True
    user: UserResponse

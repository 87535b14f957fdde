"""Data models for WorkOps."""

from workops.models.user import User, DEFAULT_USER_ROLE, normalize_email

__all__ = [
    "User",
    "DEFAULT_USER_ROLE",
    "normalize_email",
]

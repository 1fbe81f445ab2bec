"""Authentication module for the workboard API."""

from workboard.auth.config import auth_settings
from workboard.auth.dependencies import get_current_user, AuthUser

__all__ = [
    "auth_settings",
    "get_current_user",
    "AuthUser",
]

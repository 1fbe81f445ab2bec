"""FastAPI authentication dependencies.

  get_current_user: requires a valid session secret, sent either as
                     ``Authorization: Bearer <secret>`` or in the session cookie
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workboard.auth.config import auth_settings
from workboard.auth.tokens import hash_token
from workboard.database import get_async_session
from workboard.logging_config import get_logger
from workboard.models.auth import User, UserSession
from workboard.models.base import now_ms

logger = get_logger(__name__)


@dataclass
class AuthUser:
    """Represents the authenticated caller."""

    id: str
    email: str
    name: str
    email_verified: bool
    created_at: int
    session_id: str


def extract_session_secret(request: Request) -> Optional[str]:
    """Extract the session secret from the Authorization header or cookie."""
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(auth_settings.cookie_name) or None


async def _resolve_session(secret: str, session: AsyncSession) -> Optional[AuthUser]:
    """Look up the session row for a raw secret and load its user."""
    result = await session.execute(
        select(UserSession, User)
        .join(User, User.id == UserSession.user_id)
        .where(UserSession.secret_hash == hash_token(secret))
    )
    row = result.first()
    if row is None:
        return None

    user_session, user = row
    if user_session.expires_at < now_ms():
        return None

    return AuthUser(
        id=user.id,
        email=user.email,
        name=user.name,
        email_verified=user.email_verified,
        created_at=user.created_at,
        session_id=user_session.id,
    )


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_async_session),
) -> AuthUser:
    """Resolve the current user from the session secret.

    Raises 401 if no valid credential is provided.
    """
    secret = extract_session_secret(request)
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    auth_user = await _resolve_session(secret, session)
    if auth_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth_user

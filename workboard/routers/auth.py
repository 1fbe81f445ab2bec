"""Authentication API routes.

Groups:
  - Session: current user, login, logout
  - Registration with optional e-mail verification
  - Password recovery
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from workboard.auth.config import auth_settings
from workboard.auth.dependencies import AuthUser, get_current_user
from workboard.auth.passwords import hash_password, verify_password
from workboard.auth.tokens import (
    InvalidActionToken,
    TOKEN_TYPE_RECOVERY,
    TOKEN_TYPE_VERIFY_EMAIL,
    create_recovery_token,
    create_session_secret,
    create_verification_token,
    decode_action_token,
    password_fingerprint,
)
from workboard.database import get_async_session
from workboard.logging_config import get_logger
from workboard.models.auth import User, UserSession
from workboard.routers._common import _serialize_user
from workboard.services import mailer
from workboard.utils import gen_id, now_ms

logger = get_logger(__name__)

router = APIRouter()


# ─── Schemas ──────────────────────────────────────────────────────────────────


class _EmailRequest(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v


class LoginRequest(_EmailRequest):
    password: str = Field(min_length=1, max_length=256)


class RegisterRequest(_EmailRequest):
    name: str = Field(min_length=1)
    password: str = Field(min_length=8, max_length=256)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class ForgotPasswordRequest(_EmailRequest):
    pass


class ResetPasswordRequest(BaseModel):
    userId: str = Field(min_length=1)
    secret: str = Field(min_length=1)
    password: str = Field(min_length=8, max_length=256)


class VerifyEmailRequest(BaseModel):
    userId: str = Field(min_length=1)
    secret: str = Field(min_length=1)


# ─── Helpers ──────────────────────────────────────────────────────────────────


async def _get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def _start_session(
    user: User,
    session: AsyncSession,
    request: Request,
    response: Response,
) -> None:
    """Persist a new login session and hand its secret to the client as a cookie."""
    raw_secret, secret_hash = create_session_secret()
    now = now_ms()
    session.add(
        UserSession(
            id=gen_id("ses_"),
            user_id=user.id,
            secret_hash=secret_hash,
            expires_at=now + auth_settings.session_ttl_seconds * 1000,
            created_at=now,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
    )
    response.set_cookie(
        auth_settings.cookie_name,
        raw_secret,
        path="/",
        httponly=True,
        secure=auth_settings.cookie_secure,
        samesite="strict",
        max_age=auth_settings.session_ttl_seconds,
    )


# ═════════════════════════════════════════════════════════════════════════════
#  SESSION
# ═════════════════════════════════════════════════════════════════════════════


@router.get("/current")
async def current_user(
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Return the logged-in user."""
    db_user = await session.get(User, user.id)
    return {"data": _serialize_user(db_user)}


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_async_session),
):
    """Email/password login. Sets the session cookie.

    Unverified e-mail addresses may still log in; the dashboard checks
    ``emailVerification`` on the current user.
    """
    user = await _get_user_by_email(session, body.email)
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    await _start_session(user, session, request, response)
    await session.commit()
    logger.info(f"User {user.id} logged in")
    return {"success": True}


@router.post("/logout")
async def logout(
    response: Response,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Revoke the current session."""
    await session.execute(delete(UserSession).where(UserSession.id == user.session_id))
    await session.commit()
    response.delete_cookie(auth_settings.cookie_name, path="/")
    return {"success": True}


# ═════════════════════════════════════════════════════════════════════════════
#  REGISTRATION & VERIFICATION
# ═════════════════════════════════════════════════════════════════════════════


@router.post("/register")
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_async_session),
):
    """Create an account, log it in and try to send a verification e-mail."""
    email = str(body.email).lower()
    if await _get_user_by_email(session, email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with the same email already exists",
        )

    now = now_ms()
    user = User(
        id=gen_id("usr_"),
        email=email,
        name=body.name,
        password_hash=hash_password(body.password),
        email_verified=False,
        created_at=now,
        updated_at=now,
    )
    session.add(user)
    await session.flush()
    logger.info(f"Created user {user.id}")

    await _start_session(user, session, request, response)
    await session.commit()

    # Verification is optional; registration never fails because of mail.
    email_sent = False
    try:
        mailer.send_verification_email(
            user.email, user.name, user.id, create_verification_token(user.id)
        )
        email_sent = True
    except mailer.MailerNotConfigured:
        logger.info("SMTP not configured, skipping verification e-mail")
    except Exception as e:
        logger.warning(f"Failed to send verification e-mail to {user.email}: {e}")

    return {
        "success": True,
        "message": (
            "Registration successful! Please check your email to verify your account."
            if email_sent
            else "Registration successful! You can now use the application."
        ),
    }


@router.put("/verify-email")
async def verify_email(
    body: VerifyEmailRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Complete e-mail verification from the link's userId/secret."""
    try:
        decode_action_token(body.secret, body.userId, TOKEN_TYPE_VERIFY_EMAIL)
    except InvalidActionToken as e:
        raise HTTPException(status_code=400, detail=str(e))

    user = await session.get(User, body.userId)
    if user is None:
        raise HTTPException(status_code=400, detail="Verification failed")

    if not user.email_verified:
        user.email_verified = True
        user.email_verified_at = now_ms()
        user.updated_at = user.email_verified_at
        await session.commit()
        logger.info(f"User {user.id} verified their e-mail")

    return {"success": True, "message": "Email verified successfully"}


@router.post("/resend-verification")
async def resend_verification(user: AuthUser = Depends(get_current_user)):
    """Send a fresh verification e-mail to the logged-in user."""
    if user.email_verified:
        raise HTTPException(status_code=400, detail="Email is already verified")

    try:
        mailer.send_verification_email(
            user.email, user.name, user.id, create_verification_token(user.id)
        )
    except Exception as e:
        logger.warning(f"Failed to resend verification e-mail to {user.email}: {e}")
        raise HTTPException(status_code=400, detail=str(e) or "Failed to send verification email")

    return {"success": True, "message": "Verification email sent"}


# ═════════════════════════════════════════════════════════════════════════════
#  PASSWORD RECOVERY
# ═════════════════════════════════════════════════════════════════════════════


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Send a password recovery link.

    Unknown addresses get the same answer so accounts can't be enumerated.
    """
    user = await _get_user_by_email(session, str(body.email))
    if user is not None:
        try:
            mailer.send_recovery_email(
                user.email, user.id, create_recovery_token(user.id, user.password_hash)
            )
        except Exception as e:
            logger.error(f"Failed to send recovery e-mail to {user.email}: {e}")
            raise HTTPException(status_code=500, detail="Failed to send password reset email")
    else:
        logger.info("Password recovery requested for unknown e-mail")

    return {"success": True, "message": "Password reset email sent"}


@router.put("/reset-password")
async def reset_password(
    body: ResetPasswordRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Set a new password from a recovery link and sign out every session."""
    try:
        payload = decode_action_token(body.secret, body.userId, TOKEN_TYPE_RECOVERY)
    except InvalidActionToken as e:
        raise HTTPException(status_code=400, detail=str(e))

    user = await session.get(User, body.userId)
    if user is None or payload.get("pwd") != password_fingerprint(user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid secret")

    user.password_hash = hash_password(body.password)
    user.updated_at = now_ms()
    await session.execute(delete(UserSession).where(UserSession.user_id == user.id))
    await session.commit()
    logger.info(f"User {user.id} reset their password")

    return {"success": True, "message": "Password reset successful"}

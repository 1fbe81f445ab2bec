"""Session secrets and signed one-time action tokens."""

import hashlib
import hmac
import secrets
import uuid
from datetime import datetime, timezone, timedelta

import jwt as pyjwt

from workboard.auth.config import auth_settings


# ─── Token types ─────────────────────────────────────────────────────────────

TOKEN_TYPE_VERIFY_EMAIL = "verify_email"
TOKEN_TYPE_RECOVERY = "recovery"


class InvalidActionToken(Exception):
    """Raised when a verification or recovery secret cannot be used."""


def create_session_secret() -> tuple[str, str]:
    """Create an opaque session secret.

    Returns (raw_secret, secret_hash); the raw secret goes to the client,
    the hash is stored in the database.
    """
    raw = secrets.token_urlsafe(48)
    return raw, hash_token(raw)


def hash_token(raw: str) -> str:
    """SHA-256 hash a raw token string."""
    return hashlib.sha256(raw.encode()).hexdigest()


def password_fingerprint(password_hash: str) -> str:
    """Short digest of a password hash; changes whenever the password does."""
    return hash_token(password_hash)[:16]


def _create_action_token(user_id: str, token_type: str, ttl_seconds: int, **claims) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + timedelta(seconds=ttl_seconds),
        "jti": uuid.uuid4().hex,
        **claims,
    }
    return pyjwt.encode(payload, auth_settings.secret_key, algorithm="HS256")


def create_verification_token(user_id: str) -> str:
    """Token embedded in the e-mail verification link."""
    return _create_action_token(
        user_id, TOKEN_TYPE_VERIFY_EMAIL, auth_settings.verification_ttl_seconds
    )


def create_recovery_token(user_id: str, password_hash: str) -> str:
    """Token embedded in the password reset link.

    Bound to the current password hash, so it stops working once used.
    """
    return _create_action_token(
        user_id,
        TOKEN_TYPE_RECOVERY,
        auth_settings.recovery_ttl_seconds,
        pwd=password_fingerprint(password_hash),
    )


def decode_action_token(token: str, user_id: str, token_type: str) -> dict:
    """Decode a token and check it was issued to ``user_id`` for ``token_type``.

    Raises InvalidActionToken on any mismatch, expiry or bad signature.
    """
    try:
        payload = pyjwt.decode(token, auth_settings.secret_key, algorithms=["HS256"])
    except pyjwt.ExpiredSignatureError:
        raise InvalidActionToken("Link has expired")
    except pyjwt.InvalidTokenError:
        raise InvalidActionToken("Invalid secret")

    if payload.get("type") != token_type:
        raise InvalidActionToken("Invalid secret")
    if not hmac.compare_digest(str(payload.get("sub", "")), user_id):
        raise InvalidActionToken("Invalid secret")
    return payload

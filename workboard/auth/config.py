"""Auth configuration, read from environment variables."""

import os
from dataclasses import dataclass, field


@dataclass
class AuthSettings:
    """Centralised auth configuration read from env vars at import time."""

    # Secret key used to sign verification and recovery tokens (HS256).
    secret_key: str = field(default_factory=lambda: os.getenv("AUTH_SECRET_KEY", ""))

    # Login sessions
    session_ttl_seconds: int = field(
        default_factory=lambda: int(
            os.getenv("AUTH_SESSION_TTL", str(60 * 60 * 24 * 30))
        )  # 30 days
    )
    cookie_name: str = field(
        default_factory=lambda: os.getenv("AUTH_COOKIE_NAME", "workboard-session")
    )
    cookie_secure: bool = field(
        default_factory=lambda: os.getenv("AUTH_COOKIE_SECURE", "true").lower() == "true"
    )

    # One-time links sent by e-mail
    verification_ttl_seconds: int = field(
        default_factory=lambda: int(
            os.getenv("AUTH_VERIFICATION_TTL", str(60 * 60 * 24 * 7))
        )  # 7 days
    )
    recovery_ttl_seconds: int = field(
        default_factory=lambda: int(os.getenv("AUTH_RECOVERY_TTL", "3600"))  # 1 hour
    )

    bcrypt_rounds: int = field(
        default_factory=lambda: int(os.getenv("AUTH_BCRYPT_ROUNDS", "12"))
    )

    def validate(self) -> None:
        """Raise if critical settings are missing."""
        if not self.secret_key:
            raise RuntimeError(
                "AUTH_SECRET_KEY must be set. "
                'Generate one with: python -c "import secrets; print(secrets.token_urlsafe(64))"'
            )


# Singleton, imported everywhere.
auth_settings = AuthSettings()

"""SQLAlchemy declarative base and mixins for workboard models."""
from datetime import datetime, timezone

from sqlalchemy import BigInteger
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class TimestampMixin:
    """Mixin for created_at/updated_at timestamps (milliseconds since epoch)."""

    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


def now_ms() -> int:
    """Return current timestamp in milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)

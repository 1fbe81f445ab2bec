"""Workspace and membership models."""

from typing import Optional

from sqlalchemy import String, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from workboard.models.base import Base, TimestampMixin


class Workspace(Base, TimestampMixin):
    """A team's shared space: members, statuses and tasks hang off it."""

    __tablename__ = "workspaces"
    __table_args__ = (Index("idx_workspaces_user", "user_id"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    # Creator; ownership afterwards is expressed through ADMIN memberships.
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Set only for icons uploaded through this workspace; those files are ours to delete.
    image_file_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    invite_code: Mapped[str] = mapped_column(String(32), nullable=False)


class Member(Base, TimestampMixin):
    """A user's membership in a workspace."""

    __tablename__ = "members"
    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_members_workspace_user"),
        Index("idx_members_user", "user_id"),
        Index("idx_members_workspace", "workspace_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    workspace_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="MEMBER")

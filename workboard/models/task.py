"""Task board models."""

from typing import Optional

from sqlalchemy import String, Text, Integer, BigInteger, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from workboard.models.base import Base, TimestampMixin


class TaskStatus(Base, TimestampMixin):
    """Board column. Ordered by position, then creation time."""

    __tablename__ = "task_statuses"
    __table_args__ = (Index("idx_task_statuses_workspace", "workspace_id", "position"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    workspace_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Task(Base, TimestampMixin):
    """Task entity."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_workspace", "workspace_id"),
        Index("idx_tasks_status", "status_id"),
        Index("idx_tasks_assignee", "assignee_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    workspace_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    status_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("task_statuses.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Member id, not user id
    assignee_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )
    archived_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

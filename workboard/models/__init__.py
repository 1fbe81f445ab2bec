"""SQLAlchemy ORM models for workboard."""

from workboard.models.base import Base, TimestampMixin, now_ms
from workboard.models.auth import User, UserSession
from workboard.models.workspace import Workspace, Member
from workboard.models.task import TaskStatus, Task

__all__ = [
    # SQLAlchemy base
    "Base",
    "TimestampMixin",
    "now_ms",
    # Auth models
    "User",
    "UserSession",
    # Workspaces
    "Workspace",
    "Member",
    # Task board
    "TaskStatus",
    "Task",
]

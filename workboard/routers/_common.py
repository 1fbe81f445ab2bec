"""Shared lookups, authorization guards and serializers for the API routers."""

from __future__ import annotations

from typing import Optional, Sequence

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workboard.constants import ROLE_ADMIN
from workboard.models import Member, Task, TaskStatus, User, Workspace
from workboard.utils import ms_to_iso


# ══════════════════════════════════════════════════════════════════════════
# LOOKUPS
# ══════════════════════════════════════════════════════════════════════════


async def get_member(
    session: AsyncSession, workspace_id: str, user_id: str
) -> Optional[Member]:
    """The caller's membership in a workspace, or None."""
    result = await session.execute(
        select(Member).where(
            Member.workspace_id == workspace_id, Member.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def require_member(
    session: AsyncSession, workspace_id: str, user_id: str
) -> Member:
    """Membership or 401."""
    member = await get_member(session, workspace_id, user_id)
    if member is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return member


async def require_admin(
    session: AsyncSession, workspace_id: str, user_id: str
) -> Member:
    """ADMIN membership or 401."""
    member = await get_member(session, workspace_id, user_id)
    if member is None or member.role != ROLE_ADMIN:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return member


async def get_workspace_or_404(session: AsyncSession, workspace_id: str) -> Workspace:
    workspace = await session.get(Workspace, workspace_id)
    if workspace is None:
        raise HTTPException(status_code=404, detail=f"Workspace {workspace_id} not found")
    return workspace


async def get_task_or_404(session: AsyncSession, task_id: str) -> Task:
    task = await session.get(Task, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return task


async def get_status_or_404(session: AsyncSession, status_id: str) -> TaskStatus:
    task_status = await session.get(TaskStatus, status_id)
    if task_status is None:
        raise HTTPException(status_code=404, detail=f"Status {status_id} not found")
    return task_status


async def get_member_or_404(session: AsyncSession, member_id: str) -> Member:
    member = await session.get(Member, member_id)
    if member is None:
        raise HTTPException(status_code=404, detail=f"Member {member_id} not found")
    return member


# ══════════════════════════════════════════════════════════════════════════
# SERIALIZERS
# ══════════════════════════════════════════════════════════════════════════


def document_list(documents: Sequence[dict]) -> dict:
    """List envelope used by every collection endpoint."""
    return {"documents": list(documents), "total": len(documents)}


def _serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "emailVerification": user.email_verified,
        "createdAt": user.created_at,
    }


def _serialize_workspace(ws: Workspace) -> dict:
    return {
        "id": ws.id,
        "name": ws.name,
        "userId": ws.user_id,
        "imageUrl": ws.image_url,
        "inviteCode": ws.invite_code,
        "createdAt": ws.created_at,
        "updatedAt": ws.updated_at,
    }


def _serialize_member(member: Member, user: Optional[User] = None) -> dict:
    data = {
        "id": member.id,
        "workspaceId": member.workspace_id,
        "userId": member.user_id,
        "role": member.role,
        "createdAt": member.created_at,
        "updatedAt": member.updated_at,
    }
    if user is not None:
        data["name"] = user.name
        data["email"] = user.email
    return data


def _serialize_status(task_status: TaskStatus) -> dict:
    return {
        "id": task_status.id,
        "workspaceId": task_status.workspace_id,
        "name": task_status.name,
        "position": task_status.position,
        "createdAt": task_status.created_at,
        "updatedAt": task_status.updated_at,
    }


def _serialize_task(task: Task) -> dict:
    return {
        "id": task.id,
        "workspaceId": task.workspace_id,
        "statusId": task.status_id,
        "title": task.title,
        "description": task.description,
        "assigneeId": task.assignee_id,
        "archivedAt": ms_to_iso(task.archived_at),
        "createdAt": task.created_at,
        "updatedAt": task.updated_at,
    }

"""Workspace member endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from workboard.auth.dependencies import AuthUser, get_current_user
from workboard.constants import ROLE_ADMIN
from workboard.database import get_async_session
from workboard.logging_config import get_logger
from workboard.models import Member, Task, User
from workboard.utils import now_ms, publish_event

from ._common import (
    document_list,
    get_member,
    get_member_or_404,
    require_admin,
    require_member,
    _serialize_member,
)

logger = get_logger(__name__)
router = APIRouter()


class UpdateMemberRequest(BaseModel):
    role: Literal["ADMIN", "MEMBER"]


async def _member_count(session: AsyncSession, workspace_id: str) -> int:
    count = await session.scalar(
        select(func.count()).select_from(Member).where(Member.workspace_id == workspace_id)
    )
    return count or 0


async def _admin_count(session: AsyncSession, workspace_id: str) -> int:
    count = await session.scalar(
        select(func.count())
        .select_from(Member)
        .where(Member.workspace_id == workspace_id, Member.role == ROLE_ADMIN)
    )
    return count or 0


async def _is_last_admin(session: AsyncSession, member: Member) -> bool:
    return member.role == ROLE_ADMIN and await _admin_count(session, member.workspace_id) == 1


@router.get("/")
async def list_members(
    workspaceId: str = Query(..., min_length=1),
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Members of a workspace with their names and e-mail addresses."""
    await require_member(session, workspaceId, user.id)

    result = await session.execute(
        select(Member, User)
        .join(User, User.id == Member.user_id)
        .where(Member.workspace_id == workspaceId)
        .order_by(Member.created_at.asc())
    )
    members = [_serialize_member(member, member_user) for member, member_user in result.all()]
    return {"data": document_list(members)}


@router.patch("/{member_id}")
async def update_member(
    member_id: str,
    body: UpdateMemberRequest,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Change a member's role (admin only)."""
    target = await get_member_or_404(session, member_id)
    await require_admin(session, target.workspace_id, user.id)

    if body.role != ROLE_ADMIN and await _member_count(session, target.workspace_id) == 1:
        raise HTTPException(status_code=400, detail="Cannot downgrade the only member")
    if body.role != ROLE_ADMIN and await _is_last_admin(session, target):
        raise HTTPException(status_code=400, detail="Cannot downgrade the only admin")

    target.role = body.role
    target.updated_at = now_ms()
    await session.commit()

    logger.info(f"User {user.id} set role of {member_id} to {body.role}")
    await publish_event(
        "MEMBER_UPDATED", {"workspaceId": target.workspace_id, "memberId": member_id}
    )
    return {"data": _serialize_member(target)}


@router.delete("/{member_id}")
async def delete_member(
    member_id: str,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Remove a member. Admins may remove anyone; members may leave."""
    target = await get_member_or_404(session, member_id)
    caller = await get_member(session, target.workspace_id, user.id)
    if caller is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if caller.id != target.id and caller.role != ROLE_ADMIN:
        raise HTTPException(status_code=401, detail="Unauthorized")

    if await _member_count(session, target.workspace_id) == 1:
        raise HTTPException(status_code=400, detail="Cannot delete the only member")
    if await _is_last_admin(session, target):
        # Another member has to be promoted first
        raise HTTPException(status_code=400, detail="Cannot remove the only admin")

    # Tasks keep existing, just without an assignee
    await session.execute(
        update(Task).where(Task.assignee_id == target.id).values(assignee_id=None)
    )
    await session.delete(target)
    await session.commit()

    logger.info(f"User {user.id} removed member {member_id} from {target.workspace_id}")
    await publish_event(
        "MEMBER_REMOVED", {"workspaceId": target.workspace_id, "memberId": member_id}
    )
    return {"data": {"id": member_id}}

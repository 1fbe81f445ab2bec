"""Workspace endpoints: CRUD, invite codes, joining and analytics."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from workboard.auth.dependencies import AuthUser, get_current_user
from workboard.constants import ROLE_ADMIN, ROLE_MEMBER
from workboard.database import get_async_session
from workboard.logging_config import get_logger
from workboard.models import Member, Task, TaskStatus, Workspace
from workboard.services import file_storage
from workboard.services.file_storage import StorageError
from workboard.services.task_board import (
    list_statuses,
    list_tasks,
    seed_default_task_statuses,
    summarize_tasks,
)
from workboard.utils import gen_id, generate_invite_code, now_ms, publish_event

from ._common import (
    document_list,
    get_member,
    get_workspace_or_404,
    require_admin,
    require_member,
    _serialize_workspace,
)

logger = get_logger(__name__)
router = APIRouter()


# ══════════════════════════════════════════════════════════════════════════
# PYDANTIC MODELS
# ══════════════════════════════════════════════════════════════════════════


class CreateWorkspaceForm(BaseModel):
    name: str = Field(min_length=1)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class UpdateWorkspaceForm(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class JoinWorkspaceRequest(BaseModel):
    code: str


# ══════════════════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════════════════


async def _read_form(request: Request, model: type[BaseModel]):
    """Parse a multipart/urlencoded body into ``model`` plus the raw image field.

    The image is either an uploaded file or a URL string; "" means no image.
    """
    form = await request.form()
    fields = {k: v for k, v in form.items() if k != "image" and isinstance(v, str)}
    try:
        values = model.model_validate(fields)
    except ValidationError as e:
        raise RequestValidationError(e.errors())

    image = form.get("image")
    if isinstance(image, str) and image == "":
        image = None
    return values, image


async def _store_uploaded_image(image: UploadFile) -> str:
    """Store an uploaded image and return its file id (400 on rejection)."""
    data = await image.read()
    try:
        return file_storage.store_image(data, image.filename, image.content_type)
    except StorageError as e:
        raise HTTPException(status_code=400, detail=e.message)


def _discard_uploaded_image(file_id: Optional[str]) -> None:
    """Delete an icon this workspace uploaded. URLs given as strings are never touched."""
    if file_id and file_storage.delete_image(file_id):
        logger.debug(f"Deleted image {file_id}")


# ══════════════════════════════════════════════════════════════════════════
# ENDPOINTS
# ══════════════════════════════════════════════════════════════════════════


@router.get("/")
async def list_workspaces(
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Workspaces the caller belongs to, newest first."""
    result = await session.execute(
        select(Workspace)
        .join(Member, Member.workspace_id == Workspace.id)
        .where(Member.user_id == user.id)
        .order_by(Workspace.created_at.desc())
    )
    workspaces = result.scalars().all()
    return {"data": document_list([_serialize_workspace(w) for w in workspaces])}


@router.post("/")
async def create_workspace(
    request: Request,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Create a workspace; the caller becomes its admin and default statuses are seeded."""
    form, image = await _read_form(request, CreateWorkspaceForm)

    image_url = None
    image_file_id = None
    if isinstance(image, UploadFile):
        image_file_id = await _store_uploaded_image(image)
        image_url = file_storage.image_url(image_file_id)
    elif isinstance(image, str):
        image_url = image

    now = now_ms()
    workspace = Workspace(
        id=gen_id("ws_"),
        name=form.name,
        user_id=user.id,
        image_url=image_url,
        image_file_id=image_file_id,
        invite_code=generate_invite_code(),
        created_at=now,
        updated_at=now,
    )
    session.add(workspace)
    session.add(
        Member(
            id=gen_id("mem_"),
            workspace_id=workspace.id,
            user_id=user.id,
            role=ROLE_ADMIN,
            created_at=now,
            updated_at=now,
        )
    )
    await session.flush()
    await seed_default_task_statuses(session, workspace.id)
    await session.commit()

    logger.info(f"User {user.id} created workspace {workspace.id}")
    await publish_event("WORKSPACE_CREATED", {"workspaceId": workspace.id, "name": workspace.name})
    return {"data": _serialize_workspace(workspace)}


@router.get("/{workspace_id}")
async def get_workspace(
    workspace_id: str,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    workspace = await get_workspace_or_404(session, workspace_id)
    await require_member(session, workspace_id, user.id)
    return {"data": _serialize_workspace(workspace)}


@router.get("/{workspace_id}/info")
async def get_workspace_info(
    workspace_id: str,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Public summary shown on the join page to non-members."""
    workspace = await get_workspace_or_404(session, workspace_id)
    return {
        "data": {
            "id": workspace.id,
            "name": workspace.name,
            "imageUrl": workspace.image_url,
        }
    }


@router.patch("/{workspace_id}")
async def update_workspace(
    workspace_id: str,
    request: Request,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Rename a workspace or change its image (admin only)."""
    await require_admin(session, workspace_id, user.id)
    workspace = await get_workspace_or_404(session, workspace_id)
    form, image = await _read_form(request, UpdateWorkspaceForm)

    if form.name is not None:
        workspace.name = form.name

    replaced_file_id = None
    if isinstance(image, UploadFile):
        new_file_id = await _store_uploaded_image(image)
        replaced_file_id = workspace.image_file_id
        workspace.image_url = file_storage.image_url(new_file_id)
        workspace.image_file_id = new_file_id
    elif isinstance(image, str) and image != workspace.image_url:
        replaced_file_id = workspace.image_file_id
        workspace.image_url = image
        workspace.image_file_id = None

    workspace.updated_at = now_ms()
    await session.commit()

    # Old file goes only once the new reference is committed
    _discard_uploaded_image(replaced_file_id)

    await publish_event("WORKSPACE_UPDATED", {"workspaceId": workspace.id})
    return {"data": _serialize_workspace(workspace)}


@router.delete("/{workspace_id}")
async def delete_workspace(
    workspace_id: str,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Delete a workspace with its members, statuses and tasks (admin only)."""
    await require_admin(session, workspace_id, user.id)
    workspace = await get_workspace_or_404(session, workspace_id)
    image_file_id = workspace.image_file_id

    await session.execute(delete(Task).where(Task.workspace_id == workspace_id))
    await session.execute(delete(TaskStatus).where(TaskStatus.workspace_id == workspace_id))
    await session.execute(delete(Member).where(Member.workspace_id == workspace_id))
    await session.delete(workspace)
    await session.commit()

    _discard_uploaded_image(image_file_id)
    logger.info(f"User {user.id} deleted workspace {workspace_id}")
    await publish_event("WORKSPACE_DELETED", {"workspaceId": workspace_id})
    return {"data": {"id": workspace_id}}


@router.post("/{workspace_id}/reset-invite-code")
async def reset_invite_code(
    workspace_id: str,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Issue a new invite code, invalidating the old one (admin only)."""
    await require_admin(session, workspace_id, user.id)
    workspace = await get_workspace_or_404(session, workspace_id)

    workspace.invite_code = generate_invite_code()
    workspace.updated_at = now_ms()
    await session.commit()
    return {"data": _serialize_workspace(workspace)}


@router.post("/{workspace_id}/join")
async def join_workspace(
    workspace_id: str,
    body: JoinWorkspaceRequest,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Join a workspace with its invite code."""
    if await get_member(session, workspace_id, user.id):
        raise HTTPException(status_code=400, detail="Already a member")

    workspace = await get_workspace_or_404(session, workspace_id)
    if workspace.invite_code != body.code:
        raise HTTPException(status_code=400, detail="Invalid invite code")

    now = now_ms()
    member = Member(
        id=gen_id("mem_"),
        workspace_id=workspace_id,
        user_id=user.id,
        role=ROLE_MEMBER,
        created_at=now,
        updated_at=now,
    )
    session.add(member)
    await session.commit()

    logger.info(f"User {user.id} joined workspace {workspace_id}")
    await publish_event("MEMBER_JOINED", {"workspaceId": workspace_id, "memberId": member.id})
    return {"data": _serialize_workspace(workspace)}


@router.get("/{workspace_id}/analytics")
async def workspace_analytics(
    workspace_id: str,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Task and member counts for the workspace home page."""
    await require_member(session, workspace_id, user.id)

    statuses = await list_statuses(session, workspace_id)
    tasks = await list_tasks(session, workspace_id)
    total_members = await session.scalar(
        select(func.count()).select_from(Member).where(Member.workspace_id == workspace_id)
    )

    return {"data": {**summarize_tasks(statuses, tasks), "totalMembers": total_members or 0}}

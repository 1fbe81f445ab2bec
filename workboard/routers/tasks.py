"""Task board, task status and task endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from workboard.auth.dependencies import AuthUser, get_current_user
from workboard.database import get_async_session
from workboard.logging_config import get_logger
from workboard.models import Member, Task, TaskStatus
from workboard.services.task_board import (
    group_tasks_by_status,
    list_statuses,
    list_tasks,
    next_status_position,
)
from workboard.utils import gen_id, iso_to_ms, now_ms, publish_event

from ._common import (
    document_list,
    get_status_or_404,
    get_task_or_404,
    require_admin,
    require_member,
    _serialize_status,
    _serialize_task,
)

logger = get_logger(__name__)
router = APIRouter()


# ══════════════════════════════════════════════════════════════════════════
# PYDANTIC MODELS
# ══════════════════════════════════════════════════════════════════════════


def _strip_or_none(v):
    """Trim strings; blank becomes None."""
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class CreateTaskRequest(BaseModel):
    workspaceId: str = Field(min_length=1)
    statusId: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: Optional[str] = None
    assigneeId: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", "assigneeId", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _strip_or_none(v)


class UpdateTaskRequest(BaseModel):
    statusId: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    assigneeId: Optional[str] = None
    archivedAt: Optional[datetime] = None

    @field_validator("statusId", "title", mode="before")
    @classmethod
    def reject_null(cls, v):
        # Optional, but not nullable
        if v is None:
            raise ValueError("may be omitted but not null")
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", "assigneeId", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _strip_or_none(v)

    @field_validator("archivedAt", mode="before")
    @classmethod
    def parse_archived_at(cls, v):
        """ISO-8601 string with a timezone (e.g. ``2024-01-01T00:00:00Z``) or null."""
        if v is None:
            return None
        if not isinstance(v, str):
            raise ValueError("must be an ISO-8601 datetime string")
        text = v.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError("must be an ISO-8601 datetime string")
        if "T" not in text.upper() or parsed.tzinfo is None:
            raise ValueError("must include a time and a timezone")
        return parsed

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field is required")
        return self


class CreateTaskStatusRequest(BaseModel):
    workspaceId: str = Field(min_length=1)
    name: str = Field(min_length=1)
    position: Optional[int] = Field(default=None, ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class UpdateTaskStatusRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    position: Optional[int] = Field(default=None, ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field is required")
        return self


# ══════════════════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════════════════


async def _check_status_in_workspace(
    session: AsyncSession, status_id: str, workspace_id: str
) -> None:
    task_status = await session.get(TaskStatus, status_id)
    if task_status is None or task_status.workspace_id != workspace_id:
        raise HTTPException(status_code=400, detail="Invalid status")


async def _check_assignee_in_workspace(
    session: AsyncSession, member_id: str, workspace_id: str
) -> None:
    member = await session.get(Member, member_id)
    if member is None or member.workspace_id != workspace_id:
        raise HTTPException(status_code=400, detail="Invalid assignee")


async def _load_task_for_member(
    session: AsyncSession, task_id: str, user_id: str
) -> Task:
    task = await get_task_or_404(session, task_id)
    await require_member(session, task.workspace_id, user_id)
    return task


# ══════════════════════════════════════════════════════════════════════════
# BOARD
# ══════════════════════════════════════════════════════════════════════════


@router.get("/board")
async def get_task_board(
    workspaceId: str = Query(..., min_length=1),
    includeArchived: Optional[str] = None,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Statuses and tasks of a workspace, plus tasks grouped per status."""
    await require_member(session, workspaceId, user.id)

    statuses = await list_statuses(session, workspaceId)
    tasks = await list_tasks(session, workspaceId, include_archived=includeArchived == "true")

    return {
        "data": {
            "statuses": document_list([_serialize_status(s) for s in statuses]),
            "tasks": document_list([_serialize_task(t) for t in tasks]),
            "columns": [
                {
                    "status": _serialize_status(s),
                    "tasks": [_serialize_task(t) for t in column_tasks],
                }
                for s, column_tasks in group_tasks_by_status(statuses, tasks)
            ],
        }
    }


# ══════════════════════════════════════════════════════════════════════════
# STATUSES
# ══════════════════════════════════════════════════════════════════════════


@router.get("/statuses")
async def get_task_statuses(
    workspaceId: str = Query(..., min_length=1),
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    await require_member(session, workspaceId, user.id)
    statuses = await list_statuses(session, workspaceId)
    return {"data": document_list([_serialize_status(s) for s in statuses])}


@router.post("/statuses")
async def create_task_status(
    body: CreateTaskStatusRequest,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Add a board column (admin only). Appended after the last one by default."""
    await require_admin(session, body.workspaceId, user.id)

    position = body.position
    if position is None:
        position = await next_status_position(session, body.workspaceId)

    now = now_ms()
    task_status = TaskStatus(
        id=gen_id("sts_"),
        workspace_id=body.workspaceId,
        name=body.name,
        position=position,
        created_at=now,
        updated_at=now,
    )
    session.add(task_status)
    await session.commit()

    await publish_event(
        "TASK_STATUS_CREATED", {"workspaceId": body.workspaceId, "statusId": task_status.id}
    )
    return {"data": _serialize_status(task_status)}


@router.patch("/statuses/{status_id}")
async def update_task_status(
    status_id: str,
    body: UpdateTaskStatusRequest,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Rename or move a board column (admin only)."""
    task_status = await get_status_or_404(session, status_id)
    await require_admin(session, task_status.workspace_id, user.id)

    if body.name is not None:
        task_status.name = body.name
    if body.position is not None:
        task_status.position = body.position
    task_status.updated_at = now_ms()
    await session.commit()

    await publish_event(
        "TASK_STATUS_UPDATED",
        {"workspaceId": task_status.workspace_id, "statusId": status_id},
    )
    return {"data": _serialize_status(task_status)}


# ══════════════════════════════════════════════════════════════════════════
# TASKS
# ══════════════════════════════════════════════════════════════════════════


@router.post("/")
async def create_task(
    body: CreateTaskRequest,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    await require_member(session, body.workspaceId, user.id)
    await _check_status_in_workspace(session, body.statusId, body.workspaceId)
    if body.assigneeId:
        await _check_assignee_in_workspace(session, body.assigneeId, body.workspaceId)

    now = now_ms()
    task = Task(
        id=gen_id("tsk_"),
        workspace_id=body.workspaceId,
        status_id=body.statusId,
        title=body.title,
        description=body.description,
        assignee_id=body.assigneeId,
        archived_at=None,
        created_at=now,
        updated_at=now,
    )
    session.add(task)
    await session.commit()

    logger.debug(f"User {user.id} created task {task.id} in {body.workspaceId}")
    await publish_event("TASK_CREATED", {"workspaceId": body.workspaceId, "taskId": task.id})
    return {"data": _serialize_task(task)}


@router.get("/{task_id}")
async def get_task(
    task_id: str,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    task = await _load_task_for_member(session, task_id, user.id)
    return {"data": _serialize_task(task)}


@router.patch("/{task_id}")
async def update_task(
    task_id: str,
    body: UpdateTaskRequest,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """Partial update. Blank description/assignee values are ignored."""
    task = await _load_task_for_member(session, task_id, user.id)

    if body.statusId is not None:
        await _check_status_in_workspace(session, body.statusId, task.workspace_id)
        task.status_id = body.statusId
    if body.assigneeId is not None:
        await _check_assignee_in_workspace(session, body.assigneeId, task.workspace_id)
        task.assignee_id = body.assigneeId
    if body.title is not None:
        task.title = body.title
    if body.description is not None:
        task.description = body.description
    if "archivedAt" in body.model_fields_set:
        task.archived_at = iso_to_ms(body.archivedAt) if body.archivedAt else None

    task.updated_at = now_ms()
    await session.commit()

    await publish_event("TASK_UPDATED", {"workspaceId": task.workspace_id, "taskId": task.id})
    return {"data": _serialize_task(task)}


@router.post("/{task_id}/archive")
async def archive_task(
    task_id: str,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    task = await _load_task_for_member(session, task_id, user.id)
    task.archived_at = now_ms()
    task.updated_at = task.archived_at
    await session.commit()

    await publish_event("TASK_ARCHIVED", {"workspaceId": task.workspace_id, "taskId": task.id})
    return {"data": _serialize_task(task)}


@router.post("/{task_id}/unarchive")
async def unarchive_task(
    task_id: str,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    task = await _load_task_for_member(session, task_id, user.id)
    task.archived_at = None
    task.updated_at = now_ms()
    await session.commit()

    await publish_event("TASK_UNARCHIVED", {"workspaceId": task.workspace_id, "taskId": task.id})
    return {"data": _serialize_task(task)}

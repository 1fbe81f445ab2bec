"""Task board queries and aggregation shared by the workspace and task routers."""

from typing import Iterable, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from workboard.constants import DEFAULT_TASK_STATUSES, DONE_STATUS_MARKER
from workboard.logging_config import get_logger
from workboard.models import Task, TaskStatus
from workboard.utils import gen_id, now_ms

logger = get_logger(__name__)


async def seed_default_task_statuses(session: AsyncSession, workspace_id: str) -> int:
    """Create the default statuses unless the workspace already has any.

    Returns the number of statuses created.
    """
    existing = await session.scalar(
        select(func.count())
        .select_from(TaskStatus)
        .where(TaskStatus.workspace_id == workspace_id)
    )
    if existing:
        return 0

    now = now_ms()
    for status_def in DEFAULT_TASK_STATUSES:
        session.add(
            TaskStatus(
                id=gen_id("sts_"),
                workspace_id=workspace_id,
                name=status_def["name"],
                position=status_def["position"],
                created_at=now,
                updated_at=now,
            )
        )
    await session.flush()
    logger.debug(f"Seeded {len(DEFAULT_TASK_STATUSES)} statuses for {workspace_id}")
    return len(DEFAULT_TASK_STATUSES)


async def list_statuses(session: AsyncSession, workspace_id: str) -> list[TaskStatus]:
    result = await session.execute(
        select(TaskStatus)
        .where(TaskStatus.workspace_id == workspace_id)
        .order_by(TaskStatus.position.asc(), TaskStatus.created_at.asc())
    )
    return list(result.scalars().all())


async def list_tasks(
    session: AsyncSession, workspace_id: str, include_archived: bool = False
) -> list[Task]:
    """Tasks of a workspace, newest first."""
    query = select(Task).where(Task.workspace_id == workspace_id)
    if not include_archived:
        query = query.where(Task.archived_at.is_(None))
    result = await session.execute(query.order_by(Task.created_at.desc()))
    return list(result.scalars().all())


async def next_status_position(session: AsyncSession, workspace_id: str) -> int:
    """One past the highest position in the workspace, or 0 when empty."""
    highest = await session.scalar(
        select(func.max(TaskStatus.position)).where(
            TaskStatus.workspace_id == workspace_id
        )
    )
    return 0 if highest is None else highest + 1


def group_tasks_by_status(
    statuses: Sequence[TaskStatus], tasks: Iterable[Task]
) -> list[tuple[TaskStatus, list[Task]]]:
    """Pair each status with its tasks, keeping both orders.

    Tasks pointing at a status that is not in ``statuses`` are dropped.
    """
    by_status: dict[str, list[Task]] = {s.id: [] for s in statuses}
    for task in tasks:
        bucket = by_status.get(task.status_id)
        if bucket is not None:
            bucket.append(task)
    return [(s, by_status[s.id]) for s in statuses]


def is_done_status(name: str) -> bool:
    return DONE_STATUS_MARKER in name.lower()


def summarize_tasks(statuses: Sequence[TaskStatus], tasks: Sequence[Task]) -> dict:
    """Completed / in-progress counts for the workspace analytics card."""
    done_ids = {s.id for s in statuses if is_done_status(s.name)}
    known_ids = {s.id for s in statuses}
    completed = sum(1 for t in tasks if t.status_id in done_ids)
    in_progress = sum(
        1 for t in tasks if t.status_id in known_ids and t.status_id not in done_ids
    )
    return {
        "totalTasks": len(tasks),
        "completedTasks": completed,
        "inProgressTasks": in_progress,
    }

"""Unit tests for board grouping, analytics and seeding helpers."""
import pytest

from workboard.constants import INVITE_CODE_ALPHABET
from workboard.models import Task, TaskStatus
from workboard.services.task_board import (
    group_tasks_by_status,
    is_done_status,
    list_statuses,
    next_status_position,
    seed_default_task_statuses,
    summarize_tasks,
)
from workboard.utils import generate_invite_code, iso_to_ms, ms_to_iso


def _status(status_id: str, name: str, position: int = 0) -> TaskStatus:
    return TaskStatus(
        id=status_id, workspace_id="ws_1", name=name, position=position,
        created_at=0, updated_at=0,
    )


def _task(task_id: str, status_id: str) -> Task:
    return Task(
        id=task_id, workspace_id="ws_1", status_id=status_id, title=task_id,
        created_at=0, updated_at=0,
    )


def test_group_tasks_by_status_keeps_order():
    statuses = [_status("s1", "Todo", 0), _status("s2", "Done", 1)]
    tasks = [_task("t3", "s2"), _task("t2", "s1"), _task("t1", "s1")]

    grouped = group_tasks_by_status(statuses, tasks)

    assert [s.id for s, _ in grouped] == ["s1", "s2"]
    assert [t.id for t in grouped[0][1]] == ["t2", "t1"]
    assert [t.id for t in grouped[1][1]] == ["t3"]


def test_group_tasks_drops_unknown_status():
    grouped = group_tasks_by_status([_status("s1", "Todo")], [_task("t1", "gone")])
    assert grouped[0][1] == []


def test_group_tasks_empty_board():
    assert group_tasks_by_status([], []) == []


@pytest.mark.parametrize(
    "name,expected",
    [("Done", True), ("done", True), ("Done ✅", True), ("Not done yet", True), ("Todo", False)],
)
def test_is_done_status(name, expected):
    assert is_done_status(name) is expected


def test_summarize_tasks():
    statuses = [_status("s1", "Todo"), _status("s2", "In Progress"), _status("s3", "DONE")]
    tasks = [_task("a", "s1"), _task("b", "s2"), _task("c", "s3"), _task("d", "s3")]

    assert summarize_tasks(statuses, tasks) == {
        "totalTasks": 4,
        "completedTasks": 2,
        "inProgressTasks": 2,
    }


def test_summarize_no_tasks():
    assert summarize_tasks([], []) == {
        "totalTasks": 0,
        "completedTasks": 0,
        "inProgressTasks": 0,
    }


def test_generate_invite_code():
    codes = {generate_invite_code() for _ in range(50)}
    assert all(len(code) == 6 for code in codes)
    assert all(set(code) <= set(INVITE_CODE_ALPHABET) for code in codes)
    assert len(codes) > 1


def test_iso_round_trip_naive_is_utc():
    from datetime import datetime

    ms = iso_to_ms(datetime(2024, 1, 1))
    assert ms == 1704067200000
    assert ms_to_iso(ms) == "2024-01-01T00:00:00+00:00"
    assert ms_to_iso(None) is None


@pytest.mark.asyncio
async def test_seed_default_task_statuses_once(test_session):
    """Seeding fills an empty workspace and is a no-op afterwards."""
    assert await next_status_position(test_session, "ws_seed") == 0

    created = await seed_default_task_statuses(test_session, "ws_seed")
    again = await seed_default_task_statuses(test_session, "ws_seed")

    assert created == 5
    assert again == 0
    statuses = await list_statuses(test_session, "ws_seed")
    assert [s.name for s in statuses] == ["Backlog", "Todo", "In Progress", "In Review", "Done"]
    assert await next_status_position(test_session, "ws_seed") == 5

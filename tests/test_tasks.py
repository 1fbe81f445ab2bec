"""Integration tests for task board, task status and task endpoints."""
import pytest
import pytest_asyncio
from httpx import AsyncClient

from conftest import create_workspace, join_workspace


@pytest_asyncio.fixture
async def statuses(client: AsyncClient, workspace: dict, owner: dict) -> dict:
    """Default statuses of ``workspace`` keyed by name."""
    response = await client.get(
        f"/api/tasks/statuses?workspaceId={workspace['id']}", headers=owner
    )
    return {s["name"]: s for s in response.json()["data"]["documents"]}


async def _create_task(client: AsyncClient, headers: dict, **fields) -> dict:
    response = await client.post("/api/tasks/", json=fields, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]


# ══════════════════════════════════════════════════════════════════════════
# STATUSES
# ══════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_statuses_ordered(client: AsyncClient, workspace: dict, owner: dict, statuses: dict):
    response = await client.get(
        f"/api/tasks/statuses?workspaceId={workspace['id']}", headers=owner
    )
    data = response.json()["data"]
    assert data["total"] == 5
    assert [s["position"] for s in data["documents"]] == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_create_status_appends(client: AsyncClient, workspace: dict, owner: dict, statuses: dict):
    """Without a position the new status goes after the last one."""
    response = await client.post(
        "/api/tasks/statuses",
        json={"workspaceId": workspace["id"], "name": "  Blocked  "},
        headers=owner,
    )

    assert response.status_code == 200
    created = response.json()["data"]
    assert created["id"].startswith("sts_")
    assert created["name"] == "Blocked"
    assert created["position"] == 5


@pytest.mark.asyncio
async def test_create_status_explicit_position(client: AsyncClient, workspace: dict, owner: dict):
    response = await client.post(
        "/api/tasks/statuses",
        json={"workspaceId": workspace["id"], "name": "Triage", "position": 0},
        headers=owner,
    )
    assert response.json()["data"]["position"] == 0


@pytest.mark.asyncio
async def test_create_status_validation(client: AsyncClient, workspace: dict, owner: dict):
    blank = await client.post(
        "/api/tasks/statuses", json={"workspaceId": workspace["id"], "name": " "}, headers=owner
    )
    assert blank.status_code == 422

    negative = await client.post(
        "/api/tasks/statuses",
        json={"workspaceId": workspace["id"], "name": "X", "position": -1},
        headers=owner,
    )
    assert negative.status_code == 422


@pytest.mark.asyncio
async def test_create_status_requires_admin(client: AsyncClient, workspace: dict, other: dict):
    await join_workspace(client, other, workspace)
    response = await client.post(
        "/api/tasks/statuses", json={"workspaceId": workspace["id"], "name": "Nope"}, headers=other
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_update_status(client: AsyncClient, owner: dict, statuses: dict):
    target = statuses["In Review"]

    response = await client.patch(
        f"/api/tasks/statuses/{target['id']}",
        json={"name": "QA", "position": 7},
        headers=owner,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "QA"
    assert data["position"] == 7


@pytest.mark.asyncio
async def test_update_status_requires_a_field(client: AsyncClient, owner: dict, statuses: dict):
    response = await client.patch(
        f"/api/tasks/statuses/{statuses['Todo']['id']}", json={}, headers=owner
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_missing_status(client: AsyncClient, owner: dict):
    response = await client.patch(
        "/api/tasks/statuses/sts_missing", json={"name": "X"}, headers=owner
    )
    assert response.status_code == 404


# ══════════════════════════════════════════════════════════════════════════
# TASKS
# ══════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_task(client: AsyncClient, workspace: dict, owner: dict, statuses: dict):
    """Blank optional fields are stored as null."""
    task = await _create_task(
        client,
        owner,
        workspaceId=workspace["id"],
        statusId=statuses["Todo"]["id"],
        title="  Write docs ",
        description="   ",
        assigneeId="",
    )

    assert task["id"].startswith("tsk_")
    assert task["title"] == "Write docs"
    assert task["description"] is None
    assert task["assigneeId"] is None
    assert task["archivedAt"] is None
    assert task["statusId"] == statuses["Todo"]["id"]


@pytest.mark.asyncio
async def test_create_task_with_assignee(client: AsyncClient, workspace: dict, owner: dict, statuses: dict):
    members = await client.get(f"/api/members/?workspaceId={workspace['id']}", headers=owner)
    member_id = members.json()["data"]["documents"][0]["id"]

    task = await _create_task(
        client,
        owner,
        workspaceId=workspace["id"],
        statusId=statuses["Backlog"]["id"],
        title="Mine",
        description="Details",
        assigneeId=member_id,
    )
    assert task["assigneeId"] == member_id
    assert task["description"] == "Details"


@pytest.mark.asyncio
async def test_create_task_rejects_foreign_status(client: AsyncClient, workspace: dict, owner: dict):
    """Statuses and assignees must belong to the task's workspace."""
    elsewhere = await create_workspace(client, owner, "Elsewhere")
    foreign = await client.get(
        f"/api/tasks/statuses?workspaceId={elsewhere['id']}", headers=owner
    )
    foreign_status = foreign.json()["data"]["documents"][0]["id"]

    response = await client.post(
        "/api/tasks/",
        json={"workspaceId": workspace["id"], "statusId": foreign_status, "title": "x"},
        headers=owner,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid status"


@pytest.mark.asyncio
async def test_create_task_rejects_foreign_assignee(
    client: AsyncClient, workspace: dict, owner: dict, statuses: dict
):
    elsewhere = await create_workspace(client, owner, "Elsewhere")
    members = await client.get(f"/api/members/?workspaceId={elsewhere['id']}", headers=owner)
    foreign_member = members.json()["data"]["documents"][0]["id"]

    response = await client.post(
        "/api/tasks/",
        json={
            "workspaceId": workspace["id"],
            "statusId": statuses["Todo"]["id"],
            "title": "x",
            "assigneeId": foreign_member,
        },
        headers=owner,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid assignee"


@pytest.mark.asyncio
async def test_create_task_requires_membership(
    client: AsyncClient, workspace: dict, other: dict, statuses: dict
):
    response = await client.post(
        "/api/tasks/",
        json={"workspaceId": workspace["id"], "statusId": statuses["Todo"]["id"], "title": "x"},
        headers=other,
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_task_blank_title(client: AsyncClient, workspace: dict, owner: dict, statuses: dict):
    response = await client.post(
        "/api/tasks/",
        json={"workspaceId": workspace["id"], "statusId": statuses["Todo"]["id"], "title": "  "},
        headers=owner,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_task(client: AsyncClient, workspace: dict, owner: dict, other: dict, statuses: dict):
    task = await _create_task(
        client, owner, workspaceId=workspace["id"], statusId=statuses["Todo"]["id"], title="Read me"
    )

    response = await client.get(f"/api/tasks/{task['id']}", headers=owner)
    assert response.status_code == 200
    assert response.json()["data"]["title"] == "Read me"

    outsider = await client.get(f"/api/tasks/{task['id']}", headers=other)
    assert outsider.status_code == 401

    missing = await client.get("/api/tasks/tsk_missing", headers=owner)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_update_task(client: AsyncClient, workspace: dict, owner: dict, statuses: dict):
    """Moves the task; blank description is ignored rather than clearing it."""
    task = await _create_task(
        client,
        owner,
        workspaceId=workspace["id"],
        statusId=statuses["Todo"]["id"],
        title="Move me",
        description="Keep me",
    )

    response = await client.patch(
        f"/api/tasks/{task['id']}",
        json={"statusId": statuses["Done"]["id"], "title": "Moved", "description": ""},
        headers=owner,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["statusId"] == statuses["Done"]["id"]
    assert data["title"] == "Moved"
    assert data["description"] == "Keep me"


@pytest.mark.asyncio
async def test_update_task_archived_at(client: AsyncClient, workspace: dict, owner: dict, statuses: dict):
    task = await _create_task(
        client, owner, workspaceId=workspace["id"], statusId=statuses["Todo"]["id"], title="Old"
    )

    response = await client.patch(
        f"/api/tasks/{task['id']}", json={"archivedAt": "2024-01-01T00:00:00Z"}, headers=owner
    )
    assert response.json()["data"]["archivedAt"] == "2024-01-01T00:00:00+00:00"

    cleared = await client.patch(
        f"/api/tasks/{task['id']}", json={"archivedAt": None}, headers=owner
    )
    assert cleared.json()["data"]["archivedAt"] is None


@pytest.mark.asyncio
async def test_update_task_validation(client: AsyncClient, workspace: dict, owner: dict, statuses: dict):
    task = await _create_task(
        client, owner, workspaceId=workspace["id"], statusId=statuses["Todo"]["id"], title="x"
    )

    empty = await client.patch(f"/api/tasks/{task['id']}", json={}, headers=owner)
    assert empty.status_code == 422

    for archived_at in ("yesterday", 1700000000, "2024-01-01", "2024-01-01T00:00:00"):
        bad_date = await client.patch(
            f"/api/tasks/{task['id']}", json={"archivedAt": archived_at}, headers=owner
        )
        assert bad_date.status_code == 422, archived_at

    for field in ("statusId", "title"):
        nulled = await client.patch(f"/api/tasks/{task['id']}", json={field: None}, headers=owner)
        assert nulled.status_code == 422, field

    bad_status = await client.patch(
        f"/api/tasks/{task['id']}", json={"statusId": "sts_missing"}, headers=owner
    )
    assert bad_status.status_code == 400

    unchanged = await client.get(f"/api/tasks/{task['id']}", headers=owner)
    assert unchanged.json()["data"]["title"] == "x"
    assert unchanged.json()["data"]["archivedAt"] is None


@pytest.mark.asyncio
async def test_archive_and_unarchive(client: AsyncClient, workspace: dict, owner: dict, statuses: dict):
    task = await _create_task(
        client, owner, workspaceId=workspace["id"], statusId=statuses["Todo"]["id"], title="Box"
    )

    archived = await client.post(f"/api/tasks/{task['id']}/archive", headers=owner)
    assert archived.status_code == 200
    assert archived.json()["data"]["archivedAt"] is not None

    restored = await client.post(f"/api/tasks/{task['id']}/unarchive", headers=owner)
    assert restored.status_code == 200
    assert restored.json()["data"]["archivedAt"] is None


# ══════════════════════════════════════════════════════════════════════════
# BOARD
# ══════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_board(client: AsyncClient, workspace: dict, owner: dict, other: dict, statuses: dict):
    """Columns follow status order and hide archived tasks by default."""
    await join_workspace(client, other, workspace)
    todo = await _create_task(
        client, owner, workspaceId=workspace["id"], statusId=statuses["Todo"]["id"], title="T"
    )
    done = await _create_task(
        client, other, workspaceId=workspace["id"], statusId=statuses["Done"]["id"], title="D"
    )
    shelved = await _create_task(
        client, owner, workspaceId=workspace["id"], statusId=statuses["Todo"]["id"], title="S"
    )
    await client.post(f"/api/tasks/{shelved['id']}/archive", headers=owner)

    response = await client.get(f"/api/tasks/board?workspaceId={workspace['id']}", headers=other)

    assert response.status_code == 200
    board = response.json()["data"]
    assert board["statuses"]["total"] == 5
    assert board["tasks"]["total"] == 2
    assert [c["status"]["name"] for c in board["columns"]] == [
        "Backlog", "Todo", "In Progress", "In Review", "Done"
    ]
    columns = {c["status"]["name"]: [t["id"] for t in c["tasks"]] for c in board["columns"]}
    assert columns["Todo"] == [todo["id"]]
    assert columns["Done"] == [done["id"]]
    assert columns["Backlog"] == []


@pytest.mark.asyncio
async def test_board_include_archived(client: AsyncClient, workspace: dict, owner: dict, statuses: dict):
    """Only the literal "true" includes archived tasks."""
    task = await _create_task(
        client, owner, workspaceId=workspace["id"], statusId=statuses["Todo"]["id"], title="A"
    )
    await client.post(f"/api/tasks/{task['id']}/archive", headers=owner)

    included = await client.get(
        f"/api/tasks/board?workspaceId={workspace['id']}&includeArchived=true", headers=owner
    )
    assert included.json()["data"]["tasks"]["total"] == 1

    for value in ("1", "TRUE", "yes"):
        excluded = await client.get(
            f"/api/tasks/board?workspaceId={workspace['id']}&includeArchived={value}",
            headers=owner,
        )
        assert excluded.json()["data"]["tasks"]["total"] == 0


@pytest.mark.asyncio
async def test_board_requires_membership(client: AsyncClient, workspace: dict, other: dict):
    response = await client.get(f"/api/tasks/board?workspaceId={workspace['id']}", headers=other)
    assert response.status_code == 401

# tests/test_stats.py
# PURPOSE: basic and advanced task statistics.

from datetime import datetime, timezone

TASKS = "/api/v1/tasks"


def _create(client, member, title, **extra):
    r = client.post(TASKS, json={"title": title, **extra}, headers=member.headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_completed_high_priority_task_is_not_counted_as_high_priority(client, acme):
    user = acme["user"]
    task = _create(client, user, "Ship v1", priority=2)
    assert task["isCompleted"] is False

    toggled = client.patch(f"{TASKS}/{task['id']}/status", headers=user.headers).json()
    assert toggled["isCompleted"] is True
    assert toggled["completedAt"] is not None

    stats = client.get(f"{TASKS}/stats", headers=user.headers).json()
    assert stats["total"] == 1
    assert stats["completed"] == 1
    assert stats["active"] == 0
    assert stats["highPriority"] == 0


def test_stats_list_every_state_and_include_subtasks(client, world, acme):
    user = acme["user"]
    parent = _create(client, user, "Parent", priority=2)
    _create(client, user, "Child", parentTaskId=parent["id"], todoStateId=world.state_id(acme["org_id"], "active"))
    gone = _create(client, user, "Deleted", priority=2)
    client.delete(f"{TASKS}/{gone['id']}", headers=user.headers)

    stats = client.get(f"{TASKS}/stats", headers=user.headers).json()
    assert stats["total"] == 2
    assert stats["active"] == 2
    assert stats["highPriority"] == 1
    assert stats["byState"] == {"Draft": 1, "Active": 1, "In Progress": 0, "Done": 0}


def test_stats_are_scoped_to_the_organization(client, world, acme):
    _create(client, acme["user"], "Acme task")
    outsider = world.member(world.org("Globex"), "User")
    stats = client.get(f"{TASKS}/stats", headers=outsider.headers).json()
    assert stats["total"] == 0


def test_advanced_stats_require_admin(client, acme):
    r = client.get(f"{TASKS}/stats/advanced", headers=acme["user"].headers)
    assert r.status_code == 403
    r = client.get(f"{TASKS}/stats/advanced?days=0", headers=acme["admin"].headers)
    assert r.status_code == 422
    r = client.get(f"{TASKS}/stats/advanced?days=366", headers=acme["admin"].headers)
    assert r.status_code == 422


def test_advanced_stats_breakdown_and_trend(client, acme):
    admin, user = acme["admin"], acme["user"]
    mine = _create(client, user, "Assigned", priority=2, assignedToId=user.id)
    _create(client, user, "Loose")
    client.patch(f"{TASKS}/{mine['id']}/status", headers=user.headers)

    r = client.get(f"{TASKS}/stats/advanced?days=7", headers=admin.headers)
    assert r.status_code == 200
    data = r.json()

    assigned = data["byUser"][str(user.id)]
    assert assigned["userName"] == "Uma User"
    assert assigned["userEmail"] == user.email
    assert assigned["totalTasks"] == 1
    assert assigned["completedTasks"] == 1
    assert assigned["activeTasks"] == 0
    assert assigned["highPriorityTasks"] == 1
    assert assigned["stateCounts"]["Done"] == 1

    unassigned = data["byUser"]["unassigned"]
    assert unassigned["userId"] is None
    assert unassigned["userName"] == "Unassigned"
    assert unassigned["activeTasks"] == 1

    assert data["byState"]["Done"] == 1
    assert data["byState"]["Draft"] == 1

    trends = data["trends"]
    assert len(trends) == 8
    today = trends[-1]
    assert today["date"] == datetime.now(timezone.utc).date().isoformat()
    assert today["tasksCreated"] == 2
    assert today["tasksCompleted"] == 1
    assert today["totalTasks"] == 2
    assert today["stateCounts"]["Done"] == 1
    assert trends[0]["totalTasks"] == 0

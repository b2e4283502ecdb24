# tests/test_todo_states.py
# PURPOSE: workflow state management: defaults, uniqueness, delete guard, reorder.

STATES = "/api/v1/todostates"
TASKS = "/api/v1/tasks"


def _states(client, member):
    r = client.get(STATES, headers=member.headers)
    assert r.status_code == 200
    return r.json()


def test_new_organization_has_seeded_workflow(client, acme):
    states = _states(client, acme["user"])
    assert [s["name"] for s in states] == ["draft", "active", "in-progress", "done"]
    assert [s["isDefault"] for s in states] == [True, False, False, False]
    assert [s["isTerminal"] for s in states] == [False, False, False, True]
    assert all(s["taskCount"] == 0 for s in states)


def test_only_admin_can_change_states(client, acme):
    r = client.post(STATES, json={"name": "review", "displayName": "Review"}, headers=acme["user"].headers)
    assert r.status_code == 403


def test_create_state_normalizes_name_and_rejects_duplicates(client, acme):
    admin = acme["admin"]
    r = client.post(STATES, json={"name": "Review", "displayName": "Review", "order": 5}, headers=admin.headers)
    assert r.status_code == 201
    created = r.json()
    assert created["name"] == "review"
    assert created["isTerminal"] is False

    r = client.post(STATES, json={"name": "REVIEW", "displayName": "Again"}, headers=admin.headers)
    assert r.status_code == 409


def test_state_named_done_is_terminal_unless_told_otherwise(client, world, acme):
    admin = acme["admin"]
    client.delete(f"{STATES}/{world.state_id(acme['org_id'], 'done')}", headers=admin.headers)
    r = client.post(STATES, json={"name": "done", "displayName": "Finished"}, headers=admin.headers)
    assert r.json()["isTerminal"] is True

    r = client.post(
        STATES, json={"name": "shipped", "displayName": "Shipped", "isTerminal": True}, headers=admin.headers
    )
    assert r.json()["isTerminal"] is True


def test_marking_a_new_default_unsets_the_old_one(client, acme):
    admin = acme["admin"]
    r = client.post(
        STATES, json={"name": "inbox", "displayName": "Inbox", "isDefault": True}, headers=admin.headers
    )
    inbox_id = r.json()["id"]

    defaults = [s["id"] for s in _states(client, admin) if s["isDefault"]]
    assert defaults == [inbox_id]

    task = client.post(TASKS, json={"title": "Lands in inbox"}, headers=acme["user"].headers).json()
    assert task["todoStateId"] == inbox_id


def test_partial_update(client, world, acme):
    admin = acme["admin"]
    active = world.state_id(acme["org_id"], "active")
    r = client.put(f"{STATES}/{active}", json={"color": "#000000", "isDefault": True}, headers=admin.headers)
    assert r.status_code == 200
    body = r.json()
    assert body["color"] == "#000000"
    assert body["displayName"] == "Active"
    assert body["isDefault"] is True
    assert [s["name"] for s in _states(client, admin) if s["isDefault"]] == ["active"]

    r = client.put(f"{STATES}/{active}", json={"name": "Draft"}, headers=admin.headers)
    assert r.status_code == 409


def test_default_state_cannot_be_unset_or_deleted(client, world, acme):
    admin = acme["admin"]
    draft = world.state_id(acme["org_id"], "draft")

    r = client.put(f"{STATES}/{draft}", json={"isDefault": False}, headers=admin.headers)
    assert r.status_code == 409
    r = client.delete(f"{STATES}/{draft}", headers=admin.headers)
    assert r.status_code == 409
    assert [s["name"] for s in _states(client, admin) if s["isDefault"]] == ["draft"]

    task = client.post(TASKS, json={"title": "Still lands somewhere"}, headers=acme["user"].headers)
    assert task.status_code == 201
    assert task.json()["todoStateId"] == draft


def test_display_names_are_unique_per_organization(client, world, acme):
    admin = acme["admin"]
    r = client.post(STATES, json={"name": "active-2", "displayName": "active"}, headers=admin.headers)
    assert r.status_code == 409

    done = world.state_id(acme["org_id"], "done")
    r = client.put(f"{STATES}/{done}", json={"displayName": "Draft"}, headers=admin.headers)
    assert r.status_code == 409

    r = client.post(STATES, json={"name": "review", "displayName": "Review"}, headers=admin.headers)
    assert r.status_code == 201
    r = client.post(STATES, json={"name": "second-look", "displayName": " review "}, headers=admin.headers)
    assert r.status_code == 409

    # another organization may reuse the label
    globex_admin = world.member(world.org("Globex"), "Admin")
    r = client.post(STATES, json={"name": "review", "displayName": "Review"}, headers=globex_admin.headers)
    assert r.status_code == 201


def test_delete_blocked_while_state_in_use(client, world, acme):
    admin, user = acme["admin"], acme["user"]
    active = world.state_id(acme["org_id"], "active")
    task = client.post(TASKS, json={"title": "Busy", "todoStateId": active}, headers=user.headers).json()

    r = client.delete(f"{STATES}/{active}", headers=admin.headers)
    assert r.status_code == 409
    assert "1 task(s)" in r.json()["error"]

    client.delete(f"{TASKS}/{task['id']}", headers=user.headers)
    r = client.delete(f"{STATES}/{active}", headers=admin.headers)
    assert r.status_code == 204
    assert client.get(f"{STATES}/{active}", headers=admin.headers).status_code == 404
    assert "active" not in [s["name"] for s in _states(client, admin)]


def test_reorder_states(client, acme):
    admin = acme["admin"]
    ids = {s["name"]: s["id"] for s in _states(client, admin)}
    order = [ids["done"], ids["draft"]]

    r = client.post(f"{STATES}/reorder", json={"stateIds": order}, headers=admin.headers)
    assert r.status_code == 200
    by_name = {s["name"]: s["order"] for s in r.json()}
    assert by_name["done"] == 0
    assert by_name["draft"] == 1
    # untouched states keep their previous order
    assert by_name["active"] == 1
    assert by_name["in-progress"] == 2

    r = client.post(f"{STATES}/reorder", json={"stateIds": [ids["draft"], 999]}, headers=admin.headers)
    assert r.status_code == 400


def test_states_of_other_org_are_invisible(client, world, acme):
    outsider = world.member(world.org("Globex"), "Admin")
    foreign = world.state_id(acme["org_id"], "draft")
    assert client.get(f"{STATES}/{foreign}", headers=outsider.headers).status_code == 404
    assert client.delete(f"{STATES}/{foreign}", headers=outsider.headers).status_code == 404

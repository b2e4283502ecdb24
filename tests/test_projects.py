# tests/test_projects.py
# PURPOSE: project CRUD, counts and the delete guard.

PROJECTS = "/api/v1/projects"
TASKS = "/api/v1/tasks"


def test_project_counts_follow_tasks_and_gate_delete(client, world, acme):
    user = acme["user"]
    r = client.post(PROJECTS, json={"name": "Launch", "description": "  go live  "}, headers=user.headers)
    assert r.status_code == 201
    launch = r.json()
    assert launch["description"] == "go live"
    assert launch["organizationName"] == "Acme"
    assert launch["createdByName"] == "Uma User"
    assert r.headers["Location"] == f"{PROJECTS}/{launch['id']}"

    task = client.post(TASKS, json={"title": "Prep", "projectId": launch["id"]}, headers=user.headers).json()
    assert task["todoStateId"] == world.state_id(acme["org_id"], "draft")
    assert task["projectName"] == "Launch"

    got = client.get(f"{PROJECTS}/{launch['id']}", headers=user.headers).json()
    assert got["taskCount"] == 1
    assert got["activeTaskCount"] == 1

    r = client.delete(f"{PROJECTS}/{launch['id']}", headers=user.headers)
    assert r.status_code == 409

    client.delete(f"{TASKS}/{task['id']}", headers=user.headers)
    got = client.get(f"{PROJECTS}/{launch['id']}", headers=user.headers).json()
    assert got["activeTaskCount"] == 0

    r = client.delete(f"{PROJECTS}/{launch['id']}", headers=user.headers)
    assert r.status_code == 204
    assert client.get(f"{PROJECTS}/{launch['id']}", headers=user.headers).status_code == 404


def test_completed_tasks_are_not_active(client, world, acme):
    user = acme["user"]
    project = client.post(PROJECTS, json={"name": "Ops"}, headers=user.headers).json()
    done = world.state_id(acme["org_id"], "done")
    client.post(TASKS, json={"title": "Closed", "projectId": project["id"], "todoStateId": done}, headers=user.headers)

    got = client.get(f"{PROJECTS}/{project['id']}", headers=user.headers).json()
    assert got["taskCount"] == 1
    assert got["activeTaskCount"] == 0


def test_names_are_unique_case_insensitively(client, acme):
    user = acme["user"]
    assert client.post(PROJECTS, json={"name": "Alpha"}, headers=user.headers).status_code == 201
    assert client.post(PROJECTS, json={"name": "alpha"}, headers=user.headers).status_code == 409

    beta = client.post(PROJECTS, json={"name": "Beta"}, headers=user.headers).json()
    r = client.put(f"{PROJECTS}/{beta['id']}", json={"name": "ALPHA"}, headers=user.headers)
    assert r.status_code == 409


def test_list_is_sorted_by_name_and_update_is_partial(client, acme):
    user, admin = acme["user"], acme["admin"]
    zeta = client.post(PROJECTS, json={"name": "Zeta", "description": "last"}, headers=user.headers).json()
    client.post(PROJECTS, json={"name": "Alpha"}, headers=user.headers)

    names = [p["name"] for p in client.get(PROJECTS, headers=user.headers).json()]
    assert names == ["Alpha", "Zeta"]

    r = client.put(f"{PROJECTS}/{zeta['id']}", json={"name": "Omega"}, headers=admin.headers)
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Omega"
    assert body["description"] == "last"
    assert body["updatedById"] == admin.id
    assert body["updatedByName"] == "Ada Admin"


def test_viewer_cannot_mutate_projects(client, acme):
    viewer = acme["viewer"]
    assert client.get(PROJECTS, headers=viewer.headers).status_code == 200
    assert client.post(PROJECTS, json={"name": "Nope"}, headers=viewer.headers).status_code == 403


def test_projects_are_scoped_to_the_organization(client, world, acme):
    project = client.post(PROJECTS, json={"name": "Secret"}, headers=acme["user"].headers).json()
    outsider = world.member(world.org("Globex"), "Admin")
    assert client.get(f"{PROJECTS}/{project['id']}", headers=outsider.headers).status_code == 404
    assert client.get(PROJECTS, headers=outsider.headers).json() == []
    # the same name is free in another organization
    assert client.post(PROJECTS, json={"name": "Secret"}, headers=outsider.headers).status_code == 201

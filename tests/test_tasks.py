from models.log import Log

from conftest import make_user, auth_headers


def _task(client, headers, title="Klant terugbellen", **extra):
    return client.post("/foh-tasks", json={"title": title, **extra}, headers=headers)


def test_task_numbers_run_on(client, foh_headers, mechanic_headers):
    assert _task(client, foh_headers).json()["task_number"] == 1
    # Anyone signed in can file a task
    res = _task(client, mechanic_headers, "Bestelling nakijken")
    assert res.status_code == 201
    assert res.json()["task_number"] == 2
    assert res.json()["status"] == "nog_niet_gestart"


def test_full_list_is_front_desk_only(client, foh_headers, mechanic_headers, admin_headers):
    _task(client, foh_headers)
    assert client.get("/foh-tasks", headers=mechanic_headers).status_code == 403
    assert len(client.get("/foh-tasks", headers=foh_headers).json()) == 1
    assert len(client.get("/foh-tasks", headers=admin_headers).json()) == 1


def test_my_tasks_and_assigned_by_me(client, foh, foh_headers, mechanic, mechanic_headers):
    task = _task(client, foh_headers, assigned_to=mechanic.id).json()
    assert task["assigned_to_name"] == "Mark Monteur"
    assert task["created_by_name"] == "Fleur Balie"
    _task(client, foh_headers, "Zelf doen", assigned_to=foh.id)

    mine = client.get("/foh-tasks/mine", headers=mechanic_headers).json()
    assert [t["id"] for t in mine] == [task["id"]]
    assert client.get("/foh-tasks/open-count", headers=mechanic_headers).json() == {"count": 1}

    handed_out = client.get("/foh-tasks/assigned-by-me", headers=foh_headers).json()
    assert [t["id"] for t in handed_out] == [task["id"]]

    res = client.patch(f"/foh-tasks/{task['id']}/status", json={"status": "afgerond"}, headers=mechanic_headers)
    assert res.json()["status"] == "afgerond"
    assert client.get("/foh-tasks/mine", headers=mechanic_headers).json() == []
    assert client.get("/foh-tasks/assigned-by-me", headers=foh_headers).json() == []


def test_only_assignee_or_front_desk_moves_a_task(client, db, foh_headers, mechanic_headers):
    other = auth_headers(make_user(db, "ander@bikeshop.nl"))
    task_id = _task(client, foh_headers).json()["id"]
    body = {"status": "in_behandeling"}
    assert client.patch(f"/foh-tasks/{task_id}/status", json=body, headers=other).status_code == 403
    assert client.patch(f"/foh-tasks/{task_id}/status", json=body, headers=foh_headers).status_code == 200
    assert client.put(f"/foh-tasks/{task_id}/notes", json={"notes": "x"}, headers=other).status_code == 403
    assert client.get(f"/foh-tasks/{task_id}", headers=other).status_code == 403
    assert db.query(Log).filter_by(action="TASK_STATUS").count() == 1


def test_assignee_rejects_with_reason(client, foh_headers, mechanic, mechanic_headers):
    task_id = _task(client, foh_headers, assigned_to=mechanic.id).json()["id"]

    assert client.post(f"/foh-tasks/{task_id}/reject", json={"reason": "  "}, headers=mechanic_headers).status_code == 400
    assert client.post(f"/foh-tasks/{task_id}/reject", json={"reason": "Geen tijd"}, headers=foh_headers).status_code == 403

    res = client.post(f"/foh-tasks/{task_id}/reject", json={"reason": "Geen tijd"}, headers=mechanic_headers)
    assert res.status_code == 200
    assert res.json()["rejection_reason"] == "Geen tijd"
    assert res.json()["rejected_at"] is not None
    assert client.get("/foh-tasks/open-count", headers=mechanic_headers).json() == {"count": 0}

    # Handing it to someone else clears the refusal
    res = client.put(f"/foh-tasks/{task_id}", json={"assigned_to": None}, headers=foh_headers)
    assert res.json()["rejected_at"] is None


def test_edit_notes_and_delete(client, foh_headers, mechanic, mechanic_headers):
    task_id = _task(client, foh_headers, assigned_to=mechanic.id).json()["id"]
    res = client.put(f"/foh-tasks/{task_id}", json={"title": "Nieuwe titel", "deadline": "2026-11-01"}, headers=foh_headers)
    assert res.json()["title"] == "Nieuwe titel"
    assert res.json()["deadline"] == "2026-11-01"
    assert client.put(f"/foh-tasks/{task_id}", json={"title": "x"}, headers=mechanic_headers).status_code == 403

    res = client.put(f"/foh-tasks/{task_id}/notes", json={"notes": " Onderdeel besteld "}, headers=mechanic_headers)
    assert res.json()["notes"] == "Onderdeel besteld"

    assert client.delete(f"/foh-tasks/{task_id}", headers=mechanic_headers).status_code == 403
    assert client.delete(f"/foh-tasks/{task_id}", headers=foh_headers).status_code == 200
    assert client.get(f"/foh-tasks/{task_id}", headers=foh_headers).status_code == 404


def test_unknown_assignee_or_bike(client, foh_headers):
    assert _task(client, foh_headers, assigned_to=999).status_code == 404
    assert _task(client, foh_headers, bike_id=999).status_code == 404

from datetime import date

from conftest import make_user, auth_headers


def test_create_and_list_own(client, mechanic_headers):
    res = client.post("/availability", json={"date": "2025-03-10", "start_time": "08:30", "end_time": "16:00"}, headers=mechanic_headers)
    assert res.status_code == 201
    assert res.json()["status"] == "pending"
    assert res.json()["user_name"] == "Mark Monteur"
    assert len(client.get("/availability", headers=mechanic_headers).json()) == 1


def test_date_taken_is_400(client, mechanic_headers):
    body = {"date": "2025-03-10"}
    client.post("/availability", json=body, headers=mechanic_headers)
    res = client.post("/availability", json=body, headers=mechanic_headers)
    assert res.status_code == 400


def test_end_must_follow_start(client, mechanic_headers):
    res = client.post("/availability", json={"date": "2025-03-10", "start_time": "17:00", "end_time": "09:00"}, headers=mechanic_headers)
    assert res.status_code == 422


def test_bulk_create(client, mechanic_headers):
    res = client.post("/availability/bulk", json={"dates": ["2025-03-11", "2025-03-10", "2025-03-11"]}, headers=mechanic_headers)
    assert res.status_code == 201
    assert [r["date"] for r in res.json()] == ["2025-03-10", "2025-03-11"]


def test_review_and_edit_resets_to_pending(client, db, mechanic_headers, admin_headers, admin):
    row = client.post("/availability", json={"date": "2025-03-10"}, headers=mechanic_headers).json()

    res = client.post(f"/admin/availability/{row['id']}/decision", json={"status": "approved"}, headers=admin_headers)
    assert res.json()["status"] == "approved"
    assert res.json()["approved_by"] == admin.id

    res = client.put(f"/availability/{row['id']}", json={"start_time": "10:00", "end_time": "14:00"}, headers=mechanic_headers)
    assert res.json()["status"] == "pending"
    assert res.json()["approved_by"] is None


def test_cannot_touch_someone_elses_entry(client, db, mechanic_headers):
    row = client.post("/availability", json={"date": "2025-03-10"}, headers=mechanic_headers).json()
    other = auth_headers(make_user(db, "ander@bikeshop.nl"))
    assert client.delete(f"/availability/{row['id']}", headers=other).status_code == 403


def test_review_needs_permission(client, db, mechanic_headers):
    assert client.get("/admin/availability", headers=mechanic_headers).status_code == 403
    planner = make_user(db, "planner@bikeshop.nl", permissions=["availability"])
    client.post("/availability", json={"date": "2025-03-12"}, headers=mechanic_headers)
    rows = client.get("/admin/availability", params={"status": "pending"}, headers=auth_headers(planner)).json()
    assert [r["date"] for r in rows] == ["2025-03-12"]

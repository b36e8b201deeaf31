from conftest import make_user, auth_headers


def test_crud_and_toggles(client, admin_headers):
    res = client.post("/announcements", json={"message": "Vrijdag borrel"}, headers=admin_headers)
    assert res.status_code == 201
    ann = res.json()
    assert ann["background_color"] == "blue-cyan"
    assert ann["is_active"] is True

    res = client.post(f"/announcements/{ann['id']}/toggle-fullscreen", headers=admin_headers)
    assert res.json()["is_fullscreen"] is True

    board = client.get("/tv/board").json()
    assert board["fullscreen_announcement"]["message"] == "Vrijdag borrel"

    res = client.post(f"/announcements/{ann['id']}/toggle-active", headers=admin_headers)
    assert res.json()["is_active"] is False
    assert client.get("/tv/board").json()["announcements"] == []

    assert client.delete(f"/announcements/{ann['id']}", headers=admin_headers).status_code == 200
    assert client.get("/announcements", headers=admin_headers).json() == []


def test_expired_announcement_not_active(client, admin_headers):
    client.post("/announcements", json={"message": "Oud", "expires_at": "2000-01-01T00:00:00Z"}, headers=admin_headers)
    assert client.get("/announcements/active", headers=admin_headers).json() == []


def test_managing_needs_permission(client, db, mechanic_headers):
    assert client.post("/announcements", json={"message": "x"}, headers=mechanic_headers).status_code == 403
    tv = make_user(db, "tv@bikeshop.nl", permissions=["tv_announcements"])
    assert client.post("/announcements", json={"message": "x"}, headers=auth_headers(tv)).status_code == 201


def test_call_statuses(client, db, foh_headers, admin_headers):
    assert client.post("/call-statuses", json={"name": "Gebeld", "name_en": "Called"}, headers=foh_headers).status_code == 403

    row = client.post("/call-statuses", json={"name": "Gebeld", "name_en": "Called"}, headers=admin_headers).json()
    assert client.post(f"/call-statuses/{row['id']}/toggle", headers=admin_headers).json()["is_active"] is False
    assert client.get("/call-statuses", headers=foh_headers).json() == []
    assert len(client.get("/call-statuses", params={"include_inactive": True}, headers=foh_headers).json()) == 1

from models.log import Log
from models.users import User

from conftest import PASSWORD, make_user, auth_headers


def _register(client, email="nieuw@bikeshop.nl"):
    return client.post("/register", json={
        "email": email, "password": "welkom123", "full_name": "Nieuwe Monteur",
    })


def test_register_creates_locked_monteur(client, db):
    res = _register(client)
    assert res.status_code == 201
    body = res.json()
    assert body["role"] == "monteur"
    assert body["is_approved"] is False
    assert body["is_active"] is False

    # Not approved yet
    res = client.post("/login", json={"email": "nieuw@bikeshop.nl", "password": "welkom123"})
    assert res.status_code == 403


def test_duplicate_email_is_rejected(client, db):
    _register(client, "Dubbel@BikeShop.nl")
    res = _register(client, "dubbel@bikeshop.nl")
    assert res.status_code == 400
    assert db.query(Log).filter_by(action="REGISTER", status="FAIL").count() == 1


def test_login_and_me(client, mechanic):
    res = client.post("/login", json={"email": mechanic.email, "password": PASSWORD})
    assert res.status_code == 200
    token = res.json()["access_token"]

    me = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == mechanic.email
    assert me.json()["role"] == "monteur"
    assert me.json()["permissions"] == []


def test_admin_sees_every_permission(client, admin_headers):
    perms = client.get("/me", headers=admin_headers).json()["permissions"]
    assert "pricelist" in perms and "availability" in perms


def test_bad_credentials(client, mechanic):
    res = client.post("/login", json={"email": mechanic.email, "password": "fout"})
    assert res.status_code == 401


def test_missing_or_bad_token_is_401(client):
    assert client.get("/me").status_code == 401
    res = client.get("/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.headers["www-authenticate"] == "Bearer"


def test_deactivated_account_is_403(client, db):
    user = make_user(db, "oud@bikeshop.nl")
    headers = auth_headers(user)
    user.is_active = False
    db.commit()
    assert client.get("/me", headers=headers).status_code == 403


def test_update_profile(client, mechanic_headers):
    res = client.patch("/me", json={"job_function": "Senior monteur"}, headers=mechanic_headers)
    assert res.status_code == 200
    assert res.json()["job_function"] == "Senior monteur"


# ---- admin account management ----

def test_admin_approves_registration(client, db, admin_headers):
    user_id = _register(client).json()["id"]

    pending = client.get("/admin/accounts", params={"approved": False}, headers=admin_headers).json()
    assert [u["id"] for u in pending["items"]] == [user_id]

    res = client.post(f"/admin/accounts/{user_id}/approve", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["is_active"] is True

    login = client.post("/login", json={"email": "nieuw@bikeshop.nl", "password": "welkom123"})
    assert login.status_code == 200


def test_admin_rejects_registration(client, db, admin_headers):
    user_id = _register(client).json()["id"]
    res = client.post(f"/admin/accounts/{user_id}/reject", headers=admin_headers)
    assert res.status_code == 200
    db.expire_all()
    assert db.query(User).filter_by(id=user_id).first() is None


def test_account_list_is_admin_only(client, mechanic_headers):
    assert client.get("/admin/accounts", headers=mechanic_headers).status_code == 403


def test_role_change_rules(client, admin, admin_headers, mechanic):
    res = client.put(f"/admin/accounts/{mechanic.id}/role", json={"role": "foh"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["role"] == "foh"

    # Admin needs the promotion password flow
    res = client.put(f"/admin/accounts/{mechanic.id}/role", json={"role": "admin"}, headers=admin_headers)
    assert res.status_code == 403

    res = client.put(f"/admin/accounts/{admin.id}/role", json={"role": "monteur"}, headers=admin_headers)
    assert res.status_code == 400


def test_grant_and_revoke_permission(client, admin_headers, mechanic, mechanic_headers):
    res = client.put(
        f"/admin/accounts/{mechanic.id}/permissions",
        json={"permission": "pricelist", "granted": True},
        headers=admin_headers,
    )
    assert res.json()["permissions"] == ["pricelist"]
    assert client.get("/me", headers=mechanic_headers).json()["permissions"] == ["pricelist"]

    res = client.put(
        f"/admin/accounts/{mechanic.id}/permissions",
        json={"permission": "pricelist", "granted": False},
        headers=admin_headers,
    )
    assert res.json()["permissions"] == []


def test_login_logs(client, admin_headers, mechanic):
    client.post("/login", json={"email": mechanic.email, "password": PASSWORD})
    client.post("/login", json={"email": mechanic.email, "password": "fout"})
    rows = client.get("/admin/login-logs", headers=admin_headers).json()
    assert len(rows) == 1
    assert rows[0]["full_name"] == "Mark Monteur"


def test_audit_log_listing(client, admin_headers, mechanic_headers, mechanic):
    client.post("/login", json={"email": mechanic.email, "password": PASSWORD})
    page = client.get("/logs", params={"action": "LOGIN"}, headers=admin_headers).json()
    assert page["total"] == 1
    assert page["items"][0]["full_name"] == "Mark Monteur"
    assert client.get("/logs/actions", headers=admin_headers).json() == ["LOGIN"]
    assert client.get("/logs", params={"status": "fail"}, headers=admin_headers).json()["total"] == 0
    assert client.get("/logs", headers=mechanic_headers).status_code == 403


def test_promotion_password_setting(client, admin_headers):
    state = client.get("/admin/settings/promotion-password", headers=admin_headers).json()
    assert state["configured"] is False

    res = client.put("/admin/settings/promotion-password", json={"password": "nieuw-wachtwoord"}, headers=admin_headers)
    assert res.status_code == 200
    state = client.get("/admin/settings/promotion-password", headers=admin_headers).json()
    assert state == {"configured": True, "hashed": True, "source": "settings"}


def test_personal_overview_starts_empty(client, mechanic_headers):
    res = client.get("/me/overview", headers=mechanic_headers)
    assert res.json() == {"completed_repairs": 0, "total_points": 0, "diagnoses": 0, "bikes_in_progress": 0}


def test_staff_listing_shows_limited_profiles(client, db, mechanic, foh, mechanic_headers):
    make_user(db, "wacht@bikeshop.nl", approved=False)
    staff = client.get("/staff", headers=mechanic_headers).json()
    assert [s["full_name"] for s in staff] == ["Fleur Balie", "Mark Monteur"]
    assert "email" not in staff[0]

    mechanics = client.get("/staff", params={"role": "monteur"}, headers=mechanic_headers).json()
    assert [s["id"] for s in mechanics] == [mechanic.id]
    assert client.get("/staff").status_code == 401

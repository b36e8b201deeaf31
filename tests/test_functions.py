from config import settings
from models.log import AdminPromotionLog, Log
from models.settings import AdminSetting, PROMOTION_PASSWORD_KEY
from models.users import User, UserRole
from utils.hashing import get_password_hash, verify_password

from conftest import make_user


def _role(db, user_id):
    db.expire_all()
    rows = db.query(UserRole).filter(UserRole.user_id == user_id).all()
    return [r.role.value for r in rows]


# ---- promote-to-admin ----

def test_self_promotion_with_correct_password(client, db, mechanic, mechanic_headers, promotion_password):
    res = client.post("/functions/promote-to-admin", json={"password": promotion_password}, headers=mechanic_headers)
    assert res.status_code == 200
    assert res.json()["success"] is True
    assert _role(db, mechanic.id) == ["admin"]

    logs = db.query(AdminPromotionLog).all()
    assert [(l.user_id, l.target_user_id, l.success) for l in logs] == [(mechanic.id, mechanic.id, True)]


def test_self_promotion_is_idempotent(client, db, mechanic, mechanic_headers, promotion_password):
    client.post("/functions/promote-to-admin", json={"password": promotion_password}, headers=mechanic_headers)
    res = client.post("/functions/promote-to-admin", json={"password": promotion_password}, headers=mechanic_headers)
    assert res.status_code == 200
    assert "already" in res.json()["message"]
    assert _role(db, mechanic.id) == ["admin"]


def test_wrong_password_then_lockout(client, db, mechanic, mechanic_headers, promotion_password):
    remaining = []
    for _ in range(5):
        res = client.post("/functions/promote-to-admin", json={"password": "nope"}, headers=mechanic_headers)
        assert res.status_code == 403
        remaining.append(res.json()["remainingAttempts"])
    assert remaining == [4, 3, 2, 1, 0]

    # Locked out: even the right password is refused
    res = client.post("/functions/promote-to-admin", json={"password": promotion_password}, headers=mechanic_headers)
    assert res.status_code == 429
    assert res.json() == {"error": "Too many attempts. Please try again later.", "remainingAttempts": 0}
    assert _role(db, mechanic.id) == ["monteur"]

    # Every attempt, including the refused one, is on record
    assert db.query(AdminPromotionLog).filter_by(success=False).count() == 6


def test_success_resets_attempts(client, db, mechanic, mechanic_headers, promotion_password):
    for _ in range(4):
        client.post("/functions/promote-to-admin", json={"password": "nope"}, headers=mechanic_headers)
    res = client.post("/functions/promote-to-admin", json={"password": promotion_password}, headers=mechanic_headers)
    assert res.status_code == 200
    # A fresh budget after success
    res = client.post("/functions/promote-to-admin", json={"password": "nope"}, headers=mechanic_headers)
    assert res.json()["remainingAttempts"] == 4


def test_verify_unknown_target(client, admin_headers, promotion_password):
    res = client.post(
        "/functions/verify-admin-password",
        json={"password": promotion_password, "targetUserId": 9999},
        headers=admin_headers,
    )
    assert res.status_code == 404
    assert res.json()["valid"] is False


def test_missing_password_is_400(client, mechanic_headers, promotion_password):
    res = client.post("/functions/promote-to-admin", json={}, headers=mechanic_headers)
    assert res.status_code == 400
    assert "error" in res.json()


def test_unconfigured_secret_is_500(client, mechanic_headers, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_PROMOTION_PASSWORD", None)
    res = client.post("/functions/promote-to-admin", json={"password": "x"}, headers=mechanic_headers)
    assert res.status_code == 500


def test_promotion_requires_auth(client):
    assert client.post("/functions/promote-to-admin", json={"password": "x"}).status_code == 401


def test_stored_bcrypt_setting_wins_over_environment(client, db, admin, mechanic, mechanic_headers, promotion_password):
    db.add(AdminSetting(setting_key=PROMOTION_PASSWORD_KEY, setting_value=get_password_hash("from-settings"), updated_by=admin.id))
    db.commit()

    res = client.post("/functions/promote-to-admin", json={"password": promotion_password}, headers=mechanic_headers)
    assert res.status_code == 403
    res = client.post("/functions/promote-to-admin", json={"password": "from-settings"}, headers=mechanic_headers)
    assert res.status_code == 200


# ---- verify-admin-password ----

def test_admin_promotes_other_user(client, db, admin, admin_headers, mechanic, promotion_password):
    res = client.post(
        "/functions/verify-admin-password",
        json={"password": promotion_password, "targetUserId": mechanic.id},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["valid"] is True
    assert _role(db, mechanic.id) == ["admin"]
    assert db.query(Log).filter_by(action="ROLE_CHANGE").count() == 1


def test_verify_wrong_password(client, admin_headers, mechanic, promotion_password):
    res = client.post(
        "/functions/verify-admin-password",
        json={"password": "wrong", "targetUserId": mechanic.id},
        headers=admin_headers,
    )
    assert res.status_code == 403
    assert res.json()["valid"] is False
    assert res.json()["remainingAttempts"] == 4


def test_verify_requires_admin(client, foh, foh_headers, mechanic, promotion_password):
    res = client.post(
        "/functions/verify-admin-password",
        json={"password": promotion_password, "targetUserId": mechanic.id},
        headers=foh_headers,
    )
    assert res.status_code == 403


# ---- hash-password ----

def test_hash_password_only_for_super_admin(client, admin, admin_headers, monkeypatch):
    monkeypatch.setattr(settings, "SUPER_ADMIN_ID", None)
    assert client.post("/functions/hash-password", json={"password": "abc"}, headers=admin_headers).status_code == 403

    monkeypatch.setattr(settings, "SUPER_ADMIN_ID", admin.id)
    res = client.post("/functions/hash-password", json={"password": "abc"}, headers=admin_headers)
    assert res.status_code == 200
    assert verify_password("abc", res.json()["hash"])


# ---- delete-user ----

def test_delete_user_is_idempotent(client, db, admin_headers):
    victim = make_user(db, "weg@bikeshop.nl")
    victim_id = victim.id

    res = client.post("/functions/delete-user", json={"userId": victim_id}, headers=admin_headers)
    assert res.status_code == 200 and res.json() == {"success": True}
    db.expire_all()
    assert db.query(User).filter_by(id=victim_id).first() is None
    assert db.query(UserRole).filter_by(user_id=victim_id).first() is None

    res = client.post("/functions/delete-user", json={"userId": victim_id}, headers=admin_headers)
    assert res.status_code == 200


def test_admin_cannot_delete_self(client, admin, admin_headers):
    res = client.post("/functions/delete-user", json={"userId": admin.id}, headers=admin_headers)
    assert res.status_code == 400


def test_delete_user_requires_admin(client, db, mechanic_headers):
    other = make_user(db, "ander@bikeshop.nl")
    res = client.post("/functions/delete-user", json={"userId": other.id}, headers=mechanic_headers)
    assert res.status_code == 403
    assert "error" in res.json()

import os

# Shared in-memory database for the whole test session; set before the app is imported
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from config import settings
from database import Base, engine, SessionLocal
from main import app
from models.users import User, UserRole, UserPermission, AppRole, FeaturePermission
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

PASSWORD = "secret123"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def promotion_password(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_PROMOTION_PASSWORD", "letmein-please")
    return "letmein-please"


def make_user(db, email, role=AppRole.MONTEUR, *, full_name=None, approved=True, permissions=(), date_of_birth=None):
    user = User(
        email=email,
        password_hash=PASSWORD_HASH,
        full_name=full_name or email.split("@")[0].title(),
        is_active=approved,
        is_approved=approved,
        date_of_birth=date_of_birth,
    )
    user.role_row = UserRole(role=role)
    user.permission_rows = [UserPermission(permission=FeaturePermission(p)) for p in permissions]
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(db):
    return make_user(db, "admin@bikeshop.nl", AppRole.ADMIN, full_name="Anna Admin")


@pytest.fixture
def mechanic(db):
    return make_user(db, "monteur@bikeshop.nl", AppRole.MONTEUR, full_name="Mark Monteur")


@pytest.fixture
def foh(db):
    return make_user(db, "balie@bikeshop.nl", AppRole.FOH, full_name="Fleur Balie")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def mechanic_headers(mechanic):
    return auth_headers(mechanic)


@pytest.fixture
def foh_headers(foh):
    return auth_headers(foh)

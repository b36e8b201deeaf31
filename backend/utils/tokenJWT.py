# utils/tokenJWT.py
from dataclasses import dataclass, field
from jose import jwt, JWTError
from datetime import timedelta
from typing import FrozenSet, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User, AppRole, FeaturePermission
from utils.clock import utcnow

# Authorization scheme; missing headers are reported as 401 below
bearer_scheme = HTTPBearer(auto_error=False)

ALL_PERMISSIONS = frozenset(p.value for p in FeaturePermission)


# Generate a new JWT access token
def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# Retrieve the currently authenticated user based on the JWT token
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or not credentials.credentials:
        raise credentials_exception
    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            raise credentials_exception
        user_id = int(subject)
    except (JWTError, ValueError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is not active")
    return user


@dataclass(frozen=True)
class AuthContext:
    """Who is calling and what they may do, resolved once per request."""
    user: User
    role: str
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.role == AppRole.ADMIN.value

    def has_permission(self, permission) -> bool:
        value = permission.value if isinstance(permission, FeaturePermission) else permission
        return self.is_admin or value in self.permissions


def build_auth_context(user: User) -> AuthContext:
    role = user.role
    # Admins implicitly hold every permission
    permissions = ALL_PERMISSIONS if role == AppRole.ADMIN.value else frozenset(user.permissions)
    return AuthContext(user=user, role=role, permissions=permissions)


def get_auth_context(current_user: User = Depends(get_current_user)) -> AuthContext:
    return build_auth_context(current_user)


# Dependency factory for Role-Based Access Control
def role_required(*allowed_roles):
    allowed = {r.value if isinstance(r, AppRole) else r for r in allowed_roles}

    def _checker(ctx: AuthContext = Depends(get_auth_context)):
        if allowed and ctx.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden"
            )
        return ctx
    return _checker


# Dependency factory for feature permissions (admins always pass)
def permission_required(permission: FeaturePermission):
    def _checker(ctx: AuthContext = Depends(get_auth_context)):
        if not ctx.has_permission(permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission.value}"
            )
        return ctx
    return _checker

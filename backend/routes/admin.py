# backend/routes/admin.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from typing import List, Optional, Literal
from sqlalchemy import or_
from sqlalchemy.orm import Session
from pydantic import BaseModel
from datetime import datetime

from database import get_db
from models.log import Log, AdminPromotionLog
from models.settings import AdminSetting, PROMOTION_PASSWORD_KEY
from models.users import User, UserRole, UserPermission, AppRole
from routes.auth import user_to_out
from schemas.functions import PromotionPasswordUpdate
from schemas.user import RoleUpdate, PermissionUpdate, ActiveUpdate, UserResponse, PaginatedUsersResponse
from utils.accounts import remove_account
from utils.audit import write_log
from utils.hashing import get_password_hash, is_bcrypt_hash
from utils.promotion import assign_role, resolve_promotion_secret
from utils.tokenJWT import role_required, AuthContext

router = APIRouter(prefix="/admin", tags=["Admin"])

admin_only = role_required(AppRole.ADMIN)


class LoginLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    full_name: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    ts: datetime


class PromotionLogResponse(BaseModel):
    id: int
    user_id: int
    target_user_id: Optional[int] = None
    success: bool
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PromotionPasswordState(BaseModel):
    configured: bool
    hashed: bool
    source: Optional[Literal["settings", "environment"]] = None


def _get_account(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# Retrieve accounts with filtering, sorting, and pagination (Admin only)
@router.get("/accounts", response_model=PaginatedUsersResponse)
def list_accounts(
    q: Optional[str] = Query(None, description="Search by name or e-mail"),
    role: Optional[AppRole] = Query(None, description="Filter by role"),
    approved: Optional[bool] = Query(None, description="Filter by approval state"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: Literal["id", "email", "full_name", "created_at"] = "full_name",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    query = db.query(User)

    if q:
        like = f"%{q.lower()}%"
        query = query.filter(or_(User.email.ilike(like), User.full_name.ilike(like)))

    if role:
        query = query.outerjoin(UserRole, UserRole.user_id == User.id)
        if role == AppRole.MONTEUR:
            # Accounts without a role row count as monteur
            query = query.filter(or_(UserRole.role == role, UserRole.id.is_(None)))
        else:
            query = query.filter(UserRole.role == role)

    if approved is not None:
        query = query.filter(User.is_approved.is_(approved))

    sort_map = {
        "id": User.id,
        "email": User.email,
        "full_name": User.full_name,
        "created_at": User.created_at,
    }
    col = sort_map.get(sort_by, User.full_name)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": [user_to_out(u) for u in users],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.post("/accounts/{user_id}/approve", response_model=UserResponse)
def approve_account(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    user = _get_account(db, user_id)
    user.is_approved = True
    user.is_active = True
    db.commit()
    db.refresh(user)
    write_log(db, user_id=ctx.user_id, action="ACCOUNT_APPROVE", resource="accounts",
              request=request, meta={"target_user_id": user.id})
    return user_to_out(user)


# Rejecting removes the account so the e-mail can register again
@router.post("/accounts/{user_id}/reject")
def reject_account(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    user = _get_account(db, user_id)
    if user.is_approved:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Account is already approved")
    email = user.email
    remove_account(db, user_id)
    write_log(db, user_id=ctx.user_id, action="ACCOUNT_REJECT", resource="accounts",
              request=request, meta={"target_user_id": user_id, "email": email})
    return {"message": f"Account {email} has been rejected"}


@router.put("/accounts/{user_id}/active", response_model=UserResponse)
def set_account_active(
    user_id: int,
    payload: ActiveUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    if user_id == ctx.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate your own account")
    user = _get_account(db, user_id)
    user.is_active = payload.is_active
    db.commit()
    db.refresh(user)
    write_log(db, user_id=ctx.user_id, action="ACCOUNT_ACTIVE", resource="accounts",
              request=request, meta={"target_user_id": user.id, "is_active": user.is_active})
    return user_to_out(user)


# Change role to monteur or foh; admin requires /functions/verify-admin-password
@router.put("/accounts/{user_id}/role")
def update_role(
    user_id: int,
    new_role: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    if user_id == ctx.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")
    if new_role.role == AppRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Promotion to admin requires password verification",
        )

    user = _get_account(db, user_id)
    assign_role(db, user.id, new_role.role)
    db.refresh(user)
    write_log(db, user_id=ctx.user_id, action="ROLE_CHANGE", resource="accounts",
              request=request, meta={"target_user_id": user.id, "role": user.role})

    return {"message": f"User {user.email} role updated to {user.role}", "id": user.id, "role": user.role}


@router.put("/accounts/{user_id}/permissions", response_model=UserResponse)
def update_permission(
    user_id: int,
    payload: PermissionUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    user = _get_account(db, user_id)
    existing = (
        db.query(UserPermission)
        .filter(UserPermission.user_id == user.id, UserPermission.permission == payload.permission)
        .first()
    )
    if payload.granted and existing is None:
        db.add(UserPermission(user_id=user.id, permission=payload.permission, granted_by=ctx.user_id))
    elif not payload.granted and existing is not None:
        db.delete(existing)
    db.commit()
    db.refresh(user)
    write_log(db, user_id=ctx.user_id, action="PERMISSION_CHANGE", resource="accounts", request=request,
              meta={"target_user_id": user.id, "permission": payload.permission.value, "granted": payload.granted})
    return user_to_out(user)


# Most recent sign-ins, taken from the audit log
@router.get("/login-logs", response_model=List[LoginLogResponse])
def login_logs(
    user_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    query = db.query(Log).filter(Log.action == "LOGIN", Log.status == "SUCCESS")
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    rows = query.order_by(Log.ts.desc(), Log.id.desc()).limit(limit).all()
    return [
        LoginLogResponse(
            id=r.id, user_id=r.user_id, full_name=r.user.full_name if r.user else None,
            ip=r.ip, user_agent=r.user_agent, ts=r.ts,
        )
        for r in rows
    ]


@router.get("/promotion-logs", response_model=List[PromotionLogResponse])
def promotion_logs(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    return (
        db.query(AdminPromotionLog)
        .order_by(AdminPromotionLog.created_at.desc(), AdminPromotionLog.id.desc())
        .limit(limit)
        .all()
    )


@router.get("/settings/promotion-password", response_model=PromotionPasswordState)
def promotion_password_state(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    setting = db.query(AdminSetting).filter(AdminSetting.setting_key == PROMOTION_PASSWORD_KEY).first()
    secret = resolve_promotion_secret(db)
    if not secret:
        return {"configured": False, "hashed": False, "source": None}
    return {
        "configured": True,
        "hashed": is_bcrypt_hash(secret),
        "source": "settings" if setting and setting.setting_value else "environment",
    }


# Store a new promotion password, always bcrypt-hashed
@router.put("/settings/promotion-password", response_model=PromotionPasswordState)
def set_promotion_password(
    payload: PromotionPasswordUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    hashed = get_password_hash(payload.password)
    setting = db.query(AdminSetting).filter(AdminSetting.setting_key == PROMOTION_PASSWORD_KEY).first()
    if setting is None:
        db.add(AdminSetting(setting_key=PROMOTION_PASSWORD_KEY, setting_value=hashed, updated_by=ctx.user_id))
    else:
        setting.setting_value = hashed
        setting.updated_by = ctx.user_id
    db.commit()
    write_log(db, user_id=ctx.user_id, action="SETTINGS_UPDATE", resource="admin_settings",
              request=request, meta={"key": PROMOTION_PASSWORD_KEY})
    return {"configured": True, "hashed": True, "source": "settings"}

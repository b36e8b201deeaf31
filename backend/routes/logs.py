# backend/routes/logs.py
from datetime import date, datetime, time, timedelta
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from models.log import Log
from models.users import AppRole
from utils.tokenJWT import role_required, AuthContext

router = APIRouter(prefix="/logs", tags=["Audit log"])

admin_only = role_required(AppRole.ADMIN)


class AuditEntry(BaseModel):
    id: int
    ts: datetime
    user_id: Optional[int] = None
    full_name: Optional[str] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    meta: Optional[Any] = None


class AuditPage(BaseModel):
    items: List[AuditEntry]
    total: int
    page: int
    page_size: int


def _entry(row: Log) -> AuditEntry:
    return AuditEntry(
        id=row.id,
        ts=row.ts,
        user_id=row.user_id,
        full_name=row.user.full_name if row.user else None,
        action=row.action,
        resource=row.resource,
        status=row.status,
        ip=row.ip,
        user_agent=row.user_agent,
        meta=row.meta,
    )


@router.get("", response_model=AuditPage)
def list_audit_entries(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Substring of the action, e.g. WORKFLOW"),
    user_id: Optional[int] = None,
    resource: Optional[str] = None,
    status: Optional[str] = Query(None, description="SUCCESS or FAIL"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = Query(None, description="Inclusive"),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    query = db.query(Log)
    if action:
        query = query.filter(Log.action.ilike(f"%{action}%"))
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    if resource:
        query = query.filter(Log.resource == resource)
    if status:
        query = query.filter(Log.status == status.upper())
    if date_from:
        query = query.filter(Log.ts >= datetime.combine(date_from, time.min))
    if date_to:
        query = query.filter(Log.ts < datetime.combine(date_to + timedelta(days=1), time.min))

    total = query.count()
    rows = (
        query.order_by(Log.ts.desc(), Log.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return AuditPage(items=[_entry(r) for r in rows], total=total, page=page, page_size=page_size)


# Distinct action names, for the filter dropdown
@router.get("/actions", response_model=List[str])
def list_actions(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    return [a for (a,) in db.query(Log.action).distinct().order_by(Log.action).all() if a]

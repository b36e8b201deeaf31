# backend/routes/call_statuses.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db
from models.bike import Bike, TableCallStatus
from models.users import FeaturePermission
from schemas.bike import CallStatusCreate, CallStatusResponse
from utils.state_observer import publish_change
from utils.tokenJWT import get_auth_context, permission_required, AuthContext

router = APIRouter(prefix="/call-statuses", tags=["Call statuses"])

can_manage = permission_required(FeaturePermission.CALL_STATUS)


def _get_or_404(db: Session, status_id: int) -> TableCallStatus:
    row = db.query(TableCallStatus).filter(TableCallStatus.id == status_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Call status not found")
    return row


@router.get("", response_model=List[CallStatusResponse])
def list_call_statuses(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    query = db.query(TableCallStatus)
    if not include_inactive:
        query = query.filter(TableCallStatus.is_active.is_(True))
    return query.order_by(TableCallStatus.sort_order, TableCallStatus.id).all()


@router.post("", response_model=CallStatusResponse, status_code=201)
def create_call_status(
    payload: CallStatusCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    row = TableCallStatus(**payload.model_dump(), is_active=True)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.put("/{status_id}", response_model=CallStatusResponse)
def update_call_status(
    status_id: int,
    payload: CallStatusCreate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    row = _get_or_404(db, status_id)
    for key, value in payload.model_dump().items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    publish_change(request, "table_call_statuses")
    return row


@router.post("/{status_id}/toggle", response_model=CallStatusResponse)
def toggle_call_status(
    status_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    row = _get_or_404(db, status_id)
    row.is_active = not row.is_active
    db.commit()
    db.refresh(row)
    publish_change(request, "table_call_statuses")
    return row


# Bikes that carried this status fall back to none
@router.delete("/{status_id}")
def delete_call_status(
    status_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    row = _get_or_404(db, status_id)
    db.query(Bike).filter(Bike.call_status_id == status_id).update(
        {Bike.call_status_id: None}, synchronize_session=False
    )
    db.delete(row)
    db.commit()
    publish_change(request, "table_call_statuses")
    return {"message": "Call status deleted"}

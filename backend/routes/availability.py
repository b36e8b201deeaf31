# backend/routes/availability.py
import datetime as dt
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from models.availability import Availability, AvailabilityStatus
from models.users import FeaturePermission
from schemas import availability as schemas
from utils.audit import write_log
from utils.clock import utcnow
from utils.tokenJWT import get_auth_context, permission_required, AuthContext

router = APIRouter(tags=["Availability"])

can_review = permission_required(FeaturePermission.AVAILABILITY)


def _to_out(row: Availability) -> schemas.AvailabilityResponse:
    out = schemas.AvailabilityResponse.model_validate(row)
    out.user_name = row.user.full_name if row.user else None
    return out


def _get_or_404(db: Session, availability_id: int) -> Availability:
    row = db.query(Availability).filter(Availability.id == availability_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Availability not found")
    return row


# One entry per mechanic per date
def _ensure_date_free(db: Session, user_id: int, day: dt.date, exclude_id: Optional[int] = None) -> None:
    query = db.query(Availability.id).filter(Availability.user_id == user_id, Availability.date == day)
    if exclude_id is not None:
        query = query.filter(Availability.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=400, detail=f"Availability for {day.isoformat()} already exists")


# =========================
# OWN AVAILABILITY
# =========================
@router.get("/availability", response_model=List[schemas.AvailabilityResponse])
def list_own(
    date_from: Optional[dt.date] = Query(None),
    date_to: Optional[dt.date] = Query(None),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    query = db.query(Availability).filter(Availability.user_id == ctx.user_id)
    if date_from:
        query = query.filter(Availability.date >= date_from)
    if date_to:
        query = query.filter(Availability.date <= date_to)
    return [_to_out(r) for r in query.order_by(Availability.date).all()]


@router.post("/availability", response_model=schemas.AvailabilityResponse, status_code=201)
def create_own(
    payload: schemas.AvailabilityCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    _ensure_date_free(db, ctx.user_id, payload.date)
    row = Availability(
        user_id=ctx.user_id,
        date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        notes=payload.notes,
        status=AvailabilityStatus.PENDING,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return _to_out(row)


# Same times for several dates; all of them must still be free
@router.post("/availability/bulk", response_model=List[schemas.AvailabilityResponse], status_code=201)
def create_own_bulk(
    payload: schemas.AvailabilityBulkCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    days = sorted(set(payload.dates))
    for day in days:
        _ensure_date_free(db, ctx.user_id, day)
    rows = [
        Availability(
            user_id=ctx.user_id, date=day, start_time=payload.start_time, end_time=payload.end_time,
            notes=payload.notes, status=AvailabilityStatus.PENDING,
        )
        for day in days
    ]
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    return [_to_out(r) for r in rows]


# Any change sends the entry back for review
@router.put("/availability/{availability_id}", response_model=schemas.AvailabilityResponse)
def update_own(
    availability_id: int,
    payload: schemas.AvailabilityUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    row = _get_or_404(db, availability_id)
    if row.user_id != ctx.user_id:
        raise HTTPException(status_code=403, detail="Forbidden")

    if payload.date is not None and payload.date != row.date:
        _ensure_date_free(db, ctx.user_id, payload.date, exclude_id=row.id)
        row.date = payload.date
    row.start_time = payload.start_time
    row.end_time = payload.end_time
    row.notes = payload.notes
    row.status = AvailabilityStatus.PENDING
    row.approved_by = None
    row.approved_at = None
    db.commit()
    db.refresh(row)
    return _to_out(row)


@router.delete("/availability/{availability_id}")
def delete_own(
    availability_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    row = _get_or_404(db, availability_id)
    if row.user_id != ctx.user_id:
        raise HTTPException(status_code=403, detail="Forbidden")
    db.delete(row)
    db.commit()
    return {"message": "Availability deleted"}


# =========================
# REVIEW (admin / availability permission)
# =========================
@router.get("/admin/availability", response_model=List[schemas.AvailabilityResponse])
def list_all(
    user_id: Optional[int] = Query(None),
    status: Optional[AvailabilityStatus] = Query(None),
    date_from: Optional[dt.date] = Query(None),
    date_to: Optional[dt.date] = Query(None),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_review),
):
    query = db.query(Availability)
    if user_id is not None:
        query = query.filter(Availability.user_id == user_id)
    if status:
        query = query.filter(Availability.status == status)
    if date_from:
        query = query.filter(Availability.date >= date_from)
    if date_to:
        query = query.filter(Availability.date <= date_to)
    return [_to_out(r) for r in query.order_by(Availability.date, Availability.start_time).all()]


@router.post("/admin/availability/{availability_id}/decision", response_model=schemas.AvailabilityResponse)
def decide(
    availability_id: int,
    payload: schemas.AvailabilityDecision,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_review),
):
    row = _get_or_404(db, availability_id)
    row.status = AvailabilityStatus(payload.status)
    row.approved_by = ctx.user_id
    row.approved_at = utcnow()
    db.commit()
    db.refresh(row)
    write_log(db, user_id=ctx.user_id, action="AVAILABILITY_REVIEW", resource="availability", request=request,
              meta={"availability_id": row.id, "status": row.status.value})
    return _to_out(row)


# Reviewers may adjust times and notes without resetting the decision
@router.put("/admin/availability/{availability_id}", response_model=schemas.AvailabilityResponse)
def edit_any(
    availability_id: int,
    payload: schemas.AvailabilityUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_review),
):
    row = _get_or_404(db, availability_id)
    if payload.date is not None and payload.date != row.date:
        _ensure_date_free(db, row.user_id, payload.date, exclude_id=row.id)
        row.date = payload.date
    row.start_time = payload.start_time
    row.end_time = payload.end_time
    row.notes = payload.notes
    db.commit()
    db.refresh(row)
    return _to_out(row)

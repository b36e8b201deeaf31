# backend/routes/announcements.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db
from models.announcement import TVAnnouncement
from models.users import FeaturePermission
from schemas.announcement import AnnouncementCreate, AnnouncementUpdate, AnnouncementResponse
from utils.state_observer import publish_change
from utils.clock import as_naive_utc
from utils.table_board import active_announcements
from utils.tokenJWT import get_auth_context, permission_required, AuthContext

router = APIRouter(prefix="/announcements", tags=["Announcements"])

can_manage = permission_required(FeaturePermission.TV_ANNOUNCEMENTS)


def _get_or_404(db: Session, announcement_id: int) -> TVAnnouncement:
    row = db.query(TVAnnouncement).filter(TVAnnouncement.id == announcement_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Announcement not found")
    return row


@router.get("", response_model=List[AnnouncementResponse])
def list_announcements(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    return db.query(TVAnnouncement).order_by(TVAnnouncement.created_at.desc(), TVAnnouncement.id.desc()).all()


# What the TV is showing right now
@router.get("/active")
def list_active(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return active_announcements(db)


@router.post("", response_model=AnnouncementResponse, status_code=201)
def create_announcement(
    payload: AnnouncementCreate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    data = payload.model_dump()
    data["expires_at"] = as_naive_utc(data["expires_at"])
    row = TVAnnouncement(**data, is_active=True, created_by=ctx.user_id)
    db.add(row)
    db.commit()
    db.refresh(row)
    publish_change(request, "tv_announcements")
    return row


@router.put("/{announcement_id}", response_model=AnnouncementResponse)
def update_announcement(
    announcement_id: int,
    payload: AnnouncementUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    row = _get_or_404(db, announcement_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(row, key, as_naive_utc(value) if key == "expires_at" else value)
    db.commit()
    db.refresh(row)
    publish_change(request, "tv_announcements")
    return row


@router.post("/{announcement_id}/toggle-active", response_model=AnnouncementResponse)
def toggle_active(
    announcement_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    row = _get_or_404(db, announcement_id)
    row.is_active = not row.is_active
    db.commit()
    db.refresh(row)
    publish_change(request, "tv_announcements")
    return row


@router.post("/{announcement_id}/toggle-fullscreen", response_model=AnnouncementResponse)
def toggle_fullscreen(
    announcement_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    row = _get_or_404(db, announcement_id)
    row.is_fullscreen = not row.is_fullscreen
    db.commit()
    db.refresh(row)
    publish_change(request, "tv_announcements")
    return row


@router.delete("/{announcement_id}")
def delete_announcement(
    announcement_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    row = _get_or_404(db, announcement_id)
    db.delete(row)
    db.commit()
    publish_change(request, "tv_announcements")
    return {"message": "Announcement deleted"}

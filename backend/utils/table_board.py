# backend/utils/table_board.py
"""Snapshot of the workshop floor for the TV display and the FOH table grid."""
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy import or_, extract
from sqlalchemy.orm import Session

from models.announcement import TVAnnouncement
from models.bike import Bike, BikeWorkflowStatus
from models.repair import WorkRegistration, RepairType
from models.users import User
from utils import workflow
from utils.clock import utcnow, to_local

NUMBERED_TABLES = [str(i) for i in range(1, 22)]
LETTER_TABLES = ["A", "B", "C", "D", "E", "F"]
ALL_TABLES = NUMBERED_TABLES + LETTER_TABLES

LONG_STAY_DAYS = 5

DEFAULT_BACKGROUND = "blue-cyan"
DEFAULT_TEXT_COLOR = "white"
DEFAULT_ICON = "📢"


def days_on_table(opened_at: datetime, now: datetime) -> int:
    """Calendar days a bike has been on its table; the intake day is day 1.

    Both timestamps must be in the same (local) frame. Only the dates count,
    so a bike taken in at 23:00 is on day 2 two hours later.
    """
    return max((now.date() - opened_at.date()).days + 1, 1)


def _mechanic_names(db: Session, ids) -> Dict[int, str]:
    ids = {i for i in ids if i is not None}
    if not ids:
        return {}
    rows = db.query(User.id, User.full_name).filter(User.id.in_(ids)).all()
    return {row.id: row.full_name for row in rows}


def build_table_board(db: Session, now: Optional[datetime] = None) -> List[dict]:
    now = now or utcnow()
    local_now = to_local(now)

    bikes = (
        db.query(Bike)
        .filter(Bike.table_number.isnot(None), Bike.workflow_status != BikeWorkflowStatus.AFGEROND)
        .all()
    )
    bike_ids = [b.id for b in bikes]

    registrations = []
    if bike_ids:
        registrations = (
            db.query(WorkRegistration, RepairType.name)
            .join(RepairType, WorkRegistration.repair_type_id == RepairType.id)
            .join(Bike, WorkRegistration.bike_id == Bike.id)
            .filter(WorkRegistration.bike_id.in_(bike_ids), WorkRegistration.visit == Bike.visit)
            .order_by(WorkRegistration.id)
            .all()
        )

    # One lookup for current mechanics and everyone who completed a repair
    names = _mechanic_names(
        db,
        [b.current_mechanic_id for b in bikes]
        + [reg.mechanic_id for reg, _ in registrations if reg.completed],
    )

    repairs_by_bike: Dict[int, List[dict]] = defaultdict(list)
    for reg, repair_name in registrations:
        repairs_by_bike[reg.bike_id].append({
            "id": reg.id,
            "name": repair_name,
            "completed": reg.completed,
            "mechanic_name": names.get(reg.mechanic_id) if reg.completed and reg.mechanic_id else None,
        })

    bikes_by_table: Dict[str, dict] = {}
    for bike in bikes:
        started = bike.opened_at or bike.created_at
        days = days_on_table(to_local(started), local_now) if started else 1
        status = bike.workflow_status
        bikes_by_table[bike.table_number] = {
            "id": bike.id,
            "frame_number": bike.frame_number,
            "model": bike.model.value,
            "workflow_status": status.value,
            "status_label": workflow.label(status),
            "status_color": workflow.color(status),
            "current_mechanic_id": bike.current_mechanic_id,
            "mechanic_name": names.get(bike.current_mechanic_id),
            "created_at": bike.created_at,
            "opened_at": bike.opened_at,
            "updated_at": bike.updated_at,
            "days_on_table": days,
            "is_long_stay": days >= LONG_STAY_DAYS,
            "repairs": repairs_by_bike.get(bike.id, []),
        }

    return [{"table_number": table, "bike": bikes_by_table.get(table)} for table in ALL_TABLES]


def status_counts(tables: List[dict]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for slot in tables:
        if slot["bike"]:
            status = slot["bike"]["workflow_status"]
            counts[status] = counts.get(status, 0) + 1
    return counts


def active_announcements(db: Session, now: Optional[datetime] = None) -> List[dict]:
    now = now or utcnow()
    rows = (
        db.query(TVAnnouncement)
        .filter(TVAnnouncement.is_active.is_(True))
        .filter(or_(TVAnnouncement.expires_at.is_(None), TVAnnouncement.expires_at > now))
        .order_by(TVAnnouncement.created_at.desc(), TVAnnouncement.id.desc())
        .all()
    )
    return [
        {
            "id": a.id,
            "message": a.message,
            "background_color": a.background_color or DEFAULT_BACKGROUND,
            "text_color": a.text_color or DEFAULT_TEXT_COLOR,
            "icon": a.icon or DEFAULT_ICON,
            "is_fullscreen": bool(a.is_fullscreen),
            "expires_at": a.expires_at,
        }
        for a in rows
    ]


def todays_birthdays(db: Session, today: date) -> List[dict]:
    rows = (
        db.query(User.id, User.full_name)
        .filter(User.is_active.is_(True), User.date_of_birth.isnot(None))
        .filter(extract("month", User.date_of_birth) == today.month)
        .filter(extract("day", User.date_of_birth) == today.day)
        .order_by(User.full_name)
        .all()
    )
    return [{"id": r.id, "full_name": r.full_name} for r in rows]


def build_tv_snapshot(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    tables = build_table_board(db, now)
    announcements = active_announcements(db, now)
    return {
        "generated_at": now,
        "tables": tables,
        "status_counts": status_counts(tables),
        "announcements": announcements,
        "fullscreen_announcement": next((a for a in announcements if a["is_fullscreen"]), None),
        "birthdays": todays_birthdays(db, to_local(now).date()),
    }

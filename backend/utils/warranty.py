# backend/utils/warranty.py
"""Warranty overview: repairs that had to be done again on the same bike.

A completed repair counts as a warranty case when the same repair type was
completed on the same bike before, and the most recent earlier completion is
at most WARRANTY_WINDOW_DAYS old at that point. The case is booked on the
mechanic who did the repeat.
"""
from collections import defaultdict
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from models.repair import WorkRegistration
from utils.clock import utcnow

WARRANTY_WINDOW_DAYS = 180
# Period value the overview uses for "all time"
ALL_TIME_DAYS = 9999


def period_start(days: int, now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    if days >= ALL_TIME_DAYS:
        return now - timedelta(days=3650)
    return now - timedelta(days=days)


def find_cases(registrations: List[WorkRegistration], since: datetime) -> list:
    """Warranty cases among completed registrations finished on or after `since`.

    `registrations` must hold the full completion history of every bike
    involved, including completions before `since`.
    """
    history = defaultdict(list)
    for reg in registrations:
        if reg.completed and reg.completed_at is not None:
            history[(reg.bike_id, reg.repair_type_id)].append(reg)

    cases = []
    for regs in history.values():
        regs.sort(key=lambda r: (r.completed_at, r.id))
        for previous, reg in zip(regs, regs[1:]):
            if reg.completed_at < since or previous.completed_at >= reg.completed_at:
                continue
            days_diff = (reg.completed_at - previous.completed_at).days
            if days_diff > WARRANTY_WINDOW_DAYS:
                continue
            bike = reg.bike
            cases.append({
                "registration_id": reg.id,
                "bike_id": reg.bike_id,
                "frame_number": bike.frame_number if bike else "Onbekend",
                "model": bike.model.value if bike else "Onbekend",
                "repair_type_id": reg.repair_type_id,
                "repair_name": reg.repair_type.name if reg.repair_type else "Onbekend",
                "mechanic_id": reg.mechanic_id,
                "mechanic_name": reg.mechanic.full_name if reg.mechanic else None,
                "completed_at": reg.completed_at,
                "original_completed_at": previous.completed_at,
                "days_since_original": days_diff,
            })

    cases.sort(key=lambda c: c["completed_at"], reverse=True)
    return cases


def summarize(cases: list) -> dict:
    per_mechanic = {}
    per_repair = defaultdict(int)
    for case in cases:
        entry = per_mechanic.setdefault(case["mechanic_id"], {
            "mechanic_id": case["mechanic_id"],
            "mechanic_name": case["mechanic_name"],
            "total": 0,
            "repairs": defaultdict(int),
        })
        entry["total"] += 1
        entry["repairs"][case["repair_name"]] += 1
        per_repair[case["repair_name"]] += 1

    by_mechanic = sorted(per_mechanic.values(), key=lambda m: m["total"], reverse=True)
    for entry in by_mechanic:
        entry["repairs"] = dict(sorted(entry["repairs"].items(), key=lambda kv: kv[1], reverse=True))
    by_repair_type = [
        {"repair_name": name, "count": count}
        for name, count in sorted(per_repair.items(), key=lambda kv: kv[1], reverse=True)
    ]
    return {"by_mechanic": by_mechanic, "by_repair_type": by_repair_type}


def warranty_overview(db: Session, days: int = 30, mechanic_id: Optional[int] = None) -> dict:
    since = period_start(days)
    bike_ids = [
        row[0]
        for row in db.query(WorkRegistration.bike_id)
        .filter(WorkRegistration.completed.is_(True), WorkRegistration.completed_at >= since)
        .distinct()
        .all()
    ]
    history = []
    if bike_ids:
        history = (
            db.query(WorkRegistration)
            .options(
                joinedload(WorkRegistration.bike),
                joinedload(WorkRegistration.repair_type),
                joinedload(WorkRegistration.mechanic),
            )
            .filter(WorkRegistration.bike_id.in_(bike_ids), WorkRegistration.completed.is_(True))
            .all()
        )

    cases = find_cases(history, since)
    if mechanic_id is not None:
        cases = [c for c in cases if c["mechanic_id"] == mechanic_id]

    return {
        "days": days,
        "window_days": WARRANTY_WINDOW_DAYS,
        "total": len(cases),
        "cases": cases,
        **summarize(cases),
    }

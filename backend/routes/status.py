# backend/routes/status.py
from typing import Literal
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.bike import Bike
from schemas.bike import CustomerStatusResponse
from utils import workflow

router = APIRouter(tags=["Status"])

Lang = Literal["nl", "en"]


@router.get("/workflow/steps")
def workflow_steps(lang: Lang = Query("nl")):
    return workflow.all_steps(lang)


# Public lookup for customers; exposes no phone numbers or staff names
@router.get("/status/{frame_number}", response_model=CustomerStatusResponse)
def customer_status(
    frame_number: str,
    lang: Lang = Query("nl"),
    db: Session = Depends(get_db),
):
    term = frame_number.strip().upper()
    bike = (
        db.query(Bike)
        .filter(func.upper(Bike.frame_number) == term)
        .order_by(Bike.id.desc())
        .first()
    ) if term else None
    if not bike:
        raise HTTPException(status_code=404, detail="No bike found with this frame number")

    info = workflow.describe(bike.workflow_status, lang)
    return CustomerStatusResponse(
        frame_number=bike.frame_number,
        model=bike.model,
        workflow_status=bike.workflow_status,
        label=info["label"],
        description=info["description"],
        icon=info["icon"],
        progress=info["progress"],
        table_number=bike.table_number,
        created_at=bike.created_at,
        updated_at=bike.updated_at,
        steps=workflow.all_steps(lang),
    )

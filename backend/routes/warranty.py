# backend/routes/warranty.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.users import FeaturePermission
from schemas.warranty import WarrantyOverview
from utils.tokenJWT import permission_required, AuthContext
from utils.warranty import warranty_overview

router = APIRouter(prefix="/warranty", tags=["Warranty"])


# Repeat repairs within the warranty window, with per mechanic and per repair counts
@router.get("", response_model=WarrantyOverview)
def get_warranty_overview(
    days: int = Query(30, ge=1, le=9999, description="Look back period; 9999 means all time"),
    mechanic_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(permission_required(FeaturePermission.WARRANTY)),
):
    return warranty_overview(db, days=days, mechanic_id=mechanic_id)

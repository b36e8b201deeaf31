# backend/routes/pricelist.py
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.bike import BikeModel
from models.inventory import InventoryItem
from models.repair import RepairType, RepairTypeModel, WorkRegistration
from models.users import FeaturePermission
from schemas import repair as schemas
from utils.audit import write_log
from utils.state_observer import publish_change
from utils.tokenJWT import get_auth_context, permission_required, AuthContext

router = APIRouter(prefix="/repair-types", tags=["Price list"])

can_edit = permission_required(FeaturePermission.PRICELIST)


def _get_or_404(db: Session, repair_type_id: int) -> RepairType:
    rt = db.query(RepairType).filter(RepairType.id == repair_type_id).first()
    if not rt:
        raise HTTPException(status_code=404, detail="Repair type not found")
    return rt


# Existing rows are kept so the (repair type, model) unique key is never hit twice
def _set_models(rt: RepairType, models: List[BikeModel]) -> None:
    wanted = [m.value for m in dict.fromkeys(models)]
    keep = [row for row in rt.model_rows if row.model in wanted]
    have = {row.model for row in keep}
    rt.model_rows = keep + [RepairTypeModel(model=m) for m in wanted if m not in have]


@router.get("", response_model=List[schemas.RepairTypeResponse])
def list_repair_types(
    model: Optional[BikeModel] = Query(None, description="Only repairs that apply to this model"),
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    query = db.query(RepairType)
    if model:
        # No model rows means the repair applies to every model
        query = query.filter(or_(
            ~RepairType.model_rows.any(),
            RepairType.model_rows.any(RepairTypeModel.model == model.value),
        ))
    if q:
        query = query.filter(RepairType.name.ilike(f"%{q}%"))
    return query.order_by(RepairType.name).all()


@router.get("/{repair_type_id}", response_model=schemas.RepairTypeResponse)
def get_repair_type(
    repair_type_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return _get_or_404(db, repair_type_id)


@router.post("", response_model=schemas.RepairTypeResponse, status_code=201)
def create_repair_type(
    payload: schemas.RepairTypeCreate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_edit),
):
    rt = RepairType(
        name=payload.name.strip(),
        description=payload.description,
        price=payload.price,
        points=payload.points,
    )
    _set_models(rt, payload.models)
    rt.inventory = InventoryItem()
    db.add(rt)
    db.commit()
    db.refresh(rt)
    write_log(db, user_id=ctx.user_id, action="PRICELIST_CREATE", resource="repair_types",
              request=request, meta={"repair_type_id": rt.id, "name": rt.name})
    publish_change(request, "repair_types")
    return rt


@router.put("/{repair_type_id}", response_model=schemas.RepairTypeResponse)
def update_repair_type(
    repair_type_id: int,
    payload: schemas.RepairTypeUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_edit),
):
    rt = _get_or_404(db, repair_type_id)
    data = payload.model_dump(exclude_unset=True)

    # The model list is replaced as a whole
    if "models" in data:
        _set_models(rt, payload.models or [])
        data.pop("models")

    for key, value in data.items():
        if value is not None:
            setattr(rt, key, value.strip() if key == "name" else value)

    db.commit()
    db.refresh(rt)
    write_log(db, user_id=ctx.user_id, action="PRICELIST_UPDATE", resource="repair_types",
              request=request, meta={"repair_type_id": rt.id})
    publish_change(request, "repair_types")
    return rt


@router.delete("/{repair_type_id}")
def delete_repair_type(
    repair_type_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_edit),
):
    rt = _get_or_404(db, repair_type_id)
    name = rt.name
    db.query(WorkRegistration).filter(WorkRegistration.repair_type_id == repair_type_id).delete(
        synchronize_session=False
    )
    db.delete(rt)
    db.commit()
    write_log(db, user_id=ctx.user_id, action="PRICELIST_DELETE", resource="repair_types",
              request=request, meta={"repair_type_id": repair_type_id, "name": name})
    publish_change(request, "repair_types")
    return {"message": f"Repair type {name} deleted"}

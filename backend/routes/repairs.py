# backend/routes/repairs.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.bike import BikeWorkflowStatus
from models.repair import RepairType, WorkRegistration, CompletionChecklistItem, BikeChecklistCompletion
from models.users import AppRole
from routes.bikes import get_bike_or_404, bike_to_out, registration_to_out, change_status
from schemas import repair as schemas
from schemas.bike import BikeResponse, RegistrationOut
from utils.audit import write_log
from utils.clock import utcnow
from utils.state_observer import publish_change
from utils.tokenJWT import get_auth_context, role_required, AuthContext

router = APIRouter(tags=["Repairs"])

admin_only = role_required(AppRole.ADMIN)


def _repair_types(db: Session, ids: List[int]) -> List[RepairType]:
    unique_ids = list(dict.fromkeys(ids))
    found = db.query(RepairType).filter(RepairType.id.in_(unique_ids)).all()
    if len(found) != len(unique_ids):
        missing = sorted(set(unique_ids) - {r.id for r in found})
        raise HTTPException(status_code=404, detail=f"Repair type(s) not found: {missing}")
    return found


def _registration_or_404(db: Session, registration_id: int) -> WorkRegistration:
    reg = db.query(WorkRegistration).filter(WorkRegistration.id == registration_id).first()
    if not reg:
        raise HTTPException(status_code=404, detail="Registration not found")
    return reg


# =========================
# DIAGNOSIS / APPROVAL
# =========================
@router.post("/bikes/{bike_id}/diagnosis", response_model=BikeResponse)
def submit_diagnosis(
    bike_id: int,
    payload: schemas.DiagnosisCreate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    bike = get_bike_or_404(db, bike_id)
    repair_types = _repair_types(db, payload.repair_type_ids)

    already = {r.repair_type_id for r in bike.current_registrations}
    for rt in repair_types:
        if rt.id not in already:
            db.add(WorkRegistration(
                bike_id=bike.id, repair_type_id=rt.id, visit=bike.visit, mechanic_id=ctx.user_id, completed=False,
            ))

    bike.diagnosed_by = ctx.user_id
    bike.diagnosed_at = utcnow()
    bike.current_mechanic_id = None
    change_status(db, bike, BikeWorkflowStatus.WACHT_OP_AKKOORD, ctx, request)
    return bike_to_out(bike)


# Front of house adds a repair the customer asked for
@router.post("/bikes/{bike_id}/registrations", response_model=RegistrationOut, status_code=201)
def add_extra_repair(
    bike_id: int,
    payload: schemas.ExtraRepairCreate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    bike = get_bike_or_404(db, bike_id)
    _repair_types(db, [payload.repair_type_id])

    if any(r.repair_type_id == payload.repair_type_id for r in bike.current_registrations):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Repair is already registered on this bike")

    reg = WorkRegistration(bike_id=bike.id, repair_type_id=payload.repair_type_id, visit=bike.visit, completed=False)
    db.add(reg)
    db.commit()
    db.refresh(reg)
    publish_change(request, "work_registrations")
    return registration_to_out(reg)


# Customer decision: unlisted open repairs are dropped
@router.post("/bikes/{bike_id}/approval", response_model=schemas.ApprovalResult)
def submit_approval(
    bike_id: int,
    payload: schemas.ApprovalSubmit,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    bike = get_bike_or_404(db, bike_id)
    approved_ids = set(payload.approved_ids)
    open_regs = [r for r in bike.current_registrations if not r.completed]

    approved = [r for r in open_regs if r.id in approved_ids]
    rejected = [r for r in open_regs if r.id not in approved_ids]
    total_price = sum(r.repair_type.price for r in approved if r.repair_type)

    for reg in rejected:
        bike.registrations.remove(reg)

    if approved:
        change_status(db, bike, BikeWorkflowStatus.KLAAR_VOOR_REPARATIE, ctx, request)
    else:
        db.commit()
        db.refresh(bike)
        publish_change(request, "work_registrations")

    write_log(db, user_id=ctx.user_id, action="REPAIR_APPROVAL", resource="bikes", request=request,
              meta={"bike_id": bike.id, "approved": len(approved), "rejected": len(rejected)})

    return {
        "approved": len(approved),
        "rejected": len(rejected),
        "total_price": round(total_price, 2),
        "workflow_status": bike.workflow_status.value,
    }


@router.post("/bikes/{bike_id}/start-repair", response_model=BikeResponse)
def start_repair(
    bike_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    bike = get_bike_or_404(db, bike_id)
    bike.current_mechanic_id = ctx.user_id
    change_status(db, bike, BikeWorkflowStatus.IN_REPARATIE, ctx, request)
    return bike_to_out(bike)


# =========================
# REGISTRATIONS
# =========================
@router.patch("/registrations/{registration_id}", response_model=RegistrationOut)
def update_registration(
    registration_id: int,
    payload: schemas.RegistrationUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    reg = _registration_or_404(db, registration_id)
    now = utcnow()
    reg.completed = payload.completed
    # Completing credits the caller
    reg.mechanic_id = ctx.user_id if payload.completed else reg.mechanic_id
    reg.completed_at = now if payload.completed else None
    reg.last_modified_by = ctx.user_id
    reg.last_modified_at = now
    db.commit()
    db.refresh(reg)
    publish_change(request, "work_registrations")
    return registration_to_out(reg)


@router.delete("/registrations/{registration_id}")
def delete_registration(
    registration_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    reg = _registration_or_404(db, registration_id)
    if reg.completed and not ctx.is_admin:
        raise HTTPException(status_code=400, detail="Completed repairs can only be removed by an admin")
    db.delete(reg)
    db.commit()
    publish_change(request, "work_registrations")
    return {"message": "Registration deleted"}


# =========================
# COMPLETION CHECKLIST
# =========================
@router.get("/checklist-items", response_model=List[schemas.ChecklistItemResponse])
def list_checklist_items(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    query = db.query(CompletionChecklistItem)
    if not include_inactive:
        query = query.filter(CompletionChecklistItem.is_active.is_(True))
    return query.order_by(CompletionChecklistItem.sort_order, CompletionChecklistItem.id).all()


@router.post("/checklist-items", response_model=schemas.ChecklistItemResponse, status_code=201)
def create_checklist_item(
    payload: schemas.ChecklistItemCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    item = CompletionChecklistItem(**payload.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@router.put("/checklist-items/{item_id}", response_model=schemas.ChecklistItemResponse)
def update_checklist_item(
    item_id: int,
    payload: schemas.ChecklistItemCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    item = db.query(CompletionChecklistItem).filter(CompletionChecklistItem.id == item_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Checklist item not found")
    for key, value in payload.model_dump().items():
        setattr(item, key, value)
    db.commit()
    db.refresh(item)
    return item


@router.delete("/checklist-items/{item_id}")
def delete_checklist_item(
    item_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    item = db.query(CompletionChecklistItem).filter(CompletionChecklistItem.id == item_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Checklist item not found")
    db.query(BikeChecklistCompletion).filter(
        BikeChecklistCompletion.checklist_item_id == item_id
    ).delete(synchronize_session=False)
    db.delete(item)
    db.commit()
    return {"message": "Checklist item deleted"}


def _checklist_state(db: Session, bike_id: int) -> dict:
    items = (
        db.query(CompletionChecklistItem)
        .filter(CompletionChecklistItem.is_active.is_(True))
        .order_by(CompletionChecklistItem.sort_order, CompletionChecklistItem.id)
        .all()
    )
    done = {
        row.checklist_item_id
        for row in db.query(BikeChecklistCompletion).filter(BikeChecklistCompletion.bike_id == bike_id).all()
    }
    return {
        "bike_id": bike_id,
        "items": items,
        "completed_item_ids": sorted(done),
        "all_completed": all(item.id in done for item in items),
    }


def _active_item_or_404(db: Session, item_id: int) -> CompletionChecklistItem:
    item = (
        db.query(CompletionChecklistItem)
        .filter(CompletionChecklistItem.id == item_id, CompletionChecklistItem.is_active.is_(True))
        .first()
    )
    if not item:
        raise HTTPException(status_code=404, detail="Checklist item not found")
    return item


@router.get("/bikes/{bike_id}/checklist", response_model=schemas.BikeChecklistState)
def get_bike_checklist(
    bike_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    get_bike_or_404(db, bike_id)
    return _checklist_state(db, bike_id)


# Admin shortcut: tick every active item at once
@router.post("/bikes/{bike_id}/checklist/check-all", response_model=schemas.BikeChecklistState)
def check_all(
    bike_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(admin_only),
):
    get_bike_or_404(db, bike_id)
    state = _checklist_state(db, bike_id)
    done = set(state["completed_item_ids"])
    for item in state["items"]:
        if item.id not in done:
            db.add(BikeChecklistCompletion(bike_id=bike_id, checklist_item_id=item.id, completed_by=ctx.user_id))
    db.commit()
    return _checklist_state(db, bike_id)


@router.post("/bikes/{bike_id}/checklist/{item_id}", response_model=schemas.BikeChecklistState)
def tick_checklist_item(
    bike_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    get_bike_or_404(db, bike_id)
    _active_item_or_404(db, item_id)
    exists = (
        db.query(BikeChecklistCompletion)
        .filter(BikeChecklistCompletion.bike_id == bike_id, BikeChecklistCompletion.checklist_item_id == item_id)
        .first()
    )
    if not exists:
        db.add(BikeChecklistCompletion(bike_id=bike_id, checklist_item_id=item_id, completed_by=ctx.user_id))
        db.commit()
    return _checklist_state(db, bike_id)


@router.delete("/bikes/{bike_id}/checklist/{item_id}", response_model=schemas.BikeChecklistState)
def untick_checklist_item(
    bike_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    get_bike_or_404(db, bike_id)
    db.query(BikeChecklistCompletion).filter(
        BikeChecklistCompletion.bike_id == bike_id, BikeChecklistCompletion.checklist_item_id == item_id
    ).delete(synchronize_session=False)
    db.commit()
    return _checklist_state(db, bike_id)


# Finish the bike: checklist complete, open repairs credited to the caller
@router.post("/bikes/{bike_id}/complete", response_model=BikeResponse)
def complete_bike(
    bike_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    bike = get_bike_or_404(db, bike_id)
    if not _checklist_state(db, bike_id)["all_completed"]:
        raise HTTPException(status_code=400, detail="Completion checklist is not finished")

    now = utcnow()
    for reg in bike.current_registrations:
        if not reg.completed:
            reg.completed = True
            reg.completed_at = now
            reg.mechanic_id = ctx.user_id
            reg.last_modified_by = ctx.user_id
            reg.last_modified_at = now

    bike.current_mechanic_id = None
    change_status(db, bike, BikeWorkflowStatus.AFGEROND, ctx, request)
    return bike_to_out(bike)

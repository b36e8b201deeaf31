# backend/routes/bikes.py
import re
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.bike import Bike, BikeComment, BikeCallHistory, TableCallStatus, BikeWorkflowStatus
from models.repair import BikeChecklistCompletion
from models.users import User, AppRole
from schemas import bike as schemas
from utils import workflow
from utils.audit import write_log
from utils.clock import utcnow
from utils.state_observer import publish_change
from utils.tokenJWT import get_auth_context, role_required, AuthContext

router = APIRouter(tags=["Bikes"])

TABLE_QUERY = re.compile(r"^tafel\s*(\w+)$", re.IGNORECASE)


# ---- HELPERS ----
def get_bike_or_404(db: Session, bike_id: int) -> Bike:
    bike = db.query(Bike).filter(Bike.id == bike_id).first()
    if not bike:
        raise HTTPException(status_code=404, detail="Bike not found")
    return bike


def _norm_table(table_number: Optional[str]) -> Optional[str]:
    if table_number is None:
        return None
    t = table_number.strip().upper()
    return t or None


# A table holds at most one bike that is still in the workshop
def ensure_table_free(db: Session, table_number: Optional[str], bike_id: Optional[int] = None) -> None:
    if not table_number:
        return
    query = db.query(Bike.id).filter(
        Bike.table_number == table_number,
        Bike.workflow_status != BikeWorkflowStatus.AFGEROND,
    )
    if bike_id is not None:
        query = query.filter(Bike.id != bike_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Table {table_number} is already occupied")


def start_new_visit(db: Session, bike: Bike) -> None:
    """Reset a completed bike for its next visit.

    Registrations of earlier visits are kept; the quality checklist is
    cleared so the new visit is checked again before completion.
    """
    bike.visit = (bike.visit or 1) + 1
    bike.opened_at = utcnow()
    bike.workflow_status = BikeWorkflowStatus.DIAGNOSE_NODIG
    bike.current_mechanic_id = None
    bike.diagnosed_by = None
    bike.diagnosed_at = None
    bike.call_status_id = None
    db.query(BikeChecklistCompletion).filter(BikeChecklistCompletion.bike_id == bike.id).delete(
        synchronize_session=False
    )


def bike_to_out(bike: Bike, lang: str = "nl") -> schemas.BikeResponse:
    return schemas.BikeResponse(
        id=bike.id,
        frame_number=bike.frame_number,
        model=bike.model,
        workflow_status=bike.workflow_status,
        status_label=workflow.label(bike.workflow_status, lang),
        progress=workflow.progress(bike.workflow_status),
        table_number=bike.table_number,
        is_sales_bike=bool(bike.is_sales_bike),
        customer_phone=bike.customer_phone,
        call_status_id=bike.call_status_id,
        current_mechanic_id=bike.current_mechanic_id,
        diagnosed_by=bike.diagnosed_by,
        diagnosed_at=bike.diagnosed_at,
        visit=bike.visit,
        opened_at=bike.opened_at,
        created_at=bike.created_at,
        updated_at=bike.updated_at,
    )


def registration_to_out(reg) -> schemas.RegistrationOut:
    return schemas.RegistrationOut(
        id=reg.id,
        repair_type_id=reg.repair_type_id,
        repair_name=reg.repair_type.name if reg.repair_type else "",
        price=reg.repair_type.price if reg.repair_type else 0,
        points=reg.repair_type.points if reg.repair_type else 0,
        completed=bool(reg.completed),
        mechanic_id=reg.mechanic_id,
        mechanic_name=reg.mechanic.full_name if reg.mechanic else None,
        completed_at=reg.completed_at,
    )


def comment_to_out(c: BikeComment) -> schemas.CommentOut:
    return schemas.CommentOut(
        id=c.id, content=c.content, created_at=c.created_at,
        author_id=c.author_id, author_name=c.author.full_name if c.author else None,
    )


def call_to_out(c: BikeCallHistory) -> schemas.CallOut:
    return schemas.CallOut(
        id=c.id, called_at=c.called_at, called_by=c.called_by,
        caller_name=c.caller.full_name if c.caller else None, notes=c.notes,
    )


def bike_detail(bike: Bike, lang: str = "nl") -> schemas.BikeDetail:
    base = bike_to_out(bike, lang).model_dump()
    return schemas.BikeDetail(
        **base,
        registrations=[registration_to_out(r) for r in sorted(bike.current_registrations, key=lambda r: r.id)],
        comments=[comment_to_out(c) for c in bike.comments],
        calls=[call_to_out(c) for c in bike.calls],
    )


def change_status(
    db: Session,
    bike: Bike,
    target: BikeWorkflowStatus,
    ctx: AuthContext,
    request: Request,
    force: bool = False,
) -> None:
    """Move the bike along the workflow and record who did it.

    Raises 409 when the move is not in the transition table.
    """
    previous = bike.workflow_status
    try:
        workflow.ensure_transition(previous, target, force=force)
    except workflow.IllegalTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    bike.workflow_status = target
    db.commit()
    db.refresh(bike)
    if previous != target:
        write_log(db, user_id=ctx.user_id, action="WORKFLOW_CHANGE", resource="bikes", request=request,
                  meta={"bike_id": bike.id, "from": previous.value, "to": target.value, "forced": force})
    publish_change(request, "bikes")


# =========================
# INTAKE
# =========================
@router.post("/bikes", response_model=schemas.BikeResponse, status_code=201)
def create_bike(
    payload: schemas.BikeCreate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    table = _norm_table(payload.table_number)

    existing = (
        db.query(Bike)
        .filter(func.upper(Bike.frame_number) == payload.frame_number)
        .order_by(Bike.id.desc())
        .first()
    )
    if existing and existing.workflow_status != BikeWorkflowStatus.AFGEROND:
        raise HTTPException(status_code=409, detail="Bike is already in the workshop")

    ensure_table_free(db, table, existing.id if existing else None)

    if existing:
        # Returning customer: the completed bike is reopened for a new diagnosis
        bike = existing
        start_new_visit(db, bike)
        bike.model = payload.model
        bike.table_number = table
        bike.customer_phone = payload.customer_phone or bike.customer_phone
        bike.is_sales_bike = payload.is_sales_bike
        action = "BIKE_REOPEN"
    else:
        bike = Bike(
            frame_number=payload.frame_number,
            model=payload.model,
            table_number=table,
            customer_phone=payload.customer_phone,
            is_sales_bike=payload.is_sales_bike,
            workflow_status=BikeWorkflowStatus.DIAGNOSE_NODIG,
        )
        db.add(bike)
        action = "BIKE_CREATE"

    # Sales bikes skip diagnosis and approval
    if payload.is_sales_bike:
        bike.workflow_status = BikeWorkflowStatus.IN_REPARATIE
        bike.current_mechanic_id = ctx.user_id

    db.commit()
    db.refresh(bike)
    write_log(db, user_id=ctx.user_id, action=action, resource="bikes", request=request,
              meta={"bike_id": bike.id, "frame_number": bike.frame_number, "table_number": bike.table_number})
    publish_change(request, "bikes")
    return bike_to_out(bike)


# =========================
# LIST / SEARCH
# =========================
@router.get("/bikes", response_model=schemas.BikesPage)
def list_bikes(
    workflow_status: Optional[BikeWorkflowStatus] = Query(None),
    table_number: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Search by frame number"),
    mechanic_id: Optional[int] = Query(None),
    include_completed: bool = Query(False),
    lang: str = Query("nl"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    query = db.query(Bike)

    if workflow_status:
        query = query.filter(Bike.workflow_status == workflow_status)
    elif not include_completed:
        query = query.filter(Bike.workflow_status != BikeWorkflowStatus.AFGEROND)

    if table_number:
        query = query.filter(Bike.table_number == _norm_table(table_number))

    if q:
        query = query.filter(Bike.frame_number.ilike(f"%{q.strip()}%"))

    if mechanic_id is not None:
        query = query.filter(Bike.current_mechanic_id == mechanic_id)

    total = query.count()
    bikes = (
        query.order_by(Bike.updated_at.desc(), Bike.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "items": [bike_to_out(b, lang) for b in bikes],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


# Exact frame number first (completed bikes included), then "tafel X" or a bare table label
@router.get("/bikes/search", response_model=List[schemas.BikeResponse])
def search_bikes(
    frame_number: str = Query(..., min_length=1),
    lang: str = Query("nl"),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    term = frame_number.strip()
    table_match = TABLE_QUERY.match(term)

    if not table_match:
        by_frame = (
            db.query(Bike)
            .filter(func.upper(Bike.frame_number) == term.upper())
            .order_by(Bike.id.desc())
            .all()
        )
        if by_frame:
            return [bike_to_out(b, lang) for b in by_frame]

    table = _norm_table(table_match.group(1) if table_match else term)
    on_table = (
        db.query(Bike)
        .filter(Bike.table_number == table, Bike.workflow_status != BikeWorkflowStatus.AFGEROND)
        .order_by(Bike.id)
        .all()
    )
    return [bike_to_out(b, lang) for b in on_table]


@router.get("/bikes/{bike_id}", response_model=schemas.BikeDetail)
def get_bike(
    bike_id: int,
    lang: str = Query("nl"),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return bike_detail(get_bike_or_404(db, bike_id), lang)


@router.patch("/bikes/{bike_id}", response_model=schemas.BikeResponse)
def update_bike(
    bike_id: int,
    payload: schemas.BikeUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    bike = get_bike_or_404(db, bike_id)
    data = payload.model_dump(exclude_unset=True)

    if "table_number" in data:
        table = _norm_table(data.pop("table_number"))
        # A completed bike only returns to the floor through intake, which opens a new visit
        if table and bike.workflow_status == BikeWorkflowStatus.AFGEROND:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Bike is completed; take it in again to reopen it",
            )
        ensure_table_free(db, table, bike.id)
        bike.table_number = table

    if data.get("call_status_id") is not None:
        if not db.query(TableCallStatus.id).filter(TableCallStatus.id == data["call_status_id"]).first():
            raise HTTPException(status_code=404, detail="Call status not found")

    if data.get("current_mechanic_id") is not None:
        if not db.query(User.id).filter(User.id == data["current_mechanic_id"]).first():
            raise HTTPException(status_code=404, detail="Mechanic not found")

    for key, value in data.items():
        setattr(bike, key, value)

    db.commit()
    db.refresh(bike)
    publish_change(request, "bikes")
    return bike_to_out(bike)


@router.delete("/bikes/{bike_id}")
def delete_bike(
    bike_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(role_required(AppRole.ADMIN)),
):
    bike = get_bike_or_404(db, bike_id)
    frame = bike.frame_number
    db.delete(bike)
    db.commit()
    write_log(db, user_id=ctx.user_id, action="BIKE_DELETE", resource="bikes", request=request,
              meta={"bike_id": bike_id, "frame_number": frame})
    publish_change(request, "bikes")
    return {"message": "Bike deleted"}


# =========================
# WORKFLOW
# =========================
@router.patch("/bikes/{bike_id}/workflow", response_model=schemas.BikeResponse)
def set_workflow_status(
    bike_id: int,
    payload: schemas.WorkflowUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    if payload.force and not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Only admins can force a workflow change")

    bike = get_bike_or_404(db, bike_id)
    # The mechanic working on the bike is whoever puts it in repair
    if payload.workflow_status == BikeWorkflowStatus.IN_REPARATIE:
        bike.current_mechanic_id = ctx.user_id
    elif payload.workflow_status != bike.workflow_status:
        bike.current_mechanic_id = None

    change_status(db, bike, payload.workflow_status, ctx, request, force=payload.force)
    return bike_to_out(bike)


# Mechanic claims the bike for diagnosis
@router.post("/bikes/{bike_id}/start-diagnosis", response_model=schemas.BikeResponse)
def start_diagnosis(
    bike_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    bike = get_bike_or_404(db, bike_id)
    bike.current_mechanic_id = ctx.user_id
    change_status(db, bike, BikeWorkflowStatus.DIAGNOSE_BEZIG, ctx, request)
    return bike_to_out(bike)


# =========================
# COMMENTS
# =========================
@router.get("/bikes/{bike_id}/comments", response_model=List[schemas.CommentOut])
def list_comments(
    bike_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    bike = get_bike_or_404(db, bike_id)
    return [comment_to_out(c) for c in bike.comments]


@router.post("/bikes/{bike_id}/comments", response_model=schemas.CommentOut, status_code=201)
def add_comment(
    bike_id: int,
    payload: schemas.CommentCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    bike = get_bike_or_404(db, bike_id)
    content = payload.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Comment cannot be empty")
    comment = BikeComment(bike_id=bike.id, author_id=ctx.user_id, content=content, created_at=utcnow())
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment_to_out(comment)


# =========================
# CUSTOMER CALLS
# =========================
@router.post("/bikes/{bike_id}/calls", response_model=schemas.CallOut, status_code=201)
def register_call(
    bike_id: int,
    payload: schemas.CallCreate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(role_required(AppRole.FOH, AppRole.ADMIN)),
):
    bike = get_bike_or_404(db, bike_id)
    call = BikeCallHistory(bike_id=bike.id, called_by=ctx.user_id, notes=payload.notes, called_at=utcnow())
    db.add(call)
    db.commit()
    db.refresh(call)
    publish_change(request, "bike_call_history")
    return call_to_out(call)


@router.delete("/calls/{call_id}")
def delete_call(
    call_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(role_required(AppRole.FOH, AppRole.ADMIN)),
):
    call = db.query(BikeCallHistory).filter(BikeCallHistory.id == call_id).first()
    if not call:
        raise HTTPException(status_code=404, detail="Call not found")
    db.delete(call)
    db.commit()
    publish_change(request, "bike_call_history")
    return {"message": "Call deleted"}

# backend/routes/tasks.py
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.bike import Bike
from models.task import FohTask, FohTaskStatus
from models.users import User, AppRole
from schemas import task as schemas
from utils.audit import write_log
from utils.clock import utcnow
from utils.state_observer import publish_change
from utils.tokenJWT import get_auth_context, role_required, AuthContext

router = APIRouter(prefix="/foh-tasks", tags=["FOH tasks"])

front_desk = role_required(AppRole.FOH, AppRole.ADMIN)


# ---- HELPERS ----
def _task_or_404(db: Session, task_id: int) -> FohTask:
    task = db.query(FohTask).filter(FohTask.id == task_id).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _is_front_desk(ctx: AuthContext) -> bool:
    return ctx.is_admin or ctx.role == AppRole.FOH.value


def _check_refs(db: Session, assigned_to: Optional[int], bike_id: Optional[int]) -> None:
    if assigned_to is not None and not db.query(User.id).filter(User.id == assigned_to).first():
        raise HTTPException(status_code=404, detail="User not found")
    if bike_id is not None and not db.query(Bike.id).filter(Bike.id == bike_id).first():
        raise HTTPException(status_code=404, detail="Bike not found")


def task_to_out(task: FohTask) -> schemas.FohTaskResponse:
    out = schemas.FohTaskResponse.model_validate(task)
    out.assigned_to_name = task.assignee.full_name if task.assignee else None
    out.created_by_name = task.creator.full_name if task.creator else None
    out.frame_number = task.bike.frame_number if task.bike else None
    return out


# Open work on someone's plate: assigned, not done, not handed back
def _open_for(db: Session, user_id: int):
    return db.query(FohTask).filter(
        FohTask.assigned_to == user_id,
        FohTask.status != FohTaskStatus.AFGEROND,
        FohTask.rejected_at.is_(None),
    )


# ---- LISTS ----
@router.get("", response_model=List[schemas.FohTaskResponse])
def list_tasks(
    status_filter: Optional[FohTaskStatus] = Query(None, alias="status"),
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(front_desk),
):
    query = db.query(FohTask)
    if status_filter:
        query = query.filter(FohTask.status == status_filter)
    if q:
        like = f"%{q}%"
        query = query.filter(FohTask.title.ilike(like) | FohTask.description.ilike(like))
    return [task_to_out(t) for t in query.order_by(FohTask.task_number).all()]


@router.get("/mine", response_model=List[schemas.FohTaskResponse])
def my_tasks(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return [task_to_out(t) for t in _open_for(db, ctx.user_id).order_by(FohTask.task_number).all()]


# Tasks the caller handed to colleagues that are still running
@router.get("/assigned-by-me", response_model=List[schemas.FohTaskResponse])
def assigned_by_me(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    tasks = (
        db.query(FohTask)
        .filter(
            FohTask.created_by == ctx.user_id,
            FohTask.assigned_to.isnot(None),
            FohTask.assigned_to != ctx.user_id,
            FohTask.status != FohTaskStatus.AFGEROND,
        )
        .order_by(FohTask.task_number)
        .all()
    )
    return [task_to_out(t) for t in tasks]


@router.get("/open-count", response_model=schemas.OpenTaskCount)
def open_count(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return {"count": _open_for(db, ctx.user_id).count()}


# ---- SINGLE TASK ----
@router.post("", response_model=schemas.FohTaskResponse, status_code=201)
def create_task(
    payload: schemas.FohTaskCreate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    _check_refs(db, payload.assigned_to, payload.bike_id)
    next_number = (db.query(func.max(FohTask.task_number)).scalar() or 0) + 1
    task = FohTask(
        task_number=next_number,
        title=payload.title.strip(),
        description=(payload.description or "").strip() or None,
        assigned_to=payload.assigned_to,
        bike_id=payload.bike_id,
        deadline=payload.deadline,
        notes=(payload.notes or "").strip() or None,
        created_by=ctx.user_id,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    write_log(db, user_id=ctx.user_id, action="TASK_CREATE", resource="foh_tasks",
              request=request, meta={"task_id": task.id, "task_number": task.task_number})
    publish_change(request, "foh_tasks")
    return task_to_out(task)


@router.get("/{task_id}", response_model=schemas.FohTaskResponse)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    task = _task_or_404(db, task_id)
    if not (_is_front_desk(ctx) or ctx.user_id in (task.assigned_to, task.created_by)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return task_to_out(task)


@router.put("/{task_id}", response_model=schemas.FohTaskResponse)
def update_task(
    task_id: int,
    payload: schemas.FohTaskUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(front_desk),
):
    task = _task_or_404(db, task_id)
    data = payload.model_dump(exclude_unset=True)
    _check_refs(db, data.get("assigned_to"), data.get("bike_id"))

    # Handing a task to someone new clears an earlier refusal
    if "assigned_to" in data and data["assigned_to"] != task.assigned_to:
        task.rejected_at = None
        task.rejection_reason = None
    for key in ("title", "description", "notes"):
        if isinstance(data.get(key), str):
            data[key] = data[key].strip() or None
    if data.get("title") is None:
        data.pop("title", None)

    for key, value in data.items():
        setattr(task, key, value)
    db.commit()
    db.refresh(task)
    write_log(db, user_id=ctx.user_id, action="TASK_UPDATE", resource="foh_tasks",
              request=request, meta={"task_id": task.id})
    publish_change(request, "foh_tasks")
    return task_to_out(task)


# Front desk moves any task; others only what is assigned to them
@router.patch("/{task_id}/status", response_model=schemas.FohTaskResponse)
def update_status(
    task_id: int,
    payload: schemas.FohTaskStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    task = _task_or_404(db, task_id)
    if not (_is_front_desk(ctx) or task.assigned_to == ctx.user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    before = task.status.value
    task.status = payload.status
    db.commit()
    db.refresh(task)
    write_log(db, user_id=ctx.user_id, action="TASK_STATUS", resource="foh_tasks", request=request,
              meta={"task_id": task.id, "from": before, "to": task.status.value})
    publish_change(request, "foh_tasks")
    return task_to_out(task)


@router.put("/{task_id}/notes", response_model=schemas.FohTaskResponse)
def update_notes(
    task_id: int,
    payload: schemas.FohTaskNotes,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    task = _task_or_404(db, task_id)
    if not (_is_front_desk(ctx) or task.assigned_to == ctx.user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    task.notes = (payload.notes or "").strip() or None
    db.commit()
    db.refresh(task)
    publish_change(request, "foh_tasks")
    return task_to_out(task)


# The assignee hands the task back with a reason
@router.post("/{task_id}/reject", response_model=schemas.FohTaskResponse)
def reject_task(
    task_id: int,
    payload: schemas.FohTaskReject,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    task = _task_or_404(db, task_id)
    if task.assigned_to != ctx.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the assignee can reject a task")
    reason = payload.reason.strip()
    if not reason:
        raise HTTPException(status_code=400, detail="A reason is required")
    task.rejected_at = utcnow()
    task.rejection_reason = reason
    db.commit()
    db.refresh(task)
    write_log(db, user_id=ctx.user_id, action="TASK_REJECT", resource="foh_tasks",
              request=request, meta={"task_id": task.id})
    publish_change(request, "foh_tasks")
    return task_to_out(task)


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(front_desk),
):
    task = _task_or_404(db, task_id)
    number = task.task_number
    db.delete(task)
    db.commit()
    write_log(db, user_id=ctx.user_id, action="TASK_DELETE", resource="foh_tasks",
              request=request, meta={"task_id": task_id, "task_number": number})
    publish_change(request, "foh_tasks")
    return {"message": f"Task #{number} deleted"}

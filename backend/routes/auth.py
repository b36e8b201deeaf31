# backend/routes/auth.py
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Request, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.bike import Bike, BikeWorkflowStatus
from models.repair import WorkRegistration, RepairType
from models.users import User, UserRole, AppRole
from schemas import user as schemas
from utils.audit import write_log
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user, get_auth_context, AuthContext

router = APIRouter(tags=["Auth"])


def user_to_out(user: User) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        permissions=user.permissions,
        is_active=user.is_active,
        is_approved=user.is_approved,
        date_of_birth=user.date_of_birth,
        job_function=user.job_function,
        created_at=user.created_at,
    )


# Register a new account; it stays locked until an admin approves it
@router.post("/register", response_model=schemas.UserResponse, status_code=201)
def register(user: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    normalized_email = user.email.strip().lower()

    db_user = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    if db_user:
        write_log(
            db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
            request=request, meta={"email": normalized_email, "reason": "Email exists"},
        )
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = User(
        email=normalized_email,
        password_hash=get_password_hash(user.password),
        full_name=user.full_name.strip(),
        date_of_birth=user.date_of_birth,
        job_function=user.job_function,
        is_active=False,
        is_approved=False,
    )
    new_user.role_row = UserRole(role=AppRole.MONTEUR)
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth", status="SUCCESS",
              request=request, meta={"email": new_user.email})
    return user_to_out(new_user)


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    db_user = db.query(User).filter(func.lower(User.email) == email).first()

    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", request=request, meta={"email": email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not db_user.is_approved or not db_user.is_active:
        write_log(db, user_id=db_user.id, action="LOGIN", resource="auth", status="FAIL",
                  request=request, meta={"email": email, "reason": "Account not approved"})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is awaiting approval")

    access_token = create_access_token(data={"sub": str(db_user.id), "role": db_user.role})

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", request=request, meta={"email": db_user.email})

    return {"access_token": access_token, "token_type": "bearer"}


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(ctx: AuthContext = Depends(get_auth_context)):
    out = user_to_out(ctx.user)
    out.permissions = sorted(ctx.permissions)
    return out


@router.patch("/me", response_model=schemas.UserResponse)
def update_me(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return user_to_out(current_user)


# Points and counts for the signed-in mechanic
@router.get("/me/overview", response_model=schemas.PersonalOverview)
def personal_overview(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    completed_repairs, total_points = (
        db.query(func.count(WorkRegistration.id), func.coalesce(func.sum(RepairType.points), 0))
        .join(RepairType, WorkRegistration.repair_type_id == RepairType.id)
        .filter(WorkRegistration.mechanic_id == current_user.id, WorkRegistration.completed.is_(True))
        .one()
    )
    diagnoses = db.query(func.count(Bike.id)).filter(Bike.diagnosed_by == current_user.id).scalar()
    in_progress = (
        db.query(func.count(Bike.id))
        .filter(Bike.current_mechanic_id == current_user.id, Bike.workflow_status != BikeWorkflowStatus.AFGEROND)
        .scalar()
    )
    return {
        "completed_repairs": completed_repairs or 0,
        "total_points": int(total_points or 0),
        "diagnoses": diagnoses or 0,
        "bikes_in_progress": in_progress or 0,
    }


# Colleagues for assignee pickers; no contact or contract details
@router.get("/staff", response_model=List[schemas.ProfileLimited])
def list_staff(
    role: Optional[AppRole] = Query(None),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    users = (
        db.query(User)
        .filter(User.is_active.is_(True), User.is_approved.is_(True))
        .order_by(User.full_name)
        .all()
    )
    if role:
        users = [u for u in users if u.role == role.value]
    return [
        schemas.ProfileLimited(id=u.id, full_name=u.full_name, role=u.role, job_function=u.job_function)
        for u in users
    ]

# backend/routes/functions.py
"""Privileged RPC endpoints. They answer with plain JSON contracts
({"error": ...}, {"valid": ...}) rather than FastAPI's {"detail": ...}."""
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User
from schemas.functions import (
    VerifyAdminPasswordRequest, PromoteToAdminRequest, HashPasswordRequest, DeleteUserRequest, OcrRequest,
)
from utils.accounts import remove_account
from utils.audit import write_log
from utils.hashing import get_password_hash
from utils.ocr_client import OcrClient, OcrNotConfigured, OcrGatewayError
from utils.promotion import (
    verify_and_promote, PromotionNotConfigured, SELF_PROMOTION, ROLE_CHANGE_CONFIRMATION,
)
from utils.tokenJWT import get_auth_context, AuthContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions", tags=["Functions"])

TOO_MANY_ATTEMPTS = "Too many attempts. Please try again later."


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def get_ocr_client() -> OcrClient:
    return OcrClient()


# Confirm the promotion password before an admin promotes another account
@router.post("/verify-admin-password")
def verify_admin_password(
    payload: VerifyAdminPasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    if not ctx.is_admin:
        return _error(403, "Only admins can promote users", valid=False)
    if not payload.password or payload.target_user_id is None:
        return _error(400, "Password and target user are required", valid=False)
    if not db.query(User.id).filter(User.id == payload.target_user_id).first():
        return _error(404, "User not found", valid=False)

    try:
        result = verify_and_promote(
            db, caller=ctx.user, target_user_id=payload.target_user_id, password=payload.password,
            purpose=ROLE_CHANGE_CONFIRMATION, request=request,
        )
    except PromotionNotConfigured:
        logger.error("Admin promotion password is not configured")
        return _error(500, "Server configuration error", valid=False)

    if result.outcome == "rate_limited":
        return _error(429, TOO_MANY_ATTEMPTS, valid=False, remainingAttempts=0)
    if result.outcome == "invalid_password":
        return _error(403, "Invalid password", valid=False, remainingAttempts=result.remaining_attempts)
    if result.outcome == "already_admin":
        return {"valid": True, "message": "User is already an admin"}
    return {"valid": True, "message": "User promoted to admin"}


# Self-service promotion with the shared promotion password
@router.post("/promote-to-admin")
def promote_to_admin(
    payload: PromoteToAdminRequest,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    if not payload.password:
        return _error(400, "Password is required")

    try:
        result = verify_and_promote(
            db, caller=ctx.user, target_user_id=ctx.user_id, password=payload.password,
            purpose=SELF_PROMOTION, request=request,
        )
    except PromotionNotConfigured:
        logger.error("Admin promotion password is not configured")
        return _error(500, "Server configuration error")

    if result.outcome == "rate_limited":
        return _error(429, TOO_MANY_ATTEMPTS, remainingAttempts=0)
    if result.outcome == "invalid_password":
        return _error(403, "Invalid password", remainingAttempts=result.remaining_attempts)
    if result.outcome == "already_admin":
        return {"success": True, "message": "You are already an admin"}
    return {"success": True, "message": "You have been promoted to admin"}


# Produce a bcrypt hash to store as the promotion password
@router.post("/hash-password")
def hash_password(
    payload: HashPasswordRequest,
    ctx: AuthContext = Depends(get_auth_context),
):
    if settings.SUPER_ADMIN_ID is None or ctx.user_id != settings.SUPER_ADMIN_ID:
        return _error(403, "Forbidden")
    if not payload.password:
        return _error(400, "Password is required")
    return {"hash": get_password_hash(payload.password)}


@router.post("/delete-user")
def delete_user(
    payload: DeleteUserRequest,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    if not ctx.is_admin:
        return _error(403, "Only admins can delete users")
    if payload.user_id is None:
        return _error(400, "User ID is required")
    if payload.user_id == ctx.user_id:
        return _error(400, "You cannot delete your own account")

    deleted = remove_account(db, payload.user_id)
    if deleted:
        write_log(db, user_id=ctx.user_id, action="ACCOUNT_DELETE", resource="accounts",
                  request=request, meta={"target_user_id": payload.user_id})
        logger.info("User %s deleted account %s", ctx.user_id, payload.user_id)
    return {"success": True}


# Read a frame number off a photo of the bike's label
@router.post("/ocr-frame-number")
async def ocr_frame_number(
    payload: OcrRequest,
    ctx: AuthContext = Depends(get_auth_context),
    client: OcrClient = Depends(get_ocr_client),
):
    if not payload.image_base64:
        return _error(400, "No image provided")
    try:
        return await client.read_frame_number(payload.image_base64)
    except OcrNotConfigured as exc:
        return _error(500, str(exc))
    except OcrGatewayError as exc:
        return _error(exc.status_code, exc.message)

# backend/utils/promotion.py
"""Password-gated promotion of accounts to the admin role."""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from config import settings
from models.settings import AdminSetting, PROMOTION_PASSWORD_KEY
from models.users import User, UserRole, AppRole
from utils.audit import write_log, write_promotion_log
from utils.hashing import verify_shared_secret
from utils.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

SELF_PROMOTION = "admin_promo"
ROLE_CHANGE_CONFIRMATION = "admin_verify"


class PromotionNotConfigured(RuntimeError):
    pass


@dataclass
class PromotionResult:
    outcome: str  # "promoted", "already_admin", "invalid_password", "rate_limited"
    remaining_attempts: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.outcome in ("promoted", "already_admin")


# Stored promotion secret: admin setting first, deployment secret otherwise
def resolve_promotion_secret(db: Session) -> Optional[str]:
    setting = db.query(AdminSetting).filter(AdminSetting.setting_key == PROMOTION_PASSWORD_KEY).first()
    if setting and setting.setting_value:
        return setting.setting_value
    return settings.ADMIN_PROMOTION_PASSWORD or None


def assign_role(db: Session, user_id: int, role: AppRole) -> bool:
    """Give user_id exactly one role row. Returns False when nothing changed."""
    row = db.query(UserRole).filter(UserRole.user_id == user_id).first()
    if row is None:
        db.add(UserRole(user_id=user_id, role=role))
    elif row.role == role:
        return False
    else:
        row.role = role
    db.commit()
    return True


def verify_and_promote(
    db: Session,
    *,
    caller: User,
    target_user_id: int,
    password: str,
    purpose: str,
    limiter: Optional[RateLimiter] = None,
    request: Optional[Request] = None,
) -> PromotionResult:
    limiter = limiter or RateLimiter(db, purpose)

    stored = resolve_promotion_secret(db)
    if not stored:
        raise PromotionNotConfigured("Admin promotion password is not configured")

    decision = limiter.acquire(caller.id)
    if not decision.allowed:
        # Locked out: no comparison, but the attempt is still recorded
        write_promotion_log(db, user_id=caller.id, target_user_id=target_user_id, success=False, request=request)
        return PromotionResult("rate_limited", 0)

    if not verify_shared_secret(password, stored):
        write_promotion_log(db, user_id=caller.id, target_user_id=target_user_id, success=False, request=request)
        logger.info("Rejected admin promotion attempt by user %s (%s)", caller.id, purpose)
        return PromotionResult("invalid_password", decision.remaining_attempts)

    limiter.reset(caller.id)
    write_promotion_log(db, user_id=caller.id, target_user_id=target_user_id, success=True, request=request)

    if not assign_role(db, target_user_id, AppRole.ADMIN):
        return PromotionResult("already_admin")

    write_log(
        db, user_id=caller.id, action="ROLE_CHANGE", resource="accounts", status="SUCCESS", request=request,
        meta={"target_user_id": target_user_id, "role": AppRole.ADMIN.value, "via": purpose},
    )
    logger.info("User %s promoted user %s to admin", caller.id, target_user_id)
    return PromotionResult("promoted")

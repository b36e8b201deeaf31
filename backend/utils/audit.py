from typing import Optional
from fastapi import Request
from sqlalchemy.orm import Session
from models.log import Log, AdminPromotionLog


# Caller address, honouring the proxy headers the hosting platform sets
def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for") or request.headers.get("cf-connecting-ip")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def user_agent(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    ua = request.headers.get("user-agent")
    return ua[:255] if ua else None


def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None, request=None):
    entry = Log(
        user_id=user_id, action=action, resource=resource, status=status,
        ip=ip or client_ip(request), user_agent=user_agent(request), meta=meta or {},
    )
    db.add(entry)
    db.commit()


def write_promotion_log(db: Session, *, user_id, target_user_id, success, request=None):
    entry = AdminPromotionLog(
        user_id=user_id, target_user_id=target_user_id, success=success,
        ip_address=client_ip(request), user_agent=user_agent(request),
    )
    db.add(entry)
    db.commit()

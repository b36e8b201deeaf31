# backend/utils/rate_limit.py
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.rate_limit import RateLimitAttempt
from utils.clock import utcnow

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
RATE_LIMIT_WINDOW = timedelta(hours=1)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining_attempts: int


class RateLimiter:
    """Per-user attempt budget for one privileged action.

    Each attempt is reserved before the guarded check runs, with a single
    conditional UPDATE (or an INSERT guarded by the unique key), so two
    concurrent requests can never both take the last slot. A successful
    check calls reset(); a failed one leaves its reservation counted.
    """

    def __init__(
        self,
        db: Session,
        purpose: str,
        max_attempts: int = MAX_ATTEMPTS,
        window: timedelta = RATE_LIMIT_WINDOW,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.purpose = purpose
        self.max_attempts = max_attempts
        self.window = window
        self.clock = clock

    def key(self, user_id) -> str:
        return f"{self.purpose}:{user_id}"

    def acquire(self, user_id) -> RateLimitDecision:
        key = self.key(user_id)
        # A concurrent first insert can win the unique key; the second pass then updates it
        for _ in range(2):
            now = self.clock()
            window_cutoff = now - self.window

            # Window elapsed: restart it, counting this attempt as the first
            restarted = self.db.execute(
                update(RateLimitAttempt)
                .where(RateLimitAttempt.key == key, RateLimitAttempt.window_start < window_cutoff)
                .values(attempts=1, window_start=now, updated_at=now)
            )
            if restarted.rowcount:
                self.db.commit()
                return RateLimitDecision(True, self.max_attempts - 1)

            # Open window: take a slot only while slots remain
            taken = self.db.execute(
                update(RateLimitAttempt)
                .where(RateLimitAttempt.key == key, RateLimitAttempt.attempts < self.max_attempts)
                .values(attempts=RateLimitAttempt.attempts + 1, updated_at=now)
            )
            if taken.rowcount:
                self.db.commit()
                attempts = self.db.scalar(select(RateLimitAttempt.attempts).where(RateLimitAttempt.key == key))
                return RateLimitDecision(True, max(self.max_attempts - (attempts or 0), 0))

            exists = self.db.scalar(select(RateLimitAttempt.id).where(RateLimitAttempt.key == key))
            if exists is not None:
                self.db.rollback()
                logger.warning("Rate limit exhausted for %s", key)
                return RateLimitDecision(False, 0)

            try:
                self.db.add(RateLimitAttempt(key=key, attempts=1, window_start=now, created_at=now, updated_at=now))
                self.db.commit()
                return RateLimitDecision(True, self.max_attempts - 1)
            except IntegrityError:
                self.db.rollback()
        return RateLimitDecision(False, 0)

    def reset(self, user_id) -> None:
        self.db.execute(delete(RateLimitAttempt).where(RateLimitAttempt.key == self.key(user_id)))
        self.db.commit()

    def attempts(self, user_id) -> int:
        record = self.db.query(RateLimitAttempt).filter(RateLimitAttempt.key == self.key(user_id)).first()
        if record is None or self.clock() > record.window_start + self.window:
            return 0
        return record.attempts

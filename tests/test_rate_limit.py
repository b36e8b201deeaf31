from datetime import datetime, timedelta

from models.rate_limit import RateLimitAttempt
from utils.rate_limit import RateLimiter, MAX_ATTEMPTS


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_five_attempts_then_locked(db):
    limiter = RateLimiter(db, "admin_promo", clock=FakeClock(datetime(2024, 5, 1, 12, 0)))

    remaining = [limiter.acquire(7).remaining_attempts for _ in range(MAX_ATTEMPTS)]
    assert remaining == [4, 3, 2, 1, 0]

    sixth = limiter.acquire(7)
    assert not sixth.allowed
    assert sixth.remaining_attempts == 0
    assert limiter.attempts(7) == MAX_ATTEMPTS


def test_lockout_does_not_increment(db):
    limiter = RateLimiter(db, "admin_promo", clock=FakeClock(datetime(2024, 5, 1, 12, 0)))
    for _ in range(MAX_ATTEMPTS + 3):
        limiter.acquire(7)
    row = db.query(RateLimitAttempt).filter_by(key="admin_promo:7").one()
    assert row.attempts == MAX_ATTEMPTS


def test_window_expiry_restarts_count(db):
    clock = FakeClock(datetime(2024, 5, 1, 12, 0))
    limiter = RateLimiter(db, "admin_verify", clock=clock)
    for _ in range(MAX_ATTEMPTS):
        limiter.acquire(3)
    assert not limiter.acquire(3).allowed

    clock.now += timedelta(hours=1, seconds=1)
    decision = limiter.acquire(3)
    assert decision.allowed
    assert decision.remaining_attempts == MAX_ATTEMPTS - 1


def test_reset_clears_counter(db):
    limiter = RateLimiter(db, "admin_promo", clock=FakeClock(datetime(2024, 5, 1, 12, 0)))
    limiter.acquire(9)
    limiter.acquire(9)
    limiter.reset(9)
    assert limiter.attempts(9) == 0
    assert limiter.acquire(9).remaining_attempts == MAX_ATTEMPTS - 1


def test_keys_are_per_purpose_and_user(db):
    clock = FakeClock(datetime(2024, 5, 1, 12, 0))
    promo = RateLimiter(db, "admin_promo", clock=clock)
    verify = RateLimiter(db, "admin_verify", clock=clock)
    for _ in range(MAX_ATTEMPTS):
        promo.acquire(1)
    assert not promo.acquire(1).allowed
    assert verify.acquire(1).allowed
    assert promo.acquire(2).allowed

"""Login throttling: sliding-window attempt counter and per-account lockout.

The window counts failed attempts for an email OR an IP, so it throttles both
single-account brute force from many IPs and spraying many accounts from one IP.
The lockout lives on the User row and protects one account even when an
attacker spaces attempts out to stay under the window.

Check-then-write pairs here are separate statements with no row locking;
concurrent requests can slip a few extra attempts past either counter.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from revforge.core.clock import as_utc, utcnow
from revforge.core.config import Settings
from revforge.models import LoginAttempt, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a window check."""

    allowed: bool
    reset_at: datetime
    attempts_remaining: int

    def retry_after_seconds(self, now: datetime | None = None) -> int:
        """Whole seconds until reset_at, rounded up and never negative."""
        delta = (self.reset_at - (now or utcnow())).total_seconds()
        return max(0, math.ceil(delta))


def _window_start(settings: Settings, now: datetime) -> datetime:
    return now - timedelta(minutes=settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES)


def _in_window(email: str, ip_address: str, window_start: datetime):
    return (
        or_(LoginAttempt.email == email, LoginAttempt.ip_address == ip_address),
        LoginAttempt.timestamp > window_start,
    )


def check_rate_limit(
    db: Session,
    email: str,
    ip_address: str,
    settings: Settings,
    now: datetime | None = None,
) -> RateLimitResult:
    """Count failed attempts for this email or IP inside the window."""
    now = now or utcnow()
    attempts = (
        db.query(LoginAttempt)
        .filter(*_in_window(email, ip_address, _window_start(settings, now)))
        .count()
    )
    limit = settings.LOGIN_RATE_LIMIT_MAX_ATTEMPTS
    return RateLimitResult(
        allowed=attempts < limit,
        reset_at=now + timedelta(minutes=settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES),
        attempts_remaining=max(0, limit - attempts),
    )


def record_login_attempt(
    db: Session, email: str, ip_address: str, now: datetime | None = None
) -> LoginAttempt:
    """Append a failed attempt row."""
    attempt = LoginAttempt(email=email, ip_address=ip_address, timestamp=now or utcnow())
    db.add(attempt)
    return attempt


def clear_rate_limit(
    db: Session,
    email: str,
    ip_address: str,
    settings: Settings,
    now: datetime | None = None,
) -> int:
    """Delete in-window attempts for this email or IP; returns rows deleted."""
    now = now or utcnow()
    return (
        db.query(LoginAttempt)
        .filter(*_in_window(email, ip_address, _window_start(settings, now)))
        .delete(synchronize_session=False)
    )


def is_locked(user: User, now: datetime | None = None) -> bool:
    locked_until = as_utc(user.locked_until)
    return locked_until is not None and locked_until > (now or utcnow())


def register_failed_login(
    user: User, settings: Settings, now: datetime | None = None
) -> bool:
    """
    Count a wrong password against the account; lock it once the threshold is hit.

    Returns True when this failure locked the account. The counter is not reset
    when a lockout expires, so the next failure after expiry locks again.
    """
    now = now or utcnow()
    user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
    if user.failed_login_attempts >= settings.LOCKOUT_THRESHOLD:
        user.locked_until = now + timedelta(minutes=settings.LOCKOUT_DURATION_MINUTES)
        logger.warning(
            "Account locked after repeated failed logins",
            extra={
                "user_id": user.id,
                "failed_login_attempts": user.failed_login_attempts,
                "locked_minutes": settings.LOCKOUT_DURATION_MINUTES,
            },
        )
        return True
    user.locked_until = None
    return False


def reset_failed_logins(user: User) -> None:
    user.failed_login_attempts = 0
    user.locked_until = None

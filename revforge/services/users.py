"""User store: lookups and credential/token mutations on User rows.

Functions here add or modify rows on the given session but do not commit; the
calling endpoint commits once per request.
"""

import hmac
import re
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from revforge.core.clock import as_utc, utcnow
from revforge.core.config import Settings
from revforge.core.security import generate_opaque_token, hash_password
from revforge.models import User
from revforge.services.rbac import DEFAULT_ROLE, UserRole

RESET_TOKEN_LENGTH = 32
# Matches the users.email and login_attempts.email column width.
EMAIL_MAX_LEN = 255
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return len(email) <= EMAIL_MAX_LEN and EMAIL_PATTERN.match(email) is not None


def get_user_by_email(db: Session, email: str) -> User | None:
    """Any user with this exact email, active or not."""
    return db.query(User).filter(User.email == email).first()


def get_active_user_by_email(db: Session, email: str) -> User | None:
    return (
        db.query(User)
        .filter(User.email == email, User.is_active.is_(True))
        .first()
    )


def get_user_by_id(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def create_user(
    db: Session,
    email: str,
    password: str,
    name: str | None = None,
    role: UserRole = DEFAULT_ROLE,
) -> User:
    """Add a new active user with a freshly hashed password; flushes to assign the id."""
    user = User(
        email=email,
        name=name or None,
        role=role.value,
        password_hash=hash_password(password),
        failed_login_attempts=0,
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


def store_refresh_token(
    user: User, refresh_token: str, settings: Settings, now: datetime | None = None
) -> None:
    """Make refresh_token the single honoured refresh token for this user."""
    now = now or utcnow()
    user.refresh_token = refresh_token
    user.refresh_token_expires_at = now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)


def clear_refresh_token(user: User) -> None:
    user.refresh_token = None
    user.refresh_token_expires_at = None


def refresh_token_matches(user: User, presented: str) -> bool:
    """True only if presented is exactly the refresh token stored for this user."""
    return user.refresh_token is not None and hmac.compare_digest(
        user.refresh_token.encode("utf-8"), presented.encode("utf-8")
    )


def refresh_token_expired(user: User, now: datetime | None = None) -> bool:
    expires_at = as_utc(user.refresh_token_expires_at)
    return expires_at is not None and expires_at < (now or utcnow())


def issue_reset_token(
    user: User, settings: Settings, now: datetime | None = None
) -> str:
    """Generate and store a one-time password reset token; returns the raw token."""
    now = now or utcnow()
    token = generate_opaque_token(RESET_TOKEN_LENGTH)
    user.reset_token = token
    user.reset_token_expires_at = now + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    return token


def find_user_by_reset_token(
    db: Session, token: str, now: datetime | None = None
) -> User | None:
    """Active user holding this unexpired reset token; None for unknown and expired alike."""
    now = now or utcnow()
    return (
        db.query(User)
        .filter(
            User.reset_token == token,
            User.reset_token_expires_at > now,
            User.is_active.is_(True),
        )
        .first()
    )


def reset_password(user: User, new_password: str) -> None:
    """Set a new password and revoke both the reset token and any refresh token."""
    user.password_hash = hash_password(new_password)
    user.reset_token = None
    user.reset_token_expires_at = None
    clear_refresh_token(user)

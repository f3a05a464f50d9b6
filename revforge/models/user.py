"""ORM model for application users (auth, lockout and RBAC)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func

from revforge.core.clock import utcnow
from revforge.models.base import Base, generate_id


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'admin', 'dealer' or 'viewer'. password_hash is "salt:key" hex and may be
    NULL for accounts provisioned outside password login. Only the refresh token
    stored here is honoured by /refresh. Rows are deactivated, never deleted.
    """

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=lambda: generate_id("user"))
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    role = Column(String(32), nullable=False, default="viewer")
    password_hash = Column(String(255), nullable=True)

    refresh_token = Column(Text, nullable=True)
    refresh_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    reset_token = Column(String(64), nullable=True, index=True)
    reset_token_expires_at = Column(DateTime(timezone=True), nullable=True)

    failed_login_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

"""ORM model for failed login attempts (sliding-window rate limit)."""

from sqlalchemy import Column, DateTime, Index, String

from revforge.core.clock import utcnow
from revforge.models.base import Base, generate_id


class LoginAttempt(Base):
    """
    One failed authentication event. Append-only: rows are inserted on failure and
    deleted only when a later login for the same email or IP succeeds.
    """

    __tablename__ = "login_attempts"
    __table_args__ = (
        Index("ix_login_attempts_email_timestamp", "email", "timestamp"),
        Index("ix_login_attempts_ip_address_timestamp", "ip_address", "timestamp"),
    )

    id = Column(String(64), primary_key=True, default=lambda: generate_id("attempt"))
    email = Column(String(255), nullable=False)
    ip_address = Column(String(64), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)

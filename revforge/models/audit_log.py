"""ORM model for the security audit trail."""

from sqlalchemy import JSON, Column, DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB

from revforge.core.clock import utcnow
from revforge.models.base import Base, generate_id


class AuditLog(Base):
    """
    One recorded action (login, logout, account creation, password reset, ...).

    user_id is the acting user when known; it is kept as plain text rather than a
    foreign key so entries outlive the account they describe. details is free-form
    JSON and must never hold passwords or tokens.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_user_id_created_at", "user_id", "created_at"),
        Index("ix_audit_logs_action_created_at", "action", "created_at"),
    )

    id = Column(String(64), primary_key=True, default=lambda: generate_id("audit"))
    user_id = Column(String(64), nullable=True)
    action = Column(String(32), nullable=False)
    resource_type = Column(String(64), nullable=False)
    resource_id = Column(String(64), nullable=True)
    details = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

"""SQLAlchemy ORM models."""

from revforge.models.audit_log import AuditLog
from revforge.models.base import Base
from revforge.models.login_attempt import LoginAttempt
from revforge.models.user import User

__all__ = ["AuditLog", "Base", "LoginAttempt", "User"]

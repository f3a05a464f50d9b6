"""Audit trail: record security-relevant actions and page through them.

log_action adds a row to the caller's session without committing, so the entry
lands in the same transaction as the change it describes.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from revforge.core.clock import as_utc
from revforge.models import AuditLog

USER_AGENT_MAX_LEN = 512
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class AuditAction(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    EXPORT = "export"
    IMPORT = "import"
    APPROVE = "approve"
    REJECT = "reject"
    ASSIGN = "assign"
    UNASSIGN = "unassign"
    API_CALL = "api_call"


@dataclass(frozen=True)
class AuditLogFilters:
    user_id: str | None = None
    action: AuditAction | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


def log_action(
    db: Session,
    action: AuditAction,
    resource_type: str,
    *,
    user_id: str | None = None,
    resource_id: str | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditLog:
    """Add an audit entry to the session; the caller commits."""
    entry = AuditLog(
        user_id=user_id,
        action=action.value,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details,
        ip_address=ip_address,
        user_agent=user_agent[:USER_AGENT_MAX_LEN] if user_agent else None,
    )
    db.add(entry)
    return entry


def clamp_page_size(limit: int) -> int:
    return min(MAX_PAGE_SIZE, max(1, limit))


def list_audit_logs(
    db: Session,
    filters: AuditLogFilters,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[AuditLog], int]:
    """Newest-first page of entries matching filters, plus the total match count."""
    query = db.query(AuditLog)
    if filters.user_id:
        query = query.filter(AuditLog.user_id == filters.user_id)
    if filters.action is not None:
        query = query.filter(AuditLog.action == filters.action.value)
    if filters.date_from is not None:
        query = query.filter(AuditLog.created_at >= as_utc(filters.date_from))
    if filters.date_to is not None:
        query = query.filter(AuditLog.created_at <= as_utc(filters.date_to))

    total = query.count()
    rows = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id)
        .offset((max(1, page) - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total

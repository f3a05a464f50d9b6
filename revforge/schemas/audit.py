"""Pydantic schemas for the audit log listing."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AuditLogEntry(BaseModel):
    """One audit entry as returned to administrators."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None = None
    action: str
    resource_type: str
    resource_id: str | None = None
    details: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class AuditLogListResponse(BaseModel):
    """Response for GET /audit-logs."""

    data: list[AuditLogEntry]
    pagination: Pagination

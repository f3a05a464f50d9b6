"""Admin listing of the audit trail."""

import math
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from revforge.api.auth import require_permission
from revforge.core.database import get_db
from revforge.schemas.audit import AuditLogEntry, AuditLogListResponse, Pagination
from revforge.schemas.auth import CurrentUser, ErrorResponse
from revforge.services import audit

router = APIRouter()


@router.get(
    "",
    response_model=AuditLogListResponse,
    responses={code: {"model": ErrorResponse} for code in (400, 401, 403)},
)
def list_audit_logs(
    _admin: Annotated[CurrentUser, Depends(require_permission("audit-log", "read"))],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query()] = 1,
    limit: Annotated[int, Query()] = audit.DEFAULT_PAGE_SIZE,
    user_id: Annotated[str | None, Query()] = None,
    action: Annotated[audit.AuditAction | None, Query()] = None,
    date_from: Annotated[datetime | None, Query()] = None,
    date_to: Annotated[datetime | None, Query()] = None,
) -> AuditLogListResponse:
    """
    Page through audit entries, newest first.

    page below 1 is treated as 1 and limit is clamped to 1-100. Dates are ISO 8601;
    naive values are read as UTC.
    """
    page = max(1, page)
    limit = audit.clamp_page_size(limit)
    filters = audit.AuditLogFilters(
        user_id=user_id,
        action=action,
        date_from=date_from,
        date_to=date_to,
    )
    rows, total = audit.list_audit_logs(db, filters, page, limit)
    return AuditLogListResponse(
        data=[AuditLogEntry.model_validate(row) for row in rows],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit),
        ),
    )

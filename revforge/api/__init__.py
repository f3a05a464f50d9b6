"""HTTP API routes (mounted under API_PREFIX)."""

from fastapi import APIRouter

from revforge.api import audit_logs, auth, health

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(audit_logs.router, prefix="/audit-logs", tags=["audit-logs"])

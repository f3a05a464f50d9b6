"""Pydantic request/response schemas."""

from revforge.schemas.audit import AuditLogEntry, AuditLogListResponse, Pagination
from revforge.schemas.auth import (
    AccessTokenResponse,
    AuthResponse,
    CurrentUser,
    ErrorResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserSummary,
    UsersListResponse,
)
from revforge.schemas.health import HealthResponse

__all__ = [
    "AccessTokenResponse",
    "AuditLogEntry",
    "AuditLogListResponse",
    "AuthResponse",
    "CurrentUser",
    "ErrorResponse",
    "ForgotPasswordRequest",
    "ForgotPasswordResponse",
    "HealthResponse",
    "LoginRequest",
    "MeResponse",
    "MessageResponse",
    "Pagination",
    "RefreshRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "UserSummary",
    "UsersListResponse",
]

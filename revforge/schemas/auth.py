"""Request/response schemas for auth endpoints.

Request fields are optional at the schema level so missing values produce the
endpoint's own 400 message instead of a generic validation error. JSON keys
follow the front end's camelCase (accessToken, refreshToken, resetToken).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _TextRequest(BaseModel):
    """Base for request bodies: every string field must encode as UTF-8."""

    @field_validator("*")
    @classmethod
    def reject_unencodable_text(cls, v: Any) -> Any:
        # JSON allows lone surrogate escapes ("\ud800") that cannot be hashed or stored
        if isinstance(v, str):
            try:
                v.encode("utf-8")
            except UnicodeEncodeError:
                raise ValueError("must be valid UTF-8 text") from None
        return v


class RegisterRequest(_TextRequest):
    """Self-service sign-up. Any role sent by the client is ignored."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = Field(default=None, description="Account email")
    password: str | None = Field(default=None, description="Password (8-128 chars)")
    name: str | None = Field(default=None, max_length=255, description="Display name")


class LoginRequest(_TextRequest):
    """Credentials for login."""

    email: str | None = None
    password: str | None = None


class RefreshRequest(_TextRequest):
    """Refresh token previously returned at login/registration."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str | None = Field(default=None, alias="refreshToken")


class ForgotPasswordRequest(_TextRequest):
    email: str | None = None


class ResetPasswordRequest(_TextRequest):
    token: str | None = None
    password: str | None = None


class UserSummary(BaseModel):
    """Public view of a user returned alongside tokens (no secrets)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str | None = None
    role: str


class CurrentUser(UserSummary):
    """Authenticated user (id, email, role, active flag) for dependency injection."""

    is_active: bool = True


class AuthResponse(BaseModel):
    """Body returned by register and login; the access token is also set as a cookie."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    user: UserSummary
    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")


class AccessTokenResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")


class MessageResponse(BaseModel):
    message: str


class ForgotPasswordResponse(BaseModel):
    """Generic acknowledgement; reset_token is present only without a production secret."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    reset_token: str | None = Field(default=None, alias="resetToken")


class MeResponse(BaseModel):
    user: CurrentUser


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[CurrentUser]


class ErrorResponse(BaseModel):
    """Shape of every error body."""

    error: str
    retry_after: int | None = Field(default=None, alias="retryAfter")

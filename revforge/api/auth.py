"""Auth endpoints (register, login, refresh, logout, me, password reset) and auth dependencies."""

import ipaddress
import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from revforge.core.clock import utcnow
from revforge.core.config import Settings, get_settings
from revforge.core.database import get_db
from revforge.core.errors import ApiError
from revforge.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    TokenClaims,
    TokenConfigurationError,
    burn_password_check,
    create_access_token,
    create_refresh_token,
    verify_password,
    verify_token,
)
from revforge.core.session import clear_auth_cookie, get_token_from_request, set_auth_cookie
from revforge.models import User
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
from revforge.services import audit, rate_limit, users
from revforge.services.rbac import DEFAULT_ROLE, has_permission

logger = logging.getLogger(__name__)
router = APIRouter()

FORGOT_PASSWORD_MESSAGE = "If the email exists, a reset link has been sent"
# Longest textual IPv6 address; anything longer is not an address.
IP_ADDRESS_MAX_LEN = 45

_ERRORS = {
    code: {"model": ErrorResponse}
    for code in (400, 401, 404, 409, 423, 429)
}


def _validate_new_password(password: str) -> None:
    if len(password) < PASSWORD_MIN_LEN:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            f"Password must be at least {PASSWORD_MIN_LEN} characters",
        )
    if len(password) > PASSWORD_MAX_LEN:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            f"Password must be at most {PASSWORD_MAX_LEN} characters",
        )


def _parse_ip(value: str | None) -> str | None:
    """Normalised address from a header value, or None when it is not a plain IP."""
    if not value:
        return None
    value = value.strip()
    if not value or len(value) > IP_ADDRESS_MAX_LEN:
        return None
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        return None


def client_ip(request: Request) -> str:
    """
    Originating IP: first X-Forwarded-For hop, then X-Real-IP, then the peer address.

    Header values that do not parse as an IP address are skipped, so a client
    cannot put arbitrary text into login_attempts.ip_address.
    """
    forwarded = request.headers.get("x-forwarded-for")
    ip = _parse_ip(forwarded.split(",")[0]) if forwarded else None
    ip = ip or _parse_ip(request.headers.get("x-real-ip"))
    if ip:
        return ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _audit(
    db: Session,
    request: Request,
    action: audit.AuditAction,
    user_id: str | None,
    *,
    resource_type: str = "auth",
    details: dict | None = None,
) -> None:
    """Record an auth event with the caller's IP and user agent (committed by the caller)."""
    audit.log_action(
        db,
        action,
        resource_type,
        user_id=user_id,
        resource_id=user_id if resource_type == "user" else None,
        details=details,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


def _claims_for(user: User) -> TokenClaims:
    return TokenClaims(user_id=user.id, email=user.email, role=user.role)


def _issue_session(
    user: User, response: Response, settings: Settings
) -> tuple[str, str]:
    """Mint an access/refresh pair, store the refresh token and set the cookie."""
    claims = _claims_for(user)
    access_token = create_access_token(claims, settings)
    refresh_token = create_refresh_token(claims, settings)
    users.store_refresh_token(user, refresh_token, settings)
    set_auth_cookie(response, access_token, settings.is_production)
    return access_token, refresh_token


def _authenticate(
    request: Request, db: Session, settings: Settings
) -> User | None:
    """
    Resolve the bearer/cookie token to a user row.

    Raises 401 for a missing or invalid token. Returns None when the token is
    valid but the user is gone or inactive, so callers choose 401 or 404.
    """
    token = get_token_from_request(request)
    if not token:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Unauthorized")
    claims = verify_token(token, settings)
    if claims is None:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    # Refresh tokens pass here unless strict mode is on
    if settings.AUTH_STRICT_TOKEN_TYPE and claims.is_refresh:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid token type")
    user = users.get_user_by_id(db, claims.user_id)
    if user is None or not user.is_active:
        return None
    return user


def get_current_user(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CurrentUser:
    """Dependency: require a valid access token (header or cookie). Raises 401 otherwise."""
    user = _authenticate(request, db, settings)
    if user is None:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "User not found or inactive")
    return CurrentUser.model_validate(user)


def require_permission(resource: str, action: str) -> Callable[..., CurrentUser]:
    """Dependency factory: require the current user's role to allow action on resource."""

    def _check(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not has_permission(current_user.role, resource, action):
            raise ApiError(status.HTTP_403_FORBIDDEN, "Forbidden")
        return current_user

    return _check


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """
    Create a viewer account and sign it in.

    The role is always the low-privilege default; a role field in the body is ignored.
    """
    if not body.email or not body.password:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Email and password are required")
    _validate_new_password(body.password)
    if not users.is_valid_email(body.email):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid email format")
    if users.get_user_by_email(db, body.email) is not None:
        raise ApiError(status.HTTP_409_CONFLICT, "User already exists")

    try:
        user = users.create_user(db, body.email, body.password, body.name, DEFAULT_ROLE)
        access_token, refresh_token = _issue_session(user, response, settings)
        _audit(
            db,
            request,
            audit.AuditAction.CREATE,
            user.id,
            resource_type="user",
            details={"event": "register"},
        )
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise ApiError(status.HTTP_409_CONFLICT, "User already exists") from None

    logger.info("User registered", extra={"user_id": user.id, "role": user.role})
    return AuthResponse(
        message="User registered successfully",
        user=UserSummary.model_validate(user),
        access_token=access_token,
        refresh_token=refresh_token,
    )


@router.post("/login", response_model=AuthResponse, responses=_ERRORS)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns the user and tokens and sets the cookie.

    Order: rate-limit window, user lookup, account lockout, password check.
    """
    if not body.email or not body.password:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Email and password are required")
    email = body.email
    if len(email) > users.EMAIL_MAX_LEN:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid email format")
    ip_address = client_ip(request)

    limit = rate_limit.check_rate_limit(db, email, ip_address, settings)
    if not limit.allowed:
        retry_after = limit.retry_after_seconds()
        logger.warning(
            "Login rate limited",
            extra={"ip_address": ip_address, "retry_after": retry_after},
        )
        raise ApiError(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "Too many login attempts. Please try again later.",
            extra={"retryAfter": retry_after},
            headers={"Retry-After": str(retry_after)},
        )

    user = users.get_active_user_by_email(db, email)
    if user is None or not user.password_hash:
        burn_password_check(body.password)
        rate_limit.record_login_attempt(db, email, ip_address)
        db.commit()
        logger.info("Login failed: unknown account", extra={"ip_address": ip_address})
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

    if rate_limit.is_locked(user):
        _audit(
            db,
            request,
            audit.AuditAction.LOGIN,
            user.id,
            details={"success": False, "reason": "locked"},
        )
        db.commit()
        logger.info("Login refused: account locked", extra={"user_id": user.id})
        raise ApiError(status.HTTP_423_LOCKED, "Account is temporarily locked")

    if not verify_password(body.password, user.password_hash):
        rate_limit.record_login_attempt(db, email, ip_address)
        rate_limit.register_failed_login(user, settings)
        _audit(
            db,
            request,
            audit.AuditAction.LOGIN,
            user.id,
            details={"success": False, "reason": "wrong_password"},
        )
        db.commit()
        logger.info(
            "Login failed: wrong password",
            extra={
                "user_id": user.id,
                "ip_address": ip_address,
                "failed_login_attempts": user.failed_login_attempts,
            },
        )
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

    rate_limit.clear_rate_limit(db, email, ip_address, settings)
    access_token, refresh_token = _issue_session(user, response, settings)
    rate_limit.reset_failed_logins(user)
    user.last_login_at = utcnow()
    _audit(db, request, audit.AuditAction.LOGIN, user.id, details={"success": True})
    db.commit()

    logger.info("Login succeeded", extra={"user_id": user.id, "role": user.role})
    return AuthResponse(
        message="Login successful",
        user=UserSummary.model_validate(user),
        access_token=access_token,
        refresh_token=refresh_token,
    )


@router.post("/refresh", response_model=AccessTokenResponse, responses=_ERRORS)
def refresh(
    body: RefreshRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AccessTokenResponse:
    """
    Exchange the stored refresh token for a new access token.

    The refresh token itself is not rotated; it stays valid until it expires,
    the user logs out, or the password is reset.
    """
    presented = body.refresh_token
    if not presented:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Refresh token is required")

    claims = verify_token(presented, settings)
    if claims is None:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid refresh token")
    if not claims.is_refresh:
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid token type. Access tokens cannot be used for refresh.",
        )

    user = users.get_user_by_id(db, claims.user_id)
    if user is None or not user.is_active or not users.refresh_token_matches(user, presented):
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid refresh token")
    if users.refresh_token_expired(user):
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Refresh token expired")

    access_token = create_access_token(_claims_for(user), settings)
    set_auth_cookie(response, access_token, settings.is_production)
    return AccessTokenResponse(access_token=access_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """Revoke the stored refresh token when the caller is identifiable; always clears the cookie."""
    token = get_token_from_request(request)
    if token:
        try:
            claims = verify_token(token, settings)
            user = users.get_user_by_id(db, claims.user_id) if claims else None
            if user is not None:
                users.clear_refresh_token(user)
                _audit(db, request, audit.AuditAction.LOGOUT, user.id)
                db.commit()
                logger.info("User logged out", extra={"user_id": user.id})
        except (SQLAlchemyError, TokenConfigurationError):
            db.rollback()
            logger.exception("Could not revoke refresh token during logout")

    clear_auth_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=MeResponse, responses=_ERRORS)
def me(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MeResponse:
    """Return fresh user data for the token holder."""
    user = _authenticate(request, db, settings)
    if user is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found or inactive")
    return MeResponse(user=CurrentUser.model_validate(user))


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
    responses=_ERRORS,
)
def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ForgotPasswordResponse:
    """
    Start a password reset. The response is identical whether or not the email exists.

    Without a production JWT_SECRET the raw reset token is echoed back so local
    development works without an email channel.
    """
    if not body.email:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Email is required")

    user = users.get_active_user_by_email(db, body.email)
    if user is None:
        return ForgotPasswordResponse(message=FORGOT_PASSWORD_MESSAGE)

    reset_token = users.issue_reset_token(user, settings)
    _audit(
        db,
        request,
        audit.AuditAction.UPDATE,
        user.id,
        resource_type="user",
        details={"event": "password_reset_requested"},
    )
    db.commit()
    logger.info("Password reset requested", extra={"user_id": user.id})

    if settings.is_production:
        return ForgotPasswordResponse(message=FORGOT_PASSWORD_MESSAGE)
    logger.warning(
        "Returning password reset token in response body (JWT_SECRET not set)",
        extra={"user_id": user.id},
    )
    return ForgotPasswordResponse(message=FORGOT_PASSWORD_MESSAGE, reset_token=reset_token)


@router.post("/reset-password", response_model=MessageResponse, responses=_ERRORS)
def reset_password(
    body: ResetPasswordRequest,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Set a new password with a reset token; also revokes the refresh token everywhere."""
    if not body.token or not body.password:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Token and password are required")
    _validate_new_password(body.password)

    user = users.find_user_by_reset_token(db, body.token)
    if user is None:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid or expired reset token")

    users.reset_password(user, body.password)
    _audit(
        db,
        request,
        audit.AuditAction.UPDATE,
        user.id,
        resource_type="user",
        details={"event": "password_reset"},
    )
    db.commit()
    logger.info("Password reset completed", extra={"user_id": user.id})
    return MessageResponse(message="Password reset successfully")


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_permission("users", "read"))],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users (admin only). No password or token material is returned."""
    rows = db.query(User).order_by(User.created_at, User.email).all()
    return UsersListResponse(users=[CurrentUser.model_validate(u) for u in rows])

"""Access-token transport: HTTP-only cookie on responses, header or cookie on requests."""

from fastapi import Request, Response
from fastapi.security.utils import get_authorization_scheme_param

AUTH_COOKIE_NAME = "access_token"
# Matches the access token lifetime.
AUTH_COOKIE_MAX_AGE = 24 * 60 * 60


def set_auth_cookie(response: Response, access_token: str, is_production: bool) -> None:
    """Attach the access token as an HttpOnly, SameSite=Lax cookie (Secure in production)."""
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=access_token,
        max_age=AUTH_COOKIE_MAX_AGE,
        path="/",
        secure=is_production,
        httponly=True,
        samesite="lax",
    )


def clear_auth_cookie(response: Response) -> None:
    """Overwrite the auth cookie with an empty, immediately expiring value."""
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value="",
        max_age=0,
        path="/",
        httponly=True,
        samesite="lax",
    )


def get_token_from_request(request: Request) -> str | None:
    """Return the bearer token from Authorization, else the access_token cookie."""
    scheme, credentials = get_authorization_scheme_param(
        request.headers.get("Authorization")
    )
    if scheme.lower() == "bearer" and credentials:
        return credentials
    token = request.cookies.get(AUTH_COOKIE_NAME)
    return token or None

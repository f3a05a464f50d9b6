"""Edge route guard for page navigations (everything outside /api).

This layer only avoids rendering protected pages to visitors who are obviously
not signed in or who hold the wrong role. It reads the role from the session
cookie WITHOUT verifying the signature, so it is never an authorization
boundary: every API route re-verifies the token through the token service.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from revforge.core.security import decode_unverified_claims
from revforge.core.session import AUTH_COOKIE_NAME
from revforge.services.rbac import UserRole, parse_role

logger = logging.getLogger(__name__)

ADMIN_LOGIN_PATH = "/admin/login"
DEALER_LOGIN_PATH = "/dealer/login"
DEALER_HOME_PATH = "/dealer"

DEFAULT_API_PREFIX = "/api"

# Never inspected: API routes (under the configured API prefix) enforce their own
# auth; assets carry no session logic.
EXCLUDED_PREFIXES = ("/_next/static/", "/_next/image", "/static/", "/public/")
EXCLUDED_PATHS = frozenset({"/favicon.ico"})

PUBLIC_ROUTES = (
    "/login",
    ADMIN_LOGIN_PATH,
    DEALER_LOGIN_PATH,
    "/register",
    "/catalog",
    "/rfq",
)

DEALER_ROUTES = ("/dealer",)

ADMIN_ROUTES = (
    "/admin",
    "/analytics",
    "/dealers",
    "/leads",
    "/notifications",
    "/products",
    "/quotes",
    "/rfqs",
    "/settings",
    "/templates",
    "/theme",
    "/users",
)


class RouteKind(str, Enum):
    EXCLUDED = "excluded"
    PUBLIC = "public"
    DEALER = "dealer"
    ADMIN = "admin"
    OTHER = "other"


@dataclass(frozen=True)
class RouteDecision:
    """redirect_to is None when the request may proceed."""

    kind: RouteKind
    redirect_to: str | None = None

    @property
    def allowed(self) -> bool:
        return self.redirect_to is None


def _matches(path: str, routes: tuple[str, ...]) -> bool:
    return any(path == route or path.startswith(route + "/") for route in routes)


def classify_path(path: str, api_prefix: str = DEFAULT_API_PREFIX) -> RouteKind:
    """Public routes win over the protected prefixes they live under (e.g. /admin/login)."""
    if path in EXCLUDED_PATHS or path.startswith(EXCLUDED_PREFIXES):
        return RouteKind.EXCLUDED
    if _matches(path, (api_prefix.rstrip("/"),)):
        return RouteKind.EXCLUDED
    if path == "/" or _matches(path, PUBLIC_ROUTES):
        return RouteKind.PUBLIC
    if _matches(path, DEALER_ROUTES):
        return RouteKind.DEALER
    if _matches(path, ADMIN_ROUTES):
        return RouteKind.ADMIN
    return RouteKind.OTHER


def _login_redirect(login_path: str, path: str, query: str) -> str:
    destination = f"{path}?{query}" if query else path
    return f"{login_path}?{urlencode({'redirect': destination})}"


def _session_role(token: str | None) -> tuple[bool, UserRole | None]:
    """(has_session, role) from the cookie; an undecodable cookie is no session."""
    if not token:
        return False, None
    payload = decode_unverified_claims(token)
    if payload is None:
        return False, None
    role = payload.get("role")
    return True, parse_role(role if isinstance(role, str) else None)


def evaluate_route(
    path: str,
    token: str | None,
    query: str = "",
    api_prefix: str = DEFAULT_API_PREFIX,
) -> RouteDecision:
    """Decide whether a page request proceeds or is redirected."""
    kind = classify_path(path, api_prefix)
    if kind in (RouteKind.EXCLUDED, RouteKind.PUBLIC, RouteKind.OTHER):
        return RouteDecision(kind)

    login_path = DEALER_LOGIN_PATH if kind is RouteKind.DEALER else ADMIN_LOGIN_PATH
    has_session, role = _session_role(token)
    if not has_session:
        return RouteDecision(kind, _login_redirect(login_path, path, query))

    if kind is RouteKind.ADMIN and role is UserRole.DEALER:
        return RouteDecision(kind, DEALER_HOME_PATH)
    if kind is RouteKind.DEALER and role not in (UserRole.DEALER, UserRole.ADMIN):
        return RouteDecision(kind, _login_redirect(DEALER_LOGIN_PATH, path, query))
    return RouteDecision(kind)


def build_route_guard(api_prefix: str = DEFAULT_API_PREFIX):
    """HTTP middleware that redirects page requests failing the guard; API routes pass through."""

    async def route_guard_middleware(request: Request, call_next):
        decision = evaluate_route(
            request.url.path,
            request.cookies.get(AUTH_COOKIE_NAME),
            request.url.query,
            api_prefix,
        )
        if decision.allowed:
            return await call_next(request)
        logger.debug(
            "Route guard redirect",
            extra={"path": request.url.path, "route_kind": decision.kind.value},
        )
        return RedirectResponse(decision.redirect_to, status_code=307)

    return route_guard_middleware


def register_route_guard(app: FastAPI, api_prefix: str = DEFAULT_API_PREFIX) -> None:
    app.middleware("http")(build_route_guard(api_prefix))

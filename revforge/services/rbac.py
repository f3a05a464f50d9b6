"""Role hierarchy and resource permission matrix for the marketplace back office."""

from enum import Enum


class UserRole(str, Enum):
    """Roles a user account can hold."""

    VIEWER = "viewer"
    DEALER = "dealer"
    ADMIN = "admin"


# Self-service registration always gets this role.
DEFAULT_ROLE = UserRole.VIEWER

ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.VIEWER: 1,
    UserRole.DEALER: 2,
    UserRole.ADMIN: 3,
}

PermissionMatrix = dict[str, dict[str, tuple[UserRole, ...]]]

_ALL = (UserRole.VIEWER, UserRole.DEALER, UserRole.ADMIN)
_STAFF = (UserRole.DEALER, UserRole.ADMIN)
_ADMIN = (UserRole.ADMIN,)

DEFAULT_PERMISSIONS: PermissionMatrix = {
    "products": {"read": _ALL, "create": _ADMIN, "update": _ADMIN, "delete": _ADMIN},
    "leads": {"read": _STAFF, "create": _STAFF, "update": _STAFF, "delete": _ADMIN},
    # Public visitors submit RFQs
    "rfq-submissions": {"read": _STAFF, "create": _ALL, "update": _STAFF, "delete": _ADMIN},
    "quotes": {"read": _STAFF, "create": _STAFF, "update": _ADMIN, "delete": _ADMIN},
    "users": {"read": _ADMIN, "create": _ADMIN, "update": _ADMIN, "delete": _ADMIN},
    "audit-log": {"read": _ADMIN, "export": _ADMIN},
}


def parse_role(value: str | None) -> UserRole | None:
    """Return the UserRole for a raw claim/column value, or None if unknown."""
    if value is None:
        return None
    try:
        return UserRole(value)
    except ValueError:
        return None


def is_valid_role(value: str | None) -> bool:
    return parse_role(value) is not None


def has_higher_or_equal_role(user_role: str, required_role: str) -> bool:
    """True when user_role sits at or above required_role in the hierarchy."""
    user = parse_role(user_role)
    required = parse_role(required_role)
    if user is None or required is None:
        return False
    return ROLE_HIERARCHY[user] >= ROLE_HIERARCHY[required]


def has_permission(
    user_role: str,
    resource: str,
    action: str,
    permissions: PermissionMatrix = DEFAULT_PERMISSIONS,
) -> bool:
    """
    Check whether user_role may perform action on resource.

    A role is allowed when it is at or above the lowest role listed for the
    action. Unknown roles, resources and actions are denied.
    """
    role = parse_role(user_role)
    if role is None:
        return False
    allowed = permissions.get(resource, {}).get(action)
    if not allowed:
        return False
    min_required = min(ROLE_HIERARCHY[r] for r in allowed)
    return ROLE_HIERARCHY[role] >= min_required

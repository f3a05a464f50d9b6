"""HTTP middleware."""

from revforge.middleware.route_guard import register_route_guard
from revforge.middleware.security_headers import register_security_headers

__all__ = ["register_route_guard", "register_security_headers"]

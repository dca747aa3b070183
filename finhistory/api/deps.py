"""
Header-based access checks for admin and internal routes.

These are placeholders, not a security model: the admin check trusts an
`x-role` header and the internal check compares a shared token.
"""

import hmac

from fastapi import Header

from finhistory.core.config import settings
from finhistory.core.errors import ForbiddenError, UnauthorizedError

ADMIN_ROLES = frozenset({"admin", "editor"})


async def require_admin(x_role: str | None = Header(default=None)) -> str:
    """Allow requests whose `x-role` header is admin or editor."""
    if not x_role:
        raise UnauthorizedError("Missing x-role header")
    if x_role not in ADMIN_ROLES:
        raise ForbiddenError("Admin or editor role required")
    return x_role


async def require_service_token(x_service_token: str | None = Header(default=None)) -> None:
    """Allow requests carrying the configured `x-service-token`."""
    if not x_service_token:
        raise UnauthorizedError("Missing x-service-token header")
    if not settings.service_token:
        raise UnauthorizedError("Service token is not configured")
    if not hmac.compare_digest(x_service_token.encode(), settings.service_token.encode()):
        raise UnauthorizedError("Invalid x-service-token header")

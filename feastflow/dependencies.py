"""
Request Dependencies and Access Control Gate

Routes declare the roles they accept explicitly:

    @router.get("/metrics")
    async def metrics(identity: TokenIdentity = Depends(require_roles(*ADMIN_ONLY))):
        ...

There is no hierarchy between roles; a route that admits admins and
owners lists both.
"""

import logging
from typing import Iterable, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from feastflow.core.config import get_settings
from feastflow.core.exceptions import ForbiddenError, UnauthenticatedError
from feastflow.core.security import TokenIdentity, decode_access_token, extract_token
from feastflow.database import get_db
from feastflow.models import UserRole
from feastflow.services.auth import AuthService
from feastflow.services.cart import CartService
from feastflow.services.dashboard import DashboardService
from feastflow.services.network import NetworkDiagnostics

logger = logging.getLogger(__name__)

ANY_ROLE = (UserRole.CUSTOMER, UserRole.RESTAURANT_OWNER, UserRole.ADMIN)
OWNER_OR_ADMIN = (UserRole.RESTAURANT_OWNER, UserRole.ADMIN)
ADMIN_ONLY = (UserRole.ADMIN,)


def authorize(identity: Optional[TokenIdentity], allowed_roles: Iterable[UserRole]) -> TokenIdentity:
    """
    Allow or deny a request.

    Raises:
        UnauthenticatedError: No identity was resolved from the request
        ForbiddenError: The identity's role is not in ``allowed_roles``
    """
    if identity is None:
        raise UnauthenticatedError()
    if identity.role not in tuple(allowed_roles):
        logger.info(f"Denied {identity.role.value} user {identity.id}")
        raise ForbiddenError.for_role(identity.role.value)
    return identity


async def get_optional_identity(request: Request) -> Optional[TokenIdentity]:
    """
    Resolve the caller from the bearer header or the session cookie.

    Returns None when no token was sent; an invalid token raises.
    """
    settings = get_settings()
    token = extract_token(
        request.headers.get("Authorization"),
        request.cookies.get(settings.token_cookie_name),
    )
    if token is None:
        return None
    return decode_access_token(token, settings=settings)


def require_roles(*roles: UserRole):
    """Build a dependency that admits only the given roles."""
    allowed = tuple(roles)

    async def dependency(
        identity: Optional[TokenIdentity] = Depends(get_optional_identity),
    ) -> TokenIdentity:
        return authorize(identity, allowed)

    return dependency


require_any_role = require_roles(*ANY_ROLE)
require_admin = require_roles(*ADMIN_ONLY)


# =============================================================================
# SERVICES
# =============================================================================

def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_cart_service(db: AsyncSession = Depends(get_db)) -> CartService:
    return CartService(db)


def get_dashboard_service(db: AsyncSession = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


def get_network_diagnostics() -> NetworkDiagnostics:
    return NetworkDiagnostics()

"""
                        Services Module

Business logic behind the HTTP routers. Each service wraps one
request-scoped database session.

Services:
    - auth: registration, login, identity lookup
    - cart: single-restaurant cart operations
    - dashboard: read-only admin aggregations
    - network: cluster DNS and connectivity diagnostics
"""

from feastflow.services.auth import AuthResult, AuthService
from feastflow.services.cart import CartService
from feastflow.services.dashboard import DashboardService
from feastflow.services.network import NetworkDiagnostics

__all__ = [
    "AuthResult",
    "AuthService",
    "CartService",
    "DashboardService",
    "NetworkDiagnostics",
]

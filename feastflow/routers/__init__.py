"""
HTTP Routers

Each router maps one service onto the ``/api`` surface:
    - auth: registration, login, session
    - cart: the caller's single-restaurant cart
    - dashboard: admin statistics
    - network: cluster service discovery checks
"""

from feastflow.routers import auth, cart, dashboard, network

__all__ = ["auth", "cart", "dashboard", "network"]

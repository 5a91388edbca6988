"""
                FeastFlow Backend

REST backend for the FeastFlow food-ordering storefront:
authentication, single-restaurant carts, admin dashboard
metrics and cluster network diagnostics.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"

"""
Certificates module - Fellowship certificates for approved applications.
"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]

"""
Fees module - Per-cohort application fee configuration and resolution.
"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]

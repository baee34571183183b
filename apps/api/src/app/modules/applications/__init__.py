"""
Fellowship Applications Module

Draft creation, submission and admin review of fellowship applications.
"""

from app.modules.applications.admin_router import router as admin_router
from app.modules.applications.router import router

__all__ = ["router", "admin_router"]

"""
Cohorts module - Intake periods and certification tracks (reference data).
"""

from .router import router

__all__ = ["router"]

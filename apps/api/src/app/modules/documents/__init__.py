"""
Documents module - Supporting document uploads and the pre-payment staging buffer.
"""

from .jobs import register_document_jobs
from .router import router

__all__ = ["router", "register_document_jobs"]

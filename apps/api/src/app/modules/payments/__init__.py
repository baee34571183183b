"""
Payments module - Paystack transactions and fee payment reconciliation.
"""

from .router import router

__all__ = ["router"]

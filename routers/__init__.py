# routers/__init__.py
"""
API routers.

- payments: gateway sign endpoint and notification webhook
- invoices: resend / repair utilities
"""
from .payments import router as payments_router
from .invoices import router as invoices_router

__all__ = ["payments_router", "invoices_router"]

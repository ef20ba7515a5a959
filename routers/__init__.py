# routers/__init__.py
from .payments import router as payments_router
from .payment_settings import router as payment_settings_router

__all__ = ["payments_router", "payment_settings_router"]

# models/__init__.py
from .base import Base
from .payment_record import PaymentRecord, PaymentStatus
from .payment_settings import PaymentSettings
from .payment_audit import PaymentAuditEntry
from .paid_content import PaidContent

__all__ = [
     "Base",
     "PaymentRecord",
     "PaymentStatus",
     "PaymentSettings",
     "PaymentAuditEntry",
     "PaidContent",
]

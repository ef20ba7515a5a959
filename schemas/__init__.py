# schemas/__init__.py
from .payment import (
     PaymentVerifyRequest,
     PaymentVerifyResponse,
     EntitlementResponse,
     PaymentRecordResponse,
     PaymentSettingsUpdate,
     PaymentSettingsResponse,
     EffectivePolicyResponse,
     PaymentAuditEntryResponse,
)

__all__ = [
     "PaymentVerifyRequest",
     "PaymentVerifyResponse",
     "EntitlementResponse",
     "PaymentRecordResponse",
     "PaymentSettingsUpdate",
     "PaymentSettingsResponse",
     "EffectivePolicyResponse",
     "PaymentAuditEntryResponse",
]

# services/payment_types.py
"""
Transient values passed between the verification services.

None of these are persisted directly; a successful VerificationResult is
folded into a PaymentRecord by the EntitlementRecorder.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .reasons import RejectionReason


@dataclass(frozen=True)
class PaymentClaim:
     """What the payer says they paid. Exists for one verification call."""
     network: str
     transaction_reference: str
     claimed_sender_address: str
     expected_amount: Decimal
     payer_id: str
     content_id: str
     tenant_id: Optional[str] = None


@dataclass(frozen=True)
class TenantPaymentPolicy:
     tenant_id: Optional[str]
     recipient_address: str
     minimum_confirmations: int
     production_enabled: bool = True
     source: str = "default"  # "tenant" or "default"


@dataclass(frozen=True)
class VerificationResult:
     verified: bool
     reason: Optional[RejectionReason] = None
     sender_address: Optional[str] = None
     recipient_address: Optional[str] = None
     amount: Optional[Decimal] = None
     ledger_slot: Optional[int] = None
     ledger_timestamp: Optional[datetime] = None
     confirmations: Optional[int] = None

     @classmethod
     def rejected(cls, reason: RejectionReason, **observed) -> "VerificationResult":
          return cls(verified=False, reason=reason, **observed)

     def with_reason(self, reason: RejectionReason) -> "VerificationResult":
          return replace(self, verified=False, reason=reason)

# services/payment_service.py
"""
Payment Verification Service - one verification attempt end to end.

Flow for a PaymentClaim:
1. Resolve the tenant's payment policy
2. Reject malformed input (no I/O yet) and offers below the registered
   price of the content
3. Read-only replay pre-check: a reference owned by someone else is
   rejected without touching the ledger; an already confirmed record of the
   same payer/content is returned as is
4. Verify the transaction on the ledger
5. Claim the reference (atomic insert) and finalize the record; the
   reported outcome follows the stored status, not the verifier alone

Nothing durable is written for attempts that fail before step 5 (apart
from the audit trail). Once a record exists, retries by the same payer for
the same content resume it instead of creating another.
"""
import logging
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.orm import Session

from models import PaymentAuditEntry, PaymentRecord
from . import content_pricing, entitlement_recorder, replay_guard
from .address_validator import validate_address, validate_reference
from .exceptions import InvalidFormatError
from .ledger_client import LedgerNetwork, parse_network
from .payment_types import PaymentClaim, TenantPaymentPolicy, VerificationResult
from .reasons import FRAUD_REASONS, RejectionReason
from .settings_resolver import SettingsResolver
from .transaction_verifier import TransactionVerifier

logger = logging.getLogger(__name__)


@dataclass
class PaymentOutcome:
     """Result of one attempt, with the stored record when there is one."""
     result: VerificationResult
     record: Optional[PaymentRecord] = None
     policy: Optional[TenantPaymentPolicy] = None

     @property
     def verified(self) -> bool:
          return self.result.verified

     @property
     def reason(self) -> Optional[RejectionReason]:
          return self.result.reason


def result_from_record(record: PaymentRecord) -> VerificationResult:
     """VerificationResult for an already confirmed record (no ledger call)."""
     return VerificationResult(
          verified=True,
          sender_address=record.sender_address,
          recipient_address=record.recipient_address,
          amount=record.amount,
          ledger_slot=record.ledger_slot,
          ledger_timestamp=record.ledger_timestamp,
          confirmations=record.confirmations,
     )


def validate_claim(claim: PaymentClaim) -> None:
     """
     Syntax checks on a claim.

     Raises:
          InvalidFormatError: On any malformed field.
     """
     parse_network(claim.network)
     validate_reference(claim.transaction_reference)
     validate_address(claim.claimed_sender_address, field="sender address")
     try:
          amount = Decimal(claim.expected_amount)
     except (InvalidOperation, TypeError, ValueError):
          raise InvalidFormatError("expected amount is not a number")
     if not amount.is_finite() or amount <= 0:
          raise InvalidFormatError("expected amount must be positive")


class PaymentVerificationService:
     """Orchestrates SettingsResolver, TransactionVerifier, ReplayGuard and EntitlementRecorder."""

     def __init__(self, verifier: TransactionVerifier, settings_resolver: SettingsResolver):
          self.verifier = verifier
          self.settings_resolver = settings_resolver

     def _audit(self, db: Session, claim: PaymentClaim, result: VerificationResult) -> None:
          db.add(PaymentAuditEntry(
               payer_id=claim.payer_id,
               content_id=claim.content_id,
               tenant_id=claim.tenant_id,
               network=claim.network,
               transaction_reference=claim.transaction_reference,
               verified=result.verified,
               reason=result.reason.value if result.reason else None,
               is_fraud_attempt=result.reason in FRAUD_REASONS,
          ))
          db.commit()

     def _finish(
          self,
          db: Session,
          claim: PaymentClaim,
          result: VerificationResult,
          record: Optional[PaymentRecord] = None,
          policy: Optional[TenantPaymentPolicy] = None,
     ) -> PaymentOutcome:
          self._audit(db, claim, result)
          if result.verified:
               logger.info("Payment verified: payer %s, content %s", claim.payer_id, claim.content_id)
          else:
               logger.info(
                    "Payment rejected (%s): payer %s, content %s, reference %s...",
                    result.reason.value, claim.payer_id, claim.content_id, claim.transaction_reference[:16],
               )
          return PaymentOutcome(result=result, record=record, policy=policy)

     def verify_payment(self, db: Session, claim: PaymentClaim) -> PaymentOutcome:
          policy = self.settings_resolver.resolve(db, claim.tenant_id)

          try:
               validate_claim(claim)
          except InvalidFormatError as e:
               logger.info("Rejected malformed payment claim from payer %s: %s", claim.payer_id, e)
               return PaymentOutcome(VerificationResult.rejected(RejectionReason.INVALID_FORMAT), policy=policy)

          if parse_network(claim.network) == LedgerNetwork.PRODUCTION and not policy.production_enabled:
               return PaymentOutcome(VerificationResult.rejected(RejectionReason.NETWORK_NOT_ENABLED), policy=policy)

          price = content_pricing.registered_price(db, claim.tenant_id, claim.content_id)
          if price is not None and Decimal(claim.expected_amount) < price:
               result = VerificationResult.rejected(RejectionReason.INSUFFICIENT_AMOUNT)
               return self._finish(db, claim, result, policy=policy)

          existing = replay_guard.lookup(db, claim.transaction_reference)
          if existing is not None:
               if not existing.owned_by(claim.payer_id, claim.content_id):
                    result = VerificationResult.rejected(RejectionReason.TRANSACTION_ALREADY_USED)
                    return self._finish(db, claim, result, policy=policy)
               if existing.is_confirmed:
                    return self._finish(db, claim, result_from_record(existing), existing, policy)
               # Resume against the recipient the record was claimed for
               policy = replace(policy, recipient_address=existing.recipient_address)
          else:
               entitled = entitlement_recorder.get_confirmed_record(db, claim.payer_id, claim.content_id)
               if entitled is not None and entitled.transaction_reference == claim.transaction_reference:
                    # Confirmed by a concurrent attempt since the lookup above
                    return self._finish(db, claim, result_from_record(entitled), entitled, policy)
               if entitled is not None:
                    result = VerificationResult.rejected(RejectionReason.ALREADY_ENTITLED)
                    return self._finish(db, claim, result, policy=policy)

          result = self.verifier.verify(claim, policy)
          if not result.verified and existing is None:
               return self._finish(db, claim, result, policy=policy)

          outcome = replay_guard.claim(db, claim, policy)
          if isinstance(outcome, replay_guard.AlreadyClaimed):
               result = VerificationResult.rejected(RejectionReason.TRANSACTION_ALREADY_USED)
               return self._finish(db, claim, result, policy=policy)

          record = entitlement_recorder.finalize(db, outcome.record, result)
          if record.is_confirmed:
               # A concurrent attempt by the same owner may have confirmed it first
               result = result_from_record(record)
          elif result.verified:
               # Verified but not stored; the payer has to retry
               result = result.with_reason(RejectionReason.TRANSIENT_ERROR)
          return self._finish(db, claim, result, record, policy)

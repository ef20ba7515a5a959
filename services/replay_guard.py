# services/replay_guard.py
"""
Replay Guard - at-most-once consumption of a transaction reference.

claim() inserts a PENDING PaymentRecord keyed by transaction_reference.
The database unique constraint decides races between processes: exactly
one insert commits, every other attempt sees the existing row.

- Existing row, same (payer, content): idempotent re-entry on that row
  (a FAILED row is reopened to PENDING first)
- Existing row, different owner: AlreadyClaimed; the caller must reject
  with TRANSACTION_ALREADY_USED and never retry

claim() commits the session, so callers must not hold unrelated pending
changes when calling it.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import PaymentRecord, PaymentStatus
from .payment_types import PaymentClaim, TenantPaymentPolicy

logger = logging.getLogger(__name__)


@dataclass
class Claimed:
     record: PaymentRecord
     resumed: bool = False


@dataclass
class AlreadyClaimed:
     existing_payer_id: str
     existing_content_id: str


ClaimOutcome = Union[Claimed, AlreadyClaimed]


def lookup(db: Session, transaction_reference: str) -> Optional[PaymentRecord]:
     """Read-only: the record holding this reference, if any."""
     return (
          db.query(PaymentRecord)
          .filter(PaymentRecord.transaction_reference == transaction_reference)
          .first()
     )


def _reopen_failed(db: Session, record: PaymentRecord) -> PaymentRecord:
     """FAILED -> PENDING, conditional on the row still being FAILED."""
     updated = (
          db.query(PaymentRecord)
          .filter(PaymentRecord.id == record.id, PaymentRecord.status == PaymentStatus.FAILED)
          .update(
               {
                    PaymentRecord.status: PaymentStatus.PENDING,
                    PaymentRecord.failure_reason: None,
                    PaymentRecord.updated_at: func.now(),
               },
               synchronize_session=False,
          )
     )
     db.commit()
     db.refresh(record)
     if updated:
          logger.info("Reopened failed payment record %s for retry", record.id)
     return record


def _resolve_existing(db: Session, existing: PaymentRecord, payment_claim: PaymentClaim) -> ClaimOutcome:
     if not existing.owned_by(payment_claim.payer_id, payment_claim.content_id):
          logger.warning(
               "Transaction %s... already claimed by another payer/content (attempt by payer %s)",
               payment_claim.transaction_reference[:16], payment_claim.payer_id,
          )
          return AlreadyClaimed(existing.payer_id, existing.content_id)

     if existing.status == PaymentStatus.FAILED:
          existing = _reopen_failed(db, existing)
     return Claimed(existing, resumed=True)


def claim(db: Session, payment_claim: PaymentClaim, policy: TenantPaymentPolicy) -> ClaimOutcome:
     """
     Atomically claim a transaction reference for (payer, content).

     Returns:
          Claimed(record, resumed) or AlreadyClaimed(existing owner)
     """
     existing = lookup(db, payment_claim.transaction_reference)
     if existing is not None:
          return _resolve_existing(db, existing, payment_claim)

     record = PaymentRecord(
          payer_id=payment_claim.payer_id,
          content_id=payment_claim.content_id,
          tenant_id=payment_claim.tenant_id,
          network=payment_claim.network,
          transaction_reference=payment_claim.transaction_reference,
          sender_address=payment_claim.claimed_sender_address,
          recipient_address=policy.recipient_address,
          status=PaymentStatus.PENDING,
     )
     db.add(record)
     try:
          db.commit()
     except IntegrityError:
          # Lost the race: another attempt committed the same reference first
          db.rollback()
          existing = lookup(db, payment_claim.transaction_reference)
          if existing is None:
               raise
          return _resolve_existing(db, existing, payment_claim)

     db.refresh(record)
     logger.info("Claimed transaction %s... as payment record %s", payment_claim.transaction_reference[:16], record.id)
     return Claimed(record, resumed=False)

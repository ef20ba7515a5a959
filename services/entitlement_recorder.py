# services/entitlement_recorder.py
"""
Entitlement Recorder - status transitions of PaymentRecords and the
entitlement check built on them.

Every transition is a compare-and-swap on status:
- a verified result confirms a PENDING or FAILED row (FAILED is not terminal)
- a rejection only moves a PENDING row to FAILED
A CONFIRMED row is never matched, so it is never overwritten and two
concurrent finalizers cannot both confirm. A confirmed record is the
entitlement; nothing else needs to be written.
"""
import logging
from typing import List, Optional

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from models import PaymentRecord, PaymentStatus
from .payment_types import VerificationResult
from .reasons import TRANSIENT_REASONS

logger = logging.getLogger(__name__)

CONFIRMABLE_STATUSES = (PaymentStatus.PENDING, PaymentStatus.FAILED)


def _compare_and_set(db: Session, record: PaymentRecord, from_statuses: tuple, values: dict) -> bool:
     values[PaymentRecord.updated_at] = func.now()
     updated = (
          db.query(PaymentRecord)
          .filter(PaymentRecord.id == record.id, PaymentRecord.status.in_(from_statuses))
          .update(values, synchronize_session=False)
     )
     db.commit()
     db.refresh(record)
     return bool(updated)


def finalize(db: Session, record: PaymentRecord, result: VerificationResult) -> PaymentRecord:
     """
     Apply a verification result to a claimed record.

     - verified: PENDING/FAILED -> CONFIRMED with the ledger-observed fields
     - transient rejection (NOT_FOUND, TRANSIENT_ERROR): left as is
     - other rejection: PENDING -> FAILED with the reason (retryable later)

     Returns the record as stored after the attempt; callers must read the
     outcome from its status, since a concurrent attempt may have won.
     """
     if result.verified:
          changed = _compare_and_set(db, record, CONFIRMABLE_STATUSES, {
               PaymentRecord.status: PaymentStatus.CONFIRMED,
               PaymentRecord.sender_address: result.sender_address,
               PaymentRecord.amount: result.amount,
               PaymentRecord.ledger_slot: result.ledger_slot,
               PaymentRecord.ledger_timestamp: result.ledger_timestamp,
               PaymentRecord.confirmations: result.confirmations,
               PaymentRecord.failure_reason: None,
               PaymentRecord.confirmed_at: func.now(),
          })
          if changed:
               logger.info(
                    "Payment record %s confirmed: payer %s now has access to %s",
                    record.id, record.payer_id, record.content_id,
               )
     elif result.reason in TRANSIENT_REASONS:
          logger.info("Payment record %s left %s after %s", record.id, record.status.value, result.reason.value)
          return record
     else:
          changed = _compare_and_set(db, record, (PaymentStatus.PENDING,), {
               PaymentRecord.status: PaymentStatus.FAILED,
               PaymentRecord.failure_reason: result.reason.value,
          })
          if changed:
               logger.info("Payment record %s failed: %s", record.id, result.reason.value)

     if not changed:
          logger.info("Payment record %s was already %s; not overwritten", record.id, record.status.value)
     return record


def get_confirmed_record(db: Session, payer_id: str, content_id: str) -> Optional[PaymentRecord]:
     return (
          db.query(PaymentRecord)
          .filter(
               PaymentRecord.payer_id == payer_id,
               PaymentRecord.content_id == content_id,
               PaymentRecord.status == PaymentStatus.CONFIRMED,
          )
          .order_by(PaymentRecord.id)
          .first()
     )


def has_entitlement(db: Session, payer_id: str, content_id: str, requires_payment: bool = True) -> bool:
     """True if the content is free or the payer holds a confirmed payment for it."""
     if not requires_payment:
          return True
     return get_confirmed_record(db, payer_id, content_id) is not None


def list_payer_records(db: Session, payer_id: str) -> List[PaymentRecord]:
     return (
          db.query(PaymentRecord)
          .filter(PaymentRecord.payer_id == payer_id)
          .order_by(desc(PaymentRecord.created_at), desc(PaymentRecord.id))
          .all()
     )


def list_tenant_records(db: Session, tenant_id: str, status: Optional[PaymentStatus] = None) -> List[PaymentRecord]:
     query = db.query(PaymentRecord).filter(PaymentRecord.tenant_id == tenant_id)
     if status is not None:
          query = query.filter(PaymentRecord.status == status)
     return query.order_by(desc(PaymentRecord.created_at), desc(PaymentRecord.id)).all()

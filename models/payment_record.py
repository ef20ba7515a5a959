# models/payment_record.py
"""
PaymentRecord model - the system of record for paid-content entitlements.

One row per on-chain transaction reference. The unique constraint on
transaction_reference is what makes a payment usable for at most one grant;
status moves PENDING -> CONFIRMED exactly once and CONFIRMED rows are never
rewritten. FAILED rows may be reopened by their owner.
"""
import enum

from sqlalchemy import Column, Integer, BigInteger, String, Numeric, DateTime, Enum, Index

from .base import Base, TimestampMixin


class PaymentStatus(str, enum.Enum):
     """Lifecycle of a payment record."""
     PENDING = "PENDING"
     CONFIRMED = "CONFIRMED"
     FAILED = "FAILED"


class PaymentRecord(TimestampMixin, Base):
     """
     Durable record of a claimed on-chain payment.

     Financial fields (amount, ledger_slot, ledger_timestamp, confirmations)
     hold what the ledger reported, never what the payer claimed.
     """
     __tablename__ = "payment_records"
     __table_args__ = (
          Index("ix_payment_records_payer_content", "payer_id", "content_id"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Ownership
     payer_id = Column(String(64), nullable=False, index=True)
     content_id = Column(String(64), nullable=False, index=True)
     tenant_id = Column(String(64), nullable=True, index=True)

     # Ledger identity
     network = Column(String(20), nullable=False)
     transaction_reference = Column(String(88), nullable=False, unique=True, index=True)
     sender_address = Column(String(44), nullable=False)
     recipient_address = Column(String(44), nullable=False)

     # Ledger-observed values, filled on confirmation
     amount = Column(Numeric(20, 9), nullable=True)
     ledger_slot = Column(BigInteger, nullable=True)
     ledger_timestamp = Column(DateTime, nullable=True)
     confirmations = Column(Integer, nullable=True)

     status = Column(
          Enum(PaymentStatus, name="payment_status", create_constraint=True),
          default=PaymentStatus.PENDING,
          nullable=False,
          index=True
     )
     failure_reason = Column(String(50), nullable=True)

     # Timestamps (created_at, updated_at from TimestampMixin)
     confirmed_at = Column(DateTime, nullable=True)

     def __repr__(self):
          return (
               f"<PaymentRecord(id={self.id}, reference={self.transaction_reference[:16]}..., "
               f"status='{self.status.value}')>"
          )

     @property
     def is_confirmed(self) -> bool:
          return self.status == PaymentStatus.CONFIRMED

     def owned_by(self, payer_id: str, content_id: str) -> bool:
          """Check whether this record belongs to the given (payer, content) pair."""
          return self.payer_id == payer_id and self.content_id == content_id

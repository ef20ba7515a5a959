# models/payment_audit.py
"""
PaymentAuditEntry model - append-only trail of verification attempts.

Used by tenant administrators to review payment activity and suspected
replay attempts. Never read by the verification path.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func

from .base import Base


class PaymentAuditEntry(Base):
     """One row per verification attempt (table name derived: payment_audit_entries)."""

     id = Column(Integer, primary_key=True, autoincrement=True)
     payer_id = Column(String(64), nullable=False, index=True)
     content_id = Column(String(64), nullable=False)
     tenant_id = Column(String(64), nullable=True, index=True)
     network = Column(String(20), nullable=False)
     transaction_reference = Column(String(88), nullable=False, index=True)
     verified = Column(Boolean, nullable=False)
     reason = Column(String(50), nullable=True)
     is_fraud_attempt = Column(Boolean, default=False, nullable=False)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     def __repr__(self):
          return f"<PaymentAuditEntry(id={self.id}, verified={self.verified}, reason='{self.reason}')>"

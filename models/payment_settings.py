# models/payment_settings.py
"""
PaymentSettings model - per-tenant payment policy.

Maintained by tenant administrators; read-only to the verification path.
"""
from sqlalchemy import Column, Integer, String, Boolean

from .base import Base, TimestampMixin


class PaymentSettings(TimestampMixin, Base):
     """
     Tenant payment configuration (recipient wallet and confirmation policy).
     One row per tenant.
     """
     __tablename__ = "payment_settings"

     id = Column(Integer, primary_key=True, autoincrement=True)
     tenant_id = Column(String(64), nullable=False, unique=True, index=True)

     wallet_address = Column(String(44), nullable=True)
     enabled = Column(Boolean, default=False, nullable=False)
     production_enabled = Column(Boolean, default=False, nullable=False)
     minimum_confirmations = Column(Integer, default=1, nullable=False)

     # Timestamps (created_at, updated_at from TimestampMixin)
     updated_by = Column(String(64), nullable=True)

     def __repr__(self):
          return f"<PaymentSettings(tenant_id='{self.tenant_id}', enabled={self.enabled})>"

# models/paid_content.py
"""
PaidContent model - price registered for a piece of tenant content.

Content without a row is treated as paid; free content is registered with
requires_payment = False.
"""
from sqlalchemy import Column, Integer, String, Boolean, Numeric, UniqueConstraint

from .base import Base, TimestampMixin


class PaidContent(TimestampMixin, Base):
     """Whether a tenant's content requires payment, and its price."""
     __tablename__ = "paid_content"
     __table_args__ = (
          UniqueConstraint("tenant_id", "content_id", name="uq_paid_content_tenant_content"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     tenant_id = Column(String(64), nullable=False, index=True)
     content_id = Column(String(64), nullable=False)

     requires_payment = Column(Boolean, default=True, nullable=False)
     payment_amount = Column(Numeric(precision=20, scale=9), nullable=True)

     updated_by = Column(String(64), nullable=True)

     def __repr__(self):
          return (
               f"<PaidContent(tenant_id='{self.tenant_id}', content_id='{self.content_id}', "
               f"requires_payment={self.requires_payment})>"
          )

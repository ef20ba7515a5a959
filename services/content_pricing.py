# services/content_pricing.py
"""
Content Pricing - which content requires payment, and for how much.

Content nobody has registered is treated as paid with no known price;
tenant administrators register free content explicitly.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from models import PaidContent
from . import entitlement_recorder
from .payment_types import TenantPaymentPolicy
from .settings_resolver import SettingsResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentPaymentStatus:
     """What a payer needs to know before paying for a piece of content."""
     content_id: str
     requires_payment: bool
     has_paid: bool
     payment_amount: Optional[Decimal] = None
     policy: Optional[TenantPaymentPolicy] = None


def get_paid_content(db: Session, tenant_id: Optional[str], content_id: str) -> Optional[PaidContent]:
     if tenant_id is None:
          return None
     return (
          db.query(PaidContent)
          .filter(PaidContent.tenant_id == tenant_id, PaidContent.content_id == content_id)
          .first()
     )


def requires_payment(db: Session, tenant_id: Optional[str], content_id: str) -> bool:
     content = get_paid_content(db, tenant_id, content_id)
     return content is None or content.requires_payment


def registered_price(db: Session, tenant_id: Optional[str], content_id: str) -> Optional[Decimal]:
     """Price of paid content, or None when free or not priced."""
     content = get_paid_content(db, tenant_id, content_id)
     if content is None or not content.requires_payment:
          return None
     return content.payment_amount


def save_paid_content(
     db: Session,
     tenant_id: str,
     content_id: str,
     requires_payment: bool,
     payment_amount: Optional[Decimal] = None,
     updated_by: Optional[str] = None,
) -> PaidContent:
     """
     Create or update the price of a piece of content. The caller commits.

     Raises:
          ValueError: If paid content has no positive amount.
     """
     if requires_payment and (payment_amount is None or Decimal(payment_amount) <= 0):
          raise ValueError("Paid content needs a positive payment amount")

     content = get_paid_content(db, tenant_id, content_id)
     if content is None:
          content = PaidContent(tenant_id=tenant_id, content_id=content_id)
          db.add(content)

     content.requires_payment = requires_payment
     content.payment_amount = payment_amount if requires_payment else None
     content.updated_by = updated_by
     db.flush()
     logger.info(
          "Content %s of tenant %s saved (requires_payment=%s)", content_id, tenant_id, requires_payment
     )
     return content


def get_payment_status(
     db: Session,
     resolver: SettingsResolver,
     tenant_id: Optional[str],
     payer_id: str,
     content_id: str,
) -> ContentPaymentStatus:
     """Price, payment state and the policy a payment would be verified against."""
     content = get_paid_content(db, tenant_id, content_id)
     if content is not None and not content.requires_payment:
          return ContentPaymentStatus(content_id=content_id, requires_payment=False, has_paid=True)

     return ContentPaymentStatus(
          content_id=content_id,
          requires_payment=True,
          has_paid=entitlement_recorder.has_entitlement(db, payer_id, content_id),
          payment_amount=content.payment_amount if content is not None else None,
          policy=resolver.resolve(db, tenant_id),
     )

# routers/payment_settings.py
"""
Tenant payment administration.

Organization admins and owners manage the wallet and confirmation policy
used for their paid content, set content prices, and review payments,
verification attempts and transfers arriving at the wallet.
All routes are scoped to the tenant in the session token.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import desc
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_settings_resolver, get_verification_service, require_tenant_admin
from models import PaymentAuditEntry, PaymentStatus
from schemas.payment import (
     EffectivePolicyResponse,
     IncomingTransferResponse,
     PaidContentResponse,
     PaidContentUpdate,
     PaymentAuditEntryResponse,
     PaymentRecordResponse,
     PaymentSettingsResponse,
     PaymentSettingsUpdate,
)
from services import content_pricing, entitlement_recorder, incoming_payments
from services.exceptions import InvalidFormatError, LedgerUnavailableError
from services.ledger_client import LedgerNetwork
from services.payment_service import PaymentVerificationService
from services.settings_resolver import SettingsResolver, get_tenant_settings, save_tenant_settings

router = APIRouter(prefix="/api/payments", tags=["payment-settings"])


@router.get(
     "/settings",
     response_model=PaymentSettingsResponse,
     summary="Get the organization's payment settings"
)
def get_payment_settings(
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_admin),
):
     settings = get_tenant_settings(db, token["tenant_id"])
     if settings is None:
          raise HTTPException(
               status_code=status.HTTP_404_NOT_FOUND,
               detail="No payment settings configured for this organization"
          )
     return settings


@router.put(
     "/settings",
     response_model=PaymentSettingsResponse,
     summary="Create or update the organization's payment settings"
)
def update_payment_settings(
     body: PaymentSettingsUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_admin),
     resolver: SettingsResolver = Depends(get_settings_resolver),
):
     """
     - **wallet_address**: recipient for payments to this organization
     - **enabled**: use these settings instead of the system default
     - **production_enabled**: accept payments on the production network
     - **minimum_confirmations**: confirmation depth required before access is granted
     """
     try:
          settings = save_tenant_settings(
               db,
               tenant_id=token["tenant_id"],
               wallet_address=body.wallet_address,
               enabled=body.enabled,
               production_enabled=body.production_enabled,
               minimum_confirmations=body.minimum_confirmations,
               updated_by=str(token["id"]),
          )
     except (InvalidFormatError, ValueError) as e:
          raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
     db.commit()
     resolver.invalidate(token["tenant_id"])
     db.refresh(settings)
     return settings


@router.get(
     "/settings/effective",
     response_model=EffectivePolicyResponse,
     summary="Policy applied to this organization's payments"
)
def get_effective_policy(
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_admin),
     resolver: SettingsResolver = Depends(get_settings_resolver),
):
     policy = resolver.resolve(db, token["tenant_id"])
     return EffectivePolicyResponse(
          recipient_address=policy.recipient_address,
          minimum_confirmations=policy.minimum_confirmations,
          production_enabled=policy.production_enabled,
          source=policy.source,
     )


@router.get(
     "/tenant-history",
     response_model=List[PaymentRecordResponse],
     summary="List payments to the organization"
)
def get_tenant_payment_history(
     status_filter: Optional[PaymentStatus] = Query(None, alias="status", description="Filter by status"),
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_admin),
):
     return entitlement_recorder.list_tenant_records(db, token["tenant_id"], status_filter)


@router.get(
     "/audit",
     response_model=List[PaymentAuditEntryResponse],
     summary="List verification attempts for the organization"
)
def get_payment_audit(
     fraud_only: bool = Query(False, description="Only attempts flagged as suspected fraud"),
     limit: int = Query(100, ge=1, le=500),
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_admin),
):
     query = db.query(PaymentAuditEntry).filter(PaymentAuditEntry.tenant_id == token["tenant_id"])
     if fraud_only:
          query = query.filter(PaymentAuditEntry.is_fraud_attempt.is_(True))
     return query.order_by(desc(PaymentAuditEntry.id)).limit(limit).all()


@router.put(
     "/content/{content_id}",
     response_model=PaidContentResponse,
     summary="Set whether content requires payment, and its price"
)
def update_paid_content(
     content_id: str,
     body: PaidContentUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_admin),
):
     try:
          content = content_pricing.save_paid_content(
               db,
               tenant_id=token["tenant_id"],
               content_id=content_id,
               requires_payment=body.requires_payment,
               payment_amount=body.payment_amount,
               updated_by=str(token["id"]),
          )
     except ValueError as e:
          raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
     db.commit()
     db.refresh(content)
     return content


@router.get(
     "/incoming",
     response_model=List[IncomingTransferResponse],
     summary="Recent transfers into the organization's wallet"
)
def get_incoming_transfers(
     network: LedgerNetwork = Query(..., description="Ledger network to inspect"),
     limit: int = Query(10, ge=1, le=50, description="Number of newest wallet transactions to inspect"),
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_admin),
     resolver: SettingsResolver = Depends(get_settings_resolver),
     service: PaymentVerificationService = Depends(get_verification_service),
):
     policy = resolver.resolve(db, token["tenant_id"])
     try:
          transfers = incoming_payments.list_incoming_transfers(
               db, service.verifier.ledger_client, network.value, policy.recipient_address, limit
          )
     except InvalidFormatError as e:
          raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
     except LedgerUnavailableError as e:
          raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
     return [
          IncomingTransferResponse(
               transaction_reference=t.reference,
               slot=t.slot,
               ledger_timestamp=t.ledger_timestamp,
               confirmations=t.confirmations,
               sender_address=t.sender_address,
               amount=t.amount,
               claimed=t.claimed,
          )
          for t in transfers
     ]

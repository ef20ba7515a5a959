# routers/payments.py
"""
Payment verification API.

POST /api/payments/verify: verify an on-chain payment and grant access to the content.
GET  /api/payments/entitlements/{content_id}: does the current user have access?
GET  /api/payments/status/{content_id}: price, payment state and where to pay.
GET  /api/payments/history: the current user's payment records.

Payer and tenant always come from the session token, never from the body.
Verification rejections are normal responses with a reason code; they are
not raised as HTTP errors.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_settings_resolver, get_verification_service, require_tenant, verify_token
from schemas.payment import (
     ContentPaymentStatusResponse,
     EntitlementResponse,
     PaymentRecordResponse,
     PaymentVerifyRequest,
     PaymentVerifyResponse,
)
from services import content_pricing, entitlement_recorder
from services.payment_service import PaymentOutcome, PaymentVerificationService
from services.payment_types import PaymentClaim
from services.reasons import is_retryable, message_for, retry_after_seconds
from services.settings_resolver import SettingsResolver

router = APIRouter(prefix="/api/payments", tags=["payments"])


def _build_verify_response(outcome: PaymentOutcome) -> PaymentVerifyResponse:
     result = outcome.result
     minimum = outcome.policy.minimum_confirmations if outcome.policy else None
     return PaymentVerifyResponse(
          verified=result.verified,
          reason=result.reason,
          message=message_for(result.reason) if result.reason else None,
          retryable=is_retryable(result.reason),
          retry_after_seconds=retry_after_seconds(result.reason, result.confirmations, minimum),
          amount=result.amount,
          confirmations=result.confirmations,
          status=outcome.record.status if outcome.record is not None else None,
     )


@router.post(
     "/verify",
     response_model=PaymentVerifyResponse,
     summary="Verify an on-chain payment",
)
def verify_payment(
     body: PaymentVerifyRequest,
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant),
     service: PaymentVerificationService = Depends(get_verification_service),
):
     """
     Verify that the transaction pays this organization's wallet from the given
     sender for at least the expected amount, then grant access to the content.

     Safe to call again with the same transaction after a transient failure or
     while waiting for confirmations.
     """
     claim = PaymentClaim(
          network=body.network.value,
          transaction_reference=body.transaction_reference,
          claimed_sender_address=body.sender_address,
          expected_amount=body.expected_amount,
          payer_id=str(token["id"]),
          content_id=body.content_id,
          tenant_id=token["tenant_id"],
     )
     outcome = service.verify_payment(db, claim)
     return _build_verify_response(outcome)


@router.get(
     "/entitlements/{content_id}",
     response_model=EntitlementResponse,
     summary="Check access to paid content",
)
def get_entitlement(
     content_id: str,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     requires_payment = content_pricing.requires_payment(db, token.get("tenant_id"), content_id)
     has_access = entitlement_recorder.has_entitlement(db, str(token["id"]), content_id, requires_payment)
     return EntitlementResponse(content_id=content_id, has_access=has_access)


@router.get(
     "/history",
     response_model=List[PaymentRecordResponse],
     summary="List the current user's payments",
)
def get_payment_history(
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     return entitlement_recorder.list_payer_records(db, str(token["id"]))


@router.get(
     "/status/{content_id}",
     response_model=ContentPaymentStatusResponse,
     summary="Price and payment state of content",
)
def get_content_payment_status(
     content_id: str,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
     resolver: SettingsResolver = Depends(get_settings_resolver),
):
     """
     Free content reports has_paid=true. For paid content the response also
     names the wallet and confirmation depth the payment will be checked against.
     """
     payment_status = content_pricing.get_payment_status(
          db, resolver, token.get("tenant_id"), str(token["id"]), content_id
     )
     response = ContentPaymentStatusResponse(
          content_id=content_id,
          requires_payment=payment_status.requires_payment,
          has_paid=payment_status.has_paid,
          payment_amount=payment_status.payment_amount,
     )
     if payment_status.policy is not None:
          response.recipient_address = payment_status.policy.recipient_address
          response.minimum_confirmations = payment_status.policy.minimum_confirmations
          response.production_enabled = payment_status.policy.production_enabled
     return response

# schemas/payment.py
"""
Pydantic schemas for the payment verification API.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from models import PaymentStatus
from services.ledger_client import LedgerNetwork
from services.reasons import RejectionReason


class PaymentVerifyRequest(BaseModel):
     """Request body for POST /api/payments/verify. Payer and tenant come from the session."""

     network: LedgerNetwork = Field(..., description="Ledger network the payment was sent on")
     transaction_reference: str = Field(
          ...,
          alias="transactionReference",
          min_length=1,
          max_length=128,
          description="Transaction signature as shown by the wallet",
     )
     sender_address: str = Field(
          ...,
          alias="senderAddress",
          min_length=1,
          max_length=64,
          description="Wallet address the payment was sent from",
     )
     expected_amount: Decimal = Field(..., alias="expectedAmount", gt=0, description="Price of the content")
     content_id: str = Field(..., alias="contentId", min_length=1, max_length=64)

     model_config = ConfigDict(
          populate_by_name=True,
          json_schema_extra={
               "example": {
                    "network": "test",
                    "transactionReference": "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW",
                    "senderAddress": "4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T",
                    "expectedAmount": 0.5,
                    "contentId": "assignment-42",
               }
          },
     )


class PaymentVerifyResponse(BaseModel):
     """Response for POST /api/payments/verify."""

     verified: bool
     reason: Optional[RejectionReason] = None
     message: Optional[str] = Field(None, description="Actionable message for the payer")
     retryable: bool = False
     retry_after_seconds: Optional[int] = Field(None, description="Suggested wait before retrying")
     amount: Optional[Decimal] = Field(None, description="Ledger-observed amount")
     confirmations: Optional[int] = None
     status: Optional[PaymentStatus] = Field(None, description="Stored payment record status, if any")

     model_config = ConfigDict(populate_by_name=True)


class EntitlementResponse(BaseModel):
     content_id: str
     has_access: bool


class PaymentRecordResponse(BaseModel):
     """A stored payment record."""

     id: int
     payer_id: str
     content_id: str
     tenant_id: Optional[str] = None
     network: str
     transaction_reference: str
     sender_address: str
     recipient_address: str
     amount: Optional[Decimal] = None
     status: PaymentStatus
     failure_reason: Optional[str] = None
     ledger_slot: Optional[int] = None
     ledger_timestamp: Optional[datetime] = None
     confirmations: Optional[int] = None
     created_at: datetime
     confirmed_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class PaymentSettingsUpdate(BaseModel):
     """Request body for PUT /api/payments/settings."""

     wallet_address: Optional[str] = Field(None, max_length=64, description="Recipient wallet for this tenant")
     enabled: bool = False
     production_enabled: bool = False
     minimum_confirmations: int = Field(1, ge=0, le=1000)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "wallet_address": "GJQUFnCu7ZJHbxvKZKMsnaYoi9goieCtkqZ5HXDqZxST",
                    "enabled": True,
                    "production_enabled": False,
                    "minimum_confirmations": 10,
               }
          }
     )


class PaymentSettingsResponse(BaseModel):
     tenant_id: str
     wallet_address: Optional[str] = None
     enabled: bool
     production_enabled: bool
     minimum_confirmations: int
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class EffectivePolicyResponse(BaseModel):
     """Policy actually applied to verifications for the tenant."""

     recipient_address: str
     minimum_confirmations: int
     production_enabled: bool
     source: str


class PaymentAuditEntryResponse(BaseModel):
     id: int
     payer_id: str
     content_id: str
     network: str
     transaction_reference: str
     verified: bool
     reason: Optional[str] = None
     is_fraud_attempt: bool
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)


class PaidContentUpdate(BaseModel):
     """Request body for PUT /api/payments/content/{content_id}."""

     requires_payment: bool = True
     payment_amount: Optional[Decimal] = Field(None, gt=0, description="Price in the native currency")

     model_config = ConfigDict(
          json_schema_extra={"example": {"requires_payment": True, "payment_amount": 0.5}}
     )


class PaidContentResponse(BaseModel):
     tenant_id: str
     content_id: str
     requires_payment: bool
     payment_amount: Optional[Decimal] = None
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class ContentPaymentStatusResponse(BaseModel):
     """Everything a payer needs before paying for a piece of content."""

     content_id: str
     requires_payment: bool
     has_paid: bool
     payment_amount: Optional[Decimal] = None
     recipient_address: Optional[str] = Field(None, description="Wallet the payment must be sent to")
     minimum_confirmations: Optional[int] = None
     production_enabled: Optional[bool] = None


class IncomingTransferResponse(BaseModel):
     """A native transfer into the organization's wallet."""

     transaction_reference: str
     slot: int
     ledger_timestamp: Optional[datetime] = None
     confirmations: int
     sender_address: str
     amount: Decimal
     claimed: bool = Field(..., description="A payment record already uses this transaction")

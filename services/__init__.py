# services/__init__.py
from .address_validator import validate_address, validate_reference, is_valid_address
from .exceptions import (
     PaymentVerificationError,
     InvalidFormatError,
     TransactionNotFoundError,
     LedgerUnavailableError,
)
from .ledger_client import LedgerClient, LedgerNetwork, LedgerTransaction, NativeTransfer
from .payment_service import PaymentOutcome, PaymentVerificationService
from .payment_types import PaymentClaim, TenantPaymentPolicy, VerificationResult
from .reasons import RejectionReason, message_for, is_retryable, retry_after_seconds
from .settings_resolver import SettingsResolver, save_tenant_settings
from .transaction_verifier import TransactionVerifier

__all__ = [
     "validate_address",
     "validate_reference",
     "is_valid_address",
     "PaymentVerificationError",
     "InvalidFormatError",
     "TransactionNotFoundError",
     "LedgerUnavailableError",
     "LedgerClient",
     "LedgerNetwork",
     "LedgerTransaction",
     "NativeTransfer",
     "PaymentOutcome",
     "PaymentVerificationService",
     "PaymentClaim",
     "TenantPaymentPolicy",
     "VerificationResult",
     "RejectionReason",
     "message_for",
     "is_retryable",
     "retry_after_seconds",
     "SettingsResolver",
     "save_tenant_settings",
     "TransactionVerifier",
]

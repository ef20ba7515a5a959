# services/exceptions.py
"""
Exceptions raised inside the payment verification services.

Each carries the RejectionReason it maps to; the orchestration layer turns
them into rejected VerificationResults, so none of them reaches the API
boundary as an opaque error.
"""
from .reasons import RejectionReason


class PaymentVerificationError(Exception):
     """Base class for verification failures."""
     reason = RejectionReason.TRANSIENT_ERROR

     def __init__(self, message: str = ""):
          super().__init__(message or self.reason.value)


class InvalidFormatError(PaymentVerificationError, ValueError):
     """Client input is malformed; not retryable without correction."""
     reason = RejectionReason.INVALID_FORMAT


class TransactionNotFoundError(PaymentVerificationError):
     """The ledger does not (yet) know the transaction."""
     reason = RejectionReason.NOT_FOUND


class LedgerUnavailableError(PaymentVerificationError):
     """Network, timeout or RPC failure while talking to the ledger."""
     reason = RejectionReason.TRANSIENT_ERROR

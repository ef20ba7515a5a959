# services/reasons.py
"""
Rejection reasons for payment verification.

Every way an attempt can fail has its own code so the client can tell the
payer exactly what to do next. Messages are safe to show to end users; in
particular TRANSACTION_ALREADY_USED says nothing about who used it.
"""
import enum
import math
from typing import Optional

from config import AVERAGE_SLOT_SECONDS


class RejectionReason(str, enum.Enum):
     INVALID_FORMAT = "INVALID_FORMAT"
     NOT_FOUND = "NOT_FOUND"
     TRANSIENT_ERROR = "TRANSIENT_ERROR"
     TRANSACTION_FAILED = "TRANSACTION_FAILED"
     WRONG_RECIPIENT = "WRONG_RECIPIENT"
     SENDER_MISMATCH = "SENDER_MISMATCH"
     INSUFFICIENT_AMOUNT = "INSUFFICIENT_AMOUNT"
     INSUFFICIENT_CONFIRMATIONS = "INSUFFICIENT_CONFIRMATIONS"
     TRANSACTION_ALREADY_USED = "TRANSACTION_ALREADY_USED"
     ALREADY_ENTITLED = "ALREADY_ENTITLED"
     NETWORK_NOT_ENABLED = "NETWORK_NOT_ENABLED"


REASON_MESSAGES = {
     RejectionReason.INVALID_FORMAT: "The wallet address or transaction signature is malformed. Check it and submit again.",
     RejectionReason.NOT_FOUND: "The transaction was not found on the selected network yet. Check the network and try again in a moment.",
     RejectionReason.TRANSIENT_ERROR: "The ledger could not be reached. Please try again shortly.",
     RejectionReason.TRANSACTION_FAILED: "The transaction failed on the ledger and did not transfer any funds.",
     RejectionReason.WRONG_RECIPIENT: "The transaction was not sent to this organization's payment address.",
     RejectionReason.SENDER_MISMATCH: "The transaction was not sent from the wallet address you entered.",
     RejectionReason.INSUFFICIENT_AMOUNT: "The transaction amount is lower than the price of this content.",
     RejectionReason.INSUFFICIENT_CONFIRMATIONS: "The transaction is not final yet. Wait for more confirmations and try again.",
     RejectionReason.TRANSACTION_ALREADY_USED: "This transaction has already been used for another purchase.",
     RejectionReason.ALREADY_ENTITLED: "You already have access to this content.",
     RejectionReason.NETWORK_NOT_ENABLED: "Payments on this network are not enabled for this organization.",
}

# Retrying the same input later can succeed for these
RETRYABLE_REASONS = frozenset({
     RejectionReason.NOT_FOUND,
     RejectionReason.TRANSIENT_ERROR,
     RejectionReason.INSUFFICIENT_CONFIRMATIONS,
})

# These do not move a claimed record to FAILED
TRANSIENT_REASONS = frozenset({
     RejectionReason.NOT_FOUND,
     RejectionReason.TRANSIENT_ERROR,
})

FRAUD_REASONS = frozenset({
     RejectionReason.TRANSACTION_ALREADY_USED,
     RejectionReason.SENDER_MISMATCH,
})

MIN_RETRY_AFTER_SECONDS = 5


def message_for(reason: RejectionReason) -> str:
     return REASON_MESSAGES[reason]


def is_retryable(reason: Optional[RejectionReason]) -> bool:
     return reason in RETRYABLE_REASONS


def retry_after_seconds(
     reason: Optional[RejectionReason],
     confirmations: Optional[int] = None,
     minimum_confirmations: Optional[int] = None,
) -> Optional[int]:
     """
     Suggested wait before retrying, in seconds.

     Only INSUFFICIENT_CONFIRMATIONS gets an estimate, derived from the
     number of slots still missing.
     """
     if reason != RejectionReason.INSUFFICIENT_CONFIRMATIONS:
          return None
     missing = max(0, (minimum_confirmations or 0) - (confirmations or 0))
     return max(MIN_RETRY_AFTER_SECONDS, math.ceil(missing * AVERAGE_SLOT_SECONDS))

# services/transaction_verifier.py
"""
Transaction Verifier - checks one payment claim against the ledger.

Order of checks:
1. Fetch the transaction (transient failures retried with backoff)
2. Transaction succeeded on-chain
3. A transfer reaches the policy's recipient address exactly
4. That transfer comes from the claimed sender
5. Observed amount >= expected amount (overpayment accepted)
6. confirmations = current slot - transaction slot >= policy minimum

Ledger state is never cached beyond a single call to verify().
"""
import logging
import time
from decimal import Decimal
from typing import Callable

from config import LEDGER_MAX_RETRIES, LEDGER_RETRY_BACKOFF_SECONDS
from .exceptions import LedgerUnavailableError, PaymentVerificationError
from .ledger_client import LedgerClient
from .payment_types import PaymentClaim, TenantPaymentPolicy, VerificationResult
from .reasons import RejectionReason

logger = logging.getLogger(__name__)


class TransactionVerifier:
     """Verifies a PaymentClaim against a TenantPaymentPolicy using a LedgerClient."""

     def __init__(
          self,
          ledger_client: LedgerClient,
          max_retries: int = LEDGER_MAX_RETRIES,
          backoff_seconds: float = LEDGER_RETRY_BACKOFF_SECONDS,
          sleep: Callable[[float], None] = time.sleep,
     ):
          self.ledger_client = ledger_client
          self.max_retries = max(0, max_retries)
          self.backoff_seconds = backoff_seconds
          self.sleep = sleep

     def _with_retries(self, operation: str, call: Callable):
          """Run a ledger call, retrying LedgerUnavailableError up to max_retries times."""
          attempt = 0
          while True:
               try:
                    return call()
               except LedgerUnavailableError as e:
                    if attempt >= self.max_retries:
                         logger.warning("%s failed after %d attempts: %s", operation, attempt + 1, e)
                         raise
                    delay = self.backoff_seconds * (2 ** attempt)
                    attempt += 1
                    logger.info("%s failed (%s), retry %d/%d in %.2fs", operation, e, attempt, self.max_retries, delay)
                    self.sleep(delay)

     def verify(self, claim: PaymentClaim, policy: TenantPaymentPolicy) -> VerificationResult:
          """
          Verify a claim. Never raises for ledger problems; every failure is a
          rejected VerificationResult with a specific reason.
          """
          try:
               transaction = self._with_retries(
                    "getTransaction",
                    lambda: self.ledger_client.fetch_transaction(claim.network, claim.transaction_reference),
               )
          except PaymentVerificationError as e:
               return VerificationResult.rejected(e.reason)

          if not transaction.succeeded:
               return VerificationResult.rejected(
                    RejectionReason.TRANSACTION_FAILED,
                    ledger_slot=transaction.slot,
                    ledger_timestamp=transaction.timestamp,
               )

          to_recipient = transaction.transfers_to(policy.recipient_address)
          if not to_recipient:
               logger.info(
                    "Transaction %s... does not pay recipient %s",
                    claim.transaction_reference[:16], policy.recipient_address,
               )
               return VerificationResult.rejected(
                    RejectionReason.WRONG_RECIPIENT,
                    sender_address=transaction.fee_payer,
                    ledger_slot=transaction.slot,
                    ledger_timestamp=transaction.timestamp,
               )

          from_sender = [t for t in to_recipient if t.source == claim.claimed_sender_address]
          if not from_sender:
               return VerificationResult.rejected(
                    RejectionReason.SENDER_MISMATCH,
                    sender_address=to_recipient[0].source,
                    recipient_address=policy.recipient_address,
                    ledger_slot=transaction.slot,
                    ledger_timestamp=transaction.timestamp,
               )

          amount = sum((t.amount for t in from_sender), Decimal(0))
          observed = dict(
               sender_address=claim.claimed_sender_address,
               recipient_address=policy.recipient_address,
               amount=amount,
               ledger_slot=transaction.slot,
               ledger_timestamp=transaction.timestamp,
          )
          if amount < Decimal(claim.expected_amount):
               return VerificationResult.rejected(RejectionReason.INSUFFICIENT_AMOUNT, **observed)

          try:
               current_slot = self._with_retries(
                    "getSlot",
                    lambda: self.ledger_client.current_slot(claim.network),
               )
          except PaymentVerificationError as e:
               return VerificationResult.rejected(e.reason, **observed)

          confirmations = max(0, current_slot - transaction.slot)
          if confirmations < policy.minimum_confirmations:
               return VerificationResult.rejected(
                    RejectionReason.INSUFFICIENT_CONFIRMATIONS,
                    confirmations=confirmations,
                    **observed,
               )

          return VerificationResult(verified=True, confirmations=confirmations, **observed)

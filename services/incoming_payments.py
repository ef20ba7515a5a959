# services/incoming_payments.py
"""
Incoming Payments - recent native transfers into a tenant wallet.

Lets an administrator see payments that reached the wallet, how deep they
are, and whether a payer has already claimed them. Read-only; nothing is
written.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from models import PaymentRecord
from .address_validator import validate_address
from .exceptions import TransactionNotFoundError
from .ledger_client import lamports_to_sol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncomingTransfer:
     reference: str
     slot: int
     ledger_timestamp: Optional[datetime]
     confirmations: int
     sender_address: str
     amount: Decimal
     claimed: bool


def list_incoming_transfers(
     db: Session,
     ledger_client,
     network,
     wallet_address: str,
     limit: int = 10,
) -> List[IncomingTransfer]:
     """
     Successful transfers into wallet_address among its newest `limit` transactions,
     one entry per sender and transaction.

     Raises:
          InvalidFormatError: If the wallet address or network is malformed.
          LedgerUnavailableError: If the ledger cannot be queried.
     """
     validate_address(wallet_address, field="wallet address")
     signatures = ledger_client.recent_references(network, wallet_address, limit)
     if not signatures:
          return []
     current_slot = ledger_client.current_slot(network)

     references = [s.reference for s in signatures]
     claimed = {
          reference
          for (reference,) in db.query(PaymentRecord.transaction_reference)
          .filter(PaymentRecord.transaction_reference.in_(references))
          .all()
     }

     incoming = []
     for signature in signatures:
          if not signature.succeeded:
               continue
          try:
               transaction = ledger_client.fetch_transaction(network, signature.reference)
          except TransactionNotFoundError:
               logger.debug("Skipping %s...: not returned by the node", signature.reference[:16])
               continue

          lamports_by_sender = {}
          for transfer in transaction.transfers_to(wallet_address):
               lamports_by_sender[transfer.source] = lamports_by_sender.get(transfer.source, 0) + transfer.lamports

          for sender, lamports in lamports_by_sender.items():
               incoming.append(IncomingTransfer(
                    reference=transaction.reference,
                    slot=transaction.slot,
                    ledger_timestamp=transaction.timestamp,
                    confirmations=max(0, current_slot - transaction.slot),
                    sender_address=sender,
                    amount=lamports_to_sol(lamports),
                    claimed=transaction.reference in claimed,
               ))
     return incoming

# services/ledger_client.py
"""
Ledger Client - read-only JSON-RPC access to a Solana cluster.

Each network name maps to its own RPC endpoint:
     production -> mainnet-beta, staging -> devnet, test -> testnet
A transaction reference is only meaningful on the network it was sent to.

Queries:
1. getTransaction (jsonParsed) -> LedgerTransaction with native transfers
2. getSlot -> current slot, for confirmation depth
3. getSignaturesForAddress -> recent references touching a wallet

Errors:
- TransactionNotFoundError: the node returned null (maybe not indexed yet)
- LedgerUnavailableError: timeout, connection/HTTP error, RPC error, bad payload
Both are retryable by the caller.
"""
import enum
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import requests
from solders.system_program import ID as SYSTEM_PROGRAM

from config import LAMPORTS_PER_SOL, LEDGER_RPC_TIMEOUT_SECONDS, LEDGER_RPC_URLS
from .exceptions import InvalidFormatError, LedgerUnavailableError, TransactionNotFoundError

logger = logging.getLogger(__name__)

SYSTEM_PROGRAM_ID = str(SYSTEM_PROGRAM)
TRANSFER_INSTRUCTION_TYPES = ("transfer", "transferWithSeed")
COMMITMENT = "confirmed"


class LedgerNetwork(str, enum.Enum):
     PRODUCTION = "production"
     STAGING = "staging"
     TEST = "test"


@dataclass(frozen=True)
class NativeTransfer:
     """A System Program transfer of native currency."""
     source: str
     destination: str
     lamports: int

     @property
     def amount(self) -> Decimal:
          return lamports_to_sol(self.lamports)


@dataclass(frozen=True)
class LedgerTransaction:
     """The parts of an on-chain transaction needed to verify a payment."""
     reference: str
     slot: int
     block_time: Optional[int]
     succeeded: bool
     fee_payer: Optional[str]
     transfers: tuple = field(default_factory=tuple)

     @property
     def timestamp(self) -> Optional[datetime]:
          if self.block_time is None:
               return None
          return datetime.fromtimestamp(self.block_time, tz=timezone.utc).replace(tzinfo=None)

     def transfers_to(self, recipient: str) -> list:
          return [t for t in self.transfers if t.destination == recipient]


@dataclass(frozen=True)
class SignatureInfo:
     """One entry of getSignaturesForAddress."""
     reference: str
     slot: int
     block_time: Optional[int]
     succeeded: bool


def lamports_to_sol(lamports: int) -> Decimal:
     return Decimal(lamports) / LAMPORTS_PER_SOL


def parse_network(network) -> LedgerNetwork:
     try:
          return LedgerNetwork(network)
     except ValueError:
          raise InvalidFormatError(f"Unknown network: {network!r}")


def _account_key(entry) -> Optional[str]:
     # jsonParsed returns {"pubkey": ...}; plain json returns the key itself
     if isinstance(entry, dict):
          return entry.get("pubkey")
     return entry


def _parse_transfers(result: dict) -> tuple:
     message = result["transaction"]["message"]
     instructions = list(message.get("instructions") or [])
     for inner in (result.get("meta") or {}).get("innerInstructions") or []:
          instructions.extend(inner.get("instructions") or [])

     transfers = []
     for instruction in instructions:
          if instruction.get("programId") != SYSTEM_PROGRAM_ID:
               continue
          parsed = instruction.get("parsed")
          if not isinstance(parsed, dict) or parsed.get("type") not in TRANSFER_INSTRUCTION_TYPES:
               continue
          info = parsed.get("info") or {}
          transfers.append(
               NativeTransfer(
                    source=info["source"],
                    destination=info["destination"],
                    lamports=int(info["lamports"]),
               )
          )
     return tuple(transfers)


def parse_transaction(reference: str, result: dict) -> LedgerTransaction:
     """
     Build a LedgerTransaction from a jsonParsed getTransaction result.

     Raises:
          LedgerUnavailableError: If the payload does not have the expected shape.
     """
     try:
          account_keys = result["transaction"]["message"].get("accountKeys") or []
          meta = result.get("meta") or {}
          return LedgerTransaction(
               reference=reference,
               slot=int(result["slot"]),
               block_time=result.get("blockTime"),
               succeeded=meta.get("err") is None,
               fee_payer=_account_key(account_keys[0]) if account_keys else None,
               transfers=_parse_transfers(result),
          )
     except (KeyError, TypeError, ValueError) as e:
          raise LedgerUnavailableError(f"Malformed transaction payload: {e}")


class LedgerClient:
     """Read-only Solana JSON-RPC client, one endpoint per network."""

     def __init__(
          self,
          endpoints: Optional[dict] = None,
          timeout: float = LEDGER_RPC_TIMEOUT_SECONDS,
          session: Optional[requests.Session] = None,
     ):
          self.endpoints = dict(endpoints or LEDGER_RPC_URLS)
          self.timeout = timeout
          self.session = session or requests.Session()
          self._ids = itertools.count(1)

     def endpoint_for(self, network) -> str:
          network = parse_network(network)
          try:
               return self.endpoints[network.value]
          except KeyError:
               raise InvalidFormatError(f"No RPC endpoint configured for network {network.value!r}")

     def _rpc(self, network, method: str, params: list):
          url = self.endpoint_for(network)
          payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
          try:
               response = self.session.post(url, json=payload, timeout=self.timeout)
          except requests.Timeout:
               raise LedgerUnavailableError(f"{method} timed out after {self.timeout}s")
          except requests.RequestException as e:
               raise LedgerUnavailableError(f"{method} request failed: {e}")

          if response.status_code != 200:
               raise LedgerUnavailableError(f"{method} returned HTTP {response.status_code}")
          try:
               body = response.json()
          except ValueError:
               raise LedgerUnavailableError(f"{method} returned a non-JSON body")

          if not isinstance(body, dict):
               raise LedgerUnavailableError(f"{method} returned an unexpected body")
          if body.get("error"):
               error = body["error"]
               message = error.get("message") if isinstance(error, dict) else error
               raise LedgerUnavailableError(f"{method} RPC error: {message}")
          return body.get("result")

     def fetch_transaction(self, network, reference: str) -> LedgerTransaction:
          """
          Fetch a transaction by reference.

          Raises:
               TransactionNotFoundError: If the node does not know the transaction.
               LedgerUnavailableError: On any network or RPC failure.
          """
          result = self._rpc(
               network,
               "getTransaction",
               [
                    reference,
                    {
                         "encoding": "jsonParsed",
                         "commitment": COMMITMENT,
                         "maxSupportedTransactionVersion": 0,
                    },
               ],
          )
          if result is None:
               raise TransactionNotFoundError(f"Transaction {reference[:16]}... not found")
          logger.debug("Fetched transaction %s... at slot %s", reference[:16], result.get("slot"))
          return parse_transaction(reference, result)

     def current_slot(self, network) -> int:
          result = self._rpc(network, "getSlot", [{"commitment": COMMITMENT}])
          try:
               return int(result)
          except (TypeError, ValueError):
               raise LedgerUnavailableError(f"getSlot returned {result!r}")

     def recent_references(self, network, address: str, limit: int = 10) -> list:
          """
          Newest transaction signatures that touch an address.

          Raises:
               LedgerUnavailableError: On any network or RPC failure.
          """
          result = self._rpc(
               network,
               "getSignaturesForAddress",
               [address, {"limit": limit, "commitment": COMMITMENT}],
          )
          if not isinstance(result, list):
               raise LedgerUnavailableError(f"getSignaturesForAddress returned {result!r}")
          try:
               return [
                    SignatureInfo(
                         reference=entry["signature"],
                         slot=int(entry["slot"]),
                         block_time=entry.get("blockTime"),
                         succeeded=entry.get("err") is None,
                    )
                    for entry in result
               ]
          except (KeyError, TypeError, ValueError) as e:
               raise LedgerUnavailableError(f"Malformed signature list: {e}")

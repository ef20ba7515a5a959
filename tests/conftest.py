# tests/conftest.py
import os

# Configuration is read at import time; set it before any project import
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DEFAULT_RECIPIENT_ADDRESS"] = "1" * 31 + "D"
os.environ["DEFAULT_MINIMUM_CONFIRMATIONS"] = "10"
os.environ["DEFAULT_PRODUCTION_ENABLED"] = "true"
os.environ["POLICY_CACHE_TTL_SECONDS"] = "0"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from database import SessionLocal, engine, init_db
from dependencies import create_token, get_verification_service
from main import app
from models import Base
from services.exceptions import TransactionNotFoundError
from services.ledger_client import LedgerTransaction, NativeTransfer, SignatureInfo
from services.payment_service import PaymentVerificationService
from services.payment_types import PaymentClaim, TenantPaymentPolicy
from services.settings_resolver import SettingsResolver
from services.transaction_verifier import TransactionVerifier


def make_address(tag: str) -> str:
     """Valid base58 address: 31 zero bytes followed by one tag byte."""
     return "1" * 31 + tag


def make_reference(tag: str) -> str:
     """Valid base58 signature: 63 zero bytes followed by one tag byte."""
     return "1" * 63 + tag


DEFAULT_RECIPIENT = make_address("D")
TENANT_RECIPIENT = make_address("T")
SENDER = make_address("S")
OTHER_SENDER = make_address("X")
TENANT_ID = "org-1"


class FakeLedgerClient:
     """In-memory ledger: transactions keyed by (network, reference) and a settable slot."""

     def __init__(self, slot: int = 0):
          self.transactions = {}
          self.slot = slot
          self.fetch_errors = []
          self.slot_errors = []
          self.fetch_calls = 0
          self.slot_calls = 0
          self.listing_errors = []

     def add_transaction(
          self,
          reference: str,
          sender: str = SENDER,
          recipient: str = DEFAULT_RECIPIENT,
          amount="0.5",
          slot: int = 100,
          network: str = "test",
          succeeded: bool = True,
          block_time: int = 1_700_000_000,
     ) -> LedgerTransaction:
          lamports = int(Decimal(amount) * Decimal(1_000_000_000))
          transaction = LedgerTransaction(
               reference=reference,
               slot=slot,
               block_time=block_time,
               succeeded=succeeded,
               fee_payer=sender,
               transfers=(NativeTransfer(source=sender, destination=recipient, lamports=lamports),),
          )
          self.transactions[(network, reference)] = transaction
          return transaction

     def fetch_transaction(self, network, reference):
          self.fetch_calls += 1
          if self.fetch_errors:
               raise self.fetch_errors.pop(0)
          try:
               return self.transactions[(str(network), reference)]
          except KeyError:
               raise TransactionNotFoundError(reference)

     def current_slot(self, network):
          self.slot_calls += 1
          if self.slot_errors:
               raise self.slot_errors.pop(0)
          return self.slot

     def recent_references(self, network, address, limit=10):
          if self.listing_errors:
               raise self.listing_errors.pop(0)
          touching = [
               t for (net, _), t in self.transactions.items()
               if net == str(network) and any(address in (x.source, x.destination) for x in t.transfers)
          ]
          touching.sort(key=lambda t: t.slot, reverse=True)
          return [
               SignatureInfo(reference=t.reference, slot=t.slot, block_time=t.block_time, succeeded=t.succeeded)
               for t in touching[:limit]
          ]


@pytest.fixture
def db_session():
     """Fresh schema per test on the shared in-memory SQLite engine."""
     init_db()
     session = SessionLocal()
     try:
          yield session
     finally:
          session.close()
          Base.metadata.drop_all(bind=engine)


@pytest.fixture
def ledger() -> FakeLedgerClient:
     return FakeLedgerClient(slot=112)


@pytest.fixture
def verifier(ledger) -> TransactionVerifier:
     return TransactionVerifier(ledger, max_retries=2, backoff_seconds=0.01, sleep=lambda seconds: None)


@pytest.fixture
def resolver() -> SettingsResolver:
     return SettingsResolver(ttl_seconds=0)


@pytest.fixture
def service(verifier, resolver) -> PaymentVerificationService:
     return PaymentVerificationService(verifier, resolver)


@pytest.fixture
def policy() -> TenantPaymentPolicy:
     return TenantPaymentPolicy(
          tenant_id=TENANT_ID,
          recipient_address=DEFAULT_RECIPIENT,
          minimum_confirmations=10,
     )


@pytest.fixture
def make_claim():
     def _make_claim(**overrides) -> PaymentClaim:
          values = dict(
               network="test",
               transaction_reference=make_reference("A"),
               claimed_sender_address=SENDER,
               expected_amount=Decimal("0.5"),
               payer_id="U1",
               content_id="C1",
               tenant_id=TENANT_ID,
          )
          values.update(overrides)
          return PaymentClaim(**values)
     return _make_claim


@pytest.fixture
def client(db_session, service):
     app.dependency_overrides[get_verification_service] = lambda: service
     try:
          with TestClient(app) as test_client:
               yield test_client
     finally:
          app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
     def _auth_headers(user_id="U1", tenant_id=TENANT_ID, role="member") -> dict:
          return {"Authorization": f"Bearer {create_token(user_id, tenant_id, role)}"}
     return _auth_headers

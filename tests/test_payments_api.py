# tests/test_payments_api.py
from decimal import Decimal

import pytest

from dependencies import get_settings_resolver
from main import app
from services.exceptions import LedgerUnavailableError
from services.settings_resolver import SettingsResolver
from tests.conftest import DEFAULT_RECIPIENT, OTHER_SENDER, SENDER, TENANT_RECIPIENT, make_reference

REFERENCE = make_reference("A")


def verify_body(**overrides):
     body = {
          "network": "test",
          "transactionReference": REFERENCE,
          "senderAddress": SENDER,
          "expectedAmount": "0.5",
          "contentId": "C1",
     }
     body.update(overrides)
     return body


class TestVerifyPayment:
     def test_requires_token(self, client):
          response = client.post("/api/payments/verify", json=verify_body())
          assert response.status_code == 401

     def test_rejects_invalid_token(self, client):
          response = client.post(
               "/api/payments/verify",
               json=verify_body(),
               headers={"Authorization": "Bearer not-a-jwt"},
          )
          assert response.status_code == 403

     def test_requires_tenant_in_session(self, client, auth_headers):
          response = client.post("/api/payments/verify", json=verify_body(), headers=auth_headers(tenant_id=None))
          assert response.status_code == 403

     def test_verified_payment_grants_access(self, client, ledger, auth_headers):
          ledger.add_transaction(REFERENCE, amount="0.5")

          response = client.post("/api/payments/verify", json=verify_body(), headers=auth_headers())

          assert response.status_code == 200
          data = response.json()
          assert data["verified"] is True
          assert data["reason"] is None
          assert data["status"] == "CONFIRMED"
          assert Decimal(str(data["amount"])) == Decimal("0.5")
          assert data["confirmations"] == 12

          access = client.get("/api/payments/entitlements/C1", headers=auth_headers())
          assert access.json() == {"content_id": "C1", "has_access": True}

     def test_snake_case_body_is_accepted(self, client, ledger, auth_headers):
          ledger.add_transaction(REFERENCE)
          body = {
               "network": "test",
               "transaction_reference": REFERENCE,
               "sender_address": SENDER,
               "expected_amount": "0.5",
               "content_id": "C1",
          }
          response = client.post("/api/payments/verify", json=body, headers=auth_headers())
          assert response.json()["verified"] is True

     def test_rejection_is_reported_in_body(self, client, ledger, auth_headers):
          ledger.add_transaction(REFERENCE, slot=100)
          ledger.slot = 104

          response = client.post("/api/payments/verify", json=verify_body(), headers=auth_headers())

          assert response.status_code == 200
          data = response.json()
          assert data["verified"] is False
          assert data["reason"] == "INSUFFICIENT_CONFIRMATIONS"
          assert data["retryable"] is True
          assert data["retry_after_seconds"] == 5
          assert data["message"]
          assert data["status"] is None

     def test_reused_transaction_does_not_reveal_owner(self, client, ledger, auth_headers):
          ledger.add_transaction(REFERENCE)
          client.post("/api/payments/verify", json=verify_body(), headers=auth_headers("U1"))

          response = client.post("/api/payments/verify", json=verify_body(), headers=auth_headers("U2"))

          data = response.json()
          assert data["reason"] == "TRANSACTION_ALREADY_USED"
          assert data["retryable"] is False
          assert "U1" not in response.text

          access = client.get("/api/payments/entitlements/C1", headers=auth_headers("U2"))
          assert access.json()["has_access"] is False

     def test_malformed_address_is_invalid_format(self, client, ledger, auth_headers):
          response = client.post(
               "/api/payments/verify",
               json=verify_body(senderAddress="0OIl-not-base58"),
               headers=auth_headers(),
          )
          assert response.json()["reason"] == "INVALID_FORMAT"
          assert ledger.fetch_calls == 0

     @pytest.mark.parametrize("overrides", [
          {"network": "mainnet-beta"},
          {"expectedAmount": "0"},
          {"expectedAmount": "-1"},
          {"contentId": ""},
     ])
     def test_schema_violations_are_422(self, client, auth_headers, overrides):
          response = client.post("/api/payments/verify", json=verify_body(**overrides), headers=auth_headers())
          assert response.status_code == 422


class TestHistory:
     def test_history_lists_own_records(self, client, ledger, auth_headers):
          ledger.add_transaction(REFERENCE)
          client.post("/api/payments/verify", json=verify_body(), headers=auth_headers("U1"))

          mine = client.get("/api/payments/history", headers=auth_headers("U1")).json()
          theirs = client.get("/api/payments/history", headers=auth_headers("U2")).json()

          assert len(mine) == 1
          assert mine[0]["transaction_reference"] == REFERENCE
          assert mine[0]["status"] == "CONFIRMED"
          assert theirs == []

     def test_entitlement_without_payment(self, client, auth_headers):
          response = client.get("/api/payments/entitlements/C9", headers=auth_headers())
          assert response.json()["has_access"] is False


class TestPaymentSettings:
     def settings_body(self, **overrides):
          body = {
               "wallet_address": TENANT_RECIPIENT,
               "enabled": True,
               "production_enabled": False,
               "minimum_confirmations": 5,
          }
          body.update(overrides)
          return body

     def test_members_cannot_manage_settings(self, client, auth_headers):
          assert client.get("/api/payments/settings", headers=auth_headers()).status_code == 403
          response = client.put("/api/payments/settings", json=self.settings_body(), headers=auth_headers())
          assert response.status_code == 403

     def test_settings_lifecycle(self, client, auth_headers):
          admin = auth_headers("A1", role="admin")
          assert client.get("/api/payments/settings", headers=admin).status_code == 404
          assert client.get("/api/payments/settings/effective", headers=admin).json()["source"] == "default"

          response = client.put("/api/payments/settings", json=self.settings_body(), headers=admin)
          assert response.status_code == 200
          assert response.json()["wallet_address"] == TENANT_RECIPIENT

          stored = client.get("/api/payments/settings", headers=admin).json()
          assert stored["minimum_confirmations"] == 5
          effective = client.get("/api/payments/settings/effective", headers=admin).json()
          assert effective == {
               "recipient_address": TENANT_RECIPIENT,
               "minimum_confirmations": 5,
               "production_enabled": False,
               "source": "tenant",
          }

     @pytest.mark.parametrize("overrides", [
          {"wallet_address": "not-a-wallet"},
          {"wallet_address": None},
     ])
     def test_invalid_settings_are_400(self, client, auth_headers, overrides):
          response = client.put(
               "/api/payments/settings",
               json=self.settings_body(**overrides),
               headers=auth_headers("A1", role="owner"),
          )
          assert response.status_code == 400

     def test_tenant_wallet_is_used_for_verification(self, client, ledger, auth_headers):
          client.put("/api/payments/settings", json=self.settings_body(), headers=auth_headers("A1", role="admin"))
          ledger.add_transaction(REFERENCE, recipient=TENANT_RECIPIENT, slot=100)
          ledger.slot = 105

          data = client.post("/api/payments/verify", json=verify_body(), headers=auth_headers()).json()

          assert data["verified"] is True
          assert data["confirmations"] == 5

     def test_saved_settings_replace_cached_policy(self, client, auth_headers):
          cached = SettingsResolver(ttl_seconds=60)
          app.dependency_overrides[get_settings_resolver] = lambda: cached
          admin = auth_headers("A1", role="admin")
          assert client.get("/api/payments/settings/effective", headers=admin).json()["source"] == "default"

          client.put("/api/payments/settings", json=self.settings_body(), headers=admin)

          effective = client.get("/api/payments/settings/effective", headers=admin).json()
          assert effective["source"] == "tenant"
          assert effective["recipient_address"] == TENANT_RECIPIENT


class TestContentPricing:
     def price(self, client, auth_headers, content_id="C1", **body):
          return client.put(
               f"/api/payments/content/{content_id}",
               json=body or {"requires_payment": True, "payment_amount": "0.5"},
               headers=auth_headers("A1", role="admin"),
          )

     def test_members_cannot_set_prices(self, client, auth_headers):
          response = client.put("/api/payments/content/C1", json={"requires_payment": False}, headers=auth_headers())
          assert response.status_code == 403

     def test_paid_content_without_amount_is_400(self, client, auth_headers):
          assert self.price(client, auth_headers, requires_payment=True).status_code == 400

     def test_free_content_is_accessible_without_payment(self, client, auth_headers):
          assert self.price(client, auth_headers, "C9", requires_payment=False).status_code == 200

          entitlement = client.get("/api/payments/entitlements/C9", headers=auth_headers()).json()
          status = client.get("/api/payments/status/C9", headers=auth_headers()).json()

          assert entitlement["has_access"] is True
          assert status["requires_payment"] is False
          assert status["has_paid"] is True
          assert status["recipient_address"] is None

     def test_status_of_paid_content(self, client, ledger, auth_headers):
          response = self.price(client, auth_headers)
          assert Decimal(response.json()["payment_amount"]) == Decimal("0.5")

          before = client.get("/api/payments/status/C1", headers=auth_headers()).json()
          ledger.add_transaction(REFERENCE)
          client.post("/api/payments/verify", json=verify_body(), headers=auth_headers())
          after = client.get("/api/payments/status/C1", headers=auth_headers()).json()

          assert before["requires_payment"] is True
          assert before["has_paid"] is False
          assert Decimal(before["payment_amount"]) == Decimal("0.5")
          assert before["recipient_address"] == DEFAULT_RECIPIENT
          assert before["minimum_confirmations"] == 10
          assert after["has_paid"] is True

     def test_offer_below_price_is_rejected(self, client, ledger, auth_headers):
          self.price(client, auth_headers, requires_payment=True, payment_amount="2")
          ledger.add_transaction(REFERENCE)

          data = client.post("/api/payments/verify", json=verify_body(), headers=auth_headers()).json()

          assert data["verified"] is False
          assert data["reason"] == "INSUFFICIENT_AMOUNT"


class TestIncomingTransfers:
     def test_lists_transfers_with_claim_state(self, client, ledger, auth_headers):
          ledger.add_transaction(REFERENCE)
          ledger.add_transaction(make_reference("B"), sender=OTHER_SENDER, slot=105)
          client.post("/api/payments/verify", json=verify_body(), headers=auth_headers())

          response = client.get("/api/payments/incoming?network=test", headers=auth_headers("A1", role="admin"))

          assert response.status_code == 200
          rows = {row["transaction_reference"]: row for row in response.json()}
          assert rows[REFERENCE]["claimed"] is True
          assert rows[REFERENCE]["confirmations"] == 12
          assert rows[make_reference("B")]["claimed"] is False
          assert rows[make_reference("B")]["sender_address"] == OTHER_SENDER

     def test_requires_admin(self, client, auth_headers):
          assert client.get("/api/payments/incoming?network=test", headers=auth_headers()).status_code == 403

     def test_ledger_outage_is_503(self, client, ledger, auth_headers):
          ledger.listing_errors.append(LedgerUnavailableError("node down"))
          response = client.get("/api/payments/incoming?network=test", headers=auth_headers("A1", role="admin"))
          assert response.status_code == 503


class TestTenantReview:
     def test_tenant_history_and_audit(self, client, ledger, auth_headers):
          admin = auth_headers("A1", role="admin")
          ledger.add_transaction(REFERENCE)
          client.post("/api/payments/verify", json=verify_body(), headers=auth_headers("U1"))
          client.post("/api/payments/verify", json=verify_body(), headers=auth_headers("U2"))
          client.post(
               "/api/payments/verify",
               json=verify_body(transactionReference=make_reference("B"), senderAddress=OTHER_SENDER),
               headers=auth_headers("U3"),
          )

          history = client.get("/api/payments/tenant-history", headers=admin).json()
          assert [r["payer_id"] for r in history] == ["U1"]
          assert client.get("/api/payments/tenant-history?status=FAILED", headers=admin).json() == []

          audit = client.get("/api/payments/audit", headers=admin).json()
          assert len(audit) == 3
          fraud = client.get("/api/payments/audit?fraud_only=true", headers=admin).json()
          assert [entry["reason"] for entry in fraud] == ["TRANSACTION_ALREADY_USED"]

     def test_other_tenants_see_nothing(self, client, ledger, auth_headers):
          ledger.add_transaction(REFERENCE)
          client.post("/api/payments/verify", json=verify_body(), headers=auth_headers("U1"))

          other_admin = auth_headers("A2", tenant_id="org-2", role="admin")
          assert client.get("/api/payments/tenant-history", headers=other_admin).json() == []
          assert client.get("/api/payments/audit", headers=other_admin).json() == []


def test_health(client):
     assert client.get("/health").json() == {"status": "ok", "database": True}


def test_health_reports_database_outage(client, monkeypatch):
     import main

     monkeypatch.setattr(main, "check_connection", lambda: False)
     response = client.get("/health")
     assert response.status_code == 503
     assert response.json()["database"] is False


def test_unknown_route(client):
     response = client.get("/nowhere")
     assert response.status_code == 404
     assert response.json() == {"error": "Route not found"}

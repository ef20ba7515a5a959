# services/settings_resolver.py
"""
Settings Resolver - effective payment policy for a tenant.

A tenant's own settings apply only when the row exists, is enabled and
has a wallet address; otherwise the system-wide default from the
environment is used. Values change rarely, so resolved policies are kept
in a small in-process TTL cache that is invalidated on every save.
"""
import logging
import threading
import time
from typing import Callable, Optional

from sqlalchemy.orm import Session

from config import (
     DEFAULT_MINIMUM_CONFIRMATIONS,
     DEFAULT_PRODUCTION_ENABLED,
     DEFAULT_RECIPIENT_ADDRESS,
     POLICY_CACHE_TTL_SECONDS,
)
from models import PaymentSettings
from .address_validator import validate_address
from .payment_types import TenantPaymentPolicy

logger = logging.getLogger(__name__)


def default_policy(tenant_id: Optional[str] = None) -> TenantPaymentPolicy:
     """System-wide fallback policy."""
     if not DEFAULT_RECIPIENT_ADDRESS:
          logger.warning("DEFAULT_RECIPIENT_ADDRESS is not set; payments without tenant settings cannot verify")
     return TenantPaymentPolicy(
          tenant_id=tenant_id,
          recipient_address=DEFAULT_RECIPIENT_ADDRESS,
          minimum_confirmations=DEFAULT_MINIMUM_CONFIRMATIONS,
          production_enabled=DEFAULT_PRODUCTION_ENABLED,
          source="default",
     )


def policy_from_settings(settings: Optional[PaymentSettings]) -> Optional[TenantPaymentPolicy]:
     """Tenant policy from a settings row, or None when the row does not apply."""
     if settings is None or not settings.enabled or not settings.wallet_address:
          return None
     return TenantPaymentPolicy(
          tenant_id=settings.tenant_id,
          recipient_address=settings.wallet_address,
          minimum_confirmations=settings.minimum_confirmations,
          production_enabled=settings.production_enabled,
          source="tenant",
     )


class SettingsResolver:
     """Resolves TenantPaymentPolicy with a TTL cache keyed by tenant id."""

     def __init__(self, ttl_seconds: float = POLICY_CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
          self.ttl_seconds = ttl_seconds
          self.clock = clock
          self._cache = {}
          self._lock = threading.Lock()

     def resolve(self, db: Session, tenant_id: Optional[str]) -> TenantPaymentPolicy:
          if tenant_id is None:
               return default_policy()

          now = self.clock()
          with self._lock:
               cached = self._cache.get(tenant_id)
          if cached and cached[0] > now:
               return cached[1]

          settings = db.query(PaymentSettings).filter(PaymentSettings.tenant_id == tenant_id).first()
          policy = policy_from_settings(settings) or default_policy(tenant_id)

          if self.ttl_seconds > 0:
               with self._lock:
                    self._cache[tenant_id] = (now + self.ttl_seconds, policy)
          return policy

     def invalidate(self, tenant_id: Optional[str] = None) -> None:
          with self._lock:
               if tenant_id is None:
                    self._cache.clear()
               else:
                    self._cache.pop(tenant_id, None)


def get_tenant_settings(db: Session, tenant_id: str) -> Optional[PaymentSettings]:
     return db.query(PaymentSettings).filter(PaymentSettings.tenant_id == tenant_id).first()


def save_tenant_settings(
     db: Session,
     tenant_id: str,
     wallet_address: Optional[str],
     enabled: bool,
     production_enabled: bool,
     minimum_confirmations: int = 1,
     updated_by: Optional[str] = None,
) -> PaymentSettings:
     """
     Create or update a tenant's payment settings.

     The caller commits and then invalidates the resolver cache for the
     tenant, so no other request caches the old policy in between.

     Raises:
          InvalidFormatError: If wallet_address is given but malformed.
          ValueError: If payments are enabled without a wallet address, or
               minimum_confirmations is negative.
     """
     if wallet_address:
          validate_address(wallet_address, field="wallet address")
     if enabled and not wallet_address:
          raise ValueError("A wallet address is required to enable payments")
     if minimum_confirmations < 0:
          raise ValueError("minimum_confirmations must not be negative")

     settings = get_tenant_settings(db, tenant_id)
     if settings is None:
          settings = PaymentSettings(tenant_id=tenant_id)
          db.add(settings)

     settings.wallet_address = wallet_address or None
     settings.enabled = enabled
     settings.production_enabled = production_enabled
     settings.minimum_confirmations = minimum_confirmations
     settings.updated_by = updated_by
     db.flush()
     logger.info("Payment settings saved for tenant %s (enabled=%s)", tenant_id, enabled)
     return settings

# dependencies.py
"""
Shared FastAPI dependencies: token authentication and service providers.

Tokens are HS256 JWTs issued by the main application with the claims:
     id        - user id (the payer)
     tenant_id - organization the session acts in
     role      - admin, owner, member, ...
"""
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from config import JWT_ALGORITHM, JWT_SECRET
from services import LedgerClient, PaymentVerificationService, SettingsResolver, TransactionVerifier

TENANT_ADMIN_ROLES = ("admin", "owner")


def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
     token = auth.split(" ", 1)[1]
     try:
          payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
     except JWTError:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")
     if payload.get("id") is None:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")
     return payload


def require_tenant(token: dict = Depends(verify_token)) -> dict:
     """Session must act within a tenant."""
     if not token.get("tenant_id"):
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No organization in session")
     return token


def require_tenant_admin(token: dict = Depends(require_tenant)) -> dict:
     """Session must belong to a tenant administrator."""
     if token.get("role") not in TENANT_ADMIN_ROLES:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Organization admin role required")
     return token


def create_token(user_id, tenant_id=None, role="member") -> str:
     """Issue a session token (used by the main application and the test suite)."""
     return jwt.encode(
          {"id": str(user_id), "tenant_id": tenant_id, "role": role},
          JWT_SECRET,
          algorithm=JWT_ALGORITHM,
     )


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------

_settings_resolver = SettingsResolver()
_verification_service = None


def get_settings_resolver() -> SettingsResolver:
     return _settings_resolver


def get_verification_service(
     resolver: SettingsResolver = Depends(get_settings_resolver),
) -> PaymentVerificationService:
     """Process-wide verification service; the ledger client keeps its HTTP session."""
     global _verification_service
     if _verification_service is None:
          verifier = TransactionVerifier(LedgerClient())
          _verification_service = PaymentVerificationService(verifier, resolver)
     return _verification_service

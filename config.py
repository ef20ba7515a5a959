# config.py
"""
Environment configuration for the payments backend.

All values are read once at import time from the process environment
(optionally populated from a .env file).
"""
import os
from decimal import Decimal

from dotenv import load_dotenv

# Load .env
load_dotenv()

# Auth
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = "HS256"

# CORS
CORS_ORIGINS = [origin for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin]

# Ledger RPC endpoints, one per network; the networks are not interchangeable
LEDGER_RPC_URLS = {
     "production": os.getenv("SOLANA_PRODUCTION_RPC_URL", "https://api.mainnet-beta.solana.com"),
     "staging": os.getenv("SOLANA_STAGING_RPC_URL", "https://api.devnet.solana.com"),
     "test": os.getenv("SOLANA_TEST_RPC_URL", "https://api.testnet.solana.com"),
}
LEDGER_RPC_TIMEOUT_SECONDS = float(os.getenv("LEDGER_RPC_TIMEOUT_SECONDS", "10"))
LEDGER_MAX_RETRIES = int(os.getenv("LEDGER_MAX_RETRIES", "3"))
LEDGER_RETRY_BACKOFF_SECONDS = float(os.getenv("LEDGER_RETRY_BACKOFF_SECONDS", "0.5"))

# System-wide payment policy used when a tenant has none
DEFAULT_RECIPIENT_ADDRESS = os.getenv("DEFAULT_RECIPIENT_ADDRESS", "")
DEFAULT_MINIMUM_CONFIRMATIONS = int(os.getenv("DEFAULT_MINIMUM_CONFIRMATIONS", "1"))
DEFAULT_PRODUCTION_ENABLED = os.getenv("DEFAULT_PRODUCTION_ENABLED", "true").lower() == "true"
POLICY_CACHE_TTL_SECONDS = float(os.getenv("POLICY_CACHE_TTL_SECONDS", "60"))

# Native currency
LAMPORTS_PER_SOL = Decimal(1_000_000_000)
AVERAGE_SLOT_SECONDS = 0.4

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# services/address_validator.py
"""
Syntax checks for ledger addresses and transaction references.

Solana addresses are base58-encoded 32-byte public keys and transaction
references are base58-encoded 64-byte signatures; decoding is left to
solders. Checks are pure and run before any network call.
"""
from solders.pubkey import Pubkey
from solders.signature import Signature

from .exceptions import InvalidFormatError

ADDRESS_MIN_LENGTH = 32
ADDRESS_MAX_LENGTH = 44

REFERENCE_MIN_LENGTH = 64
REFERENCE_MAX_LENGTH = 88


def _parse(parser, value: str, field: str, kind: str) -> None:
     try:
          parser(value)
     except ValueError:
          raise InvalidFormatError(f"{field} is not a base58 {kind}")


def _check(value, field: str, min_length: int, max_length: int) -> None:
     if not isinstance(value, str) or not value:
          raise InvalidFormatError(f"{field} is required")
     if value != value.strip():
          raise InvalidFormatError(f"{field} must not contain surrounding whitespace")
     if not min_length <= len(value) <= max_length:
          raise InvalidFormatError(
               f"{field} must be {min_length}-{max_length} characters, got {len(value)}"
          )


def validate_address(address: str, field: str = "address") -> None:
     """
     Validate a wallet address.

     Raises:
          InvalidFormatError: If the address is not a base58 32-byte key.
     """
     _check(address, field, ADDRESS_MIN_LENGTH, ADDRESS_MAX_LENGTH)
     _parse(Pubkey.from_string, address, field, "32-byte public key")


def validate_reference(reference: str) -> None:
     """
     Validate a transaction reference (signature).

     Raises:
          InvalidFormatError: If the reference is not a base58 64-byte signature.
     """
     field = "transaction reference"
     _check(reference, field, REFERENCE_MIN_LENGTH, REFERENCE_MAX_LENGTH)
     _parse(Signature.from_string, reference, field, "64-byte signature")


def is_valid_address(address: str) -> bool:
     try:
          validate_address(address)
     except InvalidFormatError:
          return False
     return True

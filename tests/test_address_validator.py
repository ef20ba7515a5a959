# tests/test_address_validator.py
import pytest

from services.address_validator import is_valid_address, validate_address, validate_reference
from services.exceptions import InvalidFormatError
from services.reasons import RejectionReason
from tests.conftest import make_address, make_reference


@pytest.mark.parametrize("address", [
     "11111111111111111111111111111111",
     "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
     "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
     make_address("Z"),
])
def test_valid_addresses(address):
     validate_address(address)
     assert is_valid_address(address)


@pytest.mark.parametrize("address", [
     "",
     None,
     "1" * 31,                    # too short
     "1" * 45,                    # too long
     make_address("0"),           # '0' is not in the base58 alphabet
     make_address("l"),
     " " + make_address("Z"),
     "1" * 31 + "zz",             # decodes to 33 bytes
])
def test_invalid_addresses(address):
     with pytest.raises(InvalidFormatError) as exc:
          validate_address(address)
     assert exc.value.reason == RejectionReason.INVALID_FORMAT
     assert not is_valid_address(address)


def test_invalid_format_error_is_a_value_error():
     with pytest.raises(ValueError):
          validate_address("not-an-address")


def test_field_name_in_message():
     with pytest.raises(InvalidFormatError, match="sender address"):
          validate_address("", field="sender address")


def test_valid_reference():
     validate_reference(make_reference("A"))
     validate_reference("1" * 64)


@pytest.mark.parametrize("reference", [
     "",
     make_address("A"),          # an address is not a signature
     "1" * 63,
     "1" * 89,
     "1" * 62 + "I" + "A",       # 'I' is not in the base58 alphabet
     "1" * 63 + "zz",            # decodes to 65 bytes
])
def test_invalid_references(reference):
     with pytest.raises(InvalidFormatError):
          validate_reference(reference)


def test_wrong_size_values_are_reported_by_kind():
     with pytest.raises(InvalidFormatError, match="32-byte public key"):
          validate_address("1" * 31 + "zz")
     with pytest.raises(InvalidFormatError, match="64-byte signature"):
          validate_reference("1" * 63 + "zz")

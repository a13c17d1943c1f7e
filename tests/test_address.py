import pytest

from fakes import USDC_MINT, make_address
from ingestion.address import (
    find_program_address,
    is_valid_address,
    pubkey_to_string,
    string_to_pubkey_bytes,
    validate_pool_address,
    validate_token_address,
)


@pytest.mark.parametrize("address", [
    USDC_MINT,
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",
    "11111111111111111111111111111111",
    f"  {USDC_MINT}\n",
])
def test_valid_addresses(address):
    assert is_valid_address(address)
    assert validate_token_address(address)
    assert validate_pool_address(address)


@pytest.mark.parametrize("address", [
    "",
    "   ",
    "not-an-address",
    "0OIl" * 8,                     # characters outside the base58 alphabet
    USDC_MINT[:-4],                 # decodes, but too short
    USDC_MINT + "1111",             # decodes, but too long
    "Ω" * 32,
    None,
    12345,
])
def test_invalid_addresses(address):
    assert not is_valid_address(address)


def test_pubkey_string_conversion_inverse():
    raw = bytes(range(32))
    address = pubkey_to_string(raw)
    assert is_valid_address(address)
    assert string_to_pubkey_bytes(address) == raw


def test_string_to_pubkey_bytes_rejects_wrong_length():
    with pytest.raises(ValueError):
        string_to_pubkey_bytes("abc")


def test_find_program_address_deterministic():
    program = make_address(9)
    first = find_program_address([b"seed", bytes(32)], program)
    second = find_program_address([b"seed", bytes(32)], program)
    assert first == second
    address, bump = first
    assert is_valid_address(address)
    assert 0 <= bump <= 255

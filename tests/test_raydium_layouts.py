import json
from dataclasses import replace

import pytest

from fakes import make_address, make_pool_state
from ingestion.dex.raydium import (
    POOL_STATE_LAYOUT,
    RAYDIUM_V4_POOL_ABI,
    RAYDIUM_V4_PROGRAM_ID,
    RaydiumDecoder,
    contract_abi_json,
    decode_pool_state,
    encode_pool_state,
)
from ingestion.dex.spl_token import MINT_LAYOUT, MintInfo, decode_mint, encode_mint
from ingestion.errors import DecodeError, NotAValidPool


def test_layout_size():
    assert POOL_STATE_LAYOUT.size == 349
    assert MINT_LAYOUT.size == 82


def test_pool_state_round_trip():
    pool = make_pool_state(nonce=7, open_time=2 ** 64 - 1, lp_supply=42)
    assert decode_pool_state(encode_pool_state(pool)) == pool


def test_pool_state_ignores_trailing_bytes():
    pool = make_pool_state()
    data = encode_pool_state(pool) + b"\xff" * 403
    assert decode_pool_state(data) == pool


def test_pool_state_field_offsets():
    pool = make_pool_state(nonce=9, lp_supply=0x0102030405060708)
    data = encode_pool_state(pool)
    assert data[2] == 9
    # 3 u8 + 7 pubkeys + open_time
    offset = 3 + 7 * 32 + 8
    assert data[offset:offset + 8] == bytes([8, 7, 6, 5, 4, 3, 2, 1])


def test_short_buffer_raises_decode_error():
    data = encode_pool_state(make_pool_state())
    with pytest.raises(DecodeError):
        decode_pool_state(data[:-1])
    with pytest.raises(DecodeError):
        decode_pool_state(b"")


def test_encode_rejects_out_of_range_values():
    with pytest.raises(DecodeError):
        encode_pool_state(replace(make_pool_state(), nonce=256))


def test_decoder_rejects_foreign_owner_before_decoding(monkeypatch):
    def boom(data):
        raise AssertionError("decode must not run for foreign accounts")

    monkeypatch.setattr("ingestion.dex.raydium.decoder.decode_pool_state", boom)
    decoder = RaydiumDecoder()
    with pytest.raises(NotAValidPool) as exc:
        decoder.decode_pool(make_address(1), b"\x00" * 752, make_address(2))
    assert exc.value.owner == make_address(2)


def test_decoder_decodes_owned_account():
    pool = make_pool_state()
    decoder = RaydiumDecoder()
    assert decoder.is_pool_account(RAYDIUM_V4_PROGRAM_ID)
    assert decoder.decode_pool(make_address(1), encode_pool_state(pool), RAYDIUM_V4_PROGRAM_ID) == pool


def test_contract_abi_document():
    doc = json.loads(contract_abi_json())
    assert doc == RAYDIUM_V4_POOL_ABI
    names = [ix["name"] for ix in doc["instructions"]]
    assert names == ["initialize", "swap", "addLiquidity", "removeLiquidity"]
    assert doc["accounts"][0]["name"] == "PoolState"


def test_mint_round_trip_with_authorities():
    mint = MintInfo(
        decimals=6,
        supply=5_000_000_000_000,
        is_initialized=True,
        mint_authority=make_address(10),
        freeze_authority=None,
    )
    assert decode_mint(encode_mint(mint)) == mint


def test_uninitialized_or_short_mint_rejected():
    mint = MintInfo(decimals=9, supply=0, is_initialized=False)
    with pytest.raises(DecodeError):
        decode_mint(encode_mint(mint))
    with pytest.raises(DecodeError):
        decode_mint(b"\x00" * 81)

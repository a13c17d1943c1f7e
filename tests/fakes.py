"""In-memory transport fake and account-data builders shared by the tests."""
import struct
from typing import Any, Dict, List, Optional

import base58

from ingestion.address import find_program_address
from ingestion.dex.metaplex.layouts import derive_metadata_address
from ingestion.dex.raydium.layouts import RAYDIUM_V4_PROGRAM_ID, PoolState, encode_pool_state
from ingestion.errors import AccountNotFound, TransportError
from ingestion.rpc.client import AccountInfo, TokenAmount

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SOL_MINT = "So11111111111111111111111111111111111111112"
METADATA_OWNER = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"


def make_address(n: int) -> str:
    """Deterministic valid address from a small integer (1..255)."""
    return base58.b58encode(bytes([n]) * 32).decode("utf-8")


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def metadata_account_bytes(name: str, symbol: str, uri: str, pad: bool = True) -> bytes:
    """Metaplex layout: key, update authority, mint, then 3 length-prefixed strings."""
    def field(value: str, width: int) -> bytes:
        raw = value.encode("utf-8")
        if pad:
            raw = raw.ljust(width, b"\x00")
        return struct.pack("<I", len(raw)) + raw

    header = bytes([4]) + bytes([7]) * 32 + bytes([8]) * 32
    return header + field(name, 32) + field(symbol, 10) + field(uri, 200) + bytes(40)


def make_pool_state(**overrides: Any) -> PoolState:
    values: Dict[str, Any] = dict(
        version=4,
        is_initialized=1,
        nonce=254,
        amm_id=make_address(1),
        base_token_mint=SOL_MINT,
        quote_token_mint=USDC_MINT,
        lp_token_mint=make_address(2),
        base_vault=make_address(3),
        quote_vault=make_address(4),
        authority=make_address(5),
        open_time=1_650_000_000,
        lp_supply=123_456_789_012,
        base_reserve=2_000_000_000,
        quote_reserve=4_000_000,
        target_base_reserve=0,
        target_quote_reserve=0,
        base_deposit_limit=0,
        quote_deposit_limit=0,
        state=1,
        reset_flag=0,
        min_base_apy=0,
        max_base_apy=0,
        min_quote_apy=0,
        max_quote_apy=0,
        total_deposits_pending=0,
        total_withdraws_pending=0,
        pool_open_time=1_650_000_000,
    )
    values.update(overrides)
    return PoolState(**values)


class FakeRpc:
    """In-memory transport with the same fetch surface as SolanaRpcClient."""

    rpc_url = "http://fake-rpc.local"

    def __init__(self):
        self.accounts: Dict[str, Any] = {}
        self.mints: Dict[str, Any] = {}
        self.balances: Dict[str, Any] = {}
        self.token_list: Any = []
        self.block_height: Any = 250_000_000
        self.calls: List[tuple] = []
        self.closed = False

    def count(self, method: str, address: Optional[str] = None) -> int:
        return sum(
            1 for call in self.calls
            if call[0] == method and (address is None or call[1] == address)
        )

    # -- helpers used by tests --

    def add_pool(self, address: str, pool: PoolState, owner: str = RAYDIUM_V4_PROGRAM_ID) -> None:
        data = encode_pool_state(pool) + bytes(752 - 349)
        self.accounts[address] = AccountInfo(data=data, owner=owner)

    def add_metadata(self, mint: str, name: str, symbol: str, uri: str = "") -> None:
        metadata_address, _ = derive_metadata_address(mint)
        self.accounts[metadata_address] = AccountInfo(
            data=metadata_account_bytes(name, symbol, uri),
            owner=METADATA_OWNER,
        )

    # -- transport surface --

    async def fetch_account_info(self, address: str) -> Optional[AccountInfo]:
        self.calls.append(("fetch_account_info", address))
        value = self.accounts.get(address)
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_mint(self, address: str):
        self.calls.append(("fetch_mint", address))
        value = self.mints.get(address)
        if value is None:
            raise AccountNotFound(address, "Mint not found")
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_token_account_balance(self, address: str) -> TokenAmount:
        self.calls.append(("fetch_token_account_balance", address))
        value = self.balances.get(address)
        if value is None:
            raise TransportError(f"could not find account {address}", "getTokenAccountBalance")
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_token_list(self) -> List[Dict[str, Any]]:
        self.calls.append(("fetch_token_list", None))
        if isinstance(self.token_list, Exception):
            raise self.token_list
        return self.token_list

    def derive_program_address(self, seeds, program_id):
        return find_program_address(seeds, program_id)

    async def get_block_height(self) -> int:
        self.calls.append(("get_block_height", None))
        if isinstance(self.block_height, Exception):
            raise self.block_height
        return self.block_height

    async def close(self) -> None:
        self.closed = True

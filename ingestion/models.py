"""
ingestion/models.py

Records produced by the token and pool resolvers.

Field names are snake_case in Python; ``to_dict()`` emits the camelCase JSON
shape written to disk. u64 quantities are carried as decimal strings so they
survive JSON round-trips without precision loss. Optional fields that are
unset are omitted from ``to_dict()`` output.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TokenMetadata:
    """Name / symbol / uri decoded from a Metaplex metadata account."""
    name: str
    symbol: str
    uri: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "uri": self.uri,
            "description": self.description,
        }


@dataclass
class TokenInfo:
    """Resolved SPL token: mint precision plus advisory metadata."""
    symbol: str
    decimals: int                                # u8 mint precision
    metadata: TokenMetadata
    address: Optional[str] = None                # base58 mint address
    supply: Optional[str] = None                 # u64 as decimal string
    mint_authority: Optional[str] = None
    freeze_authority: Optional[str] = None
    logo_uri: Optional[str] = None               # token list only
    source: str = "unknown"                      # token_list | chain | default

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.address is not None:
            out["address"] = self.address
        out["symbol"] = self.symbol
        out["decimals"] = self.decimals
        out["metadata"] = self.metadata.to_dict()
        if self.supply is not None:
            out["supply"] = self.supply
        if self.mint_authority is not None:
            out["mintAuthority"] = self.mint_authority
        if self.freeze_authority is not None:
            out["freezeAuthority"] = self.freeze_authority
        return out


@dataclass(frozen=True)
class PoolLiquidity:
    """Live vault balances for both legs of a pool."""
    base_token_amount: str     # u64 as decimal string
    quote_token_amount: str    # u64 as decimal string
    base_token_decimals: int
    quote_token_decimals: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseTokenAmount": self.base_token_amount,
            "quoteTokenAmount": self.quote_token_amount,
            "baseTokenDecimals": self.base_token_decimals,
            "quoteTokenDecimals": self.quote_token_decimals,
        }

    def get_base_amount_decimal(self) -> float:
        return int(self.base_token_amount) / (10 ** self.base_token_decimals)

    def get_quote_amount_decimal(self) -> float:
        return int(self.quote_token_amount) / (10 ** self.quote_token_decimals)


@dataclass(frozen=True)
class PriceRatio:
    base_to_quote: float
    quote_to_base: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseToQuote": self.base_to_quote,
            "quoteToBase": self.quote_to_base,
        }


@dataclass(frozen=True)
class TokenPair:
    base_token: TokenInfo
    quote_token: TokenInfo


@dataclass
class PoolInfo:
    """
    Raydium AMM v4 pool with both token legs resolved.

    ``liquidity`` and ``price`` are only filled in extended-info mode.
    """
    base_token: TokenInfo
    quote_token: TokenInfo
    base_token_address: str
    quote_token_address: str
    lp_token_address: str
    base_vault: str
    quote_vault: str
    authority: str
    nonce: int
    open_time: str             # u64 as decimal string
    lp_supply: str             # u64 as decimal string
    contract_abi: str          # static schema document, JSON text
    liquidity: Optional[PoolLiquidity] = None
    price: Optional[PriceRatio] = None

    @property
    def token_pair(self) -> TokenPair:
        return TokenPair(base_token=self.base_token, quote_token=self.quote_token)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "baseToken": self.base_token.to_dict(),
            "quoteToken": self.quote_token.to_dict(),
            "baseTokenAddress": self.base_token_address,
            "quoteTokenAddress": self.quote_token_address,
            "lpTokenAddress": self.lp_token_address,
            "baseVault": self.base_vault,
            "quoteVault": self.quote_vault,
            "authority": self.authority,
            "nonce": self.nonce,
            "openTime": self.open_time,
            "lpSupply": self.lp_supply,
            "contractABI": self.contract_abi,
        }
        if self.liquidity is not None:
            out["liquidity"] = self.liquidity.to_dict()
        if self.price is not None:
            out["price"] = self.price.to_dict()
        return out

"""
ingestion/sources/raydium_pool.py

PoolResolver - Raydium AMM v4 pool address -> PoolInfo.

Fetches the pool account, checks it is owned by the AMM program, decodes the
fixed-width pool state, resolves both token legs through TokenResolver and
optionally adds live vault balances and a price ratio.
"""
import asyncio
import dataclasses
import logging
import math
from typing import Any, Optional

from ingestion.address import is_valid_address
from ingestion.dex.raydium import RaydiumDecoder, contract_abi_json
from ingestion.dex.raydium.layouts import PoolState
from ingestion.errors import (
    InvalidAddress,
    LiquidityUnavailable,
    PoolNotFound,
    PriceUnavailable,
    SolanaInfoError,
)
from ingestion.models import PoolInfo, PoolLiquidity, PriceRatio, TokenInfo, TokenPair
from ingestion.rpc.cache import POOL_INFO_TTL, TimedCache

from .token_info import TokenResolver, default_token_info

logger = logging.getLogger(__name__)


def _ratio(numerator: float, denominator: float) -> float:
    """Float division with IEEE-754 results for a zero denominator."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def price_from_liquidity(liquidity: PoolLiquidity) -> PriceRatio:
    """
    Price of one leg in units of the other.

    A zero leg yields inf / nan rather than an error.
    """
    base = liquidity.get_base_amount_decimal()
    quote = liquidity.get_quote_amount_decimal()
    return PriceRatio(
        base_to_quote=_ratio(quote, base),
        quote_to_base=_ratio(base, quote),
    )


class PoolResolver:
    """
    Resolves Raydium v4 pools.

    Unlike token resolution, every pool-level failure is surfaced: a missing
    account, a foreign owner or an undecodable buffer never produces a
    PoolInfo.
    """

    def __init__(
        self,
        rpc: Any,
        tokens: TokenResolver,
        decoder: Optional[RaydiumDecoder] = None,
        pool_cache: Optional[TimedCache[PoolInfo]] = None,
        pair_cache: Optional[TimedCache[TokenPair]] = None,
    ):
        """
        Args:
            rpc: Transport with fetch_account_info / fetch_token_account_balance
            tokens: Resolver used for both token legs
            decoder: Pool decoder (Raydium v4 program by default)
            pool_cache: PoolInfo cache (TTL 300s by default)
            pair_cache: TokenPair cache (TTL 300s by default)
        """
        self._rpc = rpc
        self._tokens = tokens
        self._decoder = decoder or RaydiumDecoder()
        if pool_cache is None:
            pool_cache = TimedCache(ttl=POOL_INFO_TTL, name="pool_info")
        if pair_cache is None:
            pair_cache = TimedCache(ttl=POOL_INFO_TTL, name="token_pair")
        self._pool_cache = pool_cache
        self._pair_cache = pair_cache
        self._contract_abi = contract_abi_json()

    @staticmethod
    def _check_address(address: str) -> str:
        if not is_valid_address(address):
            raise InvalidAddress(address, "pool")
        return address.strip()

    # ------------------------------------------------------------------
    # Pool state
    # ------------------------------------------------------------------

    async def _load_pool_state(self, address: str) -> PoolState:
        """
        Raises:
            PoolNotFound, NotAValidPool, DecodeError, TransportError
        """
        account = await self._rpc.fetch_account_info(address)
        if account is None:
            raise PoolNotFound(address)
        return self._decoder.decode_pool(address, account.data, account.owner)

    async def _resolve_leg(self, mint: str) -> TokenInfo:
        try:
            return await self._tokens.get_token_info(mint)
        except SolanaInfoError as e:
            logger.warning(f"[raydium] Token leg {mint} unresolved, using placeholder: {e}")
            return default_token_info(mint)

    async def _resolve_pair(self, pool: PoolState) -> TokenPair:
        base, quote = await asyncio.gather(
            self._resolve_leg(pool.base_token_mint),
            self._resolve_leg(pool.quote_token_mint),
        )
        return TokenPair(base_token=base, quote_token=quote)

    async def get_pool_info(self, address: str) -> PoolInfo:
        """
        Resolve a pool with both token legs.

        Raises:
            InvalidAddress: Malformed pool address
            PoolNotFound: No account at ``address``
            NotAValidPool: Account not owned by the AMM program
            DecodeError: Account data does not match the pool layout
            TransportError: RPC failure fetching the pool account
        """
        address = self._check_address(address)

        cached = self._pool_cache.get(address)
        if cached is not None:
            logger.debug(f"[raydium] Returning cached pool info for {address}")
            return cached

        logger.info(f"[raydium] Fetching pool info for {address}")
        pool = await self._load_pool_state(address)
        pair = await self._resolve_pair(pool)

        info = PoolInfo(
            base_token=pair.base_token,
            quote_token=pair.quote_token,
            base_token_address=pool.base_token_mint,
            quote_token_address=pool.quote_token_mint,
            lp_token_address=pool.lp_token_mint,
            base_vault=pool.base_vault,
            quote_vault=pool.quote_vault,
            authority=pool.authority,
            nonce=pool.nonce,
            open_time=str(pool.open_time),
            lp_supply=str(pool.lp_supply),
            contract_abi=self._contract_abi,
        )
        self._pool_cache.set(address, info)
        self._pair_cache.set(address, pair)
        return info

    async def get_pool_token_pair(self, address: str) -> TokenPair:
        """Both token legs of a pool, cached separately from PoolInfo."""
        address = self._check_address(address)

        cached = self._pair_cache.get(address)
        if cached is not None:
            logger.debug(f"[raydium] Returning cached token pair for {address}")
            return cached

        pool = await self._load_pool_state(address)
        pair = await self._resolve_pair(pool)
        self._pair_cache.set(address, pair)
        return pair

    def get_contract_abi(self) -> str:
        return self._contract_abi

    # ------------------------------------------------------------------
    # Derived metrics
    # ------------------------------------------------------------------

    async def get_pool_liquidity(self, address: str) -> PoolLiquidity:
        """
        Live vault balances. Never cached.

        Raises:
            InvalidAddress: Malformed pool address
            LiquidityUnavailable: Pool or either vault balance could not be read
        """
        address = self._check_address(address)
        try:
            info = await self.get_pool_info(address)
            base_balance, quote_balance = await asyncio.gather(
                self._rpc.fetch_token_account_balance(info.base_vault),
                self._rpc.fetch_token_account_balance(info.quote_vault),
            )
        except SolanaInfoError as e:
            raise LiquidityUnavailable(f"Failed to get pool liquidity for {address}: {e}") from e

        return PoolLiquidity(
            base_token_amount=base_balance.amount,
            quote_token_amount=quote_balance.amount,
            base_token_decimals=base_balance.decimals,
            quote_token_decimals=quote_balance.decimals,
        )

    async def get_price_ratio(self, address: str) -> PriceRatio:
        """
        Price ratio from live vault balances.

        Raises:
            InvalidAddress: Malformed pool address
            PriceUnavailable: Liquidity could not be fetched
        """
        try:
            liquidity = await self.get_pool_liquidity(address)
        except LiquidityUnavailable as e:
            raise PriceUnavailable(f"Failed to calculate price ratio for {address}: {e}") from e
        return price_from_liquidity(liquidity)

    async def get_pool_with_extended_info(
        self,
        address: str,
        with_liquidity: bool = False,
        with_price: bool = False,
    ) -> PoolInfo:
        """
        PoolInfo plus optional liquidity / price.

        Failures in the optional parts are logged and the field is left
        unset; failures resolving the pool itself propagate.
        """
        info = await self.get_pool_info(address)
        liquidity = None
        price = None

        if with_liquidity:
            try:
                liquidity = await self.get_pool_liquidity(address)
            except LiquidityUnavailable as e:
                logger.warning(f"[raydium] Failed to get liquidity info: {e}")

        if with_price:
            try:
                price = await self.get_price_ratio(address)
            except PriceUnavailable as e:
                logger.warning(f"[raydium] Failed to get price info: {e}")

        # Cached PoolInfo stays unextended.
        return dataclasses.replace(info, liquidity=liquidity, price=price)

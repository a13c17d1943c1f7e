"""
ingestion/sources/token_info.py

TokenResolver - mint address -> TokenInfo.

Resolution order, first hit wins:
    1. token-info cache
    2. external token list
    3. on-chain mint account + Metaplex metadata account
    4. default placeholder (on-chain resolution failed)

Metadata is advisory: a missing or undecodable metadata account never
hides the mint's decimals / supply.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from ingestion.address import is_valid_address
from ingestion.dex.metaplex.layouts import decode_metadata, derive_metadata_address
from ingestion.errors import InvalidAddress, SolanaInfoError
from ingestion.models import TokenInfo, TokenMetadata
from ingestion.rpc.cache import METADATA_TTL, TOKEN_INFO_TTL, TimedCache

from .token_list import TokenListSource

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 9
UNKNOWN_SYMBOL = "UNKNOWN"


def placeholder_metadata(address: str) -> TokenMetadata:
    """Metadata used when a mint has no metadata account."""
    return TokenMetadata(
        name=f"Unknown Token ({address[:8]}...)",
        symbol=UNKNOWN_SYMBOL,
        uri="",
        description="Token information unavailable",
    )


def default_token_info(address: str) -> TokenInfo:
    """Whole-token placeholder returned when on-chain resolution fails."""
    return TokenInfo(
        address=address,
        symbol=UNKNOWN_SYMBOL,
        decimals=DEFAULT_DECIMALS,
        metadata=placeholder_metadata(address),
        source="default",
    )


def token_info_from_list_entry(address: str, entry: Dict[str, Any]) -> TokenInfo:
    """
    Raises:
        ValueError / TypeError: If the entry's decimals is not a u8
    """
    name = str(entry.get("name") or "")
    symbol = str(entry.get("symbol") or UNKNOWN_SYMBOL)
    logo_uri = entry.get("logoURI") or ""
    decimals = int(entry.get("decimals", DEFAULT_DECIMALS))
    if not 0 <= decimals <= 255:
        raise ValueError(f"decimals out of range: {decimals}")
    return TokenInfo(
        address=address,
        symbol=symbol,
        decimals=decimals,
        metadata=TokenMetadata(name=name, symbol=symbol, uri=logo_uri, description=name),
        logo_uri=logo_uri or None,
        source="token_list",
    )


class TokenResolver:
    """
    Resolves SPL token information with caching and graceful degradation.

    ``get_token_info`` only raises for a malformed address; every other
    failure yields :func:`default_token_info`.
    """

    def __init__(
        self,
        rpc: Any,
        token_list: Optional[TokenListSource] = None,
        info_cache: Optional[TimedCache[TokenInfo]] = None,
        metadata_cache: Optional[TimedCache[TokenMetadata]] = None,
        use_token_list: bool = True,
    ):
        """
        Args:
            rpc: Transport with fetch_account_info / fetch_mint /
                fetch_token_list / derive_program_address
            token_list: Registry adapter (built from ``rpc`` if None)
            info_cache: TokenInfo cache (TTL 300s by default)
            metadata_cache: Metadata cache (TTL 600s by default)
            use_token_list: Disable to skip the registry tier
        """
        self._rpc = rpc
        if token_list is None:
            token_list = TokenListSource(rpc)
        if info_cache is None:
            info_cache = TimedCache(ttl=TOKEN_INFO_TTL, name="token_info")
        if metadata_cache is None:
            metadata_cache = TimedCache(ttl=METADATA_TTL, name="metadata")
        self._token_list = token_list
        self._info_cache = info_cache
        self._metadata_cache = metadata_cache
        self._use_token_list = use_token_list

    # ------------------------------------------------------------------
    # TokenInfo
    # ------------------------------------------------------------------

    async def get_token_info(self, address: str) -> TokenInfo:
        """
        Resolve ``address`` to TokenInfo.

        Raises:
            InvalidAddress: If ``address`` is not a 32-byte base58 key
        """
        if not is_valid_address(address):
            raise InvalidAddress(address, "token")
        address = address.strip()

        cached = self._info_cache.get(address)
        if cached is not None:
            logger.debug(f"[tokens] Returning cached token info for {address}")
            return cached

        info = await self._from_token_list(address)
        if info is None:
            info = await self._from_chain(address)

        if info is None:
            logger.warning(f"[tokens] Falling back to default token info for {address}")
            return default_token_info(address)

        self._info_cache.set(address, info)
        return info

    async def _from_token_list(self, address: str) -> Optional[TokenInfo]:
        if not self._use_token_list:
            return None
        entry = await self._token_list.lookup(address)
        if entry is None:
            return None
        try:
            return token_info_from_list_entry(address, entry)
        except (TypeError, ValueError) as e:
            logger.warning(f"[tokens] Ignoring malformed token list entry for {address}: {e}")
            return None

    async def _from_chain(self, address: str) -> Optional[TokenInfo]:
        """Mint + metadata lookup; None if the mint itself cannot be read."""
        mint_result, metadata = await asyncio.gather(
            self._fetch_mint(address),
            self.get_token_metadata(address),
        )
        if isinstance(mint_result, SolanaInfoError):
            logger.warning(f"[tokens] Failed to get token info from chain for {address}: {mint_result}")
            return None

        if metadata is None:
            metadata = placeholder_metadata(address)

        return TokenInfo(
            address=address,
            symbol=metadata.symbol,
            decimals=mint_result.decimals,
            metadata=metadata,
            supply=str(mint_result.supply),
            mint_authority=mint_result.mint_authority,
            freeze_authority=mint_result.freeze_authority,
            source="chain",
        )

    async def _fetch_mint(self, address: str):
        try:
            return await self._rpc.fetch_mint(address)
        except SolanaInfoError as e:
            return e

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def get_token_metadata(self, address: str) -> Optional[TokenMetadata]:
        """
        Decoded Metaplex metadata for ``address``.

        Returns None when the mint has no metadata account or it could not
        be fetched.

        Raises:
            InvalidAddress: If ``address`` is not a 32-byte base58 key
        """
        if not is_valid_address(address):
            raise InvalidAddress(address, "token")
        address = address.strip()

        cached = self._metadata_cache.get(address)
        if cached is not None:
            logger.debug(f"[tokens] Returning cached metadata for {address}")
            return cached

        metadata = await self._fetch_metadata(address)
        if metadata is not None:
            self._metadata_cache.set(address, metadata)
        return metadata

    async def _fetch_metadata(self, address: str) -> Optional[TokenMetadata]:
        metadata_address, _bump = derive_metadata_address(address, self._rpc.derive_program_address)
        logger.debug(f"[tokens] Fetching metadata account {metadata_address} for {address}")

        try:
            account = await self._rpc.fetch_account_info(metadata_address)
        except SolanaInfoError as e:
            logger.warning(f"[tokens] Failed to fetch token metadata for {address}: {e}")
            return None

        if account is None:
            logger.debug(f"[tokens] No metadata account found for {address}")
            return None
        return decode_metadata(account.data)

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------

    async def token_exists(self, address: str) -> bool:
        """True if ``address`` is a readable SPL mint."""
        if not is_valid_address(address):
            return False
        result = await self._fetch_mint(address.strip())
        return not isinstance(result, SolanaInfoError)

    async def check_health(self) -> int:
        """Current block height of the RPC endpoint."""
        height = await self._rpc.get_block_height()
        logger.info(f"[tokens] Current block height: {height}")
        return height

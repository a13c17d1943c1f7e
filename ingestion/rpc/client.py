"""
ingestion/rpc/client.py

SolanaRpcClient - JSON-RPC transport used by the token and pool resolvers.

Constructed once by the composing layer and passed to every resolver; it
owns the aiohttp session, the shared RateLimiter and the FailoverManager.
"""
import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp

from ingestion.address import find_program_address
from ingestion.dex.spl_token import TOKEN_PROGRAM_IDS, MintInfo, decode_mint
from ingestion.errors import AccountNotFound, DecodeError, TransportError

from .failover import FailoverManager, is_retryable_error
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_BACKUP_RPC_URLS = (
    "https://solana-api.projectserum.com",
    "https://rpc.ankr.com/solana",
)
DEFAULT_TOKEN_LIST_URL = (
    "https://raw.githubusercontent.com/solana-labs/token-list/main/src/tokens/solana.tokenlist.json"
)
DEFAULT_TIMEOUT_SEC = 60.0
USER_AGENT = "solana-info/1.0.0"


@dataclass(frozen=True)
class AccountInfo:
    """Raw account as returned by getAccountInfo (base64 data decoded)."""
    data: bytes
    owner: str
    lamports: int = 0
    executable: bool = False


@dataclass(frozen=True)
class TokenAmount:
    """getTokenAccountBalance value."""
    amount: str          # u64 as decimal string
    decimals: int
    ui_amount: Optional[float] = None


class SolanaRpcClient:
    """
    Async Solana JSON-RPC client.

    Supports:
    - getAccountInfo / mint decode / getTokenAccountBalance / slot health checks
    - External token-list download
    - Program-address derivation (local, no RPC)
    - One rate-limiter slot per outbound HTTP request
    - Switching to a backup endpoint on rate-limit, auth and timeout errors
    """

    def __init__(
        self,
        rpc_url: str = DEFAULT_RPC_URL,
        backup_urls: Sequence[str] = DEFAULT_BACKUP_RPC_URLS,
        commitment: str = "confirmed",
        timeout: float = DEFAULT_TIMEOUT_SEC,
        rate_limiter: Optional[RateLimiter] = None,
        token_list_url: str = DEFAULT_TOKEN_LIST_URL,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize SolanaRpcClient.

        Args:
            rpc_url: Primary JSON-RPC endpoint
            backup_urls: Endpoints tried, in order, when the active one fails
            commitment: Commitment level passed with every read
            timeout: Total HTTP timeout per request (seconds)
            rate_limiter: Shared limiter; a default 10 req/s limiter if None
            token_list_url: Token registry JSON document
            session: Pre-built aiohttp session (the client will not close it)
        """
        self.commitment = commitment
        self.timeout = timeout
        self.token_list_url = token_list_url
        self.rate_limiter = rate_limiter or RateLimiter()
        self.failover = FailoverManager(rpc_url, [u for u in backup_urls if u != rpc_url])
        self._session = session
        self._owns_session = session is None
        self._id = 0
        self._switch_lock: Optional[asyncio.Lock] = None

        # Metrics
        self._http_calls = 0
        self._errors = 0

    @property
    def rpc_url(self) -> str:
        return self.failover.get_active_endpoint()

    # ------------------------------------------------------------------
    # HTTP layer
    # ------------------------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Content-Type": "application/json", "User-Agent": USER_AGENT},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    async def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST one JSON-RPC payload and return the decoded envelope."""
        session = await self._get_session()
        method = payload.get("method", "")
        self._http_calls += 1
        try:
            async with session.post(url, json=payload) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise TransportError(
                        f"HTTP {resp.status} from {url} for {method}: {text[:200]}",
                        method=method,
                        endpoint=url,
                    )
                return await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request timeout calling {method} on {url}", method, url) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Connection error calling {method} on {url}: {e}", method, url) from e
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {url} for {method}: {e}", method, url) from e

    async def _get_json(self, url: str) -> Any:
        session = await self._get_session()
        self._http_calls += 1
        try:
            async with session.get(url) as resp:
                if resp.status != 200:
                    raise TransportError(f"HTTP {resp.status} fetching {url}", "GET", url)
                return await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request timeout fetching {url}", "GET", url) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Connection error fetching {url}: {e}", "GET", url) from e
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {url}: {e}", "GET", url) from e

    async def _send(self, url: str, method: str, params: List[Any]) -> Any:
        self._id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._id,
            "method": method,
            "params": params,
        }
        envelope = await self._post(url, payload)
        if not isinstance(envelope, dict):
            raise TransportError(f"Malformed JSON-RPC response for {method}", method, url)
        if envelope.get("error") is not None:
            raise TransportError(f"RPC error {method}: {envelope['error']}", method, url)
        return envelope.get("result")

    async def _switch_to_backup(self) -> bool:
        """Try backup endpoints with getSlot; switch to the first that answers."""
        for url in self.failover.backup_candidates():
            try:
                logger.info(f"[rpc] Testing endpoint: {url}")
                await self.rate_limiter.acquire()
                await self._send(url, "getSlot", [])
            except TransportError as e:
                self.failover.report_failure(url)
                logger.warning(f"[rpc] Failed to use endpoint {url}: {e}")
                continue
            self.failover.switch_to(url)
            return True
        logger.error("[rpc] All backup endpoints failed")
        return False

    def _get_switch_lock(self) -> asyncio.Lock:
        if self._switch_lock is None:
            self._switch_lock = asyncio.Lock()
        return self._switch_lock

    async def _fail_over_from(self, endpoint: str) -> bool:
        """Move off ``endpoint``; True once another endpoint is active."""
        async with self._get_switch_lock():
            if self.rpc_url != endpoint:
                # A concurrent request already switched away from it.
                logger.debug(f"[rpc] {endpoint} already replaced by {self.rpc_url}")
                return True
            return await self._switch_to_backup()

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Make a rate-limited JSON-RPC call against the active endpoint.

        Raises:
            TransportError: On HTTP, network or JSON-RPC errors
        """
        params = params or []
        await self.rate_limiter.acquire()
        endpoint = self.rpc_url
        try:
            result = await self._send(endpoint, method, params)
        except TransportError as e:
            self._errors += 1
            self.failover.report_failure(endpoint)
            if not (is_retryable_error(e) and await self._fail_over_from(endpoint)):
                raise
            logger.warning(f"[rpc] Retrying {method} on {self.rpc_url} after: {e}")
            await self.rate_limiter.acquire()
            result = await self._send(self.rpc_url, method, params)
        self.failover.report_success(self.rpc_url)
        return result

    # ------------------------------------------------------------------
    # Fetch operations used by the resolvers
    # ------------------------------------------------------------------

    async def fetch_account_info(self, address: str) -> Optional[AccountInfo]:
        """Raw account fetch; None when the account does not exist."""
        result = await self.request(
            "getAccountInfo",
            [address, {"encoding": "base64", "commitment": self.commitment}],
        )
        value = result.get("value") if isinstance(result, dict) else None
        if value is None:
            return None

        try:
            raw = value["data"]
            encoded = raw[0] if isinstance(raw, list) else raw
            return AccountInfo(
                data=base64.b64decode(encoded),
                owner=value["owner"],
                lamports=int(value.get("lamports", 0)),
                executable=bool(value.get("executable", False)),
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise TransportError(
                f"Malformed getAccountInfo value for {address}: {e}",
                "getAccountInfo",
                self.rpc_url,
            ) from e

    async def fetch_mint(self, address: str) -> MintInfo:
        """
        Fetch and decode an SPL mint.

        Raises:
            AccountNotFound: If the account does not exist
            DecodeError: If the account is not an SPL mint
        """
        account = await self.fetch_account_info(address)
        if account is None:
            raise AccountNotFound(address, "Mint not found")
        if account.owner not in TOKEN_PROGRAM_IDS:
            raise DecodeError(f"{address} is owned by {account.owner}, not a token program")
        return decode_mint(account.data)

    async def fetch_token_account_balance(self, address: str) -> TokenAmount:
        result = await self.request(
            "getTokenAccountBalance",
            [address, {"commitment": self.commitment}],
        )
        try:
            value = result["value"]
            return TokenAmount(
                amount=str(value["amount"]),
                decimals=int(value["decimals"]),
                ui_amount=value.get("uiAmount"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(
                f"Malformed getTokenAccountBalance value for {address}: {e}",
                "getTokenAccountBalance",
                self.rpc_url,
            ) from e

    async def fetch_token_list(self) -> List[Dict[str, Any]]:
        """Download the external token registry."""
        await self.rate_limiter.acquire()
        document = await self._get_json(self.token_list_url)
        tokens = document.get("tokens", []) if isinstance(document, dict) else document
        if not isinstance(tokens, list):
            raise TransportError("Token list has no token array", "GET", self.token_list_url)
        return tokens

    def derive_program_address(self, seeds: Sequence[bytes], program_id: str) -> Tuple[str, int]:
        return find_program_address(seeds, program_id)

    async def get_slot(self) -> int:
        return int(await self.request("getSlot", [{"commitment": self.commitment}]))

    async def get_block_height(self) -> int:
        return int(await self.request("getBlockHeight", [{"commitment": self.commitment}]))

    async def check_health(self) -> bool:
        try:
            await self.get_slot()
            return True
        except TransportError as e:
            logger.warning(f"[rpc] Health check failed: {e}")
            return False

    def get_metrics(self) -> Dict[str, Any]:
        return {
            "http_calls": self._http_calls,
            "errors": self._errors,
            "active_endpoint": self.rpc_url,
            "rate_limiter": self.rate_limiter.get_metrics(),
            "failover": self.failover.get_status(),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        logger.debug(f"[rpc] Closing client: {self.get_metrics()}")
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "SolanaRpcClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

"""
ingestion/dex/raydium/abi.py

Static description of the Raydium v4 pool instruction / account schema.

Reference data only: emitted verbatim as ``PoolInfo.contract_abi``, never
used to build or execute instructions.
"""
import json
from typing import Any, Dict, List


def _account(name: str, is_mut: bool = False, is_signer: bool = False) -> Dict[str, Any]:
    return {"name": name, "isMut": is_mut, "isSigner": is_signer}


def _args(*pairs: str) -> List[Dict[str, str]]:
    return [{"name": name, "type": "u64" if name != "nonce" else "u8"} for name in pairs]


_LIQUIDITY_ACCOUNTS = [
    _account("poolState", is_mut=True),
    _account("userBaseToken", is_mut=True),
    _account("userQuoteToken", is_mut=True),
    _account("userLpToken", is_mut=True),
    _account("baseVault", is_mut=True),
    _account("quoteVault", is_mut=True),
    _account("lpTokenMint", is_mut=True),
    _account("userAuthority", is_signer=True),
    _account("tokenProgram"),
]

RAYDIUM_V4_POOL_ABI: Dict[str, Any] = {
    "version": "0.4.0",
    "name": "raydium_v4_pool",
    "instructions": [
        {
            "name": "initialize",
            "accounts": [
                _account("poolState", is_mut=True),
                _account("baseTokenMint"),
                _account("quoteTokenMint"),
                _account("lpTokenMint", is_mut=True),
                _account("baseVault", is_mut=True),
                _account("quoteVault", is_mut=True),
                _account("authority", is_signer=True),
                _account("systemProgram"),
                _account("tokenProgram"),
                _account("associatedTokenProgram"),
                _account("rent"),
            ],
            "args": _args("nonce", "openTime", "initBaseAmount", "initQuoteAmount"),
        },
        {
            "name": "swap",
            "accounts": [
                _account("poolState", is_mut=True),
                _account("userSourceToken", is_mut=True),
                _account("userDestinationToken", is_mut=True),
                _account("sourceVault", is_mut=True),
                _account("destinationVault", is_mut=True),
                _account("userAuthority", is_signer=True),
                _account("tokenProgram"),
            ],
            "args": _args("amountIn", "minimumAmountOut"),
        },
        {
            "name": "addLiquidity",
            "accounts": list(_LIQUIDITY_ACCOUNTS),
            "args": _args("baseAmount", "quoteAmount", "minimumLpAmount"),
        },
        {
            "name": "removeLiquidity",
            "accounts": list(_LIQUIDITY_ACCOUNTS),
            "args": _args("lpAmount", "minimumBaseAmount", "minimumQuoteAmount"),
        },
    ],
    "accounts": [
        {
            "name": "PoolState",
            "type": {
                "kind": "struct",
                "fields": [
                    {"name": "baseTokenMint", "type": "publicKey"},
                    {"name": "quoteTokenMint", "type": "publicKey"},
                    {"name": "lpTokenMint", "type": "publicKey"},
                    {"name": "baseVault", "type": "publicKey"},
                    {"name": "quoteVault", "type": "publicKey"},
                    {"name": "authority", "type": "publicKey"},
                    {"name": "nonce", "type": "u8"},
                    {"name": "openTime", "type": "u64"},
                    {"name": "lpSupply", "type": "u64"},
                    {"name": "lastRewardTime", "type": "u64"},
                    {"name": "rewardPerSecond", "type": "u64"},
                ],
            },
        }
    ],
    "types": [
        {
            "name": "SwapDirection",
            "type": {
                "kind": "enum",
                "variants": [{"name": "BaseToQuote"}, {"name": "QuoteToBase"}],
            },
        }
    ],
    "errors": [
        {"code": 6000, "name": "InvalidNonce", "msg": "Invalid nonce"},
        {"code": 6001, "name": "InvalidBaseVault", "msg": "Invalid base token vault"},
        {"code": 6002, "name": "InvalidQuoteVault", "msg": "Invalid quote token vault"},
        {"code": 6003, "name": "InvalidLpMint", "msg": "Invalid LP token mint"},
        {"code": 6004, "name": "InsufficientLiquidity", "msg": "Insufficient liquidity"},
        {"code": 6005, "name": "SlippageExceeded", "msg": "Slippage tolerance exceeded"},
    ],
}


def contract_abi_json() -> str:
    """The schema document as pretty-printed JSON text."""
    return json.dumps(RAYDIUM_V4_POOL_ABI, indent=2)

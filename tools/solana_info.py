#!/usr/bin/env python3
"""tools/solana_info.py

Command-line front end for SPL token and Raydium v4 pool lookups.

Usage:
    solana-info token <mint> [-o FILE]
    solana-info pool <pool> [-o FILE] [--with-liquidity] [--with-price]
    solana-info metadata <mint>
    solana-info health

Global options: --config PATH, --rpc-url URL, -v.
Results are written as JSON (token_info_<addr>.json / pool_info_<addr>.json
by default). Any failure prints "Error: <message>" and exits 1.
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from typing import List, Optional

from config.client_config import ConfigError, load_client_config
from ingestion.address import validate_pool_address, validate_token_address
from ingestion.errors import SolanaInfoError
from ingestion.services import Services, build_services
from ingestion.storage import save_pool_info, save_token_info

logger = logging.getLogger(__name__)

RED = '\033[0;31m'
GREEN = '\033[0;32m'
YELLOW = '\033[1;33m'
NC = '\033[0m'


def log_ok(msg):
    print(f"{GREEN}{msg}{NC}")


def log_warn(msg):
    print(f"{YELLOW}{msg}{NC}")


def log_error(msg):
    print(f"{RED}Error: {msg}{NC}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solana-info",
        description="Get Solana token and Raydium pool information",
    )
    parser.add_argument("--config", default=None, help="Path to YAML client config")
    parser.add_argument("--rpc-url", default=None, help="Override the primary RPC endpoint")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    token = sub.add_parser("token", help="Get token information")
    token.add_argument("address", help="Token mint address")
    token.add_argument("-o", "--output", default=None, help="Output JSON file")

    pool = sub.add_parser("pool", help="Get Raydium pool information")
    pool.add_argument("address", help="Pool address")
    pool.add_argument("-o", "--output", default=None, help="Output JSON file")
    pool.add_argument("--with-liquidity", action="store_true", help="Include vault balances")
    pool.add_argument("--with-price", action="store_true", help="Include price ratio")

    metadata = sub.add_parser("metadata", help="Show on-chain token metadata")
    metadata.add_argument("address", help="Token mint address")

    sub.add_parser("health", help="Check RPC endpoint health")
    return parser


async def cmd_token(services: Services, args: argparse.Namespace) -> int:
    if not validate_token_address(args.address):
        log_error("Invalid token address format")
        return 1

    address = args.address.strip()
    print(f"Fetching token information for {address}...")
    info = await services.tokens.get_token_info(address)
    path = save_token_info(address, info, args.output, services.config.output_dir)

    log_ok(f"Token: {info.metadata.name} ({info.symbol})")
    print(f"  Decimals: {info.decimals}")
    if info.supply is not None:
        print(f"  Supply:   {info.supply}")
    print(f"Token info saved to {path}")
    return 0


async def cmd_pool(services: Services, args: argparse.Namespace) -> int:
    if not validate_pool_address(args.address):
        log_error("Invalid pool address format")
        return 1

    address = args.address.strip()
    print(f"Fetching pool information for {address}...")
    info = await services.pools.get_pool_with_extended_info(
        address,
        with_liquidity=args.with_liquidity,
        with_price=args.with_price,
    )
    path = save_pool_info(address, info, args.output, services.config.output_dir)

    log_ok(f"Pool: {info.base_token.symbol}/{info.quote_token.symbol}")
    print(f"  Base token:  {info.base_token_address}")
    print(f"  Quote token: {info.quote_token_address}")
    if info.liquidity is not None:
        print(
            f"  Liquidity:   {info.liquidity.get_base_amount_decimal()} {info.base_token.symbol} / "
            f"{info.liquidity.get_quote_amount_decimal()} {info.quote_token.symbol}"
        )
    elif args.with_liquidity:
        log_warn("  Liquidity unavailable")
    if info.price is not None:
        print(f"  Price: 1 {info.base_token.symbol} = {info.price.base_to_quote} {info.quote_token.symbol}")
    elif args.with_price:
        log_warn("  Price unavailable")
    print(f"Pool info saved to {path}")
    return 0


async def cmd_metadata(services: Services, args: argparse.Namespace) -> int:
    if not validate_token_address(args.address):
        log_error("Invalid token address format")
        return 1

    metadata = await services.tokens.get_token_metadata(args.address)
    if metadata is None:
        log_warn(f"No metadata for {args.address.strip()}")
        return 0

    log_ok(f"{metadata.name} ({metadata.symbol})")
    print(f"  URI: {metadata.uri}")
    return 0


async def cmd_health(services: Services, args: argparse.Namespace) -> int:
    height = await services.tokens.check_health()
    log_ok(f"RPC endpoint {services.rpc.rpc_url} is healthy")
    print(f"  Block height: {height}")
    return 0


COMMANDS = {
    "token": cmd_token,
    "pool": cmd_pool,
    "metadata": cmd_metadata,
    "health": cmd_health,
}


async def run(args: argparse.Namespace, services: Services) -> int:
    async with services:
        return await COMMANDS[args.command](services, args)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_client_config(args.config)
        if args.rpc_url:
            config = dataclasses.replace(config, rpc_url=args.rpc_url)
    except ConfigError as e:
        log_error(str(e))
        return 1

    try:
        return asyncio.run(run(args, build_services(config)))
    except (SolanaInfoError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        log_error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
ingestion/errors.py

Error kinds raised by the token / pool resolution pipeline.

Every wrapping site uses ``raise ... from cause`` so the original exception
stays reachable through ``__cause__``.
"""


class SolanaInfoError(RuntimeError):
    """Base class for all errors surfaced by the ingestion layer."""


class InvalidAddress(SolanaInfoError):
    """Address is not a base58 string decoding to a 32-byte public key."""

    def __init__(self, address: str, kind: str = "token"):
        self.address = address
        self.kind = kind
        super().__init__(f"Invalid {kind} address: {address!r}")


class AccountNotFound(SolanaInfoError):
    """Requested account does not exist on chain."""

    def __init__(self, address: str, message: str = "Account not found"):
        self.address = address
        super().__init__(f"{message}: {address}")


class PoolNotFound(AccountNotFound):
    def __init__(self, address: str):
        super().__init__(address, "Pool not found")


class NotAValidPool(SolanaInfoError):
    """Account exists but is not owned by the Raydium AMM v4 program."""

    def __init__(self, address: str, owner: str):
        self.address = address
        self.owner = owner
        super().__init__(
            f"Not a valid Raydium V4 pool: {address} is owned by {owner}"
        )


class DecodeError(SolanaInfoError, ValueError):
    """Account data does not match the expected binary layout."""


class LiquidityUnavailable(SolanaInfoError):
    pass


class PriceUnavailable(SolanaInfoError):
    pass


class TransportError(SolanaInfoError):
    """Opaque RPC / HTTP failure, annotated with the method and endpoint."""

    def __init__(self, message: str, method: str = "", endpoint: str = ""):
        self.method = method
        self.endpoint = endpoint
        super().__init__(message)

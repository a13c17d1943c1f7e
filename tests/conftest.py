import pytest

from fakes import FakeRpc
from ingestion.sources.raydium_pool import PoolResolver
from ingestion.sources.token_info import TokenResolver


@pytest.fixture
def rpc() -> FakeRpc:
    return FakeRpc()


@pytest.fixture
def tokens(rpc: FakeRpc) -> TokenResolver:
    return TokenResolver(rpc)


@pytest.fixture
def pools(rpc: FakeRpc, tokens: TokenResolver) -> PoolResolver:
    return PoolResolver(rpc, tokens)

import asyncio
import base64

import pytest

from fakes import USDC_MINT, make_address
from ingestion.dex.spl_token import TOKEN_PROGRAM_ID, MintInfo, encode_mint
from ingestion.errors import AccountNotFound, DecodeError, TransportError
from ingestion.rpc.client import SolanaRpcClient
from ingestion.rpc.failover import FailoverManager, is_retryable_error

PRIMARY = "https://primary.example"
BACKUP = "https://backup.example"


def _account_value(data: bytes, owner: str):
    return {
        "value": {
            "data": [base64.b64encode(data).decode("ascii"), "base64"],
            "owner": owner,
            "lamports": 1461600,
            "executable": False,
        }
    }


class StubHttp:
    """Replaces SolanaRpcClient._post; answers per (url, method)."""

    def __init__(self, responses):
        self.responses = responses
        self.sent = []

    async def __call__(self, url, payload):
        self.sent.append((url, payload["method"], payload["params"]))
        await asyncio.sleep(0)
        answer = self.responses[(url, payload["method"])]
        if isinstance(answer, list):
            answer = answer.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return {"jsonrpc": "2.0", "id": payload["id"], **answer}


def _client(monkeypatch, responses, backups=(BACKUP,)):
    client = SolanaRpcClient(rpc_url=PRIMARY, backup_urls=backups)
    stub = StubHttp(responses)
    monkeypatch.setattr(client, "_post", stub)
    return client, stub


def test_fetch_account_info_decodes_base64(monkeypatch):
    client, stub = _client(monkeypatch, {
        (PRIMARY, "getAccountInfo"): {"result": _account_value(b"\x01\x02\x03", TOKEN_PROGRAM_ID)},
    })

    account = asyncio.run(client.fetch_account_info(USDC_MINT))

    assert account.data == b"\x01\x02\x03"
    assert account.owner == TOKEN_PROGRAM_ID
    assert account.lamports == 1461600
    url, method, params = stub.sent[0]
    assert params == [USDC_MINT, {"encoding": "base64", "commitment": "confirmed"}]


def test_fetch_account_info_missing_is_none(monkeypatch):
    client, _ = _client(monkeypatch, {
        (PRIMARY, "getAccountInfo"): {"result": {"context": {"slot": 1}, "value": None}},
    })
    assert asyncio.run(client.fetch_account_info(USDC_MINT)) is None


def test_rpc_error_raises_transport_error(monkeypatch):
    client, _ = _client(monkeypatch, {
        (PRIMARY, "getAccountInfo"): {"error": {"code": -32602, "message": "Invalid param"}},
    }, backups=())

    with pytest.raises(TransportError) as exc:
        asyncio.run(client.fetch_account_info(USDC_MINT))
    assert exc.value.method == "getAccountInfo"
    assert exc.value.endpoint == PRIMARY


def test_fetch_mint_decodes_layout(monkeypatch):
    mint = MintInfo(decimals=6, supply=42, is_initialized=True, mint_authority=make_address(3))
    client, _ = _client(monkeypatch, {
        (PRIMARY, "getAccountInfo"): {"result": _account_value(encode_mint(mint), TOKEN_PROGRAM_ID)},
    })
    assert asyncio.run(client.fetch_mint(USDC_MINT)) == mint


def test_fetch_mint_missing_account(monkeypatch):
    client, _ = _client(monkeypatch, {
        (PRIMARY, "getAccountInfo"): {"result": {"value": None}},
    })
    with pytest.raises(AccountNotFound):
        asyncio.run(client.fetch_mint(USDC_MINT))


def test_fetch_mint_wrong_owner(monkeypatch):
    client, _ = _client(monkeypatch, {
        (PRIMARY, "getAccountInfo"): {"result": _account_value(bytes(82), make_address(7))},
    })
    with pytest.raises(DecodeError):
        asyncio.run(client.fetch_mint(USDC_MINT))


def test_fetch_token_account_balance(monkeypatch):
    client, _ = _client(monkeypatch, {
        (PRIMARY, "getTokenAccountBalance"): {
            "result": {"value": {"amount": "4000000", "decimals": 6, "uiAmount": 4.0}}
        },
    })
    balance = asyncio.run(client.fetch_token_account_balance(make_address(4)))
    assert balance.amount == "4000000"
    assert balance.decimals == 6
    assert balance.ui_amount == 4.0


def test_retryable_error_switches_to_backup(monkeypatch):
    client, stub = _client(monkeypatch, {
        (PRIMARY, "getBlockHeight"): TransportError("HTTP 429 from primary: Too many requests"),
        (BACKUP, "getSlot"): {"result": 1000},
        (BACKUP, "getBlockHeight"): {"result": 999},
    })

    assert asyncio.run(client.get_block_height()) == 999
    assert client.rpc_url == BACKUP
    assert [(url, method) for url, method, _ in stub.sent] == [
        (PRIMARY, "getBlockHeight"),
        (BACKUP, "getSlot"),
        (BACKUP, "getBlockHeight"),
    ]
    assert client.rate_limiter.get_metrics()["granted"] == 3


def test_concurrent_retryable_errors_switch_once(monkeypatch):
    client, stub = _client(monkeypatch, {
        (PRIMARY, "getBlockHeight"): [
            TransportError("HTTP 429 from primary: Too many requests"),
            TransportError("HTTP 429 from primary: Too many requests"),
        ],
        (BACKUP, "getSlot"): {"result": 1000},
        (BACKUP, "getBlockHeight"): {"result": 999},
    })

    async def both():
        return await asyncio.gather(client.get_block_height(), client.get_block_height())

    assert asyncio.run(both()) == [999, 999]
    assert client.rpc_url == BACKUP
    sent = [(url, method) for url, method, _ in stub.sent]
    assert sent.count((BACKUP, "getSlot")) == 1
    assert (PRIMARY, "getSlot") not in sent
    assert sent.count((BACKUP, "getBlockHeight")) == 2
    assert client.get_metrics()["failover"]["switch_count"] == 1


def test_non_retryable_error_does_not_fail_over(monkeypatch):
    client, stub = _client(monkeypatch, {
        (PRIMARY, "getBlockHeight"): TransportError("HTTP 500 from primary"),
    })
    with pytest.raises(TransportError):
        asyncio.run(client.get_block_height())
    assert client.rpc_url == PRIMARY
    assert len(stub.sent) == 1


def test_failover_gives_up_when_backups_fail(monkeypatch):
    client, _ = _client(monkeypatch, {
        (PRIMARY, "getSlot"): TransportError("Request timeout calling getSlot"),
        (BACKUP, "getSlot"): TransportError("Connection error calling getSlot"),
    })
    assert asyncio.run(client.check_health()) is False
    assert client.rpc_url == PRIMARY


def test_fetch_token_list_accepts_both_shapes(monkeypatch):
    client = SolanaRpcClient(rpc_url=PRIMARY, backup_urls=())
    documents = [{"tokens": [{"address": USDC_MINT}]}, [{"address": USDC_MINT}]]

    async def fake_get_json(url):
        assert url == client.token_list_url
        return documents.pop(0)

    monkeypatch.setattr(client, "_get_json", fake_get_json)

    async def run():
        return await client.fetch_token_list(), await client.fetch_token_list()

    first, second = asyncio.run(run())
    assert first == second == [{"address": USDC_MINT}]


def test_fetch_token_list_rejects_garbage(monkeypatch):
    client = SolanaRpcClient(rpc_url=PRIMARY, backup_urls=())

    async def fake_get_json(url):
        return {"tokens": "nope"}

    monkeypatch.setattr(client, "_get_json", fake_get_json)
    with pytest.raises(TransportError):
        asyncio.run(client.fetch_token_list())


def test_is_retryable_error_markers():
    assert is_retryable_error(TransportError("HTTP 429 from x"))
    assert is_retryable_error(TransportError("HTTP 403 from x: Forbidden"))
    assert is_retryable_error(TransportError("Request timeout calling getSlot"))
    assert not is_retryable_error(TransportError("HTTP 500 from x"))
    # An address containing the digits must not count as a rate limit.
    assert not is_retryable_error(TransportError("RPC error for 4291abc: invalid"))


def test_failover_manager_candidates_skip_active():
    manager = FailoverManager(PRIMARY, [BACKUP, "https://third.example"])
    assert manager.get_active_endpoint() == PRIMARY
    assert manager.backup_candidates() == [BACKUP, "https://third.example"]

    manager.report_failure(BACKUP)
    manager.switch_to("https://third.example")
    assert manager.backup_candidates() == [PRIMARY, BACKUP]
    assert manager.get_status()["switch_count"] == 1


def test_derive_program_address_is_local(monkeypatch):
    client, stub = _client(monkeypatch, {})
    address, bump = client.derive_program_address([b"metadata"], make_address(9))
    assert isinstance(address, str) and 0 <= bump <= 255
    assert stub.sent == []

"""Tests for the REST adapters: payload parsing and HTTP error mapping."""
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from core.errors import AdapterError, UnsupportedCurrencyError
from gateway.bitpay import BitpayAdapter
from gateway.bitstamp import BitstampAdapter
from gateway.blockchain_info import BlockchainInfoAdapter
from gateway.blockstream import BlockstreamAdapter
from gateway.coinbase import CoinbaseAdapter
from gateway.rest import RestClient

ADDR = "1BoatSLRHtKNngkdXEeobR76b53LETtpyT"
OTHER = "1CounterpartyXXXXXXXXXXXXXXXUWLpVr"
TID = "ab" * 32


class StubClient:
    """Stands in for RestClient: serves canned payloads keyed by path."""

    def __init__(self, routes, name="stub"):
        self.routes = routes
        self.name = name
        self.requests = []

    def _lookup(self, path, params):
        self.requests.append((path, params))
        if path not in self.routes:
            raise AdapterError(f"GET {path} returned HTTP 404", adapter=self.name)
        return self.routes[path]

    def get_json(self, path, params=None):
        return self._lookup(path, params)

    def get_int(self, path, params=None):
        return int(self._lookup(path, params))


def _response(status=200, content=b"{}"):
    resp = MagicMock()
    resp.status_code = status
    resp.content = content
    resp.text = content.decode()
    return resp


# ── RestClient ─────────────────────────────────────────────────────────

class TestRestClient:
    def _client(self, resp=None, error=None):
        session = MagicMock()
        if error is not None:
            session.get.side_effect = error
        else:
            session.get.return_value = resp
        return RestClient("https://example.org/api/", "example", timeout_s=3, session=session), session

    def test_get_json(self):
        client, session = self._client(_response(content=b'{"height": 5}'))
        assert client.get_json("/latestblock", params={"a": 1}) == {"height": 5}
        session.get.assert_called_once_with(
            "https://example.org/api/latestblock", params={"a": 1}, timeout=3,
        )

    def test_get_int(self):
        client, _ = self._client(_response(content=b"850123\n"))
        assert client.get_int("/blocks/tip/height") == 850123

    def test_http_error_status(self):
        client, _ = self._client(_response(status=500, content=b"oops"))
        with pytest.raises(AdapterError, match="HTTP 500"):
            client.get_json("/x")

    def test_transport_error_wrapped(self):
        client, _ = self._client(error=requests.ConnectionError("refused"))
        with pytest.raises(AdapterError) as exc_info:
            client.get_json("/x")
        assert exc_info.value.adapter == "example"

    def test_timeout_wrapped(self):
        client, _ = self._client(error=requests.Timeout("slow"))
        with pytest.raises(AdapterError):
            client.get_json("/x")

    def test_invalid_json(self):
        client, _ = self._client(_response(content=b"<html>"))
        with pytest.raises(AdapterError, match="invalid JSON"):
            client.get_json("/x")

    def test_non_integer_body(self):
        client, _ = self._client(_response(content=b"abc"))
        with pytest.raises(AdapterError):
            client.get_int("/x")


# ── blockchain.info ────────────────────────────────────────────────────

def _bci_tx(tid, outputs, block_height=None):
    tx = {"hash": tid, "out": [{"addr": a, "value": v} for a, v in outputs]}
    if block_height is not None:
        tx["block_height"] = block_height
    return tx


class TestBlockchainInfo:
    def test_fetch_transaction_for_address(self):
        client = StubClient({
            f"/rawtx/{TID}": _bci_tx(TID, [(ADDR, 5000), (OTHER, 700)], block_height=100),
            "/latestblock": {"height": 102},
        })
        tx = BlockchainInfoAdapter(client=client).fetch_transaction(TID, address=ADDR)
        assert tx.tid == TID
        assert tx.amount == 5000
        assert tx.confirmations == 3
        assert tx.block_height == 100

    def test_fetch_transaction_without_address_sums_outputs(self):
        client = StubClient({
            f"/rawtx/{TID}": _bci_tx(TID, [(ADDR, 5000), (OTHER, 700)]),
            "/latestblock": {"height": 102},
        })
        tx = BlockchainInfoAdapter(client=client).fetch_transaction(TID)
        assert tx.amount == 5700
        assert tx.confirmations == 0

    def test_fetch_transactions_for(self):
        client = StubClient({
            f"/rawaddr/{ADDR}": {"txs": [
                _bci_tx("01" * 32, [(ADDR, 1000)], block_height=90),
                _bci_tx("02" * 32, [(OTHER, 1), (ADDR, 2000)]),
            ]},
            "/latestblock": {"height": 99},
        })
        txs = BlockchainInfoAdapter(client=client).fetch_transactions_for(ADDR)
        assert [(t.amount, t.confirmations) for t in txs] == [(1000, 10), (2000, 0)]

    def test_no_transactions_skips_height_lookup(self):
        client = StubClient({f"/rawaddr/{ADDR}": {"txs": []}})
        assert BlockchainInfoAdapter(client=client).fetch_transactions_for(ADDR) == []
        assert [p for p, _ in client.requests] == [f"/rawaddr/{ADDR}"]

    def test_fetch_balance_for(self):
        client = StubClient({"/balance": {ADDR: {"final_balance": 12345, "n_tx": 2}}})
        assert BlockchainInfoAdapter(client=client).fetch_balance_for(ADDR) == 12345
        assert client.requests == [("/balance", {"active": ADDR})]

    def test_malformed_balance(self):
        client = StubClient({"/balance": {}})
        with pytest.raises(AdapterError):
            BlockchainInfoAdapter(client=client).fetch_balance_for(ADDR)

    def test_malformed_transaction(self):
        client = StubClient({f"/rawtx/{TID}": {"oops": True}, "/latestblock": {"height": 1}})
        with pytest.raises(AdapterError):
            BlockchainInfoAdapter(client=client).fetch_transaction(TID)


# ── Blockstream ────────────────────────────────────────────────────────

def _esplora_tx(tid, outputs, block_height=None):
    status = {"confirmed": block_height is not None}
    if block_height is not None:
        status["block_height"] = block_height
    return {
        "txid": tid,
        "vout": [{"scriptpubkey_address": a, "value": v} for a, v in outputs],
        "status": status,
    }


class TestBlockstream:
    def test_fetch_transaction(self):
        client = StubClient({
            f"/tx/{TID}": _esplora_tx(TID, [(ADDR, 3000), (OTHER, 10)], block_height=500),
            "/blocks/tip/height": "505",
        })
        tx = BlockstreamAdapter(client=client).fetch_transaction(TID, address=ADDR)
        assert (tx.amount, tx.confirmations, tx.block_height) == (3000, 6, 500)

    def test_unconfirmed_transaction(self):
        client = StubClient({
            f"/tx/{TID}": _esplora_tx(TID, [(ADDR, 3000)]),
            "/blocks/tip/height": "505",
        })
        tx = BlockstreamAdapter(client=client).fetch_transaction(TID, address=ADDR)
        assert tx.confirmations == 0
        assert tx.block_height is None

    def test_fetch_transactions_for(self):
        client = StubClient({
            f"/address/{ADDR}/txs": [
                _esplora_tx("01" * 32, [(ADDR, 100)], block_height=10),
                _esplora_tx("02" * 32, [(ADDR, 200), (ADDR, 50)]),
            ],
            "/blocks/tip/height": "10",
        })
        txs = BlockstreamAdapter(client=client).fetch_transactions_for(ADDR)
        assert [(t.amount, t.confirmations) for t in txs] == [(100, 1), (250, 0)]

    def test_fetch_balance_includes_mempool(self):
        client = StubClient({f"/address/{ADDR}": {
            "chain_stats": {"funded_txo_sum": 10_000, "spent_txo_sum": 4_000},
            "mempool_stats": {"funded_txo_sum": 500, "spent_txo_sum": 0},
        }})
        assert BlockstreamAdapter(client=client).fetch_balance_for(ADDR) == 6_500

    def test_malformed_balance(self):
        client = StubClient({f"/address/{ADDR}": {"chain_stats": {}}})
        with pytest.raises(AdapterError):
            BlockstreamAdapter(client=client).fetch_balance_for(ADDR)

    def test_testnet_base_url(self):
        adapter = BlockstreamAdapter.testnet_adapter()
        assert adapter.testnet
        assert adapter.client.base_url.endswith("/testnet/api")


# ── Exchange rates ─────────────────────────────────────────────────────

class TestBitpay:
    def test_rates_list(self):
        client = StubClient({"/api/rates": [
            {"code": "BTC", "rate": 1},
            {"code": "USD", "rate": 50000.5},
            {"code": "XXX", "rate": None},
        ]})
        rates = BitpayAdapter(client=client).rates()
        assert rates["USD"] == Decimal("50000.5")
        assert "XXX" not in rates

    def test_wrapped_data_payload(self):
        client = StubClient({"/api/rates": {"data": [{"code": "EUR", "rate": 40000}]}})
        assert BitpayAdapter(client=client).convert_from_currency(40, "EUR") == 100_000

    def test_malformed_payload(self):
        client = StubClient({"/api/rates": {"error": "nope"}})
        with pytest.raises(AdapterError):
            BitpayAdapter(client=client).rates()


class TestCoinbase:
    def test_convert(self):
        client = StubClient({"/v2/exchange-rates": {
            "data": {"currency": "BTC", "rates": {"USD": "50000.00", "EUR": "40000", "BAD": "x"}},
        }})
        adapter = CoinbaseAdapter(client=client)
        assert adapter.convert_from_currency(100, "usd") == 200_000
        assert client.requests[0] == ("/v2/exchange-rates", {"currency": "BTC"})
        assert "BAD" not in adapter.rates()

    def test_unknown_currency(self):
        client = StubClient({"/v2/exchange-rates": {"data": {"rates": {"USD": "1"}}}})
        with pytest.raises(UnsupportedCurrencyError):
            CoinbaseAdapter(client=client).convert_from_currency(1, "JPY")

    def test_malformed_payload(self):
        client = StubClient({"/v2/exchange-rates": {"errors": []}})
        with pytest.raises(AdapterError):
            CoinbaseAdapter(client=client).rates()


class TestBitstamp:
    def test_tickers_per_currency(self):
        client = StubClient({
            "/api/v2/ticker/btcusd/": {"last": "50000"},
            "/api/v2/ticker/btceur/": {"last": "40000"},
        })
        adapter = BitstampAdapter(currencies=["usd", "EUR"], client=client)
        assert adapter.convert_from_currency(50, "USD") == 100_000
        assert adapter.convert_from_currency(40, "EUR") == 100_000
        # both tickers fetched once, then served from cache
        assert len(client.requests) == 2

    def test_failing_market_is_skipped(self):
        client = StubClient({
            "/api/v2/ticker/btcusd/": {"last": "50000"},
            "/api/v2/ticker/btceur/": {"volume": "1"},
        })
        adapter = BitstampAdapter(currencies=["USD", "GBP", "EUR"], client=client)
        assert adapter.rates() == {"USD": Decimal("50000")}
        assert adapter.convert_from_currency(50, "USD") == 100_000
        with pytest.raises(UnsupportedCurrencyError):
            adapter.convert_from_currency(1, "GBP")

    def test_all_markets_failing(self):
        client = StubClient({})
        with pytest.raises(AdapterError, match="no ticker answered"):
            BitstampAdapter(currencies=["USD", "GBP"], client=client).rates()

    def test_malformed_ticker(self):
        client = StubClient({"/api/v2/ticker/btcusd/": {"volume": "1"}})
        with pytest.raises(AdapterError):
            BitstampAdapter(currencies=["USD"], client=client).rates()

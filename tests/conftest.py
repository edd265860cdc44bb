"""Shared test fixtures."""
import sys
import os
from decimal import Decimal

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.errors import AdapterError  # noqa: E402
from core.types import Transaction  # noqa: E402
from core.utils import unfreeze_time  # noqa: E402
from gateway.base import BlockchainAdapter, ExchangeRateAdapter  # noqa: E402

# BIP32 test vector 1, chain m
XPUB = (
    "xpub661MyMwAqRbcFtXgS5sYJABqqG9YLmC4Q1Rdap9gSE8NqtwybGhePY2gZ29E"
    "SFjqJoCu1Rupje8YtGqsefD265TMg7usUDFdp6W1EGMcet8"
)


class FakeBlockchain(BlockchainAdapter):
    """In-memory blockchain adapter; fails every call when *error* is set."""

    def __init__(self, name="fake_chain", transactions=None, balance=0, error=None):
        self.name = name
        self.transactions = list(transactions or [])
        self.balance = balance
        self.error = error
        self.calls = []

    def _call(self, *call):
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    def fetch_transaction(self, tid, address=None):
        self._call("fetch_transaction", tid, address)
        for t in self.transactions:
            if t.tid == tid:
                return t
        raise AdapterError(f"{tid} not found", adapter=self.name)

    def fetch_transactions_for(self, address):
        self._call("fetch_transactions_for", address)
        return list(self.transactions)

    def fetch_balance_for(self, address):
        self._call("fetch_balance_for", address)
        return self.balance


class FakeRates(ExchangeRateAdapter):
    """Exchange-rate adapter serving a fixed table (price of 1 BTC)."""

    def __init__(self, table=None, name="fake_rates", error=None, rates_ttl_s=60):
        super().__init__(rates_ttl_s)
        self.name = name
        self.table = {k: Decimal(str(v)) for k, v in (table or {}).items()}
        self.error = error
        self.fetches = 0

    def fetch_rates(self):
        self.fetches += 1
        if self.error is not None:
            raise self.error
        return dict(self.table)


@pytest.fixture(autouse=True)
def _real_clock():
    yield
    unfreeze_time()


@pytest.fixture
def xpub():
    return XPUB


@pytest.fixture
def fake_chain():
    return FakeBlockchain


@pytest.fixture
def fake_rates():
    return FakeRates


@pytest.fixture
def paid_tx():
    return Transaction(tid="aa" * 32, amount=50_000, confirmations=3, block_height=800_000)


@pytest.fixture
def gw(xpub):
    from gateway.gateway import Gateway
    return Gateway(
        xpub,
        blockchain_adapters=[FakeBlockchain()],
        exchange_rate_adapters=[FakeRates({"USD": 50_000, "EUR": 40_000})],
        default_currency="USD",
        name="test",
    )

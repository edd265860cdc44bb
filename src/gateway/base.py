"""Abstract base classes for blockchain and exchange-rate adapters.

Defines the contract every data source must follow. The gateway only talks to
these ABCs, so sources are interchangeable and can be listed in any order of
preference.
"""
from __future__ import annotations
import logging
import threading
from abc import ABC, abstractmethod
from decimal import Decimal, ROUND_DOWN
from typing import Dict, List, Optional

from core.errors import AdapterError, UnsupportedCurrencyError
from core.types import Transaction
from core.units import SATOSHIS_PER_BTC, Number, to_decimal
from core.utils import time_now_ms

log = logging.getLogger(__name__)


# ── Blockchain ABC ─────────────────────────────────────────────────────

class BlockchainAdapter(ABC):
    """Read-only access to the Bitcoin blockchain."""

    name: str = "blockchain"

    @abstractmethod
    def fetch_transaction(self, tid: str, address: Optional[str] = None) -> Transaction:
        """Fetch a single transaction.

        When *address* is given the returned amount only counts outputs paying
        that address.
        """
        ...

    @abstractmethod
    def fetch_transactions_for(self, address: str) -> List[Transaction]: ...

    @abstractmethod
    def fetch_balance_for(self, address: str) -> int:
        """Confirmed + unconfirmed balance of *address* in satoshis."""
        ...


# ── Exchange rate ABC ──────────────────────────────────────────────────

class ExchangeRateAdapter(ABC):
    """Converts fiat (or any quoted currency) amounts to satoshis.

    Subclasses implement ``fetch_rates`` returning the price of 1 BTC per
    currency code; rates are cached for ``rates_ttl_s`` seconds.
    """

    name: str = "exchange_rate"

    def __init__(self, rates_ttl_s: float = 60):
        self.rates_ttl_s = rates_ttl_s
        self._rates: Dict[str, Decimal] = {}
        self._rates_updated_at: int = 0
        self._lock = threading.Lock()

    @abstractmethod
    def fetch_rates(self) -> Dict[str, Decimal]: ...

    def rates(self) -> Dict[str, Decimal]:
        """Cached rate table, refetched once older than rates_ttl_s.

        The fetch runs outside the lock; concurrent callers seeing a stale
        table may each refetch, the last one stored wins.
        """
        now = time_now_ms()
        with self._lock:
            expired = (now - self._rates_updated_at) >= self.rates_ttl_s * 1000
            if self._rates and not expired:
                return self._rates
        fetched = {k.upper(): v for k, v in self.fetch_rates().items()}
        with self._lock:
            self._rates = fetched
            self._rates_updated_at = now
        log.debug("%s: refreshed %d rates", self.name, len(fetched))
        return fetched

    def rate_for(self, currency: str) -> Decimal:
        rate = self.rates().get(currency.upper())
        if rate is None:
            raise UnsupportedCurrencyError(f"no rate for {currency}", adapter=self.name)
        if rate <= 0:
            raise AdapterError(f"non-positive rate {rate} for {currency}", adapter=self.name)
        return rate

    def convert_from_currency(self, amount: Number, currency: str = "USD") -> int:
        """Return how many satoshis *amount* units of *currency* are worth."""
        btc = to_decimal(amount) / self.rate_for(currency)
        satoshis = (btc * SATOSHIS_PER_BTC).to_integral_value(rounding=ROUND_DOWN)
        return int(satoshis)

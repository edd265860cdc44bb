"""Bitstamp ticker adapter.

Bitstamp has no rates table, only one ticker per market, so the adapter
polls the BTC markets of the configured quote currencies. Markets that fail
are left out of the table; the fetch only fails when none answers.
"""
from __future__ import annotations
import logging
from decimal import Decimal
from typing import Dict, Optional, Sequence

from core.errors import AdapterError
from core.utils import parse_decimal
from gateway.base import ExchangeRateAdapter
from gateway.rest import DEFAULT_TIMEOUT_S, RestClient

log = logging.getLogger(__name__)

BASE_URL = "https://www.bitstamp.net"
DEFAULT_CURRENCIES = ("USD", "EUR", "GBP")


class BitstampAdapter(ExchangeRateAdapter):

    name = "bitstamp"

    def __init__(self, currencies: Sequence[str] = DEFAULT_CURRENCIES, rates_ttl_s: float = 60,
                 timeout_s: float = DEFAULT_TIMEOUT_S, client: Optional[RestClient] = None):
        super().__init__(rates_ttl_s)
        self.currencies = [c.upper() for c in currencies]
        self.client = client or RestClient(BASE_URL, self.name, timeout_s)

    def fetch_rates(self) -> Dict[str, Decimal]:
        rates: Dict[str, Decimal] = {}
        for currency in self.currencies:
            try:
                rates[currency] = self._ticker(currency)
            except AdapterError as e:
                log.warning("%s: skipping BTC%s: %s", self.name, currency, e)
        if not rates:
            raise AdapterError(
                f"no ticker answered for {', '.join(self.currencies)}", adapter=self.name
            )
        return rates

    def _ticker(self, currency: str) -> Decimal:
        data = self.client.get_json(f"/api/v2/ticker/btc{currency.lower()}/")
        rate = parse_decimal(data.get("last") if isinstance(data, dict) else None)
        if rate is None:
            raise AdapterError(f"malformed ticker for BTC{currency}", adapter=self.name)
        return rate

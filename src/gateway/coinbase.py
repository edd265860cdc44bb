"""Coinbase exchange rates (``/v2/exchange-rates?currency=BTC``)."""
from __future__ import annotations
import logging
from decimal import Decimal
from typing import Dict, Optional

from core.errors import AdapterError
from core.utils import parse_decimal
from gateway.base import ExchangeRateAdapter
from gateway.rest import DEFAULT_TIMEOUT_S, RestClient

log = logging.getLogger(__name__)

BASE_URL = "https://api.coinbase.com"


class CoinbaseAdapter(ExchangeRateAdapter):

    name = "coinbase"

    def __init__(self, rates_ttl_s: float = 60, timeout_s: float = DEFAULT_TIMEOUT_S,
                 client: Optional[RestClient] = None):
        super().__init__(rates_ttl_s)
        self.client = client or RestClient(BASE_URL, self.name, timeout_s)

    def fetch_rates(self) -> Dict[str, Decimal]:
        data = self.client.get_json("/v2/exchange-rates", params={"currency": "BTC"})
        try:
            raw = data["data"]["rates"]
        except (KeyError, TypeError) as e:
            raise AdapterError("malformed exchange-rates response", adapter=self.name) from e
        rates: Dict[str, Decimal] = {}
        for code, value in raw.items():
            rate = parse_decimal(value)
            if rate is not None:
                rates[code] = rate
        return rates

"""BitPay exchange rates (``/api/rates``: price of 1 BTC in every currency)."""
from __future__ import annotations
import logging
from decimal import Decimal
from typing import Dict, Optional

from core.errors import AdapterError
from core.utils import parse_decimal
from gateway.base import ExchangeRateAdapter
from gateway.rest import DEFAULT_TIMEOUT_S, RestClient

log = logging.getLogger(__name__)

BASE_URL = "https://bitpay.com"


class BitpayAdapter(ExchangeRateAdapter):

    name = "bitpay"

    def __init__(self, rates_ttl_s: float = 60, timeout_s: float = DEFAULT_TIMEOUT_S,
                 client: Optional[RestClient] = None):
        super().__init__(rates_ttl_s)
        self.client = client or RestClient(BASE_URL, self.name, timeout_s)

    def fetch_rates(self) -> Dict[str, Decimal]:
        data = self.client.get_json("/api/rates")
        if isinstance(data, dict):
            data = data.get("data")
        if not isinstance(data, list):
            raise AdapterError("malformed rates response", adapter=self.name)
        rates: Dict[str, Decimal] = {}
        for entry in data:
            if not isinstance(entry, dict):
                continue
            rate = parse_decimal(entry.get("rate"))
            code = entry.get("code")
            if code and rate is not None:
                rates[code] = rate
        return rates

"""Amount conversion to satoshis.

BTC amounts are converted locally with the denomination table; any other
currency goes through the exchange-rate adapters, first answer wins.
"""
from __future__ import annotations
import logging
from typing import Callable, Optional, Sequence

from core.units import Number, to_satoshi
from gateway.base import ExchangeRateAdapter
from gateway.chain import try_adapters

log = logging.getLogger(__name__)

DEFAULT_DENOMINATION = "satoshi"


class CurrencyConverter:
    """Converts amounts using the adapters and default currency of a gateway.

    Both are read through callables at conversion time, so changing the
    gateway settings takes effect on the next call.
    """

    def __init__(
        self,
        adapters: Callable[[], Sequence[ExchangeRateAdapter]],
        default_currency: Callable[[], str],
    ):
        self._adapters = adapters
        self._default_currency = default_currency

    def convert(
        self,
        amount: Number,
        currency: Optional[str] = None,
        btc_denomination: Optional[str] = None,
    ) -> int:
        if currency is None:
            currency = self._default_currency()
        if btc_denomination is None:
            btc_denomination = DEFAULT_DENOMINATION
        currency = str(currency).upper()

        if currency == "BTC":
            return to_satoshi(amount, btc_denomination)

        satoshis = try_adapters(
            self._adapters(),
            lambda a: a.convert_from_currency(amount, currency),
            kind="exchange rate adapter",
        )
        log.debug("Converted %s %s -> %d sat", amount, currency, satoshis)
        return satoshis

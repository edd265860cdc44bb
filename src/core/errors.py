"""Exception hierarchy shared by the gateway, adapters and orders.

Recovered adapter failures never leave ``gateway.chain.try_adapters`` unless
they come from the last adapter tried; everything else propagates unchanged.
"""
from __future__ import annotations


class GatewayError(Exception):
    """Base class for all errors raised by this package."""


class AdapterError(GatewayError):
    """A single adapter failed to perform an operation."""

    def __init__(self, message: str, adapter: str = ""):
        super().__init__(f"{adapter}: {message}" if adapter else message)
        self.adapter = adapter


class UnsupportedCurrencyError(AdapterError):
    """An exchange-rate source does not quote the requested currency."""


class NoAdaptersConfiguredError(GatewayError):
    pass


class UnresolvedOrderTypeError(GatewayError):
    pass


class MalformedKeyError(GatewayError):
    pass


class UnknownDenominationError(GatewayError, ValueError):
    pass


class ConfigError(GatewayError, ValueError):
    pass

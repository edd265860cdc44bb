"""Factory functions for building adapters and gateways from configuration."""
from __future__ import annotations
import logging
from typing import List

from gateway.base import BlockchainAdapter, ExchangeRateAdapter
from gateway.gateway import Gateway

log = logging.getLogger(__name__)

BLOCKCHAIN_ADAPTERS = ("blockchain_info", "blockstream", "blockstream_testnet")
EXCHANGE_RATE_ADAPTERS = ("bitpay", "coinbase", "bitstamp")


def create_blockchain_adapter(name: str, timeout_s: float = 10) -> BlockchainAdapter:
    """Create a blockchain adapter.

    Args:
        name: "blockchain_info", "blockstream" or "blockstream_testnet"
        timeout_s: HTTP timeout per request
    """
    name = name.lower()
    if name == "blockchain_info":
        from gateway.blockchain_info import BlockchainInfoAdapter
        return BlockchainInfoAdapter(timeout_s=timeout_s)
    elif name == "blockstream":
        from gateway.blockstream import BlockstreamAdapter
        return BlockstreamAdapter(timeout_s=timeout_s)
    elif name == "blockstream_testnet":
        from gateway.blockstream import BlockstreamAdapter
        return BlockstreamAdapter.testnet_adapter(timeout_s=timeout_s)
    else:
        raise ValueError(f"Unsupported blockchain adapter: {name!r}. "
                         f"Use one of {list(BLOCKCHAIN_ADAPTERS)}.")


def create_exchange_rate_adapter(
    name: str,
    timeout_s: float = 10,
    rates_ttl_s: float = 60,
) -> ExchangeRateAdapter:
    """Create an exchange rate adapter.

    Args:
        name: "bitpay", "coinbase" or "bitstamp"
        timeout_s: HTTP timeout per request
        rates_ttl_s: How long fetched rates are reused
    """
    name = name.lower()
    if name == "bitpay":
        from gateway.bitpay import BitpayAdapter
        return BitpayAdapter(rates_ttl_s=rates_ttl_s, timeout_s=timeout_s)
    elif name == "coinbase":
        from gateway.coinbase import CoinbaseAdapter
        return CoinbaseAdapter(rates_ttl_s=rates_ttl_s, timeout_s=timeout_s)
    elif name == "bitstamp":
        from gateway.bitstamp import BitstampAdapter
        return BitstampAdapter(rates_ttl_s=rates_ttl_s, timeout_s=timeout_s)
    else:
        raise ValueError(f"Unsupported exchange rate adapter: {name!r}. "
                         f"Use one of {list(EXCHANGE_RATE_ADAPTERS)}.")


def create_gateway(config: dict, **overrides) -> Gateway:
    """Build a Gateway from a config dict as returned by ``core.config.load_config``.

    Keyword *overrides* are passed straight to the Gateway constructor
    (e.g. ``order_callbacks``) and win over the config.
    """
    timeout_s = config.get("http_timeout_s", 10)
    blockchain: List[BlockchainAdapter] = [
        create_blockchain_adapter(n, timeout_s=timeout_s)
        for n in config.get("blockchain_adapters", [])
    ]
    rates: List[ExchangeRateAdapter] = [
        create_exchange_rate_adapter(n, timeout_s=timeout_s,
                                     rates_ttl_s=config.get("rates_ttl_s", 60))
        for n in config.get("exchange_rate_adapters", [])
    ]
    kwargs = dict(
        confirmations_required=config.get("confirmations_required", 0),
        blockchain_adapters=blockchain,
        exchange_rate_adapters=rates,
        order_class=config.get("order_class") or None,
        default_currency=config.get("default_currency", "BTC"),
        name=config.get("name", ""),
    )
    kwargs.update(overrides)
    gateway = Gateway(config.get("pubkey", ""), **kwargs)
    log.info("Gateway %r: blockchain=%s rates=%s currency=%s confirmations=%d",
             gateway.name, [a.name for a in blockchain], [a.name for a in rates],
             gateway.default_currency, gateway.confirmations_required)
    return gateway

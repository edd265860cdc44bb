"""Gateway package: address derivation, orders and adapter failover.

Re-exports the gateway, the adapter interfaces and the factories so consumers
can write::

    from gateway import Gateway, BlockchainAdapter, create_gateway
"""
from gateway.base import BlockchainAdapter, ExchangeRateAdapter
from gateway.chain import try_adapters
from gateway.converter import CurrencyConverter
from gateway.gateway import Gateway
from gateway.keychain import AddressDeriver, address_for_index
from gateway.factory import (
    create_blockchain_adapter,
    create_exchange_rate_adapter,
    create_gateway,
)

__all__ = [
    "BlockchainAdapter",
    "ExchangeRateAdapter",
    "try_adapters",
    "CurrencyConverter",
    "Gateway",
    "AddressDeriver",
    "address_for_index",
    "create_blockchain_adapter",
    "create_exchange_rate_adapter",
    "create_gateway",
]

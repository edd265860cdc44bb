"""Payment gateway: one merchant configuration.

Owns the master public key, the ordered adapter lists, the status-check
schedule and the order callbacks, and creates orders with a fresh address
and a satoshi amount.

One instance can be shared between threads. Adapter lists are replaced
wholesale by the setters and the keychain is parsed once under a lock.
"""
from __future__ import annotations
import importlib
import inspect
import logging
from typing import Any, Callable, Iterable, List, Optional, Union

from core.errors import ConfigError, UnresolvedOrderTypeError
from core.schedule import default_status_check_schedule
from core.types import ScheduleState, Transaction
from core.units import Number
from gateway.base import BlockchainAdapter, ExchangeRateAdapter
from gateway.bitpay import BitpayAdapter
from gateway.bitstamp import BitstampAdapter
from gateway.blockchain_info import BlockchainInfoAdapter
from gateway.blockstream import BlockstreamAdapter
from gateway.chain import try_adapters
from gateway.coinbase import CoinbaseAdapter
from gateway.converter import CurrencyConverter
from gateway.keychain import AddressDeriver, KeychainId
from order.order import Order

log = logging.getLogger(__name__)

StatusCheckSchedule = Callable[[Any, int], Any]
OrderCallback = Callable[[Any], Any]
OrderType = Union[str, Callable[[], Any]]


def default_blockchain_adapters() -> List[BlockchainAdapter]:
    return [BlockchainInfoAdapter(), BlockstreamAdapter()]


def default_exchange_rate_adapters() -> List[ExchangeRateAdapter]:
    return [BitpayAdapter(), CoinbaseAdapter(), BitstampAdapter()]


def resolve_order_type(order_class: OrderType) -> Callable[[], Any]:
    """Turn a class, factory or ``"pkg.module:Name"`` string into a factory."""
    factory: Any = order_class
    if isinstance(order_class, str):
        module_name, sep, attr = order_class.partition(":")
        if not sep:
            module_name, _, attr = order_class.rpartition(".")
        if not module_name or not attr:
            raise UnresolvedOrderTypeError(f"Invalid order type identifier: {order_class!r}")
        try:
            factory = getattr(importlib.import_module(module_name), attr)
        except (ImportError, AttributeError) as e:
            raise UnresolvedOrderTypeError(f"Cannot resolve order type {order_class!r}: {e}") from e
    if not callable(factory):
        raise UnresolvedOrderTypeError(f"Order type {order_class!r} is not instantiable")
    try:
        inspect.signature(factory).bind()
    except TypeError as e:
        raise UnresolvedOrderTypeError(
            f"Order type {order_class!r} cannot be created without arguments: {e}"
        ) from e
    except ValueError:
        pass  # no introspectable signature
    return factory


class Gateway:

    def __init__(
        self,
        pubkey: str = "",
        *,
        confirmations_required: int = 0,
        status_check_schedule: Optional[StatusCheckSchedule] = None,
        blockchain_adapters: Optional[Iterable[BlockchainAdapter]] = None,
        exchange_rate_adapters: Optional[Iterable[ExchangeRateAdapter]] = None,
        order_callbacks: Optional[Iterable[OrderCallback]] = None,
        order_class: Optional[OrderType] = None,
        default_currency: str = "BTC",
        name: str = "",
    ):
        self._deriver = AddressDeriver(pubkey)
        self.confirmations_required = confirmations_required
        self.status_check_schedule = status_check_schedule or default_status_check_schedule
        self.blockchain_adapters = (
            default_blockchain_adapters() if blockchain_adapters is None else blockchain_adapters
        )
        self.exchange_rate_adapters = (
            default_exchange_rate_adapters() if exchange_rate_adapters is None else exchange_rate_adapters
        )
        self.order_callbacks = order_callbacks or []
        self.order_class = order_class or Order
        self.default_currency = default_currency
        self.name = name
        self._converter = CurrencyConverter(
            adapters=lambda: self._exchange_rate_adapters,
            default_currency=lambda: self._default_currency,
        )

    # --- Settings ---

    @property
    def pubkey(self) -> str:
        return self._deriver.pubkey

    @pubkey.setter
    def pubkey(self, value: str) -> None:
        # A new key needs a new parse; swap the whole deriver.
        self._deriver = AddressDeriver(value)

    @property
    def confirmations_required(self) -> int:
        return self._confirmations_required

    @confirmations_required.setter
    def confirmations_required(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"confirmations_required must be a non-negative integer, got {value!r}")
        self._confirmations_required = value

    @property
    def status_check_schedule(self) -> StatusCheckSchedule:
        return self._status_check_schedule

    @status_check_schedule.setter
    def status_check_schedule(self, value: StatusCheckSchedule) -> None:
        if not callable(value):
            raise ConfigError("status_check_schedule must be callable")
        self._status_check_schedule = value

    @property
    def blockchain_adapters(self) -> List[BlockchainAdapter]:
        return self._blockchain_adapters

    @blockchain_adapters.setter
    def blockchain_adapters(self, value: Iterable[BlockchainAdapter]) -> None:
        self._blockchain_adapters = list(value)

    @property
    def exchange_rate_adapters(self) -> List[ExchangeRateAdapter]:
        return self._exchange_rate_adapters

    @exchange_rate_adapters.setter
    def exchange_rate_adapters(self, value: Iterable[ExchangeRateAdapter]) -> None:
        self._exchange_rate_adapters = list(value)

    @property
    def order_callbacks(self) -> List[OrderCallback]:
        return self._order_callbacks

    @order_callbacks.setter
    def order_callbacks(self, value: Iterable[OrderCallback]) -> None:
        callbacks = list(value)
        for c in callbacks:
            if not callable(c):
                raise ConfigError(f"Order callback {c!r} is not callable")
        self._order_callbacks = callbacks

    @property
    def order_class(self) -> OrderType:
        return self._order_class

    @order_class.setter
    def order_class(self, value: OrderType) -> None:
        if not isinstance(value, str) and not callable(value):
            raise ConfigError(f"order_class must be a type, a factory or an import path, got {value!r}")
        self._order_class = value

    @property
    def default_currency(self) -> str:
        return self._default_currency

    @default_currency.setter
    def default_currency(self, value: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"default_currency must be a non-empty string, got {value!r}")
        self._default_currency = value.strip().upper()

    # --- Orders ---

    def order_for_keychain_id(
        self,
        amount: Number,
        keychain_id: KeychainId,
        currency: Optional[str] = None,
        btc_denomination: Optional[str] = None,
    ):
        """Create an order paying *amount* to the address of *keychain_id*.

        The amount is converted to satoshis first (see amount_from_exchange_rate).
        Allocating unique, increasing keychain ids is up to the caller.
        """
        satoshis = self.amount_from_exchange_rate(
            amount, currency=currency, btc_denomination=btc_denomination,
        )

        factory = resolve_order_type(self._order_class)
        order = factory()

        order.amount = satoshis
        order.gateway = self
        order.address = self.address_for_keychain_id(keychain_id)
        order.keychain_id = keychain_id
        log.info("Order created: gateway=%s keychain_id=%s address=%s amount=%d sat",
                 self.name or "-", keychain_id, order.address, satoshis)
        return order

    def address_for_keychain_id(self, keychain_id: KeychainId) -> str:
        return self._deriver.address_for_index(keychain_id)

    @property
    def keychain(self):
        return self._deriver.node

    def amount_from_exchange_rate(
        self,
        amount: Number,
        currency: Optional[str] = None,
        btc_denomination: Optional[str] = None,
    ) -> int:
        """Convert *amount* of *currency* (default_currency if omitted) to satoshis.

        For BTC, *btc_denomination* names the unit of *amount* (satoshi by default).
        """
        return self._converter.convert(amount, currency=currency, btc_denomination=btc_denomination)

    # --- Blockchain queries ---

    def fetch_transaction(self, tid: str, address: Optional[str] = None) -> Transaction:
        return try_adapters(
            self._blockchain_adapters,
            lambda b: b.fetch_transaction(tid, address=address),
            kind="blockchain adapter",
        )

    def fetch_transactions_for(self, address: str) -> List[Transaction]:
        return try_adapters(
            self._blockchain_adapters,
            lambda b: b.fetch_transactions_for(address),
            kind="blockchain adapter",
        )

    def fetch_balance_for(self, address: str) -> int:
        return try_adapters(
            self._blockchain_adapters,
            lambda b: b.fetch_balance_for(address),
            kind="blockchain adapter",
        )

    # --- Status checks ---

    def next_status_check(self, period: Any, iteration_index: int) -> ScheduleState:
        return ScheduleState.from_value(self._status_check_schedule(period, iteration_index))

    def order_status_changed(self, order) -> None:
        """Notify every callback, in order. A failing callback stops the rest."""
        for callback in list(self._order_callbacks):
            callback(order)

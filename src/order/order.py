"""Default order type.

An order is a satoshi amount expected at one derived address. Its status is
resolved from the transactions the gateway's blockchain adapters report for
that address; every status change is reported back to the gateway, which
fans it out to the order callbacks.
"""
from __future__ import annotations
import logging
import time
import weakref
from datetime import timedelta
from typing import Any, Callable, List, Optional

from core.types import OrderStatus, Transaction

log = logging.getLogger(__name__)

DEFAULT_PERIOD_S = 10
DEFAULT_DURATION_S = 600


def _seconds(value: Any) -> Any:
    return value.total_seconds() if isinstance(value, timedelta) else value


class Order:
    """Payment order; instantiable without arguments, filled in by the gateway."""

    def __init__(self):
        self.amount: int = 0
        self.address: str = ""
        self.keychain_id: Any = None
        self.amount_paid: int = 0
        self.tid: Optional[str] = None
        self._status = OrderStatus.NEW
        self._gateway_ref: Optional[weakref.ReferenceType] = None

    def __repr__(self) -> str:
        return (f"Order(keychain_id={self.keychain_id!r}, address={self.address!r}, "
                f"amount={self.amount}, status={self._status.name})")

    # The order does not keep its gateway alive.
    @property
    def gateway(self):
        return self._gateway_ref() if self._gateway_ref is not None else None

    @gateway.setter
    def gateway(self, gateway) -> None:
        self._gateway_ref = weakref.ref(gateway) if gateway is not None else None

    @property
    def status(self) -> OrderStatus:
        return self._status

    @status.setter
    def status(self, value: int) -> None:
        value = OrderStatus(value)
        if value == self._status:
            return
        log.info("Order %s status %s -> %s", self.address, self._status.name, value.name)
        self._status = value
        gateway = self.gateway
        if gateway is not None:
            gateway.order_status_changed(self)

    def _require_gateway(self):
        gateway = self.gateway
        if gateway is None:
            raise RuntimeError(f"{self!r} is not attached to a gateway")
        return gateway

    def transactions(self) -> List[Transaction]:
        return self._require_gateway().fetch_transactions_for(self.address)

    def resolve_status(self, transactions: List[Transaction]) -> OrderStatus:
        """Status implied by *transactions*; also records amount_paid and tid."""
        if not transactions:
            return OrderStatus.NEW
        required = self._require_gateway().confirmations_required
        if any(t.confirmations < required for t in transactions):
            return OrderStatus.UNCONFIRMED

        self.amount_paid = sum(t.amount for t in transactions)
        self.tid = transactions[0].tid
        if self.amount_paid == self.amount:
            return OrderStatus.PAID
        if self.amount_paid < self.amount:
            return OrderStatus.UNDERPAID
        return OrderStatus.OVERPAID

    def refresh_status(self) -> OrderStatus:
        """Query the blockchain and update the status. Final statuses stick."""
        if self._status.is_final:
            return self._status
        self.status = self.resolve_status(self.transactions())
        return self._status

    def check_status_on_schedule(
        self,
        period: Any = DEFAULT_PERIOD_S,
        iteration_index: int = 0,
        duration: Any = DEFAULT_DURATION_S,
        sleep: Callable[[Any], None] = time.sleep,
    ) -> OrderStatus:
        """Poll until the order reaches a final status or *duration* runs out.

        The delay between checks follows the gateway's status_check_schedule.
        An order still unpaid once *duration* has elapsed becomes EXPIRED.
        *period* and *duration* are seconds or timedeltas. Blocks the calling
        thread; *sleep* receives each delay in seconds.
        """
        gateway = self._require_gateway()
        duration_s = _seconds(duration)
        time_passed = 0
        while True:
            self.refresh_status()
            time_passed += _seconds(period)
            if time_passed > duration_s:
                if not self._status.is_final:
                    self.status = OrderStatus.EXPIRED
                return self._status
            if self._status.is_final:
                return self._status
            state = gateway.next_status_check(period, iteration_index)
            sleep(_seconds(period))
            period, iteration_index = state.period, state.iteration_index

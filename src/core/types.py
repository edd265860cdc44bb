from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Optional


class OrderStatus(IntEnum):
    NEW = 0
    UNCONFIRMED = 1
    PAID = 2
    UNDERPAID = 3
    OVERPAID = 4
    EXPIRED = 5
    CANCELED = 6

    @property
    def is_final(self) -> bool:
        return self >= OrderStatus.PAID


@dataclass(slots=True)
class Transaction:
    """A transaction as seen by a blockchain adapter.

    ``amount`` is the value (in satoshis) paid to the queried address, or the
    total output value when the transaction was fetched without an address.
    """
    tid: str
    amount: int
    confirmations: int = 0
    block_height: Optional[int] = None


@dataclass(slots=True, frozen=True)
class ScheduleState:
    period: Any  # seconds (int/float) or timedelta, anything that doubles
    iteration_index: int

    @classmethod
    def from_value(cls, value: ScheduleState | Mapping[str, Any]) -> ScheduleState:
        """Accept either a ScheduleState or a ``{"period", "iteration_index"}`` mapping."""
        if isinstance(value, cls):
            return value
        return cls(period=value["period"], iteration_index=int(value["iteration_index"]))

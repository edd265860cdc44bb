"""Default order status-check schedule.

Poll at the same period for five consecutive checks, then double the period
and start a new plateau. The caller applies the returned period as the delay
before the next check and keeps the returned state between calls.
"""
from __future__ import annotations

from typing import Any

from core.types import ScheduleState

PLATEAU_LENGTH = 5


def default_status_check_schedule(period: Any, iteration_index: int) -> ScheduleState:
    iteration_index += 1
    if iteration_index > PLATEAU_LENGTH:
        period *= 2
        iteration_index = 0
    return ScheduleState(period=period, iteration_index=iteration_index)

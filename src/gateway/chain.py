"""Ordered failover over interchangeable adapters."""
from __future__ import annotations
import logging
from typing import Callable, Sequence, TypeVar

from core.errors import NoAdaptersConfiguredError

log = logging.getLogger(__name__)

A = TypeVar("A")
R = TypeVar("R")


def try_adapters(
    adapters: Sequence[A],
    operation: Callable[[A], R],
    kind: str = "adapter",
) -> R:
    """Run *operation* against each adapter until one succeeds.

    The list order is the order of preference. The first result is returned
    and the remaining adapters are not called. When every adapter fails, the
    exception of the last one is re-raised as is; earlier ones are dropped.
    An empty list fails with NoAdaptersConfiguredError.
    """
    last_error: Exception = NoAdaptersConfiguredError(f"No {kind}s configured")
    for adapter in adapters:
        try:
            return operation(adapter)
        except Exception as e:
            log.warning("%s %s failed: %s", kind, _adapter_name(adapter), e)
            last_error = e
    raise last_error


def _adapter_name(adapter: object) -> str:
    return getattr(adapter, "name", None) or type(adapter).__name__

import time
from decimal import Decimal, InvalidOperation

# Frozen clock for tests. When set, time_now_ms() returns this value
# instead of the wall clock so cache expiry can be exercised deterministically.
_frozen_time_ms: int | None = None


def freeze_time(ts_ms: int) -> None:
    global _frozen_time_ms
    _frozen_time_ms = ts_ms


def unfreeze_time() -> None:
    global _frozen_time_ms
    _frozen_time_ms = None


def time_now_ms() -> int:
    if _frozen_time_ms is not None:
        return _frozen_time_ms
    return int(time.time() * 1000)


def parse_decimal(value: object) -> Decimal | None:
    """Parse a rate/price field from an API payload; None if it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def mask_key(key: str, keep: int = 8) -> str:
    """Shorten an extended public key for log lines."""
    if not key or len(key) <= keep * 2:
        return key
    return f"{key[:keep]}...{key[-keep:]}"

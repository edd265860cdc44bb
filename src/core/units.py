"""Bitcoin denomination table and fixed-point conversion to satoshis.

All arithmetic is done with ``Decimal``; floats go through ``str`` first so
that ``0.1`` BTC is exactly 10,000,000 satoshis.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_DOWN
from typing import Dict, Union

from core.errors import UnknownDenominationError

Number = Union[int, float, str, Decimal]

SATOSHIS_PER_BTC = 100_000_000

# Power of ten of one unit, expressed in satoshis
DENOMINATIONS: Dict[str, int] = {
    "btc": 8,
    "mbtc": 5,
    "millibit": 5,
    "ubtc": 2,
    "bit": 2,
    "bits": 2,
    "satoshi": 0,
    "sat": 0,
    "sats": 0,
}


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def denomination_exponent(unit: str) -> int:
    try:
        return DENOMINATIONS[str(unit).lower()]
    except KeyError:
        raise UnknownDenominationError(
            f"Unknown denomination: {unit!r}. Choose from {sorted(DENOMINATIONS)}"
        ) from None


def to_satoshi(amount: Number, unit: str = "satoshi") -> int:
    """Convert *amount* expressed in *unit* to an integer number of satoshis.

    Fractions of a satoshi are truncated toward zero.
    """
    scaled = to_decimal(amount).scaleb(denomination_exponent(unit))
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def btc_to_satoshi(btc: Number) -> int:
    return to_satoshi(btc, "btc")

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CENTS = Decimal("0.01")


def parse_numeric(value: Any, default: Optional[float] = None) -> float:
    """
    Coerce a store value to float.

    Decimal columns may come back as Decimal, int, float or (from raw SQL /
    RPC paths) str. Anything else is a data error.
    """
    if value is None:
        if default is not None:
            return float(default)
        raise ValueError("Unable to parse numeric value: None")

    if isinstance(value, bool):
        raise ValueError(f"Unable to parse numeric value: {value!r}")

    if isinstance(value, (int, float, Decimal)):
        return float(value)

    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise ValueError(f"Unable to parse numeric value: {value!r}") from exc

    raise ValueError(f"Unable to parse numeric value: {value!r}")


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            # str() keeps float inputs like 7.5 exact at their printed precision
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValueError(f"Unable to parse numeric value: {value!r}") from exc
    # NaN and Infinity parse but cannot be quantized or compared as amounts
    if not d.is_finite():
        raise ValueError(f"Unable to parse numeric value: {value!r}")
    return d


def money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def round_hours(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)

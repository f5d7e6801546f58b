from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import pandas as pd

from core import config

# es-PE compact units, smallest first; es has no unit between millions and trillions.
_COMPACT_UNITS = (
    (1, ""),
    (1_000, "mil"),
    (1_000_000, "M"),
    (1_000_000_000_000, "B"),
)
_ONE_DECIMAL = Decimal("0.1")


def format_currency(amount: object, symbol: Optional[str] = None) -> str:
    """Format like es-PE with two decimals, e.g. ``S/ 1,234.50``."""
    symbol = config.CURRENCY_SYMBOL if symbol is None else symbol
    if amount is None or pd.isna(amount):
        amount = 0.0
    return f"{symbol} {float(amount):,.2f}"


def _round_one_decimal(value: float) -> Decimal:
    return Decimal(str(value)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)


def _compact_number(scaled: Decimal) -> str:
    if scaled == 0:
        scaled = Decimal(0)
    decimals = 0 if scaled == scaled.to_integral_value() else 1
    # es-PE only groups from five integer digits up.
    grouping = "," if abs(scaled) >= 10_000 else ""
    return format(scaled, f"{grouping}.{decimals}f")


def format_compact_currency(amount: object, symbol: Optional[str] = None) -> str:
    """Compact axis label, e.g. ``S/. 1.5 mil`` or ``S/. 2.3 M``.

    Rounds half-up to one decimal first, then moves to the next unit when the
    rounded value reaches it (999,999 -> ``1 M``).
    """
    symbol = config.CHART_CURRENCY_SYMBOL if symbol is None else symbol
    value = 0.0 if amount is None or pd.isna(amount) else float(amount)

    idx = 0
    for i, (step, _) in enumerate(_COMPACT_UNITS):
        if abs(value) >= step:
            idx = i
    scaled = _round_one_decimal(value / _COMPACT_UNITS[idx][0])
    while idx + 1 < len(_COMPACT_UNITS) and abs(scaled) * _COMPACT_UNITS[idx][0] >= _COMPACT_UNITS[idx + 1][0]:
        idx += 1
        scaled = _round_one_decimal(value / _COMPACT_UNITS[idx][0])

    suffix = _COMPACT_UNITS[idx][1]
    text = f"{symbol} {_compact_number(scaled)}"
    return f"{text} {suffix}" if suffix else text


def format_percent(value: object, decimals: int = 1) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value) * 100:.{decimals}f}%"

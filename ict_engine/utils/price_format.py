"""Price formatting helpers: decimal precision per instrument."""

import re
from collections.abc import Sequence
from typing import Optional

_METALS = ("XAU", "GOLD", "XAG", "SILVER", "XPD", "XPT")
_SYNTHETIC_MARKERS = ("VOLATILITY", "1HZ", "US_OTC", "BOOM", "CRASH")
_SYNTHETIC_PATTERN = re.compile(r"(^|[^A-Z])V\d+|^R_\d+")
_CURRENCIES = ("USD", "EUR", "GBP", "AUD", "NZD", "CAD", "CHF")
_INDEX_MARKERS = ("INDEX", "STOCK")


def get_price_decimals(instrument: str) -> int:
    """Number of decimal places to display for *instrument*.

    Metals, synthetic indices and stock indices use 2, JPY crosses 3,
    everything else 5.
    """
    symbol = instrument.upper()
    if symbol.startswith("FRX"):
        symbol = symbol[3:]

    if any(m in symbol for m in _METALS):
        return 2
    if "JPY" in symbol:
        return 3
    if any(m in symbol for m in _SYNTHETIC_MARKERS) or _SYNTHETIC_PATTERN.search(symbol):
        return 2
    if any(c in symbol for c in _CURRENCIES):
        return 5
    if any(m in symbol for m in _INDEX_MARKERS):
        return 2
    return 5


def format_price(price: Optional[float], instrument: str) -> str:
    """Format *price* with the instrument's precision and thousands separators.

    ``None`` renders as ``"N/A"``.
    """
    if price is None:
        return "N/A"
    return f"{price:,.{get_price_decimals(instrument)}f}"


def format_price_range(low: float, high: float, instrument: str) -> str:
    return f"{format_price(low, instrument)} - {format_price(high, instrument)}"


def format_price_array(prices: Sequence[float], instrument: str) -> str:
    if not prices:
        return "None"
    return ", ".join(format_price(p, instrument) for p in prices)

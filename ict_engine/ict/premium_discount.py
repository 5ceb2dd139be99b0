"""Range and premium/discount calculations: pure functions, no I/O."""

from collections.abc import Sequence

from ict_engine.ict.models import Candle, PremiumDiscount, PriceRange


def calculate_range(candles: Sequence[Candle]) -> PriceRange:
    """Return the highest high and lowest low of *candles*.

    An empty slice yields ``PriceRange(0, 0)``.
    """
    if not candles:
        return PriceRange(high=0.0, low=0.0)
    return PriceRange(
        high=max(c.high for c in candles),
        low=min(c.low for c in candles),
    )


def calculate_pd_level(high: float, low: float) -> float:
    """Equilibrium (50%) of the range."""
    return (high + low) / 2


def get_premium_discount(price: float, high: float, low: float) -> PremiumDiscount:
    """``premium`` at or above equilibrium, ``discount`` below it."""
    return "premium" if price >= calculate_pd_level(high, low) else "discount"


def get_price_location(price: float, high: float, low: float) -> float:
    """Position of *price* inside the range as a percentage.

    A degenerate range (``high == low``) is reported as 50%.
    """
    if high == low:
        return 50.0
    return (price - low) / (high - low) * 100


def is_in_premium(price: float, high: float, low: float) -> bool:
    return get_premium_discount(price, high, low) == "premium"


def is_in_discount(price: float, high: float, low: float) -> bool:
    return get_premium_discount(price, high, low) == "discount"

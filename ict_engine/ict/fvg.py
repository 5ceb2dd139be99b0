"""Fair value gap detection: pure functions over candle slices."""

from collections.abc import Sequence

from ict_engine.ict.models import FVG, Bias, Candle, Timeframe


def detect_fvgs(candles: Sequence[Candle], timeframe: Timeframe) -> list[FVG]:
    """Scan consecutive candle triplets for three-candle imbalances.

    Bullish: the first candle's high sits below the third candle's low.
    Bearish: the first candle's low sits above the third candle's high.
    The gap spans from the first candle's time to the third's.
    """
    fvgs: list[FVG] = []
    for i in range(2, len(candles)):
        first, third = candles[i - 2], candles[i]
        if first.time >= third.time:
            continue

        if first.high < third.low:
            fvgs.append(
                FVG(
                    start_time=first.time,
                    end_time=third.time,
                    top=third.low,
                    bottom=first.high,
                    direction="bullish",
                    timeframe=timeframe,
                )
            )
        elif first.low > third.high:
            fvgs.append(
                FVG(
                    start_time=first.time,
                    end_time=third.time,
                    top=first.low,
                    bottom=third.high,
                    direction="bearish",
                    timeframe=timeframe,
                )
            )
    return fvgs


def is_fvg_filled(fvg: FVG, candles: Sequence[Candle]) -> bool:
    """True once any candle after the gap has traded through it."""
    for candle in candles:
        if candle.time <= fvg.end_time:
            continue
        if fvg.direction == "bullish" and candle.low < fvg.bottom:
            return True
        if fvg.direction == "bearish" and candle.high > fvg.top:
            return True
    return False


def get_unfilled_fvgs(fvgs: Sequence[FVG], candles: Sequence[Candle]) -> list[FVG]:
    return [f for f in fvgs if not is_fvg_filled(f, candles)]


def filter_aligned_fvgs(fvgs: Sequence[FVG], bias: Bias) -> list[FVG]:
    """Keep gaps pointing the same way as *bias*; neutral keeps everything."""
    if bias == "neutral":
        return list(fvgs)
    return [f for f in fvgs if f.direction == bias]


def get_fvg_midpoint(fvg: FVG) -> float:
    return (fvg.top + fvg.bottom) / 2


def is_price_in_fvg(price: float, fvg: FVG) -> bool:
    return fvg.bottom <= price <= fvg.top

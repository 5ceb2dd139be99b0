"""Market structure shift detection: pure functions over candle slices."""

from collections.abc import Sequence
from typing import Optional

from ict_engine.ict.models import MSS, Candle, StructureDirection, Timeframe, locate_candle

DEFAULT_CONFIRMATION_BARS = 3


def find_swing_highs(candles: Sequence[Candle]) -> list[int]:
    """Indices of three-bar fractal highs (strictly above both neighbours)."""
    return [
        i
        for i in range(1, len(candles) - 1)
        if candles[i].high > candles[i - 1].high and candles[i].high > candles[i + 1].high
    ]


def find_swing_lows(candles: Sequence[Candle]) -> list[int]:
    """Indices of three-bar fractal lows (strictly below both neighbours)."""
    return [
        i
        for i in range(1, len(candles) - 1)
        if candles[i].low < candles[i - 1].low and candles[i].low < candles[i + 1].low
    ]


def _latest_active(swings: list[int], consumed: set[int], limit: int) -> Optional[int]:
    for j in reversed(swings):
        if j <= limit and j not in consumed:
            return j
    return None


def detect_mss(candles: Sequence[Candle], timeframe: Timeframe) -> list[MSS]:
    """Walk forward and record every break of the prevailing swing.

    At candle ``i`` the relevant swing high is the most recent fractal high
    whose right-hand neighbour has already printed (index ``<= i - 2``) and
    which has not been broken yet. A high above it records a bullish shift
    and retires that swing. Swing lows and bearish shifts mirror this.
    """
    highs = find_swing_highs(candles)
    lows = find_swing_lows(candles)
    broken_highs: set[int] = set()
    broken_lows: set[int] = set()

    shifts: list[MSS] = []
    for i in range(3, len(candles)):
        candle = candles[i]

        j = _latest_active(highs, broken_highs, i - 2)
        if j is not None and candle.high > candles[j].high:
            shifts.append(
                MSS(
                    time=candle.time,
                    direction="bullish",
                    timeframe=timeframe,
                    previous_high=candles[j].high,
                    new_high=candle.high,
                    candle_index=i,
                )
            )
            broken_highs.add(j)

        k = _latest_active(lows, broken_lows, i - 2)
        if k is not None and candle.low < candles[k].low:
            shifts.append(
                MSS(
                    time=candle.time,
                    direction="bearish",
                    timeframe=timeframe,
                    previous_low=candles[k].low,
                    new_low=candle.low,
                    candle_index=i,
                )
            )
            broken_lows.add(k)

    return shifts


def is_mss_confirmed(
    mss: MSS,
    candles: Sequence[Candle],
    lookback_bars: int = DEFAULT_CONFIRMATION_BARS,
) -> bool:
    """A shift counts only when a body closes beyond the broken swing.

    The break candle itself and the next *lookback_bars* candles are checked.
    A wick through the level with every close back inside is a sweep, not a
    structure shift.
    """
    level = mss.broken_level
    if level is None:
        return False

    index = locate_candle(candles, mss.time, mss.candle_index)
    if index is None:
        return False

    for candle in candles[index:index + lookback_bars + 1]:
        if mss.direction == "bullish" and candle.close > level:
            return True
        if mss.direction == "bearish" and candle.close < level:
            return True
    return False


def get_latest_mss(
    shifts: Sequence[MSS], direction: Optional[StructureDirection] = None
) -> Optional[MSS]:
    """Most recent shift, optionally restricted to one *direction*."""
    latest: Optional[MSS] = None
    for mss in shifts:
        if direction is not None and mss.direction != direction:
            continue
        if latest is None or mss.time >= latest.time:
            latest = mss
    return latest

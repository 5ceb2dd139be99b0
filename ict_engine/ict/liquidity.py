"""Resting liquidity detection and sweep checks: pure functions, no I/O."""

from collections.abc import Sequence
from typing import Optional

from ict_engine.ict.models import (
    AsianRange,
    Bias,
    Candle,
    LiquidityPool,
    LiquiditySweep,
    LiquidityType,
    ReactionStrength,
    Timeframe,
    locate_candle,
)

DEFAULT_EQUAL_TOLERANCE = 0.001  # 0.1% relative
DEFAULT_ASIAN_RANGE_CANDLES = 4


def _cluster_equal_levels(values: Sequence[float], tolerance: float) -> list[list[int]]:
    """Group indices whose values lie within *tolerance* (relative) of a cluster's first value.

    Returns the member indices of every cluster with two or more members, in
    the order each cluster was first seen.
    """
    clusters: list[list[int]] = []
    for i, value in enumerate(values):
        for cluster in clusters:
            anchor = values[cluster[0]]
            if anchor != 0 and abs(value - anchor) / abs(anchor) <= tolerance:
                cluster.append(i)
                break
        else:
            clusters.append([i])

    return [c for c in clusters if len(c) >= 2]


def _cluster_level(values: Sequence[float], members: Sequence[int]) -> float:
    return sum(values[i] for i in members) / len(members)


def _side_values(candles: Sequence[Candle], side: LiquidityType) -> list[float]:
    if side == "buy-side":
        return [c.low for c in candles]
    return [c.high for c in candles]


def detect_equal_highs(
    candles: Sequence[Candle], tolerance: float = DEFAULT_EQUAL_TOLERANCE
) -> list[float]:
    """Price levels where two or more highs line up (sell-side liquidity)."""
    highs = _side_values(candles, "sell-side")
    return [_cluster_level(highs, m) for m in _cluster_equal_levels(highs, tolerance)]


def detect_equal_lows(
    candles: Sequence[Candle], tolerance: float = DEFAULT_EQUAL_TOLERANCE
) -> list[float]:
    """Price levels where two or more lows line up (buy-side liquidity)."""
    lows = _side_values(candles, "buy-side")
    return [_cluster_level(lows, m) for m in _cluster_equal_levels(lows, tolerance)]


def find_liquidity_pools(
    candles: Sequence[Candle],
    timeframe: Timeframe,
    tolerance: float = DEFAULT_EQUAL_TOLERANCE,
) -> list[LiquidityPool]:
    if not candles:
        return []
    timestamp = candles[-1].time
    pools = [
        LiquidityPool(
            price=price,
            type="sell-side",
            timeframe=timeframe,
            timestamp=timestamp,
            description="Equal High",
        )
        for price in detect_equal_highs(candles, tolerance)
    ]
    pools.extend(
        LiquidityPool(
            price=price,
            type="buy-side",
            timeframe=timeframe,
            timestamp=timestamp,
            description="Equal Low",
        )
        for price in detect_equal_lows(candles, tolerance)
    )
    return pools


def get_asian_range(
    candles: Sequence[Candle], window: int = DEFAULT_ASIAN_RANGE_CANDLES
) -> Optional[AsianRange]:
    """High/low of the first *window* candles of the slice."""
    asian = candles[:window]
    if not asian:
        return None
    return AsianRange(
        high=max(c.high for c in asian),
        low=min(c.low for c in asian),
        time=asian[0].time,
    )


def _is_sweep_candle(candle: Candle, level: float, side: LiquidityType) -> bool:
    if side == "buy-side":
        return candle.low < level and candle.close > level
    return candle.high > level and candle.close < level


def _find_sweep_index(
    level: float, candles: Sequence[Candle], side: LiquidityType, start: int = 0
) -> Optional[int]:
    for i in range(start, len(candles)):
        if _is_sweep_candle(candles[i], level, side):
            return i
    return None


def find_sweep_candle(
    level: float, candles: Sequence[Candle], side: LiquidityType
) -> Optional[Candle]:
    """First candle that wicks through *level* and closes back on its origin side."""
    index = _find_sweep_index(level, candles, side)
    return candles[index] if index is not None else None


def is_liquidity_swept(
    level: float, candles: Sequence[Candle], side: LiquidityType
) -> bool:
    """True when a stop run took *level* and price reclaimed it.

    Buy-side liquidity rests below equal lows: a candle must trade below the
    level and close above it. Sell-side is the mirror. A candle that breaks
    the level and closes beyond it is a break, not a sweep.
    """
    return _find_sweep_index(level, candles, side) is not None


def find_sweeps(
    levels: Sequence[float], candles: Sequence[Candle], side: LiquidityType
) -> list[LiquiditySweep]:
    """Sweeps of externally defined *levels*, searched across the whole slice."""
    sweeps: list[LiquiditySweep] = []
    for level in levels:
        index = _find_sweep_index(level, candles, side)
        if index is not None:
            sweeps.append(
                LiquiditySweep(price=level, time=candles[index].time, type=side, candle_index=index)
            )
    return sweeps


def find_equal_level_sweeps(
    candles: Sequence[Candle],
    side: LiquidityType,
    tolerance: float = DEFAULT_EQUAL_TOLERANCE,
) -> list[LiquiditySweep]:
    """Sweeps of the equal-lows (buy-side) or equal-highs (sell-side) pools.

    A pool exists once its second member has printed, so only later candles
    can sweep it. The sweeping wick must also run beyond every member printed
    before it; a member that merely dips under the pool's mean is part of
    the pool, not a stop run.
    """
    values = _side_values(candles, side)
    sweeps: list[LiquiditySweep] = []
    for members in _cluster_equal_levels(values, tolerance):
        level = _cluster_level(values, members)
        for i in range(members[1] + 1, len(candles)):
            prior = [values[m] for m in members if m < i]
            if side == "buy-side":
                beyond = values[i] < min(prior)
            else:
                beyond = values[i] > max(prior)
            if beyond and _is_sweep_candle(candles[i], level, side):
                sweeps.append(
                    LiquiditySweep(price=level, time=candles[i].time, type=side, candle_index=i)
                )
                break
    return sweeps


def get_latest_sweep(sweeps: Sequence[LiquiditySweep]) -> Optional[LiquiditySweep]:
    """Sweep with the greatest time; the earliest listed wins ties."""
    latest: Optional[LiquiditySweep] = None
    for sweep in sweeps:
        if latest is None or sweep.time > latest.time:
            latest = sweep
    return latest


def check_reaction_strength(
    sweep: LiquiditySweep,
    candles: Sequence[Candle],
    bias: Bias,
    min_move_pct: float = 0.5,
    min_candles: int = 3,
    max_candles: int = 5,
) -> ReactionStrength:
    """Grade the move away from a swept level.

    Averages the closes of up to *max_candles* candles after the sweep candle
    (at least *min_candles* must exist). A move of *min_move_pct* percent or
    more in the bias direction is ``strong``; anything else is ``weak``.
    """
    index = locate_candle(candles, sweep.time, sweep.candle_index)
    if index is None or index + min_candles >= len(candles) or sweep.price == 0:
        return "weak"

    reaction = candles[index + 1:index + 1 + max_candles]
    if not reaction:
        return "weak"
    avg_close = sum(c.close for c in reaction) / len(reaction)

    if sweep.type == "buy-side":
        move_pct = (avg_close - sweep.price) / sweep.price * 100
        if bias == "bullish" and move_pct >= min_move_pct:
            return "strong"
    else:
        move_pct = (sweep.price - avg_close) / sweep.price * 100
        if bias == "bearish" and move_pct >= min_move_pct:
            return "strong"
    return "weak"

"""Support/Resistance level detection from swing points: pure functions."""

from collections.abc import Sequence

from ict_engine.ict.models import (
    Candle,
    LevelType,
    SupportResistanceLevel,
    SwingPoint,
    Timeframe,
)

DEFAULT_SWING_WINDOW = 2
DEFAULT_LEVEL_TOLERANCE = 0.005  # 0.5% relative
DEFAULT_RECENT_CANDLES = 10
MIN_LEVEL_STRENGTH = 0.2
KEY_LEVEL_COUNT = 5


def _find_swing_highs(candles: Sequence[Candle], window: int = DEFAULT_SWING_WINDOW) -> list[SwingPoint]:
    """Identify swing highs.

    A swing high is a candle whose high is higher than the highs of the
    *window* candles on each side.
    """
    highs: list[SwingPoint] = []
    for i in range(window, len(candles) - window):
        high = candles[i].high
        is_swing = True
        for j in range(1, window + 1):
            if candles[i - j].high >= high or candles[i + j].high >= high:
                is_swing = False
                break
        if is_swing:
            highs.append(SwingPoint(price=high, time=candles[i].time))
    return highs


def _find_swing_lows(candles: Sequence[Candle], window: int = DEFAULT_SWING_WINDOW) -> list[SwingPoint]:
    """Identify swing lows.

    A swing low is a candle whose low is lower than the lows of the
    *window* candles on each side.
    """
    lows: list[SwingPoint] = []
    for i in range(window, len(candles) - window):
        low = candles[i].low
        is_swing = True
        for j in range(1, window + 1):
            if candles[i - j].low <= low or candles[i + j].low <= low:
                is_swing = False
                break
        if is_swing:
            lows.append(SwingPoint(price=low, time=candles[i].time))
    return lows


def _cluster_levels(swings: Sequence[SwingPoint], tolerance: float) -> list[float]:
    """Cluster swing prices lying within *tolerance* of a cluster's running mean.

    Returns the mean price of each cluster in first-seen order.
    """
    clusters: list[list[float]] = []
    for swing in swings:
        for cluster in clusters:
            mean = sum(cluster) / len(cluster)
            if mean != 0 and abs(swing.price - mean) / abs(mean) <= tolerance:
                cluster.append(swing.price)
                break
        else:
            clusters.append([swing.price])
    return [sum(c) / len(c) for c in clusters]


def _count_touches(
    candles: Sequence[Candle], price: float, level_type: LevelType, tolerance: float
) -> int:
    band = abs(price) * tolerance
    if level_type == "resistance":
        return sum(1 for c in candles if abs(c.high - price) <= band)
    return sum(1 for c in candles if abs(c.low - price) <= band)


def detect_support_resistance(
    candles: Sequence[Candle],
    timeframe: Timeframe,
    window: int = DEFAULT_SWING_WINDOW,
    tolerance: float = DEFAULT_LEVEL_TOLERANCE,
    recent_candles: int = DEFAULT_RECENT_CANDLES,
) -> list[SupportResistanceLevel]:
    """Detect horizontal support and resistance levels.

    Swing highs cluster into resistance and swing lows into support. Each
    level counts the candles whose high (resistance) or low (support) came
    within *tolerance* of it; touches inside the last *recent_candles*
    candles weigh more. Levels at or below ``MIN_LEVEL_STRENGTH`` are dropped.

    Returns:
        Levels sorted by strength, strongest first.
    """
    if len(candles) < 2 * window + 1:
        return []

    recent = candles[-recent_candles:]
    levels: list[SupportResistanceLevel] = []

    sides: list[tuple[LevelType, list[SwingPoint]]] = [
        ("resistance", _find_swing_highs(candles, window)),
        ("support", _find_swing_lows(candles, window)),
    ]
    for level_type, swings in sides:
        for price in _cluster_levels(swings, tolerance):
            touches = max(1, _count_touches(candles, price, level_type, tolerance))
            recent_touches = _count_touches(recent, price, level_type, tolerance)
            strength = min(1.0, (touches * 0.3 + recent_touches * 0.7) / 3)
            if strength > MIN_LEVEL_STRENGTH:
                levels.append(
                    SupportResistanceLevel(
                        price=price,
                        type=level_type,
                        touches=touches,
                        strength=strength,
                        timeframe=timeframe,
                    )
                )

    levels.sort(key=lambda lvl: lvl.strength, reverse=True)
    return levels


def get_key_levels(
    levels: Sequence[SupportResistanceLevel], count: int = KEY_LEVEL_COUNT
) -> list[SupportResistanceLevel]:
    return list(levels[:count])


def find_swing_points(
    candles: Sequence[Candle], window: int = DEFAULT_SWING_WINDOW
) -> tuple[list[SwingPoint], list[SwingPoint]]:
    """All swing highs and lows of the slice, in candle order."""
    return _find_swing_highs(candles, window), _find_swing_lows(candles, window)


def get_latest_swing_points(
    candles: Sequence[Candle], count: int = 5, window: int = DEFAULT_SWING_WINDOW
) -> tuple[list[SwingPoint], list[SwingPoint]]:
    """The *count* most recent swing highs and lows, most recent first."""
    highs, lows = find_swing_points(candles, window)
    return highs[::-1][:count], lows[::-1][:count]

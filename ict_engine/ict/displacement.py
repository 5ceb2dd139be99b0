"""Displacement detection: large, full-bodied momentum candles."""

from collections.abc import Sequence
from typing import Optional

from ict_engine.ict.models import Candle, Displacement, Timeframe

DEFAULT_SIZE_MULTIPLIER = 1.5
DEFAULT_BODY_RATIO = 0.7
DEFAULT_BODY_MULTIPLIER = 1.2
DEFAULT_STRONG_THRESHOLD = 0.6


def average_candle_size(candles: Sequence[Candle]) -> float:
    if not candles:
        return 0.0
    return sum(c.size for c in candles) / len(candles)


def detect_displacement(
    candles: Sequence[Candle],
    timeframe: Timeframe,
    size_multiplier: float = DEFAULT_SIZE_MULTIPLIER,
    body_ratio: float = DEFAULT_BODY_RATIO,
    body_multiplier: float = DEFAULT_BODY_MULTIPLIER,
) -> list[Displacement]:
    """Flag candles that dwarf the slice's average range and close near an extreme.

    A candle qualifies when its range exceeds ``size_multiplier`` times the
    average range, its body fills more than ``body_ratio`` of that range and
    the body alone exceeds ``body_multiplier`` times the average range.

    Returns:
        Displacement events in candle order. ``strength`` is the candle range
        over twice the average range, capped at 1.
    """
    if len(candles) < 2:
        return []

    avg_size = average_candle_size(candles)
    if avg_size == 0:
        return []

    events: list[Displacement] = []
    for i, candle in enumerate(candles):
        size = candle.size
        if size == 0:
            continue
        if (
            size > avg_size * size_multiplier
            and candle.body / size > body_ratio
            and candle.body > avg_size * body_multiplier
        ):
            events.append(
                Displacement(
                    time=candle.time,
                    direction="bullish" if candle.close > candle.open else "bearish",
                    strength=min(1.0, size / (avg_size * 2)),
                    candle_index=i,
                    timeframe=timeframe,
                )
            )
    return events


def is_strong_displacement(
    event: Displacement, threshold: float = DEFAULT_STRONG_THRESHOLD
) -> bool:
    return event.strength > threshold


def get_latest_displacement(events: Sequence[Displacement]) -> Optional[Displacement]:
    latest: Optional[Displacement] = None
    for event in events:
        if latest is None or event.time > latest.time:
            latest = event
    return latest

"""15m liquidity analysis: sweep, reaction and setup validation."""

import logging
from collections.abc import Sequence
from typing import Optional

from ict_engine.analysis.models import BiasAnalysis, LiquidityAnalysis
from ict_engine.analysis.thresholds import MAX_CANDLES_15M, SWING_POINT_COUNT, Thresholds
from ict_engine.ict.displacement import detect_displacement, is_strong_displacement
from ict_engine.ict.fvg import detect_fvgs, filter_aligned_fvgs, get_unfilled_fvgs
from ict_engine.ict.liquidity import (
    check_reaction_strength,
    find_equal_level_sweeps,
    find_sweeps,
    get_asian_range,
    get_latest_sweep,
)
from ict_engine.ict.models import Candle, LiquiditySweep
from ict_engine.ict.premium_discount import is_in_discount, is_in_premium
from ict_engine.ict.support_resistance import get_latest_swing_points

logger = logging.getLogger("ict_engine.analysis.timeframe_15m")


def find_liquidity_sweeps(
    candles: Sequence[Candle], thresholds: Thresholds
) -> list[LiquiditySweep]:
    """Sweeps of equal lows, equal highs and the Asian range extremes."""
    tolerance = thresholds.equal_level_tolerance
    sweeps = find_equal_level_sweeps(candles, "buy-side", tolerance)
    sweeps += find_equal_level_sweeps(candles, "sell-side", tolerance)

    asian = get_asian_range(candles, thresholds.asian_range_candles)
    if asian is not None:
        sweeps += find_sweeps([asian.high], candles, "sell-side")
        sweeps += find_sweeps([asian.low], candles, "buy-side")
    return sweeps


def is_price_in_bias_zone(price: float, bias: BiasAnalysis) -> bool:
    """Bullish setups need discount, bearish setups need premium."""
    if bias.bias == "bullish":
        return is_in_discount(price, bias.range_high, bias.range_low)
    if bias.bias == "bearish":
        return is_in_premium(price, bias.range_high, bias.range_low)
    return True


def analyze_15m_liquidity(
    candles: Sequence[Candle],
    bias: BiasAnalysis,
    thresholds: Optional[Thresholds] = None,
) -> LiquidityAnalysis:
    """Validate the 15m setup against the 2H bias.

    The setup is valid only when liquidity was swept with a strong reaction,
    price sits in the bias-aligned half of the 2H range, displacement is
    present and an unfilled bias-aligned FVG exists.
    """
    thresholds = thresholds or Thresholds()
    recent = list(candles[-MAX_CANDLES_15M:])
    if not recent:
        return LiquidityAnalysis(reason="No 15m data")

    sweeps = find_liquidity_sweeps(recent, thresholds)
    latest = get_latest_sweep(sweeps)
    reaction = (
        check_reaction_strength(
            latest,
            recent,
            bias.bias,
            min_move_pct=thresholds.reaction_min_move_pct,
            min_candles=thresholds.reaction_min_candles,
            max_candles=thresholds.reaction_max_candles,
        )
        if latest is not None
        else None
    )

    price_in_zone = is_price_in_bias_zone(recent[-1].close, bias)

    displacement = detect_displacement(
        recent,
        "15m",
        size_multiplier=thresholds.displacement_size_mult,
        body_ratio=thresholds.displacement_body_ratio,
        body_multiplier=thresholds.displacement_body_mult,
    )
    strong = any(is_strong_displacement(d, thresholds.strong_displacement) for d in displacement)

    fvgs = get_unfilled_fvgs(filter_aligned_fvgs(detect_fvgs(recent, "15m"), bias.bias), recent)

    checks = [
        (bool(sweeps), "No liquidity sweep on 15m"),
        (price_in_zone, f"Price not in {bias.bias} zone of 2H range"),
        (bool(displacement), "No displacement on 15m"),
        (bool(fvgs), "No unfilled bias-aligned FVG on 15m"),
        (reaction == "strong", "Weak reaction after liquidity sweep"),
    ]
    failed = next((reason for ok, reason in checks if not ok), "")
    setup_valid = not failed

    logger.debug(
        "15m: sweeps=%d reaction=%s in_zone=%s displacement=%d fvgs=%d valid=%s",
        len(sweeps), reaction, price_in_zone, len(displacement), len(fvgs), setup_valid,
    )

    swing_highs, swing_lows = get_latest_swing_points(recent, SWING_POINT_COUNT)
    return LiquidityAnalysis(
        liquidity_taken=bool(sweeps),
        liquidity_type=latest.type if latest is not None else None,
        reaction_strength=reaction,
        fvg_present=bool(fvgs),
        setup_valid=setup_valid,
        displacement_detected=bool(displacement),
        strong_displacement=strong,
        price_in_zone=price_in_zone,
        liquidity_sweeps=tuple(sweeps),
        fvgs=tuple(fvgs),
        displacement=tuple(displacement),
        swing_highs=tuple(swing_highs),
        swing_lows=tuple(swing_lows),
        reason=failed or "15m setup valid",
    )

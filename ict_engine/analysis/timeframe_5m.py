"""5m execution analysis: entry, stop, target and confidence."""

import logging
from collections.abc import Sequence
from typing import Optional

from ict_engine.analysis.models import (
    BiasAnalysis,
    Confidence,
    Direction,
    ExecutionSignal,
    LiquidityAnalysis,
)
from ict_engine.analysis.thresholds import MAX_CANDLES_5M, SWING_POINT_COUNT, Thresholds
from ict_engine.ict.displacement import detect_displacement, is_strong_displacement
from ict_engine.ict.fvg import (
    detect_fvgs,
    filter_aligned_fvgs,
    get_fvg_midpoint,
    get_unfilled_fvgs,
)
from ict_engine.ict.liquidity import get_latest_sweep, is_liquidity_swept
from ict_engine.ict.models import FVG, Candle
from ict_engine.ict.mss import detect_mss, get_latest_mss, is_mss_confirmed
from ict_engine.ict.support_resistance import get_latest_swing_points
from ict_engine.utils.price_format import format_price

logger = logging.getLogger("ict_engine.analysis.timeframe_5m")


def confirm_liquidity_sweep(candles: Sequence[Candle], liquidity: LiquidityAnalysis) -> bool:
    """True when the latest 15m sweep level was also swept on 5m."""
    latest = get_latest_sweep(liquidity.liquidity_sweeps)
    if not liquidity.liquidity_taken or latest is None:
        return False
    return is_liquidity_swept(latest.price, candles, latest.type)


def calculate_stop_level(
    direction: Direction,
    fvg: FVG,
    liquidity: LiquidityAnalysis,
    thresholds: Thresholds,
) -> float:
    """Stop just beyond the FVG, or beyond the swept liquidity if that is further."""
    offset = thresholds.stop_offset_pct
    if direction == "long":
        stop = fvg.bottom * (1 - offset)
        swept = [s.price for s in liquidity.liquidity_sweeps if s.type == "buy-side"]
        if swept:
            stop = min(stop, min(swept) * (1 - offset))
        return stop

    stop = fvg.top * (1 + offset)
    swept = [s.price for s in liquidity.liquidity_sweeps if s.type == "sell-side"]
    if swept:
        stop = max(stop, max(swept) * (1 + offset))
    return stop


def calculate_target_level(
    direction: Direction,
    entry: float,
    stop: float,
    bias: BiasAnalysis,
    thresholds: Thresholds,
) -> float:
    """Nearest opposing 2H liquidity beyond entry, else a fixed percentage move.

    Longs target sell-side liquidity above entry, shorts buy-side liquidity
    below it. The liquidity level is used only when its reward covers at
    least ``min_liquidity_target_rr`` times the risk.
    """
    if direction == "long":
        fixed = entry * (1 + thresholds.fixed_target_pct)
        candidates = [p for p in bias.key_liquidity.sell_side if p > entry]
        level = min(candidates) if candidates else None
    else:
        fixed = entry * (1 - thresholds.fixed_target_pct)
        candidates = [p for p in bias.key_liquidity.buy_side if p < entry]
        level = max(candidates) if candidates else None

    if level is not None:
        risk = abs(entry - stop)
        if abs(level - entry) >= risk * thresholds.min_liquidity_target_rr:
            return level
    return fixed


def determine_confidence(
    mss_confirmed: bool,
    strong_displacement: bool,
    liquidity_confirmed: bool,
    risk_reward_ratio: Optional[float],
    high_rr: float = 2.0,
) -> Confidence:
    """Score the confluences: three or more is high, two medium, else low."""
    score = sum(
        [
            mss_confirmed,
            strong_displacement,
            liquidity_confirmed,
            risk_reward_ratio is not None and risk_reward_ratio >= high_rr,
        ]
    )
    if score >= 3:
        return "high"
    if score >= 2:
        return "medium"
    return "low"


def analyze_5m_execution(
    candles: Sequence[Candle],
    bias: BiasAnalysis,
    liquidity: LiquidityAnalysis,
    instrument: str = "EURUSD",
    thresholds: Optional[Thresholds] = None,
) -> ExecutionSignal:
    """Build the 5m execution signal.

    A signal needs the 15m sweep visible on 5m, strong displacement, a
    close-confirmed MSS in the bias direction, an unfilled bias-aligned FVG
    and a valid 15m setup. Entry is the FVG midpoint.

    Args:
        candles: 5m candles, oldest first.
        bias: 2H analysis.
        liquidity: 15m analysis.
        instrument: Symbol, used only for price formatting.
        thresholds: Tuning table; defaults apply when omitted.
    """
    thresholds = thresholds or Thresholds()
    recent = list(candles[-MAX_CANDLES_5M:])
    if not recent:
        return ExecutionSignal(reason="No 5m data")

    swing_highs, swing_lows = get_latest_swing_points(recent, SWING_POINT_COUNT)
    swings = {"swing_highs": tuple(swing_highs), "swing_lows": tuple(swing_lows)}

    liquidity_confirmed = confirm_liquidity_sweep(recent, liquidity)

    displacement = detect_displacement(
        recent,
        "5m",
        size_multiplier=thresholds.displacement_size_mult,
        body_ratio=thresholds.displacement_body_ratio,
        body_multiplier=thresholds.displacement_body_mult,
    )
    strong = any(is_strong_displacement(d, thresholds.strong_displacement) for d in displacement)

    mss_direction = None if bias.bias == "neutral" else bias.bias
    latest_mss = get_latest_mss(detect_mss(recent, "5m"), mss_direction)
    mss_confirmed = latest_mss is not None and is_mss_confirmed(
        latest_mss, recent, thresholds.mss_confirmation_bars
    )

    unfilled = get_unfilled_fvgs(filter_aligned_fvgs(detect_fvgs(recent, "5m"), bias.bias), recent)
    fvg = unfilled[-1] if unfilled else None

    checks = [
        (bias.bias != "neutral", "Neutral 2H bias"),
        (liquidity.setup_valid, "15m setup not valid"),
        (liquidity_confirmed, "15m liquidity sweep not visible on 5m"),
        (strong, "No strong displacement on 5m"),
        (mss_confirmed, "MSS not confirmed by close on 5m"),
        (fvg is not None, "No unfilled bias-aligned FVG on 5m"),
    ]
    failed = next((reason for ok, reason in checks if not ok), "")
    if failed:
        logger.debug("5m: no signal (%s)", failed)
        return ExecutionSignal(
            mss_confirmed=mss_confirmed,
            liquidity_confirmed=liquidity_confirmed,
            strong_displacement=strong,
            fvg_details=fvg,
            reason=failed,
            **swings,
        )

    direction: Direction = "long" if bias.bias == "bullish" else "short"
    entry = get_fvg_midpoint(fvg)
    stop = calculate_stop_level(direction, fvg, liquidity, thresholds)
    target = calculate_target_level(direction, entry, stop, bias, thresholds)

    risk = abs(entry - stop)
    reward = abs(target - entry)
    rr = reward / risk if risk > 0 else None

    confidence = determine_confidence(
        mss_confirmed, strong, liquidity_confirmed, rr, thresholds.high_confidence_rr
    )
    logger.debug(
        "5m: %s entry=%.5f stop=%.5f target=%.5f confidence=%s",
        direction, entry, stop, target, confidence,
    )

    return ExecutionSignal(
        trade_signal=True,
        direction=direction,
        entry_zone=format_price(entry, instrument),
        stop_level=format_price(stop, instrument),
        target_zone=format_price(target, instrument),
        confidence=confidence,
        mss_confirmed=mss_confirmed,
        liquidity_confirmed=liquidity_confirmed,
        strong_displacement=strong,
        fvg_details=fvg,
        entry_price=entry,
        stop_price=stop,
        target_price=target,
        risk_reward_ratio=rr,
        reason="All execution conditions met",
        **swings,
    )

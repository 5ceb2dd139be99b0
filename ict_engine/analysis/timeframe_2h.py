"""2H bias analysis: directional context from the higher timeframe."""

import logging
from collections.abc import Sequence
from typing import Optional

from ict_engine.analysis.models import BiasAnalysis, KeyLiquidity
from ict_engine.analysis.thresholds import (
    BIAS_LOOKBACK_CANDLES,
    MAX_CANDLES_2H,
    SWING_POINT_COUNT,
    Thresholds,
)
from ict_engine.ict.displacement import average_candle_size
from ict_engine.ict.fvg import detect_fvgs, is_price_in_fvg
from ict_engine.ict.liquidity import (
    detect_equal_highs,
    detect_equal_lows,
    find_liquidity_pools,
)
from ict_engine.ict.models import FVG, Bias, Candle, OrderBlock, PremiumDiscount
from ict_engine.ict.mss import detect_mss
from ict_engine.ict.premium_discount import (
    calculate_pd_level,
    calculate_range,
    get_premium_discount,
)
from ict_engine.ict.support_resistance import (
    detect_support_resistance,
    get_key_levels,
    get_latest_swing_points,
)

logger = logging.getLogger("ict_engine.analysis.timeframe_2h")


def determine_bias(
    candles: Sequence[Candle],
    premium_discount: PremiumDiscount,
    lookback: int = BIAS_LOOKBACK_CANDLES,
) -> Bias:
    """Read bias from swing structure over the last *lookback* candles.

    Two or more higher highs and higher lows is bullish, two or more lower
    highs and lower lows bearish. Otherwise price location decides: premium
    with any higher high is bullish, discount with any lower low bearish.
    Fewer than *lookback* candles is always neutral.
    """
    if len(candles) < lookback:
        return "neutral"

    recent = candles[-lookback:]
    higher_highs = higher_lows = lower_highs = lower_lows = 0
    for prev, curr in zip(recent, recent[1:]):
        if curr.high > prev.high:
            higher_highs += 1
        elif curr.high < prev.high:
            lower_highs += 1
        if curr.low > prev.low:
            higher_lows += 1
        elif curr.low < prev.low:
            lower_lows += 1

    if higher_highs >= 2 and higher_lows >= 2:
        return "bullish"
    if lower_highs >= 2 and lower_lows >= 2:
        return "bearish"
    if premium_discount == "premium" and higher_highs >= 1:
        return "bullish"
    if premium_discount == "discount" and lower_lows >= 1:
        return "bearish"
    return "neutral"


def identify_order_blocks(
    candles: Sequence[Candle], thresholds: Thresholds
) -> list[OrderBlock]:
    """Strong-bodied candles sitting near a range extreme.

    Bullish: an up-close candle whose low is within ``order_block_extreme_pct``
    of the range low. Bearish: a down-close candle whose high is within the
    same distance of the range high.
    """
    if len(candles) < 2:
        return []

    price_range = calculate_range(candles)
    avg_size = average_candle_size(candles)
    min_body = avg_size * thresholds.order_block_body_mult
    bullish_limit = price_range.low * (1 + thresholds.order_block_extreme_pct)
    bearish_limit = price_range.high * (1 - thresholds.order_block_extreme_pct)

    blocks: list[OrderBlock] = []
    for candle in candles:
        if candle.body <= min_body:
            continue
        strength = "strong" if candle.size > avg_size * thresholds.order_block_strong_mult else "medium"

        if candle.close > candle.open and candle.low <= bullish_limit:
            direction = "bullish"
        elif candle.close < candle.open and candle.high >= bearish_limit:
            direction = "bearish"
        else:
            continue

        blocks.append(
            OrderBlock(
                start_time=candle.time,
                end_time=candle.time,
                top=candle.high,
                bottom=candle.low,
                direction=direction,
                timeframe="2h",
                strength=strength,
            )
        )
    return blocks


def determine_htf_zone(
    price: float,
    fvgs: Sequence[FVG],
    order_blocks: Sequence[OrderBlock],
    range_high: float,
    range_low: float,
) -> str:
    """Label the higher-timeframe zone price is currently trading in."""
    if fvgs and is_price_in_fvg(price, fvgs[-1]):
        return f"2H FVG ({fvgs[-1].direction})"
    if order_blocks:
        latest = order_blocks[-1]
        if latest.bottom <= price <= latest.top:
            return f"2H Order Block ({latest.direction})"
    if get_premium_discount(price, range_high, range_low) == "premium":
        return "2H Premium Zone"
    return "2H Discount Zone"


def analyze_2h_bias(
    candles: Sequence[Candle], thresholds: Optional[Thresholds] = None
) -> BiasAnalysis:
    """Establish 2H bias, range and resting liquidity.

    Only the last ``MAX_CANDLES_2H`` candles are used. An empty series yields
    a neutral analysis over a ``(0, 0)`` range.
    """
    thresholds = thresholds or Thresholds()
    recent = list(candles[-MAX_CANDLES_2H:])

    price_range = calculate_range(recent)
    pd_level = calculate_pd_level(price_range.high, price_range.low)
    if not recent:
        logger.debug("2H: no candles, bias neutral")
        return BiasAnalysis(
            bias="neutral",
            range_high=price_range.high,
            range_low=price_range.low,
            premium_discount="premium",
            pd_level=pd_level,
            htf_zone="2H Premium Zone",
        )

    current_price = recent[-1].close
    premium_discount = get_premium_discount(current_price, price_range.high, price_range.low)
    bias = determine_bias(recent, premium_discount)

    fvgs = detect_fvgs(recent, "2h")
    order_blocks = identify_order_blocks(recent, thresholds)
    swing_highs, swing_lows = get_latest_swing_points(recent, SWING_POINT_COUNT)
    key_levels = get_key_levels(detect_support_resistance(recent, "2h"))

    logger.debug(
        "2H: bias=%s range=%.5f-%.5f location=%s fvgs=%d obs=%d",
        bias, price_range.low, price_range.high, premium_discount,
        len(fvgs), len(order_blocks),
    )

    return BiasAnalysis(
        bias=bias,
        range_high=price_range.high,
        range_low=price_range.low,
        premium_discount=premium_discount,
        pd_level=pd_level,
        key_liquidity=KeyLiquidity(
            buy_side=tuple(detect_equal_lows(recent, thresholds.equal_level_tolerance)),
            sell_side=tuple(detect_equal_highs(recent, thresholds.equal_level_tolerance)),
        ),
        htf_zone=determine_htf_zone(
            current_price, fvgs, order_blocks, price_range.high, price_range.low
        ),
        fvgs=tuple(fvgs),
        order_blocks=tuple(order_blocks),
        liquidity_pools=tuple(
            find_liquidity_pools(recent, "2h", thresholds.equal_level_tolerance)
        ),
        mss_points=tuple(detect_mss(recent, "2h")),
        key_levels=tuple(key_levels),
        swing_highs=tuple(swing_highs),
        swing_lows=tuple(swing_lows),
    )

"""Tests for equal-level detection, sweeps and reaction strength."""

import dataclasses

import pytest

from ict_engine.ict.liquidity import (
    check_reaction_strength,
    detect_equal_highs,
    detect_equal_lows,
    find_equal_level_sweeps,
    find_liquidity_pools,
    find_sweep_candle,
    get_asian_range,
    get_latest_sweep,
    is_liquidity_swept,
)
from ict_engine.ict.models import Candle, LiquiditySweep
from tests.candles import bullish_2h, staircase_15m, sweep_15m, unswept_pool_15m


# ── Helpers ──────────────────────────────────────────────────────────────

def _make_candle(time: int, o: float, h: float, l: float, c: float) -> Candle:
    return Candle(time=time, open=o, high=h, low=l, close=c)


# ── Tests ────────────────────────────────────────────────────────────────

class TestEqualLevels:
    def test_equal_highs_in_first_seen_order(self):
        assert detect_equal_highs(bullish_2h()) == [101, 96]

    def test_equal_lows_in_first_seen_order(self):
        assert detect_equal_lows(bullish_2h()) == [94, 91]

    def test_level_is_cluster_mean(self):
        candles = [
            _make_candle(1, 1.0990, 1.1000, 1.0980, 1.0990),
            _make_candle(2, 1.0990, 1.1005, 1.0970, 1.0980),
        ]
        assert detect_equal_highs(candles) == [pytest.approx(1.10025)]

    def test_no_equal_levels_in_staircase(self):
        candles = staircase_15m()
        assert detect_equal_highs(candles) == []
        assert detect_equal_lows(candles) == []

    def test_pools_carry_side_and_description(self):
        pools = find_liquidity_pools(bullish_2h(), "2h")
        sell = [p for p in pools if p.type == "sell-side"]
        buy = [p for p in pools if p.type == "buy-side"]
        assert [p.price for p in sell] == [101, 96]
        assert [p.price for p in buy] == [94, 91]
        assert all(p.description == "Equal High" for p in sell)
        assert all(p.timestamp == bullish_2h()[-1].time for p in pools)

    def test_pools_empty_input(self):
        assert find_liquidity_pools([], "15m") == []


class TestAsianRange:
    def test_first_four_candles(self):
        asian = get_asian_range(sweep_15m())
        assert asian.high == 94.8
        assert asian.low == 94.0
        assert asian.time == sweep_15m()[0].time

    def test_empty(self):
        assert get_asian_range([]) is None


class TestSweeps:
    def test_wick_and_reclaim_is_a_sweep(self):
        candles = [_make_candle(1, 1.1010, 1.1020, 1.0990, 1.1015)]
        assert is_liquidity_swept(1.1000, candles, "buy-side")

    def test_break_without_reclaim_is_not_a_sweep(self):
        candles = [
            _make_candle(1, 1.1010, 1.1020, 1.0990, 1.0995),
            _make_candle(2, 1.0995, 1.1005, 1.0980, 1.0985),
        ]
        assert not is_liquidity_swept(1.1000, candles, "buy-side")

    def test_sell_side_mirror(self):
        swept = [_make_candle(1, 1.0990, 1.1010, 1.0985, 1.0995)]
        broken = [_make_candle(1, 1.0990, 1.1010, 1.0985, 1.1005)]
        assert is_liquidity_swept(1.1000, swept, "sell-side")
        assert not is_liquidity_swept(1.1000, broken, "sell-side")

    def test_sweep_candle_reclaims_level(self):
        candles = sweep_15m()
        candle = find_sweep_candle(94.0, candles, "buy-side")
        assert candle is candles[8]
        assert candle.low < 94.0 < candle.close

    def test_latest_sweep_first_wins_ties(self):
        sweeps = [
            LiquiditySweep(price=94.0, time=10, type="buy-side"),
            LiquiditySweep(price=94.5, time=5, type="sell-side"),
            LiquiditySweep(price=93.9, time=10, type="buy-side"),
        ]
        assert get_latest_sweep(sweeps).price == 94.0
        assert get_latest_sweep([]) is None


class TestEqualLevelSweeps:
    def test_pool_is_not_swept_by_its_own_candles(self):
        candles = unswept_pool_15m()
        assert detect_equal_lows(candles) == [pytest.approx(100.025)]
        assert find_equal_level_sweeps(candles, "buy-side") == []

    def test_later_stop_run_sweeps_the_pool(self):
        candles = sweep_15m()
        sweep = find_equal_level_sweeps(candles, "buy-side")[0]
        assert sweep == LiquiditySweep(
            price=94.0, time=candles[8].time, type="buy-side", candle_index=8
        )

    def test_shallow_pierce_joins_pool_and_still_sweeps(self):
        candles = unswept_pool_15m()
        candles.append(_make_candle(candles[-1].time + 900, 101.2, 101.4, 99.95, 101.0))
        sweeps = find_equal_level_sweeps(candles, "buy-side")
        assert len(sweeps) == 1
        assert sweeps[0].price == pytest.approx(100.0)
        assert sweeps[0].candle_index == 8


class TestReactionStrength:
    def _sweep(self):
        return LiquiditySweep(price=94.0, time=sweep_15m()[8].time, type="buy-side")

    def test_strong_move_with_bias(self):
        assert check_reaction_strength(self._sweep(), sweep_15m(), "bullish") == "strong"

    def test_against_bias_is_weak(self):
        assert check_reaction_strength(self._sweep(), sweep_15m(), "bearish") == "weak"

    def test_too_few_follow_through_candles(self):
        candles = sweep_15m()[:11]  # only two candles after the sweep
        assert check_reaction_strength(self._sweep(), candles, "bullish") == "weak"

    def test_small_move_is_weak(self):
        candles = sweep_15m()
        assert check_reaction_strength(self._sweep(), candles, "bullish", min_move_pct=5.0) == "weak"

    def test_duplicate_timestamps_use_the_sweep_candle(self):
        candles = sweep_15m()
        candles[7] = dataclasses.replace(candles[7], time=candles[8].time)
        sweep = find_equal_level_sweeps(candles, "buy-side")[0]
        assert sweep.candle_index == 8
        assert check_reaction_strength(sweep, candles, "bullish", min_move_pct=2.5) == "strong"

        by_time = dataclasses.replace(sweep, candle_index=None)
        assert check_reaction_strength(by_time, candles, "bullish", min_move_pct=2.5) == "weak"

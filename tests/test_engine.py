"""End-to-end tests for the analysis pipeline.

All tests use fixed candle fixtures and a fixed clock. Same input = same
output, always.
"""

import dataclasses
import json
import logging
from datetime import datetime, timezone

import pytest

from ict_engine.analysis.engine import (
    MissingInputError,
    PipelineState,
    advance,
    analyze,
)
from ict_engine.analysis.instruments import get_instrument_config
from ict_engine.analysis.thresholds import Thresholds
from ict_engine.ict.premium_discount import get_premium_discount
from tests.candles import (
    TWO_H_START,
    bullish_2h,
    entry_5m,
    flat_2h,
    full_setup,
    staircase_15m,
    sweep_15m,
    wick_break_5m,
)

AT_10_UTC = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
AT_20_UTC = datetime(2024, 1, 1, 20, 0, tzinfo=timezone.utc)


class TestScenarios:
    def test_neutral_bias_is_no_trade(self):
        data = {"2h": flat_2h(), "15m": sweep_15m(), "5m": entry_5m()}
        result = analyze("EURUSD", data, now=AT_10_UTC)
        assert result.timeframe_2h.bias == "neutral"
        assert result.final_decision == "NO_TRADE"
        assert not result.timeframe_15m.setup_valid
        assert not result.timeframe_5m.trade_signal

    def test_no_liquidity_is_watch(self):
        data = {"2h": bullish_2h(), "15m": staircase_15m(), "5m": entry_5m()}
        result = analyze("EURUSD", data, now=AT_10_UTC)
        assert result.timeframe_2h.bias == "bullish"
        assert result.timeframe_15m.liquidity_taken is False
        assert result.final_decision == "WATCH"

    def test_synthetic_unconfirmed_mss_is_watch(self):
        data = {"2h": bullish_2h(), "15m": sweep_15m(), "5m": wick_break_5m()}
        result = analyze("R_50", data, now=AT_20_UTC)
        assert result.instrument_config.type == "synthetic"
        assert result.timeframe_15m.setup_valid
        assert not result.timeframe_5m.mss_confirmed
        assert result.timeframe_5m.fvg_details is not None
        assert result.final_decision == "WATCH"

    def test_forex_inside_session_is_trade_setup(self):
        result = analyze("EURUSD", full_setup(), now=AT_10_UTC)
        assert result.session_valid
        assert result.final_decision == "TRADE_SETUP"
        assert result.timeframe_5m.direction == "long"
        assert result.timeframe_5m.confidence == "high"

    def test_forex_outside_session_is_watch(self):
        result = analyze("EURUSD", full_setup(), now=AT_20_UTC)
        assert not result.session_valid
        assert result.final_decision == "WATCH"
        # the signal itself is unchanged; only timing blocks it
        assert result.timeframe_5m.trade_signal
        assert result.reason == "Outside valid trading session"

    def test_synthetic_ignores_session(self):
        result = analyze("R_50", full_setup(), now=AT_20_UTC)
        assert result.session_valid
        assert result.final_decision == "TRADE_SETUP"
        assert result.timeframe_2h.order_blocks == ()
        assert result.timeframe_5m.entry_zone == "97.25"


class TestContract:
    def test_missing_timeframe_raises(self):
        data = {"2h": bullish_2h(), "15m": sweep_15m()}
        with pytest.raises(MissingInputError) as excinfo:
            analyze("EURUSD", data, now=AT_10_UTC)
        assert excinfo.value.timeframes == ("5m",)
        assert isinstance(excinfo.value, ValueError)

    def test_none_counts_as_missing(self):
        with pytest.raises(MissingInputError):
            analyze("EURUSD", {"2h": None, "15m": [], "5m": []}, now=AT_10_UTC)

    def test_empty_arrays_degrade(self):
        result = analyze("EURUSD", {"2h": [], "15m": [], "5m": []}, now=AT_10_UTC)
        assert result.final_decision == "NO_TRADE"
        assert result.timeframe_2h.bias == "neutral"
        assert result.data_window_start == result.data_window_end

    def test_short_arrays_degrade(self):
        data = {"2h": bullish_2h()[:3], "15m": sweep_15m()[:2], "5m": entry_5m()[:1]}
        result = analyze("EURUSD", data, now=AT_10_UTC)
        assert result.final_decision == "NO_TRADE"

    def test_timestamps(self):
        result = analyze("EURUSD", full_setup(), now=AT_10_UTC)
        now_ms = int(AT_10_UTC.timestamp() * 1000)
        assert result.timestamp == now_ms
        assert result.data_window_end == now_ms
        assert result.data_window_start == TWO_H_START * 1000

    def test_decision_containment(self):
        cases = [
            ("EURUSD", full_setup(), AT_10_UTC),
            ("EURUSD", full_setup(), AT_20_UTC),
            ("R_50", {"2h": bullish_2h(), "15m": sweep_15m(), "5m": wick_break_5m()}, AT_20_UTC),
            ("EURUSD", {"2h": flat_2h(), "15m": sweep_15m(), "5m": entry_5m()}, AT_10_UTC),
        ]
        for instrument, data, now in cases:
            result = analyze(instrument, data, now=now)
            assert result.final_decision in {"TRADE_SETUP", "WATCH", "NO_TRADE"}
            if result.final_decision == "TRADE_SETUP":
                assert result.timeframe_5m.trade_signal
                if result.instrument_config.use_session_filter:
                    assert result.session_valid

    def test_range_round_trip(self):
        result = analyze("EURUSD", full_setup(), now=AT_10_UTC)
        bias = result.timeframe_2h
        last_close = bullish_2h()[-1].close
        assert get_premium_discount(last_close, bias.range_high, bias.range_low) == bias.premium_discount

    def test_explicit_thresholds(self):
        strict = Thresholds(reaction_min_move_pct=5.0)
        result = analyze("EURUSD", full_setup(), now=AT_10_UTC, thresholds=strict)
        assert result.final_decision == "WATCH"
        assert result.timeframe_15m.reaction_strength == "weak"

    def test_serialises_to_json(self):
        result = analyze("EURUSD", full_setup(), now=AT_10_UTC)
        payload = json.loads(json.dumps(result.to_dict()))
        assert payload["final_decision"] == "TRADE_SETUP"
        assert payload["timeframe_2h"]["key_liquidity"]["sell_side"] == [101, 96]
        assert payload["instrument_config"]["type"] == "forex"


class TestDeterminism:
    def test_same_input_same_output(self):
        first = analyze("EURUSD", full_setup(), now=AT_10_UTC)
        second = analyze("EURUSD", full_setup(), now=AT_10_UTC)
        assert first == second
        assert first.to_dict() == second.to_dict()


class TestPipelineStates:
    def _advance(self, state, data, symbol="EURUSD", session_valid=True):
        return advance(state, data, get_instrument_config(symbol), session_valid, Thresholds())

    def test_bias_stage_hands_over(self):
        state = self._advance(PipelineState(), full_setup())
        assert state.stage == "awaiting_setup"
        assert state.bias.bias == "bullish"
        assert state.decision is None

    def test_neutral_bias_decides(self):
        data = dict(full_setup(), **{"2h": flat_2h()})
        state = self._advance(PipelineState(), data)
        assert (state.stage, state.decision) == ("decided", "NO_TRADE")

    def test_invalid_setup_decides_watch(self):
        data = dict(full_setup(), **{"15m": staircase_15m()})
        state = self._advance(self._advance(PipelineState(), data), data)
        assert (state.stage, state.decision) == ("decided", "WATCH")
        assert state.liquidity is not None

    def test_session_gate_on_signal_stage(self):
        data = full_setup()
        state = PipelineState()
        for _ in range(3):
            state = self._advance(state, data, session_valid=False)
        assert state.signal.trade_signal
        assert state.decision == "WATCH"

    def test_decided_state_is_terminal(self):
        state = PipelineState(stage="decided", decision="NO_TRADE")
        assert self._advance(state, full_setup()) is state

    def test_states_are_immutable(self):
        state = PipelineState()
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.stage = "decided"


class TestLogging:
    def test_decision_line_uses_instrument_precision(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="ict_engine"):
            analyze("USDJPY", full_setup(), now=AT_10_UTC)
        messages = [r.getMessage() for r in caplog.records if r.name == "ict_engine"]
        assert any("range=90.000 - 120.000" in m for m in messages)
        assert any("buy-side liquidity [94.000, 91.000]" in m for m in messages)
        assert any("sell-side liquidity [101.000, 96.000]" in m for m in messages)

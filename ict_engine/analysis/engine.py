"""ICT engine: multi-timeframe orchestration.

Runs the 2H bias, 15m setup and 5m execution stages as a short-circuiting
pipeline, then applies session timing and instrument policy to produce the
final decision. No I/O happens here.
"""

import dataclasses
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Optional

from ict_engine.analysis.instruments import (
    apply_instrument_rules,
    get_instrument_config,
    validate_instrument_analysis,
)
from ict_engine.analysis.models import (
    AnalysisResult,
    BiasAnalysis,
    ExecutionSignal,
    InstrumentConfig,
    LiquidityAnalysis,
    SignalType,
)
from ict_engine.analysis.session_filter import is_valid_session_time
from ict_engine.analysis.thresholds import (
    MAX_CANDLES_5M,
    MAX_CANDLES_15M,
    SWING_POINT_COUNT,
    Thresholds,
    get_thresholds,
)
from ict_engine.analysis.timeframe_2h import analyze_2h_bias
from ict_engine.analysis.timeframe_5m import analyze_5m_execution
from ict_engine.analysis.timeframe_15m import analyze_15m_liquidity
from ict_engine.ict.models import Candle
from ict_engine.ict.support_resistance import get_latest_swing_points
from ict_engine.utils.price_format import format_price_array, format_price_range

logger = logging.getLogger("ict_engine")

TIMEFRAMES = ("2h", "15m", "5m")

Stage = Literal["awaiting_bias", "awaiting_setup", "awaiting_signal", "decided"]


class MissingInputError(ValueError):
    """Raised when a required timeframe series is absent from the input map."""

    def __init__(self, timeframes: Sequence[str]) -> None:
        self.timeframes = tuple(timeframes)
        super().__init__(
            f"Missing required timeframe data: {', '.join(self.timeframes)}"
        )


@dataclass(frozen=True)
class PipelineState:
    """Snapshot of the analysis pipeline between stages."""

    stage: Stage = "awaiting_bias"
    bias: Optional[BiasAnalysis] = None
    liquidity: Optional[LiquidityAnalysis] = None
    signal: Optional[ExecutionSignal] = None
    decision: Optional[SignalType] = None
    reason: str = ""


def advance(
    state: PipelineState,
    data: Mapping[str, Sequence[Candle]],
    config: InstrumentConfig,
    session_valid: bool,
    thresholds: Thresholds,
) -> PipelineState:
    """Run the stage *state* is waiting on and return the next state.

    Each stage either hands over to the next one or settles the decision.
    A ``decided`` state is returned unchanged.
    """
    if state.stage == "awaiting_bias":
        bias = analyze_2h_bias(data["2h"], thresholds)
        if bias.bias == "neutral":
            return dataclasses.replace(
                state, stage="decided", bias=bias, decision="NO_TRADE",
                reason="Neutral 2H bias",
            )
        return dataclasses.replace(state, stage="awaiting_setup", bias=bias)

    if state.stage == "awaiting_setup":
        liquidity = analyze_15m_liquidity(data["15m"], state.bias, thresholds)
        if not liquidity.setup_valid:
            return dataclasses.replace(
                state, stage="decided", liquidity=liquidity, decision="WATCH",
                reason=liquidity.reason,
            )
        return dataclasses.replace(state, stage="awaiting_signal", liquidity=liquidity)

    if state.stage == "awaiting_signal":
        signal = analyze_5m_execution(
            data["5m"], state.bias, state.liquidity, config.symbol, thresholds
        )
        if not signal.trade_signal:
            decision, reason = "WATCH", signal.reason
        elif config.use_session_filter and not session_valid:
            decision, reason = "WATCH", "Outside valid trading session"
        else:
            decision, reason = "TRADE_SETUP", f"{signal.direction} setup, {signal.confidence} confidence"
        return dataclasses.replace(
            state, stage="decided", signal=signal, decision=decision, reason=reason
        )

    return state


def run_pipeline(
    data: Mapping[str, Sequence[Candle]],
    config: InstrumentConfig,
    session_valid: bool,
    thresholds: Thresholds,
) -> PipelineState:
    state = PipelineState()
    while state.stage != "decided":
        state = advance(state, data, config, session_valid, thresholds)
        logger.debug("%s: stage -> %s", config.symbol, state.stage)
    return state


def _placeholder_liquidity(candles: Sequence[Candle], reason: str) -> LiquidityAnalysis:
    highs, lows = get_latest_swing_points(candles[-MAX_CANDLES_15M:], SWING_POINT_COUNT)
    return LiquidityAnalysis(swing_highs=tuple(highs), swing_lows=tuple(lows), reason=reason)


def _placeholder_signal(candles: Sequence[Candle], reason: str) -> ExecutionSignal:
    highs, lows = get_latest_swing_points(candles[-MAX_CANDLES_5M:], SWING_POINT_COUNT)
    return ExecutionSignal(swing_highs=tuple(highs), swing_lows=tuple(lows), reason=reason)


def _to_millis(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def analyze(
    instrument: str,
    data: Mapping[str, Optional[Sequence[Candle]]],
    now: Optional[datetime] = None,
    thresholds: Optional[Thresholds] = None,
) -> AnalysisResult:
    """Run the full ICT analysis for *instrument*.

    Args:
        instrument: Symbol, e.g. ``"EURUSD"``, ``"frxXAUUSD"`` or ``"R_50"``.
        data: Candle series keyed by ``"2h"``, ``"15m"`` and ``"5m"``, oldest
            first. Empty series are allowed and degrade the analysis.
        now: Analysis time; naive values are UTC. Defaults to the current time.
        thresholds: Tuning table; defaults to the instrument class table.

    Raises:
        MissingInputError: If any timeframe key is absent or ``None``.
    """
    missing = [tf for tf in TIMEFRAMES if data.get(tf) is None]
    if missing:
        raise MissingInputError(missing)

    now = now or datetime.now(timezone.utc)
    config = get_instrument_config(instrument)
    thresholds = thresholds or get_thresholds(config.type)
    session_valid = is_valid_session_time(now, config.type)

    state = run_pipeline(data, config, session_valid, thresholds)

    now_ms = _to_millis(now)
    starts = [data[tf][0].time for tf in TIMEFRAMES if data[tf]]
    window_start = min(starts) * 1000 if starts else now_ms

    result = AnalysisResult(
        instrument=instrument,
        timestamp=now_ms,
        data_window_start=window_start,
        data_window_end=now_ms,
        timeframe_2h=state.bias,
        timeframe_15m=state.liquidity or _placeholder_liquidity(data["15m"], state.reason),
        timeframe_5m=state.signal or _placeholder_signal(data["5m"], state.reason),
        final_decision=state.decision,
        session_valid=session_valid,
        instrument_config=config,
        reason=state.reason,
    )

    result = apply_instrument_rules(result, config)
    if result.final_decision == "TRADE_SETUP" and not validate_instrument_analysis(result, config):
        result = dataclasses.replace(
            result, final_decision="WATCH", reason="Failed instrument validation"
        )

    bias = result.timeframe_2h
    logger.info(
        "%s: %s (%s) bias=%s range=%s session_valid=%s",
        instrument, result.final_decision, result.reason,
        bias.bias, format_price_range(bias.range_low, bias.range_high, instrument), session_valid,
    )
    logger.debug(
        "%s: buy-side liquidity [%s] sell-side liquidity [%s]",
        instrument,
        format_price_array(bias.key_liquidity.buy_side, instrument),
        format_price_array(bias.key_liquidity.sell_side, instrument),
    )
    return result

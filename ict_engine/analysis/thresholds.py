"""Named tuning constants per instrument class.

Every percentage-style threshold used by the timeframe analyzers lives here
so tests can swap in an explicit table instead of patching literals.
"""

from dataclasses import dataclass

from ict_engine.analysis.models import InstrumentType

# Candle windows covering ~48h at each granularity.
MAX_CANDLES_2H = 24
MAX_CANDLES_15M = 192
MAX_CANDLES_5M = 576

BIAS_LOOKBACK_CANDLES = 5
SWING_POINT_COUNT = 5


@dataclass(frozen=True)
class Thresholds:
    """Tuning constants consumed by the timeframe analyzers."""

    equal_level_tolerance: float = 0.001
    asian_range_candles: int = 4

    reaction_min_move_pct: float = 0.5
    reaction_min_candles: int = 3
    reaction_max_candles: int = 5

    displacement_size_mult: float = 1.5
    displacement_body_ratio: float = 0.7
    displacement_body_mult: float = 1.2
    strong_displacement: float = 0.6

    mss_confirmation_bars: int = 3

    order_block_extreme_pct: float = 0.01
    order_block_body_mult: float = 0.7
    order_block_strong_mult: float = 1.5

    stop_offset_pct: float = 0.001
    fixed_target_pct: float = 0.01
    min_liquidity_target_rr: float = 1.0
    high_confidence_rr: float = 2.0


THRESHOLDS: dict[InstrumentType, Thresholds] = {
    "forex": Thresholds(),
    "synthetic": Thresholds(),
}


def get_thresholds(instrument_type: InstrumentType) -> Thresholds:
    """Return the threshold table for *instrument_type*.

    Raises ``KeyError`` for an unknown instrument class.
    """
    return THRESHOLDS[instrument_type]

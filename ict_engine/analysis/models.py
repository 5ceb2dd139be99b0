"""Analysis data models: per-timeframe verdicts and the final result."""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Optional

from ict_engine.ict.models import (
    FVG,
    MSS,
    Bias,
    Displacement,
    LiquidityPool,
    LiquiditySweep,
    LiquidityType,
    OrderBlock,
    PremiumDiscount,
    ReactionStrength,
    SupportResistanceLevel,
    SwingPoint,
)

Direction = Optional[Literal["long", "short"]]
Confidence = Literal["low", "medium", "high"]
SignalType = Literal["TRADE_SETUP", "WATCH", "NO_TRADE"]
InstrumentType = Literal["forex", "synthetic"]


@dataclass(frozen=True)
class KeyLiquidity:
    """Resting liquidity levels: buy-side below equal lows, sell-side above equal highs."""

    buy_side: tuple[float, ...] = ()
    sell_side: tuple[float, ...] = ()


@dataclass(frozen=True)
class BiasAnalysis:
    """2H directional context."""

    bias: Bias
    range_high: float
    range_low: float
    premium_discount: PremiumDiscount
    pd_level: float
    key_liquidity: KeyLiquidity = field(default_factory=KeyLiquidity)
    htf_zone: str = ""
    fvgs: tuple[FVG, ...] = ()
    order_blocks: tuple[OrderBlock, ...] = ()
    liquidity_pools: tuple[LiquidityPool, ...] = ()
    mss_points: tuple[MSS, ...] = ()
    key_levels: tuple[SupportResistanceLevel, ...] = ()
    swing_highs: tuple[SwingPoint, ...] = ()
    swing_lows: tuple[SwingPoint, ...] = ()


@dataclass(frozen=True)
class LiquidityAnalysis:
    """15m liquidity sweep and setup validation."""

    liquidity_taken: bool = False
    liquidity_type: Optional[LiquidityType] = None
    reaction_strength: Optional[ReactionStrength] = None
    fvg_present: bool = False
    setup_valid: bool = False
    displacement_detected: bool = False
    strong_displacement: bool = False
    price_in_zone: bool = False
    liquidity_sweeps: tuple[LiquiditySweep, ...] = ()
    fvgs: tuple[FVG, ...] = ()
    displacement: tuple[Displacement, ...] = ()
    swing_highs: tuple[SwingPoint, ...] = ()
    swing_lows: tuple[SwingPoint, ...] = ()
    reason: str = ""


@dataclass(frozen=True)
class ExecutionSignal:
    """5m entry, stop and target. Price fields are ``None`` without a signal."""

    trade_signal: bool = False
    direction: Direction = None
    entry_zone: str = ""
    stop_level: str = ""
    target_zone: str = ""
    confidence: Confidence = "low"
    mss_confirmed: bool = False
    liquidity_confirmed: bool = False
    strong_displacement: bool = False
    fvg_details: Optional[FVG] = None
    entry_price: Optional[float] = None
    stop_price: Optional[float] = None
    target_price: Optional[float] = None
    risk_reward_ratio: Optional[float] = None
    swing_highs: tuple[SwingPoint, ...] = ()
    swing_lows: tuple[SwingPoint, ...] = ()
    reason: str = ""


@dataclass(frozen=True)
class InstrumentConfig:
    """Per-instrument behaviour flags, derived from the symbol alone."""

    symbol: str
    type: InstrumentType
    use_session_filter: bool
    prioritize_mss: bool
    ignore_order_blocks: bool
    full_ict_model: bool


@dataclass(frozen=True)
class AnalysisResult:
    """Terminal output of one ``analyze`` call."""

    instrument: str
    timestamp: int  # epoch milliseconds
    data_window_start: int
    data_window_end: int
    timeframe_2h: BiasAnalysis
    timeframe_15m: LiquidityAnalysis
    timeframe_5m: ExecutionSignal
    final_decision: SignalType
    session_valid: bool
    instrument_config: InstrumentConfig
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation (tuples become lists on serialisation)."""
        return asdict(self)

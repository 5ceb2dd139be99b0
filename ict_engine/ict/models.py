"""ICT primitive models: immutable value types produced by the detectors."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, Optional

Timeframe = Literal["2h", "15m", "5m"]
StructureDirection = Literal["bullish", "bearish"]
Bias = Literal["bullish", "bearish", "neutral"]
PremiumDiscount = Literal["premium", "discount"]
LiquidityType = Literal["buy-side", "sell-side"]
LevelType = Literal["support", "resistance"]
OrderBlockStrength = Literal["medium", "strong"]
ReactionStrength = Literal["weak", "strong"]


@dataclass(frozen=True)
class Candle:
    """A single OHLC bar. ``time`` is epoch seconds."""

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None

    @property
    def size(self) -> float:
        return self.high - self.low

    @property
    def body(self) -> float:
        return abs(self.close - self.open)


@dataclass(frozen=True)
class SwingPoint:
    price: float
    time: int


@dataclass(frozen=True)
class PriceRange:
    """High/low of a candle slice."""

    high: float
    low: float


@dataclass(frozen=True)
class FVG:
    """A three-candle fair value gap. ``top`` is always above ``bottom``."""

    start_time: int
    end_time: int
    top: float
    bottom: float
    direction: StructureDirection
    timeframe: Timeframe


@dataclass(frozen=True)
class OrderBlock:
    start_time: int
    end_time: int
    top: float
    bottom: float
    direction: StructureDirection
    timeframe: Timeframe
    strength: Optional[OrderBlockStrength] = None


@dataclass(frozen=True)
class MSS:
    """A market structure shift: the swing that broke and the new extreme."""

    time: int
    direction: StructureDirection
    timeframe: Timeframe
    previous_high: Optional[float] = None
    new_high: Optional[float] = None
    previous_low: Optional[float] = None
    new_low: Optional[float] = None
    candle_index: Optional[int] = None

    @property
    def broken_level(self) -> Optional[float]:
        if self.direction == "bullish":
            return self.previous_high
        return self.previous_low


@dataclass(frozen=True)
class Displacement:
    time: int
    direction: StructureDirection
    strength: float  # 0..1
    candle_index: int
    timeframe: Timeframe


@dataclass(frozen=True)
class LiquidityPool:
    price: float
    type: LiquidityType
    timeframe: Timeframe
    timestamp: int
    description: str


@dataclass(frozen=True)
class LiquiditySweep:
    """A resting level that was pierced by a wick and reclaimed on close.

    ``candle_index`` is the sweeping candle's position in the slice it was
    detected on.
    """

    price: float
    time: int
    type: LiquidityType
    candle_index: Optional[int] = None


@dataclass(frozen=True)
class AsianRange:
    high: float
    low: float
    time: int


@dataclass(frozen=True)
class SupportResistanceLevel:
    price: float
    type: LevelType
    touches: int
    strength: float  # 0..1
    timeframe: Timeframe


def locate_candle(
    candles: Sequence[Candle], time: int, index: Optional[int] = None
) -> Optional[int]:
    """Position of the event candle in *candles*.

    A known *index* is trusted only when the candle there carries *time*.
    Without one, the first candle with that time is used.
    """
    if index is not None:
        if 0 <= index < len(candles) and candles[index].time == time:
            return index
        return None
    return next((i for i, c in enumerate(candles) if c.time == time), None)

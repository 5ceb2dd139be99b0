"""Shared candle fixtures for the analysis tests.

Every series is hand-built so the expected structure can be checked on
paper: the 2h series trends up out of a discount low, the 15m series sweeps
the equal lows at 94.0 and displaces higher, and the 5m series repeats the
sweep, breaks the 95.0 swing high and leaves a bullish FVG.
"""

from ict_engine.ict.models import Candle

T0 = 1704067200  # 2024-01-01T00:00:00Z

TWO_H_START = T0 - 24 * 7200  # last 2h candle opens at 2023-12-31T22:00Z
FIFTEEN_M_START = T0 - 2 * 3600
FIVE_M_START = T0 + 2 * 3600


def _make_candle(time: int, o: float, h: float, l: float, c: float, vol: float | None = None) -> Candle:
    return Candle(time=time, open=o, high=h, low=l, close=c, volume=vol)


def series(start: int, step: int, rows: list[tuple[float, float, float, float]]) -> list[Candle]:
    """Build candles from ``(open, high, low, close)`` rows at a fixed spacing."""
    return [_make_candle(start + i * step, *row) for i, row in enumerate(rows)]


def bullish_2h() -> list[Candle]:
    """24 candles: a sell-off from 120 to 90, a base, then five higher highs/lows.

    Range 120/90, equilibrium 105, last close 100 (discount). Equal highs at
    101 and 96, equal lows at 94 and 91. Four bearish FVGs on the way down.
    """
    rows = [
        (118, 120, 115, 116),
        (116, 117, 110, 111),
        (111, 112, 104, 105),
        (105, 106, 99, 100),
        (100, 101, 94, 95),
        (95, 96, 90, 92),
    ]
    rows += [(93, 96, 91, 94)] * 13
    rows += [
        (94, 97, 92, 96),
        (96, 98, 93, 97),
        (97, 99, 94, 98),
        (98, 100, 95, 99),
        (99, 101, 96, 100),
    ]
    return series(TWO_H_START, 7200, rows)


def flat_2h() -> list[Candle]:
    """24 candles alternating highs of 10 and 11 over a flat 9 low."""
    return series(
        TWO_H_START,
        7200,
        [(9.2, 10 if i % 2 == 0 else 11, 9, 9.2) for i in range(24)],
    )


def sweep_15m() -> list[Candle]:
    """16 candles: equal lows at 94.0, swept by candle 8, displacement at candle 11.

    Average range 0.525. The sweep closes at 95.0 and the next five closes
    average 96.56, a 2.72% move. Candles 8-10 leave a 95.0-95.3 bullish FVG.
    """
    rows = [
        (94.4, 94.8, 94.0, 94.2),
        (94.2, 94.6, 94.1, 94.5),
        (94.5, 94.7, 94.2, 94.3),
        (94.3, 94.5, 94.0, 94.4),
        (94.4, 94.6, 94.2, 94.3),
        (94.3, 94.5, 94.1, 94.2),
        (94.2, 94.4, 94.0, 94.1),
        (94.1, 94.3, 94.0, 94.2),
        (94.1, 95.0, 93.6, 95.0),
        (95.0, 95.3, 95.0, 95.3),
        (95.3, 95.6, 95.3, 95.6),
        (95.6, 97.0, 95.6, 97.0),
        (97.0, 97.3, 97.0, 97.3),
        (97.3, 97.6, 97.3, 97.6),
        (97.6, 97.9, 97.6, 97.9),
        (97.9, 98.2, 97.9, 98.2),
    ]
    return series(FIFTEEN_M_START, 900, rows)


def staircase_15m() -> list[Candle]:
    """12 full-bodied up candles, each opening at the previous close: no equal levels."""
    rows = []
    for i in range(12):
        o = round(95 + 0.3 * i, 1)
        c = round(o + 0.3, 1)
        rows.append((o, c, o, c))
    return series(FIFTEEN_M_START, 900, rows)


def unswept_pool_15m() -> list[Candle]:
    """8 candles: equal lows at 100.00 and 100.05 (candles 4-5), level 100.025.

    Candle 4 dips below the pool mean and closes above it, but it is part of
    the pool. Nothing afterwards trades below 100.6. Asian range 105.0/103.0.
    """
    rows = [
        (103.2, 103.5, 103.0, 103.3),
        (103.3, 104.0, 103.2, 103.9),
        (103.9, 104.5, 103.6, 104.3),
        (104.3, 105.0, 103.9, 104.0),
        (101.0, 101.1, 100.00, 100.5),
        (100.5, 100.9, 100.05, 100.6),
        (100.6, 101.7, 100.6, 101.6),
        (101.6, 102.8, 101.5, 102.6),
    ]
    return series(FIFTEEN_M_START, 900, rows)


def entry_5m() -> list[Candle]:
    """12 candles: swing high 95.0, sweep of 94.0, close-confirmed break at candle 7.

    Average range 0.5. Candle 7 is both the MSS break and the displacement.
    The most recent bullish FVG spans 97.1-97.4 (candles 9-11).
    """
    rows = [
        (94.6, 94.8, 94.4, 94.5),
        (94.5, 95.0, 94.3, 94.4),
        (94.4, 94.6, 94.2, 94.3),
        (94.3, 94.5, 94.1, 94.2),
        (94.2, 94.4, 93.7, 94.3),
        (94.3, 94.6, 94.3, 94.6),
        (94.6, 94.9, 94.6, 94.9),
        (94.9, 96.5, 94.9, 96.5),
        (96.5, 96.8, 96.5, 96.8),
        (96.8, 97.1, 96.8, 97.1),
        (97.1, 97.4, 97.1, 97.4),
        (97.4, 97.7, 97.4, 97.7),
    ]
    return series(FIVE_M_START, 300, rows)


def wick_break_5m() -> list[Candle]:
    """10 candles: sweep of 94.0 and a displacement, but the 96.3 swing high
    is only broken by a wick (candle 6) and never closed above.
    """
    rows = [
        (94.2, 94.4, 93.7, 94.3),
        (94.3, 94.5, 94.3, 94.5),
        (94.5, 96.0, 94.5, 96.0),
        (96.0, 96.3, 95.8, 95.9),
        (95.9, 96.0, 95.7, 95.8),
        (95.8, 95.9, 95.6, 95.7),
        (95.7, 96.5, 95.6, 96.1),
        (96.1, 96.2, 96.0, 96.1),
        (96.1, 96.2, 96.0, 96.0),
        (96.0, 96.1, 95.9, 96.0),
    ]
    return series(FIVE_M_START, 300, rows)


def full_setup() -> dict[str, list[Candle]]:
    return {"2h": bullish_2h(), "15m": sweep_15m(), "5m": entry_5m()}

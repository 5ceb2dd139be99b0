"""Candle loading, normalisation and validation.

Turns raw CSV/JSON candle dumps into the ``Candle`` sequences the engine
consumes. This is the only module that touches the filesystem.
"""

import json
import logging
from collections.abc import Sequence
from pathlib import Path

import numpy as np
import pandas as pd

from ict_engine.ict.models import Candle

logger = logging.getLogger("ict_engine.data")

TIMEFRAME_FILES = ("2h", "15m", "5m")
SUPPORTED_SUFFIXES = (".csv", ".json")

PRICE_COLUMNS = ["open", "high", "low", "close"]

_COLUMN_ALIASES = {
    "timestamp": "time",
    "epoch": "time",
    "date": "time",
    "datetime": "time",
    "o": "open",
    "h": "high",
    "l": "low",
    "c": "close",
    "v": "volume",
    "vol": "volume",
}

# Epoch values above this are milliseconds.
_MILLIS_THRESHOLD = 10**11


def _epoch_seconds(series: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(series):
        values = series.to_numpy(dtype="float64")
        values = np.where(values > _MILLIS_THRESHOLD, values / 1000, values)
        return pd.Series(np.floor(values), index=series.index)

    parsed = pd.to_datetime(series, utc=True, errors="coerce")
    seconds = (parsed - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(seconds=1)
    return seconds.astype("float64")


def normalize_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Normalise a raw candle frame.

    1. Lower-case columns and map aliases (``timestamp`` → ``time``, ``o`` → ``open``, ...).
    2. Convert ``time`` to epoch seconds (ISO strings and epoch-ms accepted).
    3. Drop rows with a missing time or a missing/non-positive price.
    4. Stable-sort by time.

    Raises ``ValueError`` when ``time`` or a price column is missing.
    """
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    df = df.rename(columns={k: v for k, v in _COLUMN_ALIASES.items() if v not in df.columns})

    missing = [c for c in ["time", *PRICE_COLUMNS] if c not in df.columns]
    if missing:
        raise ValueError(f"Candle data missing column(s): {', '.join(missing)}")

    if df.empty:
        return df

    df["time"] = _epoch_seconds(df["time"])
    for column in PRICE_COLUMNS:
        df[column] = pd.to_numeric(df[column], errors="coerce")
    if "volume" in df.columns:
        df["volume"] = pd.to_numeric(df["volume"], errors="coerce")

    valid = df["time"].notna() & df[PRICE_COLUMNS].notna().all(axis=1) & (df[PRICE_COLUMNS] > 0).all(axis=1)
    dropped = int((~valid).sum())
    if dropped:
        logger.debug("Dropped %d malformed candle row(s)", dropped)

    df = df[valid].copy()
    df["time"] = df["time"].astype("int64")
    return df.sort_values("time", kind="mergesort").reset_index(drop=True)


def frame_to_candles(df: pd.DataFrame) -> list[Candle]:
    """Convert a normalised frame into ``Candle`` objects."""
    has_volume = "volume" in df.columns
    candles: list[Candle] = []
    for row in df.itertuples(index=False):
        volume = getattr(row, "volume") if has_volume else None
        candles.append(
            Candle(
                time=int(row.time),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=None if volume is None or pd.isna(volume) else float(volume),
            )
        )
    return candles


def validate_candles(candles: Sequence[Candle]) -> list[str]:
    """Return human-readable problems with *candles*; empty means valid."""
    errors: list[str] = []
    for i, c in enumerate(candles):
        if c.high < c.low:
            errors.append(f"Candle {i}: high {c.high} below low {c.low}")
        if not c.low <= c.open <= c.high:
            errors.append(f"Candle {i}: open {c.open} outside range")
        if not c.low <= c.close <= c.high:
            errors.append(f"Candle {i}: close {c.close} outside range")
        if i > 0 and c.time < candles[i - 1].time:
            errors.append(f"Candle {i}: time {c.time} before previous candle")
    return errors


def _read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path)
    if suffix == ".json":
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        if isinstance(payload, dict):
            payload = payload.get("candles", [])
        return pd.DataFrame(payload)
    raise ValueError(f"Unsupported candle file type: {path.name}")


def load_candles(path: str | Path) -> list[Candle]:
    """Load, normalise and validate a CSV or JSON candle file.

    JSON may be a list of candle objects or ``{"candles": [...]}``.
    Raises ``ValueError`` for unsupported files or invalid candles.
    """
    path = Path(path)
    candles = frame_to_candles(normalize_frame(_read_frame(path)))
    errors = validate_candles(candles)
    if errors:
        raise ValueError(f"{path.name}: {errors[0]} ({len(errors)} problem(s))")
    logger.debug("Loaded %d candles from %s", len(candles), path)
    return candles


def load_timeframes(data_dir: str | Path) -> dict[str, list[Candle]]:
    """Load ``2h``, ``15m`` and ``5m`` candle files from *data_dir*.

    A timeframe with no file is left out of the result so the engine can
    report it as missing.
    """
    data_dir = Path(data_dir)
    data: dict[str, list[Candle]] = {}
    for timeframe in TIMEFRAME_FILES:
        for suffix in SUPPORTED_SUFFIXES:
            path = data_dir / f"{timeframe}{suffix}"
            if path.is_file():
                data[timeframe] = load_candles(path)
                break
    return data

"""Instrument classification and per-class decision rules."""

import dataclasses
import logging
import re

from ict_engine.analysis.models import AnalysisResult, InstrumentConfig

logger = logging.getLogger("ict_engine.analysis.instruments")

_BROKER_PREFIXES = ("FRX", "CRY", "OTC_")

# Deriv-style synthetic indices: R_50, 1HZ100V, VOLATILITY 75, V75, BOOM1000, ...
_SYNTHETIC_PATTERN = re.compile(
    r"VOLATILITY|^V\d+|^R_\d+|^1HZ\d+|BOOM|CRASH|^JD\d+|STPRNG"
)


def normalize_symbol(symbol: str) -> str:
    """Upper-case *symbol* and strip a broker prefix such as ``frx``."""
    upper = symbol.strip().upper()
    for prefix in _BROKER_PREFIXES:
        if upper.startswith(prefix):
            return upper[len(prefix):]
    return upper


def get_instrument_config(symbol: str) -> InstrumentConfig:
    """Classify *symbol* as synthetic or forex and return its behaviour flags.

    Synthetic indices trade around the clock and are read through MSS
    alone; forex pairs and metals run the full session-filtered model.
    """
    normalized = normalize_symbol(symbol)
    if _SYNTHETIC_PATTERN.search(normalized):
        return InstrumentConfig(
            symbol=normalized,
            type="synthetic",
            use_session_filter=False,
            prioritize_mss=True,
            ignore_order_blocks=True,
            full_ict_model=False,
        )
    return InstrumentConfig(
        symbol=normalized,
        type="forex",
        use_session_filter=True,
        prioritize_mss=False,
        ignore_order_blocks=False,
        full_ict_model=True,
    )


def apply_instrument_rules(result: AnalysisResult, config: InstrumentConfig) -> AnalysisResult:
    """Apply the instrument class overrides to a finished analysis.

    Only ever downgrades ``TRADE_SETUP`` to ``WATCH``; returns a new result.
    """
    decision = result.final_decision
    reason = result.reason
    bias = result.timeframe_2h

    if config.type == "synthetic" and config.prioritize_mss:
        if decision == "TRADE_SETUP" and not result.timeframe_5m.mss_confirmed:
            decision, reason = "WATCH", "Synthetic instrument requires a confirmed 5m MSS"
        if config.ignore_order_blocks and bias.order_blocks:
            bias = dataclasses.replace(bias, order_blocks=())

    if config.full_ict_model and decision == "TRADE_SETUP":
        has_fvgs = (
            bool(result.timeframe_2h.fvgs)
            and bool(result.timeframe_15m.fvgs)
            and result.timeframe_5m.fvg_details is not None
        )
        has_momentum = (
            result.timeframe_15m.displacement_detected
            and result.timeframe_5m.mss_confirmed
        )
        if not has_fvgs:
            decision, reason = "WATCH", "Full ICT model requires FVGs on 2H, 15m and 5m"
        elif not has_momentum:
            decision, reason = "WATCH", "Full ICT model requires 15m displacement and 5m MSS"

    if decision != result.final_decision:
        logger.debug("%s: %s -> %s (%s)", config.symbol, result.final_decision, decision, reason)

    return dataclasses.replace(
        result,
        timeframe_2h=bias,
        final_decision=decision,
        reason=reason,
        instrument_config=config,
    )


def validate_instrument_analysis(result: AnalysisResult, config: InstrumentConfig) -> bool:
    """Final gate: MSS when prioritized, an open session when filtered."""
    if config.prioritize_mss and not result.timeframe_5m.mss_confirmed:
        return False
    if config.use_session_filter and not result.session_valid:
        return False
    return True

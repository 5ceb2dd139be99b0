"""ICT engine: CLI entry point.

Loads 2h/15m/5m candle files from a directory, runs the analysis and
prints the result as JSON.
"""

import json
import logging
import sys
from datetime import datetime, timezone

logger = logging.getLogger("ict_engine")


def _parse_now(value: str | None) -> datetime | None:
    if value is None:
        return None
    moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _run_cli(argv: list[str] | None = None) -> int:
    """Parse CLI arguments, run one analysis and print it."""
    import argparse

    from ict_engine.analysis.engine import MissingInputError, analyze
    from ict_engine.config import load_config
    from ict_engine.data.processor import load_timeframes

    parser = argparse.ArgumentParser(description="ICT multi-timeframe analysis")
    parser.add_argument("instrument", nargs="?", help="Symbol to analyse (default: ICT_INSTRUMENT)")
    parser.add_argument("--data-dir", help="Directory holding 2h/15m/5m .csv or .json files")
    parser.add_argument("--now", help="Analysis time as ISO-8601 (default: current UTC time)")
    parser.add_argument("--env-file", help="Path to a .env file")
    args = parser.parse_args(argv)

    config = load_config(args.env_file)
    logging.basicConfig(
        level=config.log_level_value,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    instrument = args.instrument or config.instrument
    data_dir = args.data_dir or config.data_dir

    try:
        now = _parse_now(args.now)
        data = load_timeframes(data_dir)
        result = analyze(instrument, data, now=now)
    except MissingInputError as exc:
        logger.error("%s (looked in %s)", exc, data_dir)
        return 2
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    print(json.dumps(result.to_dict(), indent=config.json_indent or None))
    return 0


if __name__ == "__main__":
    sys.exit(_run_cli())

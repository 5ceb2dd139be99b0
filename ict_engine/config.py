"""ICT engine: application configuration.

Loads .env variables into a typed config object.
Validates values on startup.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    log_level: str
    data_dir: str
    instrument: str
    json_indent: int

    @property
    def log_level_value(self) -> int:
        """Numeric ``logging`` level for ``log_level``."""
        return getattr(logging, self.log_level)


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Every variable is optional. Raises ``ValueError`` naming the variable
    when a value cannot be used.
    """
    load_dotenv(dotenv_path=env_path)

    log_level = os.environ.get("ICT_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(
            f"Invalid ICT_LOG_LEVEL {log_level!r}; expected one of {', '.join(_LOG_LEVELS)}"
        )

    raw_indent = os.environ.get("ICT_JSON_INDENT", "2")
    try:
        json_indent = int(raw_indent)
    except ValueError:
        raise ValueError(f"Invalid ICT_JSON_INDENT {raw_indent!r}; expected an integer") from None
    if json_indent < 0:
        raise ValueError(f"Invalid ICT_JSON_INDENT {raw_indent!r}; must not be negative")

    return Config(
        log_level=log_level,
        data_dir=os.environ.get("ICT_DATA_DIR", "data"),
        instrument=os.environ.get("ICT_INSTRUMENT", "EURUSD"),
        json_indent=json_indent,
    )

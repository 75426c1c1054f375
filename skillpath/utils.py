"""
Utility helpers for the skill progression engine.

Provides:
- Structured logging configuration with timestamps.
- A ``timed`` context manager for logging elapsed time.
- Level clamping and half-up rounding shared by the scoring modules.
- JSON dump helper for CLI outputs.
"""

import contextlib
import json
import logging
import math
import os
import time
from typing import Any, Generator

logger = logging.getLogger(__name__)

MIN_LEVEL = 0
MAX_LEVEL = 5


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(
    level: int = logging.INFO,
    fmt: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt: str = "%Y-%m-%dT%H:%M:%S%z",
) -> None:
    """Configure the root logger with timestamped structured output."""
    logging.basicConfig(level=level, format=fmt, datefmt=datefmt, force=True)


@contextlib.contextmanager
def timed(label: str) -> Generator[None, None, None]:
    """Context manager that logs elapsed wall-clock time for *label*."""
    t0 = time.monotonic()
    yield
    elapsed = time.monotonic() - t0
    logger.info("%s completed in %.3fs.", label, elapsed)


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------


def clamp_level(level: Any) -> int:
    """Clamp a skill level into 0–5. Non-numeric input counts as 0."""
    try:
        value = int(level)
    except (TypeError, ValueError):
        return MIN_LEVEL
    return max(MIN_LEVEL, min(MAX_LEVEL, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer; halves round up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def write_json(data: Any, path: str) -> None:
    """Write *data* as indented JSON, creating the parent directory."""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, default=str)

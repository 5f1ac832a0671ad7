"""Utility functions for reading typed values from the environment."""

from __future__ import annotations

import logging
import os

logger = logging.getLogger("twitar.utils.environment")


def env_str(name: str, default: str = "") -> str:
    """Return ``$name`` stripped of surrounding whitespace, or *default*."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip()


def env_int(name: str, default: int) -> int:
    """Return ``$name`` as an int, falling back to *default* when unset or invalid."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %s", name, raw, default)
        return default


def env_float(name: str, default: float) -> float:
    """Return ``$name`` as a float, falling back to *default* when unset or invalid."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", name, raw, default)
        return default

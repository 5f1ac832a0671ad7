"""Logging helpers shared by the OAuth core and the HTTP layer."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def mask_sensitive(value: str | None, keep_chars: int = 4) -> str:
    """Return *value* with everything but the first *keep_chars* replaced.

    ``None`` and empty strings render as ``"<none>"`` so log lines stay
    unambiguous.
    """
    if not value:
        return "<none>"
    if len(value) <= keep_chars:
        return "*" * len(value)
    return value[:keep_chars] + "*" * (len(value) - keep_chars)


def setup_logging(level: int | str = logging.INFO, stream=None) -> logging.Logger:  # noqa: ANN001
    """Configure the ``twitar`` logger hierarchy and return its root logger."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root = logging.getLogger("twitar")
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    return root
